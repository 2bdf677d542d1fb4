# -*- coding: utf-8 -*-
"""
Network Blueprint - Interfaces, Wi-Fi and hotspot routes
Version: 1.0.0
"""

import logging
import threading

from flask import Blueprint, request, jsonify

from services.network_service import (
    get_network_interfaces, check_interface, check_internet_connection,
    scan_wifi_networks, connect_wifi_or_hotspot, get_current_wifi,
    get_connected_ssid, disconnect_wifi, validate_wifi_credentials,
    save_wifi_network, forget_wifi_network
)
from services.network_state_service import (
    get_network_state, setup_wifi_with_rollback, setup_hotspot,
    reconfigure_wifi, run_in_background
)
from services.hotspot_service import list_connected_devices
from services.platform_service import is_safe_name
from config import WIFI_INTERFACE, MODEM_INTERFACE

logger = logging.getLogger(__name__)

network_bp = Blueprint('network', __name__, url_prefix='/api')

# ============================================================================
# INTERFACE ROUTES
# ============================================================================

@network_bp.route('/network/interfaces', methods=['GET'])
def interfaces():
    """Addresses, MTU, MAC and flags of every interface."""
    result = get_network_interfaces()
    if not result['success']:
        return jsonify({'success': False, 'error': result['message']}), 500
    return jsonify(result['interfaces'])

@network_bp.route('/network/interface-status/<name>', methods=['GET'])
def interface_status(name):
    """Ping through one interface and report UP/DOWN."""
    if not is_safe_name(name):
        return jsonify({'success': False, 'error': f"invalid interface name '{name}'"}), 400
    return jsonify(check_interface(name))

def _connection_check(interface, label):
    logger.info(f"[Network] Checking {label} connection")
    result = check_internet_connection(interface)
    if not result['success']:
        logger.error(f"[Network] Error checking {label} connection: {result['message']}")
        return jsonify({'success': False, 'error': f'failed to check {label} connection'}), 500
    logger.info(f"[Network] {label} connection: {result['connected']}")
    return jsonify({'connected': result['connected']})

@network_bp.route('/wifi-check', methods=['GET'])
def wifi_check():
    return _connection_check(WIFI_INTERFACE, 'Wi-Fi')

@network_bp.route('/modem-check', methods=['GET'])
def modem_check():
    return _connection_check(MODEM_INTERFACE, 'modem')

# ============================================================================
# WIFI ROUTES
# ============================================================================

@network_bp.route('/network/wifi', methods=['GET'])
def wifi_scan():
    result = scan_wifi_networks()
    if not result['success']:
        return jsonify({'success': False, 'error': result['message']}), 500
    return jsonify(result['networks'])

@network_bp.route('/network/wifi', methods=['POST'])
def wifi_connect():
    """
    Join a Wi-Fi network.

    JSON body: {"ssid": str, "password": str}. The hotspot is restarted
    in the background if the connection fails.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'success': False, 'error': 'Invalid request body'}), 400
    ssid = str(data.get('ssid') or '').strip()
    password = str(data.get('password') or '')
    if not ssid:
        return jsonify({'success': False, 'error': 'ssid field was empty'}), 400
    error = validate_wifi_credentials(ssid, password)
    if error:
        return jsonify({'success': False, 'error': error}), 400

    result = connect_wifi_or_hotspot(ssid, password)
    if not result['success']:
        code = 400 if result.get('client_error') else 500
        return jsonify({'success': False, 'error': f"Failed to connect to Wi-Fi: {result['message']}"}), code
    return jsonify({'success': True, 'message': result['message']})

@network_bp.route('/network/wifi/current', methods=['GET'])
def wifi_current():
    result = get_current_wifi()
    if not result['success']:
        return jsonify({'success': False, 'error': 'failed to get current Wi-Fi network'}), 500
    return jsonify({'SSID': result['ssid']})

@network_bp.route('/network/wifi/current', methods=['DELETE'])
def wifi_disconnect():
    """Forget the current network; the work happens after the response."""
    current = get_connected_ssid()
    if not current['success']:
        logger.error(f"[Network] Error getting current Wi-Fi network: {current['message']}")
        return jsonify({'success': False, 'error': 'failed to get current Wi-Fi network'}), 500

    def _disconnect():
        result = disconnect_wifi(current['ssid'])
        if not result['success']:
            logger.error(f"[Network] Disconnect failed: {result['message']}")

    logger.info("[Network] Will disconnect from Wi-Fi network")
    threading.Thread(target=_disconnect, daemon=True, name='wifi-disconnect').start()
    return jsonify({'success': True, 'message': 'will disconnect from Wi-Fi network shortly'})

# ============================================================================
# SAVED NETWORK ROUTES
# ============================================================================

def _saved_network_response(result):
    if not result['success']:
        code = 400 if result['client_error'] else 500
        return jsonify({'success': False, 'error': result['message']}), code
    return jsonify({'success': True, 'message': result['message']})

@network_bp.route('/wifi-networks', methods=['GET'])
def wifi_networks():
    return wifi_scan()

@network_bp.route('/wifi-networks', methods=['POST'])
def post_wifi_network():
    """Save a network. Form or query fields: ssid, psk."""
    ssid = request.values.get('ssid', '')
    if not ssid:
        return jsonify({'success': False, 'error': 'ssid field was empty'}), 400
    psk = request.values.get('psk', '')
    if not psk:
        return jsonify({'success': False, 'error': 'psk field was empty'}), 400
    return _saved_network_response(save_wifi_network(ssid, psk))

@network_bp.route('/wifi-networks', methods=['DELETE'])
def delete_wifi_network():
    ssid = request.values.get('ssid', '')
    if not ssid:
        return jsonify({'success': False, 'error': 'ssid field was empty'}), 400
    return _saved_network_response(forget_wifi_network(ssid))

# ============================================================================
# NETWORK MODE ROUTES
# ============================================================================

@network_bp.route('/enable-wifi', methods=['POST'])
def enable_wifi():
    run_in_background(setup_wifi_with_rollback, 'setup-wifi')
    return jsonify({'success': True, 'message': 'Switching to Wi-Fi'})

@network_bp.route('/enable-hotspot', methods=['POST'])
def enable_hotspot():
    run_in_background(setup_hotspot, 'setup-hotspot')
    return jsonify({'success': True, 'message': 'Switching to hotspot'})

@network_bp.route('/reconfigure-wifi', methods=['POST'])
def post_reconfigure_wifi():
    result = reconfigure_wifi()
    return jsonify(result), 200 if result['success'] else 500

@network_bp.route('/wifi-status', methods=['GET'])
def wifi_status():
    return jsonify({'state': get_network_state()})

@network_bp.route('/hotspot/clients', methods=['GET'])
def hotspot_clients():
    """MAC addresses of stations joined to the hotspot."""
    result = list_connected_devices()
    if not result['success']:
        return jsonify({'success': False, 'error': result['message']}), 500
    return jsonify(result['devices'])

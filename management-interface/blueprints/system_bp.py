# -*- coding: utf-8 -*-
"""
System Blueprint - Version, device info, services, logs, battery, clock and reboot
Version: 1.0.0
"""

import logging

from flask import Blueprint, request, jsonify

from services.system_service import (
    get_version_info, get_device_info, get_installed_packages,
    get_service_logs, get_service_status, restart_service,
    get_last_battery_reading, get_disk_memory, reboot_system
)
from services.clock_service import get_clock_info, set_clock
from services.platform_service import is_safe_name

logger = logging.getLogger(__name__)

system_bp = Blueprint('system', __name__, url_prefix='/api')


def _service_name_or_error():
    service = request.values.get('service', '').strip()
    if not service:
        return None, (jsonify({'success': False, 'error': 'service field was empty'}), 400)
    if not is_safe_name(service):
        return None, (jsonify({'success': False, 'error': f"invalid service name '{service}'"}), 400)
    return service, None

# ============================================================================
# DEVICE INFO ROUTES
# ============================================================================

@system_bp.route('/version', methods=['GET'])
def version():
    return jsonify(get_version_info())

@system_bp.route('/device-info', methods=['GET'])
def device_info():
    """Device name, group, id and server URL."""
    result = get_device_info()
    if not result['success']:
        return jsonify({'success': False, 'error': result['message']}), 500
    return jsonify(result['info'])

@system_bp.route('/packages', methods=['GET'])
def packages():
    """Installed package versions."""
    result = get_installed_packages()
    if not result['success']:
        return jsonify({'success': False, 'error': result['message']}), 500
    return jsonify(result['packages'])

@system_bp.route('/battery', methods=['GET'])
def battery():
    result = get_last_battery_reading()
    if not result['success']:
        logger.error(f"[System] Battery reading failed: {result['message']}")
        return jsonify({'success': False, 'error': result['message']}), 500
    return jsonify(result['reading'])

@system_bp.route('/disk-memory', methods=['GET'])
def disk_memory():
    result = get_disk_memory()
    if not result['success']:
        return jsonify({'success': False, 'error': result['message']}), 500
    return jsonify({'disk': result['disk'], 'memory': result['memory']})

# ============================================================================
# SERVICE ROUTES
# ============================================================================

@system_bp.route('/logs', methods=['GET'])
def service_logs():
    """Journal lines for a service (?service=&lines=)."""
    service, error = _service_name_or_error()
    if error:
        return error
    raw_lines = request.values.get('lines', '').strip()
    if not raw_lines:
        return jsonify({'success': False, 'error': "didn't find a value for 'lines'"}), 400
    try:
        lines = int(raw_lines)
    except ValueError:
        return jsonify({'success': False, 'error': f"failed to parse '{raw_lines}' from field 'lines' to an int"}), 400

    result = get_service_logs(service, lines)
    if not result['success']:
        return jsonify({'success': False, 'error': result['message']}), 500
    return jsonify(result['logs'])

@system_bp.route('/service', methods=['GET'])
def service_status():
    service, error = _service_name_or_error()
    if error:
        return error
    result = get_service_status(service)
    if not result['success']:
        logger.error(f"[System] Service status for {service} failed: {result['message']}")
        return jsonify({'success': False, 'error': result['message']}), 500
    return jsonify(result['status'])

@system_bp.route('/service-restart', methods=['POST'])
def service_restart():
    service, error = _service_name_or_error()
    if error:
        return error
    result = restart_service(service)
    return jsonify(result), 200 if result['success'] else 500

@system_bp.route('/reboot', methods=['POST'])
def reboot():
    """Reboot the device after a short delay."""
    return jsonify(reboot_system())

# ============================================================================
# CLOCK ROUTES
# ============================================================================

@system_bp.route('/clock', methods=['GET'])
def get_clock():
    result = get_clock_info()
    if not result['success']:
        logger.error(f"[Clock] {result['message']}")
        return jsonify({'success': False, 'error': result['message']}), 500
    return jsonify(result['clock'])

@system_bp.route('/clock', methods=['POST'])
def post_clock():
    """Set the time (form field 'date', RFC3339) and optionally 'timezone'."""
    result = set_clock(
        request.form.get('date', '').strip(),
        request.form.get('timezone', '').strip()
    )
    if not result['success']:
        code = 400 if result['client_error'] else 500
        return jsonify({'success': False, 'error': result['message']}), code
    return jsonify({'success': True, 'message': result['message']})

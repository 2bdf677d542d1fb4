# -*- coding: utf-8 -*-
"""
Network Service - Interfaces, Wi-Fi scanning and client connections
Version: 1.0.0

Wi-Fi networks are managed through wpa_supplicant.conf and wpa_cli on
wlan0. Failed connections fall back to the bushnet hotspot.
"""

import re
import json
import time
import shlex
import socket
import logging

from .platform_service import run_command, systemctl, interface_is_up
from .hotspot_service import parse_wpa_status
from .network_state_service import setup_hotspot, run_in_background
from config import (
    WIFI_INTERFACE, WPA_SUPPLICANT_FILE, DHCPCD_CONFIG_FILE,
    PROTECTED_NETWORKS, WIFI_CONNECT_TIMEOUT, PING_HOST, PING_PACKETS,
    DNS_CHECK_HOST
)

logger = logging.getLogger(__name__)

QUALITY_PATTERN = re.compile(r'Quality=([0-9]+/[0-9]+)')
SIGNAL_PATTERN = re.compile(r'Signal level=(-?[0-9]+ dBm)')
RECEIVED_PATTERN = re.compile(r'(\d+) (?:packets )?received')

# ============================================================================
# INTERFACES
# ============================================================================

def parse_ip_addr_json(output):
    """
    Convert `ip -j addr` output to the interface list returned by the API.

    Returns:
        list: [{name, addresses, mtu, macAddress, flags}]
    """
    interfaces = []
    for entry in json.loads(output or '[]'):
        addresses = [
            f"{info.get('local')}/{info.get('prefixlen')}"
            for info in entry.get('addr_info', [])
            if info.get('local')
        ]
        interfaces.append({
            'name': entry.get('ifname', ''),
            'addresses': addresses,
            'mtu': entry.get('mtu', 0),
            'macAddress': entry.get('address', ''),
            'flags': '|'.join(flag.lower() for flag in entry.get('flags', []))
        })
    return interfaces

def get_network_interfaces():
    """
    Returns:
        dict: {success: bool, interfaces: list, message: str}
    """
    result = run_command("ip -j addr", timeout=5)
    if not result['success']:
        logger.error(f"[Network] Error getting network interfaces: {result['stderr']}")
        return {'success': False, 'interfaces': [], 'message': 'failed to get network interfaces'}
    try:
        interfaces = parse_ip_addr_json(result['stdout'])
    except ValueError as e:
        logger.error(f"[Network] Could not parse ip output: {e}")
        return {'success': False, 'interfaces': [], 'message': 'failed to get network interfaces'}
    return {'success': True, 'interfaces': interfaces, 'message': ''}

def parse_packets_received(output):
    match = RECEIVED_PATTERN.search(output)
    return int(match.group(1)) if match else 0

def check_interface(name, packets=PING_PACKETS, host=PING_HOST):
    """
    Ping a host through an interface.

    Returns:
        dict: {success: bool, interface: str, received: int, up: bool, status: str}
    """
    result = run_command(
        f"ping -I {shlex.quote(name)} -c {packets} -n -W 15 {host}",
        timeout=packets * 15 + 10
    )
    received = parse_packets_received(result['stdout'])
    up = received > 0
    return {
        'success': True,
        'interface': name,
        'sent': packets,
        'received': received,
        'up': up,
        'status': f"{name} is {'UP' if up else 'DOWN'}."
    }

def check_internet_connection(interface):
    """
    Check the interface is up and DNS resolves.

    Returns:
        dict: {success: bool, connected: bool, message: str}
    """
    if not interface_is_up(interface):
        return {'success': False, 'connected': False, 'message': f'interface {interface} is down'}
    try:
        socket.getaddrinfo(DNS_CHECK_HOST, None)
    except OSError:
        return {'success': True, 'connected': False, 'message': ''}
    return {'success': True, 'connected': True, 'message': ''}

# ============================================================================
# WIFI SCAN
# ============================================================================

def parse_wifi_scan_output(output):
    """
    Parse `iwlist wlan0 scan` output.

    Returns:
        list: [{'SSID', 'Quality', 'Signal Level', 'Security'}]
    """
    networks = []
    current = None
    for line in output.split('\n'):
        if 'Cell' in line:
            if current is not None:
                networks.append(current)
            current = {}
        elif current is None:
            continue
        elif 'ESSID:' in line:
            parts = line.split('"')
            current['SSID'] = parts[1] if len(parts) > 1 else ''
        elif 'Quality=' in line:
            quality = QUALITY_PATTERN.search(line)
            signal = SIGNAL_PATTERN.search(line)
            if quality:
                current['Quality'] = quality.group(1)
            if signal:
                current['Signal Level'] = signal.group(1)
        elif 'Encryption key:on' in line:
            current['Security'] = 'On'
        elif 'IE: IEEE 802.11i/WPA2' in line:
            current['Security'] = 'WPA2'
        elif 'IE: WPA Version 1' in line:
            current['Security'] = 'WPA'
        elif 'IE: Unknown' in line and not current.get('Security'):
            current['Security'] = 'Unknown'
    if current is not None:
        networks.append(current)
    return networks

def scan_wifi_networks():
    """
    Returns:
        dict: {success: bool, networks: list, message: str}
    """
    logger.info("[Network] Scanning for Wi-Fi networks")
    result = run_command(f"iwlist {WIFI_INTERFACE} scan", timeout=30)
    if not result['success']:
        logger.error(f"[Network] Error scanning for Wi-Fi networks: {result['stderr']}")
        return {'success': False, 'networks': [], 'message': 'failed to scan for Wi-Fi networks'}
    networks = parse_wifi_scan_output(result['stdout'])
    logger.info(f"[Network] Found {len(networks)} Wi-Fi networks")
    return {'success': True, 'networks': networks, 'message': ''}

# ============================================================================
# WPA SUPPLICANT CONFIG
# ============================================================================

def validate_wifi_credentials(ssid, password=''):
    """
    Check an SSID and password can be written into wpa_supplicant.conf.

    Returns:
        str: error message, or '' if both are usable
    """
    for label, value in (('ssid', ssid), ('password', password)):
        if '"' in value:
            return f'{label} must not contain double quotes'
        if any(ord(c) < 32 or ord(c) == 127 for c in value):
            return f'{label} must not contain control characters'
    return ''

def add_network_to_wpa_config(ssid, password, path=None):
    """Append a network block unless the SSID is already configured."""
    path = path or WPA_SUPPLICANT_FILE
    with open(path, 'r') as f:
        content = f.read()
    if f'ssid="{ssid}"' in content:
        return
    block = f'\nnetwork={{\n    ssid="{ssid}"\n    psk="{password}"\n}}'
    with open(path, 'w') as f:
        f.write(content + block)

def remove_network_from_wpa_config(ssid, path=None):
    """Drop every network block that references the SSID."""
    path = path or WPA_SUPPLICANT_FILE
    with open(path, 'r') as f:
        lines = f.read().split('\n')

    new_lines = []
    block = []
    in_block = False
    for line in lines:
        if 'network={' in line:
            in_block = True
            block = [line]
        elif in_block:
            block.append(line)
            if '}' in line:
                if f'ssid="{ssid}"' not in '\n'.join(block):
                    new_lines.extend(block)
                in_block = False
                block = []
        else:
            new_lines.append(line)

    with open(path, 'w') as f:
        f.write('\n'.join(new_lines))

def is_network_saved(ssid, path=None):
    with open(path or WPA_SUPPLICANT_FILE, 'r') as f:
        return f'ssid="{ssid}"' in f.read()

def parse_list_networks(output):
    """
    Parse `wpa_cli list_networks` into {ssid: network id}.
    """
    ids = {}
    for line in output.split('\n')[1:]:
        fields = line.split()
        if len(fields) >= 2:
            ids[fields[1]] = fields[0]
    return ids

def wpa_cli(command, timeout=15):
    return run_command(f"wpa_cli -i {WIFI_INTERFACE} {command}", timeout=timeout)

# ============================================================================
# CONNECT / DISCONNECT
# ============================================================================

def wait_for_wifi_state(ssid, timeout=WIFI_CONNECT_TIMEOUT, interval=1):
    """Poll wpa_cli status until the SSID reaches COMPLETED or timeout."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        result = wpa_cli('status', timeout=10)
        if result['success']:
            status = parse_wpa_status(result['stdout'])
            if status.get('ssid') == ssid and status.get('wpa_state') == 'COMPLETED':
                return True
        time.sleep(interval)
    return False

def _abandon_network(ssid):
    try:
        remove_network_from_wpa_config(ssid)
    except OSError as e:
        logger.error(f"[Network] Error removing Wi-Fi network {ssid}: {e}")

def connect_wifi(ssid, password):
    """
    Add a network to wpa_supplicant and wait for it to associate.

    The network is removed again if any step fails.

    Returns:
        dict: {success: bool, message: str, client_error: bool}
    """
    error = validate_wifi_credentials(ssid, password)
    if error:
        return {'success': False, 'message': error, 'client_error': True}

    logger.info(f"[Network] Attempting to connect to Wi-Fi SSID: {ssid}")
    try:
        add_network_to_wpa_config(ssid, password)
    except OSError as e:
        logger.error(f"[Network] Error adding Wi-Fi network to config: {e}")
        return {'success': False, 'message': str(e)}

    result = wpa_cli('reconfigure')
    if not result['success']:
        _abandon_network(ssid)
        return {'success': False, 'message': f"reconfigure failed: {result['stderr']}"}

    listed = wpa_cli('list_networks')
    if listed['success']:
        network_id = parse_list_networks(listed['stdout']).get(ssid)
        if network_id is not None:
            for command in (f'select_network {network_id}', 'reassociate'):
                result = wpa_cli(command)
                if not result['success']:
                    _abandon_network(ssid)
                    return {'success': False, 'message': f"{command} failed: {result['stderr']}"}

    if not wait_for_wifi_state(ssid):
        _abandon_network(ssid)
        return {'success': False, 'message': 'failed to connect to Wi-Fi within the timeout'}

    logger.info(f"[Network] Successfully connected to Wi-Fi SSID: {ssid}")
    result = run_command(f"sed -i '/static ip_address=/d' {DHCPCD_CONFIG_FILE}", timeout=10)
    if not result['success']:
        logger.warning(f"[Network] Error removing static ip from dhcpcd.conf: {result['stderr']}")
    result = systemctl('restart', 'dhcpcd')
    if not result['success']:
        logger.warning(f"[Network] Error restarting DHCP client: {result['stderr']}")
    return {'success': True, 'message': 'Connected to Wi-Fi successfully'}

def connect_wifi_or_hotspot(ssid, password):
    """Connect, starting the hotspot in the background on failure."""
    result = connect_wifi(ssid, password)
    if not result['success'] and not result.get('client_error'):
        logger.error(f"[Network] Error connecting to Wi-Fi: {result['message']}")
        run_in_background(setup_hotspot, 'setup-hotspot')
    return result

def get_connected_ssid():
    """
    SSID from wpa_cli status.

    Returns:
        dict: {success: bool, ssid: str, message: str}
    """
    result = wpa_cli('status', timeout=10)
    if not result['success']:
        return {'success': False, 'ssid': '', 'message': result['stderr'] or 'wpa_cli status failed'}
    return {'success': True, 'ssid': parse_wpa_status(result['stdout']).get('ssid', ''), 'message': ''}

def disconnect_wifi(ssid):
    """
    Forget the current network and reconnect to whatever else is known.

    Protected networks stay in the config. Starts the hotspot when no
    network is joined afterwards.

    Returns:
        dict: {success: bool, message: str}
    """
    if ssid and ssid not in PROTECTED_NETWORKS:
        try:
            remove_network_from_wpa_config(ssid)
        except OSError as e:
            logger.error(f"[Network] Error removing network from wpa_supplicant.conf: {e}")
            return {'success': False, 'message': 'failed to remove network from configuration'}
    else:
        result = systemctl('restart', 'dhcpcd')
        if not result['success']:
            logger.warning(f"[Network] Error restarting DHCP client: {result['stderr']}")

    result = wpa_cli('disconnect')
    if not result['success']:
        logger.warning(f"[Network] Error disconnecting from Wi-Fi network: {result['stderr']}")
    result = wpa_cli('reconfigure')
    if not result['success']:
        return {'success': False, 'message': 'failed to reconfigure Wi-Fi network'}
    result = wpa_cli('reconnect')
    if not result['success']:
        logger.warning(f"[Network] Error reconnecting to Wi-Fi network: {result['stderr']}")

    current = get_connected_ssid()
    if not current['ssid']:
        logger.info("[Network] No current Wi-Fi network, restarting hotspot")
        run_in_background(setup_hotspot, 'setup-hotspot')

    logger.info(f"[Network] Removed Wi-Fi network: {ssid}")
    return {'success': True, 'message': 'deleted Wi-Fi network'}

# ============================================================================
# SAVED NETWORKS
# ============================================================================

def _reload_wpa_config():
    result = wpa_cli('reconfigure')
    if not result['success']:
        logger.error(f"[Network] Error reloading wpa_supplicant config: {result['stderr']}")
        return {'success': False, 'message': 'failed to reconfigure Wi-Fi', 'client_error': False}
    return None

def save_wifi_network(ssid, psk):
    """
    Save a network to wpa_supplicant.conf without switching to it.

    An existing entry for the SSID is replaced. Protected networks can't be
    changed.

    Returns:
        dict: {success: bool, message: str, client_error: bool}
    """
    error = validate_wifi_credentials(ssid, psk)
    if error:
        return {'success': False, 'message': error, 'client_error': True}
    if ssid in PROTECTED_NETWORKS:
        return {'success': False, 'message': f"cannot modify protected network '{ssid}'", 'client_error': True}

    try:
        remove_network_from_wpa_config(ssid)
        add_network_to_wpa_config(ssid, psk)
    except OSError as e:
        logger.error(f"[Network] Error saving Wi-Fi network {ssid}: {e}")
        return {'success': False, 'message': 'failed to save Wi-Fi network', 'client_error': False}

    failed = _reload_wpa_config()
    if failed:
        return failed
    logger.info(f"[Network] Saved Wi-Fi network: {ssid}")
    return {'success': True, 'message': 'saved Wi-Fi network', 'client_error': False}

def forget_wifi_network(ssid):
    """
    Remove a saved network from wpa_supplicant.conf.

    Returns:
        dict: {success: bool, message: str, client_error: bool}
    """
    error = validate_wifi_credentials(ssid)
    if error:
        return {'success': False, 'message': error, 'client_error': True}
    if ssid in PROTECTED_NETWORKS:
        return {'success': False, 'message': f"cannot remove protected network '{ssid}'", 'client_error': True}

    try:
        if not is_network_saved(ssid):
            return {'success': False, 'message': f"network '{ssid}' is not saved", 'client_error': True}
        remove_network_from_wpa_config(ssid)
    except OSError as e:
        logger.error(f"[Network] Error removing Wi-Fi network {ssid}: {e}")
        return {'success': False, 'message': 'failed to remove Wi-Fi network', 'client_error': False}

    failed = _reload_wpa_config()
    if failed:
        return failed
    logger.info(f"[Network] Removed saved Wi-Fi network: {ssid}")
    return {'success': True, 'message': 'removed Wi-Fi network', 'client_error': False}

# ============================================================================
# CURRENT NETWORK
# ============================================================================

def get_current_wifi():
    """
    SSID wlan0 is associated with.

    iwgetid exits non-zero with no output when not associated; that reads
    as an empty SSID rather than an error.

    Returns:
        dict: {success: bool, ssid: str, message: str}
    """
    result = run_command(f"iwgetid {WIFI_INTERFACE} -r", timeout=5)
    if result['success']:
        return {'success': True, 'ssid': result['stdout'].strip(), 'message': ''}
    output = (result['stdout'] or result['stderr'] or '').strip()
    if not output:
        return {'success': True, 'ssid': '', 'message': ''}
    logger.error(f"[Network] Error getting current Wi-Fi network: {output}")
    return {'success': False, 'ssid': '', 'message': output}

# -*- coding: utf-8 -*-
"""
Hotspot Service - Access point mode for wlan0 (hostapd + dnsmasq + dhcpcd)
Version: 1.0.0

The device falls back to hosting its own "bushnet" network when it cannot
join an upstream Wi-Fi network. Entering hotspot mode rewrites the hostapd,
dnsmasq and dhcpcd configs and restarts those services; leaving it stops
them and puts dhcpcd back into client mode.
"""

import os
import time
import logging
import threading

from .platform_service import run_command, systemctl, interface_is_up
from config import (
    WIFI_INTERFACE, HOTSPOT_SSID, HOTSPOT_PASSPHRASE, HOTSPOT_CHANNEL,
    HOTSPOT_COUNTRY, ROUTER_IP, DHCP_RANGE, DHCP_LEASE_TIME,
    HOSTAPD_CONFIG_FILE, DNSMASQ_CONFIG_FILE, DHCPCD_CONFIG_FILE,
    INTERFACE_UP_TIMEOUT, CONNECTION_WAIT_TRIES, HOTSPOT_TIMEOUT
)

logger = logging.getLogger(__name__)

# ============================================================================
# DHCPCD CONFIGURATION
# ============================================================================

DHCP_MODE_WIFI = 'WIFI'
DHCP_MODE_HOTSPOT = 'HOTSPOT'

DHCP_CONFIG_DEFAULT = [
    'hostname',
    'clientid',
    'persistent',
    'option rapid_commit',
    'option domain_name_servers, domain_name, domain_search, host_name',
    'option classless_static_routes',
    'option interface_mtu',
    'require dhcp_server_identifier',
    'slaac private',
    'interface usb0',
    'metric 300',
    'interface wlan0',
    'metric 200',
]

DHCP_HOTSPOT_EXTRA_LINES = [
    'interface wlan0',
    f'static ip_address={ROUTER_IP}/24',
    'nohook wpa_supplicant',
]

def write_config_lines(path, lines):
    """Write one config directive per line, replacing the file."""
    with open(path, 'w') as f:
        for line in lines:
            f.write(line + '\n')

def write_lines_if_changed(path, lines):
    """
    Write lines to a file only if the content differs.

    Returns:
        bool: True if the file was (re)written
    """
    new_content = '\n'.join(lines) + '\n'
    if os.path.exists(path):
        with open(path, 'r') as f:
            if f.read() == new_content:
                return False
    write_config_lines(path, lines)
    return True

def get_dhcp_config_lines(mode):
    """dhcpcd.conf lines for a mode, or None for an unknown mode."""
    if mode == DHCP_MODE_WIFI:
        return list(DHCP_CONFIG_DEFAULT)
    if mode == DHCP_MODE_HOTSPOT:
        return DHCP_CONFIG_DEFAULT + DHCP_HOTSPOT_EXTRA_LINES
    return None

def set_dhcp_mode(mode):
    """
    Configure dhcpcd for client Wi-Fi or for hosting the hotspot.

    dhcpcd is restarted only when the config actually changed; otherwise
    it is just started in case it was stopped.

    Args:
        mode: DHCP_MODE_WIFI or DHCP_MODE_HOTSPOT

    Returns:
        dict: {success: bool, message: str, changed: bool}
    """
    lines = get_dhcp_config_lines(mode)
    if lines is None:
        return {'success': False, 'message': f'unknown DHCP mode {mode}', 'changed': False}

    try:
        changed = write_lines_if_changed(DHCPCD_CONFIG_FILE, lines)
    except OSError as e:
        return {'success': False, 'message': f'writing {DHCPCD_CONFIG_FILE}: {e}', 'changed': False}

    if changed:
        logger.info(f"[Hotspot] dhcpcd config changed to {mode} mode, restarting dhcpcd")
        result = systemctl('restart', 'dhcpcd')
    else:
        result = systemctl('start', 'dhcpcd')

    if not result['success']:
        return {'success': False, 'message': f"dhcpcd: {result['stderr']}", 'changed': changed}
    return {'success': True, 'message': f'DHCP set to {mode} mode', 'changed': changed}

# ============================================================================
# HOSTAPD / DNSMASQ CONFIGURATION
# ============================================================================

def get_ap_config_lines(ssid=HOTSPOT_SSID):
    return [
        f'country_code={HOTSPOT_COUNTRY}',
        f'interface={WIFI_INTERFACE}',
        f'ssid={ssid}',
        'hw_mode=g',
        f'channel={HOTSPOT_CHANNEL}',
        'macaddr_acl=0',
        'ignore_broadcast_ssid=0',
        'wpa=2',
        f'wpa_passphrase={HOTSPOT_PASSPHRASE}',
        'wpa_key_mgmt=WPA-PSK',
        'wpa_pairwise=TKIP',
        'rsn_pairwise=CCMP',
    ]

def get_dns_config_lines():
    return [
        f'interface={WIFI_INTERFACE}',
        f'dhcp-range={DHCP_RANGE},{DHCP_LEASE_TIME}',
        'domain=wlan',
    ]

def create_ap_config(ssid=HOTSPOT_SSID):
    """Write hostapd.conf for the hotspot network."""
    try:
        write_config_lines(HOSTAPD_CONFIG_FILE, get_ap_config_lines(ssid))
    except OSError as e:
        return {'success': False, 'message': f'writing {HOSTAPD_CONFIG_FILE}: {e}'}
    return {'success': True, 'message': 'AP config written'}

def create_dns_config():
    """Write dnsmasq.conf serving DHCP leases to hotspot clients."""
    try:
        write_config_lines(DNSMASQ_CONFIG_FILE, get_dns_config_lines())
    except OSError as e:
        return {'success': False, 'message': f'writing {DNSMASQ_CONFIG_FILE}: {e}'}
    return {'success': True, 'message': 'DNS config written'}

# ============================================================================
# CONNECTION CHECKS
# ============================================================================

def parse_wpa_status(output):
    """
    Parse `wpa_cli status` key=value output.

    Returns:
        dict: the key/value pairs
    """
    status = {}
    for line in output.split('\n'):
        if '=' in line:
            key, value = line.strip().split('=', 1)
            status[key] = value
    return status

def is_connected_to_network():
    """
    Check whether wlan0 has completed association and has an address.

    Returns:
        dict: {success: bool, connected: bool, ssid: str, message: str}
    """
    result = run_command(f"wpa_cli -i {WIFI_INTERFACE} status", timeout=10)
    if not result['success']:
        return {
            'success': False,
            'connected': False,
            'ssid': '',
            'message': f"wpa_cli status: {result['stderr'] or result['stdout']}"
        }

    status = parse_wpa_status(result['stdout'])
    ssid = status.get('ssid', '')
    ip_address = status.get('ip_address', '')
    connected = status.get('wpa_state') == 'COMPLETED' and bool(ssid) and bool(ip_address)
    if connected:
        logger.info(f"[Hotspot] Connected to '{ssid}' with address '{ip_address}'")
    return {'success': True, 'connected': connected, 'ssid': ssid, 'message': ''}

def wait_and_check_if_connected(tries=CONNECTION_WAIT_TRIES, interval=1):
    """
    Poll for a Wi-Fi connection.

    Returns:
        dict: {success: bool, connected: bool, message: str}
    """
    for attempt in range(tries):
        status = is_connected_to_network()
        if not status['success']:
            return {'success': False, 'connected': False, 'message': status['message']}
        if status['connected']:
            return {'success': True, 'connected': True, 'message': f"connected to {status['ssid']}"}
        if attempt < tries - 1:
            time.sleep(interval)
    return {'success': True, 'connected': False, 'message': 'not connected'}

def wait_for_interface(interface=WIFI_INTERFACE, timeout=INTERFACE_UP_TIMEOUT, interval=1):
    """
    Wait for an interface to come up.

    Returns:
        dict: {success: bool, message: str}
    """
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if interface_is_up(interface):
            return {'success': True, 'message': f'{interface} is up'}
        time.sleep(interval)
    return {
        'success': False,
        'message': f'interface {interface} did not come up within {timeout}s'
    }

# ============================================================================
# SERVICE CONTROL
# ============================================================================

def start_dns():
    result = systemctl('restart', 'dnsmasq')
    if not result['success']:
        return {'success': False, 'message': f"restarting dnsmasq: {result['stderr']}"}
    return {'success': True, 'message': 'dnsmasq restarted'}

def stop_dns():
    result = systemctl('stop', 'dnsmasq')
    if not result['success']:
        return {'success': False, 'message': f"stopping dnsmasq: {result['stderr']}"}
    return {'success': True, 'message': 'dnsmasq stopped'}

def start_access_point():
    """Restart hostapd and wait for wlan0 to come up."""
    result = systemctl('restart', 'hostapd')
    if not result['success']:
        return {'success': False, 'message': f"restarting hostapd: {result['stderr']}"}
    return wait_for_interface(WIFI_INTERFACE)

def stop_access_point():
    result = systemctl('stop', 'hostapd')
    if not result['success']:
        return {'success': False, 'message': f"stopping hostapd: {result['stderr']}"}
    return {'success': True, 'message': 'hostapd stopped'}

# ============================================================================
# HOTSPOT LIFECYCLE
# ============================================================================

def initialise_hotspot():
    """
    Bring up the hotspot unless wlan0 is already connected to a network.

    Steps run in order and the first failure is returned; the caller is
    expected to call stop_hotspot() when this fails.

    Returns:
        dict: {success: bool, message: str}
    """
    logger.info("[Hotspot] Initialising hotspot, first checking if connected to a Wi-Fi network")

    result = set_dhcp_mode(DHCP_MODE_WIFI)
    if not result['success']:
        return result

    logger.info(f"[Hotspot] Checking for a network connection over the next {CONNECTION_WAIT_TRIES}s")
    result = wait_and_check_if_connected()
    if not result['success']:
        return result
    if result['connected']:
        return {'success': False, 'message': 'already connected to a network'}

    logger.info("[Hotspot] Not connected to a network, starting hotspot")
    steps = [
        ('creating AP config', create_ap_config),
        ('creating DNS config', create_dns_config),
        ('setting DHCP to hotspot mode', lambda: set_dhcp_mode(DHCP_MODE_HOTSPOT)),
        ('starting DNS', start_dns),
        ('starting access point', start_access_point),
    ]
    for description, step in steps:
        logger.info(f"[Hotspot] {description.capitalize()}...")
        result = step()
        if not result['success']:
            return {'success': False, 'message': f"{description}: {result['message']}"}

    logger.info(f"[Hotspot] Hotspot '{HOTSPOT_SSID}' is up")
    return {'success': True, 'message': f'Hotspot {HOTSPOT_SSID} started'}

def stop_hotspot():
    """
    Stop hostapd and dnsmasq and return dhcpcd to client mode.

    Returns:
        dict: {success: bool, message: str}
    """
    logger.info("[Hotspot] Stopping hotspot")
    for step in (stop_access_point, stop_dns, lambda: set_dhcp_mode(DHCP_MODE_WIFI)):
        result = step()
        if not result['success']:
            return {'success': False, 'message': result['message']}
    return {'success': True, 'message': 'Hotspot stopped'}

def parse_mac_addresses(output):
    """Extract station MAC addresses from `iw dev wlan0 station dump`."""
    macs = []
    for line in output.split('\n'):
        if line.startswith('Station'):
            fields = line.split()
            if len(fields) > 1:
                macs.append(fields[1])
    return macs

def list_connected_devices():
    """
    List MAC addresses of clients associated with the hotspot.

    Returns:
        dict: {success: bool, devices: list, message: str}
    """
    result = run_command(f"iw dev {WIFI_INTERFACE} station dump", timeout=10)
    if not result['success']:
        return {'success': False, 'devices': [], 'message': result['stderr']}
    return {'success': True, 'devices': parse_mac_addresses(result['stdout']), 'message': ''}

# ============================================================================
# HOTSPOT AUTO-STOP TIMER
# ============================================================================

hotspot_timer = {
    'deadline': None,
    'timeout': HOTSPOT_TIMEOUT,
    'thread': None,
    'stop_event': None,
    'lock': threading.Lock()
}

def _hotspot_timer_loop(stop_event, on_expire):
    while not stop_event.wait(1):
        with hotspot_timer['lock']:
            deadline = hotspot_timer['deadline']
            if deadline is None or time.monotonic() < deadline:
                continue
            hotspot_timer['deadline'] = None
        logger.info("[Hotspot] No API activity, stopping hotspot")
        result = on_expire()
        if not result['success']:
            logger.error(f"[Hotspot] Failed to stop hotspot: {result['message']}")
        return

def start_hotspot_timer(on_expire=stop_hotspot, timeout=HOTSPOT_TIMEOUT):
    """
    Stop the hotspot after `timeout` seconds without API activity.

    Args:
        on_expire: callable returning a result dict, run when the timer fires
        timeout: seconds of inactivity
    """
    stop_hotspot_timer()
    stop_event = threading.Event()
    with hotspot_timer['lock']:
        hotspot_timer['deadline'] = time.monotonic() + timeout
        hotspot_timer['timeout'] = timeout
        hotspot_timer['stop_event'] = stop_event
        thread = threading.Thread(
            target=_hotspot_timer_loop,
            args=(stop_event, on_expire),
            daemon=True,
            name='hotspot-timer'
        )
        hotspot_timer['thread'] = thread
    thread.start()
    logger.info(f"[Hotspot] Auto-stop timer started ({timeout}s)")

def reset_hotspot_timer():
    """Push the auto-stop deadline back; no-op when the timer is not running."""
    with hotspot_timer['lock']:
        if hotspot_timer['deadline'] is not None:
            hotspot_timer['deadline'] = time.monotonic() + hotspot_timer['timeout']

def stop_hotspot_timer():
    """Cancel the auto-stop timer."""
    with hotspot_timer['lock']:
        hotspot_timer['deadline'] = None
        stop_event = hotspot_timer['stop_event']
        hotspot_timer['stop_event'] = None
        hotspot_timer['thread'] = None
    if stop_event is not None:
        stop_event.set()

def hotspot_timer_active():
    with hotspot_timer['lock']:
        return hotspot_timer['deadline'] is not None

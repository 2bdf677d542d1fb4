# -*- coding: utf-8 -*-
"""
Network State Service - Client Wi-Fi / hotspot mode switching
Version: 1.0.0

Operations:
  enter_hotspot_mode()  - bring up the bushnet access point
  exit_hotspot_mode()   - tear the access point down, dhcpcd back to client mode
  reconfigure_wifi()    - make wpa_supplicant reload its network list

setup_hotspot() and setup_wifi_with_rollback() wrap these with state
tracking; they are what the D-Bus service and the HTTP API dispatch.
"""

import time
import logging
import threading

from .platform_service import run_command
from .hotspot_service import (
    initialise_hotspot, stop_hotspot, start_hotspot_timer, stop_hotspot_timer
)
from config import WIFI_INTERFACE, WIFI_CHECK_ATTEMPTS, WIFI_CHECK_INTERVAL

logger = logging.getLogger(__name__)

# ============================================================================
# STATE
# ============================================================================

STATE_UNKNOWN = 'unknown'
STATE_WIFI = 'wifi'
STATE_HOTSPOT = 'hotspot'
STATE_SETTING_UP_WIFI = 'setting-up-wifi'
STATE_SETTING_UP_HOTSPOT = 'setting-up-hotspot'

network_state = {
    'state': STATE_UNKNOWN,
    'listeners': [],
    'lock': threading.Lock()
}

def get_network_state():
    """Return the current network state string."""
    with network_state['lock']:
        return network_state['state']

def set_network_state(state):
    """Record a new state and notify listeners (e.g. the D-Bus signal)."""
    with network_state['lock']:
        if network_state['state'] == state:
            return
        network_state['state'] = state
        listeners = list(network_state['listeners'])
    logger.info(f"[Network] State changed to {state}")
    for listener in listeners:
        try:
            listener(state)
        except Exception as e:
            logger.error(f"[Network] State listener failed: {e}")

def add_state_listener(listener):
    """Register a callable invoked with the new state on every change."""
    with network_state['lock']:
        network_state['listeners'].append(listener)

def remove_state_listener(listener):
    with network_state['lock']:
        if listener in network_state['listeners']:
            network_state['listeners'].remove(listener)

# ============================================================================
# MODE OPERATIONS
# ============================================================================

def enter_hotspot_mode():
    """
    Start the hotspot; on failure, undo whatever part of it came up.

    Returns:
        dict: {success: bool, message: str}
    """
    result = initialise_hotspot()
    if result['success']:
        start_hotspot_timer(on_expire=_hotspot_timer_expired)
        return result

    logger.warning(f"[Network] Failed to initialise hotspot: {result['message']}")
    stop_result = stop_hotspot()
    if not stop_result['success']:
        logger.error(f"[Network] Failed to stop hotspot: {stop_result['message']}")
    return result

def exit_hotspot_mode():
    """
    Stop the hotspot and return wlan0 to client mode.

    Returns:
        dict: {success: bool, message: str}
    """
    stop_hotspot_timer()
    return stop_hotspot()

def reconfigure_wifi():
    """
    Ask wpa_supplicant to reload wpa_supplicant.conf.

    Returns:
        dict: {success: bool, message: str}
    """
    result = run_command(f"wpa_cli -i {WIFI_INTERFACE} reconfigure", timeout=15)
    if not result['success']:
        return {'success': False, 'message': f"wpa_cli reconfigure: {result['stderr'] or result['stdout']}"}
    return {'success': True, 'message': 'Wi-Fi reconfigured'}

def get_current_ssid():
    """SSID wlan0 is associated with, or '' if none."""
    result = run_command(f"iwgetid {WIFI_INTERFACE} -r", timeout=5)
    if not result['success']:
        return ''
    return result['stdout'].strip()

def check_wifi_connection(attempts=WIFI_CHECK_ATTEMPTS, interval=WIFI_CHECK_INTERVAL):
    """
    Check a fixed number of times for an upstream Wi-Fi connection.

    Returns:
        str: connected SSID, or '' if none was seen
    """
    for attempt in range(attempts):
        ssid = get_current_ssid()
        if ssid:
            return ssid
        if attempt < attempts - 1:
            time.sleep(interval)
    return ''

# ============================================================================
# STATE TRANSITIONS
# ============================================================================

def setup_hotspot():
    """
    Switch to hotspot mode.

    Returns:
        dict: {success: bool, message: str}
    """
    set_network_state(STATE_SETTING_UP_HOTSPOT)
    result = enter_hotspot_mode()
    if result['success']:
        set_network_state(STATE_HOTSPOT)
    else:
        set_network_state(STATE_WIFI)
    return result

def setup_wifi_with_rollback():
    """
    Switch to client Wi-Fi, falling back to the hotspot if no network
    is joined.

    Returns:
        dict: {success: bool, message: str}
    """
    set_network_state(STATE_SETTING_UP_WIFI)

    result = exit_hotspot_mode()
    if result['success']:
        result = reconfigure_wifi()

    if result['success']:
        ssid = check_wifi_connection()
        if ssid:
            logger.info(f"[Network] Connected to Wi-Fi network '{ssid}'")
            set_network_state(STATE_WIFI)
            return {'success': True, 'message': f'Connected to {ssid}'}
        result = {'success': False, 'message': 'failed to connect to a Wi-Fi network'}

    logger.warning(f"[Network] {result['message']}, rolling back to hotspot")
    rollback = setup_hotspot()
    if not rollback['success']:
        logger.error(f"[Network] Rollback to hotspot failed: {rollback['message']}")
    return result

def _hotspot_timer_expired():
    result = stop_hotspot()
    if result['success']:
        set_network_state(STATE_WIFI)
    return result

# ============================================================================
# BACKGROUND DISPATCH
# ============================================================================

def run_in_background(func, name):
    """
    Run a transition in a daemon thread, logging its failure.

    Returns:
        threading.Thread
    """
    def _run():
        result = func()
        if not result['success']:
            logger.error(f"[Network] {name} failed: {result['message']}")

    thread = threading.Thread(target=_run, daemon=True, name=name)
    thread.start()
    return thread

# -*- coding: utf-8 -*-
"""
System Service - Device info, service status, logs, battery and reboot
Version: 1.0.0
"""

import time
import logging
import threading

from .platform_service import run_command, systemctl, read_salt_id, get_device_type
from .config_service import get_section
from config import (
    APP_VERSION, API_VERSION, JOURNALCTL_PATH, BATTERY_READINGS_FILE,
    REBOOT_DELAY
)

logger = logging.getLogger(__name__)

# ============================================================================
# DEVICE INFORMATION
# ============================================================================

def get_version_info():
    return {'apiVersion': API_VERSION, 'appVersion': APP_VERSION}

def get_device_info():
    """
    Device identity from the device config section and salt.

    Returns:
        dict: {success: bool, info: dict, message: str}
    """
    device = get_section('device')
    if not device['success']:
        logger.error(f"[System] /device-info failed: {device['message']}")
        return {'success': False, 'info': {}, 'message': 'failed to read device config'}

    values = device['values']
    info = {
        'serverURL': values.get('server', ''),
        'groupname': values.get('group', ''),
        'devicename': values.get('name', ''),
        'deviceID': values.get('id', 0),
        'saltID': read_salt_id(),
        'type': get_device_type()
    }
    return {'success': True, 'info': info, 'message': ''}

def get_installed_packages():
    """
    Installed Debian packages and their versions.

    Returns:
        dict: {success: bool, packages: dict, message: str}
    """
    result = run_command("dpkg-query -W -f '${Package}\\t${Version}\\n'", timeout=30)
    if not result['success']:
        return {'success': False, 'packages': {}, 'message': result['stderr']}

    packages = {}
    for line in result['stdout'].splitlines():
        parts = line.split('\t')
        if len(parts) == 2:
            packages[parts[0]] = parts[1]
    return {'success': True, 'packages': packages, 'message': ''}

# ============================================================================
# SYSTEMD SERVICES
# ============================================================================

def get_service_logs(service_name, lines=50):
    """
    Last journal lines of a systemd unit.

    Returns:
        dict: {success: bool, logs: list, message: str}
    """
    result = run_command(
        f"{JOURNALCTL_PATH} -u {service_name} --no-pager -n {int(lines)}",
        timeout=15
    )
    if not result['success']:
        return {'success': False, 'logs': [], 'message': result['stderr']}
    logs = result['stdout'].split('\n') if result['stdout'] else []
    return {'success': True, 'logs': logs, 'message': ''}

def parse_etimes_output(output):
    """Parse `ps -o etimes` output ("ELAPSED\\n  1234") into seconds."""
    text = output.strip()
    if text.startswith('ELAPSED'):
        text = text[len('ELAPSED'):].strip()
    return int(text)

def get_service_status(service_name):
    """
    Enabled/active state and uptime of a systemd unit.

    Returns:
        dict: {success: bool, status: {Enabled, Active, Duration}, message: str}
    """
    status = {'Enabled': False, 'Active': False, 'Duration': 0}

    enabled = systemctl('is-enabled', service_name, timeout=10)
    status['Enabled'] = enabled['stdout'] == 'enabled'
    active = systemctl('is-active', service_name, timeout=10)
    status['Active'] = active['stdout'] == 'active'
    if not status['Active']:
        return {'success': True, 'status': status, 'message': ''}

    pidof = run_command(f"pidof {service_name}", timeout=5)
    if not pidof['success']:
        return {'success': False, 'status': status, 'message': f'no process found for {service_name}'}
    pid = pidof['stdout'].strip()
    if not pid.isdigit():
        return {'success': False, 'status': status, 'message': f"unexpected pidof output '{pid}'"}

    etimes = run_command(f"ps -p {pid} -o etimes", timeout=5)
    if not etimes['success']:
        return {'success': False, 'status': status, 'message': etimes['stderr']}
    try:
        status['Duration'] = parse_etimes_output(etimes['stdout'])
    except ValueError:
        return {'success': False, 'status': status, 'message': f"unexpected ps output '{etimes['stdout']}'"}
    return {'success': True, 'status': status, 'message': ''}

def restart_service(service_name):
    """
    Restart a systemd service.

    Returns:
        dict: {success: bool, message: str}
    """
    result = systemctl('restart', service_name)
    if not result['success']:
        logger.error(f"[System] Failed to restart {service_name}: {result['stderr']}")
        return {'success': False, 'message': result['stderr']}
    logger.info(f"[System] Restarted {service_name}")
    return {'success': True, 'message': f'Service {service_name} restarted'}

# ============================================================================
# BATTERY / DISK / MEMORY
# ============================================================================

def get_last_battery_reading(path=None):
    """
    Last row of the battery readings CSV.

    Returns:
        dict: {success: bool, reading: {time, mainBattery, rtcBattery}, message: str}
    """
    path = path or BATTERY_READINGS_FILE
    last_line = ''
    try:
        with open(path, 'r') as f:
            for line in f:
                last_line = line.rstrip('\n')
    except OSError as e:
        return {'success': False, 'reading': {}, 'message': str(e)}

    parts = last_line.split(',')
    if len(parts) != 3:
        return {'success': False, 'reading': {}, 'message': 'unexpected format in battery-readings.csv'}
    return {
        'success': True,
        'reading': {'time': parts[0], 'mainBattery': parts[1], 'rtcBattery': parts[2]},
        'message': ''
    }

def get_disk_memory():
    """
    Returns:
        dict: {success: bool, disk: str, memory: str, message: str}
    """
    disk = run_command("df -h", timeout=10)
    memory = run_command("free -h", timeout=10)
    if not disk['success'] or not memory['success']:
        return {
            'success': False,
            'disk': '',
            'memory': '',
            'message': disk['stderr'] or memory['stderr']
        }
    return {'success': True, 'disk': disk['stdout'], 'memory': memory['stdout'], 'message': ''}

# ============================================================================
# REBOOT
# ============================================================================

def reboot_system(delay=REBOOT_DELAY):
    """
    Reboot after a delay, leaving time for the HTTP response.

    Returns:
        dict: {success: bool, message: str}
    """
    def _reboot():
        logger.info(f"[System] Device rebooting in {delay} seconds")
        time.sleep(delay)
        logger.info("[System] Rebooting")
        result = run_command("/sbin/reboot", timeout=30)
        if not result['success']:
            logger.error(f"[System] Reboot failed: {result['stderr']}")

    thread = threading.Thread(target=_reboot, daemon=True, name='reboot')
    thread.start()
    return {'success': True, 'message': f'Rebooting in {delay} seconds'}

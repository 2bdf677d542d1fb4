# -*- coding: utf-8 -*-
"""
Clock Service - System clock, RTC, timezone and NTP state
Version: 1.0.0

TC2 cameras expose their RTC through rtc-utils on D-Bus; older devices
use hwclock directly.
"""

import re
import shlex
import logging
from datetime import datetime, timezone

from .platform_service import run_command, is_tc2_device
from .agent_service import get_rtc_time, set_rtc_time

logger = logging.getLogger(__name__)

DATE_CMD_FORMAT = '+%Y-%m-%dT%H:%M:%S%:z'
HWCLOCK_FORMAT = '%Y-%m-%d %H:%M:%S.%f%z'
RFC3339_PATTERN = re.compile(
    r'^(\d{4}-\d{2}-\d{2})[Tt](\d{2}:\d{2}:\d{2})(\.\d+)?([Zz]|[+-]\d{2}:\d{2})$'
)

# ============================================================================
# RFC3339 HELPERS
# ============================================================================

def parse_rfc3339(value):
    """
    Parse an RFC3339 timestamp.

    Returns:
        datetime: timezone-aware datetime, or None if the value is invalid
    """
    if not value:
        return None
    match = RFC3339_PATTERN.match(value.strip())
    if match is None:
        return None
    date_part, time_part, fraction, offset = match.groups()
    micros = (fraction or '')[1:7].ljust(6, '0')
    if offset in ('Z', 'z'):
        offset = '+00:00'
    try:
        return datetime.fromisoformat(f'{date_part}T{time_part}.{micros}{offset}')
    except ValueError:
        return None

def format_rfc3339(dt):
    """Format a datetime as RFC3339 with second precision ('Z' for UTC)."""
    text = dt.isoformat(timespec='seconds')
    if text.endswith('+00:00'):
        text = text[:-6] + 'Z'
    return text

# ============================================================================
# READING
# ============================================================================

def get_system_time():
    result = run_command(f"date {DATE_CMD_FORMAT}", timeout=5)
    if not result['success']:
        return None
    return parse_rfc3339(result['stdout'])

def get_timezone():
    """Configured timezone name, or '' if timedatectl fails."""
    result = run_command("timedatectl show -p Timezone --value", timeout=5)
    if not result['success']:
        logger.warning(f"[Clock] Error getting timezone: {result['stderr']}")
        return ''
    return result['stdout'].strip()

def is_ntp_synced():
    """
    Returns:
        tuple: (synced: bool, error: str or None)
    """
    result = run_command("timedatectl status", timeout=5)
    if not result['success']:
        return False, result['stderr'] or 'timedatectl status failed'
    return 'synchronized: yes' in result['stdout'], None

def parse_hwclock_output(output):
    """Parse `hwclock -r` output (e.g. 2024-03-01 10:15:42.123456+13:00)."""
    try:
        return datetime.strptime(output.strip(), HWCLOCK_FORMAT)
    except ValueError:
        return None

def read_rtc():
    """
    Read the hardware clock.

    Returns:
        dict: {success: bool, time: datetime, integrity: bool,
               low_battery: bool, message: str}
    """
    if is_tc2_device():
        rtc = get_rtc_time()
        if not rtc['success']:
            return {'success': False, 'message': rtc['message']}
        rtc_time = parse_rfc3339(rtc['time'])
        if rtc_time is None:
            return {'success': False, 'message': 'Failed to get rtc status'}
        return {
            'success': True,
            'time': rtc_time,
            'integrity': rtc['integrity'],
            'low_battery': False,
            'message': ''
        }

    result = run_command("hwclock -r", timeout=10)
    if not result['success']:
        logger.error(f"[Clock] hwclock -r failed: {result['stderr']}")
        return {'success': False, 'message': 'Failed to read hardware clock'}
    rtc_time = parse_hwclock_output(result['stdout'])
    if rtc_time is None:
        logger.error(f"[Clock] Could not parse hwclock output: {result['stdout']}")
        return {'success': False, 'message': 'Failed to parse hardware clock time'}
    return {
        'success': True,
        'time': rtc_time,
        'integrity': True,
        'low_battery': False,
        'message': ''
    }

def get_clock_info():
    """
    Collect clock state for GET /api/clock.

    Returns:
        dict: {success: bool, clock: dict, message: str}
    """
    rtc = read_rtc()
    if not rtc['success']:
        return {'success': False, 'clock': {}, 'message': rtc['message']}

    system_time = get_system_time()
    if system_time is None:
        return {'success': False, 'clock': {}, 'message': 'Failed to read system time'}

    ntp_synced, error = is_ntp_synced()
    if error:
        return {'success': False, 'clock': {}, 'message': error}

    clock = {
        'RTCTimeUTC': format_rfc3339(rtc['time'].astimezone(timezone.utc)),
        'RTCTimeLocal': format_rfc3339(rtc['time'].astimezone()),
        'SystemTime': format_rfc3339(system_time),
        'LowRTCBattery': rtc['low_battery'],
        'RTCIntegrity': rtc['integrity'],
        'NTPSynced': ntp_synced,
        'Timezone': get_timezone()
    }
    return {'success': True, 'clock': clock, 'message': ''}

# ============================================================================
# SETTING
# ============================================================================

def set_timezone(tz_name):
    result = run_command(f"timedatectl set-timezone {shlex.quote(tz_name)}", timeout=10)
    if not result['success']:
        logger.error(f"[Clock] Failed to set timezone {tz_name}: {result['stderr']}")
        return {'success': False, 'message': result['stderr']}
    logger.info(f"[Clock] Timezone set to {tz_name}")
    return {'success': True, 'message': f'Timezone set to {tz_name}'}

def set_clock(date_value, tz_name=''):
    """
    Set the clock from an RFC3339 string.

    Args:
        date_value: RFC3339 time
        tz_name: optional timezone, applied first; failure is only logged

    Returns:
        dict: {success: bool, message: str, client_error: bool}
    """
    if tz_name:
        set_timezone(tz_name)

    date = parse_rfc3339(date_value)
    if date is None:
        return {'success': False, 'message': f"invalid RFC3339 date '{date_value}'", 'client_error': True}
    date_text = format_rfc3339(date)

    if is_tc2_device():
        result = set_rtc_time(date_text)
        return {'success': result['success'], 'message': result['message'], 'client_error': False}

    result = run_command(f"date --utc --set={shlex.quote(date_text)}", timeout=10)
    if not result['success']:
        logger.error(f"[Clock] Failed to set system time: {result['stderr']}")
        return {'success': False, 'message': result['stderr'], 'client_error': False}

    result = run_command("hwclock --systohc", timeout=10)
    if not result['success']:
        logger.error(f"[Clock] Failed to write hardware clock: {result['stderr']}")
        return {'success': False, 'message': result['stderr'], 'client_error': False}

    logger.info(f"[Clock] Time set to {date_text}")
    return {'success': True, 'message': 'Time set', 'client_error': False}

# -*- coding: utf-8 -*-
"""
Agent Service - Calls to sibling daemons over the D-Bus system bus
Version: 1.0.0

  org.cacophony.TC2Agent        - audio/thermal test recordings, offload status
  org.cacophony.RTC             - hardware clock on TC2 devices
  org.cacophony.modemd          - USB modem power and status
  org.cacophony.thermalrecorder - camera snapshots
"""

import logging

from .dbus_service import call_method
from config import (
    TC2_AGENT_DBUS_NAME, TC2_AGENT_DBUS_PATH,
    RTC_DBUS_NAME, RTC_DBUS_PATH,
    MODEMD_DBUS_NAME, MODEMD_DBUS_PATH,
    THERMAL_RECORDER_DBUS_NAME, THERMAL_RECORDER_DBUS_PATH
)

logger = logging.getLogger(__name__)

OFFLOAD_STATUS_FIELDS = (
    'offload-in-progress',
    'percent-complete',
    'seconds-remaining',
    'files-total',
    'files-remaining',
    'events-total',
    'events-remaining',
)

# ============================================================================
# TC2 AGENT
# ============================================================================

def call_tc2_agent(member, signature='', body=None):
    """Call org.cacophony.TC2Agent.<member>."""
    return call_method(TC2_AGENT_DBUS_NAME, TC2_AGENT_DBUS_PATH, member, signature, body)

def _single_value(result, description):
    if not result['success']:
        return {'success': False, 'value': None, 'message': f"Failed to {description}"}
    if not result['body']:
        return {'success': False, 'value': None, 'message': f"Empty reply when trying to {description}"}
    return {'success': True, 'value': result['body'][0], 'message': ''}

def get_audio_status():
    """Audio recording status code from the agent."""
    return _single_value(call_tc2_agent('audiostatus'), 'request audio recording status')

def take_test_audio_recording():
    return _single_value(call_tc2_agent('testaudio'), 'request test audio recording')

def get_offload_status():
    """
    Recording offload progress.

    Returns:
        dict: {success: bool, status: dict, message: str}; status carries
        percent-complete and seconds-remaining only while an offload runs
    """
    result = call_tc2_agent('offloadstatus')
    if not result['success'] or len(result['body']) < len(OFFLOAD_STATUS_FIELDS):
        return {'success': False, 'status': {}, 'message': 'Failed to request recording offload status'}

    values = dict(zip(OFFLOAD_STATUS_FIELDS, result['body']))
    in_progress = values['offload-in-progress'] == 1
    status = {'offload-in-progress': in_progress}
    if in_progress:
        status['percent-complete'] = values['percent-complete']
        status['seconds-remaining'] = values['seconds-remaining']
    for key in ('files-total', 'files-remaining', 'events-total', 'events-remaining'):
        status[key] = values[key]
    return {'success': True, 'status': status, 'message': ''}

def cancel_offload():
    return _single_value(call_tc2_agent('canceloffload'), 'cancel offload')

def get_thermal_status():
    """
    Test thermal recording status.

    Returns:
        dict: {success: bool, status: {'mode': int, 'status': int}, message: str}
    """
    result = call_tc2_agent('testthermalstatus')
    if not result['success'] or len(result['body']) < 2:
        return {'success': False, 'status': {}, 'message': 'Failed to get test thermal recording status'}
    mode, status = result['body'][0], result['body'][1]
    return {'success': True, 'status': {'mode': mode, 'status': status}, 'message': ''}

def take_long_test_thermal_recording(seconds):
    return _single_value(
        call_tc2_agent('longtestthermalrecording', 't', [int(seconds)]),
        f'request {seconds} second test thermal recording'
    )

def take_short_test_thermal_recording():
    return _single_value(call_tc2_agent('shorttestthermalrecording'), 'request short test thermal recording')

def prioritise_frame_serve():
    return _single_value(call_tc2_agent('prioritiseframeserve'), 'prioritise frame serving')

# ============================================================================
# THERMAL RECORDER
# ============================================================================

def _call_thermal_recorder(member, description):
    result = call_method(THERMAL_RECORDER_DBUS_NAME, THERMAL_RECORDER_DBUS_PATH, member)
    if not result['success']:
        logger.error(f"[Camera] {member} failed: {result['message']}")
        return {'success': False, 'message': f'failed to {description}'}
    logger.info(f"[Camera] Requested {description}")
    return {'success': True, 'message': ''}

def take_snapshot():
    """Ask thermal-recorder to save a still of the current frame."""
    return _call_thermal_recorder('TakeSnapshot', 'take snapshot')

def take_snapshot_recording():
    return _call_thermal_recorder('TakeTestRecording', 'take test recording')

# ============================================================================
# RTC
# ============================================================================

def get_rtc_time():
    """
    Read the RTC through rtc-utils' D-Bus service.

    Returns:
        dict: {success: bool, time: str (RFC3339), integrity: bool, message: str}
    """
    result = call_method(RTC_DBUS_NAME, RTC_DBUS_PATH, 'GetTime')
    if not result['success'] or len(result['body']) < 2:
        return {'success': False, 'time': None, 'integrity': False, 'message': 'Failed to get rtc status'}
    return {
        'success': True,
        'time': result['body'][0],
        'integrity': bool(result['body'][1]),
        'message': ''
    }

def set_rtc_time(rfc3339_time):
    result = call_method(RTC_DBUS_NAME, RTC_DBUS_PATH, 'SetTime', 's', [rfc3339_time])
    if not result['success']:
        return {'success': False, 'message': 'Failed to set rtc time'}
    return {'success': True, 'message': 'RTC time set'}

# ============================================================================
# MODEM
# ============================================================================

def get_modem_status():
    """
    Modem status map from modemd.

    Returns:
        dict: {success: bool, status: dict, message: str}
    """
    result = call_method(MODEMD_DBUS_NAME, MODEMD_DBUS_PATH, 'GetStatus')
    if not result['success'] or not result['body']:
        return {'success': False, 'status': {}, 'message': 'Failed to get modem status'}
    return {'success': True, 'status': result['body'][0], 'message': ''}

def modem_stay_on_for(minutes):
    result = call_method(MODEMD_DBUS_NAME, MODEMD_DBUS_PATH, 'StayOnFor', 'i', [int(minutes)])
    if not result['success']:
        return {'success': False, 'message': 'Failed to request modem to stay on'}
    logger.info(f"[Modem] Requested modem to stay on for {minutes} minutes")
    return {'success': True, 'message': f'Modem will stay on for {minutes} minutes'}

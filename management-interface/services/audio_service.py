# -*- coding: utf-8 -*-
"""
Audio Service - Speaker test playback and audio recording setting
Version: 1.0.0
"""

import os
import shlex
import logging

from .platform_service import run_command, check_command_exists
from .config_service import get_section, update_section
from config import TEST_AUDIO_FILE

logger = logging.getLogger(__name__)

TRUE_VALUES = ('1', 't', 'true')
FALSE_VALUES = ('0', 'f', 'false')

def parse_bool(raw):
    """
    Parse a form boolean.

    Returns:
        tuple: (value, error)
    """
    text = (raw or '').strip().lower()
    if text in TRUE_VALUES:
        return True, None
    if text in FALSE_VALUES:
        return False, None
    return None, f"invalid boolean '{raw}'"

# ============================================================================
# SPEAKER TEST
# ============================================================================

def set_volume(volume):
    """
    Set the mixer volume for the configured sound card.

    Args:
        volume: 0-10 (mapped to 0-100%)
    """
    audio = get_section('audio')
    if not audio['success']:
        return {'success': False, 'message': audio['message']}
    card = audio['values'].get('card', 0)
    control = audio['values'].get('volume-control', 'PCM')

    result = run_command(
        f"amixer -c {shlex.quote(str(card))} sset {shlex.quote(str(control))} {int(volume) * 10}%",
        timeout=10
    )
    if not result['success']:
        return {'success': False, 'message': f"volume set failed: {result['stderr'] or result['stdout']}"}
    return {'success': True, 'message': ''}

def play_test_sound(volume=None, sound_file=TEST_AUDIO_FILE):
    """
    Play the bundled test sound through the speaker.

    Returns:
        dict: {success: bool, output: str, message: str}
    """
    if volume is not None:
        result = set_volume(volume)
        if not result['success']:
            logger.error(f"[Audio] {result['message']}")
            return {'success': False, 'output': '', 'message': f"unable to set the volume: {result['message']}"}

    if not os.path.isfile(sound_file):
        return {'success': False, 'output': '', 'message': 'unable to load test audio'}
    if not check_command_exists('play'):
        return {'success': False, 'output': '', 'message': 'sox play command not installed'}

    result = run_command(f"play -t wav --norm=-3 -q {shlex.quote(sound_file)}", timeout=30)
    output = '\n'.join(filter(None, [result['stdout'], result['stderr']]))
    if not result['success']:
        logger.error(f"[Audio] Audio output failed: {output}")
        return {'success': False, 'output': output, 'message': 'audio output failed'}
    return {'success': True, 'output': output, 'message': ''}

# ============================================================================
# AUDIO RECORDING SETTING
# ============================================================================

def get_audio_recording():
    """
    Returns:
        dict: {success: bool, enabled: bool, message: str}
    """
    section = get_section('audio-recording')
    if not section['success']:
        return {'success': False, 'enabled': False, 'message': section['message']}
    return {'success': True, 'enabled': bool(section['values'].get('enabled', False)), 'message': ''}

def set_audio_recording(raw_enabled):
    """
    Returns:
        dict: {success: bool, message: str, client_error: bool}
    """
    enabled, error = parse_bool(raw_enabled)
    if error:
        return {'success': False, 'message': error, 'client_error': True}
    logger.info(f"[Audio] Setting audio recording enabled={enabled}")
    return update_section('audio-recording', {'enabled': enabled})

# -*- coding: utf-8 -*-
"""
Audio Blueprint - Audio recording setting, speaker test and TC2 audio tests
Version: 1.0.0
"""

from flask import Blueprint, request, jsonify

from services.audio_service import (
    get_audio_recording, set_audio_recording, play_test_sound
)
from services.agent_service import get_audio_status, take_test_audio_recording

audio_bp = Blueprint('audio', __name__, url_prefix='/api')

MAX_VOLUME = 10

# ============================================================================
# AUDIO RECORDING SETTING
# ============================================================================

@audio_bp.route('/audiorecording', methods=['GET'])
def audio_recording():
    result = get_audio_recording()
    if not result['success']:
        return jsonify({'success': False, 'error': result['message']}), 500
    return jsonify({'enabled': result['enabled']})

@audio_bp.route('/audiorecording', methods=['POST'])
def post_audio_recording():
    """Enable or disable audio recording (form field 'enabled')."""
    result = set_audio_recording(request.form.get('enabled'))
    if not result['success']:
        code = 400 if result['client_error'] else 500
        return jsonify({'success': False, 'error': result['message']}), code
    return jsonify({'success': True, 'message': result['message']})

# ============================================================================
# SPEAKER TEST
# ============================================================================

@audio_bp.route('/play-test-sound', methods=['POST'])
def post_play_test_sound():
    """Play the test sound; optional form field 'volume' (0-10)."""
    volume = None
    raw_volume = request.form.get('volume', '').strip()
    if raw_volume:
        try:
            volume = int(raw_volume)
        except ValueError:
            return jsonify({'success': False, 'error': f"invalid volume '{raw_volume}'"}), 400
        if volume < 0 or volume > MAX_VOLUME:
            return jsonify({'success': False, 'error': f'volume must be between 0 and {MAX_VOLUME}'}), 400

    result = play_test_sound(volume)
    if not result['success']:
        return jsonify({'success': False, 'error': result['message'], 'result': result['output']}), 500
    return jsonify({'success': True, 'result': result['output']})

# ============================================================================
# TC2 AUDIO TESTS
# ============================================================================

@audio_bp.route('/audio/audio-status', methods=['GET'])
def audio_status():
    result = get_audio_status()
    if not result['success']:
        return jsonify({'success': False, 'error': result['message']}), 500
    return jsonify(result['value'])

@audio_bp.route('/audio/test-recording', methods=['PUT'])
def test_recording():
    """Ask the TC2 agent for a test audio recording."""
    result = take_test_audio_recording()
    if not result['success']:
        return jsonify({'success': False, 'error': result['message']}), 500
    return jsonify(result['value'])

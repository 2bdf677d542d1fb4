# -*- coding: utf-8 -*-
"""
Thermal Blueprint - Offload status, test recordings, snapshots and frame serving
Version: 1.0.0
"""

from flask import Blueprint, request, jsonify

from services.agent_service import (
    get_offload_status, cancel_offload, get_thermal_status,
    take_long_test_thermal_recording, take_short_test_thermal_recording,
    prioritise_frame_serve, take_snapshot, take_snapshot_recording
)

thermal_bp = Blueprint('thermal', __name__, url_prefix='/api')


def _value_response(result):
    if not result['success']:
        return jsonify({'success': False, 'error': result['message']}), 500
    return jsonify(result['value'])

# ============================================================================
# OFFLOAD ROUTES
# ============================================================================

@thermal_bp.route('/offload-status', methods=['GET'])
def offload_status():
    """Recording offload progress."""
    result = get_offload_status()
    if not result['success']:
        return jsonify({'success': False, 'error': result['message']}), 500
    return jsonify(result['status'])

@thermal_bp.route('/cancel-offload', methods=['PUT'])
def put_cancel_offload():
    return _value_response(cancel_offload())

# ============================================================================
# TEST RECORDING ROUTES
# ============================================================================

@thermal_bp.route('/thermal/thermal-status', methods=['GET'])
def thermal_status():
    result = get_thermal_status()
    if not result['success']:
        return jsonify({'success': False, 'error': result['message']}), 500
    return jsonify(result['status'])

@thermal_bp.route('/thermal/long-test-recording', methods=['PUT'])
def long_test_recording():
    """Test recording of ?seconds= length."""
    raw_seconds = request.args.get('seconds', '').strip()
    try:
        seconds = int(raw_seconds)
    except ValueError:
        return jsonify({'success': False, 'error': f"invalid seconds '{raw_seconds}'"}), 400
    if seconds < 0:
        return jsonify({'success': False, 'error': 'seconds must not be negative'}), 400
    return _value_response(take_long_test_thermal_recording(seconds))

@thermal_bp.route('/thermal/short-test-recording', methods=['PUT'])
def short_test_recording():
    return _value_response(take_short_test_thermal_recording())

@thermal_bp.route('/serve-frames-now', methods=['PUT'])
def serve_frames_now():
    """Ask the agent to prioritise serving frames."""
    return _value_response(prioritise_frame_serve())

# ============================================================================
# CAMERA ROUTES
# ============================================================================

def _camera_response(result):
    if not result['success']:
        return jsonify({'success': False, 'error': result['message']}), 500
    return jsonify({'success': True})

@thermal_bp.route('/camera/snapshot', methods=['PUT'])
def camera_snapshot():
    """Save a still image from the thermal camera."""
    return _camera_response(take_snapshot())

@thermal_bp.route('/camera/snapshot-recording', methods=['PUT'])
def camera_snapshot_recording():
    return _camera_response(take_snapshot_recording())

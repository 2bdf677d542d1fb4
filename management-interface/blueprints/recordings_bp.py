# -*- coding: utf-8 -*-
"""
Recordings Blueprint - CPTV recording list, download and delete routes
Version: 1.0.0
"""

import logging

from flask import Blueprint, jsonify, send_file

from services.recording_service import (
    get_cptv_names, get_recording_path, get_recording_mimetype, delete_recording
)

logger = logging.getLogger(__name__)

recordings_bp = Blueprint('recordings', __name__, url_prefix='/api')

# ============================================================================
# RECORDING ROUTES
# ============================================================================

@recordings_bp.route('/recordings', methods=['GET'])
def list_recordings():
    """Names of all recordings on the device."""
    logger.info("[Recordings] Get recordings")
    return jsonify(get_cptv_names())

@recordings_bp.route('/recording/<path:name>', methods=['GET'])
def get_recording(name):
    """Download a recording."""
    logger.info(f"[Recordings] Get recording '{name}'")
    path = get_recording_path(name)
    if not path:
        return jsonify({'success': False, 'error': 'file not found'}), 400

    return send_file(
        path,
        mimetype=get_recording_mimetype(name),
        as_attachment=True,
        download_name=name
    )

@recordings_bp.route('/recording/<path:name>', methods=['DELETE'])
def remove_recording(name):
    """Delete a recording and its metadata."""
    result = delete_recording(name)
    if not result['success']:
        return jsonify({'success': False, 'error': 'failed to delete file'}), 500
    return jsonify(result)

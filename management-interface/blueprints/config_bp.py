# -*- coding: utf-8 -*-
"""
Config Blueprint - Device config sections and location routes
Version: 1.0.0
"""

import json
import logging

from flask import Blueprint, request, jsonify

from services.config_service import get_values_and_defaults, set_section, clear_section
from services.location_service import get_location, set_location, clear_location

logger = logging.getLogger(__name__)

config_bp = Blueprint('config', __name__, url_prefix='/api')

# ============================================================================
# CONFIG ROUTES
# ============================================================================

@config_bp.route('/config', methods=['GET'])
def get_config():
    """Current values and defaults of every config section."""
    result = get_values_and_defaults()
    if not result['success']:
        return jsonify({'success': False, 'error': result['message']}), 500
    return jsonify({'values': result['values'], 'defaults': result['defaults']})

@config_bp.route('/config', methods=['POST'])
def post_config():
    """
    Replace one config section.

    Form fields:
        section: section name
        config: JSON object with the new values
    """
    section = request.form.get('section', '').strip()
    raw_config = request.form.get('config', '')
    try:
        values = json.loads(raw_config)
    except ValueError as e:
        return jsonify({'success': False, 'error': f'invalid config JSON: {e}'}), 400

    result = set_section(section, values)
    if not result['success']:
        code = 400 if result['client_error'] else 500
        return jsonify({'success': False, 'error': result['message']}), code
    return jsonify({'success': True, 'message': result['message']})

@config_bp.route('/clear-config-section', methods=['POST'])
def post_clear_config_section():
    """Delete a section so its defaults apply."""
    section = request.form.get('section', '').strip()
    if not section:
        return jsonify({'success': False, 'error': 'section field was empty'}), 400
    logger.info(f"[Config] Clearing config section {section}")
    result = clear_section(section)
    return jsonify(result), 200 if result['success'] else 500

# ============================================================================
# LOCATION ROUTES
# ============================================================================

@config_bp.route('/location', methods=['GET'])
def location():
    result = get_location()
    if not result['success']:
        return jsonify({'success': False, 'error': result['message']}), 500
    return jsonify(result['location'])

@config_bp.route('/location', methods=['POST'])
def post_location():
    """
    Update the location.

    Form fields: latitude, longitude, altitude, accuracy, timestamp (ms).
    action=clear resets it.
    """
    if request.form.get('action') == 'clear':
        result = clear_location()
    else:
        result = set_location(request.form)
    if not result['success']:
        code = 400 if result['client_error'] else 500
        return jsonify({'success': False, 'error': result['message']}), code
    return jsonify({'success': True, 'message': result['message']})

# -*- coding: utf-8 -*-
"""
Modem Blueprint - Modem status, stay-on requests and signal strength
Version: 1.0.0
"""

from flask import Blueprint, request, jsonify

from services.agent_service import get_modem_status, modem_stay_on_for
from services.modem_service import get_signal_strength

modem_bp = Blueprint('modem', __name__, url_prefix='/api')

@modem_bp.route('/modem', methods=['GET'])
def modem():
    """Status map reported by modemd."""
    result = get_modem_status()
    if not result['success']:
        return jsonify({'success': False, 'error': result['message']}), 500
    return jsonify(result['status'])

@modem_bp.route('/modem-stay-on-for', methods=['POST'])
def stay_on_for():
    raw_minutes = request.form.get('minutes', '').strip()
    try:
        minutes = int(raw_minutes)
    except ValueError:
        return jsonify({'success': False, 'error': f"invalid minutes '{raw_minutes}'"}), 400
    result = modem_stay_on_for(minutes)
    return jsonify(result), 200 if result['success'] else 500

@modem_bp.route('/signal-strength', methods=['GET'])
def signal_strength():
    """Modem signal strength, 0-5."""
    result = get_signal_strength()
    if not result['success']:
        return jsonify({'success': False, 'error': result['message']}), 500
    return jsonify(result['signal'])

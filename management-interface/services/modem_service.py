# -*- coding: utf-8 -*-
"""
Modem Service - Signal strength from the USB modem's web UI
Version: 1.0.0
"""

import logging
from xml.etree import ElementTree as ET

import requests

from config import MODEM_URL, MODEM_STATUS_URL, MODEM_TIMEOUT

logger = logging.getLogger(__name__)

def parse_signal_icon(xml_text):
    """
    Extract SignalIcon (0-5) from the modem status XML.

    Raises:
        ValueError: missing or non-integer SignalIcon
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise ValueError(f'invalid modem status XML: {e}')
    icon = root.find('SignalIcon')
    if icon is None or icon.text is None:
        raise ValueError('SignalIcon missing from modem status')
    return int(icon.text.strip())

def get_signal_strength(session=None):
    """
    Query the modem for its signal strength.

    The home page is fetched first so the session holds the cookie the
    status API requires.

    Returns:
        dict: {success: bool, signal: int, message: str}
    """
    session = session or requests.Session()
    try:
        session.get(MODEM_URL, timeout=MODEM_TIMEOUT)
        response = session.get(MODEM_STATUS_URL, timeout=MODEM_TIMEOUT)
        response.raise_for_status()
        signal = parse_signal_icon(response.text)
    except requests.exceptions.RequestException as e:
        logger.error(f"[Modem] Failed to connect to modem: {e}")
        return {'success': False, 'signal': 0, 'message': 'failed to connect to modem'}
    except ValueError as e:
        logger.error(f"[Modem] {e}")
        return {'success': False, 'signal': 0, 'message': 'failed to connect to modem'}
    finally:
        session.close()
    return {'success': True, 'signal': signal, 'message': ''}

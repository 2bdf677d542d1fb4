# -*- coding: utf-8 -*-
"""
Location Service - Device location stored in /etc/cacophony/location.yaml
Version: 1.0.0
"""

import math
import time
import logging
from datetime import datetime, timezone

import yaml

from .config_service import read_yaml_file, write_yaml_file
from config import LOCATION_FILE

logger = logging.getLogger(__name__)

MAX_LATITUDE = 90
MAX_LONGITUDE = 180
MIN_ALTITUDE = 0
MAX_ALTITUDE = 10000
MIN_ACCURACY = 0
MAX_ACCURACY = 10000

# ============================================================================
# VALIDATION
# ============================================================================

def parse_float(raw, name, minimum, maximum, required=True):
    """
    Parse a form value as a float within [minimum, maximum].

    Returns:
        tuple: (value, error) - error is None on success
    """
    raw = (raw or '').strip()
    if not raw:
        if required:
            return None, f'{name} is required'
        return 0.0, None
    try:
        value = float(raw)
    except ValueError:
        return None, f'invalid {name}'
    if math.isnan(value) or value < minimum or value > maximum:
        return None, f'{name} must be between {minimum} and {maximum}'
    return value, None

def parse_timestamp_millis(raw):
    """
    Parse a millisecond epoch. An empty value means now.

    Returns:
        tuple: (datetime in UTC, error)
    """
    raw = (raw or '').strip()
    if not raw:
        return datetime.now(timezone.utc).replace(microsecond=0), None
    try:
        millis = int(raw)
        return datetime.fromtimestamp(millis // 1000, tz=timezone.utc), None
    except (ValueError, OverflowError, OSError):
        return None, 'invalid timestamp'

def validate_location(form):
    """
    Validate location form fields.

    Args:
        form: mapping with latitude, longitude, altitude, accuracy, timestamp

    Returns:
        tuple: (location dict, error) - error is None on success
    """
    latitude, error = parse_float(form.get('latitude'), 'latitude', -MAX_LATITUDE, MAX_LATITUDE)
    if error:
        return None, error
    longitude, error = parse_float(form.get('longitude'), 'longitude', -MAX_LONGITUDE, MAX_LONGITUDE)
    if error:
        return None, error
    altitude, error = parse_float(form.get('altitude'), 'altitude', MIN_ALTITUDE, MAX_ALTITUDE, required=False)
    if error:
        return None, error
    accuracy, error = parse_float(form.get('accuracy'), 'accuracy', MIN_ACCURACY, MAX_ACCURACY, required=False)
    if error:
        return None, error
    timestamp, error = parse_timestamp_millis(form.get('timestamp'))
    if error:
        return None, error

    return {
        'latitude': latitude,
        'longitude': longitude,
        'altitude': altitude,
        'accuracy': accuracy,
        'timestamp': timestamp
    }, None

# ============================================================================
# STORAGE
# ============================================================================

def _format_timestamp(value):
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')
    if value:
        return str(value)
    return datetime.fromtimestamp(0, tz=timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')

def get_location():
    """
    Read the stored location. A missing file reads as all zeros.

    Returns:
        dict: {success: bool, location: dict, message: str}
    """
    try:
        data = read_yaml_file(LOCATION_FILE)
    except (yaml.YAMLError, ValueError, OSError) as e:
        logger.error(f"[Location] Failed to read {LOCATION_FILE}: {e}")
        return {'success': False, 'location': {}, 'message': str(e)}

    location = {
        'latitude': float(data.get('latitude', 0) or 0),
        'longitude': float(data.get('longitude', 0) or 0),
        'altitude': float(data.get('altitude', 0) or 0),
        'accuracy': float(data.get('accuracy', 0) or 0),
        'timestamp': _format_timestamp(data.get('timestamp'))
    }
    return {'success': True, 'location': location, 'message': ''}

def set_location(form):
    """
    Validate and store a location.

    Returns:
        dict: {success: bool, message: str, client_error: bool}
    """
    location, error = validate_location(form)
    if error:
        return {'success': False, 'message': error, 'client_error': True}

    try:
        write_yaml_file(LOCATION_FILE, location)
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"[Location] Could not write location file: {e}")
        return {'success': False, 'message': 'could not write location file', 'client_error': False}

    logger.info(f"[Location] Updated to {location['latitude']}, {location['longitude']}")
    return {'success': True, 'message': 'Location updated', 'client_error': False}

def clear_location():
    """Reset the stored location to zeros."""
    return set_location({'latitude': '0', 'longitude': '0', 'timestamp': str(int(time.time() * 1000))})

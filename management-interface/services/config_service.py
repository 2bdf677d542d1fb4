# -*- coding: utf-8 -*-
"""
Config Service - Daemon and device configuration (YAML files)
Version: 1.0.0
"""

import os
import copy
import logging

import yaml

from config import (
    DAEMON_CONFIG_FILE, DEVICE_CONFIG_FILE, DEVICE_CONFIG_DEFAULTS,
    DEFAULT_PORT, DEFAULT_CPTV_DIR
)

logger = logging.getLogger(__name__)

# ============================================================================
# YAML FILE HELPERS
# ============================================================================

def read_yaml_file(path):
    """
    Read a YAML mapping from disk.

    A missing or empty file reads as an empty dict.

    Raises:
        yaml.YAMLError: file is not valid YAML
        ValueError: file does not contain a mapping
    """
    if not os.path.exists(path):
        return {}
    with open(path, 'r') as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f'{path} does not contain a mapping')
    return data

def write_yaml_file(path, data):
    """
    Write a mapping to disk atomically (temp file + rename).

    Args:
        path: destination path
        data: dict to serialise
    """
    config_dir = os.path.dirname(path)
    if config_dir and not os.path.exists(config_dir):
        os.makedirs(config_dir, mode=0o755)

    temp_file = f"{path}.tmp"
    with open(temp_file, 'w') as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
    os.replace(temp_file, path)

# ============================================================================
# DAEMON CONFIG
# ============================================================================

daemon_config = {'path': DAEMON_CONFIG_FILE}

def set_daemon_config_path(path):
    """Use a different daemon config file (--config)."""
    daemon_config['path'] = path

def load_daemon_config(path=None):
    """
    Load managementd's own config (listen port and recordings directory).

    Returns:
        dict: {'port': int, 'cptv-dir': str}
    """
    path = path or daemon_config['path']
    config = {'port': DEFAULT_PORT, 'cptv-dir': DEFAULT_CPTV_DIR}
    try:
        config.update(read_yaml_file(path))
    except (yaml.YAMLError, ValueError, OSError) as e:
        logger.error(f"[Config] Failed to read {path}: {e}")
    return config

def get_cptv_dir():
    """Directory holding CPTV recordings."""
    return load_daemon_config()['cptv-dir']

# ============================================================================
# DEVICE CONFIG SECTIONS
# ============================================================================

def load_device_config():
    """
    Load the raw device config (only values explicitly set on this device).

    Returns:
        dict: {success: bool, config: dict, message: str}
    """
    try:
        data = read_yaml_file(DEVICE_CONFIG_FILE)
    except (yaml.YAMLError, ValueError, OSError) as e:
        logger.error(f"[Config] Failed to read device config: {e}")
        return {'success': False, 'config': {}, 'message': str(e)}
    return {'success': True, 'config': data, 'message': ''}

def get_section(section):
    """
    Get a config section merged over its defaults.

    Args:
        section: section name, e.g. 'device'

    Returns:
        dict: {success: bool, values: dict, message: str}
    """
    loaded = load_device_config()
    if not loaded['success']:
        return {'success': False, 'values': {}, 'message': loaded['message']}

    values = copy.deepcopy(DEVICE_CONFIG_DEFAULTS.get(section, {}))
    stored = loaded['config'].get(section) or {}
    if isinstance(stored, dict):
        values.update(stored)
    return {'success': True, 'values': values, 'message': ''}

def get_values_and_defaults():
    """
    Current values of every known section alongside the defaults.

    Returns:
        dict: {success: bool, values: dict, defaults: dict, message: str}
    """
    values = {}
    for section in DEVICE_CONFIG_DEFAULTS:
        result = get_section(section)
        if not result['success']:
            return {
                'success': False,
                'values': {},
                'defaults': {},
                'message': result['message']
            }
        values[section] = result['values']
    return {
        'success': True,
        'values': values,
        'defaults': copy.deepcopy(DEVICE_CONFIG_DEFAULTS),
        'message': ''
    }

def set_section(section, values):
    """
    Replace a config section.

    Args:
        section: known section name
        values: dict of new values

    Returns:
        dict: {success: bool, message: str, client_error: bool}
    """
    if section not in DEVICE_CONFIG_DEFAULTS:
        return {'success': False, 'message': f"unknown config section '{section}'", 'client_error': True}
    if not isinstance(values, dict):
        return {'success': False, 'message': 'config must be a JSON object', 'client_error': True}

    loaded = load_device_config()
    if not loaded['success']:
        return {'success': False, 'message': loaded['message'], 'client_error': False}

    data = loaded['config']
    data[section] = values
    try:
        write_yaml_file(DEVICE_CONFIG_FILE, data)
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"[Config] Failed to write section {section}: {e}")
        return {'success': False, 'message': str(e), 'client_error': False}

    logger.info(f"[Config] Updated section {section}")
    return {'success': True, 'message': f'Section {section} updated', 'client_error': False}

def update_section(section, values):
    """Merge values into an existing section, keeping the keys not given."""
    current = get_section(section)
    if not current['success']:
        return {'success': False, 'message': current['message'], 'client_error': False}
    merged = current['values']
    merged.update(values)
    return set_section(section, merged)

def clear_section(section):
    """
    Remove a section so the defaults apply again.

    Returns:
        dict: {success: bool, message: str}
    """
    loaded = load_device_config()
    if not loaded['success']:
        return {'success': False, 'message': loaded['message']}

    data = loaded['config']
    if section not in data:
        return {'success': True, 'message': f'Section {section} already clear'}

    del data[section]
    try:
        write_yaml_file(DEVICE_CONFIG_FILE, data)
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"[Config] Failed to clear section {section}: {e}")
        return {'success': False, 'message': str(e)}

    logger.info(f"[Config] Cleared section {section}")
    return {'success': True, 'message': f'Section {section} cleared'}

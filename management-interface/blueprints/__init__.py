# -*- coding: utf-8 -*-
"""
Blueprints module - Flask route handlers organized by domain
Version: 1.0.0
"""

from .system_bp import system_bp
from .recordings_bp import recordings_bp
from .config_bp import config_bp
from .audio_bp import audio_bp
from .thermal_bp import thermal_bp
from .modem_bp import modem_bp
from .network_bp import network_bp

__all__ = [
    'system_bp',
    'recordings_bp',
    'config_bp',
    'audio_bp',
    'thermal_bp',
    'modem_bp',
    'network_bp'
]

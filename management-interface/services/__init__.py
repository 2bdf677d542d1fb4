# -*- coding: utf-8 -*-
"""
Services module - Business logic separated from Flask routes
Version: 1.0.0
"""

from .platform_service import (
    run_command,
    run_command_in_background,
    get_device_type,
    is_tc2_device
)

from .config_service import (
    load_daemon_config,
    get_section,
    set_section,
    clear_section
)

from .network_state_service import (
    get_network_state,
    setup_hotspot,
    setup_wifi_with_rollback
)

from .hotspot_service import (
    reset_hotspot_timer,
    stop_hotspot_timer
)

from .dbus_service import (
    start_dbus_service,
    stop_dbus_service,
    call_method
)

__all__ = [
    'run_command',
    'run_command_in_background',
    'get_device_type',
    'is_tc2_device',
    'load_daemon_config',
    'get_section',
    'set_section',
    'clear_section',
    'get_network_state',
    'setup_hotspot',
    'setup_wifi_with_rollback',
    'reset_hotspot_timer',
    'stop_hotspot_timer',
    'start_dbus_service',
    'stop_dbus_service',
    'call_method'
]

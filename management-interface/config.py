#!/usr/bin/env python3
"""
Management Interface - Configuration
Central configuration file for constants, paths and defaults.

Version: 1.0.0
"""

import os

# ============================================================================
# Application Version (read from VERSION file)
# ============================================================================
def _read_version():
    """Read version from VERSION file at project root."""
    version_paths = [
        '/opt/management-interface/VERSION',  # Installed location
        os.path.join(os.path.dirname(__file__), '..', 'VERSION'),  # Relative to config.py
        os.path.join(os.path.dirname(__file__), 'VERSION'),  # Same dir
    ]
    for path in version_paths:
        try:
            with open(path, 'r') as f:
                return f.read().strip()
        except FileNotFoundError:
            continue
    return '1.0.0'  # Fallback

APP_VERSION = _read_version()
API_VERSION = 8

# ============================================================================
# Config Files
# ============================================================================
CONFIG_DIR = '/etc/cacophony'
DAEMON_CONFIG_FILE = os.path.join(CONFIG_DIR, 'managementd.yaml')
DEVICE_CONFIG_FILE = os.path.join(CONFIG_DIR, 'config.yaml')
LOCATION_FILE = os.path.join(CONFIG_DIR, 'location.yaml')
SALT_MINION_ID_FILE = '/etc/salt/minion_id'

DEFAULT_PORT = 80
DEFAULT_CPTV_DIR = '/var/spool/cptv'

# ============================================================================
# HTTP API
# ============================================================================
API_USERNAME = 'admin'
API_PASSWORD = 'feathers'
STAY_ON_MINUTES = 5
REBOOT_DELAY = 5

# Recordings
CPTV_GLOB = '*.cptv'
FAILED_UPLOADS_FOLDER = 'failed-uploads'

# Battery / logs
BATTERY_READINGS_FILE = '/var/log/battery-readings.csv'
JOURNALCTL_PATH = '/bin/journalctl'

# Audio test playback
TEST_AUDIO_FILE = os.path.join(os.path.dirname(__file__), 'audio', 'test.wav')

# ============================================================================
# Network / Hotspot
# ============================================================================
WIFI_INTERFACE = 'wlan0'
MODEM_INTERFACE = 'usb0'
HOTSPOT_SSID = 'bushnet'
HOTSPOT_PASSPHRASE = 'feathers'
HOTSPOT_CHANNEL = 7
HOTSPOT_COUNTRY = 'NZ'
ROUTER_IP = '192.168.4.1'
DHCP_RANGE = '192.168.4.2,192.168.4.20'
DHCP_LEASE_TIME = '12h'

HOSTAPD_CONFIG_FILE = '/etc/hostapd/hostapd.conf'
DNSMASQ_CONFIG_FILE = '/etc/dnsmasq.conf'
DHCPCD_CONFIG_FILE = '/etc/dhcpcd.conf'
WPA_SUPPLICANT_FILE = '/etc/wpa_supplicant/wpa_supplicant.conf'

# Networks that are never removed from wpa_supplicant.conf
PROTECTED_NETWORKS = ('bushnet', 'Bushnet')

INTERFACE_UP_TIMEOUT = 30        # seconds to wait for wlan0 after hostapd restart
CONNECTION_WAIT_TRIES = 10       # wpa_cli status polls before starting the hotspot
WIFI_CHECK_ATTEMPTS = 3          # iwgetid checks after leaving hotspot mode
WIFI_CHECK_INTERVAL = 5
WIFI_CONNECT_TIMEOUT = 30        # seconds to wait for a new network to associate
HOTSPOT_TIMEOUT = 5 * 60         # auto-stop after this long without API requests

PING_HOST = '1.1.1.1'
PING_PACKETS = 3
DNS_CHECK_HOST = 'www.google.com'

# Modem web UI (signal strength)
MODEM_URL = 'http://192.168.8.1'
MODEM_STATUS_URL = MODEM_URL + '/api/monitoring/status'
MODEM_TIMEOUT = 10

# ============================================================================
# D-Bus
# ============================================================================
MANAGEMENTD_DBUS_NAME = 'org.cacophony.managementd'
MANAGEMENTD_DBUS_PATH = '/org/cacophony/managementd'

TC2_AGENT_DBUS_NAME = 'org.cacophony.TC2Agent'
TC2_AGENT_DBUS_PATH = '/org/cacophony/TC2Agent'

RTC_DBUS_NAME = 'org.cacophony.RTC'
RTC_DBUS_PATH = '/org/cacophony/RTC'

MODEMD_DBUS_NAME = 'org.cacophony.modemd'
MODEMD_DBUS_PATH = '/org/cacophony/modemd'

THERMAL_RECORDER_DBUS_NAME = 'org.cacophony.thermalrecorder'
THERMAL_RECORDER_DBUS_PATH = '/org/cacophony/thermalrecorder'

DBUS_CALL_TIMEOUT = 10

# ============================================================================
# Device Config Sections (defaults returned by GET /api/config)
# ============================================================================
DEVICE_CONFIG_DEFAULTS = {
    'device': {
        'id': 0,
        'name': '',
        'group': '',
        'server': 'https://api.cacophony.org.nz'
    },
    'thermal-recorder': {
        'output-dir': DEFAULT_CPTV_DIR,
        'min-secs': 10,
        'max-secs': 600,
        'preview-secs': 5
    },
    'audio': {
        'dir': '/var/lib/audiobait',
        'card': 0,
        'volume-control': 'PCM'
    },
    'audio-recording': {
        'enabled': False
    },
    'modemd': {
        'test-interval': '5m',
        'initial-on-duration': '1h'
    },
    'ports': {
        'managementd': DEFAULT_PORT
    },
    'test-hosts': {
        'ping-retries': 3,
        'ping-wait-secs': 15,
        'urls': ['1.1.1.1', '8.8.8.8']
    },
    'windows': {
        'start-recording': '-30m',
        'stop-recording': '+30m',
        'power-on': '12:00',
        'power-off': '12:00'
    }
}


# -*- coding: utf-8 -*-
"""
Platform Service - Device identification and command execution utilities
Version: 1.0.0
"""

import re
import shlex
import logging
import subprocess
import threading

from config import SALT_MINION_ID_FILE

logger = logging.getLogger(__name__)

# Unit and interface names accepted from HTTP clients
SAFE_NAME_PATTERN = re.compile(r'^[A-Za-z0-9@._:-]+$')

# ============================================================================
# DEVICE IDENTIFICATION
# ============================================================================

def read_salt_id():
    """Return the salt minion id of this device, or '' if unavailable."""
    try:
        with open(SALT_MINION_ID_FILE, 'r') as f:
            return f.read().strip()
    except OSError:
        return ''

def get_device_type():
    """
    Derive the device type from the salt minion id.

    The minion id looks like "<type>-<number>", e.g. "tc2-1234"; everything
    before the last dash is the type.

    Returns:
        str: device type or '' if it cannot be determined
    """
    salt_id = read_salt_id()
    if not salt_id:
        return ''
    parts = salt_id.split('-')
    if len(parts) < 2:
        logger.warning(f"[Platform] Failed to parse device type from '{salt_id}'")
        return ''
    return '-'.join(parts[:-1])

def is_tc2_device():
    """Check if this is a TC2 camera (RTC is reached over D-Bus)."""
    return get_device_type() == 'tc2'

def is_safe_name(name):
    """Check that a service or interface name is safe to pass to a shell."""
    return bool(name) and bool(SAFE_NAME_PATTERN.match(name))

# ============================================================================
# COMMAND EXECUTION UTILITIES
# ============================================================================

def run_command(cmd, shell=True, timeout=30, capture_output=True):
    """
    Execute a shell command and return the result.

    Args:
        cmd: Command to execute (string or list)
        shell: Use shell execution (default: True)
        timeout: Command timeout in seconds (default: 30)
        capture_output: Capture stdout/stderr (default: True)

    Returns:
        dict with keys: success, stdout, stderr, returncode
    """
    try:
        result = subprocess.run(
            cmd,
            shell=shell,
            capture_output=capture_output,
            text=True,
            timeout=timeout
        )
        return {
            'success': result.returncode == 0,
            'stdout': result.stdout.strip() if result.stdout else '',
            'stderr': result.stderr.strip() if result.stderr else '',
            'returncode': result.returncode
        }
    except subprocess.TimeoutExpired:
        return {
            'success': False,
            'stdout': '',
            'stderr': f'Command timed out after {timeout}s',
            'returncode': -1
        }
    except OSError as e:
        return {
            'success': False,
            'stdout': '',
            'stderr': str(e),
            'returncode': -1
        }

def run_command_in_background(cmd, name='command'):
    """
    Run a command in a daemon thread, logging failures.

    Used for commands that must outlive the HTTP response (reboot,
    service restarts triggered by the UI).
    """
    def _run():
        result = run_command(cmd)
        if not result['success']:
            logger.error(f"[Platform] {name} failed: {result['stderr']}")

    thread = threading.Thread(target=_run, daemon=True, name=name)
    thread.start()
    return thread

def check_command_exists(cmd_name):
    """
    Check if a command exists in PATH.

    Args:
        cmd_name: Name of the command to check

    Returns:
        bool: True if command exists
    """
    result = run_command(f"which {shlex.quote(cmd_name)}", timeout=5)
    return bool(result['success'] and result['stdout'])

def systemctl(action, unit, timeout=30):
    """
    Run a systemctl action on a unit.

    Args:
        action: systemctl verb (start, stop, restart, is-active, ...)
        unit: unit name

    Returns:
        dict with keys: success, stdout, stderr, returncode
    """
    return run_command(f"systemctl {action} {shlex.quote(unit)}", timeout=timeout)

def interface_is_up(interface):
    """
    Check the kernel's view of an interface's administrative state.

    Args:
        interface: network interface name

    Returns:
        bool: True if the interface exists and has the UP flag
    """
    flags_path = f'/sys/class/net/{interface}/flags'
    try:
        with open(flags_path, 'r') as f:
            flags = int(f.read().strip(), 16)
    except (OSError, ValueError):
        return False
    return bool(flags & 0x1)

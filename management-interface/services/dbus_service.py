# -*- coding: utf-8 -*-
"""
D-Bus Service - org.cacophony.managementd service and system bus client
Version: 1.0.0

The service runs on its own asyncio event loop in a background thread so
the Flask server stays synchronous. Method handlers never block: network
transitions are dispatched to worker threads and their failures logged.

call_method() is the client side used to reach sibling daemons (TC2 agent,
RTC, modemd). Each call opens a short-lived connection on a private loop.
"""

import asyncio
import logging
import threading

from dbus_next.aio import MessageBus
from dbus_next.constants import BusType, MessageType, NameFlag, RequestNameReply
from dbus_next.errors import DBusError
from dbus_next.message import Message
from dbus_next.service import ServiceInterface, method, signal
from dbus_next.signature import Variant

from .network_state_service import (
    STATE_WIFI, STATE_HOTSPOT,
    get_network_state, setup_wifi_with_rollback, setup_hotspot,
    reconfigure_wifi, run_in_background, add_state_listener,
    remove_state_listener
)
from config import MANAGEMENTD_DBUS_NAME, MANAGEMENTD_DBUS_PATH, DBUS_CALL_TIMEOUT

logger = logging.getLogger(__name__)

# ============================================================================
# MANAGEMENTD SERVICE INTERFACE
# ============================================================================

class ManagementService(ServiceInterface):
    """Network mode control exported at /org/cacophony/managementd."""

    def __init__(self):
        super().__init__(MANAGEMENTD_DBUS_NAME)
        self.announced_state = get_network_state()

    @method()
    def SetNetworkState(self, state: 's'):
        if state == STATE_WIFI:
            run_in_background(setup_wifi_with_rollback, 'setup-wifi')
        elif state == STATE_HOTSPOT:
            run_in_background(setup_hotspot, 'setup-hotspot')
        else:
            raise DBusError(f'{MANAGEMENTD_DBUS_NAME}.SetNetworkState', 'invalid state')

    @method()
    def GetNetworkState(self) -> 's':
        return get_network_state()

    @method()
    def ReconfigureWifi(self):
        run_in_background(reconfigure_wifi, 'reconfigure-wifi')

    @signal()
    def NewNetworkState(self) -> 's':
        return self.announced_state

    def announce_state(self, state):
        """Emit NewNetworkState; must run on the service loop."""
        self.announced_state = state
        self.NewNetworkState()

# ============================================================================
# SERVICE LIFECYCLE
# ============================================================================

dbus_server = {
    'loop': None,
    'thread': None,
    'bus': None,
    'interface': None,
    'listener': None
}

async def _export_service(interface):
    bus = await MessageBus(bus_type=BusType.SYSTEM).connect()
    reply = await bus.request_name(MANAGEMENTD_DBUS_NAME, NameFlag.DO_NOT_QUEUE)
    if reply != RequestNameReply.PRIMARY_OWNER:
        bus.disconnect()
        raise RuntimeError('name already taken')
    bus.export(MANAGEMENTD_DBUS_PATH, interface)
    return bus

def _emit_state_signal(state):
    loop = dbus_server['loop']
    interface = dbus_server['interface']
    if loop is None or interface is None or not loop.is_running():
        return
    loop.call_soon_threadsafe(interface.announce_state, state)

def start_dbus_service(timeout=10):
    """
    Export org.cacophony.managementd on the system bus.

    Returns:
        dict: {success: bool, message: str}
    """
    if dbus_server['thread'] is not None and dbus_server['thread'].is_alive():
        return {'success': True, 'message': 'D-Bus service already running'}

    loop = asyncio.new_event_loop()
    interface = ManagementService()
    ready = threading.Event()
    startup = {'error': None}

    def _run():
        asyncio.set_event_loop(loop)
        try:
            bus = loop.run_until_complete(_export_service(interface))
        except Exception as e:
            startup['error'] = str(e)
            ready.set()
            loop.close()
            return

        dbus_server['bus'] = bus
        ready.set()
        try:
            loop.run_forever()
        finally:
            bus.disconnect()
            loop.close()

    dbus_server['loop'] = loop
    dbus_server['interface'] = interface
    thread = threading.Thread(target=_run, daemon=True, name='dbus-service')
    dbus_server['thread'] = thread
    thread.start()

    if not ready.wait(timeout):
        return {'success': False, 'message': 'timed out starting D-Bus service'}
    if startup['error']:
        logger.error(f"[DBus] Failed to start {MANAGEMENTD_DBUS_NAME}: {startup['error']}")
        dbus_server['loop'] = None
        dbus_server['interface'] = None
        dbus_server['thread'] = None
        return {'success': False, 'message': startup['error']}

    dbus_server['listener'] = _emit_state_signal
    add_state_listener(_emit_state_signal)
    logger.info(f"[DBus] Started {MANAGEMENTD_DBUS_NAME} service")
    return {'success': True, 'message': 'D-Bus service started'}

def stop_dbus_service():
    """Release the bus name and stop the service loop."""
    if dbus_server['listener'] is not None:
        remove_state_listener(dbus_server['listener'])
        dbus_server['listener'] = None

    loop = dbus_server['loop']
    thread = dbus_server['thread']
    if loop is not None and loop.is_running():
        loop.call_soon_threadsafe(loop.stop)
    if thread is not None and thread.is_alive():
        thread.join(timeout=5)
        if thread.is_alive():
            logger.warning("[DBus] Service thread did not stop gracefully")

    dbus_server.update({'loop': None, 'thread': None, 'bus': None, 'interface': None})

# ============================================================================
# SYSTEM BUS CLIENT
# ============================================================================

def unwrap_variants(value):
    """Convert D-Bus Variants (recursively) into plain JSON-able values."""
    if isinstance(value, Variant):
        return unwrap_variants(value.value)
    if isinstance(value, dict):
        return {key: unwrap_variants(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [unwrap_variants(item) for item in value]
    if isinstance(value, bytes):
        return value.decode('utf-8', errors='replace')
    return value

async def _call(destination, path, interface, member, signature, body, timeout):
    bus = await MessageBus(bus_type=BusType.SYSTEM).connect()
    try:
        message = Message(
            destination=destination,
            path=path,
            interface=interface,
            member=member,
            signature=signature,
            body=body
        )
        return await asyncio.wait_for(bus.call(message), timeout)
    finally:
        bus.disconnect()

def call_method(destination, path, member, signature='', body=None,
                interface=None, timeout=DBUS_CALL_TIMEOUT):
    """
    Call a method on the system bus and wait for its reply.

    Args:
        destination: bus name, e.g. 'org.cacophony.TC2Agent'
        path: object path
        member: method name
        signature: D-Bus signature of body (e.g. 't' for a uint64)
        body: list of arguments
        interface: interface name (defaults to destination)
        timeout: seconds to wait for the reply

    Returns:
        dict: {success: bool, body: list, message: str}
    """
    interface = interface or destination
    try:
        reply = asyncio.run(_call(
            destination, path, interface, member, signature, body or [], timeout
        ))
    except asyncio.TimeoutError:
        logger.error(f"[DBus] {interface}.{member} timed out after {timeout}s")
        return {'success': False, 'body': [], 'message': f'{member} timed out'}
    except Exception as e:
        logger.error(f"[DBus] {interface}.{member} failed: {e}")
        return {'success': False, 'body': [], 'message': str(e)}

    if reply.message_type == MessageType.ERROR:
        detail = reply.body[0] if reply.body else reply.error_name
        logger.error(f"[DBus] {interface}.{member} returned error {reply.error_name}: {detail}")
        return {'success': False, 'body': [], 'message': str(detail)}

    return {'success': True, 'body': unwrap_variants(list(reply.body)), 'message': ''}

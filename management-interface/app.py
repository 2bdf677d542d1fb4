#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Management Interface - Main Application
Modular Flask application with blueprints architecture, plus the
org.cacophony.managementd D-Bus service.

Version: 1.0.0
"""

import os
import sys
import hmac
import signal
import logging
import argparse
from datetime import datetime

from flask import Flask, jsonify, request

# Import configuration
from config import APP_VERSION, API_USERNAME, API_PASSWORD, STAY_ON_MINUTES

# Import blueprints
from blueprints import (
    system_bp,
    recordings_bp,
    config_bp,
    audio_bp,
    thermal_bp,
    modem_bp,
    network_bp
)

from services.platform_service import run_command_in_background
from services.config_service import load_daemon_config, set_daemon_config_path
from services.hotspot_service import reset_hotspot_timer, stop_hotspot_timer
from services.dbus_service import start_dbus_service, stop_dbus_service

# ============================================================================
# LOGGING CONFIGURATION
# ============================================================================

def setup_logging(level='INFO'):
    """Configure application logging."""
    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=log_format,
        handlers=[
            logging.StreamHandler(sys.stdout)
        ],
        force=True
    )

    # Reduce Flask/Werkzeug logging noise
    logging.getLogger('werkzeug').setLevel(logging.WARNING)

    return logging.getLogger('managementd')

logger = setup_logging(os.environ.get('MANAGEMENTD_LOG_LEVEL', 'INFO'))

# ============================================================================
# FLASK APPLICATION FACTORY
# ============================================================================

def check_credentials(auth):
    """Check HTTP basic auth credentials against the API account."""
    if auth is None or auth.username is None or auth.password is None:
        return False
    return (hmac.compare_digest(auth.username, API_USERNAME)
            and hmac.compare_digest(auth.password, API_PASSWORD))

def create_app():
    """Create and configure the Flask application."""
    app = Flask(__name__)

    # Configuration
    app.config['JSON_SORT_KEYS'] = False

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Register main routes
    register_main_routes(app)

    @app.before_request
    def api_auth():
        if not request.path.startswith('/api'):
            return None
        if not check_credentials(request.authorization):
            return 'Forbidden', 403

        # Keep the camera awake and the hotspot up while the API is in use
        run_command_in_background(f"stay-on-for {STAY_ON_MINUTES}", name='stay-on-for')
        reset_hotspot_timer()
        return None

    return app

def register_blueprints(app):
    """Register all Flask blueprints."""
    app.register_blueprint(system_bp)
    app.register_blueprint(recordings_bp)
    app.register_blueprint(config_bp)
    app.register_blueprint(audio_bp)
    app.register_blueprint(thermal_bp)
    app.register_blueprint(modem_bp)
    app.register_blueprint(network_bp)

def register_error_handlers(app):
    """Register error handlers."""

    @app.errorhandler(404)
    def not_found(error):
        if request.path.startswith('/api/'):
            return jsonify({
                'success': False,
                'error': 'Endpoint not found',
                'path': request.path
            }), 404
        return jsonify({'success': False, 'error': 'Not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({
            'success': False,
            'error': 'Method not allowed',
            'path': request.path
        }), 405

    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f"Internal error: {error}")
        return jsonify({
            'success': False,
            'error': 'Internal server error',
            'message': str(error)
        }), 500

    @app.errorhandler(Exception)
    def handle_exception(error):
        logger.exception(f"Unhandled exception: {error}")
        return jsonify({
            'success': False,
            'error': 'Unexpected error',
            'message': str(error)
        }), 500

def register_main_routes(app):
    """Register main application routes."""

    @app.route('/health')
    def health():
        """Health check endpoint."""
        return jsonify({
            'status': 'healthy',
            'version': APP_VERSION,
            'timestamp': datetime.now().isoformat()
        })

    @app.route('/api')
    def api_index():
        """API documentation endpoint."""
        return jsonify({
            'version': APP_VERSION,
            'endpoints': {
                'version': '/api/version',
                'device-info': '/api/device-info',
                'recordings': '/api/recordings',
                'config': '/api/config',
                'location': '/api/location',
                'clock': '/api/clock',
                'network': '/api/network/interfaces',
                'wifi': '/api/network/wifi',
                'wifi-status': '/api/wifi-status',
                'offload-status': '/api/offload-status',
                'modem': '/api/modem'
            }
        })

# ============================================================================
# BACKGROUND TASKS
# ============================================================================

def start_background_tasks():
    """
    Export the D-Bus service.

    Returns:
        bool: False if the service could not be started
    """
    result = start_dbus_service()
    if not result['success']:
        logger.error(f"Failed to start D-Bus service: {result['message']}")
        return False
    return True

def stop_background_tasks():
    """Stop the D-Bus service and the hotspot timer."""
    logger.info("Stopping background tasks...")
    stop_hotspot_timer()
    stop_dbus_service()

# ============================================================================
# SIGNAL HANDLERS
# ============================================================================

def handle_shutdown(signum, frame):
    """Handle shutdown signals."""
    logger.info(f"Received signal {signum}, shutting down...")
    stop_background_tasks()
    sys.exit(0)

# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog='managementd',
        description='Cacophony device management web API and D-Bus service'
    )
    parser.add_argument('--config', help='daemon config file (YAML)')
    parser.add_argument('--port', type=int, help='HTTP listen port (overrides config)')
    parser.add_argument(
        '--log-level',
        default=os.environ.get('MANAGEMENTD_LOG_LEVEL', 'INFO'),
        help='log level (DEBUG, INFO, WARNING, ERROR)'
    )
    parser.add_argument('--version', action='version', version=APP_VERSION)
    return parser.parse_args(argv)

# Create the application
app = create_app()

def main(argv=None):
    global logger
    args = parse_args(argv)
    logger = setup_logging(args.log_level)

    if args.config:
        set_daemon_config_path(args.config)
    daemon_config = load_daemon_config()
    port = args.port or int(daemon_config['port'])

    logger.info(f"Running version: {APP_VERSION}")
    logger.info(f"Config: port={port}, cptv-dir={daemon_config['cptv-dir']}")
    if port != 80:
        logger.warning(f"Avahi service is advertised on port 80 but port {port} is being used")

    # Register signal handlers
    signal.signal(signal.SIGTERM, handle_shutdown)
    signal.signal(signal.SIGINT, handle_shutdown)

    if not start_background_tasks():
        return 1

    # Run Flask server
    app.run(
        host='0.0.0.0',
        port=port,
        debug=False,
        threaded=True,
        use_reloader=False  # Important: disable reloader with background threads
    )
    return 0

if __name__ == '__main__':
    sys.exit(main())

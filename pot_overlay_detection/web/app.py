"""Flask status application for the pot overlay detection system."""

import logging
from typing import Optional

from flask import Flask, jsonify, request

from ..detection_session import DetectionSession

logger = logging.getLogger(__name__)


class OverlayStatusWebApp:
    """Read-mostly HTTP surface over a running detection session."""

    def __init__(self, session: DetectionSession):
        self.app = Flask(__name__)
        self.session = session
        self._setup_routes()

        logger.info("Status web application initialized")

    def _setup_routes(self):
        """Setup Flask routes."""

        @self.app.route('/api/status')
        def api_status():
            """Full session status."""
            try:
                return jsonify({
                    'success': True,
                    'data': self.session.get_status()
                })
            except Exception as e:
                logger.error(f"Error getting status: {e}")
                return jsonify({
                    'success': False,
                    'error': str(e)
                }), 500

        @self.app.route('/api/detection')
        def api_detection():
            """Just the detection signal, for lightweight polling."""
            status = self.session.get_status()
            return jsonify({
                'ratio': status['ratio'],
                'confirmed': status['confirmed'],
                'state': status['state']
            })

        @self.app.route('/api/config', methods=['GET'])
        def api_get_config():
            return jsonify({
                'success': True,
                'data': self.session.config_manager.export_config()
            })

        @self.app.route('/api/config', methods=['POST'])
        def api_update_config():
            updates = request.get_json(silent=True)
            if not isinstance(updates, dict) or not updates:
                return jsonify({
                    'success': False,
                    'error': 'Expected a non-empty JSON object'
                }), 400

            try:
                self.session.update_configuration(**updates)
            except (TypeError, ValueError) as e:
                return jsonify({
                    'success': False,
                    'error': str(e)
                }), 400

            return jsonify({
                'success': True,
                'data': self.session.config_manager.export_config()
            })

        @self.app.route('/api/stop', methods=['POST'])
        def api_stop():
            """Ask the session to stop; it stops at the start of its next tick."""
            self.session.request_stop()
            return jsonify({
                'success': True,
                'message': 'Stop requested'
            })

    def run(self, host='127.0.0.1', port=5000, debug=False):
        """Run the Flask application."""
        logger.info(f"Starting status web interface on {host}:{port}")
        self.app.run(host=host, port=port, debug=debug, threaded=True, use_reloader=False)

    def get_app(self):
        """Get the Flask app instance for external WSGI servers."""
        return self.app


def create_app(session: Optional[DetectionSession] = None) -> Flask:
    """Factory function to create Flask app."""
    web_app = OverlayStatusWebApp(session or DetectionSession())
    return web_app.get_app()

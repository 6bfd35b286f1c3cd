#!/usr/bin/env python3
"""
Diagnostics Backend
===================
Run: python3 -m diagnostic_engine.app
Then POST to: http://localhost:3000/api/diagnostics/...
"""
from flask import Flask
from flask_cors import CORS

from diagnostic_engine.config import config, HOST, PORT, DEBUG
from diagnostic_engine.logging_config import init_logging
from diagnostic_engine.routes import register_routes


def create_app(test_config=None):
    """Build the Flask app with CORS, logging and the diagnostics routes."""
    app = Flask(__name__)
    app.config.update(
        LOG_LEVEL=config.log_level,
        LOG_FORMAT=config.log_format,
    )
    if test_config:
        app.config.update(test_config)

    CORS(app)
    init_logging(app)
    register_routes(app)
    return app


if __name__ == '__main__':
    create_app().run(host=HOST, port=PORT, debug=DEBUG)

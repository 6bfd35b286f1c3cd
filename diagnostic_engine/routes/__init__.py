"""
Diagnostic Engine API Routes
============================

Route blueprints for the diagnostics backend.

Usage:
    from diagnostic_engine.routes import register_routes
    register_routes(app)
"""
from .diagnostics_routes import diagnostics_bp


def register_routes(app):
    """Register all route blueprints with the Flask app."""
    app.register_blueprint(diagnostics_bp)


__all__ = [
    'register_routes',
    'diagnostics_bp',
]

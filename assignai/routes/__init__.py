"""
AssignAI API Routes
===================

All API route blueprints for the AssignAI application.

Usage:
    from assignai.routes import register_routes
    register_routes(app, store, parser, mediation)
"""
from .assignment_routes import assignment_bp, init_assignment_routes
from .ai_routes import ai_bp, init_ai_routes


def register_routes(app, store, parser, mediation):
    """Register all route blueprints with the Flask app."""

    # Blueprints read the shared services from module state
    init_assignment_routes(store, parser, mediation)
    init_ai_routes(store, mediation)

    app.register_blueprint(assignment_bp)
    app.register_blueprint(ai_bp)


__all__ = [
    'register_routes',
    'assignment_bp',
    'ai_bp',
    'init_assignment_routes',
    'init_ai_routes'
]

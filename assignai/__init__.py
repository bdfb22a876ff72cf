"""
AssignAI Backend Package
========================

Flask-based backend that turns an instructor's PDF assignment into a
structured question set and mediates student AI requests per question.

Structure:
- routes/: API route blueprints
- services/: PDF extraction, parsing, AI mediation, caching, storage
- config.py: Configuration management
- errors.py: Error taxonomy shared by services and routes
"""

from .config import config, Config

__version__ = "1.0.0"

__all__ = ['config', 'Config']

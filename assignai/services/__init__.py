"""
AssignAI Services
=================

Pipeline services for the AssignAI application.

Services:
- pdf_extractor: PDF text and layout extraction (PyMuPDF)
- table_detector: heuristic table detection from positioned text
- assignment_parser: model-based assignment structuring with fallback
- mediation_service: per-mode AI help for students
- assignment_store: in-memory assignments and student progress
"""

# Services are imported directly when needed to avoid circular imports
# Example: from assignai.services.mediation_service import MediationService

__all__ = [
    'pdf_extractor',
    'table_detector',
    'assignment_parser',
    'llm_client',
    'ai_modes',
    'mediation_service',
    'cache',
    'assignment_store'
]

"""
Error taxonomy for AssignAI.

Pipeline errors (extraction, parsing, mediation) are recovered inside the
services and turned into a degraded result. Only ValidationError and
NotFoundError reach the HTTP layer, as 400 and 404.
"""


class AssignAIError(Exception):
    """Base class for all AssignAI errors."""


class ExtractionError(AssignAIError):
    """The uploaded file could not be read as a PDF."""


class ParseError(AssignAIError):
    """The model reply did not contain a usable assignment object."""


class MediationError(AssignAIError):
    """A language-model call failed."""


class MediationTimeout(MediationError):
    """A language-model call exceeded its deadline."""


class ValidationError(AssignAIError):
    """A request is missing required fields or has the wrong shape."""


class NotFoundError(AssignAIError):
    """An assignment id is unknown."""

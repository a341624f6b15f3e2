"""
Domain exceptions raised by services and translated to HTTP responses in main.py
"""
from typing import Optional


class CVTailorError(Exception):
    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class TemplateStructureError(CVTailorError):
    """The uploaded template cannot be filled (not a DOCX, no fields, ...)."""
    status_code = 400


class InsufficientCreditsError(CVTailorError):
    status_code = 402

    def __init__(self, message: str = "Insufficient credits", details: Optional[str] = None):
        super().__init__(message, details)


class ProviderError(CVTailorError):
    """Provider selection or configuration failed."""

    def __init__(self, status_code: int, message: str, details: Optional[str] = None):
        super().__init__(message, details)
        self.status_code = status_code


class AIResponseError(CVTailorError):
    """The model answered with something that is not the requested JSON."""
    status_code = 502

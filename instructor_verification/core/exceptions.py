"""
Domain errors raised by the verification services
The API layer turns these into the structured failure envelope
"""
from typing import List, Optional


class VerificationError(Exception):
    """Base class for expected workflow failures"""

    status_code = 400

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or [message]


class NotFoundError(VerificationError):
    """Application, document, reviewer or user is absent"""

    status_code = 404


class ConflictError(VerificationError):
    """Duplicate entity or a transition precondition that no longer holds"""

    status_code = 409


class ValidationFailedError(VerificationError):
    """Input is structurally valid but not acceptable for the operation"""

    status_code = 422


class ForbiddenError(VerificationError):
    """Caller identity does not own the resource"""

    status_code = 403

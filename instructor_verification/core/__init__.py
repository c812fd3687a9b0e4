"""
Core functionality for the Instructor Verification API
"""
from instructor_verification.core.dependencies import get_current_user, get_current_admin
from instructor_verification.core.exceptions import (
    VerificationError, NotFoundError, ConflictError,
    ValidationFailedError, ForbiddenError
)

__all__ = [
    "get_current_user", "get_current_admin",
    "VerificationError", "NotFoundError", "ConflictError",
    "ValidationFailedError", "ForbiddenError"
]

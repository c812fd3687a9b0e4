"""
Utility functions for the Instructor Verification API
"""
from instructor_verification.utils.security import create_access_token, verify_token

__all__ = ["create_access_token", "verify_token"]

"""
API routers for the Instructor Verification API
"""

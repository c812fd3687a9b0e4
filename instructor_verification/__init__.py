"""
Instructor Verification API
"""

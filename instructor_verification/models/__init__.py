"""
Database models for the Instructor Verification API
"""
from instructor_verification.models.user import User, UserRole, InstructorStatus
from instructor_verification.models.application import (
    InstructorApplication, ApplicationDocument,
    ApplicationStatus, DocumentType, VerificationStatus
)
from instructor_verification.models.review import (
    AIVerification, ManualReview, ManualReviewRecord, Interview,
    AIRecommendation, AIProcessingStatus, ReviewDecision, InterviewFormat
)
from instructor_verification.models.instructor_profile import InstructorProfile
from instructor_verification.models.notification import NotificationRequest, NotificationStatus

__all__ = [
    "User", "UserRole", "InstructorStatus",
    "InstructorApplication", "ApplicationDocument",
    "ApplicationStatus", "DocumentType", "VerificationStatus",
    "AIVerification", "ManualReview", "ManualReviewRecord", "Interview",
    "AIRecommendation", "AIProcessingStatus", "ReviewDecision", "InterviewFormat",
    "InstructorProfile",
    "NotificationRequest", "NotificationStatus"
]

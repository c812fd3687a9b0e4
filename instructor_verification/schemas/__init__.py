"""
Pydantic schemas for the Instructor Verification API
"""
from instructor_verification.schemas.review import (
    ReviewScores, ManualReviewCreate, ManualReviewResponse, ReviewRecordResponse,
    StartReviewRequest, ApproveRequest, RejectRequest, RequestMoreInfoRequest,
    ReviewDocumentRequest, AIVerificationResponse,
    InterviewCreate, InterviewUpdate, InterviewResponse
)
from instructor_verification.schemas.application import (
    PersonalInfoSection, ProfessionalBackgroundSection, TeachingInformationSection,
    DocumentsSection, ConsentsSection,
    ApplicationCreate, SaveDraftRequest, SubmitRequest,
    DocumentCreate, DocumentResponse,
    ApplicationResponse, ApplicationStatusSnapshot,
    VerificationResponse, VerificationStatusResponse, DocumentUploadResponse
)
from instructor_verification.schemas.admin import (
    ApplicationFilters, AdminStats, InstructorProfileResponse
)

__all__ = [
    # Review schemas
    "ReviewScores", "ManualReviewCreate", "ManualReviewResponse", "ReviewRecordResponse",
    "StartReviewRequest", "ApproveRequest", "RejectRequest", "RequestMoreInfoRequest",
    "ReviewDocumentRequest", "AIVerificationResponse",
    "InterviewCreate", "InterviewUpdate", "InterviewResponse",
    # Application schemas
    "PersonalInfoSection", "ProfessionalBackgroundSection", "TeachingInformationSection",
    "DocumentsSection", "ConsentsSection",
    "ApplicationCreate", "SaveDraftRequest", "SubmitRequest",
    "DocumentCreate", "DocumentResponse",
    "ApplicationResponse", "ApplicationStatusSnapshot",
    "VerificationResponse", "VerificationStatusResponse", "DocumentUploadResponse",
    # Admin schemas
    "ApplicationFilters", "AdminStats", "InstructorProfileResponse"
]

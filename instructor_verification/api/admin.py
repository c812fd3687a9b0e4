"""
Admin API endpoints
Admin access only - review queue, decisions, interviews and statistics
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional
from datetime import datetime

from instructor_verification.config import settings
from instructor_verification.database import get_db
from instructor_verification.models import ApplicationStatus, InstructorProfile, User
from instructor_verification.schemas import (
    AdminStats, ApplicationFilters, ApplicationResponse, VerificationResponse,
    StartReviewRequest, ApproveRequest, RejectRequest, RequestMoreInfoRequest,
    ReviewDocumentRequest, DocumentResponse, DocumentUploadResponse,
    ManualReviewCreate, ManualReviewResponse, ReviewRecordResponse,
    InterviewCreate, InterviewUpdate, InterviewResponse,
    InstructorProfileResponse
)
from instructor_verification.core import get_current_admin, NotFoundError
from instructor_verification.services import (
    AdminStatsService, ApplicationService, DocumentService, ReviewService
)

router = APIRouter(prefix="/admin/instructor-verification", tags=["Admin"])


@router.get("/applications", response_model=Dict[str, Any])
async def list_applications(
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE, description="Items per page"),
    status: Optional[ApplicationStatus] = Query(None, description="Filter by status (drafts hidden by default)"),
    search: Optional[str] = Query(None, description="Search by name, phone or email"),
    submitted_from: Optional[datetime] = Query(None, description="Submitted on or after"),
    submitted_to: Optional[datetime] = Query(None, description="Submitted on or before"),
    min_score: Optional[int] = Query(None, ge=0, le=100, description="Minimum completion score"),
    current_admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """
    Get instructor applications (admin only) with pagination and filters

    Returns:
        Dict: Paginated list of applications with metadata
    """
    filters = ApplicationFilters(
        status=status,
        search=search,
        submitted_from=submitted_from,
        submitted_to=submitted_to,
        min_score=min_score,
        page=page,
        per_page=per_page
    )
    result = AdminStatsService(db).list_applications(filters)
    result["applications"] = [
        ApplicationResponse.model_validate(application).model_dump(mode="json")
        for application in result["applications"]
    ]
    return result


@router.get("/stats", response_model=AdminStats)
async def get_statistics(
    current_admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """Workflow counters; all zeros on an empty dataset"""
    return AdminStatsService(db).get_admin_stats()


@router.get("/applications/{application_id}", response_model=ApplicationResponse)
async def get_application_detail(
    application_id: str,
    current_admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    return ApplicationService(db).get_application(application_id=application_id)


@router.post("/start-review", response_model=VerificationResponse)
async def start_review(
    request: StartReviewRequest,
    current_admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """
    Claim a submitted application for review

    Raises:
        ConflictError: The application is not SUBMITTED (e.g. another admin claimed it)
    """
    application = ReviewService(db).start_review(request.application_id, current_admin.id)
    return VerificationResponse(
        success=True,
        message="Review started",
        data=ApplicationResponse.model_validate(application)
    )


@router.post("/approve", response_model=VerificationResponse)
async def approve_application(
    request: ApproveRequest,
    current_admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """
    Approve the application, promote the user and materialize the
    instructor profile
    """
    application = ReviewService(db).approve(request.application_id, current_admin.id, request.notes)
    return VerificationResponse(
        success=True,
        message="Application approved",
        data=ApplicationResponse.model_validate(application)
    )


@router.post("/reject", response_model=VerificationResponse)
async def reject_application(
    request: RejectRequest,
    current_admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    application = ReviewService(db).reject(
        request.application_id,
        current_admin.id,
        request.reason,
        requires_resubmission=request.requires_resubmission
    )
    message = "Resubmission requested" if request.requires_resubmission else "Application rejected"
    return VerificationResponse(
        success=True,
        message=message,
        data=ApplicationResponse.model_validate(application)
    )


@router.post("/request-more-info", response_model=VerificationResponse)
async def request_more_information(
    request: RequestMoreInfoRequest,
    current_admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    application = ReviewService(db).request_more_info(
        request.application_id,
        current_admin.id,
        request.required_info,
        request.deadline
    )
    return VerificationResponse(
        success=True,
        message="More information requested",
        data=ApplicationResponse.model_validate(application)
    )


@router.put("/documents/{document_id}/review", response_model=DocumentUploadResponse)
async def review_document(
    document_id: str,
    request: ReviewDocumentRequest,
    current_admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """Approve or reject one document; the application status is unchanged"""
    record = DocumentService(db).review_document(
        document_id, request.verification_status, current_admin.id, request.notes
    )
    return DocumentUploadResponse(
        success=True,
        message=f"Document {record.verification_status.value.lower()}",
        document=DocumentResponse.model_validate(record)
    )


@router.put("/applications/{application_id}/manual-review", response_model=ManualReviewResponse)
async def create_manual_review(
    application_id: str,
    review: ManualReviewCreate,
    current_admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """Record reviewer scores; replaces any previous review for the application"""
    return ReviewService(db).create_manual_review(application_id, current_admin.id, review)


@router.get("/applications/{application_id}/review-history", response_model=List[ReviewRecordResponse])
async def get_review_history(
    application_id: str,
    current_admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    return ReviewService(db).get_review_history(application_id)


@router.post("/interviews", response_model=InterviewResponse, status_code=status.HTTP_201_CREATED)
async def schedule_interview(
    request: InterviewCreate,
    current_admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    return ReviewService(db).schedule_interview(current_admin.id, request)


@router.patch("/interviews/{interview_id}", response_model=InterviewResponse)
async def update_interview(
    interview_id: str,
    update: InterviewUpdate,
    current_admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    return ReviewService(db).update_interview(interview_id, update)


@router.get("/instructors/{user_id}/profile", response_model=InstructorProfileResponse)
async def get_instructor_profile(
    user_id: str,
    current_admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    profile = db.query(InstructorProfile).filter(InstructorProfile.user_id == user_id).first()
    if not profile:
        raise NotFoundError("Instructor profile not found")
    return profile

"""
Instructor application API endpoints
Applicant side: create, draft, submit, documents and AI verification
"""
from fastapi import APIRouter, Depends, BackgroundTasks, status
from sqlalchemy.orm import Session
from typing import Any, Dict, List
import logging

from instructor_verification.database import get_db
from instructor_verification.models import InstructorApplication, User, UserRole
from instructor_verification.schemas import (
    ApplicationCreate, SaveDraftRequest, SubmitRequest,
    PersonalInfoSection, ProfessionalBackgroundSection, TeachingInformationSection,
    DocumentsSection, DocumentCreate, DocumentResponse, DocumentUploadResponse,
    ApplicationResponse, ApplicationStatusSnapshot,
    VerificationResponse, VerificationStatusResponse, AIVerificationResponse
)
from instructor_verification.core import get_current_user, ForbiddenError, NotFoundError
from instructor_verification.services import (
    ApplicationService, DocumentService,
    get_ai_verification_service, run_ai_verification
)
from instructor_verification.services.transitions import load_application

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/instructor-verification", tags=["Instructor Verification"])


def get_owned_application(db: Session, application_id: str, user: User) -> InstructorApplication:
    """Load an application the caller owns (admins may read any)"""
    application = load_application(db, application_id)
    if application.user_id != user.id and user.role != UserRole.ADMIN:
        raise ForbiddenError("You do not have access to this application")
    return application


def application_result(application: InstructorApplication, message: str) -> VerificationResponse:
    return VerificationResponse(
        success=True,
        message=message,
        data=ApplicationResponse.model_validate(application)
    )


@router.post("/applications", response_model=VerificationResponse, status_code=status.HTTP_201_CREATED)
async def create_application(
    request: ApplicationCreate = ApplicationCreate(),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Start an instructor application for the current user

    Raises:
        ConflictError: The user already has an application
    """
    application = ApplicationService(db).create_application(current_user.id, request.metadata)
    return application_result(application, "Instructor application created")


@router.get("/applications/me", response_model=ApplicationResponse)
async def get_my_application(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Current user's application with documents, reviews and interviews"""
    return ApplicationService(db).get_application(user_id=current_user.id)


@router.get("/status", response_model=VerificationStatusResponse)
async def get_verification_status(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Lightweight status for polling; a missing application is reported, not raised"""
    application = ApplicationService(db).get_verification_status(current_user.id)
    if application is None:
        return VerificationStatusResponse(
            success=False,
            message="No instructor application found",
            errors=["Instructor application not found"]
        )

    return VerificationStatusResponse(
        success=True,
        message=f"Application is {application.status.value}",
        data=ApplicationStatusSnapshot.model_validate(application)
    )


@router.get("/drafts", response_model=List[ApplicationStatusSnapshot])
async def get_draft_applications(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return ApplicationService(db).get_draft_applications(current_user.id)


@router.get("/applications/{application_id}", response_model=ApplicationResponse)
async def get_application(
    application_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    get_owned_application(db, application_id, current_user)
    return ApplicationService(db).get_application(application_id=application_id)


@router.put("/applications/{application_id}/draft", response_model=VerificationResponse)
async def save_draft(
    application_id: str,
    request: SaveDraftRequest,
    auto_save: bool = False,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Merge the provided sections into the draft and recompute progress

    Args:
        application_id: Application to update
        request: Any subset of the intake sections
        auto_save: Set by the client's periodic autosave
    """
    get_owned_application(db, application_id, current_user)
    application = ApplicationService(db).save_draft(application_id, request.sections(), auto_save=auto_save)
    return application_result(application, "Draft saved")


def _save_section(db: Session, application_id: str, user: User, name: str, section) -> VerificationResponse:
    get_owned_application(db, application_id, user)
    application = ApplicationService(db).update_section(application_id, name, section.to_document())
    return application_result(application, f"{name.replace('_', ' ').capitalize()} saved")


@router.put("/applications/{application_id}/personal-info", response_model=VerificationResponse)
async def update_personal_info(
    application_id: str,
    section: PersonalInfoSection,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _save_section(db, application_id, current_user, "personal_info", section)


@router.put("/applications/{application_id}/professional-background", response_model=VerificationResponse)
async def update_professional_background(
    application_id: str,
    section: ProfessionalBackgroundSection,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _save_section(db, application_id, current_user, "professional_background", section)


@router.put("/applications/{application_id}/teaching-information", response_model=VerificationResponse)
async def update_teaching_information(
    application_id: str,
    section: TeachingInformationSection,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _save_section(db, application_id, current_user, "teaching_information", section)


@router.put("/applications/{application_id}/documents-summary", response_model=VerificationResponse)
async def update_documents_summary(
    application_id: str,
    section: DocumentsSection,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _save_section(db, application_id, current_user, "documents", section)


@router.post("/applications/{application_id}/submit", response_model=VerificationResponse)
async def submit_application(
    application_id: str,
    request: SubmitRequest = SubmitRequest(),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Submit the application for review

    Raises:
        ValidationFailedError: A required section is empty (422)
        ConflictError: Not a draft (409)
    """
    get_owned_application(db, application_id, current_user)
    application = ApplicationService(db).submit(application_id, request.consents.to_document())
    return application_result(application, "Application submitted for review")


@router.post("/applications/{application_id}/reopen", response_model=VerificationResponse)
async def reopen_application(
    application_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    get_owned_application(db, application_id, current_user)
    application = ApplicationService(db).reopen(application_id)
    return application_result(application, "Application reopened for editing")


@router.delete("/applications/{application_id}", response_model=Dict[str, Any])
async def withdraw_application(
    application_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    get_owned_application(db, application_id, current_user)
    ApplicationService(db).withdraw(application_id)
    return {"success": True, "message": "Application withdrawn"}


@router.post(
    "/applications/{application_id}/documents",
    response_model=DocumentUploadResponse,
    status_code=status.HTTP_201_CREATED
)
async def add_document(
    application_id: str,
    document: DocumentCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Attach a document reference. The file itself lives in the file store;
    only its metadata is recorded here.
    """
    get_owned_application(db, application_id, current_user)
    record = DocumentService(db).add_document(application_id, document)
    return DocumentUploadResponse(
        success=True,
        message="Document added",
        document=DocumentResponse.model_validate(record)
    )


@router.delete("/applications/{application_id}/documents/{document_id}", response_model=Dict[str, Any])
async def delete_document(
    application_id: str,
    document_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    get_owned_application(db, application_id, current_user)
    DocumentService(db).delete_document(application_id, document_id)
    return {"success": True, "message": "Document deleted"}


@router.post(
    "/applications/{application_id}/ai-verification",
    response_model=AIVerificationResponse,
    status_code=status.HTTP_202_ACCEPTED
)
async def trigger_ai_verification(
    application_id: str,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Queue advisory AI scoring. The record starts PENDING; poll the GET
    endpoint until processing_status is COMPLETED or FAILED.
    """
    get_owned_application(db, application_id, current_user)
    verification = get_ai_verification_service().trigger(db, application_id)
    background_tasks.add_task(run_ai_verification, application_id)
    logger.info(f"User {current_user.email} queued AI verification for application {application_id}")
    return verification


@router.get("/applications/{application_id}/ai-verification", response_model=AIVerificationResponse)
async def get_ai_verification(
    application_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    get_owned_application(db, application_id, current_user)
    verification = get_ai_verification_service().get(db, application_id)
    if verification is None:
        raise NotFoundError("AI verification has not been requested for this application")
    return verification

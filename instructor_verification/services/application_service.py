"""
Application Service
Owner-side lifecycle of an instructor application: intake, drafting,
submission, reopening and withdrawal
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import logging

from instructor_verification.core.exceptions import (
    ConflictError, NotFoundError, ValidationFailedError
)
from instructor_verification.models import (
    ApplicationDocument, ApplicationStatus, InstructorApplication,
    InstructorStatus, User
)
from instructor_verification.services.approval_cascade import subject_names
from instructor_verification.services.completion_scorer import (
    CompletionScorer, application_sections, is_populated
)
from instructor_verification.services.review_service import supersede_current_review
from instructor_verification.services.transitions import (
    EDITABLE_STATUSES, REOPENABLE_STATUSES, WITHDRAWABLE_STATUSES,
    load_application, transition
)

logger = logging.getLogger(__name__)

SECTION_NAMES = (
    "personal_info", "professional_background", "teaching_information",
    "documents", "consents",
)

REQUIRED_SECTIONS = {
    "personal_info": "Personal information is required",
    "professional_background": "Professional background is required",
    "teaching_information": "Teaching information is required",
}


def denormalize(sections: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    """
    Scalar copies of section fields used for admin search and listing.
    Every column derived from a saved section is rewritten, so a field
    dropped from the section resets to the column's empty value.
    """
    values: Dict[str, Any] = {}

    personal = sections.get("personal_info")
    if personal is not None:
        name = f"{personal.get('first_name') or ''} {personal.get('last_name') or ''}".strip()
        values["full_name"] = name
        values["phone_number"] = personal.get("phone_number") or ""
        values["nationality"] = personal.get("nationality") or None

    professional = sections.get("professional_background")
    if professional is not None:
        values["current_job_title"] = professional.get("current_job_title") or None
        values["years_of_experience"] = professional.get("years_of_experience") or 0

    teaching = sections.get("teaching_information")
    if teaching is not None:
        values["subjects_to_teach"] = subject_names(teaching.get("subjects_to_teach"))
        values["teaching_motivation"] = teaching.get("teaching_motivation") or ""

    return values


class ApplicationService:
    """State machine and draft engine for the applicant"""

    def __init__(self, db: Session):
        self.db = db
        self.scorer = CompletionScorer()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_application(
        self,
        user_id: Optional[str] = None,
        application_id: Optional[str] = None
    ) -> InstructorApplication:
        """Look up by application id, or by owner"""
        if application_id:
            return load_application(self.db, application_id, with_children=True)
        if not user_id:
            raise ValidationFailedError("Either user_id or application_id is required")

        application = (
            self.db.query(InstructorApplication)
            .filter(InstructorApplication.user_id == user_id)
            .first()
        )
        if not application:
            raise NotFoundError("Instructor application not found")
        return load_application(self.db, application.id, with_children=True)

    def get_verification_status(self, user_id: str) -> Optional[InstructorApplication]:
        """Lightweight lookup; None when the user has not started"""
        return (
            self.db.query(InstructorApplication)
            .filter(InstructorApplication.user_id == user_id)
            .first()
        )

    def get_draft_applications(self, user_id: str) -> List[InstructorApplication]:
        return (
            self.db.query(InstructorApplication)
            .filter(
                InstructorApplication.user_id == user_id,
                InstructorApplication.status.in_(EDITABLE_STATUSES)
            )
            .order_by(InstructorApplication.last_saved_at.desc())
            .all()
        )

    def document_count(self, application_id: str) -> int:
        return (
            self.db.query(func.count(ApplicationDocument.id))
            .filter(ApplicationDocument.application_id == application_id)
            .scalar()
        ) or 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create_application(self, user_id: str, metadata: Optional[Dict[str, Any]] = None) -> InstructorApplication:
        """
        Start a verification for a user.

        Raises:
            NotFoundError: Unknown user
            ConflictError: The user already has an application
        """
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User not found")

        existing = (
            self.db.query(InstructorApplication.id)
            .filter(InstructorApplication.user_id == user_id)
            .first()
        )
        if existing:
            raise ConflictError("User already has an instructor application")

        now = datetime.utcnow()
        application = InstructorApplication(
            user_id=user_id,
            full_name=user.full_name,
            phone_number=user.phone or "",
            years_of_experience=0,
            subjects_to_teach=[],
            teaching_motivation="",
            application_data=metadata or {},
            personal_info={},
            professional_background={},
            teaching_information={},
            documents={},
            consents={},
            current_step=0,
            completion_score=0,
            status=ApplicationStatus.DRAFT,
            last_auto_save=now,
            last_saved_at=now
        )
        self.db.add(application)
        user.instructor_status = InstructorStatus.PENDING

        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent create for the same user
            self.db.rollback()
            raise ConflictError("User already has an instructor application")

        logger.info(f"Created instructor application {application.id} for user {user_id}")
        return load_application(self.db, application.id, with_children=True)

    def save_draft(
        self,
        application_id: str,
        sections: Dict[str, Dict[str, Any]],
        auto_save: bool = False
    ) -> InstructorApplication:
        """
        Replace the provided sections, recompute score and step, keep (or
        return) the application in DRAFT. Saving from REQUIRES_MORE_INFO
        reopens the application.
        """
        unknown = set(sections) - set(SECTION_NAMES)
        if unknown:
            raise ValidationFailedError(f"Unknown section(s): {', '.join(sorted(unknown))}")

        try:
            application = load_application(self.db, application_id)
            current_status = application.status
            if current_status not in EDITABLE_STATUSES:
                raise ConflictError(
                    f"Cannot edit an application with status {current_status.value}",
                    ["Only draft applications (or ones awaiting more information) can be edited"]
                )

            merged = {name: getattr(application, name) or {} for name in SECTION_NAMES}
            merged.update(sections)

            score, step = self.scorer.evaluate(merged, self.document_count(application_id))
            now = datetime.utcnow()

            values: Dict[str, Any] = {name: sections[name] for name in sections}
            values.update(denormalize(sections))
            values.update(
                status=ApplicationStatus.DRAFT,
                completion_score=score,
                current_step=step,
                last_saved_at=now
            )
            if auto_save:
                values["last_auto_save"] = now

            if current_status == ApplicationStatus.REQUIRES_MORE_INFO:
                values.update(submitted_at=None, decided_at=None)
                supersede_current_review(self.db, application_id, "applicant resumed editing")

            # Guard on the status we read so a concurrent admin action wins cleanly
            transition(self.db, application_id, (current_status,), values, "save draft of")
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Saved draft {application_id} with {score}% completion (step {step})")
        return load_application(self.db, application_id, with_children=True)

    def update_section(self, application_id: str, name: str, section: Dict[str, Any]) -> InstructorApplication:
        """Single-section save used by the per-step endpoints"""
        return self.save_draft(application_id, {name: section})

    def submit(self, application_id: str, consents: Optional[Dict[str, Any]] = None) -> InstructorApplication:
        """
        DRAFT -> SUBMITTED.

        Raises:
            ConflictError: Not a draft
            ValidationFailedError: A required section is empty
        """
        try:
            application = load_application(self.db, application_id)
            if application.status != ApplicationStatus.DRAFT:
                raise ConflictError(
                    "Application has already been submitted"
                    if application.status != ApplicationStatus.REQUIRES_MORE_INFO
                    else "Application must be reopened before it can be resubmitted",
                    [f"Current status is {application.status.value}"]
                )

            errors = [
                message for name, message in REQUIRED_SECTIONS.items()
                if not is_populated(getattr(application, name))
            ]
            if errors:
                raise ValidationFailedError(
                    f"Application validation failed: {', '.join(errors)}",
                    errors
                )

            score = self.scorer.calculate_score(
                application_sections(application),
                self.document_count(application_id)
            )
            now = datetime.utcnow()
            values = {
                "status": ApplicationStatus.SUBMITTED,
                "submitted_at": now,
                "last_saved_at": now,
                "completion_score": score,
                "current_step": 4,
            }
            if consents:
                values["consents"] = consents

            transition(self.db, application_id, (ApplicationStatus.DRAFT,), values, "submit")
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Submitted application {application_id} with {score}% completion")
        return load_application(self.db, application_id, with_children=True)

    def reopen(self, application_id: str) -> InstructorApplication:
        """REJECTED | REQUIRES_MORE_INFO -> DRAFT, retiring the last decision"""
        try:
            application = load_application(self.db, application_id)
            score, step = self.scorer.evaluate(
                application_sections(application),
                self.document_count(application_id)
            )
            transition(
                self.db,
                application_id,
                REOPENABLE_STATUSES,
                {
                    "status": ApplicationStatus.DRAFT,
                    "submitted_at": None,
                    "decided_at": None,
                    "assigned_reviewer_id": None,
                    "completion_score": score,
                    "current_step": step,
                },
                "reopen"
            )
            supersede_current_review(self.db, application_id, "application reopened for resubmission")
            user = self.db.query(User).filter(User.id == application.user_id).first()
            if user is not None:
                user.instructor_status = InstructorStatus.PENDING
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Reopened application {application_id}")
        return load_application(self.db, application_id, with_children=True)

    def withdraw(self, application_id: str) -> None:
        """Owner deletes the application; not allowed mid-review or after approval"""
        try:
            application = load_application(self.db, application_id)
            transition(self.db, application_id, WITHDRAWABLE_STATUSES, {}, "withdraw")
            user = self.db.query(User).filter(User.id == application.user_id).first()
            if user is not None and user.instructor_status != InstructorStatus.APPROVED:
                user.instructor_status = InstructorStatus.NONE
            self.db.delete(application)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Withdrew application {application_id}")

    def refresh_progress(self, application_id: str) -> None:
        """
        Recompute score and step after a document change. Runs inside the
        caller's transaction, guarded on the editable statuses.
        """
        application = load_application(self.db, application_id)
        score, step = self.scorer.evaluate(
            application_sections(application),
            self.document_count(application_id)
        )
        transition(
            self.db,
            application_id,
            EDITABLE_STATUSES,
            {"completion_score": score, "current_step": step},
            "change documents of"
        )

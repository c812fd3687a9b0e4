"""
Review Service
Manual review aggregation, decision issuance and interview scheduling
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import logging

from instructor_verification.core.exceptions import ConflictError, NotFoundError, ValidationFailedError
from instructor_verification.models import (
    ApplicationStatus, InstructorApplication, InstructorStatus,
    Interview, ManualReview, ManualReviewRecord, ReviewDecision, User
)
from instructor_verification.schemas.review import (
    ManualReviewCreate, InterviewCreate, InterviewUpdate
)
from instructor_verification.services.approval_cascade import ApprovalCascade
from instructor_verification.services.notification_service import (
    NotificationService, get_notification_service
)
from instructor_verification.services.transitions import (
    DECIDABLE_STATUSES, load_application, transition
)

logger = logging.getLogger(__name__)

REVIEW_FIELDS = (
    "documentation_score", "experience_score", "communication_score",
    "technical_score", "professionalism_score", "overall_score",
    "strengths", "weaknesses", "concerns", "recommendations",
    "decision", "decision_reason", "conditional_requirements",
    "requires_interview", "requires_additional_docs", "required_documents",
    "response_deadline",
)

# Interview columns declared NOT NULL
NON_NULL_INTERVIEW_FIELDS = ("scheduled_at", "recording_consent")


def _snapshot(values: Dict[str, Any]) -> Dict[str, Any]:
    """JSON-safe copy of a review payload for the audit log"""
    snapshot = {}
    for key, value in values.items():
        if isinstance(value, datetime):
            value = value.isoformat()
        elif isinstance(value, ReviewDecision):
            value = value.value
        snapshot[key] = value
    return snapshot


def upsert_review(
    db: Session,
    application_id: str,
    reviewer_id: str,
    values: Dict[str, Any]
) -> ManualReview:
    """
    Replace the application's current review and append an audit record.
    Runs inside the caller's transaction.

    Raises:
        ConflictError: A concurrent insert won the unique slot
    """
    now = datetime.utcnow()
    review_values = {field: values.get(field) for field in REVIEW_FIELDS}
    review_values["conditional_requirements"] = list(values.get("conditional_requirements") or [])
    review_values["required_documents"] = list(values.get("required_documents") or [])
    review_values["requires_interview"] = bool(values.get("requires_interview"))
    review_values["requires_additional_docs"] = bool(values.get("requires_additional_docs"))

    review = db.query(ManualReview).filter(ManualReview.application_id == application_id).first()

    # The replaced decision stays in the log, marked superseded
    if review is not None and review.record_id:
        previous = db.query(ManualReviewRecord).filter(ManualReviewRecord.id == review.record_id).first()
        if previous is not None and previous.superseded_at is None:
            previous.superseded_at = now
            previous.superseded_reason = "replaced by a newer review"

    record = ManualReviewRecord(
        application_id=application_id,
        reviewer_id=reviewer_id,
        decision=review_values["decision"],
        decision_reason=review_values["decision_reason"],
        snapshot=_snapshot({"reviewer_id": reviewer_id, **review_values}),
        created_at=now
    )
    db.add(record)

    if review is None:
        review = ManualReview(application_id=application_id)
        db.add(review)

    review.reviewer_id = reviewer_id
    review.reviewed_at = now
    for field, value in review_values.items():
        setattr(review, field, value)

    try:
        db.flush()
    except IntegrityError as e:
        raise ConflictError(
            "Another review was recorded for this application at the same time",
            [str(e.orig)]
        )

    review.record_id = record.id
    return review


def supersede_current_review(db: Session, application_id: str, reason: str) -> bool:
    """
    Retire the current decision so it cannot contradict a later one.
    The audit record is kept and stamped; only the current-decision row goes.
    """
    review = db.query(ManualReview).filter(ManualReview.application_id == application_id).first()
    if review is None:
        return False

    if review.record_id:
        record = db.query(ManualReviewRecord).filter(ManualReviewRecord.id == review.record_id).first()
        if record is not None and record.superseded_at is None:
            record.superseded_at = datetime.utcnow()
            record.superseded_reason = reason

    db.delete(review)
    logger.info(f"Superseded {review.decision.value} review for application {application_id}: {reason}")
    return True


class ReviewService:
    """Admin-side operations on submitted applications"""

    def __init__(self, db: Session, notifier: Optional[NotificationService] = None,
                 cascade: Optional[ApprovalCascade] = None):
        self.db = db
        self.notifier = notifier or get_notification_service()
        self.cascade = cascade or ApprovalCascade()

    # ------------------------------------------------------------------
    # Manual review
    # ------------------------------------------------------------------

    def create_manual_review(
        self,
        application_id: str,
        reviewer_id: str,
        review: ManualReviewCreate
    ) -> ManualReview:
        """Record reviewer scores without changing the application status"""
        try:
            load_application(self.db, application_id)
            self._require_reviewer(reviewer_id)
            # Touch under the status guard so a decision cannot slip in between
            transition(self.db, application_id, DECIDABLE_STATUSES, {}, "review")
            manual_review = upsert_review(self.db, application_id, reviewer_id, review.model_dump())
            self.db.commit()
        except Exception:
            self.db.rollback()
            self.notifier.discard_queued(self.db)
            raise

        self.db.refresh(manual_review)
        logger.info(f"Recorded manual review for application {application_id} by {reviewer_id}")
        return manual_review

    def get_review_history(self, application_id: str) -> List[ManualReviewRecord]:
        load_application(self.db, application_id)
        return (
            self.db.query(ManualReviewRecord)
            .filter(ManualReviewRecord.application_id == application_id)
            .order_by(ManualReviewRecord.created_at)
            .all()
        )

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    def start_review(self, application_id: str, reviewer_id: str) -> InstructorApplication:
        """SUBMITTED -> UNDER_REVIEW"""
        try:
            self._require_reviewer(reviewer_id)
            transition(
                self.db,
                application_id,
                (ApplicationStatus.SUBMITTED,),
                {
                    "status": ApplicationStatus.UNDER_REVIEW,
                    "assigned_reviewer_id": reviewer_id
                },
                "start review of"
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            self.notifier.discard_queued(self.db)
            raise

        logger.info(f"Application {application_id} under review by {reviewer_id}")
        return load_application(self.db, application_id, with_children=True)

    def approve(self, application_id: str, reviewer_id: str, notes: Optional[str] = None) -> InstructorApplication:
        """
        Approve and run the cascade in one transaction. Re-approving an
        approved application refreshes the profile instead of duplicating it.
        """
        try:
            application = load_application(self.db, application_id)
            self._require_reviewer(reviewer_id)
            transition(
                self.db,
                application_id,
                DECIDABLE_STATUSES + (ApplicationStatus.APPROVED,),
                {
                    "status": ApplicationStatus.APPROVED,
                    "decided_at": datetime.utcnow()
                },
                "approve"
            )
            upsert_review(self.db, application_id, reviewer_id, {
                "decision": ReviewDecision.APPROVE,
                "decision_reason": notes,
            })
            self.cascade.run(self.db, application)
            self.db.commit()
        except Exception:
            self.db.rollback()
            self.notifier.discard_queued(self.db)
            raise

        logger.info(f"Approved application {application_id} by {reviewer_id}")
        self.notifier.dispatch_queued(self.db)
        return load_application(self.db, application_id, with_children=True)

    def reject(
        self,
        application_id: str,
        reviewer_id: str,
        reason: str,
        requires_resubmission: bool = False
    ) -> InstructorApplication:
        """REJECTED, or REQUIRES_MORE_INFO when resubmission is invited"""
        new_status = (
            ApplicationStatus.REQUIRES_MORE_INFO if requires_resubmission
            else ApplicationStatus.REJECTED
        )
        try:
            application = load_application(self.db, application_id)
            self._require_reviewer(reviewer_id)
            transition(
                self.db,
                application_id,
                DECIDABLE_STATUSES,
                {"status": new_status, "decided_at": datetime.utcnow()},
                "reject"
            )
            upsert_review(self.db, application_id, reviewer_id, {
                "decision": ReviewDecision.REJECT,
                "decision_reason": reason,
            })
            self._set_instructor_status(
                application.user_id,
                InstructorStatus.PENDING if requires_resubmission else InstructorStatus.REJECTED
            )
            if requires_resubmission:
                message = f"Your instructor application needs changes before it can be approved: {reason}"
            else:
                message = f"Your instructor application was not approved: {reason}"
            NotificationService.enqueue(
                self.db,
                user_id=application.user_id,
                kind="application_rejected",
                title="Instructor application update",
                message=message,
                payload={
                    "application_id": application_id,
                    "status": new_status.value,
                    "requires_resubmission": requires_resubmission
                }
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            self.notifier.discard_queued(self.db)
            raise

        logger.info(f"Rejected application {application_id} -> {new_status.value}")
        self.notifier.dispatch_queued(self.db)
        return load_application(self.db, application_id, with_children=True)

    def request_more_info(
        self,
        application_id: str,
        reviewer_id: str,
        required_info: List[str],
        deadline: Optional[datetime] = None
    ) -> InstructorApplication:
        try:
            application = load_application(self.db, application_id)
            self._require_reviewer(reviewer_id)
            transition(
                self.db,
                application_id,
                DECIDABLE_STATUSES,
                {"status": ApplicationStatus.REQUIRES_MORE_INFO, "decided_at": datetime.utcnow()},
                "request more information for"
            )
            upsert_review(self.db, application_id, reviewer_id, {
                "decision": ReviewDecision.REQUEST_MORE_INFO,
                "decision_reason": "Additional information required",
                "conditional_requirements": required_info,
                "requires_additional_docs": True,
                "response_deadline": deadline,
            })
            self._set_instructor_status(application.user_id, InstructorStatus.PENDING)
            NotificationService.enqueue(
                self.db,
                user_id=application.user_id,
                kind="more_info_requested",
                title="More information needed for your instructor application",
                message="Please provide: " + "; ".join(required_info),
                payload={
                    "application_id": application_id,
                    "required_info": required_info,
                    "deadline": deadline.isoformat() if deadline else None
                }
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            self.notifier.discard_queued(self.db)
            raise

        logger.info(f"Requested more information for application {application_id}")
        self.notifier.dispatch_queued(self.db)
        return load_application(self.db, application_id, with_children=True)

    # ------------------------------------------------------------------
    # Interviews
    # ------------------------------------------------------------------

    def schedule_interview(self, interviewer_id: str, request: InterviewCreate) -> Interview:
        try:
            application = load_application(self.db, request.application_id)
            self._require_reviewer(interviewer_id)
            transition(self.db, request.application_id, DECIDABLE_STATUSES, {}, "schedule an interview for")
            interview = Interview(
                application_id=request.application_id,
                interviewer_id=interviewer_id,
                scheduled_at=request.scheduled_at,
                format=request.format,
                meeting_link=request.meeting_link,
                interview_notes=request.interview_notes,
                recording_consent=False
            )
            self.db.add(interview)
            NotificationService.enqueue(
                self.db,
                user_id=application.user_id,
                kind="interview_scheduled",
                title="Interview scheduled",
                message=f"Your instructor interview is scheduled for {request.scheduled_at.isoformat()}",
                payload={
                    "application_id": request.application_id,
                    "format": request.format.value,
                    "meeting_link": request.meeting_link
                }
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            self.notifier.discard_queued(self.db)
            raise

        self.db.refresh(interview)
        logger.info(f"Scheduled interview {interview.id} for application {request.application_id}")
        self.notifier.dispatch_queued(self.db)
        return interview

    def update_interview(self, interview_id: str, update: InterviewUpdate) -> Interview:
        interview = self.db.query(Interview).filter(Interview.id == interview_id).first()
        if not interview:
            raise NotFoundError("Interview not found")

        changes = update.model_dump(exclude_unset=True)
        cleared = sorted(field for field in NON_NULL_INTERVIEW_FIELDS if field in changes and changes[field] is None)
        if cleared:
            raise ValidationFailedError(
                "Interview fields cannot be cleared",
                [f"{field} must not be null" for field in cleared]
            )

        for field, value in changes.items():
            setattr(interview, field, value)

        if "passed" in changes and "status" not in changes:
            interview.status = "completed"

        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            self.notifier.discard_queued(self.db)
            raise

        self.db.refresh(interview)
        logger.info(f"Updated interview {interview_id}: {', '.join(sorted(changes)) or 'no changes'}")
        return interview

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_reviewer(self, reviewer_id: str) -> User:
        reviewer = self.db.query(User).filter(User.id == reviewer_id).first()
        if not reviewer:
            raise NotFoundError("Reviewer not found")
        return reviewer

    def _set_instructor_status(self, user_id: str, status: InstructorStatus) -> None:
        user = self.db.query(User).filter(User.id == user_id).first()
        if user is not None:
            user.instructor_status = status


"""
Compare-and-swap status transitions for instructor applications

Every status change is a conditional UPDATE guarded by the expected
current status. A zero row count means another actor moved the
application first (or it never existed).
"""
from datetime import datetime
from typing import Any, Dict, Iterable
from sqlalchemy.orm import Session, selectinload
import logging

from instructor_verification.core.exceptions import ConflictError, NotFoundError
from instructor_verification.models import ApplicationStatus, InstructorApplication

logger = logging.getLogger(__name__)

EDITABLE_STATUSES = (ApplicationStatus.DRAFT, ApplicationStatus.REQUIRES_MORE_INFO)
DECIDABLE_STATUSES = (ApplicationStatus.SUBMITTED, ApplicationStatus.UNDER_REVIEW)
REOPENABLE_STATUSES = (ApplicationStatus.REJECTED, ApplicationStatus.REQUIRES_MORE_INFO)
WITHDRAWABLE_STATUSES = (
    ApplicationStatus.DRAFT,
    ApplicationStatus.SUBMITTED,
    ApplicationStatus.REJECTED,
    ApplicationStatus.REQUIRES_MORE_INFO,
)


def load_application(db: Session, application_id: str, with_children: bool = False) -> InstructorApplication:
    """Fetch an application or raise NotFoundError"""
    query = db.query(InstructorApplication)
    if with_children:
        query = query.options(
            selectinload(InstructorApplication.application_documents),
            selectinload(InstructorApplication.ai_verification),
            selectinload(InstructorApplication.manual_review),
            selectinload(InstructorApplication.interviews),
        )
    application = query.filter(InstructorApplication.id == application_id).first()
    if not application:
        raise NotFoundError("Instructor application not found")
    return application


def describe_statuses(statuses: Iterable[ApplicationStatus]) -> str:
    return ", ".join(status.value for status in statuses)


def transition(
    db: Session,
    application_id: str,
    expected: Iterable[ApplicationStatus],
    values: Dict[str, Any],
    action: str
) -> None:
    """
    Conditionally write ``values`` if the application is in one of the
    ``expected`` statuses. Runs inside the caller's transaction; the caller
    commits.

    Raises:
        NotFoundError: Application does not exist
        ConflictError: Current status is not one of ``expected``
    """
    expected = tuple(expected)
    values = dict(values)
    values.setdefault("last_saved_at", datetime.utcnow())

    updated = (
        db.query(InstructorApplication)
        .filter(
            InstructorApplication.id == application_id,
            InstructorApplication.status.in_(expected)
        )
        .update(values, synchronize_session=False)
    )

    if updated:
        return

    current = (
        db.query(InstructorApplication.status)
        .filter(InstructorApplication.id == application_id)
        .scalar()
    )
    if current is None:
        raise NotFoundError("Instructor application not found")

    logger.warning(
        f"Rejected {action} on application {application_id}: "
        f"status is {current.value}, expected one of [{describe_statuses(expected)}]"
    )
    raise ConflictError(
        f"Cannot {action} an application with status {current.value}",
        [f"Expected status in [{describe_statuses(expected)}], found {current.value}"]
    )

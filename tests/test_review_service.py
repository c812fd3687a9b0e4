"""
Tests for manual review aggregation, decisions and interviews
"""
import pytest
from datetime import datetime, timedelta
from pydantic import ValidationError as PydanticValidationError

from instructor_verification.core.exceptions import ConflictError, NotFoundError, ValidationFailedError
from instructor_verification.models import (
    ApplicationStatus, InstructorProfile, InstructorStatus, ManualReview,
    ManualReviewRecord, NotificationRequest, NotificationStatus, ReviewDecision, UserRole
)
from instructor_verification.schemas import InterviewCreate, InterviewUpdate, ManualReviewCreate
from instructor_verification.services import ApplicationService, ApprovalCascade, ReviewService

from helpers import CONSENTS, PERSONAL_INFO, PROFESSIONAL_BACKGROUND, TEACHING_INFORMATION


def submitted_application(db, user):
    service = ApplicationService(db)
    application = service.create_application(user.id)
    service.save_draft(application.id, {
        "personal_info": PERSONAL_INFO,
        "professional_background": PROFESSIONAL_BACKGROUND,
        "teaching_information": TEACHING_INFORMATION,
    })
    return service.submit(application.id, CONSENTS)


class TestDecisions:
    """Decision issuance over submitted applications"""

    @pytest.fixture(autouse=True)
    def setup(self, db, applicant, admin, sink):
        self.db = db
        self.applicant = applicant
        self.admin = admin
        self.sink = sink
        self.service = ReviewService(db)
        self.application = submitted_application(db, applicant)

    def test_start_review_then_approve(self):
        application = self.service.start_review(self.application.id, self.admin.id)
        assert application.status == ApplicationStatus.UNDER_REVIEW
        assert application.assigned_reviewer_id == self.admin.id

        application = self.service.approve(self.application.id, self.admin.id, "great fit")
        assert application.status == ApplicationStatus.APPROVED
        assert application.decided_at is not None
        assert application.manual_review.decision == ReviewDecision.APPROVE
        assert application.manual_review.decision_reason == "great fit"

        self.db.refresh(self.applicant)
        assert self.applicant.role == UserRole.INSTRUCTOR
        assert self.applicant.instructor_status == InstructorStatus.APPROVED

        profile = self.db.query(InstructorProfile).filter(InstructorProfile.user_id == self.applicant.id).one()
        assert profile.is_verified is True
        assert profile.total_students == 0

        welcome = self.db.query(NotificationRequest).filter(NotificationRequest.kind == "welcome").one()
        assert welcome.status == NotificationStatus.SENT
        assert self.sink.sent[-1]["user_id"] == self.applicant.id

    def test_start_review_twice_conflicts(self):
        self.service.start_review(self.application.id, self.admin.id)

        with pytest.raises(ConflictError):
            self.service.start_review(self.application.id, self.admin.id)

    def test_approve_directly_from_submitted(self):
        application = self.service.approve(self.application.id, self.admin.id)
        assert application.status == ApplicationStatus.APPROVED

    def test_reapproval_does_not_duplicate_profile(self):
        self.service.approve(self.application.id, self.admin.id, "first")
        self.service.approve(self.application.id, self.admin.id, "again")

        assert self.db.query(InstructorProfile).filter(
            InstructorProfile.user_id == self.applicant.id
        ).count() == 1
        assert self.db.query(ManualReview).count() == 1
        assert self.db.query(ManualReviewRecord).count() == 2

    def test_reject(self):
        application = self.service.reject(self.application.id, self.admin.id, "insufficient experience")

        assert application.status == ApplicationStatus.REJECTED
        assert application.manual_review.decision == ReviewDecision.REJECT
        assert application.manual_review.decision_reason == "insufficient experience"

        request = self.db.query(NotificationRequest).filter(
            NotificationRequest.kind == "application_rejected"
        ).one()
        assert request.user_id == self.applicant.id
        assert request.payload["requires_resubmission"] is False

        self.db.refresh(self.applicant)
        assert self.applicant.instructor_status == InstructorStatus.REJECTED
        assert self.db.query(InstructorProfile).count() == 0

    def test_reject_with_resubmission(self):
        application = self.service.reject(
            self.application.id, self.admin.id, "add certificates", requires_resubmission=True
        )
        assert application.status == ApplicationStatus.REQUIRES_MORE_INFO
        assert application.manual_review.decision == ReviewDecision.REJECT

    @pytest.mark.parametrize("decide", ["reject", "request_more_info"])
    def test_resubmission_paths_leave_user_pending(self, decide):
        self.applicant.instructor_status = InstructorStatus.NONE
        self.db.commit()

        if decide == "reject":
            self.service.reject(self.application.id, self.admin.id, "add certificates", requires_resubmission=True)
        else:
            self.service.request_more_info(self.application.id, self.admin.id, ["Diploma"])

        self.db.refresh(self.applicant)
        assert self.applicant.instructor_status == InstructorStatus.PENDING

    def test_request_more_info(self):
        deadline = datetime.utcnow() + timedelta(days=14)
        application = self.service.request_more_info(
            self.application.id, self.admin.id, ["Teaching sample", "Diploma"], deadline
        )

        assert application.status == ApplicationStatus.REQUIRES_MORE_INFO
        review = application.manual_review
        assert review.decision == ReviewDecision.REQUEST_MORE_INFO
        assert review.conditional_requirements == ["Teaching sample", "Diploma"]
        assert review.response_deadline is not None
        assert "Teaching sample" in self.sink.sent[-1]["message"]

    def test_decision_on_decided_application_conflicts(self):
        self.service.reject(self.application.id, self.admin.id, "no")

        with pytest.raises(ConflictError):
            self.service.approve(self.application.id, self.admin.id)
        with pytest.raises(ConflictError):
            self.service.request_more_info(self.application.id, self.admin.id, ["anything"])

    def test_unknown_reviewer(self):
        with pytest.raises(NotFoundError):
            self.service.start_review(self.application.id, "ghost")

        application = ApplicationService(self.db).get_application(application_id=self.application.id)
        assert application.status == ApplicationStatus.SUBMITTED

    def test_cascade_failure_rolls_back_approval(self):
        class BrokenCascade(ApprovalCascade):
            def materialize_profile(self, db, application):
                raise RuntimeError("profile store unavailable")

        service = ReviewService(self.db, cascade=BrokenCascade())
        with pytest.raises(RuntimeError):
            service.approve(self.application.id, self.admin.id)

        application = ApplicationService(self.db).get_application(application_id=self.application.id)
        assert application.status == ApplicationStatus.SUBMITTED
        assert application.manual_review is None
        self.db.refresh(self.applicant)
        assert self.applicant.role == UserRole.USER
        assert self.db.query(NotificationRequest).count() == 0

    def test_failed_delivery_keeps_decision(self, admin):
        class FailingSink:
            def notify(self, user_id, title, message, payload):
                raise ConnectionError("push gateway down")

        self.service.notifier.sink = FailingSink()
        application = self.service.reject(self.application.id, admin.id, "no")

        assert application.status == ApplicationStatus.REJECTED
        request = self.db.query(NotificationRequest).one()
        assert request.status == NotificationStatus.FAILED
        assert "push gateway down" in request.error_message


class TestManualReview:

    @pytest.fixture(autouse=True)
    def setup(self, db, applicant, admin):
        self.db = db
        self.admin = admin
        self.service = ReviewService(db)
        self.application = submitted_application(db, applicant)

    def test_second_review_replaces_first(self, make_user):
        other_admin = make_user(role=UserRole.ADMIN)
        self.service.create_manual_review(self.application.id, self.admin.id, ManualReviewCreate(
            decision=ReviewDecision.REJECT, overall_score=3, concerns="thin portfolio"
        ))
        review = self.service.create_manual_review(self.application.id, other_admin.id, ManualReviewCreate(
            decision=ReviewDecision.APPROVE, overall_score=8.5, strengths="clear communicator"
        ))

        assert self.db.query(ManualReview).count() == 1
        assert review.reviewer_id == other_admin.id
        assert review.decision == ReviewDecision.APPROVE
        assert review.concerns is None

        history = self.service.get_review_history(self.application.id)
        assert [r.decision for r in history] == [ReviewDecision.REJECT, ReviewDecision.APPROVE]
        assert history[0].superseded_at is not None
        assert history[1].superseded_at is None
        assert history[1].snapshot["overall_score"] == 8.5

    def test_review_does_not_change_status(self):
        self.service.create_manual_review(self.application.id, self.admin.id, ManualReviewCreate(
            decision=ReviewDecision.APPROVE
        ))
        application = ApplicationService(self.db).get_application(application_id=self.application.id)
        assert application.status == ApplicationStatus.SUBMITTED

    def test_review_requires_submitted_application(self, make_user):
        draft = ApplicationService(self.db).create_application(make_user().id)
        with pytest.raises(ConflictError):
            self.service.create_manual_review(draft.id, self.admin.id, ManualReviewCreate(
                decision=ReviewDecision.APPROVE
            ))


class TestInterviews:

    @pytest.fixture(autouse=True)
    def setup(self, db, applicant, admin, sink):
        self.db = db
        self.admin = admin
        self.sink = sink
        self.service = ReviewService(db)
        self.application = submitted_application(db, applicant)

    def test_schedule_and_complete(self):
        interview = self.service.schedule_interview(self.admin.id, InterviewCreate(
            application_id=self.application.id,
            scheduled_at=datetime.utcnow() + timedelta(days=2),
            meeting_link="https://meet.example.com/abc"
        ))
        assert interview.status == "scheduled"
        assert self.sink.sent[-1]["title"] == "Interview scheduled"

        interview = self.service.update_interview(interview.id, InterviewUpdate(
            overall_score=8, passed=True, feedback="Strong demo lesson"
        ))
        assert interview.status == "completed"
        assert interview.passed is True

        application = ApplicationService(self.db).get_application(application_id=self.application.id)
        assert application.status == ApplicationStatus.SUBMITTED
        assert len(application.interviews) == 1

    def test_cannot_schedule_for_draft(self, make_user):
        draft = ApplicationService(self.db).create_application(make_user().id)
        with pytest.raises(ConflictError):
            self.service.schedule_interview(self.admin.id, InterviewCreate(
                application_id=draft.id,
                scheduled_at=datetime.utcnow() + timedelta(days=1)
            ))

    def test_update_unknown_interview(self):
        with pytest.raises(NotFoundError):
            self.service.update_interview("missing", InterviewUpdate(feedback="n/a"))

    def test_clearing_required_interview_fields_is_rejected(self):
        interview = self.service.schedule_interview(self.admin.id, InterviewCreate(
            application_id=self.application.id,
            scheduled_at=datetime.utcnow() + timedelta(days=2)
        ))

        with pytest.raises(PydanticValidationError):
            InterviewUpdate(recording_consent=None)

        with pytest.raises(ValidationFailedError) as exc_info:
            self.service.update_interview(
                interview.id, InterviewUpdate.model_construct(recording_consent=None, scheduled_at=None)
            )
        assert exc_info.value.errors == [
            "recording_consent must not be null",
            "scheduled_at must not be null",
        ]

        self.db.refresh(interview)
        assert interview.recording_consent is False
        assert interview.scheduled_at is not None

        interview = self.service.update_interview(interview.id, InterviewUpdate(recording_consent=True))
        assert interview.recording_consent is True

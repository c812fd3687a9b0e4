"""
Tests for the document verification tracker
"""
import pytest

from instructor_verification.core.exceptions import ConflictError, NotFoundError, ValidationFailedError
from instructor_verification.models import ApplicationStatus, DocumentType, VerificationStatus
from instructor_verification.schemas import DocumentCreate
from instructor_verification.services import ApplicationService, DocumentService

from helpers import CONSENTS, PERSONAL_INFO, PROFESSIONAL_BACKGROUND, TEACHING_INFORMATION


def document(document_type=DocumentType.RESUME, name="cv.pdf"):
    return DocumentCreate(
        document_type=document_type,
        file_url=f"https://files.example.com/{name}",
        file_name=name,
        file_size=120_000,
        mime_type="application/pdf",
        metadata={"pages": 2}
    )


class TestDocumentService:

    @pytest.fixture(autouse=True)
    def setup(self, db, applicant):
        self.db = db
        self.applications = ApplicationService(db)
        self.service = DocumentService(db)
        self.application = self.applications.create_application(applicant.id)
        self.applications.save_draft(self.application.id, {
            "personal_info": PERSONAL_INFO,
            "professional_background": PROFESSIONAL_BACKGROUND,
            "teaching_information": TEACHING_INFORMATION,
        })

    def test_add_document_starts_as_draft_and_rescores(self):
        record = self.service.add_document(self.application.id, document())

        assert record.verification_status == VerificationStatus.DRAFT
        assert record.original_name == "cv.pdf"
        assert record.metadata_json == {"pages": 2}

        application = self.applications.get_application(application_id=self.application.id)
        assert application.completion_score == 77
        assert application.current_step == 4
        assert len(application.application_documents) == 1

    def test_document_points_cap_at_25(self):
        for index in range(10):
            self.service.add_document(self.application.id, document(name=f"cert{index}.pdf"))

        application = self.applications.get_application(application_id=self.application.id)
        assert application.completion_score == 100

    def test_delete_document_rescores(self):
        record = self.service.add_document(self.application.id, document())
        self.service.delete_document(self.application.id, record.id)

        application = self.applications.get_application(application_id=self.application.id)
        assert application.completion_score == 75
        assert application.current_step == 3
        assert application.application_documents == []

    def test_delete_document_of_another_application(self, make_user):
        other = self.applications.create_application(make_user().id)
        record = self.service.add_document(other.id, document())

        with pytest.raises(NotFoundError):
            self.service.delete_document(self.application.id, record.id)

    def test_add_document_to_missing_application(self):
        with pytest.raises(NotFoundError):
            self.service.add_document("missing", document())

    def test_documents_frozen_after_submission(self):
        self.applications.submit(self.application.id, CONSENTS)

        with pytest.raises(ConflictError):
            self.service.add_document(self.application.id, document())
        application = self.applications.get_application(application_id=self.application.id)
        assert application.application_documents == []

    def test_review_document_leaves_application_status(self, admin):
        record = self.service.add_document(self.application.id, document(DocumentType.IDENTITY_DOCUMENT, "id.png"))
        self.applications.submit(self.application.id, CONSENTS)

        reviewed = self.service.review_document(record.id, VerificationStatus.APPROVED, admin.id, "matches")

        assert reviewed.verification_status == VerificationStatus.APPROVED
        assert reviewed.reviewer_id == admin.id
        assert reviewed.review_notes == "matches"
        assert reviewed.reviewed_at is not None
        application = self.applications.get_application(application_id=self.application.id)
        assert application.status == ApplicationStatus.SUBMITTED

    def test_review_document_requires_a_verdict(self, admin):
        record = self.service.add_document(self.application.id, document())
        with pytest.raises(ValidationFailedError):
            self.service.review_document(record.id, VerificationStatus.DRAFT, admin.id)

    def test_review_unknown_document_or_reviewer(self, admin):
        record = self.service.add_document(self.application.id, document())
        with pytest.raises(NotFoundError):
            self.service.review_document("missing", VerificationStatus.APPROVED, admin.id)
        with pytest.raises(NotFoundError):
            self.service.review_document(record.id, VerificationStatus.APPROVED, "ghost")

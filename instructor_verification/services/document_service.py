"""
Document Service
Tracks file references attached to an application and their review outcome
"""
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session
import logging

from instructor_verification.core.exceptions import NotFoundError, ValidationFailedError
from instructor_verification.models import ApplicationDocument, User, VerificationStatus
from instructor_verification.schemas.application import DocumentCreate
from instructor_verification.services.application_service import ApplicationService
from instructor_verification.services.transitions import load_application

logger = logging.getLogger(__name__)


class DocumentService:
    """Document verification tracker"""

    def __init__(self, db: Session):
        self.db = db
        self.applications = ApplicationService(db)

    def add_document(self, application_id: str, document: DocumentCreate) -> ApplicationDocument:
        """
        Attach a file reference (status DRAFT) and refresh the completion score.

        Raises:
            NotFoundError: Application missing
            ConflictError: Application is no longer editable
        """
        try:
            load_application(self.db, application_id)
            record = ApplicationDocument(
                application_id=application_id,
                document_type=document.document_type,
                file_url=document.file_url,
                file_name=document.file_name,
                original_name=document.original_name or document.file_name,
                file_size=document.file_size,
                mime_type=document.mime_type,
                thumbnail_url=document.thumbnail_url,
                metadata_json=document.metadata,
                verification_status=VerificationStatus.DRAFT
            )
            self.db.add(record)
            self.db.flush()
            self.applications.refresh_progress(application_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(record)
        logger.info(f"Added {record.document_type.value} document {record.id} to application {application_id}")
        return record

    def delete_document(self, application_id: str, document_id: str) -> None:
        """
        Raises:
            NotFoundError: Document missing or attached to another application
        """
        try:
            record = self.db.query(ApplicationDocument).filter(
                ApplicationDocument.id == document_id,
                ApplicationDocument.application_id == application_id
            ).first()
            if not record:
                raise NotFoundError("Document not found")

            self.db.delete(record)
            self.db.flush()
            self.applications.refresh_progress(application_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Deleted document {document_id} from application {application_id}")

    def review_document(
        self,
        document_id: str,
        status: VerificationStatus,
        reviewer_id: str,
        notes: Optional[str] = None
    ) -> ApplicationDocument:
        """Record a reviewer verdict on one document; the application status is untouched"""
        if status == VerificationStatus.DRAFT:
            raise ValidationFailedError("A document review must approve or reject the document")

        record = self.db.query(ApplicationDocument).filter(ApplicationDocument.id == document_id).first()
        if not record:
            raise NotFoundError("Document not found")

        reviewer = self.db.query(User).filter(User.id == reviewer_id).first()
        if not reviewer:
            raise NotFoundError("Reviewer not found")

        record.verification_status = status
        record.reviewer_id = reviewer_id
        record.review_notes = notes
        record.reviewed_at = datetime.utcnow()

        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(record)
        logger.info(f"Document {document_id} marked {status.value} by {reviewer_id}")
        return record

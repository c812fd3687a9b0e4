"""
Pydantic schemas for instructor applications

Each intake section is a tagged, versioned model. Unknown keys are kept
(``extra="allow"``) so older clients and newer form fields round-trip.
"""
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from instructor_verification.models import (
    ApplicationStatus, DocumentType, VerificationStatus
)
from instructor_verification.schemas.review import (
    AIVerificationResponse, ManualReviewResponse, InterviewResponse
)

SECTION_META_KEYS = {"section", "schema_version"}
WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class SectionModel(BaseModel):
    """Common behaviour for intake sections"""
    model_config = ConfigDict(extra="allow")

    schema_version: int = Field(1, ge=1)

    def to_document(self) -> Dict[str, Any]:
        """Stored form: populated fields and extras, versioned when non-empty"""
        content = self.model_dump(exclude_none=True, exclude=SECTION_META_KEYS)
        if content:
            content["schema_version"] = self.schema_version
        return content


class LanguageSkill(BaseModel):
    language: str
    proficiency: Optional[str] = None


class EducationEntry(BaseModel):
    model_config = ConfigDict(extra="allow")

    degree: str
    institution: Optional[str] = None
    field_of_study: Optional[str] = None
    graduation_year: Optional[int] = None


class WorkExperienceEntry(BaseModel):
    model_config = ConfigDict(extra="allow")

    title: str
    company: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    description: Optional[str] = None


class SubjectEntry(BaseModel):
    subject: str
    level: Optional[str] = None


class TimeRange(BaseModel):
    start: str = Field(..., pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    end: str = Field(..., pattern=r"^([01]\d|2[0-3]):[0-5]\d$")


class PersonalInfoSection(SectionModel):
    section: Literal["personal_info"] = "personal_info"

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    date_of_birth: Optional[str] = None
    nationality: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    bio: Optional[str] = None
    languages_spoken: Optional[List[Union[LanguageSkill, str]]] = None


class ProfessionalBackgroundSection(SectionModel):
    section: Literal["professional_background"] = "professional_background"

    current_job_title: Optional[str] = None
    current_employer: Optional[str] = None
    years_of_experience: Optional[int] = Field(None, ge=0, le=80)
    industry: Optional[str] = None
    education: Optional[List[Union[EducationEntry, str]]] = None
    work_experience: Optional[List[WorkExperienceEntry]] = None
    skills: Optional[List[str]] = None
    linkedin_profile: Optional[str] = None
    portfolio_url: Optional[str] = None


class TeachingInformationSection(SectionModel):
    section: Literal["teaching_information"] = "teaching_information"

    subjects_to_teach: Optional[List[Union[SubjectEntry, str]]] = None
    teaching_motivation: Optional[str] = None
    teaching_experience: Optional[str] = None
    teaching_style: Optional[str] = None
    target_audience: Optional[str] = None
    teaching_categories: Optional[List[str]] = None
    preferred_formats: Optional[List[str]] = None
    weekly_availability: Optional[Dict[str, List[TimeRange]]] = None

    @field_validator("weekly_availability")
    @classmethod
    def check_weekdays(cls, value):
        if value is None:
            return value
        unknown = [day for day in value if day.lower() not in WEEKDAYS]
        if unknown:
            raise ValueError(f"Unknown weekday(s): {', '.join(unknown)}")
        return {day.lower(): slots for day, slots in value.items()}


class DocumentsSection(SectionModel):
    section: Literal["documents"] = "documents"

    professional_certifications: Optional[List[str]] = None
    resume_url: Optional[str] = None
    identity_document_url: Optional[str] = None
    education_certificate_urls: Optional[List[str]] = None


class ConsentsSection(SectionModel):
    section: Literal["consents"] = "consents"

    terms_accepted: Optional[bool] = None
    data_processing: Optional[bool] = None
    background_check: Optional[bool] = None
    code_of_conduct: Optional[bool] = None


class ApplicationCreate(BaseModel):
    """Body for starting a verification"""
    metadata: Dict[str, Any] = Field(default_factory=dict)


class SaveDraftRequest(BaseModel):
    """Partial intake; omitted sections keep their stored value"""
    personal_info: Optional[PersonalInfoSection] = None
    professional_background: Optional[ProfessionalBackgroundSection] = None
    teaching_information: Optional[TeachingInformationSection] = None
    documents: Optional[DocumentsSection] = None
    consents: Optional[ConsentsSection] = None

    def sections(self) -> Dict[str, Dict[str, Any]]:
        """Provided sections in stored form"""
        provided = {}
        for name in type(self).model_fields:
            section = getattr(self, name)
            if section is not None:
                provided[name] = section.to_document()
        return provided


class SubmitRequest(BaseModel):
    consents: ConsentsSection = Field(default_factory=ConsentsSection)


class DocumentCreate(BaseModel):
    """File reference produced by the external file store"""
    document_type: DocumentType
    file_url: str = Field(..., min_length=1, max_length=1000)
    file_name: str = Field(..., min_length=1, max_length=255)
    original_name: Optional[str] = None
    file_size: int = Field(..., ge=0)
    mime_type: str
    thumbnail_url: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class DocumentResponse(BaseModel):
    id: str
    application_id: str
    document_type: DocumentType
    file_url: str
    file_name: str
    original_name: Optional[str] = None
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    thumbnail_url: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict, validation_alias=AliasChoices("metadata_json", "metadata"))
    verification_status: VerificationStatus
    reviewer_id: Optional[str] = None
    review_notes: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    uploaded_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }


class ApplicationResponse(BaseModel):
    """Application with its sub-entities"""
    id: str
    user_id: str
    status: ApplicationStatus
    personal_info: Dict[str, Any] = Field(default_factory=dict)
    professional_background: Dict[str, Any] = Field(default_factory=dict)
    teaching_information: Dict[str, Any] = Field(default_factory=dict)
    documents: Dict[str, Any] = Field(default_factory=dict)
    consents: Dict[str, Any] = Field(default_factory=dict)

    full_name: Optional[str] = None
    phone_number: Optional[str] = None
    nationality: Optional[str] = None
    current_job_title: Optional[str] = None
    years_of_experience: Optional[int] = None
    subjects_to_teach: List[str] = Field(default_factory=list)
    teaching_motivation: Optional[str] = None

    current_step: int
    completion_score: int
    submitted_at: Optional[datetime] = None
    decided_at: Optional[datetime] = None
    assigned_reviewer_id: Optional[str] = None
    last_auto_save: Optional[datetime] = None
    last_saved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    application_documents: List[DocumentResponse] = Field(default_factory=list)
    ai_verification: Optional[AIVerificationResponse] = None
    manual_review: Optional[ManualReviewResponse] = None
    interviews: List[InterviewResponse] = Field(default_factory=list)

    model_config = {
        "from_attributes": True
    }


class ApplicationStatusSnapshot(BaseModel):
    id: str
    status: ApplicationStatus
    submitted_at: Optional[datetime] = None
    last_saved_at: Optional[datetime] = None
    current_step: int
    completion_score: int

    model_config = {
        "from_attributes": True
    }


class VerificationResponse(BaseModel):
    """Structured result for mutating operations"""
    success: bool
    message: str
    data: Optional[ApplicationResponse] = None
    errors: Optional[List[str]] = None


class VerificationStatusResponse(BaseModel):
    success: bool
    message: str
    data: Optional[ApplicationStatusSnapshot] = None
    errors: Optional[List[str]] = None


class DocumentUploadResponse(BaseModel):
    success: bool
    message: str
    document: Optional[DocumentResponse] = None
    errors: Optional[List[str]] = None

"""
AI Verification Service
Advisory scoring of an application by an external model

Provides:
- Identity / education / experience confidences (0-1)
- Content quality, language proficiency and professionalism scores (0-1)
- Risk score, overall score and a recommendation

The result is never used to change the application status.
"""

import asyncio
import json
import time
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple
from fastapi.concurrency import run_in_threadpool
from openai import AsyncOpenAI
from sqlalchemy.orm import Session
import logging

from instructor_verification.config import settings
from instructor_verification.models import (
    AIProcessingStatus, AIRecommendation, AIVerification, DocumentType
)
from instructor_verification.services.completion_scorer import is_populated
from instructor_verification.services.transitions import load_application

logger = logging.getLogger(__name__)

SCORE_FIELDS = (
    "identity_confidence", "education_confidence", "experience_confidence",
    "content_quality_score", "language_proficiency", "professionalism_score",
)

SYSTEM_PROMPT = """You are an expert reviewer vetting applications from people who want to teach on an online learning platform.

Score the application on each dimension from 0.0 to 1.0:
- identity_confidence: personal details are complete and consistent with identity documents
- education_confidence: claimed education is plausible and backed by certificates
- experience_confidence: claimed professional experience is plausible and specific
- content_quality_score: clarity and depth of the teaching motivation and experience
- language_proficiency: quality of written language
- professionalism_score: tone, completeness and professional presence

Also provide:
- risk_score (0.0-1.0): likelihood the application is fraudulent or misrepresented
- risk_factors: list of short strings
- identity_flags, education_flags, experience_flags: lists of short strings
- recommendation: APPROVE | REJECT | MANUAL_REVIEW_REQUIRED
- recommendation_reason: one or two sentences

Return ONLY a JSON object with exactly these keys. Be critical; do not inflate scores."""


def clamp_unit(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return round(min(1.0, max(0.0, float(value))), 4)
    except (TypeError, ValueError):
        return None


def derive_recommendation(overall: Optional[float], risk: Optional[float]) -> AIRecommendation:
    """Conservative mapping; anything ambiguous goes to a human"""
    if overall is None or risk is None:
        return AIRecommendation.MANUAL_REVIEW_REQUIRED
    if overall >= 0.8 and risk <= 0.2:
        return AIRecommendation.APPROVE
    if overall < 0.4 or risk >= 0.7:
        return AIRecommendation.REJECT
    return AIRecommendation.MANUAL_REVIEW_REQUIRED


def build_snapshot(application) -> Dict[str, Any]:
    """Everything the scorer may look at"""
    return {
        "personal_info": application.personal_info or {},
        "professional_background": application.professional_background or {},
        "teaching_information": application.teaching_information or {},
        "documents": application.documents or {},
        "consents": application.consents or {},
        "attached_documents": [
            {
                "document_type": document.document_type.value,
                "mime_type": document.mime_type,
                "verification_status": document.verification_status.value,
            }
            for document in application.application_documents
        ],
    }


class HeuristicScorer:
    """Deterministic scorer used when no model is configured"""

    provider = "heuristic"

    async def score(self, snapshot: Dict[str, Any]) -> Dict[str, Any]:
        personal = snapshot.get("personal_info") or {}
        professional = snapshot.get("professional_background") or {}
        teaching = snapshot.get("teaching_information") or {}
        consents = snapshot.get("consents") or {}
        attached = {d["document_type"] for d in snapshot.get("attached_documents", [])}

        identity = 0.3
        if personal.get("first_name") and personal.get("last_name"):
            identity += 0.3
        if DocumentType.IDENTITY_DOCUMENT.value in attached:
            identity += 0.4

        education = 0.2
        if professional.get("education"):
            education += 0.4
        if attached & {DocumentType.EDUCATION_CERTIFICATE.value, DocumentType.PROFESSIONAL_CERTIFICATION.value}:
            education += 0.4

        years = professional.get("years_of_experience") or 0
        experience = min(1.0, 0.3 + 0.07 * years)

        motivation = teaching.get("teaching_motivation") or ""
        content = min(1.0, 0.3 + len(motivation) / 500)

        language = 0.8 if personal.get("languages_spoken") else 0.5
        professionalism = 0.4
        if professional.get("linkedin_profile") or professional.get("portfolio_url"):
            professionalism += 0.3
        if consents and all(bool(v) for k, v in consents.items() if k != "schema_version"):
            professionalism += 0.3

        flags = []
        if DocumentType.IDENTITY_DOCUMENT.value not in attached:
            flags.append("No identity document attached")
        if not is_populated(teaching):
            flags.append("Teaching information missing")

        return {
            "identity_confidence": identity,
            "identity_flags": [] if DocumentType.IDENTITY_DOCUMENT.value in attached else ["identity document missing"],
            "education_confidence": education,
            "education_flags": [],
            "experience_confidence": experience,
            "experience_flags": [] if years else ["no stated experience"],
            "content_quality_score": content,
            "language_proficiency": language,
            "professionalism_score": professionalism,
            "risk_factors": flags,
            "risk_score": round(0.15 * len(flags), 4),
            "recommendation_reason": "Heuristic assessment from intake completeness",
        }


class OpenAIScorer:
    """Scores the application with a chat-completions model"""

    provider = "openai"

    def __init__(self, api_key: str, model: str, timeout: float):
        self.client = AsyncOpenAI(api_key=api_key, timeout=timeout)
        self.model = model

    async def score(self, snapshot: Dict[str, Any]) -> Dict[str, Any]:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": f"Application:\n\n{json.dumps(snapshot, indent=2, default=str)}"}
            ],
            response_format={"type": "json_object"},
            temperature=0.2,  # Low temperature for consistent scoring
            max_tokens=1000
        )
        return json.loads(response.choices[0].message.content)


class AIVerificationService:
    """Creates AI verification records and fills them from the scorer"""

    def __init__(self, scorer=None, timeout: Optional[float] = None):
        if scorer is None:
            if settings.OPENAI_API_KEY:
                scorer = OpenAIScorer(
                    settings.OPENAI_API_KEY,
                    settings.AI_VERIFICATION_MODEL,
                    settings.AI_VERIFICATION_TIMEOUT
                )
                logger.info("AI verification using OpenAI scorer")
            else:
                logger.warning("OpenAI API key not configured - using heuristic scorer")
                scorer = HeuristicScorer()
        self.scorer = scorer
        self.timeout = timeout if timeout is not None else settings.AI_VERIFICATION_TIMEOUT

    def trigger(self, db: Session, application_id: str) -> AIVerification:
        """
        Create (or reset) the application's AI verification in PENDING state.
        Scoring is done separately by ``process``.
        """
        load_application(db, application_id)

        verification = db.query(AIVerification).filter(
            AIVerification.application_id == application_id
        ).first()
        if verification is None:
            verification = AIVerification(application_id=application_id)
            db.add(verification)

        verification.recommendation = AIRecommendation.MANUAL_REVIEW_REQUIRED
        verification.processing_status = AIProcessingStatus.PENDING
        verification.verification_provider = self.scorer.provider
        verification.error_message = None
        verification.processed_at = None

        try:
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(verification)
        logger.info(f"Triggered AI verification {verification.id} for application {application_id}")
        return verification

    def get(self, db: Session, application_id: str) -> Optional[AIVerification]:
        load_application(db, application_id)
        return db.query(AIVerification).filter(
            AIVerification.application_id == application_id
        ).first()

    async def process(self, db: Session, application_id: str) -> AIVerification:
        """
        Run the scorer and store the outcome. Timeouts and scorer errors
        leave MANUAL_REVIEW_REQUIRED with status FAILED.

        Session work runs in the threadpool; only the scorer is awaited
        on the event loop.
        """
        verification, snapshot = await run_in_threadpool(self._prepare, db, application_id)
        started = time.monotonic()

        try:
            result = await asyncio.wait_for(self.scorer.score(snapshot), timeout=self.timeout)
            self._apply(verification, result)
            verification.processing_status = AIProcessingStatus.COMPLETED
            verification.error_message = None
            logger.info(
                f"AI verification for application {application_id}: "
                f"{verification.recommendation.value} (overall {verification.overall_score})"
            )
        except asyncio.TimeoutError:
            logger.warning(f"AI verification for application {application_id} timed out after {self.timeout}s")
            self._fail(verification, f"Scorer timed out after {self.timeout} seconds")
        except Exception as e:
            logger.error(f"AI verification for application {application_id} failed: {e}")
            self._fail(verification, str(e))

        verification.processing_time_ms = int((time.monotonic() - started) * 1000)
        verification.processed_at = datetime.utcnow()

        return await run_in_threadpool(self._record, db, verification)

    @staticmethod
    def _prepare(db: Session, application_id: str) -> Tuple[AIVerification, Dict[str, Any]]:
        application = load_application(db, application_id, with_children=True)
        verification = application.ai_verification
        if verification is None:
            verification = AIVerification(application_id=application_id)
            db.add(verification)
        return verification, build_snapshot(application)

    @staticmethod
    def _record(db: Session, verification: AIVerification) -> AIVerification:
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(verification)
        return verification

    def _apply(self, verification: AIVerification, result: Dict[str, Any]) -> None:
        for field in SCORE_FIELDS:
            setattr(verification, field, clamp_unit(result.get(field)))

        verification.identity_verified = (verification.identity_confidence or 0) >= 0.7
        verification.education_verified = (verification.education_confidence or 0) >= 0.7
        verification.experience_verified = (verification.experience_confidence or 0) >= 0.7
        verification.identity_flags = list(result.get("identity_flags") or [])
        verification.education_flags = list(result.get("education_flags") or [])
        verification.experience_flags = list(result.get("experience_flags") or [])
        verification.risk_factors = list(result.get("risk_factors") or [])
        verification.risk_score = clamp_unit(result.get("risk_score"))

        scores = [getattr(verification, field) for field in SCORE_FIELDS]
        scores = [score for score in scores if score is not None]
        overall = clamp_unit(result.get("overall_score"))
        if overall is None and scores:
            overall = round(sum(scores) / len(scores), 4)
        verification.overall_score = overall

        try:
            recommendation = AIRecommendation(result.get("recommendation"))
        except ValueError:
            recommendation = derive_recommendation(overall, verification.risk_score)
        verification.recommendation = recommendation
        verification.recommendation_reason = result.get("recommendation_reason")

    @staticmethod
    def _fail(verification: AIVerification, message: str) -> None:
        verification.processing_status = AIProcessingStatus.FAILED
        verification.recommendation = AIRecommendation.MANUAL_REVIEW_REQUIRED
        verification.recommendation_reason = "Automated scoring unavailable; manual review required"
        verification.error_message = message


async def run_ai_verification(
    application_id: str,
    session_factory: Optional[Callable[[], Session]] = None,
    service: Optional[AIVerificationService] = None
) -> None:
    """
    Background task entry point. Uses its own session so the triggering
    request is not held open.
    """
    if session_factory is None:
        from instructor_verification.database import SessionLocal
        session_factory = SessionLocal

    db = session_factory()
    try:
        await (service or get_ai_verification_service()).process(db, application_id)
    except Exception as e:
        logger.error(f"AI verification task failed for application {application_id}: {e}", exc_info=True)
    finally:
        db.close()


# Singleton instance
_ai_verification_service = None


def get_ai_verification_service() -> AIVerificationService:
    """Get or create the AI verification service singleton"""
    global _ai_verification_service
    if _ai_verification_service is None:
        _ai_verification_service = AIVerificationService()
    return _ai_verification_service

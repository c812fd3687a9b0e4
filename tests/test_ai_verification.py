"""
Test suite for the AI verification recorder
"""
import asyncio
import threading
import pytest
from fastapi.concurrency import run_in_threadpool

from instructor_verification.core.exceptions import NotFoundError
from instructor_verification.models import (
    AIProcessingStatus, AIRecommendation, ApplicationStatus, DocumentType
)
from instructor_verification.schemas import DocumentCreate
from instructor_verification.services import (
    AIVerificationService, ApplicationService, DocumentService, HeuristicScorer,
    get_ai_verification_service, run_ai_verification
)
from instructor_verification.services import ai_verification_service
from instructor_verification.services.ai_verification_service import clamp_unit, derive_recommendation

from helpers import CONSENTS, PERSONAL_INFO, PROFESSIONAL_BACKGROUND, TEACHING_INFORMATION


class StaticScorer:
    provider = "static"

    def __init__(self, result):
        self.result = result

    async def score(self, snapshot):
        return dict(self.result)


class SlowScorer:
    provider = "slow"

    async def score(self, snapshot):
        await asyncio.sleep(5)
        return {}


class BrokenScorer:
    provider = "broken"

    async def score(self, snapshot):
        raise ValueError("model returned invalid JSON")


def test_singleton_pattern():
    """get_ai_verification_service returns the same instance"""
    assert get_ai_verification_service() is get_ai_verification_service()


def test_heuristic_scorer_without_api_key():
    service = AIVerificationService()
    assert isinstance(service.scorer, HeuristicScorer)


@pytest.mark.parametrize("overall,risk,expected", [
    (0.9, 0.1, AIRecommendation.APPROVE),
    (0.3, 0.1, AIRecommendation.REJECT),
    (0.9, 0.8, AIRecommendation.REJECT),
    (0.6, 0.3, AIRecommendation.MANUAL_REVIEW_REQUIRED),
    (None, 0.1, AIRecommendation.MANUAL_REVIEW_REQUIRED),
])
def test_derive_recommendation(overall, risk, expected):
    assert derive_recommendation(overall, risk) == expected


def test_clamp_unit():
    assert clamp_unit(1.7) == 1.0
    assert clamp_unit(-2) == 0.0
    assert clamp_unit("0.25") == 0.25
    assert clamp_unit("high") is None
    assert clamp_unit(None) is None


class TestAIVerificationService:

    @pytest.fixture(autouse=True)
    def setup(self, db, applicant):
        self.db = db
        applications = ApplicationService(db)
        self.application = applications.create_application(applicant.id)
        applications.save_draft(self.application.id, {
            "personal_info": PERSONAL_INFO,
            "professional_background": PROFESSIONAL_BACKGROUND,
            "teaching_information": TEACHING_INFORMATION,
            "consents": CONSENTS,
        })

    def test_trigger_creates_pending_record(self):
        verification = AIVerificationService(scorer=HeuristicScorer()).trigger(self.db, self.application.id)

        assert verification.processing_status == AIProcessingStatus.PENDING
        assert verification.recommendation == AIRecommendation.MANUAL_REVIEW_REQUIRED
        assert verification.verification_provider == "heuristic"

    def test_trigger_unknown_application(self):
        with pytest.raises(NotFoundError):
            AIVerificationService(scorer=HeuristicScorer()).trigger(self.db, "missing")

    def test_retrigger_reuses_record(self):
        service = AIVerificationService(scorer=HeuristicScorer())
        first = service.trigger(self.db, self.application.id)
        second = service.trigger(self.db, self.application.id)
        assert first.id == second.id

    @pytest.mark.asyncio
    async def test_heuristic_scoring_completes(self):
        DocumentService(self.db).add_document(self.application.id, DocumentCreate(
            document_type=DocumentType.IDENTITY_DOCUMENT,
            file_url="https://files.example.com/id.png",
            file_name="id.png",
            file_size=2048,
            mime_type="image/png"
        ))
        service = AIVerificationService(scorer=HeuristicScorer())
        service.trigger(self.db, self.application.id)

        verification = await service.process(self.db, self.application.id)

        assert verification.processing_status == AIProcessingStatus.COMPLETED
        assert verification.identity_verified is True
        assert 0 <= verification.overall_score <= 1
        assert 0 <= verification.risk_score <= 1
        assert verification.processed_at is not None
        assert verification.processing_time_ms is not None

    @pytest.mark.asyncio
    async def test_model_recommendation_is_used(self):
        service = AIVerificationService(scorer=StaticScorer({
            "identity_confidence": 0.95,
            "education_confidence": 0.9,
            "experience_confidence": 0.9,
            "content_quality_score": 0.85,
            "language_proficiency": 0.9,
            "professionalism_score": 0.9,
            "risk_score": 0.05,
            "risk_factors": [],
            "recommendation": "APPROVE",
            "recommendation_reason": "Strong, consistent application",
        }))

        verification = await service.process(self.db, self.application.id)

        assert verification.recommendation == AIRecommendation.APPROVE
        assert verification.overall_score == pytest.approx(0.9, abs=0.01)

    @pytest.mark.asyncio
    async def test_invalid_recommendation_is_derived(self):
        service = AIVerificationService(scorer=StaticScorer({
            "overall_score": 0.2,
            "risk_score": 0.4,
            "recommendation": "MAYBE",
        }))

        verification = await service.process(self.db, self.application.id)

        assert verification.recommendation == AIRecommendation.REJECT

    @pytest.mark.asyncio
    async def test_timeout_fails_soft(self):
        service = AIVerificationService(scorer=SlowScorer(), timeout=0.05)

        verification = await service.process(self.db, self.application.id)

        assert verification.processing_status == AIProcessingStatus.FAILED
        assert verification.recommendation == AIRecommendation.MANUAL_REVIEW_REQUIRED
        assert "timed out" in verification.error_message

    @pytest.mark.asyncio
    async def test_scorer_error_fails_soft(self):
        service = AIVerificationService(scorer=BrokenScorer())

        verification = await service.process(self.db, self.application.id)

        assert verification.processing_status == AIProcessingStatus.FAILED
        assert verification.recommendation == AIRecommendation.MANUAL_REVIEW_REQUIRED
        assert "invalid JSON" in verification.error_message

    @pytest.mark.asyncio
    async def test_session_work_runs_off_the_event_loop(self, monkeypatch):
        session_threads = []

        async def recording_threadpool(func, *args):
            def run(*inner):
                session_threads.append((func.__name__, threading.get_ident()))
                return func(*inner)
            return await run_in_threadpool(run, *args)

        class ThreadScorer(StaticScorer):
            async def score(self, snapshot):
                self.thread = threading.get_ident()
                return dict(self.result)

        scorer = ThreadScorer({"overall_score": 0.6, "risk_score": 0.3})
        monkeypatch.setattr(ai_verification_service, "run_in_threadpool", recording_threadpool)

        verification = await AIVerificationService(scorer=scorer).process(self.db, self.application.id)

        assert verification.processing_status == AIProcessingStatus.COMPLETED
        assert [name for name, _ in session_threads] == ["_prepare", "_record"]
        assert scorer.thread == threading.get_ident()
        assert all(thread != scorer.thread for _, thread in session_threads)

    @pytest.mark.asyncio
    async def test_background_task_uses_its_own_session(self, session_factory):
        service = AIVerificationService(scorer=HeuristicScorer())
        service.trigger(self.db, self.application.id)

        await run_ai_verification(self.application.id, session_factory=session_factory, service=service)

        verification = service.get(self.db, self.application.id)
        self.db.refresh(verification)
        assert verification.processing_status == AIProcessingStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_never_changes_application_status(self):
        await AIVerificationService(scorer=BrokenScorer()).process(self.db, self.application.id)
        application = ApplicationService(self.db).get_application(application_id=self.application.id)
        assert application.status == ApplicationStatus.DRAFT

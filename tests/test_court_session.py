"""Tests for CourtSession: the quick, trial and document entry points."""

import pytest

from ai_court.config.schemas import CourtConfig, TrialConfig, UsageConfig
from ai_court.core.court_session import CourtSession, SAMPLE_SCENARIOS
from ai_court.core.data_models import LegalCategory, RoleType, Side, TrialSetup
from ai_court.core.exceptions import INTERRUPTED_TEXT, InvalidInputError, UsageLimitExceededError
from ai_court.core.round_manager import TrialPhase
from ai_court.core.usage_limiter import MemoryUsageStore, UsageLimiter

from conftest import FakeProvider


def limited_session(provider, **limits):
    config = CourtConfig(trial=TrialConfig(auto_advance=False))
    caps = {"quickConsult": 3, "trial": 1, "document": 2}
    caps.update(limits)
    limiter = UsageLimiter(caps, MemoryUsageStore(), today=lambda: "2025-03-01")
    return CourtSession(provider, config=config, usage_limiter=limiter)


class TestQuickConsult:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("question", ["", "   ", "\n\t"])
    async def test_empty_question_makes_no_call(self, question, manual_config):
        provider = FakeProvider()
        session = CourtSession(provider, config=manual_config)
        with pytest.raises(InvalidInputError):
            await session.quick_consult(question)
        assert provider.stream_calls == 0
        assert session.consultation == []

    @pytest.mark.asyncio
    async def test_answer_is_streamed_into_conversation(self, manual_config):
        chunks = []
        provider = FakeProvider(replies=["[Ruling] You may claim the deposit."])
        session = CourtSession(provider, config=manual_config)

        answer = await session.quick_consult(
            "Can my landlord keep my deposit?", LegalCategory.PROPERTY, on_chunk=chunks.append
        )

        assert [m.role for m in session.consultation] == [RoleType.USER, RoleType.JUDGE]
        assert session.consultation[0].content == "Can my landlord keep my deposit?"
        assert answer.content == "[Ruling] You may claim the deposit."
        assert not answer.is_streaming
        assert chunks[-1].done
        assert "Real estate / property" in provider.system_prompts()[0]

    @pytest.mark.asyncio
    async def test_failure_is_inline(self, manual_config):
        chunks = []
        session = CourtSession(FakeProvider(fail_on={1}), config=manual_config)
        answer = await session.quick_consult("Question?", on_chunk=chunks.append)

        assert answer.failed
        assert answer.content.startswith("⚠️ ")
        assert session.consultation[-1] is answer
        assert chunks[-1].done

    @pytest.mark.asyncio
    async def test_listener_error_seals_answer(self, manual_config):
        def explode(chunk):
            raise RuntimeError("display closed")

        session = CourtSession(FakeProvider(), config=manual_config)
        with pytest.raises(RuntimeError):
            await session.quick_consult("Question?", on_chunk=explode)

        answer = session.consultation[-1]
        assert answer.failed
        assert not answer.is_streaming
        assert answer.content == f"⚠️ {INTERRUPTED_TEXT}"

    @pytest.mark.asyncio
    async def test_reset_consultation(self, manual_config):
        session = CourtSession(FakeProvider(), config=manual_config)
        await session.quick_consult("Question?")
        session.reset_consultation()
        assert session.consultation == []

    @pytest.mark.asyncio
    async def test_daily_limit(self):
        provider = FakeProvider()
        session = limited_session(provider, quickConsult=2)
        await session.quick_consult("one")
        await session.quick_consult("two")

        with pytest.raises(UsageLimitExceededError) as exc_info:
            await session.quick_consult("three")

        assert exc_info.value.feature == "quickConsult"
        assert exc_info.value.limit == 2
        assert provider.stream_calls == 2
        assert (await session.remaining())["quickConsult"] == 0


class TestDocumentAnalysis:

    @pytest.mark.asyncio
    async def test_blank_document_makes_no_call(self, manual_config):
        provider = FakeProvider()
        session = CourtSession(provider, config=manual_config)
        with pytest.raises(InvalidInputError):
            await session.analyze_document("  ")
        assert provider.stream_calls == 0

    @pytest.mark.asyncio
    async def test_keeps_only_latest_analysis(self, manual_config):
        provider = FakeProvider()
        session = CourtSession(provider, config=manual_config)
        await session.analyze_document("Lease agreement", Side.DEFENDANT)
        latest = await session.analyze_document("Loan agreement")

        assert session.document_messages == [latest]
        assert latest.content == "turn 2"
        assert "defendant (accused)" in provider.system_prompts()[0]
        assert "plaintiff (complainant)" in provider.system_prompts()[1]


class TestTrial:

    @pytest.mark.asyncio
    async def test_start_trial_runs_first_round(self, case_setup):
        provider = FakeProvider()
        session = limited_session(provider)
        trial = await session.start_trial(case_setup)

        assert session.trial is trial
        assert trial.phase == TrialPhase.RUNNING
        assert trial.round == 2
        assert provider.stream_calls == 1
        assert (await session.remaining())["trial"] == 0

    @pytest.mark.asyncio
    async def test_incomplete_setup_not_counted(self):
        provider = FakeProvider()
        session = limited_session(provider)
        with pytest.raises(InvalidInputError):
            await session.start_trial(TrialSetup(plaintiff_claim="", defendant_claim="Y"))
        assert (await session.remaining())["trial"] == 1
        assert provider.stream_calls == 0

    @pytest.mark.asyncio
    async def test_trial_limit(self, case_setup):
        provider = FakeProvider()
        session = limited_session(provider)
        await session.start_trial(case_setup)

        with pytest.raises(UsageLimitExceededError):
            await session.start_trial(case_setup)
        assert provider.stream_calls == 1

    def test_sample_scenarios_are_complete(self):
        assert set(SAMPLE_SCENARIOS) == {"deposit", "fraud"}
        assert all(s.is_complete() for s in SAMPLE_SCENARIOS.values())

    @pytest.mark.asyncio
    async def test_limits_disabled(self, manual_config):
        session = CourtSession(FakeProvider(), config=manual_config)
        assert session.usage_limiter is None
        assert await session.remaining() == {"quickConsult": None, "trial": None, "document": None}

    @pytest.mark.asyncio
    async def test_limits_from_config(self):
        session = CourtSession(FakeProvider(), config=CourtConfig(usage=UsageConfig(limits={"trial": 0})))
        with pytest.raises(UsageLimitExceededError):
            await session.start_trial(SAMPLE_SCENARIOS["fraud"])

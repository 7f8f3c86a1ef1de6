# ai_court/core/court_session.py
"""Entry points for the three court modes: quick, trial and document."""

from typing import Any, Callable, Dict, List, Optional
from loguru import logger

from .data_models import (
    CaseType, CourtMode, LegalCategory, Message,
    RoleType, Side, StreamChunk, TrialSetup
)
from .exceptions import (
    InvalidInputError, ProviderError, StreamError, UsageLimitExceededError,
    INTERRUPTED_TEXT, user_facing_message
)
from .prompt_composer import PromptComposer, PromptContext
from .round_manager import RoundManager
from .stream_decoder import fold_into, notify
from .usage_limiter import FeatureKey, UsageLimiter
from ..config.schemas import CourtConfig
from ..providers.base_provider import BaseProvider

ChunkListener = Callable[[StreamChunk], Any]

SAMPLE_SCENARIOS: Dict[str, TrialSetup] = {
    "deposit": TrialSetup(
        case_type=CaseType.CIVIL,
        plaintiff_claim=(
            "The landlord has refused for three months to return my 50,000,000 KRW deposit "
            "after the lease ended, saying no new tenant has moved in. I want the deposit "
            "returned with interest."
        ),
        defendant_claim=(
            "Falling rents have left me short of cash. I am doing my best to find a new tenant "
            "and will pay the deposit with late interest as soon as the money is available."
        ),
    ),
    "fraud": TrialSetup(
        case_type=CaseType.CRIMINAL,
        plaintiff_claim=(
            "I paid 1,000,000 KRW for an iPhone 15 on a second-hand marketplace, but the seller "
            "shipped a box with a brick in it and cut off contact. I want the seller punished for fraud."
        ),
        defendant_claim=(
            "There was a packing mistake, not an intent to deceive. The phone is being shipped "
            "again; this is only a delivery delay."
        ),
    ),
}


class CourtSession:
    """One user's session across the three modes.

    Quick consultations accumulate in ``consultation``; document analysis
    keeps only the latest result; every trial gets its own RoundManager.
    """

    def __init__(
        self,
        provider: BaseProvider,
        config: Optional[CourtConfig] = None,
        usage_limiter: Optional[UsageLimiter] = None
    ):
        self.provider = provider
        self.config = config or CourtConfig.default()
        self.usage_limiter = usage_limiter
        if self.usage_limiter is None and self.config.usage.enabled:
            self.usage_limiter = UsageLimiter.from_config(self.config.usage)
        self.composer = PromptComposer(
            language=self.config.language,
            personas=self.config.personas,
            max_context_chars=self.config.trial.max_context_chars
        )
        self.consultation: List[Message] = []
        self.document_messages: List[Message] = []
        self.trial: Optional[RoundManager] = None

    async def quick_consult(
        self,
        question: str,
        category: LegalCategory = LegalCategory.OTHER,
        on_chunk: Optional[ChunkListener] = None
    ) -> Message:
        """Answer one legal question as a single streamed judge turn."""
        if not question or not question.strip():
            raise InvalidInputError("The question is empty")
        await self._consume(FeatureKey.QUICK_CONSULT)

        self.consultation.append(Message(role=RoleType.USER, content=question.strip()))
        answer = Message(role=RoleType.JUDGE, is_streaming=True)
        self.consultation.append(answer)

        context = PromptContext(question=question, category=LegalCategory(category))
        return await self._stream_single_turn(CourtMode.QUICK, context, answer, on_chunk)

    async def analyze_document(
        self,
        document_text: str,
        side: Side = Side.PLAINTIFF,
        on_chunk: Optional[ChunkListener] = None
    ) -> Message:
        """Analyze a legal document from the declared side's point of view."""
        if not document_text or not document_text.strip():
            raise InvalidInputError("The document text is empty")
        await self._consume(FeatureKey.DOCUMENT)

        analysis = Message(role=RoleType.JUDGE, is_streaming=True)
        self.document_messages = [analysis]

        context = PromptContext(document_text=document_text.strip(), side=Side(side))
        return await self._stream_single_turn(CourtMode.DOCUMENT, context, analysis, on_chunk)

    def new_trial(self, on_chunk: Optional[ChunkListener] = None) -> RoundManager:
        """A trial in SETUP, sharing this session's provider and configuration."""
        return RoundManager(self.provider, config=self.config, composer=self.composer, on_chunk=on_chunk)

    async def start_trial(self, setup: TrialSetup, on_chunk: Optional[ChunkListener] = None) -> RoundManager:
        """Validate, count the daily use, then start a trial and run round 1."""
        if not setup.is_complete():
            raise InvalidInputError("Both the plaintiff's and the defendant's claims are required")
        await self._consume(FeatureKey.TRIAL)

        if self.trial is not None:
            await self.trial.close()
        self.trial = self.new_trial(on_chunk=on_chunk)
        await self.trial.start(setup)
        return self.trial

    def reset_consultation(self):
        self.consultation = []

    async def remaining(self) -> Dict[str, Optional[int]]:
        """Uses left today per feature; None when limits are disabled."""
        if self.usage_limiter is None:
            return {feature.value: None for feature in FeatureKey}
        return {feature.value: await self.usage_limiter.remaining(feature) for feature in FeatureKey}

    async def _consume(self, feature: FeatureKey):
        if self.usage_limiter is None:
            return
        if not await self.usage_limiter.consume(feature):
            raise UsageLimitExceededError(feature.value, self.usage_limiter.limit(feature))

    async def _stream_single_turn(
        self,
        mode: CourtMode,
        context: PromptContext,
        message: Message,
        on_chunk: Optional[ChunkListener]
    ) -> Message:
        prompt = self.composer.compose(mode, context)
        payload = prompt.to_payload(
            self.config.provider.model,
            self.config.generation.max_tokens,
            self.config.generation.temperature
        )

        logger.info(f"{mode.value} request started")
        try:
            await fold_into(self.provider.open_stream(payload), message, on_chunk)
        except (ProviderError, StreamError) as e:
            logger.error(f"{mode.value} request failed: {e}")
            message.fail(user_facing_message(e))
            await notify(on_chunk, StreamChunk(role=message.role, content="", done=True))
        finally:
            if message.is_streaming:
                message.fail(INTERRUPTED_TEXT)
        return message

# ai_court/core/round_manager.py
"""Trial round orchestration: the seven-round state machine."""

import asyncio
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
from loguru import logger

from .data_models import (
    CourtMode, Message, StreamChunk, TrialSetup,
    VerdictAnalysis, FINAL_ROUND
)
from .exceptions import (
    InvalidInputError, ProviderError, StreamError, TrialStateError,
    INTERRUPTED_TEXT, user_facing_message
)
from .prompt_composer import PromptComposer, PromptContext, plan_for
from .stream_decoder import fold_into, notify
from .verdict_synthesizer import VerdictSynthesizer
from ..config.schemas import CourtConfig
from ..providers.base_provider import BaseProvider
from ..utils.parsing import extract_tagged_sections

ChunkListener = Callable[[StreamChunk], Any]


class TrialPhase(str, Enum):
    SETUP = "setup"
    RUNNING = "running"
    FINISHED = "finished"


class RoundManager:
    """Drives one trial from setup through the final verdict.

    Only one round is ever in flight. A round that completes moves the trial
    to the next round (or to FINISHED after round 7, which launches verdict
    synthesis in the background). A round that fails keeps its message as an
    inline warning and leaves the round counter where it was.
    """

    def __init__(
        self,
        provider: BaseProvider,
        config: Optional[CourtConfig] = None,
        composer: Optional[PromptComposer] = None,
        synthesizer: Optional[VerdictSynthesizer] = None,
        on_chunk: Optional[ChunkListener] = None
    ):
        self.provider = provider
        self.config = config or CourtConfig.default()
        self.composer = composer or PromptComposer(
            language=self.config.language,
            personas=self.config.personas,
            max_context_chars=self.config.trial.max_context_chars
        )
        self.synthesizer = synthesizer or VerdictSynthesizer(
            provider,
            provider_config=self.config.provider,
            config=self.config.synthesis,
            language=self.config.language
        )
        self.on_chunk = on_chunk
        self.auto_advance = self.config.trial.auto_advance
        self.auto_advance_delay = self.config.trial.auto_advance_delay

        self.phase = TrialPhase.SETUP
        self.round = 1
        self.setup: Optional[TrialSetup] = None
        self.transcript: List[Message] = []
        self.verdict_analysis: Optional[VerdictAnalysis] = None

        # Epoch of the round currently streaming; a round abandoned by reset()
        # no longer blocks the next trial.
        self._in_flight_epoch: Optional[int] = None
        self._epoch = 0
        self._closed = False
        self._pending_advance: Optional[asyncio.Task] = None
        self._verdict_task: Optional[asyncio.Task] = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # ------------------------------------------------------------------ state

    @property
    def is_streaming(self) -> bool:
        return self._in_flight_epoch == self._epoch

    @property
    def is_analyzing(self) -> bool:
        return self._verdict_task is not None and not self._verdict_task.done()

    @property
    def completed_rounds(self) -> int:
        if self.phase == TrialPhase.FINISHED:
            return FINAL_ROUND
        if self.phase == TrialPhase.SETUP:
            return 0
        return self.round - 1

    @property
    def active_role(self):
        """Speaker of the round currently streaming, if any."""
        return plan_for(self.round).role if self.is_streaming else None

    def status(self) -> Dict[str, Any]:
        return {
            "phase": self.phase.value,
            "round": self.round,
            "label": plan_for(self.round).label,
            "completed_rounds": self.completed_rounds,
            "streaming": self.is_streaming,
            "analyzing": self.is_analyzing,
            "messages": len(self.transcript),
        }

    # ------------------------------------------------------------ transitions

    async def start(self, setup: TrialSetup) -> Optional[Message]:
        """Enter RUNNING with ``setup`` and run round 1."""
        if not setup.is_complete():
            raise InvalidInputError("Both the plaintiff's and the defendant's claims are required")
        if self.phase != TrialPhase.SETUP:
            raise TrialStateError(f"Cannot start a trial in phase '{self.phase.value}'; reset first")

        self.setup = setup
        self.round = 1
        self.phase = TrialPhase.RUNNING
        logger.info(f"Trial started ({setup.case_type.value})")
        return await self.advance()

    async def advance(self) -> Optional[Message]:
        """Run the current round.

        Returns the round's message, or None when the request is ignored
        because a round is already streaming or the trial is finished.
        """
        if self.phase == TrialPhase.SETUP:
            raise TrialStateError("The trial has not started")
        if self.phase == TrialPhase.FINISHED:
            logger.debug("Trial already finished; advance ignored")
            return None
        if self.is_streaming:
            logger.debug(f"Round {self.round} is still streaming; advance ignored")
            return None

        self._cancel_pending_advance()
        epoch = self._in_flight_epoch = self._epoch
        try:
            return await self._run_round(self.round)
        finally:
            if self._in_flight_epoch == epoch:
                self._in_flight_epoch = None

    async def run_to_completion(self) -> bool:
        """Run the remaining rounds back to back.

        Stops at the first failed round. Returns True once the trial is FINISHED.
        """
        while self.phase == TrialPhase.RUNNING:
            message = await self.advance()
            if message is None or message.failed:
                break
        return self.phase == TrialPhase.FINISHED

    def set_auto_advance(self, enabled: bool):
        """Toggle the auto-advance policy; state semantics are unchanged."""
        self.auto_advance = enabled
        if not enabled:
            self._cancel_pending_advance()
        elif self.phase == TrialPhase.RUNNING and self.round > 1 and not self.is_streaming:
            self._schedule_advance()

    async def reset(self):
        """Abandon the current trial and return to SETUP."""
        self._epoch += 1
        self._cancel_pending_advance()
        if self._verdict_task is not None and not self._verdict_task.done():
            self._verdict_task.cancel()
        self._verdict_task = None

        self.phase = TrialPhase.SETUP
        self.round = 1
        self.setup = None
        self.transcript = []
        self.verdict_analysis = None
        self.auto_advance = self.config.trial.auto_advance
        logger.info("Trial reset")

    async def close(self):
        """Tear down: no scheduled round or synthesis may fire afterwards."""
        self._closed = True
        self._cancel_pending_advance()
        if self._verdict_task is not None and not self._verdict_task.done():
            self._verdict_task.cancel()

    # ---------------------------------------------------------------- waiting

    async def wait_settled(self):
        """Wait until no auto-advance is pending (the chain finished or stalled)."""
        while self._pending_advance is not None:
            await asyncio.wait({self._pending_advance})

    async def wait_for_verdict(self) -> Optional[VerdictAnalysis]:
        """Wait for background verdict synthesis, if it was started."""
        if self._verdict_task is not None:
            await asyncio.wait({self._verdict_task})
        return self.verdict_analysis

    def verdict_sections(self) -> Dict[str, str]:
        """Tagged sections (ruling / reasoning / recommendation) of the final round."""
        for message in reversed(self.transcript):
            if message.round_number == FINAL_ROUND and not message.failed and not message.is_streaming:
                return extract_tagged_sections(message.content)
        return {}

    # ---------------------------------------------------------------- rounds

    async def _run_round(self, round_number: int) -> Message:
        epoch = self._epoch
        plan = plan_for(round_number)
        history = list(self.transcript)

        message = Message(role=plan.role, is_streaming=True, round_number=round_number)
        self.transcript.append(message)

        prompt = self.composer.compose(
            CourtMode.TRIAL,
            PromptContext(setup=self.setup, transcript=history),
            round_number=round_number
        )
        payload = prompt.to_payload(
            self.config.provider.model,
            self.config.generation.max_tokens,
            self.config.generation.temperature
        )

        logger.info(f"Round {round_number}/{FINAL_ROUND}: {plan.role.value} ({plan.label})")
        try:
            await fold_into(self.provider.open_stream(payload), message, self.on_chunk)
        except (ProviderError, StreamError) as e:
            logger.error(f"Round {round_number} failed: {e}")
            message.fail(user_facing_message(e))
            await notify(self.on_chunk, StreamChunk(role=plan.role, content="", done=True))
            return message
        finally:
            if message.is_streaming:
                message.fail(INTERRUPTED_TEXT)

        if epoch != self._epoch:
            logger.debug(f"Round {round_number} finished after reset; result discarded")
            return message

        self._on_round_complete(round_number)
        return message

    def _on_round_complete(self, round_number: int):
        if round_number >= FINAL_ROUND:
            self.phase = TrialPhase.FINISHED
            logger.info("Trial finished; synthesizing verdict")
            if not self._closed:
                self._verdict_task = asyncio.get_running_loop().create_task(self._synthesize_verdict(self._epoch))
            return

        self.round = round_number + 1
        if self.auto_advance:
            self._schedule_advance()

    async def _synthesize_verdict(self, epoch: int) -> VerdictAnalysis:
        analysis = await self.synthesizer.synthesize(list(self.transcript), self.setup.case_type)
        if epoch == self._epoch:
            self.verdict_analysis = analysis
        return analysis

    # ------------------------------------------------------------- scheduling

    def _schedule_advance(self):
        if self._closed or self._pending_advance is not None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; auto-advance not scheduled")
            return
        self._pending_advance = loop.create_task(self._delayed_advance(self.auto_advance_delay))

    def _cancel_pending_advance(self):
        task = self._pending_advance
        self._pending_advance = None
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        if task is not current:
            task.cancel()

    async def _delayed_advance(self, delay: float):
        await asyncio.sleep(delay)
        self._pending_advance = None
        try:
            await self.advance()
        except Exception:
            logger.exception(f"Auto-advance of round {self.round} failed")

"""Shared fixtures: a scripted chat-completion provider and SSE helpers."""

import asyncio
import json
from typing import Dict, Iterable, List, Optional

import pytest

from ai_court.config.schemas import CourtConfig, TrialConfig, UsageConfig
from ai_court.core.data_models import CaseType, ChatPayload, TrialSetup
from ai_court.core.exceptions import NetworkError
from ai_court.providers.base_provider import BaseProvider


def sse_frame(content: str) -> str:
    return "data: " + json.dumps({"choices": [{"delta": {"content": content}}]}, ensure_ascii=False) + "\n\n"


def sse_body(pieces: Iterable[str], done: bool = True) -> bytes:
    """A complete streaming body for ``pieces``, as UTF-8 bytes."""
    body = "".join(sse_frame(p) for p in pieces)
    if done:
        body += "data: [DONE]\n\n"
    return body.encode("utf-8")


VERDICT_JSON = json.dumps({
    "ruling": "Plaintiff wins",
    "confidence": 85,
    "favorability": "plaintiff",
    "keyFactors": ["The lease has ended", "The deposit is due on return of the premises"],
    "plaintiffStrengths": ["Clear contractual right"],
    "defendantStrengths": ["Good-faith effort to find a tenant"],
    "recommendation": "Return the deposit with statutory interest.",
})


class FakeProvider(BaseProvider):
    """Scripted provider that counts and records every call.

    Streaming call ``n`` (1-based) answers with ``replies[n - 1]`` when given,
    else ``"turn n"``. Calls listed in ``fail_on`` raise ``NetworkError`` after
    one partial chunk. With ``gate`` set, streams wait for the event before
    sending anything.
    """

    def __init__(
        self,
        replies: Optional[List[str]] = None,
        fail_on: Iterable[int] = (),
        verdict: str = VERDICT_JSON,
        send_error: Optional[Exception] = None,
        gate: Optional[asyncio.Event] = None,
        chunk_size: int = 7
    ):
        self.replies = replies or []
        self.fail_on = set(fail_on)
        self.verdict = verdict
        self.send_error = send_error
        self.gate = gate
        self.chunk_size = chunk_size
        self.stream_payloads: List[ChatPayload] = []
        self.send_payloads: List[ChatPayload] = []

    @property
    def stream_calls(self) -> int:
        return len(self.stream_payloads)

    @property
    def send_calls(self) -> int:
        return len(self.send_payloads)

    def system_prompts(self) -> List[str]:
        return [p.messages[0].content for p in self.stream_payloads]

    def user_prompts(self) -> List[str]:
        return [p.messages[-1].content for p in self.stream_payloads]

    async def send(self, payload: ChatPayload) -> Dict:
        self.send_payloads.append(payload)
        if self.send_error is not None:
            raise self.send_error
        return {"choices": [{"message": {"role": "assistant", "content": self.verdict}}]}

    async def open_stream(self, payload: ChatPayload):
        self.stream_payloads.append(payload)
        call = self.stream_calls
        if self.gate is not None:
            await self.gate.wait()

        text = self.replies[call - 1] if call <= len(self.replies) else f"turn {call}"
        body = sse_body([text])
        if call in self.fail_on:
            yield body[:self.chunk_size]
            raise NetworkError("connection reset by peer")

        for i in range(0, len(body), self.chunk_size):
            yield body[i:i + self.chunk_size]


async def wait_for_calls(provider: FakeProvider, count: int):
    """Yield to the loop until ``provider`` has opened ``count`` streams."""
    for _ in range(1000):
        if provider.stream_calls >= count:
            return
        await asyncio.sleep(0)
    raise AssertionError(f"expected {count} stream calls, saw {provider.stream_calls}")


@pytest.fixture
def case_setup():
    return TrialSetup(plaintiff_claim="X", defendant_claim="Y", case_type=CaseType.CIVIL)


@pytest.fixture
def manual_config():
    """Auto-advance off, usage limits off."""
    return CourtConfig(trial=TrialConfig(auto_advance=False), usage=UsageConfig(enabled=False))


@pytest.fixture
def auto_config():
    """Auto-advance with no delay, usage limits off."""
    return CourtConfig(
        trial=TrialConfig(auto_advance=True, auto_advance_delay=0.0),
        usage=UsageConfig(enabled=False)
    )

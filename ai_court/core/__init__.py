# ai_court/core/__init__.py
"""Core components of the AI court"""

from .round_manager import RoundManager, TrialPhase
from .court_session import CourtSession
from .stream_decoder import StreamDecoder
from .prompt_composer import PromptComposer
from .verdict_synthesizer import VerdictSynthesizer
from .usage_limiter import UsageLimiter
from .data_models import *
from .exceptions import *

__all__ = [
    "RoundManager",
    "TrialPhase",
    "CourtSession",
    "StreamDecoder",
    "PromptComposer",
    "VerdictSynthesizer",
    "UsageLimiter",
]

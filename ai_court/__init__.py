# ai_court/__init__.py
"""AI Court: a multi-role legal trial simulator on chat-completion APIs"""

__version__ = "0.1.0"

from .core.court_session import CourtSession, SAMPLE_SCENARIOS
from .core.round_manager import RoundManager, TrialPhase
from .core.data_models import Message, TrialSetup, VerdictAnalysis
from .config.schemas import CourtConfig
from .utils.config_loader import load_config

__all__ = [
    "CourtSession",
    "SAMPLE_SCENARIOS",
    "RoundManager",
    "TrialPhase",
    "Message",
    "TrialSetup",
    "VerdictAnalysis",
    "CourtConfig",
    "load_config",
]

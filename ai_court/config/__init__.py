"""Configuration schemas"""

from .schemas import (
    CourtConfig,
    ProviderConfig,
    GenerationConfig,
    SynthesisConfig,
    TrialConfig,
    UsageConfig,
    LoggingConfig,
)

__all__ = [
    "CourtConfig",
    "ProviderConfig",
    "GenerationConfig",
    "SynthesisConfig",
    "TrialConfig",
    "UsageConfig",
    "LoggingConfig",
]

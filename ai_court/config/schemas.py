# ai_court/config/schemas.py
from typing import Optional, Dict
from pydantic import BaseModel, Field, field_validator

DEFAULT_ENDPOINT = "https://api.openai.com/v1/chat/completions"


class ProviderConfig(BaseModel):
    """Configuration for the chat-completion endpoint."""
    endpoint: str = DEFAULT_ENDPOINT
    api_key: Optional[str] = None
    model: str = "gpt-4o"
    timeout: float = 60.0
    max_tries: int = Field(default=1, ge=1)  # 1 disables retries

    @classmethod
    def for_proxy(cls, api_base: str, **kwargs) -> "ProviderConfig":
        """Deployments behind a proxy post to ``<base>/api/chat`` without a key."""
        return cls(endpoint=f"{api_base.rstrip('/')}/api/chat", **kwargs)

class GenerationConfig(BaseModel):
    """Sampling settings for streamed role turns."""
    max_tokens: int = 600
    temperature: float = 0.8

class SynthesisConfig(BaseModel):
    """Settings for the non-streaming verdict synthesis call."""
    max_tokens: int = 800
    temperature: float = 0.3
    json_mode: bool = True

class TrialConfig(BaseModel):
    """Trial scheduling policy."""
    auto_advance: bool = True
    auto_advance_delay: float = Field(default=0.8, ge=0.0)
    max_context_chars: Optional[int] = None  # None keeps the whole transcript

    @field_validator('max_context_chars')
    def validate_window(cls, v):
        if v is not None and v <= 0:
            raise ValueError("max_context_chars must be positive")
        return v

class UsageConfig(BaseModel):
    """Daily caps per feature."""
    enabled: bool = True
    limits: Dict[str, int] = {"quickConsult": 3, "trial": 1, "document": 2}
    storage_path: Optional[str] = None  # None keeps counters in memory

class LoggingConfig(BaseModel):
    level: str = "INFO"
    file_path: Optional[str] = None
    rotation: str = "10 MB"
    retention: str = "7 days"

class CourtConfig(BaseModel):
    """Root configuration for the entire system."""
    language: str = "Korean"
    provider: ProviderConfig = ProviderConfig()
    generation: GenerationConfig = GenerationConfig()
    synthesis: SynthesisConfig = SynthesisConfig()
    trial: TrialConfig = TrialConfig()
    usage: UsageConfig = UsageConfig()
    logging: LoggingConfig = LoggingConfig()
    personas: Dict[str, str] = {}  # role value -> replacement persona text

    @classmethod
    def default(cls):
        """Get default configuration."""
        return cls()

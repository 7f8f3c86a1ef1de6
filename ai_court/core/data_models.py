# ai_court/core/data_models.py
"""Core data models for the AI court system."""

from typing import List, Dict, Optional, Any
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict
from enum import Enum
import uuid

from .exceptions import MessageSealedError

FINAL_ROUND = 7


class RoleType(str, Enum):
    """Speakers that can appear in a transcript."""
    JUDGE = "judge"
    PROSECUTOR = "prosecutor"
    DEFENSE = "defense"
    USER = "user"
    SYSTEM = "system"

class CourtMode(str, Enum):
    """Application modes."""
    QUICK = "quick"
    TRIAL = "trial"
    DOCUMENT = "document"

class CaseType(str, Enum):
    CIVIL = "civil"
    CRIMINAL = "criminal"

class Favorability(str, Enum):
    """Which side the synthesized verdict favors."""
    PLAINTIFF = "plaintiff"
    DEFENDANT = "defendant"
    NEUTRAL = "neutral"

class Side(str, Enum):
    """Side the user declares in document analysis."""
    PLAINTIFF = "plaintiff"
    DEFENDANT = "defendant"

class LegalCategory(str, Enum):
    """Quick consultation categories."""
    CONTRACT = "contract"
    PROPERTY = "property"
    LABOR = "labor"
    FAMILY = "family"
    CRIMINAL = "criminal"
    CONSUMER = "consumer"
    TRAFFIC = "traffic"
    OTHER = "other"


LEGAL_CATEGORY_LABELS: Dict[LegalCategory, str] = {
    LegalCategory.CONTRACT: "Contract dispute",
    LegalCategory.PROPERTY: "Real estate / property",
    LegalCategory.LABOR: "Labor / wages",
    LegalCategory.FAMILY: "Family / divorce",
    LegalCategory.CRIMINAL: "Criminal case",
    LegalCategory.CONSUMER: "Consumer damage",
    LegalCategory.TRAFFIC: "Traffic accident",
    LegalCategory.OTHER: "Other",
}

CASE_TYPE_LABELS: Dict[CaseType, str] = {
    CaseType.CIVIL: "Civil",
    CaseType.CRIMINAL: "Criminal",
}


class Message(BaseModel):
    """A single transcript entry.

    Only ``content`` changes after creation, and only while ``is_streaming`` is set.
    Once the message is completed or failed it is sealed.
    """
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    role: RoleType
    content: str = ""
    timestamp: datetime = Field(default_factory=datetime.now)
    is_streaming: bool = False
    round_number: Optional[int] = None
    failed: bool = False

    def append(self, delta: str):
        """Append a streamed fragment."""
        if not self.is_streaming:
            raise MessageSealedError(f"Message {self.id} is no longer streaming")
        self.content += delta

    def complete(self):
        """Seal the message after the stream ended."""
        self.is_streaming = False

    def fail(self, error_text: str):
        """Replace the content with an inline warning and seal the message."""
        if not self.is_streaming:
            raise MessageSealedError(f"Message {self.id} is no longer streaming")
        self.content = f"⚠️ {error_text}"
        self.failed = True
        self.is_streaming = False


class StreamChunk(BaseModel):
    """Delta handed to observers while a message streams. Never persisted."""
    model_config = ConfigDict(frozen=True)

    role: RoleType
    content: str
    done: bool = False


class TrialSetup(BaseModel):
    """Both sides' claims; immutable once a trial starts."""
    model_config = ConfigDict(frozen=True)

    plaintiff_claim: str
    defendant_claim: str
    case_type: CaseType = CaseType.CIVIL

    def is_complete(self) -> bool:
        return bool(self.plaintiff_claim.strip()) and bool(self.defendant_claim.strip())

    def describe(self) -> str:
        return (
            f"Plaintiff's claim: {self.plaintiff_claim.strip()}\n"
            f"Defendant's claim: {self.defendant_claim.strip()}"
        )


class VerdictAnalysis(BaseModel):
    """Structured outcome synthesized from a finished trial."""
    model_config = ConfigDict(frozen=True)

    ruling: str
    confidence: float = Field(ge=0.0, le=100.0)
    favorability: Favorability = Favorability.NEUTRAL
    key_factors: List[str] = []
    plaintiff_strengths: List[str] = []
    defendant_strengths: List[str] = []
    recommendation: str


class ChatMessage(BaseModel):
    role: str
    content: str


class ChatPayload(BaseModel):
    """Request body for the chat-completion endpoint."""
    model: str
    messages: List[ChatMessage] = Field(min_length=1)
    stream: bool
    max_tokens: int = Field(gt=0)
    temperature: float = Field(ge=0.0, le=2.0)
    response_format: Optional[Dict[str, Any]] = None

    def to_request_body(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)

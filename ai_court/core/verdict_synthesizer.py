# ai_court/core/verdict_synthesizer.py
"""Structured verdict synthesis from a finished trial transcript."""

from typing import Any, Dict, Optional, Sequence
from loguru import logger

from .data_models import (
    CaseType, ChatMessage, ChatPayload, Favorability, Message, VerdictAnalysis,
    CASE_TYPE_LABELS
)
from .exceptions import SynthesisError
from .prompt_composer import serialize_context
from ..config.schemas import ProviderConfig, SynthesisConfig
from ..providers.base_provider import BaseProvider, extract_message_content
from ..utils.parsing import extract_json_from_response, coerce_score, coerce_string_list

FALLBACK_RULING = "Analysis failed"
FALLBACK_CONFIDENCE = 50.0
FALLBACK_RECOMMENDATION = (
    "The structured analysis could not be produced. Review the trial transcript "
    "and consult a qualified lawyer about your specific situation."
)

# (ruling, recommendation) per target language; unknown languages use English.
FALLBACK_TEXTS = {
    "English": (FALLBACK_RULING, FALLBACK_RECOMMENDATION),
    "Korean": (
        "분석 실패",
        "구조화된 분석을 생성하지 못했습니다. 재판 기록을 검토하고 "
        "구체적인 상황은 전문 변호사와 상담하세요.",
    ),
}

SYNTHESIS_SYSTEM_PROMPT = """You are a legal analyst who summarizes finished trials.
Respond with ONLY a JSON object and nothing else. The JSON object MUST have these keys:
- "ruling": (string) the outcome, e.g. "Plaintiff wins", "Defendant wins", "Partial win"
- "confidence": (number) 0-100, how likely the favored side is to win
- "favorability": (string) one of "plaintiff", "defendant", "neutral"
- "keyFactors": (list of strings) the key issues that decided the case
- "plaintiffStrengths": (list of strings) points in the plaintiff's favor
- "defendantStrengths": (list of strings) points in the defendant's favor
- "recommendation": (string) the final recommendation for the parties"""


def fallback_texts(language: str = "English"):
    return FALLBACK_TEXTS.get(language, FALLBACK_TEXTS["English"])

def fallback_analysis(language: str = "English") -> VerdictAnalysis:
    """Safe result used when the structured verdict cannot be parsed."""
    ruling, recommendation = fallback_texts(language)
    return VerdictAnalysis(
        ruling=ruling,
        confidence=FALLBACK_CONFIDENCE,
        favorability=Favorability.NEUTRAL,
        key_factors=[],
        plaintiff_strengths=[],
        defendant_strengths=[],
        recommendation=recommendation,
    )

def normalize_analysis(data: Dict[str, Any], language: str = "English") -> VerdictAnalysis:
    """Build a VerdictAnalysis from loosely-shaped JSON, filling every gap."""
    fallback_ruling, fallback_recommendation = fallback_texts(language)

    def text(key: str, default: str) -> str:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
        return default

    favorability = str(data.get("favorability", "")).strip().lower()
    if favorability not in {f.value for f in Favorability}:
        favorability = Favorability.NEUTRAL.value

    return VerdictAnalysis(
        ruling=text("ruling", fallback_ruling),
        confidence=coerce_score(data.get("confidence"), default=FALLBACK_CONFIDENCE),
        favorability=Favorability(favorability),
        key_factors=coerce_string_list(data.get("keyFactors")),
        plaintiff_strengths=coerce_string_list(data.get("plaintiffStrengths")),
        defendant_strengths=coerce_string_list(data.get("defendantStrengths")),
        recommendation=text("recommendation", fallback_recommendation),
    )


class VerdictSynthesizer:
    """Turns a free-text transcript into a scored VerdictAnalysis."""

    def __init__(
        self,
        provider: BaseProvider,
        provider_config: Optional[ProviderConfig] = None,
        config: Optional[SynthesisConfig] = None,
        language: str = "Korean"
    ):
        self.provider = provider
        self.model = (provider_config or ProviderConfig()).model
        self.config = config or SynthesisConfig()
        self.language = language

    async def synthesize(self, transcript: Sequence[Message], case_type: CaseType) -> VerdictAnalysis:
        """
        Produce the structured verdict. Never raises; failures resolve to
        ``fallback_analysis()`` in the target language.
        """
        try:
            payload = self._build_payload(transcript, case_type)
            response = await self.provider.send(payload)
            analysis = self._parse(extract_message_content(response))
            logger.info(
                f"Verdict synthesized: {analysis.favorability.value} "
                f"({analysis.confidence:.0f}%)"
            )
            return analysis
        except SynthesisError as e:
            logger.warning(f"Verdict synthesis returned unusable output: {e}")
        except Exception as e:
            logger.warning(f"Verdict synthesis failed: {e!r}")
        return fallback_analysis(self.language)

    def _build_payload(self, transcript: Sequence[Message], case_type: CaseType) -> ChatPayload:
        user_prompt = (
            f"Case type: {CASE_TYPE_LABELS[CaseType(case_type)]}\n"
            f"Trial transcript:\n{serialize_context(transcript)}\n\n"
            f"Write the string values in {self.language}. Produce ONLY the JSON object."
        )
        return ChatPayload(
            model=self.model,
            messages=[
                ChatMessage(role="system", content=SYNTHESIS_SYSTEM_PROMPT),
                ChatMessage(role="user", content=user_prompt),
            ],
            stream=False,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
            response_format={"type": "json_object"} if self.config.json_mode else None,
        )

    def _parse(self, response_text: str) -> VerdictAnalysis:
        data = extract_json_from_response(response_text)
        if data is None:
            raise SynthesisError(f"No JSON object in response: {response_text[:200]!r}")
        return normalize_analysis(data, self.language)

# ai_court/utils/formatters.py
from typing import Dict, Sequence

from ..core.data_models import Favorability, Message, VerdictAnalysis, FINAL_ROUND
from ..core.prompt_composer import ROLE_LABELS, plan_for

FAVORABILITY_LABELS: Dict[Favorability, str] = {
    Favorability.PLAINTIFF: "Plaintiff favored",
    Favorability.DEFENDANT: "Defendant favored",
    Favorability.NEUTRAL: "Neutral",
}

def format_round_header(round_number: int) -> str:
    """One-line banner announcing a trial round."""
    plan = plan_for(round_number)
    return f"[ Round {round_number}/{FINAL_ROUND} | {plan.label} | {ROLE_LABELS[plan.role]} ]"

def format_message(message: Message) -> str:
    prefix = f"{ROLE_LABELS[message.role]}"
    if message.round_number is not None:
        prefix += f" (round {message.round_number})"
    return f"{prefix}: {message.content}"

def format_transcript(messages: Sequence[Message]) -> str:
    """Creates a human-readable dump of a transcript, one block per message."""
    if not messages:
        return "(empty transcript)"
    return "\n\n".join(format_message(m) for m in messages)

def format_verdict(analysis: VerdictAnalysis) -> str:
    """Creates a human-readable string summary of the verdict analysis."""
    output = [
        "==================================================",
        "              AI COURT VERDICT ANALYSIS           ",
        "==================================================",
        f"Ruling: {analysis.ruling}",
        f"Confidence: {analysis.confidence:.0f}%",
        f"Favorability: {FAVORABILITY_LABELS[analysis.favorability]}",
        "--------------------------------------------------",
    ]

    sections = [
        ("Key factors", analysis.key_factors),
        ("Plaintiff strengths", analysis.plaintiff_strengths),
        ("Defendant strengths", analysis.defendant_strengths),
    ]
    for title, items in sections:
        output.append(f"{title}:")
        if not items:
            output.append("  (none)")
        for item in items:
            output.append(f"  - {item}")

    output.append("--------------------------------------------------")
    output.append(f"Recommendation: {analysis.recommendation}")
    output.append("==================================================")
    return "\n".join(output)

def format_usage(remaining: Dict[str, object]) -> str:
    """``quickConsult: 2 left | trial: 0 left | ...``; None means unlimited."""
    parts = []
    for feature, left in remaining.items():
        parts.append(f"{feature}: {'unlimited' if left is None else f'{left} left'}")
    return " | ".join(parts)

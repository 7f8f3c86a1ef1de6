# ai_court/core/prompt_composer.py
"""Prompt construction for every court mode and trial round."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .data_models import (
    CaseType, ChatMessage, ChatPayload, CourtMode, LegalCategory, Message, RoleType, Side, TrialSetup,
    CASE_TYPE_LABELS, LEGAL_CATEGORY_LABELS, FINAL_ROUND
)

ROLE_LABELS: Dict[RoleType, str] = {
    RoleType.JUDGE: "Judge",
    RoleType.PROSECUTOR: "Prosecutor/Plaintiff",
    RoleType.DEFENSE: "Defense/Defendant",
    RoleType.USER: "User",
    RoleType.SYSTEM: "System",
}

DISCLAIMER = "This service provides legal information only and is not actual legal advice."

JUDGE_PERSONA = """You are a fair and authoritative judge of a court of the Republic of Korea.
Role:
- Conduct the trial and listen to both sides impartially
- Decide on legal grounds, based on Korean civil law, criminal law and civil procedure
- Speak in a clear and authoritative tone
- Keep each statement to 2-4 sentences
Note: {disclaimer}"""

PROSECUTOR_PERSONA = """You are a capable prosecutor / plaintiff's attorney in the Republic of Korea.
Role:
- Argue forcefully for the plaintiff (complainant)
- Support every claim with legal grounds and evidence
- Point out the gaps in the other side's position sharply
- Be aggressive but stay legally sound
- Keep each statement to 2-4 sentences"""

DEFENSE_PERSONA = """You are a capable defense attorney in the Republic of Korea.
Role:
- Argue forcefully for the defendant (accused)
- Defend with legal grounds and counter-evidence
- Rebut the logical gaps in the prosecution/plaintiff's claims
- Offer the legal interpretation most favorable to your client
- Keep each statement to 2-4 sentences"""

LANGUAGE_RULE = "You MUST answer in {language} only. This is a hard requirement."

QUICK_CONSULT_PROMPT = """You are a legal expert of the Republic of Korea.
Answer the user's legal question briefly, covering only the essentials.
Category: {category}
Answer format, with the three tags in this exact order:
[Ruling] the key legal points (2-3 lines)
[Reasoning] the relevant statutes, if any
[Recommendation] the recommended next action (1-2 lines)
⚠️ {disclaimer}"""

DOCUMENT_ANALYSIS_PROMPT = """You are a team of legal experts of the Republic of Korea.
Analyze the submitted legal document and simulate the trial scenario from the {side} point of view.
Analysis format:
📋 Document summary
⚔️ Contested issues
🔴 Unfavorable points
🔵 Favorable points
⚖️ Predicted direction of the ruling
💡 Recommended strategy"""

SIDE_LABELS: Dict[Side, str] = {
    Side.PLAINTIFF: "plaintiff (complainant)",
    Side.DEFENDANT: "defendant (accused)",
}


@dataclass(frozen=True)
class RoundPlan:
    """Speaker and instruction for one trial round."""
    role: RoleType
    label: str
    instruction: str


ROUND_PLAN: Dict[int, RoundPlan] = {
    1: RoundPlan(
        RoleType.JUDGE, "Opening",
        "The trial of the following case begins. Declare the court open and give both sides the opportunity to state their claims."
    ),
    2: RoundPlan(
        RoleType.PROSECUTOR, "Plaintiff opening",
        "Give the opening statement for the plaintiff/prosecution in the following case. Argue with specific legal grounds."
    ),
    3: RoundPlan(
        RoleType.DEFENSE, "Defendant opening",
        "Give the opening statement for the defendant in the following case. Point out the gaps in the plaintiff's claims and defend."
    ),
    4: RoundPlan(
        RoleType.JUDGE, "Issues",
        "You have heard both sides. Summarize the key issues and ask about the points that need further clarification."
    ),
    5: RoundPlan(
        RoleType.PROSECUTOR, "Plaintiff rebuttal",
        "Rebut the defendant's arguments and answer the judge's questions for the plaintiff/prosecution."
    ),
    6: RoundPlan(
        RoleType.DEFENSE, "Defendant closing",
        "Rebut the plaintiff's latest arguments and give the defendant's closing statement."
    ),
    7: RoundPlan(
        RoleType.JUDGE, "Final verdict",
        "You have heard all arguments. Deliver the final verdict.\n"
        "Format, with the three tags in this exact order: "
        "[Ruling] the judgment / [Reasoning] the legal grounds / [Recommendation] next steps"
    ),
}


def role_for(round_number: int) -> RoleType:
    """Speaker of a trial round."""
    return plan_for(round_number).role

def plan_for(round_number: int) -> RoundPlan:
    try:
        return ROUND_PLAN[round_number]
    except KeyError:
        raise ValueError(f"Round must be between 1 and {FINAL_ROUND}, got {round_number}") from None

def serialize_context(messages: Sequence[Message], max_chars: Optional[int] = None) -> str:
    """Render ``[<role-label>]: <content>`` lines in transcript order.

    With ``max_chars`` set, the oldest whole messages are dropped until the
    rendering fits; the most recent message is always kept.
    """
    lines = [f"[{ROLE_LABELS[m.role]}]: {m.content}" for m in messages]
    if max_chars is not None:
        while len(lines) > 1 and len("\n".join(lines)) > max_chars:
            lines.pop(0)
    return "\n".join(lines)


@dataclass
class PromptContext:
    """Inputs for one prompt; which fields matter depends on the mode."""
    setup: Optional[TrialSetup] = None
    transcript: Sequence[Message] = field(default_factory=list)
    question: str = ""
    category: LegalCategory = LegalCategory.OTHER
    document_text: str = ""
    side: Side = Side.PLAINTIFF


@dataclass(frozen=True)
class ComposedPrompt:
    system_prompt: str
    user_prompt: str
    role: RoleType = RoleType.JUDGE

    def to_messages(self) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": self.user_prompt},
        ]

    def to_payload(self, model: str, max_tokens: int, temperature: float, stream: bool = True) -> ChatPayload:
        return ChatPayload(
            model=model,
            messages=[ChatMessage(**m) for m in self.to_messages()],
            stream=stream,
            max_tokens=max_tokens,
            temperature=temperature,
        )


class PromptComposer:
    """Builds the system and user messages sent upstream."""

    def __init__(
        self,
        language: str = "Korean",
        personas: Optional[Dict[str, str]] = None,
        max_context_chars: Optional[int] = None
    ):
        self.language = language
        self.max_context_chars = max_context_chars
        self.personas: Dict[RoleType, str] = {
            RoleType.JUDGE: JUDGE_PERSONA.format(disclaimer=DISCLAIMER),
            RoleType.PROSECUTOR: PROSECUTOR_PERSONA,
            RoleType.DEFENSE: DEFENSE_PERSONA,
        }
        for role, text in (personas or {}).items():
            self.personas[RoleType(role)] = text

    def compose(
        self,
        mode: CourtMode,
        context: PromptContext,
        round_number: Optional[int] = None,
        role: Optional[RoleType] = None
    ) -> ComposedPrompt:
        """Build the prompt pair for ``mode``.

        Trial prompts need ``round_number``; the speaker always comes from the
        round table and a conflicting ``role`` is rejected.
        """
        mode = CourtMode(mode)
        if mode == CourtMode.TRIAL:
            if round_number is None:
                raise ValueError("Trial prompts require a round number")
            prompt = self._compose_trial_round(round_number, context)
        elif mode == CourtMode.QUICK:
            prompt = self._compose_quick_consult(context)
        else:
            prompt = self._compose_document_analysis(context)

        if role is not None and RoleType(role) != prompt.role:
            raise ValueError(f"{mode.value} prompt speaks as {prompt.role.value}, not {RoleType(role).value}")
        return prompt

    def _with_language(self, text: str) -> str:
        return f"{text}\n- {LANGUAGE_RULE.format(language=self.language)}"

    def _compose_trial_round(self, round_number: int, context: PromptContext) -> ComposedPrompt:
        plan = plan_for(round_number)
        if context.setup is None:
            raise ValueError("Trial prompts require a case setup")

        case_context = (
            f"Case type: {CASE_TYPE_LABELS[CaseType(context.setup.case_type)]}\n"
            f"Case details: {context.setup.describe()}\n"
            f"Current round: {round_number}\n"
            f"Previous statements:\n"
            f"{serialize_context(context.transcript, self.max_context_chars)}"
        )
        return ComposedPrompt(
            system_prompt=self._with_language(self.personas[plan.role]),
            user_prompt=f"{plan.instruction}\n{case_context}",
            role=plan.role
        )

    def _compose_quick_consult(self, context: PromptContext) -> ComposedPrompt:
        category = LEGAL_CATEGORY_LABELS[LegalCategory(context.category)]
        system_prompt = QUICK_CONSULT_PROMPT.format(category=category, disclaimer=DISCLAIMER)
        return ComposedPrompt(
            system_prompt=self._with_language(system_prompt),
            user_prompt=context.question.strip()
        )

    def _compose_document_analysis(self, context: PromptContext) -> ComposedPrompt:
        system_prompt = DOCUMENT_ANALYSIS_PROMPT.format(side=SIDE_LABELS[Side(context.side)])
        return ComposedPrompt(
            system_prompt=self._with_language(system_prompt),
            user_prompt=f"Please analyze the following legal document:\n\n{context.document_text}"
        )

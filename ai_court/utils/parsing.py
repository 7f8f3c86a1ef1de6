# ai_court/utils/parsing.py
"""Utilities for parsing LLM responses."""

import re
import json
import math
from typing import Optional, Dict, Any, List
from loguru import logger

SECTION_TAGS = ("Ruling", "Reasoning", "Recommendation")

def extract_json_from_response(response: str) -> Optional[Dict[str, Any]]:
    """
    Extract a JSON object from a response string.
    Handles cases where the JSON might be wrapped in markdown code blocks.
    """
    if not response:
        return None

    # Try to parse the entire response as JSON first
    try:
        parsed = json.loads(response)
        if isinstance(parsed, dict):
            return parsed
    except json.JSONDecodeError:
        pass

    json_patterns = [
        r'```json\s*([\s\S]*?)\s*```',
        r'```\s*([\s\S]*?)\s*```',
        r'\{[\s\S]*\}'
    ]

    for pattern in json_patterns:
        matches = re.findall(pattern, response, re.MULTILINE)
        for match in matches:
            try:
                parsed = json.loads(match)
                if isinstance(parsed, dict):
                    return parsed
            except json.JSONDecodeError:
                continue

    logger.warning(f"Could not extract JSON from response: {response[:200]}...")
    return None

def coerce_score(value: Any, default: float = 50.0, low: float = 0.0, high: float = 100.0) -> float:
    """
    Coerce a score such as ``72``, ``"72"`` or ``"72%"`` into ``[low, high]``.
    Unparseable values yield ``default``.
    """
    if isinstance(value, bool):
        return default
    if isinstance(value, str):
        match = re.search(r'-?\d+(?:\.\d+)?', value)
        if not match:
            return default
        value = match.group(0)
    try:
        score = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(score):
        return default
    return min(max(score, low), high)

def coerce_string_list(value: Any) -> List[str]:
    """Normalize a JSON field that should hold a list of strings."""
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    return [str(item).strip() for item in value if item is not None and str(item).strip()]

def extract_tagged_sections(text: str, tags=SECTION_TAGS) -> Dict[str, str]:
    """
    Split free text on ``[Tag]`` markers into ``{tag_lower: body}``.

    Tags missing from the text are absent from the result. Matching is
    case-insensitive and tolerates ``**[Tag]**`` style emphasis.
    """
    pattern = r'\[\s*(' + '|'.join(re.escape(t) for t in tags) + r')\s*\]'
    matches = list(re.finditer(pattern, text, re.IGNORECASE))
    sections: Dict[str, str] = {}
    for i, match in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
        body = text[match.end():end].strip().strip('*/').strip()
        sections.setdefault(match.group(1).lower(), body)
    return sections

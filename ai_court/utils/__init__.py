# ai_court/utils/__init__.py
from .logging_config import setup_logging, configure_logging
from .parsing import extract_json_from_response, extract_tagged_sections
from .formatters import format_transcript, format_verdict

__all__ = [
    "setup_logging",
    "configure_logging",
    "extract_json_from_response",
    "extract_tagged_sections",
    "format_transcript",
    "format_verdict",
]

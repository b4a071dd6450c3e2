"""
Text processing utilities.
"""
import html
from typing import Optional


def safe_text(text: Optional[str]) -> str:
    """
    Escape HTML special characters for Telegram messages sent with parse_mode=HTML.

    Args:
        text: Input text, may be None

    Returns:
        HTML-escaped text, empty string for None
    """
    if text is None:
        return ""
    return html.escape(str(text))


def truncate_text(text: str, max_length: int = 50) -> str:
    """Shorten text to max_length, ending with an ellipsis when cut"""
    if len(text) <= max_length:
        return text
    return text[:max_length - 1] + "…"


def clean_email(email: str) -> str:
    return (email or "").strip().lower()


def full_name(first_name: Optional[str], last_name: Optional[str] = None) -> str:
    return " ".join(part for part in (first_name, last_name) if part)

import re
from typing import Optional

SEARCH_TERM_MAX_LENGTH = 100

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


def clean_text(value: Optional[str], max_length: int = 500) -> str:
    """
    Trim, drop control characters and cap the length of free-text input.

    Unlike validation, this never rejects: over-long input is truncated.
    """
    if not value:
        return ""

    value = _CONTROL_CHARS.sub("", str(value)).strip()
    return value[:max_length]


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user input only ever matches literally (escape char: backslash)"""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def sanitize_search_term(value: Optional[str], max_length: int = SEARCH_TERM_MAX_LENGTH) -> str:
    """Clean a search filter value; the result is safe to embed in a bound LIKE pattern"""
    return clean_text(value, max_length=max_length)


def like_pattern(term: str) -> str:
    """Build a %term% substring pattern from an already sanitized term"""
    return f"%{escape_like(term)}%"

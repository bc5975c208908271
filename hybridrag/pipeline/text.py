"""
Text Cleaning
=============

Normalizes extracted document text before chunking.

Control characters and the Unicode replacement character are removed,
horizontal whitespace is collapsed, paragraph breaks are kept (the
splitter prefers them as chunk boundaries) and the result is capped at a
maximum length.
"""

import re

from hybridrag.exceptions import EmptyContentError

TRUNCATION_MARKER = "..."

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F\uFFFD]")
_HORIZONTAL_WS = re.compile(r"[ \t\r\f\v\u00A0]+")
_EXTRA_NEWLINES = re.compile(r"\n{3,}")
_SPACE_AROUND_NEWLINE = re.compile(r" *\n *")


def clean_text(text: str) -> str:
    """
    Strip control characters and collapse whitespace.

    Example:
        >>> clean_text("Hello\\x00   world\\n\\n\\n\\nNext")
        'Hello world\\n\\nNext'
    """
    if not text:
        return ""

    result = text.replace("\r\n", "\n")
    result = _CONTROL_CHARS.sub("", result)
    result = _HORIZONTAL_WS.sub(" ", result)
    result = _SPACE_AROUND_NEWLINE.sub("\n", result)
    result = _EXTRA_NEWLINES.sub("\n\n", result)
    return result.strip()


def truncate_text(text: str, max_length: int) -> str:
    """Cap ``text`` at ``max_length`` characters, appending a marker when cut."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + TRUNCATION_MARKER


def prepare_text(text: str, max_length: int) -> str:
    """
    Validate, clean and cap document text.

    Raises:
        EmptyContentError: if nothing remains after cleaning
    """
    if not text or not text.strip():
        raise EmptyContentError("Document contains no extractable text")

    cleaned = clean_text(text)
    if not cleaned:
        raise EmptyContentError("Document contains only control characters or whitespace")

    return truncate_text(cleaned, max_length)

"""
Name Normalization
==================

Normalization of entity names for deduplication and deterministic ids.

Example:
    >>> normalize_name("GPT-4 Turbo")
    'gpt_4_turbo'
    >>> normalize_name("Москва")
    'москва'
    >>> make_entity_id("doc-1", "OpenAI")
    'doc-1_entity_openai'
"""

import re
import unicodedata


def normalize_name(name: str) -> str:
    """
    Normalize an entity name for use as a key.

    Operations:
    - Lowercase
    - Strip accents
    - Replace every run of non-alphanumeric characters with "_" (Unicode
      letters and digits are kept, so Cyrillic or CJK names survive)
    - Trim leading/trailing underscores

    Args:
        name: Display name

    Returns:
        Normalized name, empty string when nothing alphanumeric remains
    """
    if not name:
        return ""

    result = unicodedata.normalize("NFD", name.lower())
    result = "".join(
        char for char in result
        if unicodedata.category(char) != "Mn"
    )
    result = re.sub(r"[\W_]+", "_", result)
    return result.strip("_")


def make_entity_id(document_id: str, name: str) -> str:
    """Deterministic entity id, stable across re-extractions of a document."""
    return f"{document_id}_entity_{normalize_name(name)}"

"""Annotation Text Module

Prepares completion text for embedding in a GraphQL payload.

Escaping order is fixed: backslashes first, then double quotes. Escaping
quotes first would double-escape the backslash that was just inserted
(``"`` -> ``\\"`` -> ``\\\\"``), producing text that cannot be decoded back.
"""

import re

ESCAPED_CHAR = re.compile(r'\\(["\\])')


def escape_annotation(text: str) -> str:
    """Trim text and escape backslashes and double quotes.

    Args:
        text: Raw completion text

    Returns:
        Trimmed text with ``\\`` -> ``\\\\`` and ``"`` -> ``\\"``
    """
    if not text:
        return ""
    text = text.strip()
    text = text.replace("\\", "\\\\")
    return text.replace('"', '\\"')


def unescape_annotation(text: str) -> str:
    """Inverse of ``escape_annotation`` (apart from the trim)."""
    if not text:
        return ""
    return ESCAPED_CHAR.sub(r"\1", text)

"""Utilities for handling HTML entities in captured math text."""
from __future__ import annotations

import html
import re
from typing import Optional

# Named references need their ";"; numeric ones often lose it in the wild
_ENTITY_RE = re.compile(r"&(?:[a-zA-Z][a-zA-Z0-9]+;|#[xX][0-9A-Fa-f]+;?|#\d+;?)")


def decode_html_entity(entity: str) -> Optional[str]:
    """
    Decode a single HTML entity to its Unicode text.

    Args:
        entity: HTML entity like "&amp;", "&#x03B1;" or "&#945;"

    Returns:
        Decoded text, or None if the entity is unknown
    """
    if not entity:
        return None
    entity = entity.strip()
    decoded = html.unescape(entity if entity.endswith(";") else entity + ";")
    if decoded == entity or decoded.endswith(";") and decoded[:-1] == entity:
        return None
    return decoded


def decode_html_entities(text: str) -> str:
    """
    Decode every HTML entity in a string.

    Text extracted from a parsed page is already decoded once; pages that
    double-escape (``&amp;lt;``) still carry entities, which are resolved here.

    Args:
        text: String potentially containing HTML entities

    Returns:
        String with entities decoded to Unicode characters
    """
    if not text or "&" not in text:
        return text

    def replace_entity(match: re.Match) -> str:
        entity = match.group(0)
        decoded = decode_html_entity(entity)
        return decoded if decoded is not None else entity

    return _ENTITY_RE.sub(replace_entity, text)

"""
Expression extractor.

Walks the text nodes of a BeautifulSoup subtree in document order and
returns every delimiter-bounded math span. Subtrees that must not be
touched are skipped: non-renderable tags, elements marked with the ignore
or processed class, and editable elements.
"""
from __future__ import annotations

import re
from typing import Iterable, Iterator, Optional, Union

from bs4 import NavigableString, Tag
from bs4.element import PreformattedString

from core.config import IGNORE_CLASS, PROCESSED_CLASS, settings
from core.logger import logger
from services.dom.math_span import MathSpan
from utils.html_entity_utils import decode_html_entities

Node = Union[Tag, NavigableString]

# Precedence order: earlier patterns claim text before later ones
DELIMITER_PATTERNS: tuple[tuple[str, re.Pattern[str], bool], ...] = (
    ("$$", re.compile(r"(?<!\\)\$\$([\s\S]+?)\$\$"), True),
    ("\\[", re.compile(r"\\\[([\s\S]+?)\\\]"), True),
    ("$", re.compile(r"(?<![\\$])\$(?!\$)((?:\\.|[^$\\\r\n])+?)\$(?!\$)"), False),
    ("\\(", re.compile(r"\\\(([\s\S]+?)\\\)"), False),
)

_DISPLAY_ENVIRONMENT_RE = re.compile(r"\\begin\s*\{(?:align|equation|gather|multline)\*?\}")
_MATH_HINT_RE = re.compile(r"\\.|[\^_{}=+\-*/<>|()\[\]]")
_PRICE_START_RE = re.compile(r"\d[\d.,]*\s")


def _looks_like_price(content: str) -> bool:
    """Single-dollar spans also match prices ("$5 and $10")."""
    return bool(_PRICE_START_RE.match(content)) and not _MATH_HINT_RE.search(content)


def find_math_spans(text: str) -> list[tuple[int, int, str, bool]]:
    """Locate math spans in plain text.

    Returns ``(start, end, raw_text, display_mode)`` tuples sorted by start;
    ``raw_text`` is entity-decoded and trimmed.
    """
    claimed: list[tuple[int, int]] = []
    found: list[tuple[int, int, str, bool]] = []
    for delimiter, pattern, display_mode in DELIMITER_PATTERNS:
        if delimiter[-1] not in text:
            continue
        for match in pattern.finditer(text):
            start, end = match.span()
            if any(start < c_end and c_start < end for c_start, c_end in claimed):
                continue
            raw_text = decode_html_entities(match.group(1)).strip()
            if not raw_text:
                continue
            if delimiter == "$" and _looks_like_price(raw_text):
                continue
            display = display_mode or bool(_DISPLAY_ENVIRONMENT_RE.match(raw_text))
            claimed.append((start, end))
            found.append((start, end, raw_text, display))
    found.sort()
    return found


class ExpressionExtractor:
    """Collect ``MathSpan`` objects from a DOM subtree."""

    def __init__(self, ignored_tags: Optional[Iterable[str]] = None) -> None:
        tags = settings.ignored_tags if ignored_tags is None else ignored_tags
        self.ignored_tags = frozenset(tag.lower() for tag in tags)

    # ----------------------------------------------------------------------
    # Public API
    # ----------------------------------------------------------------------

    def extract(self, root: Node) -> list[MathSpan]:
        """All math spans under ``root``, in document order."""
        if self._inside_skipped_subtree(root):
            return []
        if isinstance(root, NavigableString):
            return self.extract_from_text(root)
        spans: list[MathSpan] = []
        for node in self.iter_text_nodes(root):
            spans.extend(self.extract_from_text(node))
        if spans:
            logger.debug("Extracted %d math spans", len(spans))
        return spans

    def extract_from_text(self, node: NavigableString) -> list[MathSpan]:
        """Math spans of a single text node."""
        if not self._is_plain_text(node):
            return []
        text = str(node)
        return [
            MathSpan(
                raw_text=raw_text,
                display_mode=display_mode,
                source_node=node,
                match_text=text[start:end],
                start_offset=start,
                end_offset=end,
            )
            for start, end, raw_text, display_mode in find_math_spans(text)
        ]

    def iter_text_nodes(self, root: Tag) -> Iterator[NavigableString]:
        """Renderable text nodes under ``root`` in document order."""
        stack = [iter(root.children)]
        while stack:
            child = next(stack[-1], None)
            if child is None:
                stack.pop()
                continue
            if isinstance(child, Tag):
                if not self.is_skipped(child):
                    stack.append(iter(child.children))
            elif self._is_plain_text(child):
                yield child

    def is_skipped(self, tag: Tag) -> bool:
        """Whether the subtree rooted at ``tag`` must not be touched."""
        if tag.name and tag.name.lower() in self.ignored_tags:
            return True
        classes = tag.get("class") or []
        if isinstance(classes, str):
            classes = classes.split()
        if IGNORE_CLASS in classes or PROCESSED_CLASS in classes:
            return True
        editable = tag.get("contenteditable")
        return editable is not None and str(editable).strip().lower() != "false"

    # ----------------------------------------------------------------------
    # Helpers
    # ----------------------------------------------------------------------

    @staticmethod
    def _is_plain_text(node: object) -> bool:
        return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)

    def _inside_skipped_subtree(self, root: Node) -> bool:
        if isinstance(root, Tag) and self.is_skipped(root):
            return True
        return any(self.is_skipped(parent) for parent in root.parents)

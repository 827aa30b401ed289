"""
DOM mutator.

Splices render results into the tree: the owning text node is replaced,
in one ``replace_with`` call, by before-text, a marked container and
after-text. Containers carry the processed class and the original matched
text, which is what makes re-rendering terminate and ``restore`` possible.
"""
from __future__ import annotations

from typing import Optional

from bs4 import BeautifulSoup, NavigableString, Tag

from core.config import (
    DISPLAY_CLASS,
    ERROR_ATTR,
    FALLBACK_CLASS,
    INLINE_CLASS,
    METHOD_ATTR,
    ORIGINAL_ATTR,
    PROCESSED_CLASS,
)
from core.logger import logger
from services.dom.extractor import ExpressionExtractor
from services.dom.math_span import MathSpan
from services.render.pipeline import RenderMethod, RenderOutcome


def _soup_for(node: NavigableString) -> BeautifulSoup:
    for parent in node.parents:
        if isinstance(parent, BeautifulSoup):
            return parent
    return BeautifulSoup("", "html.parser")


class DomMutator:
    """Write render outcomes into the DOM and undo them again."""

    def __init__(self, extractor: Optional[ExpressionExtractor] = None) -> None:
        self.extractor = extractor or ExpressionExtractor()

    # ----------------------------------------------------------------------
    # Public API
    # ----------------------------------------------------------------------

    def apply(self, span: MathSpan, outcome: RenderOutcome) -> list[MathSpan]:
        """Replace ``span`` with its container.

        Returns the spans found by re-scanning the text that followed the
        match in the same node; the spliced node's other spans are stale.
        A detached or changed node is skipped silently.
        """
        if span.is_stale():
            logger.debug("Skipping stale span %r", span.match_text[:60])
            return []

        node = span.source_node
        text = str(node)
        before = text[:span.start_offset]
        after = text[span.end_offset:]

        pieces: list[Tag | NavigableString] = []
        if before:
            pieces.append(NavigableString(before))
        pieces.append(self.build_container(span, outcome))
        after_node = NavigableString(after) if after else None
        if after_node is not None:
            pieces.append(after_node)
        node.replace_with(*pieces)

        if after_node is None:
            return []
        return self.extractor.extract_from_text(after_node)

    def build_container(self, span: MathSpan, outcome: RenderOutcome) -> Tag:
        """Element holding either the rendered markup or the original text."""
        soup = _soup_for(span.source_node)
        if outcome.success and outcome.rendered_markup:
            container = soup.new_tag("div" if span.display_mode else "span")
            container["class"] = [PROCESSED_CLASS, DISPLAY_CLASS if span.display_mode else INLINE_CLASS]
            fragment = BeautifulSoup(outcome.rendered_markup, "html.parser")
            for child in list(fragment.contents):
                container.append(child.extract())
        else:
            container = soup.new_tag("span")
            if outcome.method is RenderMethod.EMPTY:
                container["class"] = [PROCESSED_CLASS]
            else:
                container["class"] = [PROCESSED_CLASS, FALLBACK_CLASS]
            if outcome.error is not None:
                container[ERROR_ATTR] = outcome.error.message
                container["title"] = outcome.error.message
            container.string = span.match_text
        container[ORIGINAL_ATTR] = span.match_text
        container[METHOD_ATTR] = outcome.method.value
        return container

    def restore(self, root: Tag) -> int:
        """Put the original text back for every container under ``root``."""
        restored = 0
        for container in root.find_all(class_=PROCESSED_CLASS):
            original = container.get(ORIGINAL_ATTR)
            if original is None or container.parent is None:
                continue
            container.replace_with(NavigableString(original))
            restored += 1
        if restored:
            root.smooth()
            logger.info("Restored %d math containers", restored)
        return restored

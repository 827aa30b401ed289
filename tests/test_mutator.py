"""Tests for the DOM mutator."""
from __future__ import annotations

from core.config import FALLBACK_CLASS, ORIGINAL_ATTR, PROCESSED_CLASS
from services.dom.extractor import ExpressionExtractor
from services.dom.mutator import DomMutator
from services.render.pipeline import ErrorInfo, RenderMethod, RenderOutcome

MATHML = '<math xmlns="http://www.w3.org/1998/Math/MathML"><mi>x</mi></math>'


def _rendered() -> RenderOutcome:
    return RenderOutcome(success=True, method=RenderMethod.STRICT, rendered_markup=MATHML)


def _failed(tex: str) -> RenderOutcome:
    return RenderOutcome(
        success=False,
        method=RenderMethod.FALLBACK_TEXT,
        error=ErrorInfo(message="Undefined control sequence", tex=tex),
    )


class TestApply:
    """Splicing containers into text nodes."""

    def test_rendered_inline_container(self, make_soup) -> None:
        soup = make_soup("<p>a $x$ b</p>")
        (span,) = ExpressionExtractor().extract(soup)

        follow_ups = DomMutator().apply(span, _rendered())

        assert follow_ups == []
        container = soup.find(class_=PROCESSED_CLASS)
        assert container.name == "span"
        assert container["class"] == [PROCESSED_CLASS, "pagemath-inline"]
        assert container[ORIGINAL_ATTR] == "$x$"
        assert container["data-pagemath-method"] == "strict"
        assert container.math is not None
        assert [str(child) for child in soup.p.contents if isinstance(child, str)] == ["a ", " b"]

    def test_display_container_is_a_div(self, make_soup) -> None:
        soup = make_soup("<p>$$x$$</p>")
        (span,) = ExpressionExtractor().extract(soup)
        DomMutator().apply(span, _rendered())
        assert soup.find(class_="pagemath-display").name == "div"

    def test_fallback_keeps_original_text(self, make_soup) -> None:
        soup = make_soup(r"<p>see $\bogus{x}$ here</p>")
        (span,) = ExpressionExtractor().extract(soup)

        DomMutator().apply(span, _failed(span.raw_text))

        container = soup.find(class_=FALLBACK_CLASS)
        assert container.get_text() == r"$\bogus{x}$"
        assert container["data-pagemath-error"] == "Undefined control sequence"
        assert soup.p.get_text() == r"see $\bogus{x}$ here"

    def test_empty_outcome_is_processed_but_not_fallback(self, make_soup) -> None:
        soup = make_soup("<p>$\\{\\}$</p>")
        (span,) = ExpressionExtractor().extract(soup)
        DomMutator().apply(span, RenderOutcome(success=False, method=RenderMethod.EMPTY))
        container = soup.find(class_=PROCESSED_CLASS)
        assert container["class"] == [PROCESSED_CLASS]

    def test_returns_spans_after_the_match(self, make_soup) -> None:
        soup = make_soup("<p>$a$ and $b$ and $c$</p>")
        extractor = ExpressionExtractor()
        mutator = DomMutator(extractor)
        first, second, third = extractor.extract(soup)

        follow_ups = mutator.apply(first, _rendered())

        assert second.is_stale() and third.is_stale()
        assert [span.raw_text for span in follow_ups] == ["b", "c"]
        next_ups = mutator.apply(follow_ups[0], _rendered())
        assert [span.raw_text for span in next_ups] == ["c"]
        mutator.apply(next_ups[0], _rendered())
        assert len(soup.find_all(class_=PROCESSED_CLASS)) == 3

    def test_detached_node_is_skipped(self, make_soup) -> None:
        soup = make_soup("<p>$x$</p>")
        (span,) = ExpressionExtractor().extract(soup)
        span.source_node.extract()

        assert DomMutator().apply(span, _rendered()) == []
        assert soup.find(class_=PROCESSED_CLASS) is None


class TestRestore:
    """Undoing mutations."""

    def test_restore_puts_original_text_back(self, make_soup) -> None:
        markup = r"<p>a $x$ b $\bogus$ c</p>"
        soup = make_soup(markup)
        extractor = ExpressionExtractor()
        mutator = DomMutator(extractor)
        first, _ = extractor.extract(soup)
        (second,) = mutator.apply(first, _rendered())
        mutator.apply(second, _failed(second.raw_text))

        assert mutator.restore(soup) == 2
        assert str(soup) == markup
        assert len(soup.p.contents) == 1

    def test_restore_without_containers(self, make_soup) -> None:
        soup = make_soup("<p>plain</p>")
        assert DomMutator().restore(soup) == 0
        assert str(soup) == "<p>plain</p>"

"""Tests for the composed normalizer."""
from __future__ import annotations

import pytest

from services.latex.simplifier import NORMALIZER_PASSES, normalize, simplify, simplify_once


def test_pass_order() -> None:
    names = [name for name, _ in NORMALIZER_PASSES]
    assert names == [
        "fractions",
        "nuclear",
        "environments",
        "arrows",
        "derivatives",
        "text-wrappers",
        "nuclear-after-unwrap",
        "incomplete-commands",
        "unicode",
        "accents",
    ]


class TestScenarios:
    """End-to-end repairs of malformed page math."""

    def test_rac_typo(self) -> None:
        assert simplify("rac{1}{2}") == r"\frac{1}{2}"

    def test_split_superscript_numerator(self) -> None:
        assert simplify(r"\frac{\pi^{2}{6}") == r"\frac{\pi^{2}}{6}"

    def test_nuclear_in_text(self) -> None:
        assert simplify(r"\text{_Z^A X}") == r"{}^{A}_{Z}\text{X}"

    def test_nuclear_reaction(self) -> None:
        source = r"{}^{A}\text{N} \rightarrow {}{}{}^{A-4}_{Z-2}\text{N'} + {}{}^{4}_{2}\text{He}"
        expected = r"{}^{A}\text{N} \rightarrow {}^{A-4}_{Z-2}\text{N'} + {}^{4}_{2}\text{He}"
        assert simplify(source) == expected

    def test_missing_closing_brace(self) -> None:
        assert simplify(r"\sqrt{\pi") == r"\sqrt{\pi}"

    def test_unterminated_text_keeps_content(self) -> None:
        assert "for all real x" in simplify(r"f(x) > 0 \text{for all real x")

    def test_math_exposed_by_unwrapping_is_canonicalized(self) -> None:
        assert simplify(r"\text{^{4}_{2}He + \alpha}") == r"{}^{4}_{2}\text{He} + \alpha"

    def test_decay_with_particles(self) -> None:
        result = simplify(r"\text{_Z^A X} \to \text{_{Z+1}^A Y} + e^- + \bar{\nu}")
        assert result == r"{}^{A}_{Z}\text{X} \rightarrow {}^{A}_{Z+1}\text{Y} + e^{-} + \overline{\nu}"

    def test_matrix_product_is_not_an_isotope(self) -> None:
        assert simplify("A^T B") == "A^T B"

    def test_control_escape_recovery(self) -> None:
        assert simplify("\x0crac{a}{b}") == r"\frac{a}{b}"

    def test_blank_input(self) -> None:
        assert simplify("   ") == ""


@pytest.mark.parametrize(
    "source",
    [
        "rac{1}{2}",
        r"\frac{\pi^{2}{6}",
        r"\text{_Z^A X}",
        r"{}{}{}^{A}_{Z}_{x}\text{N}",
        r"\sqrt{\pi + \frac{1}{2",
        r"\left( \frac{d}{dx} \right",
        r"lim_{x o infty} \frac12 \to 0",
        r"\begin{align} a &= b \\ c",
        r"\begin{pmatrix} 1 & 2 \\ 3 & 4",
        "α² + β₁ ≤ ½",
        r"\'{e} \~n \text{caf\'{e}}",
        r"\text{x^2 + 1}^{2} \text{velocity}",
        r"x^ + \int_{0}^",
        r"}}} \{ \text",
        r"\int_{-\infty}^{\infty} e^{-x^2} dx = \sqrt{\pi}",
        "",
    ],
)
def test_simplify_is_idempotent(source: str) -> None:
    once = simplify(source)
    assert simplify(once) == once


def test_normalize_reports_rounds() -> None:
    result = normalize(r"\frac{a}{b}")
    assert result.text == r"\frac{a}{b}"
    assert not result.changed
    assert result.rounds == 1


def test_normalize_marks_changes() -> None:
    result = normalize("rac{1}{2}")
    assert result.changed
    assert result.original == "rac{1}{2}"


def test_simplify_once_is_a_single_round() -> None:
    assert simplify_once(r"\sqrt{x") == r"\sqrt{x}"

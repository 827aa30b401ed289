"""Tests for the empty-group canonicalizer."""
from __future__ import annotations

import pytest

from services.latex.empty_groups import collapse_empty_groups


def test_run_before_superscript_keeps_one_base() -> None:
    assert collapse_empty_groups("{}{}{}^{A}") == "{}^{A}"


def test_run_before_subscript_keeps_one_base() -> None:
    assert collapse_empty_groups("{}{} _{2}") == "{} _{2}"


def test_redundant_runs_are_removed() -> None:
    assert collapse_empty_groups("a{}{}b") == "ab"
    assert collapse_empty_groups("x + {} = y") == "x +  = y"


def test_nuclear_reaction() -> None:
    source = r"{}^{A}\text{N} \rightarrow {}{}{}^{A-4}_{Z-2}\text{N'} + {}{}^{4}_{2}\text{He}"
    expected = r"{}^{A}\text{N} \rightarrow {}^{A-4}_{Z-2}\text{N'} + {}^{4}_{2}\text{He}"
    assert collapse_empty_groups(source) == expected


@pytest.mark.parametrize(
    "source",
    [
        r"\text{}",
        r"\frac{}{}",
        r"\frac{a}{}",
        "x^{}",
        r"\sqrt{}",
    ],
)
def test_required_arguments_survive(source: str) -> None:
    assert collapse_empty_groups(source) == source


def test_surplus_command_arguments_are_removed() -> None:
    assert collapse_empty_groups(r"\text{}{}{}") == r"\text{}"
    assert collapse_empty_groups(r"\frac{}{}{}") == r"\frac{}{}"


def test_argumentless_command_does_not_glue_to_next_letter() -> None:
    assert collapse_empty_groups(r"\alpha{}b") == r"\alpha b"


def test_escaped_braces_are_not_groups() -> None:
    assert collapse_empty_groups(r"\{\}") == r"\{\}"


def test_idempotent() -> None:
    source = r"{}{}{}^{A}_{Z}\text{X} + {}{} \frac{}{}{}"
    once = collapse_empty_groups(source)
    assert collapse_empty_groups(once) == once

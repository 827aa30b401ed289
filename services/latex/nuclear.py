"""
Nuclear and particle notation canonicalization.

Every isotope spelling found in the wild is rewritten to one canonical
form, ``{}^{A}_{Z}\\text{X}``: an empty base, the mass number as
superscript, the atomic number as subscript and the element in text mode.
Particles get the same treatment: ``e^{-}``/``e^{+}`` and
``\\overline{\\nu}`` for the antineutrino.
"""
from __future__ import annotations

import re
from typing import Callable, Union

from core.logger import logger
from services.latex.text_wrappers import CHEMICAL_ELEMENTS

Replacement = Union[str, Callable[[re.Match[str]], str]]

_ELEMENT = r"[A-Z][a-z]?'*"
_NUMBER = r"(?:[A-Z]|\d+)"
# Outside \text{} only numeric or A/Z-based mass and atomic numbers count
_MATH_NUMBER = r"(?:[AZ](?:[+-]\d+)?|\d+)"
_MATH_GROUPED_NUMBER = r"(?:[AZ]|\d)[\d+\-]*"
# An isotope may not continue an identifier, a group or a script
_NOT_ATTACHED = r"(?<![\w}\\)\]^_{])"


def _canonical(mass: str, atomic: str | None, element: str) -> str:
    atomic_part = f"_{{{atomic.strip()}}}" if atomic else ""
    return f"{{}}^{{{mass.strip()}}}{atomic_part}\\text{{{element.strip()}}}"


def _nested_text(match: re.Match[str]) -> str:
    return _canonical(match.group(1), match.group(2), match.group(3))


def _math_isotope(match: re.Match[str]) -> str:
    """Math-mode isotope; purely numeric ones need a real element symbol."""
    atomic, mass, element = match.groups()
    if atomic.isdigit() and mass.isdigit() and element.rstrip("'") not in CHEMICAL_ELEMENTS:
        return match.group(0)
    return _canonical(mass, atomic, element)


def _stacked_subscripts(match: re.Match[str]) -> str:
    mass, first, second, element = match.groups()
    if first.strip() == second.strip():
        return _canonical(mass, first, element)
    # Two different subscripts: the second belongs to the element
    return _canonical(mass, first, element) + f"_{{{second.strip()}}}"


# Isotopes spelled inside a \text{...} wrapper
_TEXT_RULES: list[tuple[str, re.Pattern[str], Replacement]] = [
    (
        "text-nested",
        re.compile(r"\\text\{\s*(?:\{\})?\s*\^\{([^{}]+)\}(?:_\{([^{}]+)\})?\s*\\text\{([^{}]*)\}\s*\}"),
        _nested_text,
    ),
    (
        "text-based",
        re.compile(r"\\text\{\s*\{\}\s*\^\{([^{}]+)\}_\{([^{}]+)\}\s*([^{}\\]+?)\s*\}"),
        lambda m: _canonical(m.group(1), m.group(2), m.group(3)),
    ),
    (
        "text-sub-sup",
        re.compile(r"\\text\{\s*_\{?([^{}\s^_]+)\}?\s*\^\{?([^{}\s^_]+)\}?\s*([^{}]+?)\s*\}"),
        lambda m: _canonical(m.group(2), m.group(1), m.group(3)),
    ),
    (
        "text-sup-sub",
        re.compile(r"\\text\{\s*\^\{?([^{}\s^_]+)\}?\s*_\{?([^{}\s^_]+)\}?\s*([^{}]+?)\s*\}"),
        lambda m: _canonical(m.group(1), m.group(2), m.group(3)),
    ),
    (
        "text-grouped",
        re.compile(r"\\text\{\s*\{([^{}]+)\}\^\{([^{}]+)\}\s*([^{}]+?)\s*\}"),
        lambda m: _canonical(m.group(2), m.group(1), m.group(3)),
    ),
    (
        "text-bare",
        re.compile(r"\\text\{\s*(" + _NUMBER + r")\^\{?(" + _NUMBER + r")\}?\s+([^{}]+?)\s*\}"),
        lambda m: _canonical(m.group(2), m.group(1), m.group(3)),
    ),
]

# Isotopes spelled in plain math mode
_MATH_RULES: list[tuple[str, re.Pattern[str], Replacement]] = [
    (
        "sub-sup",
        re.compile(_NOT_ATTACHED + r"_\{?(" + _MATH_NUMBER + r")\}?\s*\^\{?(" + _MATH_NUMBER + r")\}?\s+(" + _ELEMENT + r")(?![A-Za-z])"),
        _math_isotope,
    ),
    (
        "bare",
        re.compile(_NOT_ATTACHED + r"(" + _MATH_NUMBER + r")\^\{?(" + _MATH_NUMBER + r")\}?\s+(" + _ELEMENT + r")(?![A-Za-z])"),
        _math_isotope,
    ),
    (
        "grouped",
        re.compile(_NOT_ATTACHED + r"\{(" + _MATH_GROUPED_NUMBER + r")\}\^\{(" + _MATH_GROUPED_NUMBER + r")\}\s*(" + _ELEMENT + r")(?![A-Za-z])"),
        _math_isotope,
    ),
    (
        "missing-base",
        re.compile(r"(?<![\w}\\)\]])\^\{([^{}]+)\}_\{([^{}]+)\}\s*(?:\\text\{([^{}]+)\}|(" + _ELEMENT + r")(?![A-Za-z{]))"),
        lambda m: _canonical(m.group(1), m.group(2), m.group(3) or m.group(4)),
    ),
    (
        "missing-underscore",
        re.compile(r"(?:\{\}|(?<![\w}\\)\]]))\^\{([^{}]+)\}\{([^{}]+)\}\s*\\text\{([^{}]+)\}"),
        lambda m: _canonical(m.group(1), m.group(2), m.group(3)),
    ),
    (
        "bare-element",
        re.compile(r"\{\}\^\{([^{}]+)\}_\{([^{}]+)\}\s*(" + _ELEMENT + r")(?![A-Za-z{])"),
        lambda m: _canonical(m.group(1), m.group(2), m.group(3)),
    ),
    (
        "stacked-subscripts",
        re.compile(r"\{\}\^\{([^{}]+)\}_\{([^{}]+)\}_\{([^{}]+)\}\s*\\text\{([^{}]+)\}"),
        _stacked_subscripts,
    ),
]

_PARTICLE_RULES: list[tuple[str, re.Pattern[str], Replacement]] = [
    ("electron-text", re.compile(r"\\text\{e\}\^\{?([+-])\}?"), r"e^{\1}"),
    ("electron-text-charge", re.compile(r"\\text\{e\^\{?([+-])\}?\}"), r"e^{\1}"),
    ("electron-bare", re.compile(r"(?<![A-Za-z\\])e\^([+-])"), r"e^{\1}"),
    ("antineutrino-bar", re.compile(r"\\bar\s*(?:\{\\nu\}|\\nu(?![A-Za-z]))"), r"\\overline{\\nu}"),
    ("antineutrino-word", re.compile(r"\\text\{\s*anti-?neutrino\s*\}"), r"\\overline{\\nu}"),
    ("neutrino-word", re.compile(r"\\text\{\s*neutrino\s*\}"), r"\\nu "),
    ("excited-state", re.compile(r"\\text\{([A-Za-z]+'*)\*\}"), r"\\text{\1}^{*}"),
]


def _apply_rules(s: str, rules: list[tuple[str, re.Pattern[str], Replacement]]) -> str:
    for name, pattern, replacement in rules:
        rewritten = pattern.sub(replacement, s)
        if rewritten != s:
            logger.debug("Nuclear rule %s: %s -> %s", name, s[:80], rewritten[:80])
            s = rewritten
    return s


def canonicalize_nuclear(s: str) -> str:
    """Rewrite isotope and particle notation to its canonical form."""
    s = _apply_rules(s, _TEXT_RULES)
    s = _apply_rules(s, _MATH_RULES)
    return _apply_rules(s, _PARTICLE_RULES)

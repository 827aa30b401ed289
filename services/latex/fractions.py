"""
Fraction repair.

Two steps:
1. ``rac`` typos (the ``\\f`` of ``\\frac`` eaten as an escape) are turned
   back into ``\\frac``.
2. Every ``\\frac`` gets exactly two braced arguments: single tokens are
   wrapped, arguments cut off at the end become ``{}``, and a numerator that
   swallowed its denominator after a superscript (``\\frac{\\pi^{2}{6}``) is
   split back into two groups.
"""
from __future__ import annotations

import re

from core.logger import logger
from services.latex.scanning import read_group, read_token

_RAC_GROUP_RE = re.compile(r"(?<![\\A-Za-z])rac\{")
_RAC_DIGITS_RE = re.compile(r"(?<![\\A-Za-z])rac(\d)(\d+)")
_RAC_BARE_RE = re.compile(r"(?<![\\A-Za-z])rac(?![A-Za-z])")

_FRAC_RE = re.compile(r"\\[dtc]?frac(?![A-Za-z])")
_SPLIT_SUPERSCRIPT_RE = re.compile(r"([^{}]*\^\{[^{}]*\})\{([^{}]*)\}", re.DOTALL)

# Tokens that can never start a fraction argument
_NOT_AN_ARGUMENT = frozenset({r"\\", r"\right", r"\end", r"\begin"})


def fix_rac_typos(s: str) -> str:
    """``rac{1}{2}`` / ``rac27`` / bare ``rac`` -> ``\\frac`` forms."""
    s = _RAC_GROUP_RE.sub(r"\\frac{", s)
    s = _RAC_DIGITS_RE.sub(r"\\frac{\1}{\2}", s)
    return _RAC_BARE_RE.sub(r"\\frac", s)


def _read_argument(s: str, start: int) -> tuple[str | None, int, bool, bool]:
    """Read one fraction argument after optional spaces.

    Returns ``(content, end, closed, is_group)``; ``content`` is None when
    the argument is missing, in which case ``end`` is ``start``.
    """
    i = start
    while i < len(s) and s[i] in " \t\n":
        i += 1
    if i >= len(s):
        return None, start, True, False
    if s[i] == "{":
        content, end, closed = read_group(s, i)
        return content, end, closed, True
    token = read_token(s, i)
    if token is None or token[0] in _NOT_AN_ARGUMENT:
        return None, start, True, False
    return token[0], token[1], True, False


def _split_numerator(content: str, whole: bool) -> tuple[str, str, str] | None:
    match = (_SPLIT_SUPERSCRIPT_RE.fullmatch if whole else _SPLIT_SUPERSCRIPT_RE.match)(content)
    if not match:
        return None
    return match.group(1), match.group(2), content[match.end():]


def repair_fraction_arguments(s: str) -> str:
    """Give every ``\\frac`` two closed, braced arguments."""
    out: list[str] = []
    pos = 0
    while True:
        match = _FRAC_RE.search(s, pos)
        if not match:
            out.append(s[pos:])
            break
        out.append(s[pos:match.end()])
        numerator, after_num, num_closed, num_is_group = _read_argument(s, match.end())
        if numerator is None:
            out.append("{}{}")
            pos = match.end()
            continue

        if not num_closed:
            # Numerator runs to the end of the string
            split = _split_numerator(numerator, whole=False)
            if split:
                top, bottom, rest = split
                out.append("{%s}{%s}" % (repair_fraction_arguments(top), repair_fraction_arguments(bottom)))
                out.append(repair_fraction_arguments(rest))
            else:
                out.append("{%s}{}" % repair_fraction_arguments(numerator))
            pos = len(s)
            break

        denominator, after_den, _, den_is_group = _read_argument(s, after_num)
        split = _split_numerator(numerator, whole=True) if num_is_group and not den_is_group else None
        if split:
            top, bottom, _ = split
            out.append("{%s}{%s}" % (repair_fraction_arguments(top), repair_fraction_arguments(bottom)))
            pos = after_num
        elif denominator is None:
            out.append("{%s}{}" % repair_fraction_arguments(numerator))
            pos = after_num
        else:
            out.append("{%s}{%s}" % (
                repair_fraction_arguments(numerator),
                repair_fraction_arguments(denominator),
            ))
            pos = after_den
    return "".join(out)


def repair_fractions(s: str) -> str:
    """Run both fraction passes."""
    result = repair_fraction_arguments(fix_rac_typos(s))
    if result != s:
        logger.debug("Repaired fractions: %s -> %s", s[:80], result[:80])
    return result

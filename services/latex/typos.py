"""
Arrow/typo fixes, derivative notation and incomplete-command cleanup.

Also home of the control-escape recovery: page scripts that build LaTeX in
string literals without doubling backslashes turn ``\\frac`` into a form
feed followed by ``rac`` and ``\\text`` into a tab followed by ``ext``.
"""
from __future__ import annotations

import re

from core.logger import logger

_CONTROL_ESCAPES = {
    "\x07": "a",
    "\x08": "b",
    "\t": "t",
    "\x0b": "v",
    "\x0c": "f",
    "\n": "n",
    "\r": "r",
}
_CONTROL_WORD_RE = re.compile(r"([\x07\x08\t\n\x0b\x0c\r])([A-Za-z]+)")
_KNOWN_RECOVERED_COMMANDS = frozenset({
    "frac", "forall", "flat",
    "text", "textbf", "textit", "textrm", "times", "to", "theta", "tau",
    "tan", "tanh", "tilde", "top", "triangle", "tfrac",
    "beta", "bar", "bf", "big", "bigg", "binom", "bot", "boxed", "breve", "bullet",
    "vec", "varepsilon", "varphi", "vartheta", "varpi", "varrho", "varsigma",
    "vee", "vert", "vdots",
    "alpha", "approx", "angle", "arccos", "arcsin", "arctan", "acute", "ast", "aleph",
    "nu", "nabla", "neq", "neg", "ni", "notin", "nonumber",
    "rho", "right", "rightarrow", "rangle", "rceil", "rfloor",
})

_LIM_TYPO_RE = re.compile(r"(?<![A-Za-z])\\?lim_\{\s*([A-Za-z])\s+o\s+(\\?infty|[^{}\s]+)\s*\}")
_BARE_LIM_RE = re.compile(r"(?<![\\A-Za-z])lim(?![A-Za-z])")
_BARE_INFTY_RE = re.compile(r"(?<![\\A-Za-z])infty(?![A-Za-z])")
# A simple \lim subscript keeps its \to; every other \to becomes \rightarrow
_TO_RE = re.compile(r"(\\lim_\{[^{}]*\})|\\to(?![A-Za-z])")

_LEIBNIZ_RE = re.compile(r"\\frac\{d(\^\{?\d+\}?)?\}\{d([A-Za-z])(\^\{?\d+\}?)?\}")
_DIFFERENTIAL_RE = re.compile(r"(?<![\\A-Za-z])d([xyzt])(?![A-Za-z(])")

# \text followed by a single-character argument: "\text a"
_TOKEN_TEXT_RE = re.compile(r"\\text(?![A-Za-z])\s*([^\s{}\\^_&$%])")
_EMPTY_TEXT_RE = re.compile(r"\\text(?![A-Za-z])(?!\s*(?:\{|\\[A-Za-z]))")
# "^" or "_" with nothing left to attach to
_DANGLING_SCRIPT_RE = re.compile(r"(?<!\\)([\^_])(?=\s*(?:$|[}&^_$]|\\\\|\\\)|\\\]|\\right(?![A-Za-z])|\\end(?![A-Za-z])))")


def restore_control_escapes(s: str) -> str:
    """Turn control characters that ate a backslash back into commands."""
    if not _CONTROL_WORD_RE.search(s):
        return s

    def _replace(match: re.Match[str]) -> str:
        word = _CONTROL_ESCAPES[match.group(1)] + match.group(2)
        if word in _KNOWN_RECOVERED_COMMANDS:
            return "\\" + word
        return match.group(0)

    result = _CONTROL_WORD_RE.sub(_replace, s)
    if result != s:
        logger.debug("Recovered control escapes in %r", s[:80])
    return result


def fix_arrows_and_limits(s: str) -> str:
    """``\\to`` -> ``\\rightarrow``, ``infty``/``lim`` typos -> commands."""

    def _limit(match: re.Match[str]) -> str:
        target = match.group(2)
        if target.lstrip("\\") == "infty":
            target = r"\infty"
        return rf"\lim_{{{match.group(1)} \to {target}}}"

    s = _LIM_TYPO_RE.sub(_limit, s)
    s = _BARE_LIM_RE.sub(r"\\lim", s)
    s = _BARE_INFTY_RE.sub(r"\\infty", s)
    return _TO_RE.sub(lambda m: m.group(1) or r"\rightarrow", s)


def fix_derivatives(s: str) -> str:
    """Leibniz fractions and bare differentials get an upright ``d``."""

    def _leibniz(match: re.Match[str]) -> str:
        top_power = match.group(1) or ""
        variable = match.group(2)
        bottom_power = match.group(3) or ""
        return rf"{{\frac{{\mathrm{{d}}{top_power}}}{{\mathrm{{d}}{variable}{bottom_power}}}}}"

    s = _LEIBNIZ_RE.sub(_leibniz, s)
    return _DIFFERENTIAL_RE.sub(r"\\mathrm{d}\1", s)


def close_incomplete_commands(s: str) -> str:
    """Give argument-less ``\\text`` and dangling scripts a placeholder."""
    s = _TOKEN_TEXT_RE.sub(r"\\text{\1}", s)
    s = _EMPTY_TEXT_RE.sub(r"\\text{}", s)
    return _DANGLING_SCRIPT_RE.sub(r"\1{\\,}", s)


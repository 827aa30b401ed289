"""
Empty-Group Canonicalizer

Collapses redundant ``{}`` runs left behind by other passes while keeping
the groups LaTeX actually needs: one empty base in front of ``^``/``_``
and the empty arguments a command still expects (``\\text{}``,
``\\frac{}{}``, ``x^{}``).
"""
from __future__ import annotations

import re

from core.logger import logger

_EMPTY_RUN_RE = re.compile(r"(?<!\\)((?:\{\})+)")
_SCRIPT_AHEAD_RE = re.compile(r"\s*[\^_]")
_SCRIPT_BEHIND_RE = re.compile(r"(?<!\\)[\^_]\s*$")
_COMMAND_BEHIND_RE = re.compile(r"\\([A-Za-z]+)\*?$")
_TRAILING_COMMAND_RE = re.compile(r"\\[A-Za-z]+$")

_TWO_ARGUMENTS = frozenset({
    "frac", "dfrac", "tfrac", "cfrac", "binom", "dbinom", "tbinom",
    "overset", "underset", "stackrel", "textcolor", "colorbox",
})
_NO_ARGUMENTS = frozenset({
    "alpha", "beta", "gamma", "delta", "epsilon", "varepsilon", "zeta", "eta",
    "theta", "vartheta", "iota", "kappa", "lambda", "mu", "nu", "xi", "pi",
    "rho", "sigma", "tau", "upsilon", "phi", "varphi", "chi", "psi", "omega",
    "Gamma", "Delta", "Theta", "Lambda", "Xi", "Pi", "Sigma", "Upsilon",
    "Phi", "Psi", "Omega", "to", "gets", "mapsto", "cdot", "times", "div",
    "pm", "mp", "leq", "geq", "le", "ge", "neq", "ne", "approx", "equiv",
    "sim", "simeq", "propto", "infty", "partial", "nabla", "sum", "prod",
    "int", "oint", "lim", "sin", "cos", "tan", "log", "ln", "exp", "quad",
    "qquad", "ldots", "cdots", "dots", "in", "notin", "subset", "supset",
    "cup", "cap", "emptyset", "forall", "exists", "hbar", "ell", "circ",
    "ast", "star", "prime", "degree", "lbrace", "rbrace",
})


def _arity(name: str) -> int:
    if name in _TWO_ARGUMENTS:
        return 2
    if name in _NO_ARGUMENTS or name.endswith("arrow"):
        return 0
    return 1


def _matching_open(s: str, close: int) -> int | None:
    """Index of the ``{`` matching the ``}`` at ``close``, scanning backwards."""
    depth = 0
    for j in range(close, -1, -1):
        if j > 0 and s[j - 1] == "\\":
            continue
        if s[j] == "}":
            depth += 1
        elif s[j] == "{":
            depth -= 1
            if depth == 0:
                return j
    return None


def _argument_slots(prefix: str) -> int:
    """How many empty groups right after ``prefix`` are required arguments."""
    if _SCRIPT_BEHIND_RE.search(prefix):
        return 1
    end = len(prefix)
    groups = 0
    while end and prefix[end - 1] == "}":
        start = _matching_open(prefix, end - 1)
        if start is None:
            break
        groups += 1
        end = start
    if end and prefix[end - 1] == "]":
        start = prefix.rfind("[", 0, end - 1)
        if start != -1:
            end = start
    match = _COMMAND_BEHIND_RE.search(prefix[:end])
    if not match:
        return 0
    return max(_arity(match.group(1)) - groups, 0)


def _collapse_once(s: str) -> str:
    def _replace(match: re.Match[str]) -> str:
        count = len(match.group(1)) // 2
        prefix = match.string[:match.start()]
        rest = match.string[match.end():]
        slots = _argument_slots(prefix)
        keep = min(count, slots)
        if count > slots and _SCRIPT_AHEAD_RE.match(rest):
            keep += 1
        if keep == 0 and _TRAILING_COMMAND_RE.search(prefix) and rest[:1].isalpha():
            # Removing the group would glue the command to the next letter
            return " "
        return "{}" * keep

    return _EMPTY_RUN_RE.sub(_replace, s)


def collapse_empty_groups(s: str) -> str:
    """Collapse redundant empty groups. Safe to call repeatedly."""
    result = s
    while True:
        collapsed = _collapse_once(result)
        if collapsed == result:
            break
        result = collapsed
    if result != s:
        logger.debug("Collapsed empty groups: %s -> %s", s[:80], result[:80])
    return result

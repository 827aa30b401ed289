"""
``\\text{}`` wrapper judgment.

Pages wrap all sorts of things in ``\\text{}``: element symbols and labels
that really are text, but also whole formulas that then render as a flat
string. Each group is kept or unwrapped into math mode by a fixed rule:

(a) short label (letter with primes, element symbol, ``e^{+}``/``e^{-}``,
    word with a trailing prime or star): keep;
(b) contains a control sequence, ``^``/``_`` or a right-arrow: unwrap;
(c) plain alphanumerics and operators with at least one digit or operator: unwrap;
(d) anything else, prose in particular: keep.
"""
from __future__ import annotations

import re

from core.logger import logger
from services.latex.scanning import read_group

_TEXT_OPEN_RE = re.compile(r"\\text(?![A-Za-z])\s*\{")
_TRAILING_COMMAND_RE = re.compile(r"\\[A-Za-z]+$")

CHEMICAL_ELEMENTS = frozenset("""
H He Li Be B C N O F Ne Na Mg Al Si P S Cl Ar K Ca Sc Ti V Cr Mn Fe Co Ni
Cu Zn Ga Ge As Se Br Kr Rb Sr Y Zr Nb Mo Tc Ru Rh Pd Ag Cd In Sn Sb Te I Xe
Cs Ba La Ce Pr Nd Pm Sm Eu Gd Tb Dy Ho Er Tm Yb Lu Hf Ta W Re Os Ir Pt Au Hg
Tl Pb Bi Po At Rn Fr Ra Ac Th Pa U Np Pu Am Cm Bk Cf Es Fm Md No Lr Rf Db Sg
Bh Hs Mt Ds Rg Cn Nh Fl Mc Lv Ts Og
""".split())

_SINGLE_LETTER_RE = re.compile(r"[A-Za-z]'*")
_ELECTRON_RE = re.compile(r"e\^\{?[+-]\}?")
_WORD_RE = re.compile(r"[A-Za-z]+['*]?")
_MATH_MARKERS_RE = re.compile(r"\\[A-Za-z]|[\^_]|->|\u2192")
_PLAIN_MATH_RE = re.compile(r"[A-Za-z0-9+\-*/=<>().,|!:;\[\]\s]+")
_DIGIT_OR_OPERATOR_RE = re.compile(r"[0-9+\-*/=<>]")


def should_keep_text(content: str) -> bool:
    """Decide whether ``\\text{content}`` stays text."""
    stripped = content.strip()
    if not stripped:
        return True
    if (
        _SINGLE_LETTER_RE.fullmatch(stripped)
        or stripped.rstrip("'") in CHEMICAL_ELEMENTS
        or _ELECTRON_RE.fullmatch(stripped)
        or _WORD_RE.fullmatch(stripped)
    ):
        return True
    if _MATH_MARKERS_RE.search(stripped):
        return False
    if _PLAIN_MATH_RE.fullmatch(stripped) and _DIGIT_OR_OPERATOR_RE.search(stripped):
        return False
    return True


def unwrap_text_groups(s: str) -> str:
    """Apply the keep/unwrap rule to every ``\\text{...}`` group."""
    out: list[str] = []
    pos = 0
    while True:
        match = _TEXT_OPEN_RE.search(s, pos)
        if not match:
            out.append(s[pos:])
            break
        out.append(s[pos:match.start()])
        content, end, closed = read_group(s, match.end() - 1)
        if should_keep_text(content):
            out.append(s[match.start():end])
        else:
            inner = unwrap_text_groups(content).strip()
            if s[end:end + 1] in ("^", "_"):
                # Scripts attached to the wrapper now attach to the whole group
                inner = "{" + inner + "}"
            elif _TRAILING_COMMAND_RE.search("".join(out)) and inner[:1].isalpha():
                inner = " " + inner
            logger.debug("Unwrapped \\text{%s}", content[:60])
            out.append(inner)
        pos = end
    return "".join(out)

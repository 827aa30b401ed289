"""Equation/align environment flattening and matrix rewriting."""
from __future__ import annotations

import re

from core.logger import logger

_EQUATION_RE = re.compile(r"\\(?:begin|end)\s*\{equation\*?\}")
_NUMBERING_RE = re.compile(r"\\label\s*\{[^{}]*\}|\\(?:nonumber|notag)(?![A-Za-z])")
_ALIGN_RE = re.compile(r"\\(begin|end)\s*\{(?:align|eqnarray)\*?\}")
_MATRIX_RE = re.compile(
    r"\\begin\s*\{([pbBvV]?)matrix\}((?:(?!\\begin\s*\{[pbBvV]?matrix\}).)*?)\\end\s*\{\1matrix\}",
    re.DOTALL,
)
_ARRAY_WITHOUT_SPEC_RE = re.compile(
    r"\\begin\s*\{array\}(?!\s*\{)((?:(?!\\begin\s*\{array\}).)*?)\\end\s*\{array\}",
    re.DOTALL,
)
_ROW_SEPARATOR_RE = re.compile(r"\\\\")
_CELL_SEPARATOR_RE = re.compile(r"(?<!\\)&")

_MATRIX_FENCES = {
    "": ("", ""),
    "p": (r"\left(", r"\right)"),
    "b": (r"\left[", r"\right]"),
    "B": (r"\left\{", r"\right\}"),
    "v": (r"\left|", r"\right|"),
    "V": (r"\left\|", r"\right\|"),
}


def column_spec(body: str) -> str:
    """Centered column spec wide enough for the widest row of ``body``."""
    columns = max(
        (len(_CELL_SEPARATOR_RE.findall(row)) + 1 for row in _ROW_SEPARATOR_RE.split(body)),
        default=1,
    )
    return "{" + "c" * columns + "}"


def _matrix_to_array(match: re.Match[str]) -> str:
    opening, closing = _MATRIX_FENCES[match.group(1)]
    body = match.group(2)
    return f"{opening}\\begin{{array}}{column_spec(body)}{body}\\end{{array}}{closing}"


def _add_array_spec(match: re.Match[str]) -> str:
    body = match.group(1)
    return f"\\begin{{array}}{column_spec(body)}{body}\\end{{array}}"


def flatten_environments(s: str) -> str:
    """Strip equation wrappers, use ``aligned`` for align and ``array`` for matrices."""
    original = s
    s = _EQUATION_RE.sub("", s)
    s = _NUMBERING_RE.sub("", s)
    s = _ALIGN_RE.sub(r"\\\1{aligned}", s)
    while True:
        rewritten = _MATRIX_RE.sub(_matrix_to_array, s)
        if rewritten == s:
            break
        s = rewritten
    s = _ARRAY_WITHOUT_SPEC_RE.sub(_add_array_spec, s)
    if s != original:
        logger.debug("Flattened environments: %s -> %s", original[:80], s[:80])
    return s

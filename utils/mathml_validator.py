"""Validate rendered MathML and flag input a strict renderer would reject."""
from __future__ import annotations

import re
from typing import List, Tuple

from services.latex.scanning import strip_text_mode

# latex2mathml passes unknown commands through verbatim as token text
_UNDEFINED_COMMAND_RE = re.compile(r"<(m[ion])\b[^>]*>\s*(\\[A-Za-z]+)\s*</\1>")
_MATH_ROOT_RE = re.compile(r"<math\b")
_UNESCAPED_PERCENT_RE = re.compile(r"(?<!\\)%")
_ENVIRONMENT_BLOCK_RE = re.compile(r"\\begin\s*\{([A-Za-z]+\*?)\}.*?\\end\s*\{\1\}", re.DOTALL)
_LINE_BREAK_RE = re.compile(r"\\\\")


def find_undefined_commands(mathml: str) -> List[str]:
    """Return control sequences that survived conversion as literal text."""
    return [match.group(2) for match in _UNDEFINED_COMMAND_RE.finditer(mathml)]


def validate_mathml(mathml: str) -> Tuple[bool, List[str]]:
    """
    Validate rendered MathML and return issues found.

    Args:
        mathml: MathML string produced by the renderer

    Returns:
        Tuple of (is_valid, list_of_issues)
    """
    if not mathml or not mathml.strip():
        return False, ["MathML is empty"]

    issues = []
    if not _MATH_ROOT_RE.search(mathml):
        issues.append("Missing <math> root element")
    for command in find_undefined_commands(mathml):
        issues.append(f"Undefined control sequence: {command}")
    return len(issues) == 0, issues


def find_strict_warnings(tex: str, display_mode: bool = False) -> List[str]:
    """
    List what a strict renderer reports as warnings for ``tex``.

    Only math mode counts; ``\\text{...}``-like groups are exempt.
    """
    warnings = []
    math_only = strip_text_mode(tex)

    non_ascii = sorted({ch for ch in math_only if ord(ch) > 0x7F})
    if non_ascii:
        warnings.append(
            "unicodeTextInMathMode: Unicode text character %s used in math mode" % "".join(non_ascii)
        )
    if _UNESCAPED_PERCENT_RE.search(math_only.replace("\\\\", "")):
        warnings.append("commentAtEnd: % comment has no terminating newline")
    if display_mode and _LINE_BREAK_RE.search(_ENVIRONMENT_BLOCK_RE.sub("", math_only)):
        warnings.append("newLineInDisplayMode: \\\\ line break outside of an environment")
    return warnings

"""
LaTeX → MathML renderer adapter.

Wraps latex2mathml behind the renderer contract used by the render
pipeline: ``render(text, display_mode, strict) -> markup`` that raises on
invalid syntax. latex2mathml is lenient by nature (unknown commands come
out as literal text), so both modes reject undefined control sequences in
the output, and strict mode additionally rejects what a strict TeX
renderer only warns about.
"""
from __future__ import annotations

import re
from typing import Protocol

from latex2mathml.converter import convert as latex2mathml_convert

from core.exceptions import RenderError, StrictModeViolation
from core.logger import logger
from utils.mathml_validator import find_strict_warnings, validate_mathml

# Environments latex2mathml does not know, mapped onto ones it does
_ENVIRONMENT_ALIASES = [
    (re.compile(r"\\begin\s*\{aligned\}"), r"\\begin{align*}"),
    (re.compile(r"\\end\s*\{aligned\}"), r"\\end{align*}"),
    (re.compile(r"\\begin\s*\{(?:gather|gathered|multline)\*?\}"), r"\\begin{array}{c}"),
    (re.compile(r"\\end\s*\{(?:gather|gathered|multline)\*?\}"), r"\\end{array}"),
]


class RendererProtocol(Protocol):
    """Contract of the external LaTeX renderer.

    ``render`` returns markup or raises. ``RenderError`` is preferred; any
    other exception is wrapped in one by the render pipeline.
    """

    def render(self, text: str, display_mode: bool = False, strict: bool = True) -> str:
        ...


class LatexRenderer:
    """Render normalized LaTeX to a MathML string."""

    def render(self, text: str, display_mode: bool = False, strict: bool = True) -> str:
        if not text or not text.strip():
            raise RenderError("Empty expression", text)

        if strict:
            warnings = find_strict_warnings(text, display_mode)
            if warnings:
                raise StrictModeViolation(warnings[0], text)

        latex = self._to_renderer_dialect(text)
        try:
            mathml = latex2mathml_convert(latex, display="block" if display_mode else "inline")
        except Exception as exc:  # noqa: BLE001
            message = str(exc) or type(exc).__name__
            logger.debug("LaTeX→MathML failed: %s | Input: %s", message, text[:120])
            raise RenderError(f"{type(exc).__name__}: {message}", text) from exc

        is_valid, issues = validate_mathml(mathml)
        if not is_valid:
            raise RenderError(issues[0], text)
        return mathml

    # ----------------------------------------------------------------------
    # Helpers
    # ----------------------------------------------------------------------

    def _to_renderer_dialect(self, latex: str) -> str:
        for pattern, replacement in _ENVIRONMENT_ALIASES:
            latex = pattern.sub(replacement, latex)
        return latex

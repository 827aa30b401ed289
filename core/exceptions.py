"""Error taxonomy for the page math engine.

Normalizers never raise. Only the renderer adapter raises, and only
``RenderError`` (or its strict subclass) escapes it; the render pipeline
turns those into fallback tiers so nothing reaches the host page.
"""
from __future__ import annotations


class PageMathError(Exception):
    """Base class for every error raised by this package."""


class RenderError(PageMathError):
    """The external renderer rejected an expression."""

    def __init__(self, message: str, tex: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.tex = tex

    def __str__(self) -> str:
        return self.message


class StrictModeViolation(RenderError):
    """The expression converts, but only a lenient renderer would accept it."""

"""
Render pipeline / fallback state machine.

Per math span:

    Extracted -> Normalized -> StrictAttempt -> Rendered
                                             -> FallbackAttempt -> Rendered
                                                                -> TextFallback

The tolerant attempt reuses the normalized text of the strict attempt; the
text fallback always shows the original, un-normalized span. Every
renderer failure is reported to ``on_error`` as ``(tex, message)`` where
``tex`` is the original raw text.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Callable, Optional

from core.exceptions import RenderError
from core.logger import logger
from services.dom.math_span import MathSpan
from services.latex.simplifier import simplify
from services.render.latex_renderer import LatexRenderer, RendererProtocol

ErrorCallback = Callable[[str, str], None]


class RenderMethod(str, Enum):
    STRICT = "strict"
    FALLBACK_SIMPLIFIED = "fallbackSimplified"
    FALLBACK_TEXT = "fallbackText"
    EMPTY = "empty"


class SpanState(str, Enum):
    EXTRACTED = "extracted"
    NORMALIZED = "normalized"
    STRICT_ATTEMPT = "strictAttempt"
    FALLBACK_ATTEMPT = "fallbackAttempt"
    RENDERED = "rendered"
    TEXT_FALLBACK = "textFallback"


@dataclass(frozen=True)
class ErrorInfo:
    message: str
    tex: str


@dataclass
class RenderOutcome:
    """Final result for one span; decides what the DOM mutator writes."""

    success: bool
    method: RenderMethod
    rendered_markup: Optional[str] = None
    error: Optional[ErrorInfo] = None
    normalized_text: str = ""
    state: SpanState = SpanState.EXTRACTED


@dataclass
class RendererState:
    """Counters owned by one pipeline instance."""

    total_attempts: int = 0
    strict_successes: int = 0
    fallback_successes: int = 0

    def reset(self) -> None:
        self.total_attempts = 0
        self.strict_successes = 0
        self.fallback_successes = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


class RenderPipeline:
    """Normalize, then strict render, then tolerant render, then text fallback."""

    def __init__(
        self,
        renderer: Optional[RendererProtocol] = None,
        state: Optional[RendererState] = None,
        on_error: Optional[ErrorCallback] = None,
        normalizer: Callable[[str], str] = simplify,
    ) -> None:
        self.renderer = renderer or LatexRenderer()
        self.state = state or RendererState()
        self.on_error = on_error
        self.normalizer = normalizer

    # ----------------------------------------------------------------------
    # Public API
    # ----------------------------------------------------------------------

    def process(self, span: MathSpan) -> RenderOutcome:
        """Run one extracted span through every tier."""
        return self.process_text(span.raw_text, span.display_mode)

    def process_text(self, raw_text: str, display_mode: bool = False) -> RenderOutcome:
        self.state.total_attempts += 1

        normalized = self.normalizer(raw_text)
        logger.debug("[%s] %r -> %r", SpanState.NORMALIZED.value, raw_text[:80], normalized[:80])
        if not normalized.strip():
            return RenderOutcome(
                success=False,
                method=RenderMethod.EMPTY,
                normalized_text=normalized,
                state=SpanState.TEXT_FALLBACK,
            )

        try:
            markup = self._render(normalized, display_mode, strict=True)
        except RenderError as exc:
            self._report(raw_text, exc, SpanState.STRICT_ATTEMPT)
        else:
            self.state.strict_successes += 1
            return RenderOutcome(
                success=True,
                method=RenderMethod.STRICT,
                rendered_markup=markup,
                normalized_text=normalized,
                state=SpanState.RENDERED,
            )

        try:
            markup = self._render(normalized, display_mode, strict=False)
        except RenderError as exc:
            self._report(raw_text, exc, SpanState.FALLBACK_ATTEMPT)
            return RenderOutcome(
                success=False,
                method=RenderMethod.FALLBACK_TEXT,
                error=ErrorInfo(message=exc.message, tex=raw_text),
                normalized_text=normalized,
                state=SpanState.TEXT_FALLBACK,
            )

        self.state.fallback_successes += 1
        return RenderOutcome(
            success=True,
            method=RenderMethod.FALLBACK_SIMPLIFIED,
            rendered_markup=markup,
            normalized_text=normalized,
            state=SpanState.RENDERED,
        )

    # ----------------------------------------------------------------------
    # Helpers
    # ----------------------------------------------------------------------

    def _render(self, text: str, display_mode: bool, strict: bool) -> str:
        try:
            return self.renderer.render(text, display_mode=display_mode, strict=strict)
        except RenderError:
            raise
        except Exception as exc:  # noqa: BLE001
            # Any renderer failure is a rejection of this tier
            raise RenderError(f"{type(exc).__name__}: {exc}", text) from exc

    def _report(self, raw_text: str, exc: RenderError, state: SpanState) -> None:
        if state is SpanState.STRICT_ATTEMPT:
            logger.info("Strict render rejected %r: %s", raw_text[:80], exc.message)
        else:
            logger.warning("Render failed, keeping original text %r: %s", raw_text[:80], exc.message)
        if self.on_error is None:
            return
        try:
            self.on_error(raw_text, exc.message)
        except Exception as sink_exc:  # noqa: BLE001
            logger.warning("Diagnostics sink failed: %s", sink_exc)

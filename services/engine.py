"""
MathEngine: the entry points the host integration calls.

``render(root)`` finds math in a subtree, runs each span through the
render pipeline and splices the result into the tree. ``iter_render``
is the same batch as a generator with one suspend point per span, so a
caller can interleave other work or stop the batch (``stop()``) between
spans. ``set_enabled(False)`` undoes every mutation made under the roots
rendered so far.
"""
from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

from bs4 import Tag

from core.config import Settings, settings as default_settings
from core.logger import logger
from services.dom.extractor import ExpressionExtractor
from services.dom.math_span import MathSpan
from services.dom.mutator import DomMutator
from services.render.latex_renderer import RendererProtocol
from services.render.pipeline import (
    ErrorInfo,
    RendererState,
    RenderMethod,
    RenderOutcome,
    RenderPipeline,
    SpanState,
)


@dataclass(frozen=True)
class DiagnosticRecord:
    """One renderer failure, as handed to the diagnostics sink."""

    tex: str
    message: str
    time: float

    def as_dict(self) -> dict[str, object]:
        return {"tex": self.tex, "message": self.message, "time": self.time}


DiagnosticsSink = Callable[[DiagnosticRecord], None]


class MathEngine:
    """Detect, repair and render page math; reversible on disable."""

    def __init__(
        self,
        renderer: Optional[RendererProtocol] = None,
        settings: Settings = default_settings,
        diagnostics_sink: Optional[DiagnosticsSink] = None,
    ) -> None:
        self.settings = settings
        self.state = RendererState()
        self.diagnostics: list[DiagnosticRecord] = []
        self.diagnostics_sink = diagnostics_sink
        self.extractor = ExpressionExtractor(settings.ignored_tags)
        self.mutator = DomMutator(self.extractor)
        self.pipeline = RenderPipeline(renderer=renderer, state=self.state, on_error=self._record_error)
        self.enabled = True
        self._alive = True
        self._roots: list[Tag] = []

    # ----------------------------------------------------------------------
    # Lifecycle
    # ----------------------------------------------------------------------

    def set_enabled(self, enabled: bool) -> None:
        """Enable rendering, or disable it and restore every rendered root."""
        if enabled == self.enabled:
            return
        self.enabled = enabled
        if enabled:
            self.state.reset()
            self._alive = True
            logger.info("Math rendering enabled")
            return
        self._alive = False
        restored = sum(self.mutator.restore(root) for root in self._roots)
        self._roots.clear()
        logger.info("Math rendering disabled, %d containers restored", restored)

    def stop(self) -> None:
        """Stop the running batch before its next DOM mutation."""
        self._alive = False

    # ----------------------------------------------------------------------
    # Rendering
    # ----------------------------------------------------------------------

    def render(self, root: Tag) -> list[RenderOutcome]:
        """Render every math span under ``root``; no-op while disabled."""
        if not self.enabled:
            return []
        outcomes = list(self.iter_render(root))
        logger.info(
            "Rendered %d math spans (strict=%d, fallback=%d, total=%d)",
            len(outcomes),
            self.state.strict_successes,
            self.state.fallback_successes,
            self.state.total_attempts,
        )
        return outcomes

    def iter_render(self, root: Tag) -> Iterator[RenderOutcome]:
        """Yield one outcome per span, mutating the tree as it goes."""
        if not self.enabled:
            return
        self._alive = True
        # Tag equality is structural; track roots by identity.
        if not any(tracked is root for tracked in self._roots):
            self._roots.append(root)

        queue: deque[MathSpan] = deque(self.extractor.extract(root))
        while queue:
            span = queue.popleft()
            if span.is_stale():
                continue
            outcome = self._process(span)
            if not self._alive:
                logger.info("Render batch stopped with %d spans pending", len(queue) + 1)
                return
            follow_ups = self.mutator.apply(span, outcome)
            queue.extendleft(reversed(follow_ups))
            yield outcome

    def restore(self, root: Tag) -> int:
        """Undo the mutations under ``root``."""
        return self.mutator.restore(root)

    def stats(self) -> dict[str, int]:
        return self.state.as_dict()

    # ----------------------------------------------------------------------
    # Helpers
    # ----------------------------------------------------------------------

    def _process(self, span: MathSpan) -> RenderOutcome:
        try:
            return self.pipeline.process(span)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected failure while rendering %r", span.raw_text[:80])
            message = f"{type(exc).__name__}: {exc}"
            self._record_error(span.raw_text, message)
            return RenderOutcome(
                success=False,
                method=RenderMethod.FALLBACK_TEXT,
                error=ErrorInfo(message=message, tex=span.raw_text),
                state=SpanState.TEXT_FALLBACK,
            )

    def _record_error(self, tex: str, message: str) -> None:
        record = DiagnosticRecord(tex=tex, message=message, time=time.time())
        self.diagnostics.append(record)
        overflow = len(self.diagnostics) - self.settings.diagnostics_limit
        if overflow > 0:
            del self.diagnostics[:overflow]
        if self.diagnostics_sink is None:
            return
        try:
            self.diagnostics_sink(record)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Diagnostics sink failed: %s", exc)

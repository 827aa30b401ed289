"""Tests for the render pipeline / fallback state machine."""
from __future__ import annotations

from unittest.mock import MagicMock, call

from core.exceptions import RenderError, StrictModeViolation
from services.render.pipeline import RendererState, RenderMethod, RenderPipeline, SpanState


def _renderer(*results: object) -> MagicMock:
    renderer = MagicMock()
    renderer.render.side_effect = list(results)
    return renderer


class TestRenderPipeline:
    """Tier selection and counters."""

    def test_strict_success(self) -> None:
        renderer = _renderer("<math>ok</math>")
        pipeline = RenderPipeline(renderer=renderer)

        outcome = pipeline.process_text("rac{1}{2}", display_mode=True)

        assert outcome.success
        assert outcome.method is RenderMethod.STRICT
        assert outcome.rendered_markup == "<math>ok</math>"
        assert outcome.normalized_text == r"\frac{1}{2}"
        assert outcome.state is SpanState.RENDERED
        renderer.render.assert_called_once_with(r"\frac{1}{2}", display_mode=True, strict=True)
        assert pipeline.state.as_dict() == {
            "total_attempts": 1,
            "strict_successes": 1,
            "fallback_successes": 0,
        }

    def test_tolerant_retry_uses_same_normalized_text(self) -> None:
        renderer = _renderer(StrictModeViolation("unicode", "x"), "<math>ok</math>")
        pipeline = RenderPipeline(renderer=renderer)

        outcome = pipeline.process_text(r"\sqrt{x")

        assert outcome.success
        assert outcome.method is RenderMethod.FALLBACK_SIMPLIFIED
        assert renderer.render.call_args_list == [
            call(r"\sqrt{x}", display_mode=False, strict=True),
            call(r"\sqrt{x}", display_mode=False, strict=False),
        ]
        assert pipeline.state.fallback_successes == 1
        assert pipeline.state.strict_successes == 0
        assert pipeline.state.total_attempts == 1

    def test_total_failure_keeps_original_text(self) -> None:
        renderer = _renderer(RenderError("bad", "x"), RenderError("still bad", "x"))
        errors = []
        pipeline = RenderPipeline(renderer=renderer, on_error=lambda tex, message: errors.append((tex, message)))

        outcome = pipeline.process_text(r"\sqrt{\bogus")

        assert not outcome.success
        assert outcome.method is RenderMethod.FALLBACK_TEXT
        assert outcome.rendered_markup is None
        assert outcome.error is not None
        assert outcome.error.message == "still bad"
        assert outcome.error.tex == r"\sqrt{\bogus"
        assert outcome.state is SpanState.TEXT_FALLBACK
        assert errors == [(r"\sqrt{\bogus", "bad"), (r"\sqrt{\bogus", "still bad")]
        assert pipeline.state.as_dict() == {
            "total_attempts": 1,
            "strict_successes": 0,
            "fallback_successes": 0,
        }

    def test_foreign_exception_still_gets_tolerant_retry(self) -> None:
        renderer = _renderer(ValueError("unsupported"), "<math>ok</math>")
        errors = []
        pipeline = RenderPipeline(renderer=renderer, on_error=lambda tex, message: errors.append(message))

        outcome = pipeline.process_text("x")

        assert outcome.method is RenderMethod.FALLBACK_SIMPLIFIED
        assert renderer.render.call_count == 2
        assert errors == ["ValueError: unsupported"]

    def test_foreign_exception_in_both_tiers(self) -> None:
        renderer = _renderer(ValueError("first"), KeyError("second"))
        pipeline = RenderPipeline(renderer=renderer)

        outcome = pipeline.process_text("x")

        assert outcome.method is RenderMethod.FALLBACK_TEXT
        assert outcome.error is not None
        assert outcome.error.message == "KeyError: 'second'"

    def test_empty_after_normalization(self) -> None:
        renderer = _renderer()
        pipeline = RenderPipeline(renderer=renderer)

        outcome = pipeline.process_text("{}{}")

        assert not outcome.success
        assert outcome.method is RenderMethod.EMPTY
        assert outcome.error is None
        renderer.render.assert_not_called()
        assert pipeline.state.total_attempts == 1

    def test_failing_error_callback_does_not_break_pipeline(self) -> None:
        renderer = _renderer(RenderError("bad", "x"), "<math/>")
        pipeline = RenderPipeline(renderer=renderer, on_error=MagicMock(side_effect=RuntimeError("sink down")))

        outcome = pipeline.process_text("x")

        assert outcome.method is RenderMethod.FALLBACK_SIMPLIFIED

    def test_shared_state(self) -> None:
        state = RendererState()
        pipeline = RenderPipeline(renderer=_renderer("<math/>", "<math/>"), state=state)
        pipeline.process_text("a")
        pipeline.process_text("b")
        assert state.total_attempts == 2
        assert state.strict_successes == 2

    def test_custom_normalizer(self) -> None:
        renderer = _renderer("<math/>")
        pipeline = RenderPipeline(renderer=renderer, normalizer=str.upper)
        assert pipeline.process_text("abc").normalized_text == "ABC"


def test_state_reset() -> None:
    state = RendererState(total_attempts=3, strict_successes=2, fallback_successes=1)
    state.reset()
    assert state.as_dict() == {"total_attempts": 0, "strict_successes": 0, "fallback_successes": 0}

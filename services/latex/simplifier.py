"""
Composed LaTeX normalizer.

``simplify`` runs the brace balancer and empty-group canonicalizer, then
the named passes in ``NORMALIZER_PASSES`` in their fixed order, then the
balancer and canonicalizer again. Nuclear canonicalization runs twice on
purpose: once before the ``\\text{}`` judgment and once after it, so that
math exposed by unwrapping is canonicalized too.

The whole chain is repeated until the output stops changing (bounded by
``settings.max_simplify_rounds``), which is what makes
``simplify(simplify(s)) == simplify(s)`` hold.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from core.config import settings
from core.logger import logger
from services.latex.brace_balancer import balance
from services.latex.empty_groups import collapse_empty_groups
from services.latex.environments import flatten_environments
from services.latex.fractions import repair_fractions
from services.latex.nuclear import canonicalize_nuclear
from services.latex.symbols import convert_accents, substitute_unicode
from services.latex.text_wrappers import unwrap_text_groups
from services.latex.typos import (
    close_incomplete_commands,
    fix_arrows_and_limits,
    fix_derivatives,
    restore_control_escapes,
)

NormalizerPass = Callable[[str], str]

NORMALIZER_PASSES: tuple[tuple[str, NormalizerPass], ...] = (
    ("fractions", repair_fractions),
    ("nuclear", canonicalize_nuclear),
    ("environments", flatten_environments),
    ("arrows", fix_arrows_and_limits),
    ("derivatives", fix_derivatives),
    ("text-wrappers", unwrap_text_groups),
    ("nuclear-after-unwrap", canonicalize_nuclear),
    ("incomplete-commands", close_incomplete_commands),
    ("unicode", substitute_unicode),
    ("accents", convert_accents),
)


@dataclass(frozen=True)
class NormalizationResult:
    """Output of the normalizer chain for one raw string."""

    text: str
    original: str
    rounds: int = 1

    @property
    def changed(self) -> bool:
        return self.text != self.original


def structural_pass(s: str) -> str:
    """Brace balancing followed by empty-group canonicalization."""
    return collapse_empty_groups(balance(s))


def simplify_once(s: str) -> str:
    """One full run of the chain, structural passes included."""
    s = structural_pass(restore_control_escapes(s))
    for _name, normalizer in NORMALIZER_PASSES:
        s = normalizer(s)
    return structural_pass(s)


def normalize(tex: str, max_rounds: int | None = None) -> NormalizationResult:
    """Run the chain to a fixed point and report how many rounds it took."""
    limit = max(1, max_rounds if max_rounds is not None else settings.max_simplify_rounds)
    text = tex.strip()
    rounds = 0
    while rounds < limit:
        rounds += 1
        rewritten = simplify_once(text).strip()
        if rewritten == text:
            break
        text = rewritten
    else:
        logger.debug("simplify did not settle after %d rounds: %s", limit, tex[:80])
    if text != tex:
        logger.debug("Simplified LaTeX: %s -> %s", tex[:80], text[:80])
    return NormalizationResult(text=text, original=tex, rounds=rounds)


def simplify(tex: str) -> str:
    """Normalize a raw math string for a strict renderer."""
    return normalize(tex).text

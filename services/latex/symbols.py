"""
Unicode substitution and accent-mode conversion.

Both passes only touch math mode; ``\\text{...}``-like groups are left alone
because Unicode and text accents are legitimate there.
"""
from __future__ import annotations

import re
import unicodedata

from core.logger import logger
from services.latex.scanning import map_math_mode

UNICODE_TO_LATEX: dict[str, str] = {
    # Greek lowercase
    "α": r"\alpha", "β": r"\beta", "γ": r"\gamma", "δ": r"\delta",
    "ε": r"\varepsilon", "ϵ": r"\epsilon", "ζ": r"\zeta", "η": r"\eta",
    "θ": r"\theta", "ϑ": r"\vartheta", "ι": r"\iota", "κ": r"\kappa",
    "λ": r"\lambda", "μ": r"\mu", "µ": r"\mu", "ν": r"\nu", "ξ": r"\xi",
    "ο": "o", "π": r"\pi", "ϖ": r"\varpi", "ρ": r"\rho", "ϱ": r"\varrho",
    "σ": r"\sigma", "ς": r"\varsigma", "τ": r"\tau", "υ": r"\upsilon",
    "φ": r"\varphi", "ϕ": r"\phi", "χ": r"\chi", "ψ": r"\psi", "ω": r"\omega",
    # Greek uppercase
    "Α": "A", "Β": "B", "Γ": r"\Gamma", "Δ": r"\Delta", "Ε": "E", "Ζ": "Z",
    "Η": "H", "Θ": r"\Theta", "Ι": "I", "Κ": "K", "Λ": r"\Lambda", "Μ": "M",
    "Ν": "N", "Ξ": r"\Xi", "Ο": "O", "Π": r"\Pi", "Ρ": "P", "Σ": r"\Sigma",
    "Τ": "T", "Υ": r"\Upsilon", "Φ": r"\Phi", "Χ": "X", "Ψ": r"\Psi",
    "Ω": r"\Omega",
    # Operators and relations
    "×": r"\times", "÷": r"\div", "±": r"\pm", "∓": r"\mp", "·": r"\cdot",
    "⋅": r"\cdot", "∗": "*", "−": "-", "–": "-", "≤": r"\leq", "≥": r"\geq",
    "≠": r"\neq", "≈": r"\approx", "≡": r"\equiv", "∼": r"\sim", "≃": r"\simeq",
    "≅": r"\cong", "∝": r"\propto", "≪": r"\ll", "≫": r"\gg",
    "∞": r"\infty", "∂": r"\partial", "∇": r"\nabla", "∑": r"\sum",
    "∏": r"\prod", "∫": r"\int", "∬": r"\iint", "∭": r"\iiint", "∮": r"\oint",
    "√": r"\sqrt", "∀": r"\forall", "∃": r"\exists", "∄": r"\nexists",
    "∈": r"\in", "∉": r"\notin", "∋": r"\ni", "⊂": r"\subset", "⊃": r"\supset",
    "⊆": r"\subseteq", "⊇": r"\supseteq", "∪": r"\cup", "∩": r"\cap",
    "∅": r"\emptyset", "∧": r"\wedge", "∨": r"\vee", "¬": r"\neg",
    "⊕": r"\oplus", "⊗": r"\otimes", "⊥": r"\perp", "∥": r"\parallel",
    "∠": r"\angle", "°": r"^{\circ}", "′": "'", "″": "''", "…": r"\ldots",
    "⋯": r"\cdots", "ℏ": r"\hbar", "ℓ": r"\ell", "ℝ": r"\mathbb{R}",
    "ℕ": r"\mathbb{N}", "ℤ": r"\mathbb{Z}", "ℚ": r"\mathbb{Q}", "ℂ": r"\mathbb{C}",
    # Arrows and fences
    "→": r"\rightarrow", "←": r"\leftarrow", "↔": r"\leftrightarrow",
    "⇒": r"\Rightarrow", "⇐": r"\Leftarrow", "⇔": r"\Leftrightarrow",
    "↦": r"\mapsto", "↑": r"\uparrow", "↓": r"\downarrow",
    "⟶": r"\longrightarrow", "⇌": r"\rightleftharpoons",
    "⟨": r"\langle", "⟩": r"\rangle", "⌈": r"\lceil", "⌉": r"\rceil",
    "⌊": r"\lfloor", "⌋": r"\rfloor",
    # Vulgar fractions
    "½": r"\frac{1}{2}", "⅓": r"\frac{1}{3}", "⅔": r"\frac{2}{3}",
    "¼": r"\frac{1}{4}", "¾": r"\frac{3}{4}", "⅕": r"\frac{1}{5}",
    "⅖": r"\frac{2}{5}", "⅗": r"\frac{3}{5}", "⅘": r"\frac{4}{5}",
    "⅙": r"\frac{1}{6}", "⅚": r"\frac{5}{6}", "⅛": r"\frac{1}{8}",
    "⅜": r"\frac{3}{8}", "⅝": r"\frac{5}{8}", "⅞": r"\frac{7}{8}",
    # Typographic spaces and quotes
    "\u00a0": " ", "\u2009": r"\,", "\u2002": r"\ ", "\u2003": r"\quad",
    "‘": "`", "’": "'",
}

_SUPERSCRIPTS = str.maketrans("⁰¹²³⁴⁵⁶⁷⁸⁹⁺⁻⁼⁽⁾ⁿⁱ", "0123456789+-=()ni")
_SUBSCRIPTS = str.maketrans("₀₁₂₃₄₅₆₇₈₉₊₋₌₍₎ₐₑₒₓ", "0123456789+-=()aeox")
_SUPERSCRIPT_RUN_RE = re.compile("[⁰¹²³⁴⁵⁶⁷⁸⁹⁺⁻⁼⁽⁾ⁿⁱ]+")
_SUBSCRIPT_RUN_RE = re.compile("[₀₁₂₃₄₅₆₇₈₉₊₋₌₍₎ₐₑₒₓ]+")
_SYMBOL_RE = re.compile("|".join(re.escape(ch) for ch in UNICODE_TO_LATEX))
_NON_ASCII_RUN_RE = re.compile(r"[^\x00-\x7f]+")

_TEXT_ACCENTS = {
    "'": "acute",
    "`": "grave",
    "^": "hat",
    "~": "tilde",
    "=": "bar",
    ".": "dot",
    '"': "ddot",
    "u": "breve",
    "v": "check",
}
# \'{x}, \'x and the double-escaped \\'{x}
_SYMBOL_ACCENT_RE = re.compile(r"""(?<!\\)\\{1,2}(['`^~=."])\s*(?:\{([^{}]*)\}|([A-Za-z]))""")
_LETTER_ACCENT_RE = re.compile(r"(?<!\\)\\{1,2}([uv])\{([^{}]*)\}")


def _substitute_math(chunk: str) -> str:
    chunk = _SUPERSCRIPT_RUN_RE.sub(lambda m: "^{%s}" % m.group().translate(_SUPERSCRIPTS), chunk)
    chunk = _SUBSCRIPT_RUN_RE.sub(lambda m: "_{%s}" % m.group().translate(_SUBSCRIPTS), chunk)

    def _symbol(match: re.Match[str]) -> str:
        latex = UNICODE_TO_LATEX[match.group()]
        following = match.string[match.end():match.end() + 1]
        if latex[-1:].isalpha() and latex.startswith("\\") and following.isalpha():
            return latex + " "
        return latex

    chunk = _SYMBOL_RE.sub(_symbol, chunk)
    return _NON_ASCII_RUN_RE.sub(lambda m: r"\text{%s}" % m.group(), chunk)


def substitute_unicode(s: str) -> str:
    """Map Unicode math symbols to commands; wrap the rest in ``\\text{}``."""
    if s.isascii():
        return s
    result = map_math_mode(unicodedata.normalize("NFC", s), _substitute_math)
    if result != s:
        logger.debug("Substituted Unicode: %s -> %s", s[:80], result[:80])
    return result


def _convert_accents(chunk: str) -> str:
    def _symbol_accent(match: re.Match[str]) -> str:
        argument = match.group(2) if match.group(2) is not None else match.group(3)
        return "\\%s{%s}" % (_TEXT_ACCENTS[match.group(1)], argument)

    chunk = _SYMBOL_ACCENT_RE.sub(_symbol_accent, chunk)
    return _LETTER_ACCENT_RE.sub(lambda m: "\\%s{%s}" % (_TEXT_ACCENTS[m.group(1)], m.group(2)), chunk)


def convert_accents(s: str) -> str:
    """Text-mode accents (``\\'{e}``, ``\\~{n}``) -> math accents (``\\acute{e}``)."""
    result = map_math_mode(s, _convert_accents)
    if result != s:
        logger.debug("Converted accents: %s -> %s", s[:80], result[:80])
    return result

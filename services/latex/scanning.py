"""Small scanning helpers shared by the LaTeX normalizers."""
from __future__ import annotations

import re
from typing import Callable, Optional

TEXT_MODE_COMMANDS = (
    "text",
    "textrm",
    "textbf",
    "textit",
    "textsf",
    "texttt",
    "textnormal",
    "textup",
    "textmd",
    "mbox",
    "hbox",
)

_TEXT_COMMAND_RE = re.compile(
    r"\\(?:" + "|".join(sorted(TEXT_MODE_COMMANDS, key=len, reverse=True)) + r")(?![A-Za-z])\s*(?=\{)"
)

# A command name, an escaped symbol, or one plain character
_TOKEN_RE = re.compile(r"\\(?:[A-Za-z]+|.)|[^\s{}^_&$\\]", re.DOTALL)


def read_group(s: str, start: int) -> tuple[str, int, bool]:
    """Read the brace group opening at ``s[start]``.

    Returns ``(content, end, closed)`` where ``end`` is the index just past
    the closing brace, or ``len(s)`` when the group never closes.
    Escaped braces do not count.
    """
    depth = 0
    i = start
    while i < len(s):
        ch = s[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return s[start + 1:i], i + 1, True
        i += 1
    return s[start + 1:], len(s), False


def read_token(s: str, start: int) -> Optional[tuple[str, int]]:
    """Read a single non-group token at ``start``: a command or one character."""
    match = _TOKEN_RE.match(s, start)
    if not match:
        return None
    return match.group(), match.end()


def split_text_mode(s: str) -> list[tuple[bool, str]]:
    """Split ``s`` into ``(is_text_mode, chunk)`` pieces.

    Text-mode pieces are whole ``\\text{...}``-like invocations, braces included.
    """
    segments: list[tuple[bool, str]] = []
    pos = 0
    while True:
        match = _TEXT_COMMAND_RE.search(s, pos)
        if not match:
            break
        _, end, _ = read_group(s, match.end())
        if match.start() > pos:
            segments.append((False, s[pos:match.start()]))
        segments.append((True, s[match.start():end]))
        pos = end
    if pos < len(s):
        segments.append((False, s[pos:]))
    return segments


def map_math_mode(s: str, rewrite: Callable[[str], str]) -> str:
    """Apply ``rewrite`` to the math-mode pieces of ``s`` only."""
    return "".join(chunk if is_text else rewrite(chunk) for is_text, chunk in split_text_mode(s))


def strip_text_mode(s: str) -> str:
    """Return ``s`` with every text-mode invocation removed."""
    return "".join(chunk for is_text, chunk in split_text_mode(s) if not is_text)

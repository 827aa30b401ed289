"""
Brace Balancer

Makes a LaTeX string structurally balanced without ever failing:

* ``\\left``/``\\right`` delimiter pairs: tokens without a delimiter are
  stripped, unmatched ones are demoted to the plain delimiter.
* ``\\begin{env}``/``\\end{env}`` pairs: stray ``\\end`` is removed, a
  missing one is appended.
* grouping braces: a ``}`` at depth 0 is dropped, missing closers are
  appended at the end (content of an unterminated group is preserved).
* escaped braces: unmatched ``\\{``/``\\}`` become ``\\lbrace``/``\\rbrace``
  so the raw brace characters of the result are always balanced.
"""
from __future__ import annotations

import re

from core.logger import logger

_DELIMITER = (
    r"\\(?:[lr](?:floor|ceil|angle|vert|Vert|brace|brack|group)|vert|Vert|backslash|uparrow|downarrow|updownarrow)(?![A-Za-z])"
    r"|\\[{}|]"
    r"|[()\[\]|./<>]"
)
_LEFT_RIGHT_RE = re.compile(r"\\(left|right)(?![A-Za-z])\s*(" + _DELIMITER + r")?")
_ENVIRONMENT_RE = re.compile(r"\\(begin|end)\s*\{([A-Za-z]+\*?)\}")


def _apply_edits(s: str, edits: list[tuple[int, int, str]]) -> str:
    """Apply non-overlapping ``(start, end, replacement)`` edits."""
    if not edits:
        return s
    parts: list[str] = []
    pos = 0
    for start, end, replacement in sorted(edits):
        parts.append(s[pos:start])
        parts.append(replacement)
        pos = end
    parts.append(s[pos:])
    return "".join(parts)


def _plain_delimiter(delimiter: str) -> str:
    # "\left." is an invisible delimiter, nothing to keep
    return "" if delimiter == "." else delimiter


def balance_delimiters(s: str) -> str:
    """Pair ``\\left``/``\\right`` tokens, demoting or stripping the rest."""
    edits: list[tuple[int, int, str]] = []
    stack: list[re.Match[str]] = []
    for match in _LEFT_RIGHT_RE.finditer(s):
        kind, delimiter = match.group(1), match.group(2)
        if delimiter is None:
            edits.append((match.start(), match.start() + len(kind) + 1, ""))
            continue
        if kind == "left":
            stack.append(match)
        elif stack:
            stack.pop()
        else:
            edits.append((match.start(), match.end(), _plain_delimiter(delimiter)))
    for match in stack:
        edits.append((match.start(), match.end(), _plain_delimiter(match.group(2))))
    return _apply_edits(s, edits)


def balance_environments(s: str) -> str:
    """Drop stray ``\\end{...}`` tokens and close environments left open."""
    edits: list[tuple[int, int, str]] = []
    stack: list[str] = []
    for match in _ENVIRONMENT_RE.finditer(s):
        kind, name = match.group(1), match.group(2)
        if kind == "begin":
            stack.append(name)
            continue
        if name not in stack:
            edits.append((match.start(), match.end(), ""))
            continue
        # Close anything opened after the matching \begin first
        missing = []
        while stack[-1] != name:
            missing.append(stack.pop())
        stack.pop()
        if missing:
            closers = "".join(rf"\end{{{env}}}" for env in missing)
            edits.append((match.start(), match.start(), closers))
    result = _apply_edits(s, edits)
    if stack:
        result += "".join(rf"\end{{{env}}}" for env in reversed(stack))
    return result


def balance_braces(s: str) -> str:
    """Balance grouping braces and escaped braces in a single scan."""
    out: list[str] = []
    depth = 0
    open_escaped: list[int] = []
    i = 0
    while i < len(s):
        ch = s[i]
        if ch == "\\":
            nxt = s[i + 1:i + 2]
            if not nxt:
                # Lone trailing backslash would escape the closers we append
                break
            if nxt == "{":
                open_escaped.append(len(out))
                out.append(r"\{")
            elif nxt == "}":
                if open_escaped:
                    open_escaped.pop()
                    out.append(r"\}")
                else:
                    out.append("\\rbrace ")
            else:
                out.append(ch + nxt)
            i += 2
            continue
        if ch == "{":
            depth += 1
            out.append(ch)
        elif ch == "}":
            if depth > 0:
                depth -= 1
                out.append(ch)
        else:
            out.append(ch)
        i += 1
    for index in open_escaped:
        out[index] = "\\lbrace "
    out.append("}" * depth)
    return "".join(out)


def balance(s: str) -> str:
    """Return a brace-balanced version of ``s``. Never raises."""
    if not s:
        return s
    result = balance_braces(balance_environments(balance_delimiters(s)))
    # Closing a truncated "\begin{name" exposes a new environment token
    result = balance_environments(result)
    if result != s:
        logger.debug("Balanced braces: %s -> %s", s[:80], result[:80])
    return result

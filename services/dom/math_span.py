"""Located math occurrence inside a DOM text node."""
from __future__ import annotations

from dataclasses import dataclass, field

from bs4 import NavigableString


@dataclass
class MathSpan:
    """A delimiter-bounded math expression found in one text node.

    ``start_offset``/``end_offset`` index into the text node's content and
    ``match_text`` is that slice, delimiters included. The span is stale
    as soon as the DOM mutator has spliced its node.
    """

    raw_text: str
    display_mode: bool
    source_node: NavigableString = field(repr=False, compare=False)
    match_text: str
    start_offset: int
    end_offset: int

    def is_stale(self) -> bool:
        """True once the owning node left the tree or its content changed."""
        node = self.source_node
        if node.parent is None:
            return True
        return str(node)[self.start_offset:self.end_offset] != self.match_text

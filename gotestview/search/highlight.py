"""Case-insensitive search and match highlighting for log text.

Matching runs on case-folded text. Folding can change a character's
length ("ß" folds to "ss"), so match spans found in the folded text are
mapped back to the original text before highlighting. The highlighted
result is Rich console markup.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from rich.markup import escape

# Current match (vim IncSearch) vs. every other match (vim Search)
CURRENT_MATCH_STYLE = "bold #000000 on #ff8800"
MATCH_STYLE = "bold #000000 on #ffff00"


@dataclass(frozen=True)
class SearchMatch:
    """One match; `start`/`end` are offsets in the case-folded text."""

    start: int
    end: int
    line: int


def _fold(text: str) -> str:
    return text.casefold()


def find_matches(text: str, query: str) -> list[SearchMatch]:
    """Find every non-overlapping case-insensitive occurrence of `query`.

    Args:
        text: Text to search.
        query: Substring to look for; empty yields no matches.

    Returns:
        Matches in left-to-right, top-to-bottom order.
    """
    if not query:
        return []
    folded = _fold(text)
    folded_query = _fold(query)

    matches: list[SearchMatch] = []
    pos = 0
    line = 0
    line_scan = 0
    while True:
        idx = folded.find(folded_query, pos)
        if idx == -1:
            break
        line += folded.count("\n", line_scan, idx)
        line_scan = idx
        end = idx + len(folded_query)
        matches.append(SearchMatch(start=idx, end=end, line=line))
        pos = end
    return matches


def map_folded_pos(orig: str, folded: str, folded_pos: int, round_up: bool = True) -> int:
    """Map an offset in the folded text to the matching offset in `orig`.

    A folded offset can fall inside the expansion of one original
    character; `round_up` picks the offset after that character,
    otherwise the one before it.
    """
    if folded_pos <= 0:
        return 0
    if folded_pos >= len(folded):
        return len(orig)
    if len(orig) == len(folded):
        return folded_pos

    folded_idx = 0
    for orig_idx, ch in enumerate(orig):
        width = len(_fold(ch))
        if folded_idx + width > folded_pos:
            if folded_idx == folded_pos or not round_up:
                return orig_idx
            return orig_idx + 1
        folded_idx += width
        if folded_idx == folded_pos:
            return orig_idx + 1
    return len(orig)


def highlight_matches(text: str, query: str, current: int = -1) -> str:
    """Return `text` as Rich markup with every match of `query` highlighted.

    Args:
        text: Original log text.
        query: Search query.
        current: Index of the match to emphasize; -1 for none.

    Returns:
        Markup string; text outside matches is escaped.
    """
    if not query:
        return escape(text)

    folded = _fold(text)
    parts: list[str] = []
    text_pos = 0
    for index, match in enumerate(find_matches(text, query)):
        start = max(map_folded_pos(text, folded, match.start, round_up=False), text_pos)
        end = map_folded_pos(text, folded, match.end, round_up=True)
        if end <= start:
            continue
        style = CURRENT_MATCH_STYLE if index == current else MATCH_STYLE
        parts.append(escape(text[text_pos:start]))
        parts.append(f"[{style}]{escape(text[start:end])}[/]")
        text_pos = end
    parts.append(escape(text[text_pos:]))
    return "".join(parts)


@dataclass
class SearchState:
    """Viewer-side search state: query, matches, and the current match."""

    query: str = ""
    matches: list[SearchMatch] = field(default_factory=list)
    index: int = 0

    def search(self, text: str, query: str) -> bool:
        """Run a new search over `text`; returns whether anything matched."""
        self.query = query
        self.matches = find_matches(text, query)
        self.index = 0
        return bool(self.matches)

    def refresh(self, text: str) -> None:
        """Recompute matches for the same query after the text grew."""
        if not self.query:
            return
        self.matches = find_matches(text, self.query)
        if self.matches:
            self.index = min(self.index, len(self.matches) - 1)
        else:
            self.index = 0

    def jump_to_match(self, index: int) -> int | None:
        """Select a match, wrapping cyclically in both directions.

        Returns:
            The new current index, or None when there are no matches.
        """
        if not self.matches:
            return None
        self.index = index % len(self.matches)
        return self.index

    def next(self) -> int | None:
        return self.jump_to_match(self.index + 1)

    def prev(self) -> int | None:
        return self.jump_to_match(self.index - 1)

    def reset(self) -> None:
        self.query = ""
        self.matches = []
        self.index = 0

    @property
    def active(self) -> bool:
        return bool(self.query)

    @property
    def current_line(self) -> int | None:
        if not self.matches:
            return None
        return self.matches[self.index].line

    @property
    def position(self) -> str:
        """E.g. `match 2 of 5`; empty without matches."""
        if not self.matches:
            return ""
        return f"match {self.index + 1} of {len(self.matches)}"

    @property
    def title(self) -> str:
        """Log panel title reflecting the search."""
        if not self.query:
            return "Log"
        if not self.matches:
            return "Log [no match]"
        return f"Log [{self.index + 1}/{len(self.matches)}]"

    def render(self, text: str) -> str:
        """Highlight `text` for the current query and match."""
        current = self.index if self.matches else -1
        return highlight_matches(text, self.query, current)

"""Case-insensitive log search with current-match highlighting."""

from gotestview.search.highlight import (
    CURRENT_MATCH_STYLE,
    MATCH_STYLE,
    SearchMatch,
    SearchState,
    find_matches,
    highlight_matches,
    map_folded_pos,
)

__all__ = [
    "CURRENT_MATCH_STYLE",
    "MATCH_STYLE",
    "SearchMatch",
    "SearchState",
    "find_matches",
    "highlight_matches",
    "map_folded_pos",
]

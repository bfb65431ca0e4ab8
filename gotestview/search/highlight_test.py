"""Unit tests for search and highlighting."""

from __future__ import annotations

from rich.text import Text

from gotestview.search.highlight import (
    CURRENT_MATCH_STYLE,
    MATCH_STYLE,
    SearchMatch,
    SearchState,
    find_matches,
    highlight_matches,
    map_folded_pos,
)


class TestFindMatches:
    """Tests for find_matches."""

    def test_case_insensitive_positions(self):
        """Matches ignore case and report original offsets."""
        matches = find_matches("abcABCabc", "abc")
        assert [m.start for m in matches] == [0, 3, 6]
        assert all(m.end - m.start == 3 for m in matches)

    def test_query_case_is_ignored(self):
        """An upper-case query matches lower-case text."""
        assert len(find_matches("abcABCabc", "ABC")) == 3

    def test_empty_query(self):
        """An empty query finds nothing."""
        assert find_matches("anything", "") == []

    def test_no_match(self):
        """An absent query finds nothing."""
        assert find_matches("hello", "xyz") == []

    def test_non_overlapping(self):
        """Matches do not overlap."""
        assert [m.start for m in find_matches("aaaa", "aa")] == [0, 2]

    def test_line_numbers(self):
        """Each match records its line."""
        text = "first error\nok\nerror again, ERROR twice\n"
        matches = find_matches(text, "error")
        assert [m.line for m in matches] == [0, 2, 2]

    def test_folding_changes_length(self):
        """Matches are found where case folding changes length."""
        matches = find_matches("Straße und STRASSE", "strasse")
        assert len(matches) == 2


class TestMapFoldedPos:
    """Tests for map_folded_pos."""

    def test_ascii_fast_path(self):
        """ASCII text maps offsets one to one."""
        assert map_folded_pos("ABC", "abc", 2) == 2

    def test_bounds(self):
        """Offsets at the ends map to the ends."""
        assert map_folded_pos("Straße", "strasse", 0) == 0
        assert map_folded_pos("Straße", "strasse", 7) == 6

    def test_after_expanded_char(self):
        """Offsets after an expanded character shift back."""
        # "ß" occupies folded offsets 4..6 and original offset 4..5.
        assert map_folded_pos("Straße!", "strasse!", 6) == 5
        assert map_folded_pos("Straße!", "strasse!", 4, round_up=False) == 4

    def test_inside_expanded_char(self):
        """Offsets inside an expanded character round as asked."""
        assert map_folded_pos("Straße!", "strasse!", 5, round_up=True) == 5
        assert map_folded_pos("Straße!", "strasse!", 5, round_up=False) == 4


class TestHighlightMatches:
    """Tests for highlight_matches."""

    def test_current_and_other_styles(self):
        """The current match gets its own style."""
        markup = highlight_matches("abcABCabc", "abc", current=1)
        assert markup == (
            f"[{MATCH_STYLE}]abc[/]"
            f"[{CURRENT_MATCH_STYLE}]ABC[/]"
            f"[{MATCH_STYLE}]abc[/]"
        )

    def test_preserves_original_case(self):
        """Highlighted text keeps its original case."""
        markup = highlight_matches("Hello World", "world", current=0)
        assert f"[{CURRENT_MATCH_STYLE}]World[/]" in markup
        assert Text.from_markup(markup).plain == "Hello World"

    def test_empty_query_returns_plain_text(self):
        """Without a query the text is returned as is."""
        assert highlight_matches("plain", "") == "plain"

    def test_escapes_markup_in_text(self):
        """Markup-like text is escaped."""
        text = "[bold]not markup[/bold] error"
        markup = highlight_matches(text, "error", current=0)
        assert Text.from_markup(markup).plain == text

    def test_non_ascii_span_mapping(self):
        """Spans are right in text with folded characters."""
        text = "Größe: STRASSE vs Straße"
        markup = highlight_matches(text, "strasse", current=1)
        rendered = Text.from_markup(markup)
        assert rendered.plain == text
        assert f"[{MATCH_STYLE}]STRASSE[/]" in markup
        assert f"[{CURRENT_MATCH_STYLE}]Straße[/]" in markup

    def test_no_current(self):
        """A negative current index styles every match alike."""
        markup = highlight_matches("a a", "a", current=-1)
        assert CURRENT_MATCH_STYLE not in markup
        assert markup.count(MATCH_STYLE) == 2


class TestSearchState:
    """Tests for SearchState navigation."""

    def test_search_sets_matches(self):
        """Searching selects the first match."""
        state = SearchState()
        assert state.search("abcABCabc", "abc")
        assert len(state.matches) == 3
        assert state.index == 0
        assert state.title == "Log [1/3]"
        assert state.position == "match 1 of 3"

    def test_wraps_backwards(self):
        """Jumping before the first match wraps to the last."""
        state = SearchState()
        state.search("abcABCabc", "abc")
        assert state.jump_to_match(-1) == 2
        assert state.position == "match 3 of 3"

    def test_wraps_forwards(self):
        """Jumping past the last match wraps to the first."""
        state = SearchState()
        state.search("abcABCabc", "abc")
        state.jump_to_match(2)
        assert state.jump_to_match(3) == 0

    def test_next_prev(self):
        """next and prev move through matches and wrap."""
        state = SearchState()
        state.search("x\nx\nx", "x")
        assert state.next() == 1
        assert state.current_line == 1
        assert state.prev() == 0
        assert state.prev() == 2

    def test_no_match(self):
        """A query without matches reports no match."""
        state = SearchState()
        assert not state.search("abc", "zzz")
        assert state.jump_to_match(1) is None
        assert state.title == "Log [no match]"
        assert state.position == ""
        assert state.current_line is None

    def test_reset(self):
        """Reset clears the search."""
        state = SearchState()
        state.search("abc", "a")
        state.reset()
        assert not state.active
        assert state.matches == []
        assert state.title == "Log"

    def test_refresh_keeps_index_in_bounds(self):
        """Refreshing clamps the current index to the new matches."""
        state = SearchState()
        state.search("a a a", "a")
        state.jump_to_match(2)
        state.refresh("a a a a")
        assert state.index == 2
        state.refresh("a")
        assert state.index == 0

    def test_render_highlights_current(self):
        """Render marks the current match."""
        state = SearchState()
        state.search("one two one", "one")
        state.next()
        assert state.render("one two one").endswith(f"[{CURRENT_MATCH_STYLE}]one[/]")

    def test_match_type(self):
        """Matches are SearchMatch records."""
        assert find_matches("ab", "b") == [SearchMatch(start=1, end=2, line=0)]

"""Tests for the document markup segmenter."""

import pytest

from collegedocs.markup.segments import (
    FooterRow,
    Table,
    TextRun,
    extract_footer,
    footer_of,
    parse_footer,
    parse_table,
    segment,
    strip_table_markers,
)


FOOTER_SPAN = "[FOOTER_ROW]\nCopy to: All | Read in all | PRINCIPAL\n[/FOOTER_ROW]"


class TestSegment:
    """Tests for segment()."""

    def test_same_input_same_segments(self, circular_content):
        """Segmenting twice yields identical sequences."""
        assert segment(circular_content) == segment(circular_content)

    def test_circular_structure(self, circular_content):
        """Text, table, text, footer in reading order."""
        kinds = [type(item) for item in segment(circular_content)]
        assert kinds == [TextRun, Table, TextRun, FooterRow]

    def test_empty_input(self):
        """Empty or blank input has no segments."""
        assert segment("") == ()
        assert segment("   \n\n ") == ()

    def test_plain_text_is_one_run(self):
        """Text without markers is kept verbatim."""
        raw = "NOTICE\n\nSub: Fee payment\n  indented line"
        segments = segment(raw)
        assert segments == (TextRun.from_text(raw),)
        assert segments[0].text == raw

    def test_crlf_normalized(self):
        """Windows newlines are treated like \\n."""
        segments = segment("A\r\nB\rC")
        assert segments[0].lines == ("A", "B", "C")

    def test_table_round_trip(self):
        """A simple table parses to header and rows."""
        segments = segment("[TABLE]\nA | B\n1 | 2\n3 | 4\n[/TABLE]")
        assert segments == (Table(header=("A", "B"), rows=(("1", "2"), ("3", "4"))),)

    def test_unterminated_table_is_text(self):
        """A dangling [TABLE] leaves the whole text literal."""
        raw = "before [TABLE] unterminated"
        segments = segment(raw)
        assert len(segments) == 1
        assert isinstance(segments[0], TextRun)
        assert segments[0].text == raw

    def test_unterminated_table_after_closed_table(self):
        """Only text after the last closed block is kept as the trailing run."""
        raw = "intro\n[TABLE]\nA | B\n[/TABLE]\ntail [TABLE] open"
        segments = segment(raw)
        assert [type(item) for item in segments] == [TextRun, Table, TextRun]
        assert segments[-1].text == "\ntail [TABLE] open"

    def test_stray_close_marker_is_text(self):
        """A [/TABLE] with no opener stays in the text."""
        segments = segment("one [/TABLE] two")
        assert segments == (TextRun.from_text("one [/TABLE] two"),)

    def test_empty_table_block_kept(self):
        """An empty block is still a Table segment."""
        segments = segment("x\n[TABLE]\n\n[/TABLE]\ny")
        assert isinstance(segments[1], Table)
        assert segments[1].is_empty

    def test_adjacent_tables(self):
        """Whitespace between two tables produces no text segment."""
        segments = segment("[TABLE]\nA\n1\n[/TABLE]\n\n[TABLE]\nB\n2\n[/TABLE]")
        assert [type(item) for item in segments] == [Table, Table]

    def test_footer_at_end_of_text(self):
        """A footer directly after body text is split off."""
        raw = "body\n[FOOTER_ROW]a | b | c[/FOOTER_ROW]"
        segments = segment(raw)
        assert segments[-1] == FooterRow("a", "b", "c")


class TestFooterExtraction:
    """Tests for footer handling."""

    @pytest.mark.parametrize("prefix,suffix", [
        ("", "\nclosing text"),
        ("opening text\n", "\nclosing text"),
        ("opening text\n", ""),
    ])
    def test_footer_always_last(self, prefix, suffix):
        """Wherever the span sits, the footer is the last segment."""
        raw = f"{prefix}{FOOTER_SPAN}{suffix}"
        segments = segment(raw)
        assert segments[-1] == FooterRow("Copy to: All", "Read in all", "PRINCIPAL")
        text = "".join(item.text for item in segments if isinstance(item, TextRun))
        assert text == prefix + suffix

    def test_footer_of(self):
        """footer_of returns the trailing footer or None."""
        assert footer_of(segment(FOOTER_SPAN)) == FooterRow("Copy to: All", "Read in all", "PRINCIPAL")
        assert footer_of(segment("no footer")) is None

    def test_malformed_footer_left_literal(self):
        """A span without exactly three parts is plain text."""
        raw = "[FOOTER_ROW]only | two[/FOOTER_ROW]"
        assert segment(raw) == (TextRun.from_text(raw),)

    def test_first_wellformed_footer_wins(self):
        """Later footers stay in the text."""
        raw = "[FOOTER_ROW]bad[/FOOTER_ROW]\n[FOOTER_ROW]a|b|c[/FOOTER_ROW]\n[FOOTER_ROW]d|e|f[/FOOTER_ROW]"
        text, footer = extract_footer(raw)
        assert footer == FooterRow("a", "b", "c")
        assert text == "[FOOTER_ROW]bad[/FOOTER_ROW]\n\n[FOOTER_ROW]d|e|f[/FOOTER_ROW]"

    def test_parse_footer_trims(self):
        """Parts are trimmed."""
        assert parse_footer("  left |  mid  | right \n") == FooterRow("left", "mid", "right")
        assert parse_footer("a|b|c|d") is None


class TestTable:
    """Tests for table parsing and ragged rows."""

    def test_parse_skips_blank_lines(self):
        """Blank lines inside the block are ignored."""
        table = parse_table("\n H1 | H2 \n\n x | y \n")
        assert table.header == ("H1", "H2")
        assert table.rows == (("x", "y"),)

    def test_empty_interior(self):
        """No lines gives an empty table."""
        table = parse_table("\n  \n")
        assert table.is_empty
        assert list(table.grid()) == []

    def test_grid_pads_and_truncates(self):
        """Short rows are padded, long rows lose extra cells."""
        table = parse_table("A | B | C\n1\n1 | 2 | 3 | 4 | 5")
        assert table.column_count == 3
        assert list(table.grid()) == [("1", "", ""), ("1", "2", "3")]


class TestStripTableMarkers:
    """Tests for the plain-text export transform."""

    def test_removes_only_markers(self):
        """Pipes, footers and other text survive."""
        raw = "Intro\n[TABLE]\nA | B\n1 | 2\n[/TABLE]\n[FOOTER_ROW]x|y|z[/FOOTER_ROW]"
        assert strip_table_markers(raw) == "Intro\n\nA | B\n1 | 2\n\n[FOOTER_ROW]x|y|z[/FOOTER_ROW]"

    def test_no_markers_unchanged(self):
        """Text without markers is returned as is."""
        assert strip_table_markers("a | b") == "a | b"

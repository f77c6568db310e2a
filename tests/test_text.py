"""
Test: text wrapping and **emphasis** handling shared by measure and draw.
"""

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from reportlab.pdfbase.pdfmetrics import stringWidth

from layout.text import parse_emphasis, truncate_to_width, wrap_lines, wrap_rich, wrap_spans

FONT = "Helvetica"
SIZE = 10


class TestEmphasis:
    def test_markers_are_stripped(self):
        rich = parse_emphasis("Peak **1,200 req/s** reached")
        assert rich.plain == "Peak 1,200 req/s reached"
        assert len(rich.bold) == len(rich.plain)

    def test_bold_runs(self):
        rich = parse_emphasis("a **b** c")
        assert rich.runs(0, len(rich.plain)) == [("a ", False), ("b", True), (" c", False)]

    def test_unbalanced_marker_bolds_the_rest(self):
        rich = parse_emphasis("plain **bold to end")
        assert rich.plain == "plain bold to end"
        assert rich.bold[-1] is True
        assert rich.bold[0] is False

    def test_empty(self):
        rich = parse_emphasis("")
        assert rich.plain == ""
        assert rich.bold == ()


class TestWrapping:
    def test_empty_text_has_no_lines(self):
        assert wrap_lines("", FONT, SIZE, 100) == []
        assert wrap_lines("   \n  ", FONT, SIZE, 100) == []
        _, spans = wrap_rich(None, FONT, SIZE, 100)
        assert spans == []

    def test_short_text_is_one_line(self):
        assert wrap_lines("Hello world", FONT, SIZE, 500) == ["Hello world"]

    def test_lines_fit_width(self):
        text = " ".join(["throughput"] * 60)
        lines = wrap_lines(text, FONT, SIZE, 120)
        assert len(lines) > 1
        for line in lines:
            assert stringWidth(line, FONT, SIZE) <= 120

    def test_no_words_are_lost(self):
        text = "the quick brown fox jumps over the lazy dog " * 10
        lines = wrap_lines(text, FONT, SIZE, 90)
        assert " ".join(lines).split() == text.split()

    def test_newlines_start_new_lines(self):
        lines = wrap_lines("first\nsecond\n\nfourth", FONT, SIZE, 500)
        assert lines == ["first", "second", "", "fourth"]

    def test_overwide_word_is_broken_by_characters(self):
        word = "x" * 200
        lines = wrap_lines(word, FONT, SIZE, 50)
        assert len(lines) > 1
        assert "".join(lines) == word
        for line in lines:
            assert stringWidth(line, FONT, SIZE) <= 50

    def test_spans_index_into_plain_text(self):
        rich, spans = wrap_rich("**Avg:** 120 ms with **p95** at 300 ms", FONT, SIZE, 60)
        assert spans
        for start, end in spans:
            assert 0 <= start <= end <= len(rich.plain)

    def test_emphasis_does_not_change_line_count(self):
        plain = "Response times degraded sharply after the ramp to 500 users " * 3
        bolded = "Response times **degraded sharply** after the ramp to **500** users " * 3
        assert len(wrap_lines(plain, FONT, SIZE, 150)) == len(wrap_lines(bolded, FONT, SIZE, 150))

    def test_wrap_spans_is_deterministic(self):
        text = "alpha beta gamma delta " * 20
        assert wrap_spans(text, FONT, SIZE, 80) == wrap_spans(text, FONT, SIZE, 80)


class TestTruncate:
    def test_fits_after_truncation(self):
        out = truncate_to_width("A very long running header title " * 5, FONT, 8, 100)
        assert out.endswith("...")
        assert stringWidth(out, FONT, 8) <= 100

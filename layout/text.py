"""
Text wrapping shared by measurement and drawing.

Wrapping runs on the plain-text projection of a string (emphasis markers
removed). Each wrapped line is a span of that projection, so the renderer can
reapply bold runs to exactly the characters the measurement wrapped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Tuple

from reportlab.pdfbase.pdfmetrics import stringWidth

EMPHASIS_MARKER = "**"

_WORD = re.compile(r"\S+")


@dataclass(frozen=True)
class RichText:
    """Plain text plus a per-character bold mask."""

    plain: str
    bold: Tuple[bool, ...]

    def runs(self, start: int, end: int) -> List[Tuple[str, bool]]:
        """Split plain[start:end] into (text, is_bold) runs."""
        out: List[Tuple[str, bool]] = []
        i = start
        while i < end:
            flag = self.bold[i]
            j = i
            while j < end and self.bold[j] == flag:
                j += 1
            out.append((self.plain[i:j], flag))
            i = j
        return out


def parse_emphasis(text: str) -> RichText:
    """Strip ``**`` markers; every marker toggles bold for the following characters."""
    parts = (text or "").split(EMPHASIS_MARKER)
    plain: List[str] = []
    mask: List[bool] = []
    for idx, part in enumerate(parts):
        is_bold = idx % 2 == 1
        plain.append(part)
        mask.extend([is_bold] * len(part))
    return RichText("".join(plain), tuple(mask))


def _break_word(plain: str, start: int, end: int, font: str, size: float,
                max_width: float) -> List[Tuple[int, int]]:
    """Character-level split of a single word wider than max_width."""
    spans = []
    chunk_start = start
    for i in range(start + 1, end + 1):
        if stringWidth(plain[chunk_start:i], font, size) > max_width and i - 1 > chunk_start:
            spans.append((chunk_start, i - 1))
            chunk_start = i - 1
    spans.append((chunk_start, end))
    return spans


def wrap_spans(plain: str, font: str, size: float, max_width: float) -> List[Tuple[int, int]]:
    """Greedy word wrap returning (start, end) offsets into ``plain``.

    Explicit newlines always start a new line and an empty paragraph yields an
    empty line. Whitespace between words on one line is kept as written.
    """
    spans: List[Tuple[int, int]] = []
    offset = 0
    for paragraph in plain.split("\n"):
        words = [(m.start() + offset, m.end() + offset) for m in _WORD.finditer(paragraph)]
        if not words:
            spans.append((offset, offset))
        line_start = None
        line_end = None
        for w_start, w_end in words:
            if line_start is not None:
                if stringWidth(plain[line_start:w_end], font, size) <= max_width:
                    line_end = w_end
                    continue
                spans.append((line_start, line_end))
                line_start = None
            if stringWidth(plain[w_start:w_end], font, size) <= max_width:
                line_start, line_end = w_start, w_end
            else:
                pieces = _break_word(plain, w_start, w_end, font, size, max_width)
                spans.extend(pieces[:-1])
                line_start, line_end = pieces[-1]
        if line_start is not None:
            spans.append((line_start, line_end))
        offset += len(paragraph) + 1
    return spans


def wrap_lines(text: str, font: str, size: float, max_width: float) -> List[str]:
    """Wrapped plain-text lines; empty input wraps to no lines at all."""
    if not text or not text.strip():
        return []
    rich = parse_emphasis(text)
    return [rich.plain[s:e] for s, e in wrap_spans(rich.plain, font, size, max_width)]


def wrap_rich(text: str, font: str, size: float,
              max_width: float) -> Tuple[RichText, List[Tuple[int, int]]]:
    if not text or not text.strip():
        return parse_emphasis(""), []
    rich = parse_emphasis(text)
    return rich, wrap_spans(rich.plain, font, size, max_width)


def truncate_to_width(text: str, font: str, size: float, max_width: float,
                      ellipsis: str = "...") -> str:
    """Trim characters from the end until ``text + ellipsis`` fits max_width."""
    candidate = text.rstrip()
    while candidate and stringWidth(candidate + ellipsis, font, size) > max_width:
        candidate = candidate[:-1]
    return candidate.rstrip() + ellipsis

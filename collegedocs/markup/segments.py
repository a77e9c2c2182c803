from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Union


TABLE_OPEN = '[TABLE]'
TABLE_CLOSE = '[/TABLE]'
FOOTER_OPEN = '[FOOTER_ROW]'
FOOTER_CLOSE = '[/FOOTER_ROW]'
MARKERS = frozenset({TABLE_OPEN, TABLE_CLOSE, FOOTER_OPEN, FOOTER_CLOSE})

_FOOTER_PATTERN = re.compile(r'\[FOOTER_ROW\]([\s\S]*?)\[/FOOTER_ROW\]')


@dataclass(frozen=True)
class TextRun:
    lines: tuple[str, ...]

    @property
    def text(self) -> str:
        return '\n'.join(self.lines)

    @classmethod
    def from_text(cls, text: str) -> TextRun:
        return cls(lines=tuple(text.split('\n')))


@dataclass(frozen=True)
class Table:
    header: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]

    @property
    def column_count(self) -> int:
        return len(self.header)

    @property
    def is_empty(self) -> bool:
        return self.column_count == 0

    def fit_row(self, row: tuple[str, ...]) -> tuple[str, ...]:
        """Pad a row with blanks or drop trailing cells so it matches the header width."""
        width = self.column_count
        if len(row) >= width:
            return tuple(row[:width])
        return tuple(row) + ('',) * (width - len(row))

    def grid(self) -> Iterator[tuple[str, ...]]:
        for row in self.rows:
            yield self.fit_row(row)


@dataclass(frozen=True)
class FooterRow:
    left: str
    center: str
    right: str


Segment = Union[TextRun, Table, FooterRow]


def normalize_newlines(value: str) -> str:
    return value.replace('\r\n', '\n').replace('\r', '\n')


def _split_cells(line: str) -> tuple[str, ...]:
    return tuple(cell.strip() for cell in line.split('|'))


def parse_table(interior: str) -> Table:
    lines = [line for line in interior.split('\n') if line.strip()]
    if not lines:
        return Table(header=(), rows=())
    return Table(
        header=_split_cells(lines[0]),
        rows=tuple(_split_cells(line) for line in lines[1:]),
    )


def parse_footer(interior: str) -> FooterRow | None:
    parts = [part.strip() for part in interior.strip().split('|')]
    if len(parts) != 3:
        return None
    return FooterRow(left=parts[0], center=parts[1], right=parts[2])


def extract_footer(text: str) -> tuple[str, FooterRow | None]:
    """Remove the first well-formed footer span and return it.

    Malformed spans, and every span after the honoured one, are left in the
    text untouched so they render literally.
    """
    for match in _FOOTER_PATTERN.finditer(text):
        footer = parse_footer(match.group(1))
        if footer is None:
            continue
        return text[: match.start()] + text[match.end():], footer
    return text, None


def _append_text(segments: list[Segment], text: str) -> None:
    if text.strip():
        segments.append(TextRun.from_text(text))


def segment(raw: str) -> tuple[Segment, ...]:
    text, footer = extract_footer(normalize_newlines(raw or ''))

    segments: list[Segment] = []
    cursor = 0
    while True:
        start = text.find(TABLE_OPEN, cursor)
        if start == -1:
            break
        end = text.find(TABLE_CLOSE, start + len(TABLE_OPEN))
        if end == -1:
            # unterminated block: everything left over is literal text
            _append_text(segments, text[cursor:])
            cursor = len(text)
            break
        _append_text(segments, text[cursor:start])
        segments.append(parse_table(text[start + len(TABLE_OPEN): end]))
        cursor = end + len(TABLE_CLOSE)

    _append_text(segments, text[cursor:])

    if footer is not None:
        segments.append(footer)
    return tuple(segments)


def strip_table_markers(content: str) -> str:
    return (content or '').replace(TABLE_OPEN, '').replace(TABLE_CLOSE, '')


def footer_of(segments: tuple[Segment, ...]) -> FooterRow | None:
    if segments and isinstance(segments[-1], FooterRow):
        return segments[-1]
    return None

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from typing import Iterable, Union

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas as pdf_canvas

from collegedocs.markup.headings import PDF_HEADINGS, HeadingPolicy
from collegedocs.markup.segments import FooterRow, Segment, Table, TextRun
from collegedocs.report.letterhead import Letterhead


logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4

# Layout is computed in millimetres, measured from the top-left corner.
PAGE_WIDTH_MM = 210.0
PAGE_HEIGHT_MM = 297.0
BORDER_INSET_MM = 10.0
BORDER_LINE_WIDTH_MM = 0.5
MARGIN_MM = 15.0
PRINTABLE_WIDTH_MM = PAGE_WIDTH_MM - 2 * MARGIN_MM
CONTENT_TOP_MM = MARGIN_MM + 5.0
CONTENT_BOTTOM_MM = PAGE_HEIGHT_MM - MARGIN_MM - 10.0

LINE_HEIGHT_MM = 5.0
BASELINE_OFFSET_MM = 3.5

LOGO_SIZE_MM = 18.0
LETTERHEAD_TEXT_WIDTH_MM = PRINTABLE_WIDTH_MM - 2 * (LOGO_SIZE_MM + 5.0)

TABLE_INSET_MM = 2.0
TABLE_GAP_BEFORE_MM = 3.0
TABLE_GAP_AFTER_MM = 5.0
CELL_HEIGHT_MM = 6.0
CELL_PADDING_MM = 2.0
CELL_LINE_WIDTH_MM = 0.2

FOOTER_GAP_MM = 8.0

BODY_FONT = 'Courier'
BODY_BOLD_FONT = 'Courier-Bold'
BODY_FONT_SIZE = 9.0
HEADING_FONT_SIZE = 11.0
TABLE_FONT_SIZE = 7.0
FOOTER_FONT_SIZE = 8.0
LETTERHEAD_FONT = 'Helvetica'
LETTERHEAD_BOLD_FONT = 'Helvetica-Bold'

RGB = tuple[int, int, int]
BLACK: RGB = (0, 0, 0)
WHITE: RGB = (255, 255, 255)
NAVY: RGB = (0, 51, 102)
GREEN: RGB = (0, 100, 0)
ZEBRA_ODD: RGB = (240, 244, 248)


@dataclass(frozen=True)
class TextOp:
    x: float
    y: float
    text: str
    font: str
    size: float
    color: RGB = BLACK
    align: str = 'left'


@dataclass(frozen=True)
class RectOp:
    x: float
    y: float
    width: float
    height: float
    stroke: RGB | None = BLACK
    fill: RGB | None = None
    line_width: float = BORDER_LINE_WIDTH_MM


@dataclass(frozen=True)
class LineOp:
    x1: float
    y1: float
    x2: float
    y2: float
    color: RGB = BLACK
    line_width: float = BORDER_LINE_WIDTH_MM


@dataclass(frozen=True)
class ImageOp:
    x: float
    y: float
    width: float
    height: float
    data: bytes


DrawOp = Union[TextOp, RectOp, LineOp, ImageOp]


@dataclass(frozen=True)
class PlacedUnit:
    """A block that must stay on one page (text line, table row, footer)."""

    kind: str
    top: float
    bottom: float


@dataclass
class PdfPage:
    number: int
    ops: list[DrawOp] = field(default_factory=list)
    units: list[PlacedUnit] = field(default_factory=list)

    def texts(self) -> list[str]:
        return [op.text for op in self.ops if isinstance(op, TextOp)]


@dataclass
class PdfLayout:
    pages: list[PdfPage] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages)


def text_width_mm(text: str, font_name: str, font_size: float) -> float:
    if not text:
        return 0.0
    return pdfmetrics.stringWidth(text, font_name, font_size) / mm


def _split_token_by_width(token: str, *, max_width: float, font_name: str, font_size: float) -> list[str]:
    chunks: list[str] = []
    current = ''
    for char in token:
        candidate = f'{current}{char}'
        if text_width_mm(candidate, font_name, font_size) <= max_width:
            current = candidate
            continue
        if current:
            chunks.append(current)
            current = char
            continue
        chunks.append(char)
        current = ''
    if current:
        chunks.append(current)
    return chunks or ['']


def wrap_text(text: str, *, max_width: float, font_name: str, font_size: float) -> list[str]:
    """Word-wrap one logical line to ``max_width`` millimetres, keeping its indent."""
    line = text.expandtabs(4).rstrip()
    if text_width_mm(line, font_name, font_size) <= max_width:
        return [line]

    stripped = line.lstrip(' ')
    indent = line[: len(line) - len(stripped)]
    lines: list[str] = []
    current = indent
    for word in stripped.split(' '):
        candidate = f'{current} {word}' if current.strip() else f'{current}{word}'
        if text_width_mm(candidate, font_name, font_size) <= max_width:
            current = candidate
            continue
        if current.strip():
            lines.append(current.rstrip())
            candidate = word
        if text_width_mm(candidate, font_name, font_size) <= max_width:
            current = candidate
            continue
        chunks = _split_token_by_width(candidate, max_width=max_width, font_name=font_name, font_size=font_size)
        lines.extend(chunks[:-1])
        current = chunks[-1]
    if current.strip():
        lines.append(current.rstrip())
    return lines or ['']


def truncate_to_width(text: str, *, max_width: float, font_name: str, font_size: float) -> str:
    display = text
    while display and text_width_mm(display, font_name, font_size) > max_width:
        display = display[:-1]
    return display


def _fit_font_size(text: str, *, font_name: str, font_size: float, max_width: float, minimum: float = 5.0) -> float:
    size = font_size
    while size > minimum and text_width_mm(text, font_name, size) > max_width:
        size -= 0.5
    return size


class _Paginator:
    def __init__(self, headings: HeadingPolicy) -> None:
        self.headings = headings
        self.layout = PdfLayout()
        self.y = MARGIN_MM
        self._new_page()

    @property
    def page(self) -> PdfPage:
        return self.layout.pages[-1]

    def _new_page(self) -> None:
        page = PdfPage(number=len(self.layout.pages) + 1)
        page.ops.append(
            RectOp(
                x=BORDER_INSET_MM,
                y=BORDER_INSET_MM,
                width=PAGE_WIDTH_MM - 2 * BORDER_INSET_MM,
                height=PAGE_HEIGHT_MM - 2 * BORDER_INSET_MM,
            )
        )
        self.layout.pages.append(page)
        self.y = CONTENT_TOP_MM

    def reserve(self, kind: str, height: float) -> float:
        # a unit taller than a whole page is placed anyway rather than looping
        if self.y + height > CONTENT_BOTTOM_MM and self.page.units:
            self._new_page()
        top = self.y
        self.page.units.append(PlacedUnit(kind=kind, top=top, bottom=top + height))
        self.y = top + height
        return top

    def draw(self, op: DrawOp) -> None:
        self.page.ops.append(op)

    def letterhead(self, letterhead: Letterhead) -> None:
        top = MARGIN_MM
        if letterhead.logo_bytes:
            self.draw(
                ImageOp(
                    x=MARGIN_MM + 2,
                    y=top,
                    width=LOGO_SIZE_MM,
                    height=LOGO_SIZE_MM,
                    data=letterhead.logo_bytes,
                )
            )

        center_x = PAGE_WIDTH_MM / 2
        rows = (
            (letterhead.name, LETTERHEAD_BOLD_FONT, 13.0, NAVY, 5.0),
            (letterhead.affiliation, LETTERHEAD_FONT, 8.0, BLACK, 12.0),
            (letterhead.accreditation, LETTERHEAD_BOLD_FONT, 8.0, GREEN, 16.0),
            (letterhead.certifications, LETTERHEAD_FONT, 8.0, BLACK, 20.0),
        )
        for text, font, size, color, offset in rows:
            fitted = _fit_font_size(text, font_name=font, font_size=size, max_width=LETTERHEAD_TEXT_WIDTH_MM)
            self.draw(TextOp(x=center_x, y=top + offset, text=text, font=font, size=fitted, color=color, align='center'))

        rule_y = top + 27.0
        self.draw(LineOp(x1=MARGIN_MM, y1=rule_y, x2=PAGE_WIDTH_MM - MARGIN_MM, y2=rule_y, color=NAVY))
        self.page.units.append(PlacedUnit(kind='letterhead', top=top, bottom=rule_y))
        self.y = rule_y + 8.0

    def text_run(self, run: TextRun) -> None:
        for line in run.lines:
            if not line.strip():
                self.y += LINE_HEIGHT_MM / 2
                continue
            if self.headings.matches(line):
                for piece in wrap_text(
                    line.strip(),
                    max_width=PRINTABLE_WIDTH_MM,
                    font_name=BODY_BOLD_FONT,
                    font_size=HEADING_FONT_SIZE,
                ):
                    top = self.reserve('heading', LINE_HEIGHT_MM)
                    self.draw(
                        TextOp(
                            x=PAGE_WIDTH_MM / 2,
                            y=top + BASELINE_OFFSET_MM,
                            text=piece,
                            font=BODY_BOLD_FONT,
                            size=HEADING_FONT_SIZE,
                            align='center',
                        )
                    )
                continue
            for piece in wrap_text(
                line,
                max_width=PRINTABLE_WIDTH_MM,
                font_name=BODY_FONT,
                font_size=BODY_FONT_SIZE,
            ):
                top = self.reserve('line', LINE_HEIGHT_MM)
                self.draw(
                    TextOp(
                        x=MARGIN_MM,
                        y=top + BASELINE_OFFSET_MM,
                        text=piece,
                        font=BODY_FONT,
                        size=BODY_FONT_SIZE,
                    )
                )

    def table(self, table: Table) -> None:
        if table.is_empty:
            return
        self.y += TABLE_GAP_BEFORE_MM

        columns = table.column_count
        col_width = (PRINTABLE_WIDTH_MM - 2 * TABLE_INSET_MM) / columns
        text_width = col_width - 2 * CELL_PADDING_MM
        rows = [table.header, *table.grid()]

        for row_index, row in enumerate(rows):
            is_header = row_index == 0
            top = self.reserve('table_header' if is_header else 'table_row', CELL_HEIGHT_MM)
            if is_header:
                fill, ink, font = NAVY, WHITE, BODY_BOLD_FONT
            else:
                data_index = row_index - 1
                fill = WHITE if data_index % 2 == 0 else ZEBRA_ODD
                ink, font = BLACK, BODY_FONT

            for col_index, cell in enumerate(row):
                cell_x = MARGIN_MM + TABLE_INSET_MM + col_index * col_width
                self.draw(
                    RectOp(
                        x=cell_x,
                        y=top,
                        width=col_width,
                        height=CELL_HEIGHT_MM,
                        stroke=NAVY,
                        fill=fill,
                        line_width=CELL_LINE_WIDTH_MM,
                    )
                )
                display = truncate_to_width(
                    cell,
                    max_width=text_width,
                    font_name=font,
                    font_size=TABLE_FONT_SIZE,
                )
                if display:
                    self.draw(
                        TextOp(
                            x=cell_x + CELL_PADDING_MM,
                            y=top + CELL_HEIGHT_MM - 2,
                            text=display,
                            font=font,
                            size=TABLE_FONT_SIZE,
                            color=ink,
                        )
                    )

        self.y += TABLE_GAP_AFTER_MM

    def footer(self, footer: FooterRow) -> None:
        self.y += FOOTER_GAP_MM
        top = self.reserve('footer', LINE_HEIGHT_MM)
        baseline = top + BASELINE_OFFSET_MM
        self.draw(TextOp(x=MARGIN_MM, y=baseline, text=footer.left, font=BODY_FONT, size=FOOTER_FONT_SIZE))
        self.draw(
            TextOp(
                x=PAGE_WIDTH_MM / 2,
                y=baseline,
                text=footer.center,
                font=BODY_FONT,
                size=FOOTER_FONT_SIZE,
                align='center',
            )
        )
        self.draw(
            TextOp(
                x=PAGE_WIDTH_MM - MARGIN_MM,
                y=baseline,
                text=footer.right,
                font=BODY_BOLD_FONT,
                size=FOOTER_FONT_SIZE,
                align='right',
            )
        )


def layout_pdf(
    segments: Iterable[Segment],
    letterhead: Letterhead,
    *,
    headings: HeadingPolicy = PDF_HEADINGS,
) -> PdfLayout:
    paginator = _Paginator(headings)
    paginator.letterhead(letterhead)
    for item in segments:
        if isinstance(item, TextRun):
            paginator.text_run(item)
        elif isinstance(item, Table):
            paginator.table(item)
        elif isinstance(item, FooterRow):
            paginator.footer(item)
    return paginator.layout


def _rgb(color: RGB) -> tuple[float, float, float]:
    return (color[0] / 255.0, color[1] / 255.0, color[2] / 255.0)


def _flip(y_mm: float) -> float:
    return PAGE_HEIGHT - y_mm * mm


def _draw_op(canvas, op: DrawOp) -> None:
    if isinstance(op, TextOp):
        canvas.setFillColorRGB(*_rgb(op.color))
        canvas.setFont(op.font, op.size)
        x, y = op.x * mm, _flip(op.y)
        if op.align == 'center':
            canvas.drawCentredString(x, y, op.text)
        elif op.align == 'right':
            canvas.drawRightString(x, y, op.text)
        else:
            canvas.drawString(x, y, op.text)
        return

    if isinstance(op, RectOp):
        if op.stroke is not None:
            canvas.setStrokeColorRGB(*_rgb(op.stroke))
            canvas.setLineWidth(op.line_width * mm)
        if op.fill is not None:
            canvas.setFillColorRGB(*_rgb(op.fill))
        canvas.rect(
            op.x * mm,
            _flip(op.y + op.height),
            op.width * mm,
            op.height * mm,
            stroke=1 if op.stroke is not None else 0,
            fill=1 if op.fill is not None else 0,
        )
        return

    if isinstance(op, LineOp):
        canvas.setStrokeColorRGB(*_rgb(op.color))
        canvas.setLineWidth(op.line_width * mm)
        canvas.line(op.x1 * mm, _flip(op.y1), op.x2 * mm, _flip(op.y2))
        return

    if isinstance(op, ImageOp):
        try:
            canvas.drawImage(
                ImageReader(io.BytesIO(op.data)),
                op.x * mm,
                _flip(op.y + op.height),
                width=op.width * mm,
                height=op.height * mm,
                preserveAspectRatio=True,
                mask='auto',
            )
        except Exception as exc:
            logger.warning('Failed to draw letterhead logo into PDF: %s', exc)


def draw_layout(layout: PdfLayout, *, title: str = '', author: str = '') -> bytes:
    buffer = io.BytesIO()
    canvas = pdf_canvas.Canvas(buffer, pagesize=A4, invariant=1)
    canvas.setTitle(title or 'College Document')
    if author:
        canvas.setAuthor(author)
    canvas.setProducer('collegedocs')
    for page in layout.pages:
        for op in page.ops:
            canvas.saveState()
            _draw_op(canvas, op)
            canvas.restoreState()
        canvas.showPage()
    canvas.save()
    return buffer.getvalue()


def render_pdf(
    segments: Iterable[Segment],
    letterhead: Letterhead,
    *,
    headings: HeadingPolicy = PDF_HEADINGS,
    title: str = '',
) -> bytes:
    layout = layout_pdf(segments, letterhead, headings=headings)
    return draw_layout(layout, title=title, author=letterhead.name)

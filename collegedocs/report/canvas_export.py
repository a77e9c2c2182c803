from __future__ import annotations

import html
import re
from dataclasses import dataclass
from typing import Iterable

from collegedocs.markup.headings import IMAGE_HEADINGS, HeadingPolicy
from collegedocs.markup.segments import FooterRow, Segment, Table, TextRun
from collegedocs.report.letterhead import Letterhead


# A4 at 300 DPI
A4_WIDTH_PX = 2480
A4_HEIGHT_PX = 3508
A4_DPI = 300

NAVY = '#003366'
INK = '#1e293b'
ZEBRA_EVEN = '#ffffff'
ZEBRA_ODD = '#f0f4f8'

_NUMBERED_ITEM = re.compile(r'^\d+\.')
_REFERENCE_PREFIXES = ('Ref.No', 'Date:')


@dataclass(frozen=True)
class CanvasDocument:
    html: str
    width_px: int = A4_WIDTH_PX
    height_px: int = A4_HEIGHT_PX
    dpi: int = A4_DPI
    page_selector: str = '.a4-page'


def _escape(value: str) -> str:
    return html.escape(str(value or ''), quote=False)


def _line_html(line: str, headings: HeadingPolicy) -> str:
    stripped = line.strip()
    if headings.matches(line):
        return (
            f'<div class="heading" style="text-align: center; font-weight: bold; font-size: 32px; '
            f'color: {NAVY}; margin: 30px 0 20px 0;">{_escape(stripped)}</div>'
        )
    if stripped.startswith(_REFERENCE_PREFIXES):
        return f'<div class="reference" style="font-size: 24px; color: {INK}; margin: 8px 0;">{_escape(line)}</div>'
    if _NUMBERED_ITEM.match(stripped):
        return (
            f'<div class="list-item" style="font-size: 24px; color: {INK}; margin: 12px 0; '
            f'padding-left: 20px;">{_escape(line)}</div>'
        )
    if stripped:
        return (
            f'<div class="text" style="font-size: 24px; color: {INK}; margin: 8px 0; '
            f'line-height: 1.6; white-space: pre-wrap;">{_escape(line)}</div>'
        )
    return '<div class="blank" style="height: 16px;"></div>'


def _table_html(table: Table) -> str:
    if table.is_empty:
        return ''
    parts = [
        '<table style="width: 100%; border-collapse: collapse; margin: 30px 0; '
        "font-family: 'Courier New', Courier, monospace;\">",
        '<thead><tr>',
    ]
    for cell in table.header:
        parts.append(
            f'<th style="background-color: {NAVY}; color: #ffffff; border: 2px solid {NAVY}; '
            f'padding: 12px 16px; text-align: left; font-size: 22px; font-weight: bold; '
            f'text-transform: uppercase;">{_escape(cell)}</th>'
        )
    parts.append('</tr></thead><tbody>')
    for index, row in enumerate(table.grid()):
        background = ZEBRA_EVEN if index % 2 == 0 else ZEBRA_ODD
        parts.append(f'<tr style="background-color: {background};">')
        for cell in row:
            parts.append(
                f'<td style="border: 2px solid {NAVY}; padding: 12px 16px; font-size: 22px; '
                f'color: {INK};">{_escape(cell)}</td>'
            )
        parts.append('</tr>')
    parts.append('</tbody></table>')
    return ''.join(parts)


def _footer_html(footer: FooterRow) -> str:
    return (
        '<div class="footer-row" style="display: flex; justify-content: space-between; '
        'align-items: flex-start; margin-top: 60px; padding-top: 0;">'
        f'<div class="footer-left" style="text-align: left; font-size: 24px; color: {INK};">'
        f'{_escape(footer.left)}</div>'
        f'<div class="footer-center" style="text-align: center; font-size: 24px; color: {INK};">'
        f'{_escape(footer.center)}</div>'
        f'<div class="footer-right" style="text-align: right; font-size: 24px; color: {INK}; '
        f'font-weight: bold;">{_escape(footer.right)}</div>'
        '</div>'
    )


def _letterhead_html(letterhead: Letterhead) -> str:
    logo_uri = letterhead.logo_data_uri()
    if logo_uri:
        logo = f'<img src="{html.escape(logo_uri, quote=True)}" class="logo" alt="College Logo" />'
    else:
        logo = '<div class="spacer"></div>'
    return (
        '<div class="header"><div class="header-flex">'
        f'{logo}'
        '<div class="header-text">'
        f'<div class="college-name">{_escape(letterhead.name)}</div>'
        f'<div class="affiliation">{_escape(letterhead.affiliation)}</div>'
        f'<div class="accreditation">{_escape(letterhead.accreditation)}</div>'
        f'<div class="certifications">{_escape(letterhead.certifications)}</div>'
        '</div>'
        '<div class="spacer"></div>'
        '</div></div>'
    )


_PAGE_CSS = f"""
  * {{ margin: 0; padding: 0; box-sizing: border-box; }}
  body {{ font-family: 'Courier New', Courier, monospace; background: #ffffff; }}
  .a4-page {{ width: {A4_WIDTH_PX}px; height: {A4_HEIGHT_PX}px; overflow: hidden; background: #ffffff; position: relative; }}
  .page-border {{ position: absolute; top: 60px; left: 60px; right: 60px; bottom: 60px; border: 3px solid #000000; pointer-events: none; }}
  .page-content {{ padding: 100px 180px; }}
  .header {{ text-align: center; padding-bottom: 40px; border-bottom: 4px solid {NAVY}; margin-bottom: 50px; }}
  .header-flex {{ display: flex; align-items: center; justify-content: center; gap: 40px; }}
  .logo {{ width: 180px; height: 180px; object-fit: contain; }}
  .header-text {{ flex: 1; text-align: center; }}
  .college-name {{ font-size: 48px; font-weight: bold; color: {NAVY}; margin-bottom: 12px; text-transform: uppercase; letter-spacing: 1px; }}
  .affiliation {{ font-size: 24px; color: #333333; margin-bottom: 8px; }}
  .accreditation {{ font-size: 24px; color: #006400; font-weight: bold; margin-bottom: 8px; }}
  .certifications {{ font-size: 22px; color: #555555; }}
  .spacer {{ width: 180px; height: 180px; }}
  .content {{ font-family: 'Courier New', Courier, monospace; }}
"""


def render_canvas(
    segments: Iterable[Segment],
    letterhead: Letterhead,
    *,
    headings: HeadingPolicy = IMAGE_HEADINGS,
    title: str = '',
) -> CanvasDocument:
    blocks: list[str] = []
    for item in segments:
        if isinstance(item, TextRun):
            blocks.extend(_line_html(line, headings) for line in item.lines)
        elif isinstance(item, Table):
            table_html = _table_html(item)
            if table_html:
                blocks.append(table_html)
        elif isinstance(item, FooterRow):
            blocks.append(_footer_html(item))

    content = '\n'.join(blocks)
    page = f"""<!DOCTYPE html>
<html>
<head>
<meta charset="UTF-8">
<title>{_escape(title or letterhead.name)}</title>
<style>{_PAGE_CSS}</style>
</head>
<body>
<div class="a4-page">
<div class="page-border"></div>
<div class="page-content">
{_letterhead_html(letterhead)}
<div class="content">
{content}
</div>
</div>
</div>
</body>
</html>
"""
    return CanvasDocument(html=page)

from __future__ import annotations

import html
from dataclasses import dataclass, field
from typing import Iterable

from collegedocs.markup.headings import PREVIEW_HEADINGS, HeadingPolicy
from collegedocs.markup.segments import FooterRow, Segment, Table, TextRun
from collegedocs.report.letterhead import Letterhead


NAVY = '#003366'
INK = '#1e293b'
GREEN = '#006400'
ZEBRA_EVEN = '#ffffff'
ZEBRA_ODD = '#f0f4f8'
MONO_STACK = '"Courier New", Courier, monospace'

_TAGS = {
    'document': 'div',
    'letterhead': 'div',
    'logo': 'img',
    'letterhead_line': 'div',
    'content': 'div',
    'text_block': 'pre',
    'line': 'span',
    'table': 'table',
    'header_row': 'tr',
    'header_cell': 'th',
    'row': 'tr',
    'cell': 'td',
    'footer': 'div',
    'footer_part': 'div',
}


def _escape(value: str) -> str:
    return html.escape(str(value or ''), quote=False)


def _escape_attr(value: str) -> str:
    return html.escape(str(value or ''), quote=True)


@dataclass
class PreviewNode:
    """One element of the on-screen preview tree."""

    kind: str
    text: str = ''
    style: dict[str, str] = field(default_factory=dict)
    attrs: dict[str, str] = field(default_factory=dict)
    children: list['PreviewNode'] = field(default_factory=list)

    def find_all(self, kind: str) -> list['PreviewNode']:
        found: list[PreviewNode] = []
        if self.kind == kind:
            found.append(self)
        for child in self.children:
            found.extend(child.find_all(kind))
        return found

    def to_html(self) -> str:
        tag = _TAGS.get(self.kind, 'div')
        attrs = dict(self.attrs)
        if self.style:
            attrs['style'] = '; '.join(f'{key}: {value}' for key, value in self.style.items())
        attrs.setdefault('class', f'doc-{self.kind.replace("_", "-")}')
        rendered_attrs = ''.join(f' {key}="{_escape_attr(value)}"' for key, value in attrs.items())
        if tag == 'img':
            return f'<img{rendered_attrs} />'
        if self.kind == 'text_block':
            body = '\n'.join(child.to_html() for child in self.children)
        elif self.kind == 'table':
            head = ''.join(child.to_html() for child in self.children if child.kind == 'header_row')
            rows = ''.join(child.to_html() for child in self.children if child.kind == 'row')
            body = f'<thead>{head}</thead><tbody>{rows}</tbody>'
        else:
            body = _escape(self.text) + ''.join(child.to_html() for child in self.children)
        return f'<{tag}{rendered_attrs}>{body}</{tag}>'


def _letterhead_node(letterhead: Letterhead) -> PreviewNode:
    logo_uri = letterhead.logo_data_uri()
    if logo_uri:
        logo = PreviewNode(
            kind='logo',
            style={'width': '4rem', 'height': '4rem', 'object-fit': 'contain'},
            attrs={'src': logo_uri, 'alt': 'College Logo'},
        )
    else:
        # No logo bytes were loaded; keep the text centred.
        logo = PreviewNode(kind='spacer', style={'width': '4rem', 'height': '4rem'})
    line_styles = (
        {'font-weight': 'bold', 'font-size': '1.125rem', 'color': NAVY},
        {'font-size': '0.75rem', 'color': '#374151'},
        {'font-size': '0.75rem', 'font-weight': '600', 'color': GREEN},
        {'font-size': '0.75rem', 'color': '#4b5563'},
    )
    text_block = PreviewNode(
        kind='letterhead_text',
        style={'flex': '1', 'text-align': 'center'},
        children=[
            PreviewNode(kind='letterhead_line', text=text, style=dict(style))
            for text, style in zip(letterhead.lines, line_styles)
        ],
    )
    return PreviewNode(
        kind='letterhead',
        style={
            'display': 'flex',
            'align-items': 'center',
            'justify-content': 'center',
            'gap': '1rem',
            'padding-bottom': '1rem',
            'margin-bottom': '1rem',
            'border-bottom': f'2px solid {NAVY}',
        },
        children=[
            logo,
            text_block,
            PreviewNode(kind='spacer', style={'width': '4rem', 'height': '4rem'}),
        ],
    )


def _text_node(run: TextRun, headings: HeadingPolicy) -> PreviewNode:
    children: list[PreviewNode] = []
    for line in run.lines:
        style: dict[str, str] = {}
        attrs: dict[str, str] = {}
        if headings.matches(line):
            style['font-weight'] = 'bold'
            attrs['data-heading'] = 'true'
        children.append(PreviewNode(kind='line', text=line, style=style, attrs=attrs))
    return PreviewNode(
        kind='text_block',
        style={
            'white-space': 'pre-wrap',
            'font-family': MONO_STACK,
            'font-size': '0.875rem',
            'line-height': '1.625',
            'color': INK,
            'margin-bottom': '1rem',
        },
        children=children,
    )


def _table_node(table: Table) -> PreviewNode | None:
    if table.is_empty:
        return None
    cell_style = {
        'border': f'1px solid {NAVY}',
        'padding': '0.25rem 0.5rem',
        'font-family': MONO_STACK,
        'font-size': '10px',
        'text-align': 'left',
    }
    header = PreviewNode(
        kind='header_row',
        style={'background-color': NAVY},
        children=[
            PreviewNode(
                kind='header_cell',
                text=cell,
                style={**cell_style, 'color': '#ffffff', 'font-weight': 'bold', 'text-transform': 'uppercase'},
            )
            for cell in table.header
        ],
    )
    rows = [
        PreviewNode(
            kind='row',
            style={'background-color': ZEBRA_EVEN if index % 2 == 0 else ZEBRA_ODD},
            children=[PreviewNode(kind='cell', text=cell, style={**cell_style, 'color': INK}) for cell in row],
        )
        for index, row in enumerate(table.grid())
    ]
    return PreviewNode(
        kind='table',
        style={'width': '100%', 'border-collapse': 'collapse', 'margin': '1rem 0'},
        children=[header, *rows],
    )


def _footer_node(footer: FooterRow) -> PreviewNode:
    base = {'font-size': '0.75rem', 'color': INK, 'font-family': MONO_STACK}
    return PreviewNode(
        kind='footer',
        style={
            'display': 'flex',
            'justify-content': 'space-between',
            'align-items': 'flex-start',
            'margin-top': '1.5rem',
            'padding-top': '1rem',
        },
        children=[
            PreviewNode(kind='footer_part', text=footer.left, style={**base, 'text-align': 'left'}),
            PreviewNode(kind='footer_part', text=footer.center, style={**base, 'text-align': 'center'}),
            PreviewNode(
                kind='footer_part',
                text=footer.right,
                style={**base, 'text-align': 'right', 'font-weight': 'bold'},
            ),
        ],
    )


def render_preview(
    segments: Iterable[Segment],
    letterhead: Letterhead,
    *,
    headings: HeadingPolicy = PREVIEW_HEADINGS,
) -> PreviewNode:
    content = PreviewNode(kind='content')
    for item in segments:
        if isinstance(item, TextRun):
            content.children.append(_text_node(item, headings))
        elif isinstance(item, Table):
            node = _table_node(item)
            if node is not None:
                content.children.append(node)
        elif isinstance(item, FooterRow):
            content.children.append(_footer_node(item))

    return PreviewNode(
        kind='document',
        style={
            'background-color': '#ffffff',
            'border': f'2px solid {NAVY}',
            'padding': '1.5rem',
            'overflow': 'auto',
        },
        children=[_letterhead_node(letterhead), content],
    )


def preview_html(segments: Iterable[Segment], letterhead: Letterhead, *, title: str = 'Document Preview') -> str:
    body = render_preview(segments, letterhead).to_html()
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <title>{_escape(title)}</title>
</head>
<body>
{body}
</body>
</html>
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from collegedocs.adapters.rasterizer import Rasterizer
from collegedocs.markup.segments import segment, strip_table_markers
from collegedocs.report.canvas_export import render_canvas
from collegedocs.report.letterhead import Letterhead
from collegedocs.report.pdf_export import render_pdf
from collegedocs.report.preview import preview_html
from collegedocs.storage import write_bytes_atomic
from collegedocs.types import ExportFormat


logger = logging.getLogger(__name__)

_WHITESPACE_RUN = re.compile(r'\s+')
# Path separators and characters most filesystems reject.
_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]')


class ExportError(RuntimeError):
    """A render target failed; no output file was written."""


def export_filename(title: str, extension: str) -> str:
    stem = _WHITESPACE_RUN.sub('_', str(title or '').strip())
    stem = _UNSAFE_FILENAME_CHARS.sub('', stem) or 'document'
    return f'{stem}.{extension.lstrip(".")}'


def export_plain_text(content: str) -> str:
    return strip_table_markers(content)


def render_export(
    content: str,
    *,
    fmt: ExportFormat,
    letterhead: Letterhead,
    title: str = '',
    rasterizer: Rasterizer | None = None,
) -> bytes:
    if not str(content or '').strip():
        raise ValueError('content is empty; nothing to export')

    if fmt == ExportFormat.txt:
        return export_plain_text(content).encode('utf-8')

    segments = segment(content)
    if fmt == ExportFormat.pdf:
        return render_pdf(segments, letterhead, title=title)
    if fmt == ExportFormat.html:
        return preview_html(segments, letterhead, title=title or 'Document Preview').encode('utf-8')
    if fmt == ExportFormat.png:
        if rasterizer is None:
            raise ExportError('image export needs a rasterizer')
        return rasterizer.rasterize(render_canvas(segments, letterhead, title=title))
    raise ValueError(f'unsupported export format: {fmt}')


def export_document(
    content: str,
    *,
    fmt: ExportFormat | str,
    letterhead: Letterhead,
    title: str,
    output_dir: Path,
    rasterizer: Rasterizer | None = None,
) -> Path:
    """Render ``content`` to ``fmt`` and write it under ``output_dir``.

    The file is named after ``title`` and written atomically, so a failing
    render target never leaves a partial file behind.
    """
    fmt = ExportFormat(fmt)
    if not str(content or '').strip():
        raise ValueError('content is empty; nothing to export')

    target = Path(output_dir) / export_filename(title, fmt.value)
    try:
        data = render_export(content, fmt=fmt, letterhead=letterhead, title=title, rasterizer=rasterizer)
    except ExportError:
        raise
    except Exception as exc:
        raise ExportError(f'{fmt.value} export failed: {exc}') from exc

    try:
        write_bytes_atomic(target, data)
    except OSError as exc:
        raise ExportError(f'could not write {target}: {exc}') from exc

    logger.info('Exported %s (%d bytes) to %s', fmt.value, len(data), target)
    return target

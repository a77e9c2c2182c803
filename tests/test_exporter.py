"""Tests for export orchestration."""

import pytest

from collegedocs.report.canvas_export import CanvasDocument
from collegedocs.report.exporter import (
    ExportError,
    export_document,
    export_filename,
    export_plain_text,
)
from collegedocs.types import ExportFormat
from conftest import TINY_PNG, FakeRasterizer


class TestExportFilename:
    """Tests for export_filename()."""

    def test_whitespace_runs_become_underscores(self):
        assert export_filename("Republic Day   Circular", "pdf") == "Republic_Day_Circular.pdf"
        assert export_filename("Mid\tTerm\nExams", ".txt") == "Mid_Term_Exams.txt"

    def test_path_separators_removed(self):
        assert export_filename("Fees 2025/26", "png") == "Fees_202526.png"

    def test_blank_title(self):
        assert export_filename("   ", "html") == "document.html"


class TestExportPlainText:
    """Tests for export_plain_text()."""

    def test_only_markers_removed(self, circular_content):
        text = export_plain_text(circular_content)
        assert "[TABLE]" not in text
        assert "[/TABLE]" not in text
        assert "EVENT DETAILS | INFORMATION" in text
        assert "Venue | College Auditorium" in text
        assert "[FOOTER_ROW]" in text


class TestExportDocument:
    """Tests for export_document()."""

    def test_txt(self, circular_content, letterhead, output_dir):
        path = export_document(circular_content, fmt="txt", letterhead=letterhead, title="Republic Day", output_dir=output_dir)
        assert path == output_dir / "Republic_Day.txt"
        assert path.read_text(encoding="utf-8") == export_plain_text(circular_content)

    def test_pdf(self, circular_content, letterhead, output_dir):
        path = export_document(circular_content, fmt=ExportFormat.pdf, letterhead=letterhead, title="Republic Day", output_dir=output_dir)
        assert path.name == "Republic_Day.pdf"
        assert path.read_bytes().startswith(b"%PDF")

    def test_html(self, circular_content, letterhead, output_dir):
        path = export_document(circular_content, fmt="html", letterhead=letterhead, title="Republic Day", output_dir=output_dir)
        html = path.read_text(encoding="utf-8")
        assert "<title>Republic Day</title>" in html
        assert "PRINCIPAL" in html

    def test_png(self, circular_content, letterhead, output_dir, fake_rasterizer):
        path = export_document(
            circular_content,
            fmt="png",
            letterhead=letterhead,
            title="Republic Day",
            output_dir=output_dir,
            rasterizer=fake_rasterizer,
        )
        assert path.read_bytes() == TINY_PNG
        (document,) = fake_rasterizer.documents
        assert isinstance(document, CanvasDocument)
        assert "77th Republic Day" in document.html

    def test_empty_content_rejected(self, letterhead, output_dir, fake_rasterizer):
        with pytest.raises(ValueError):
            export_document("  \n", fmt="png", letterhead=letterhead, title="x", output_dir=output_dir, rasterizer=fake_rasterizer)
        assert fake_rasterizer.documents == []
        assert list(output_dir.iterdir()) == []

    def test_renderer_failure_leaves_no_file(self, circular_content, letterhead, output_dir):
        rasterizer = FakeRasterizer(error=RuntimeError("browser crashed"))
        with pytest.raises(ExportError) as excinfo:
            export_document(circular_content, fmt="png", letterhead=letterhead, title="x", output_dir=output_dir, rasterizer=rasterizer)
        assert isinstance(excinfo.value.__cause__, RuntimeError)
        assert list(output_dir.iterdir()) == []

    def test_png_without_rasterizer(self, circular_content, letterhead, output_dir):
        with pytest.raises(ExportError):
            export_document(circular_content, fmt="png", letterhead=letterhead, title="x", output_dir=output_dir)
        assert list(output_dir.iterdir()) == []

    def test_unknown_format(self, circular_content, letterhead, output_dir):
        with pytest.raises(ValueError):
            export_document(circular_content, fmt="docx", letterhead=letterhead, title="x", output_dir=output_dir)

    def test_overwrites_existing_file(self, letterhead, output_dir):
        export_document("first", fmt="txt", letterhead=letterhead, title="Notice", output_dir=output_dir)
        path = export_document("second", fmt="txt", letterhead=letterhead, title="Notice", output_dir=output_dir)
        assert path.read_text(encoding="utf-8") == "second"
        assert sorted(p.name for p in output_dir.iterdir()) == ["Notice.txt"]

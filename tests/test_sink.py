"""
Test: OutputSink — page chrome, filenames and PDF emission.
"""

import sys
from datetime import datetime
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from layout import ImageBlock, RasterAsset, RenderContext, TextBlock, render_block
from layout.context import TextOp
from output.sink import OutputSink, build_filename, sanitize_filename_part

CREATED = datetime(2024, 5, 1, 14, 30)


def document_with_pages(count: int, title: str = "Checkout Flow", file_title=None):
    ctx = RenderContext()
    render_block(ctx, TextBlock("first page body"))
    for i in range(1, count):
        ctx.new_page()
        render_block(ctx, TextBlock(f"page {i + 1} body"))
    return ctx.finish("Performance_Report", title, file_title=file_title)


class TestFilenames:
    def test_sanitize(self):
        assert sanitize_filename_part("Checkout Flow: v2/beta") == "Checkout_Flow_v2beta"
        assert sanitize_filename_part('  a<b>c|d?e*"f  ') == "abcdef"
        assert sanitize_filename_part("...") == ""

    def test_build_filename(self):
        name = build_filename("Performance_Report", "Checkout Flow", CREATED)
        assert name == "Performance_Report_Checkout_Flow_2024-05-01.pdf"

    def test_empty_title_is_omitted(self):
        assert build_filename("Trend_Analysis_Report", "", CREATED) == "Trend_Analysis_Report_2024-05-01.pdf"
        assert build_filename("Comparison_Report", None, CREATED) == "Comparison_Report_2024-05-01.pdf"


class TestChrome:
    def setup_method(self):
        self.sink = OutputSink(footer_label="RO-PORTAL Performance Test Report")

    def test_every_page_is_numbered(self):
        document = self.sink.finalize(document_with_pages(4))
        for i, page in enumerate(document.pages, 1):
            assert f"Page {i} of 4" in page.texts()
            assert "RO-PORTAL Performance Test Report" in page.texts()

    def test_running_header_skips_first_page(self):
        document = self.sink.finalize(document_with_pages(3))
        first_chrome = [op.text for op in document.pages[0].chrome if isinstance(op, TextOp)]
        assert "Checkout Flow" not in first_chrome
        for page in document.pages[1:]:
            chrome = [op.text for op in page.chrome if isinstance(op, TextOp)]
            assert "Checkout Flow" in chrome

    def test_chrome_stays_in_margins(self):
        document = self.sink.finalize(document_with_pages(2))
        g = document.geometry
        for page in document.pages:
            for op in page.chrome:
                assert op.bottom <= g.margin_top or op.top >= g.height - g.margin_bottom

    def test_finalize_is_idempotent(self):
        once = self.sink.finalize(document_with_pages(2))
        assert self.sink.finalize(once) is once
        assert len(once.pages[1].chrome) == len(self.sink.finalize(once).pages[1].chrome)

    def test_original_document_is_untouched(self):
        document = document_with_pages(2)
        self.sink.finalize(document)
        assert document.pages[0].chrome == ()
        assert not document.finalized


class TestEmit:
    def test_pdf_bytes(self, png_bytes):
        ctx = RenderContext()
        render_block(ctx, TextBlock("Body with **bold** text"))
        render_block(ctx, ImageBlock(RasterAsset(png_bytes(300, 150), 300, 150), caption="Chart"))
        document = ctx.finish("Performance_Report", "Checkout Flow")

        artifact = OutputSink().emit(document)
        assert artifact.content.startswith(b"%PDF")
        assert artifact.page_count == 1
        assert artifact.media_type == "application/pdf"
        assert artifact.filename.startswith("Performance_Report_Checkout_Flow_")

    def test_file_title_overrides_display_title(self):
        document = document_with_pages(1, title="Multi-Test Trend Analysis", file_title="")
        artifact = OutputSink().emit(document)
        assert artifact.filename == f"Performance_Report_{document.created_at:%Y-%m-%d}.pdf"

    def test_save(self, tmp_path):
        artifact = OutputSink().emit(document_with_pages(2))
        path = OutputSink().save(artifact, tmp_path / "reports")
        assert path.exists()
        assert path.read_bytes() == artifact.content

    def test_unknown_op_fails(self):
        document = document_with_pages(1)
        with pytest.raises(TypeError):
            OutputSink._draw(None, object(), document.geometry.height)

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from collegedocs.report.canvas_export import CanvasDocument


_IMAGES_SETTLED_JS = '() => Array.from(document.images).every((img) => img.complete)'


class Rasterizer(Protocol):
    def rasterize(self, document: CanvasDocument) -> bytes: ...


@dataclass
class PlaywrightRasterizer:
    """Screenshots the single-page HTML with headless Chromium."""

    timeout_ms: int = 30000

    def rasterize(self, document: CanvasDocument) -> bytes:
        from playwright.sync_api import sync_playwright

        with sync_playwright() as p:
            browser = p.chromium.launch()
            try:
                page = browser.new_page(
                    viewport={'width': document.width_px, 'height': document.height_px},
                    device_scale_factor=1,
                )
                page.set_content(document.html, wait_until='load', timeout=self.timeout_ms)
                # embedded logos must finish decoding or the capture comes out blank
                page.wait_for_function(_IMAGES_SETTLED_JS, timeout=self.timeout_ms)
                return page.locator(document.page_selector).screenshot(
                    type='png',
                    timeout=self.timeout_ms,
                )
            finally:
                browser.close()

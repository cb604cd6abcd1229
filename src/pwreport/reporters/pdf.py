"""PDF rendering through headless Chromium (Playwright)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from pwreport.errors import ReportError

if TYPE_CHECKING:
    from pathlib import Path

    from pwreport.models.report import ReportMetadata

logger = logging.getLogger(__name__)

PAGE_STYLE = "@page { size: A4; margin: 24px; }"
_SETTLE_DELAY_MS = 100


class PdfRenderer:
    """Print HTML to an A4 PDF with a headless browser.

    The browser process is closed on every exit path, including failures
    while rendering the page.
    """

    def __init__(self, *, headless: bool = True) -> None:
        self._headless = headless

    async def render(self, html: str, pdf_path: Path, metadata: ReportMetadata) -> Path:
        """Render *html* into *pdf_path*.

        Raises:
            ReportError: If the browser cannot be launched, printing fails or
                the PDF cannot be written.
        """
        try:
            pdf_path.parent.mkdir(parents=True, exist_ok=True)
            async with async_playwright() as playwright:
                browser = await playwright.chromium.launch(headless=self._headless)
                try:
                    page = await browser.new_page()
                    await page.set_content(html, wait_until="networkidle")
                    await page.add_style_tag(content=PAGE_STYLE)
                    await page.evaluate(
                        """({ title, author }) => {
                            document.title = title;
                            document.documentElement.setAttribute('data-author', author);
                        }""",
                        {"title": metadata.title, "author": metadata.author},
                    )
                    await page.wait_for_timeout(_SETTLE_DELAY_MS)
                    await page.pdf(
                        path=str(pdf_path),
                        format="A4",
                        print_background=True,
                        display_header_footer=False,
                    )
                finally:
                    await browser.close()
        except (PlaywrightError, OSError) as exc:
            logger.error("PDF rendering failed: %s", exc)
            raise ReportError(f"PDF rendering failed: {exc}") from exc

        logger.info("PDF report written to %s", pdf_path)
        return pdf_path

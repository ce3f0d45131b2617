"""Headless-browser PDF capture of the print view (Playwright, async API).

Every wait is bounded:

  goto(networkidle)            navigation_timeout_ms
  [data-report-loaded]         selector_timeout_ms   (soft; missing marker is tolerated)
  .page-container              selector_timeout_ms   (zero containers -> EmptyDocumentError)
  images                       image_timeout_ms per image
  container-count stability    stability_interval_ms x (expected ? 20 : 10) iterations
  final networkidle            network_idle_timeout_ms (soft)
  whole render                 total_timeout_s       (-> RenderTimeoutError)
"""
import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

import structlog
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from talent_reports.config import Settings
from talent_reports.exports.formatting import DISABLED_DEBUG, ReportDebugContext
from talent_reports.rendering.errors import EmptyDocumentError, RenderTimeoutError

logger = structlog.get_logger(__name__)

PAGE_SELECTOR = ".page-container"
LOADED_SELECTOR = "[data-report-loaded]"

_EXPECTED_PAGES_JS = """
() => {
  const el = document.querySelector('[data-report-pages]');
  if (!el) return null;
  const n = parseInt(el.getAttribute('data-report-pages'), 10);
  return Number.isNaN(n) ? null : n;
}
"""

_COUNT_PAGES_JS = "() => document.querySelectorAll('.page-container').length"

_WAIT_IMAGES_JS = """
(timeoutMs) => Promise.all(Array.from(document.images).map((img) => {
  if (img.complete) return Promise.resolve();
  return new Promise((resolve) => {
    img.onload = () => resolve();
    img.onerror = () => resolve();
    setTimeout(() => resolve(), timeoutMs);
  });
}))
"""

_CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]


@dataclass(frozen=True)
class RenderTimings:
    """Bounds for every wait of a browser render."""

    navigation_timeout_ms: int = 60_000
    selector_timeout_ms: int = 30_000
    image_timeout_ms: int = 5_000
    network_idle_timeout_ms: int = 10_000
    stability_interval_ms: int = 500
    stability_max_iterations: int = 10
    expected_pages_max_iterations: int = 20
    stable_polls_required: int = 3
    total_timeout_s: float = 180.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "RenderTimings":
        return cls(
            navigation_timeout_ms=settings.render_navigation_timeout_ms,
            selector_timeout_ms=settings.render_selector_timeout_ms,
            image_timeout_ms=settings.render_image_timeout_ms,
            network_idle_timeout_ms=settings.render_network_idle_timeout_ms,
            stability_interval_ms=settings.render_stability_interval_ms,
            stability_max_iterations=settings.render_stability_max_iterations,
            expected_pages_max_iterations=settings.render_expected_pages_max_iterations,
            stable_polls_required=settings.render_stable_polls_required,
            total_timeout_s=settings.render_timeout_seconds,
        )


class BrowserRenderer:
    """Loads a print-view URL in Chromium and prints it to an A4 PDF."""

    def __init__(
        self,
        timings: Optional[RenderTimings] = None,
        debug: ReportDebugContext = DISABLED_DEBUG,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.timings = timings or RenderTimings()
        self.debug = debug
        self._sleep = sleep

    async def render(self, url: str) -> bytes:
        """Render with the overall wall-clock bound."""
        try:
            return await asyncio.wait_for(self._render(url), timeout=self.timings.total_timeout_s)
        except asyncio.TimeoutError as e:
            raise RenderTimeoutError(
                f"Render exceeded {self.timings.total_timeout_s:g}s"
            ) from e

    async def _render(self, url: str) -> bytes:
        async with async_playwright() as pw:
            browser = await pw.chromium.launch(headless=True, args=_CHROMIUM_ARGS)
            try:
                page = await browser.new_page(viewport={"width": 1920, "height": 1080})
                return await self.render_page(page, url)
            finally:
                await browser.close()

    async def _count_pages(self, page) -> int:
        try:
            return int(await page.evaluate(_COUNT_PAGES_JS) or 0)
        except Exception as e:
            self.debug.log("render_count_failed", error=str(e))
            return 0

    async def render_page(self, page, url: str) -> bytes:
        """Drive an already-open page through the bounded wait sequence."""
        t = self.timings

        await page.goto(url, wait_until="networkidle", timeout=t.navigation_timeout_ms)
        self.debug.log("render_navigated", url=url.split("?", 1)[0])

        try:
            await page.wait_for_selector(LOADED_SELECTOR, timeout=t.selector_timeout_ms)
            self.debug.log("render_loaded_marker", found=True)
        except PlaywrightTimeoutError:
            self.debug.log("render_loaded_marker", found=False)

        try:
            await page.wait_for_selector(PAGE_SELECTOR, timeout=t.selector_timeout_ms)
        except PlaywrightTimeoutError:
            if await self._count_pages(page) == 0:
                raise EmptyDocumentError(f"No {PAGE_SELECTOR} found in print view")

        expected = await page.evaluate(_EXPECTED_PAGES_JS)
        expected = int(expected) if expected else None
        self.debug.log("render_expected_pages", expected=expected)

        await page.evaluate(_WAIT_IMAGES_JS, t.image_timeout_ms)
        self.debug.log("render_images_settled")

        count = await self.wait_for_stable_pages(page, expected)
        if count == 0:
            raise EmptyDocumentError(f"No {PAGE_SELECTOR} found in print view")

        try:
            await page.wait_for_load_state("networkidle", timeout=t.network_idle_timeout_ms)
        except PlaywrightTimeoutError:
            self.debug.log("render_network_idle", reached=False)

        final_count = await self._count_pages(page)
        if final_count == 0:
            raise EmptyDocumentError(f"No {PAGE_SELECTOR} found in print view")

        await page.emulate_media(media="print")
        pdf = await page.pdf(
            format="A4",
            print_background=True,
            margin={"top": "0.5cm", "right": "0.5cm", "bottom": "0.5cm", "left": "0.5cm"},
            prefer_css_page_size=False,
        )
        if not pdf:
            raise EmptyDocumentError("Browser produced an empty PDF")
        logger.info("render_captured", pages=final_count, expected=expected, size_bytes=len(pdf))
        return pdf

    async def wait_for_stable_pages(self, page, expected: Optional[int]) -> int:
        """Poll the container count until it reaches ``expected`` or holds steady."""
        t = self.timings
        max_iterations = t.expected_pages_max_iterations if expected else t.stability_max_iterations
        previous = 0
        stable = 0
        current = 0
        for iteration in range(max_iterations):
            await self._sleep(t.stability_interval_ms / 1000)
            current = await self._count_pages(page)
            self.debug.log(
                "render_stability_poll",
                iteration=iteration,
                count=current,
                expected=expected,
                stable=stable,
            )
            if expected and current >= expected:
                break
            if current == previous and current > 0:
                stable += 1
                if stable >= t.stable_polls_required:
                    break
            else:
                stable = 0
            previous = current
        return current

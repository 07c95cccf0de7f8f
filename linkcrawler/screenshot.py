"""
Screenshot Capturer
===================
Full-page screenshots with one isolated headless browser per capture.

Each call walks ``idle → launching → navigating → capturing → closed``.
The browser is owned by the ``browser_session()`` context manager, so it is
torn down on every exit path: success, navigation timeout, screenshot
failure, missing output file or any unexpected error. Browsers are never
pooled or shared between URLs.

``capture()`` never raises; failures come back as a ``CaptureResult`` whose
``screenshot_path`` is None and whose ``failed_stage`` names the step that
broke.
"""

from __future__ import annotations

import logging
import re
from contextlib import asynccontextmanager
from enum import Enum
from pathlib import Path
from typing import AsyncIterator, Optional, Union

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, async_playwright
from playwright.async_api import TimeoutError as PlaywrightTimeout

from .results import CaptureResult
from .run_config import CrawlerRunConfig

logger = logging.getLogger(__name__)

_BROWSER_ARGS = [
    '--disable-gpu',
    '--no-sandbox',
    '--disable-dev-shm-usage',
    '--disable-extensions',
    '--no-first-run',
]


class CaptureStage(str, Enum):
    IDLE = "idle"
    LAUNCHING = "launching"
    NAVIGATING = "navigating"
    CAPTURING = "capturing"
    CLOSED = "closed"


class CaptureError(Exception):
    """The browser reported success but no screenshot file exists."""


class ScreenshotCapturer:
    """
    Capture full-page screenshots into ``config.screenshot_dir``.

    Usage::

        capturer = ScreenshotCapturer(config)
        result = await capturer.capture("https://example.com/about", 3)
        result.screenshot_path   # "screenshots/screenshot_3.png" or None
    """

    def __init__(self, config: Optional[CrawlerRunConfig] = None):
        self.config = config or CrawlerRunConfig()

    def path_for(self, destination_id: Union[int, str]) -> Path:
        """Deterministic output path for *destination_id*."""
        safe_name = re.sub(r'[^\w\-.]', '_', str(destination_id))[:60] or 'page'
        return Path(self.config.screenshot_dir) / f"screenshot_{safe_name}.png"

    @asynccontextmanager
    async def browser_session(self) -> AsyncIterator[Page]:
        """Launch a fresh browser and yield one page; always closes the browser."""
        async with async_playwright() as pw:
            browser = await pw.chromium.launch(
                headless=self.config.headless,
                args=_BROWSER_ARGS,
            )
            try:
                context = await browser.new_context(
                    user_agent=self.config.user_agent,
                    viewport={
                        'width': self.config.viewport_width,
                        'height': self.config.viewport_height,
                    },
                )
                page = await context.new_page()
                yield page
            finally:
                try:
                    await browser.close()
                except PlaywrightError as exc:
                    logger.debug(f"[CAPTURE] Browser close reported: {exc}")

    async def capture(self, url: str, destination_id: Union[int, str]) -> CaptureResult:
        """Screenshot *url* to ``path_for(destination_id)``. Never raises."""
        path = self.path_for(destination_id)
        stage = CaptureStage.IDLE

        try:
            # A leftover file from an earlier run must not pass verification
            if path.exists():
                path.unlink()

            stage = CaptureStage.LAUNCHING
            async with self.browser_session() as page:
                stage = CaptureStage.NAVIGATING
                await page.goto(
                    url,
                    wait_until='networkidle',
                    timeout=self.config.navigation_timeout_ms,
                )

                stage = CaptureStage.CAPTURING
                path.parent.mkdir(parents=True, exist_ok=True)
                await page.screenshot(path=str(path), full_page=True)

                if not path.is_file():
                    raise CaptureError(f"Screenshot file missing after capture: {path}")

            stage = CaptureStage.CLOSED

        except PlaywrightTimeout:
            logger.warning(f"[CAPTURE] Timeout while {stage.value}: {url}")
            return CaptureResult(url=url, error=f"Timeout while {stage.value}", failed_stage=stage.value)
        except Exception as exc:
            logger.warning(f"[CAPTURE] Failed to take screenshot of {url} while {stage.value}: {exc}")
            return CaptureResult(url=url, error=str(exc), failed_stage=stage.value)

        logger.info(f"[CAPTURE] {url} → {path}")
        return CaptureResult(url=url, screenshot_path=str(path))

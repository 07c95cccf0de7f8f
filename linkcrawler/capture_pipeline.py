"""
Capture Pipeline
================
Maps a discovered link list to screenshot results, one capture at a time.

Each capture holds a whole browser process, so captures are strictly
sequential: at most one browser is alive at any moment. A failed capture is
recorded and the pipeline moves on to the next URL.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .results import CaptureResult
from .screenshot import ScreenshotCapturer

logger = logging.getLogger(__name__)


async def capture_all(
    urls: Sequence[str],
    capturer: Optional[ScreenshotCapturer] = None,
) -> List[CaptureResult]:
    """
    Capture every URL in order; screenshots are named by discovery index.

    Returns one ``CaptureResult`` per input URL, in input order.
    """
    capturer = capturer or ScreenshotCapturer()
    results: List[CaptureResult] = []
    total = len(urls)

    for index, url in enumerate(urls):
        logger.info(f"[PIPELINE] [{index + 1}/{total}] Capturing {url[:70]}")
        result = await capturer.capture(url, index)
        results.append(result)

    failed = sum(1 for r in results if not r.ok)
    logger.info(f"[PIPELINE] Done: {total - failed} captured, {failed} failed")
    return results

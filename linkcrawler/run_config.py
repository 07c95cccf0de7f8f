"""
Unified Run Configuration
=========================
Single source of truth for ALL crawler defaults and runtime limits.

The fetcher, sitemap harvester, orchestrator and screenshot capturer read
from this object. The CLI flags, the Streamlit form and ``LINKCRAWLER_*``
environment variables populate it.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

EXPANSION_SINGLE = "single"
EXPANSION_FIXED_POINT = "fixed_point"
EXPANSION_POLICIES = (EXPANSION_SINGLE, EXPANSION_FIXED_POINT)


# ---------------------------------------------------------------------------
# Canonical defaults: the ONLY place these numbers live
# ---------------------------------------------------------------------------
_DEFAULTS = {
    "max_links": 100,                # HTML-discovery cap (sitemap links are exempt)
    "request_timeout_seconds": 10,   # per page / sitemap GET
    "rate_delay": 0.5,               # seconds slept after each successful page fetch
    "expansion": EXPANSION_SINGLE,
    "user_agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36"
    ),
    # Screenshot capture
    "capture": False,
    "screenshot_dir": "screenshots",
    "navigation_timeout_ms": 30000,
    "headless": True,
    "viewport_width": 1920,
    "viewport_height": 1080,
}

_ENV_PREFIX = "LINKCRAWLER_"


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class CrawlerRunConfig:
    """
    Unified configuration consumed by every crawler subsystem.

    Populate via:
      - ``CrawlerRunConfig()``                 → all defaults
      - ``CrawlerRunConfig(max_links=50)``     → override one value
      - ``CrawlerRunConfig.from_env()``        → from LINKCRAWLER_* variables
      - ``CrawlerRunConfig.from_cli_args(ns)`` → from argparse Namespace
    """

    # ---- Discovery ----
    max_links: int = _DEFAULTS["max_links"]
    request_timeout_seconds: float = _DEFAULTS["request_timeout_seconds"]
    rate_delay: float = _DEFAULTS["rate_delay"]
    expansion: str = _DEFAULTS["expansion"]

    # ---- Identity ----
    user_agent: str = _DEFAULTS["user_agent"]

    # ---- Capture ----
    capture: bool = _DEFAULTS["capture"]
    screenshot_dir: str = _DEFAULTS["screenshot_dir"]
    navigation_timeout_ms: int = _DEFAULTS["navigation_timeout_ms"]
    headless: bool = _DEFAULTS["headless"]
    viewport_width: int = _DEFAULTS["viewport_width"]
    viewport_height: int = _DEFAULTS["viewport_height"]

    def __post_init__(self):
        if self.max_links < 1:
            raise ValueError(f"max_links must be positive, got {self.max_links}")
        if self.expansion not in EXPANSION_POLICIES:
            raise ValueError(
                f"Unknown expansion policy {self.expansion!r} "
                f"(expected one of {', '.join(EXPANSION_POLICIES)})"
            )
        if self.request_timeout_seconds <= 0:
            raise ValueError("request_timeout_seconds must be positive")
        if self.rate_delay < 0:
            raise ValueError("rate_delay cannot be negative")
        if self.navigation_timeout_ms <= 0:
            raise ValueError("navigation_timeout_ms must be positive")

    # -----------------------------------------------------------------------
    # Factory helpers
    # -----------------------------------------------------------------------
    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "CrawlerRunConfig":
        """
        Build config from ``LINKCRAWLER_*`` environment variables.

        Unset variables keep their defaults. ``.env`` loading is the
        entry point's job (``python-dotenv``), not this method's.
        """
        env = os.environ if environ is None else environ
        casts = {
            "max_links": int,
            "request_timeout_seconds": float,
            "rate_delay": float,
            "expansion": str,
            "user_agent": str,
            "capture": _env_bool,
            "screenshot_dir": str,
            "navigation_timeout_ms": int,
            "headless": _env_bool,
            "viewport_width": int,
            "viewport_height": int,
        }
        overrides = {}
        for name, cast in casts.items():
            raw = env.get(_ENV_PREFIX + name.upper())
            if raw is None or raw == "":
                continue
            try:
                overrides[name] = cast(raw)
            except ValueError as exc:
                raise ValueError(f"Invalid value for {_ENV_PREFIX}{name.upper()}: {raw!r}") from exc
        return cls(**overrides)

    @classmethod
    def from_cli_args(cls, args, base: Optional["CrawlerRunConfig"] = None) -> "CrawlerRunConfig":
        """Build config from an argparse Namespace (``__main__.py``), layered over *base*."""
        base = base or cls()

        def pick(attr: str, current):
            value = getattr(args, attr, None)
            return current if value is None else value

        return cls(
            max_links=pick("max_links", base.max_links),
            request_timeout_seconds=pick("timeout", base.request_timeout_seconds),
            rate_delay=pick("rate", base.rate_delay),
            expansion=pick("expansion", base.expansion),
            user_agent=base.user_agent,
            capture=bool(getattr(args, "capture", False)) or base.capture,
            screenshot_dir=pick("screenshot_dir", base.screenshot_dir),
            navigation_timeout_ms=pick("navigation_timeout_ms", base.navigation_timeout_ms),
            headless=base.headless,
            viewport_width=base.viewport_width,
            viewport_height=base.viewport_height,
        )

    # -----------------------------------------------------------------------
    # Logging helper
    # -----------------------------------------------------------------------
    def log_summary(self, url: str) -> None:
        """Emit a structured summary to the logger."""
        logger.info("=" * 60)
        logger.info("CRAWL RUN CONFIG")
        logger.info("=" * 60)
        logger.info(f"  URL:              {url}")
        logger.info(f"  Expansion:        {self.expansion}")
        logger.info(f"  Max Links:        {self.max_links} (HTML discovery)")
        logger.info(f"  Timeout:          {self.request_timeout_seconds}s per request")
        logger.info(f"  Rate Delay:       {self.rate_delay}s after each page")
        logger.info(f"  Capture:          {'enabled' if self.capture else 'disabled'}")
        if self.capture:
            logger.info(f"  Screenshot Dir:   {self.screenshot_dir}")
            logger.info(f"  Nav Timeout:      {self.navigation_timeout_ms}ms")
        logger.info("=" * 60)

#!/usr/bin/env python3
"""
Command-line entry point
========================
Discover the same-origin pages linked from a seed URL and optionally
screenshot each of them.

All configuration flows through ``CrawlerRunConfig``: defaults, then
``LINKCRAWLER_*`` environment variables (a ``.env`` file is loaded first),
then command-line flags.

Run with: python -m linkcrawler https://example.com [--capture]
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from .run_config import CrawlerRunConfig, EXPANSION_POLICIES
from .service import handle_crawl_request

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='linkcrawler',
        description='Discover same-origin links from a seed URL, optionally capturing full-page screenshots',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m linkcrawler https://example.com
  python -m linkcrawler https://example.com --capture --screenshot-dir shots
  python -m linkcrawler https://example.com --expansion fixed_point --max-links 50
        """
    )

    parser.add_argument('url', help='Seed URL to crawl')
    parser.add_argument('--capture', action='store_true', help='Take a full-page screenshot of every discovered page')
    parser.add_argument('--max-links', type=int, default=None, help='Cap on links discovered from HTML (default: 100)')
    parser.add_argument(
        '--expansion', choices=EXPANSION_POLICIES, default=None,
        help='single: fetch the seed\'s links once; fixed_point: keep expanding up to the cap',
    )
    parser.add_argument('--rate', type=float, default=None, help='Delay after each page fetch in seconds (default: 0.5)')
    parser.add_argument('--timeout', type=float, default=None, help='Per-request timeout in seconds (default: 10)')
    parser.add_argument('--navigation-timeout-ms', type=int, default=None, help='Screenshot navigation timeout (default: 30000)')
    parser.add_argument('--screenshot-dir', type=str, default=None, help='Screenshot output directory (default: screenshots)')
    parser.add_argument('--output-json', type=str, help='Write the result payload to this file instead of stdout')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    return parser


def main(argv=None) -> int:
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s | %(levelname)s | %(message)s',
        datefmt='%H:%M:%S'
    )

    try:
        cfg = CrawlerRunConfig.from_cli_args(args, base=CrawlerRunConfig.from_env())
    except ValueError as exc:
        parser.error(str(exc))

    status, body = asyncio.run(handle_crawl_request(args.url, cfg))
    text = json.dumps(body, indent=2, ensure_ascii=False)

    if args.output_json and status == 200:
        path = Path(args.output_json)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding='utf-8')
        logger.info(f"Exported JSON to {path.absolute()}")
    else:
        print(text)

    if status == 400:
        return 2
    if status != 200:
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())

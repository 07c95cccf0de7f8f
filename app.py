"""
Link Crawler - Streamlit Frontend
Discover the same-origin pages of a site and optionally screenshot them.
"""

import asyncio
import json
import logging
import subprocess
from datetime import datetime

import pandas as pd
import streamlit as st
from dotenv import load_dotenv

from linkcrawler.run_config import CrawlerRunConfig, EXPANSION_POLICIES
from linkcrawler.service import handle_crawl_request
from linkcrawler.utils import base_name_from_url

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(levelname)s | %(message)s'
)
logger = logging.getLogger(__name__)


# Install the Playwright browser on first run (for Streamlit Cloud)
@st.cache_resource
def install_playwright_browsers() -> bool:
    """Install the Playwright Chromium build once per server process."""
    try:
        result = subprocess.run(
            ["playwright", "install", "chromium"],
            capture_output=True,
            text=True,
            timeout=300
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning(f"Playwright browser install failed: {e}")
        return False
    return result.returncode == 0


st.set_page_config(
    page_title="Link Crawler",
    page_icon="🔗",
    layout="wide",
    initial_sidebar_state="expanded"
)


def init_session_state():
    """Initialize session state variables."""
    if 'crawl_status' not in st.session_state:
        st.session_state.crawl_status = None
    if 'crawl_body' not in st.session_state:
        st.session_state.crawl_body = None
    if 'crawl_url' not in st.session_state:
        st.session_state.crawl_url = ""


def render_sidebar() -> dict:
    """Render the sidebar with crawl options."""
    st.sidebar.markdown("## ⚙️ Crawler Settings")
    try:
        defaults = CrawlerRunConfig.from_env()
    except ValueError as e:
        st.sidebar.error(f"Ignoring environment settings: {e}")
        defaults = CrawlerRunConfig()

    max_links = st.sidebar.number_input(
        "Max Links",
        min_value=1,
        max_value=1000,
        value=defaults.max_links,
        step=10,
        help="Cap on links discovered from HTML. Sitemap links are not capped."
    )

    expansion = st.sidebar.selectbox(
        "Expansion",
        options=list(EXPANSION_POLICIES),
        index=list(EXPANSION_POLICIES).index(defaults.expansion),
        format_func=lambda x: "Seed + one generation" if x == "single" else "Until no new links",
    )

    rate_delay = st.sidebar.slider(
        "Delay after each page (s)",
        min_value=0.0,
        max_value=5.0,
        value=float(defaults.rate_delay),
        step=0.1,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown("## 📸 Screenshots")

    capture = st.sidebar.checkbox(
        "Capture full-page screenshots",
        value=defaults.capture,
        help="Open every discovered page in headless Chromium and save a PNG"
    )
    screenshot_dir = st.sidebar.text_input("Screenshot folder", value=defaults.screenshot_dir)

    return {
        'base': defaults,
        'max_links': int(max_links),
        'expansion': expansion,
        'rate_delay': rate_delay,
        'capture': capture,
        'screenshot_dir': screenshot_dir,
    }


def build_config(options: dict) -> CrawlerRunConfig:
    base = options['base']
    return CrawlerRunConfig(
        max_links=options['max_links'],
        request_timeout_seconds=base.request_timeout_seconds,
        rate_delay=options['rate_delay'],
        expansion=options['expansion'],
        user_agent=base.user_agent,
        capture=options['capture'],
        screenshot_dir=options['screenshot_dir'] or base.screenshot_dir,
        navigation_timeout_ms=base.navigation_timeout_ms,
        headless=base.headless,
        viewport_width=base.viewport_width,
        viewport_height=base.viewport_height,
    )


def payload_to_frame(body: dict) -> pd.DataFrame:
    """Tabulate a success payload: one row per link or per capture."""
    if 'results' in body:
        df = pd.DataFrame(body['results'], columns=['url', 'screenshotPath'])
        df['captured'] = df['screenshotPath'].notna()
        return df
    return pd.DataFrame({'url': body.get('links', [])})


def render_results(url: str, body: dict):
    """Render the link table and download buttons."""
    st.markdown("---")
    st.markdown("## 📊 Results")

    df = payload_to_frame(body)

    cols = st.columns(3)
    with cols[0]:
        st.metric("Links Found", body.get('count', 0))
    if 'results' in body:
        with cols[1]:
            st.metric("Screenshots", int(df['captured'].sum()))
        with cols[2]:
            st.metric("Capture Failures", int((~df['captured']).sum()))

    st.dataframe(df, width="stretch")

    stamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    base_name = base_name_from_url(url)

    col1, col2 = st.columns(2)
    with col1:
        st.download_button(
            label="📥 Download JSON",
            data=json.dumps(body, indent=2, ensure_ascii=False),
            file_name=f"{base_name}_{stamp}.json",
            mime="application/json"
        )
    with col2:
        st.download_button(
            label="📥 Download CSV",
            data=df.to_csv(index=False),
            file_name=f"{base_name}_{stamp}.csv",
            mime="text/csv"
        )


def main():
    """Main application."""
    init_session_state()

    st.title("🔗 Link Crawler")
    st.caption("Same-origin link discovery from page HTML and sitemap.xml")

    options = render_sidebar()

    col1, col2 = st.columns([4, 1])
    with col1:
        url = st.text_input(
            "Website URL",
            placeholder="https://example.com",
            label_visibility="collapsed"
        )
    with col2:
        crawl_button = st.button("🚀 Start Crawl", type="primary")

    if crawl_button:
        try:
            config = build_config(options)
        except ValueError as e:
            st.error(f"Invalid settings: {e}")
            return

        if config.capture and not install_playwright_browsers():
            st.warning("Chromium could not be installed; screenshots will likely fail.")

        with st.spinner("Crawling in progress..."):
            status, body = asyncio.run(handle_crawl_request(url, config))

        st.session_state.crawl_status = status
        st.session_state.crawl_body = body
        st.session_state.crawl_url = url

    status = st.session_state.crawl_status
    body = st.session_state.crawl_body

    if status == 400:
        st.error(body['error'])
    elif status is not None and status != 200:
        st.error(f"{body['error']}: {body.get('detail', '')}")
    elif status == 200:
        render_results(st.session_state.crawl_url, body)


if __name__ == "__main__":
    main()

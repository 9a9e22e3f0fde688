"""
Playwright bridge: load real pages and inject the synthesized stylesheet.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from playwright.async_api import async_playwright

if TYPE_CHECKING:
    from playwright.async_api import Browser, Page, Playwright

logger = logging.getLogger(__name__)

NAVIGATION_TIMEOUT_MS = 30000


async def _launch(p: Playwright, executable_path: Path | None) -> Browser:
    if executable_path is not None:
        return await p.chromium.launch(headless=True, executable_path=str(executable_path))
    return await p.chromium.launch(headless=True)


async def fetch_rendered_html(
    url: str,
    *,
    executable_path: Path | None = None,
    timeout_ms: int = NAVIGATION_TIMEOUT_MS,
) -> str:
    """Load a page in headless Chromium and return its rendered markup."""
    async with async_playwright() as p:
        browser = await _launch(p, executable_path)
        try:
            page = await browser.new_page()
            await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
            html: str = await page.content()
            logger.debug("Fetched %s (%d chars)", url, len(html))
            return html
        finally:
            await browser.close()


async def install_stylesheet(page: Page, css: str) -> bool:
    """Inject a stylesheet into a live page.

    Returns:
        True if something was injected.
    """
    if not css:
        return False

    try:
        await page.add_style_tag(content=css)
        logger.debug("Injected study mode CSS into %s", page.url)
        return True
    except Exception as e:
        logger.debug("Failed to inject study mode CSS: %s", e)
        return False


async def capture_screenshot(
    url: str,
    css: str,
    path: Path,
    *,
    executable_path: Path | None = None,
    timeout_ms: int = NAVIGATION_TIMEOUT_MS,
) -> None:
    """Screenshot a page with the stylesheet applied."""
    async with async_playwright() as p:
        browser = await _launch(p, executable_path)
        try:
            page = await browser.new_page()
            await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
            await install_stylesheet(page, css)
            await page.screenshot(path=str(path), full_page=True)
        finally:
            await browser.close()

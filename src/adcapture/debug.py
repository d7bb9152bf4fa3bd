"""Debug artifact helpers (page HTML dumps and Playwright trace paths)."""

from __future__ import annotations

import os

from playwright.async_api import Page

from .logging import jlog

DEBUG_DIR = os.getenv("CAPTURE_DEBUG_DIR", "media/debug")


def ensure_debug_dir(debug_dir: str = DEBUG_DIR) -> str:
    """Create the debug directory if it does not exist and return the path."""

    os.makedirs(debug_dir, exist_ok=True)
    return debug_dir


def trace_path_for(creative: str, debug_dir: str = DEBUG_DIR) -> str:
    return os.path.join(ensure_debug_dir(debug_dir), f"trace_{creative}.zip")


async def ensure_debug_html(page: Page, creative: str, debug_dir: str = DEBUG_DIR) -> None:
    """Persist the current page HTML for later debugging (best effort)."""

    try:
        ensure_debug_dir(debug_dir)
        html = await page.content()
        with open(os.path.join(debug_dir, f"page_{creative}.html"), "w", encoding="utf-8") as f:
            f.write(html)
    except Exception as exc:  # pragma: no cover - logging only
        jlog("error", event="debug_save_html_error", creative=creative, error=str(exc))


__all__ = ["DEBUG_DIR", "ensure_debug_dir", "ensure_debug_html", "trace_path_for"]

"""Playwright helpers: render sessions, settle waits and document resets."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from playwright.async_api import Browser, BrowserContext, Page, TimeoutError

from .config import (
    DOM_READY_TIMEOUT_MS,
    FRAMEWORK_FALLBACK_MS,
    FRAMEWORK_INIT_MS,
    FRAMEWORK_READY_TIMEOUT_MS,
    IMAGES_PENDING_WAIT_MS,
    RESET_FRAMEWORK_FALLBACK_MS,
    RESET_FRAMEWORK_INIT_MS,
    RESET_SETTLE_DELAY_MS,
    RESIZE_IDLE_TIMEOUT_MS,
    RESIZE_REINIT_MS,
    SETTLE_DELAY_MS,
)
from .errors import RenderNotReady
from .logging import capturelog, jlog
from .signals import AUTHORING_TOOL_GLOBALS

CHROMIUM_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--single-process",
    "--disable-gpu",
    "--disable-web-security",
    "--disable-features=VizDisplayCompositor",
]

_FRAMEWORK_READY_JS = """
(names) => names.some(n => typeof window[n] !== 'undefined') && document.readyState === 'complete'
"""

_IMAGES_COMPLETE_JS = """
() => Array.from(document.images || []).every(img => img.complete && img.naturalHeight !== 0)
"""

_ASSETS_READY_JS = """
() => Promise.all([
    (document.fonts && document.fonts.ready) ? document.fonts.ready : Promise.resolve(),
    Promise.all(
        Array.from(document.images || []).map(img => {
            if (img.complete) return Promise.resolve();
            return new Promise(res => {
                img.addEventListener('load', () => res(), { once: true });
                img.addEventListener('error', () => res(), { once: true });
            });
        })
    )
])
"""


@dataclass(frozen=True, slots=True)
class RenderSession:
    """An exclusively owned page (and its context) for one creative."""

    page: Page
    context: BrowserContext
    url: str
    creative: str


async def launch_browser(pw) -> Browser:
    return await pw.chromium.launch(headless=True, args=CHROMIUM_LAUNCH_ARGS)


async def _wait_framework_ready(page: Page, timeout_ms: int) -> None:
    try:
        await page.wait_for_function(_FRAMEWORK_READY_JS, arg=list(AUTHORING_TOOL_GLOBALS), timeout=timeout_ms)
    except TimeoutError as exc:
        raise RenderNotReady(f"no authoring-tool runtime became ready within {timeout_ms}ms") from exc


async def wait_render_settled(page: Page, *, framework_wait: bool, after_reset: bool = False, creative: str = "") -> None:
    """Give the document time to initialize; timeouts degrade to a fixed wait."""

    if framework_wait:
        try:
            await _wait_framework_ready(page, FRAMEWORK_READY_TIMEOUT_MS)
            delay_ms = RESET_FRAMEWORK_INIT_MS if after_reset else FRAMEWORK_INIT_MS
        except RenderNotReady as exc:
            delay_ms = RESET_FRAMEWORK_FALLBACK_MS if after_reset else FRAMEWORK_FALLBACK_MS
            capturelog("render_not_ready", creative=creative, level="warning", reason=str(exc), fallback_ms=delay_ms)
    else:
        delay_ms = RESET_SETTLE_DELAY_MS if after_reset else SETTLE_DELAY_MS
        try:
            await page.wait_for_load_state("domcontentloaded", timeout=DOM_READY_TIMEOUT_MS)
        except TimeoutError:
            capturelog("render_not_ready", creative=creative, level="warning", reason="domcontentloaded", fallback_ms=delay_ms)
    await page.wait_for_timeout(delay_ms)


async def navigate(page: Page, url: str, *, timeout_ms: int, creative: str = "") -> None:
    """Navigate and wait for network idle; a slow network is tolerated, not fatal."""

    try:
        await page.goto(url, wait_until="networkidle", timeout=timeout_ms)
    except TimeoutError:
        capturelog("render_not_ready", creative=creative, level="warning", reason="networkidle", url=url)


async def reset_document(page: Page, *, timeout_ms: int, framework_wait: bool, creative: str = "") -> None:
    """Reload the document so its animation restarts from the first frame."""

    try:
        await page.reload(wait_until="networkidle", timeout=timeout_ms)
    except TimeoutError:
        capturelog("render_not_ready", creative=creative, level="warning", reason="reload_networkidle")
    await wait_render_settled(page, framework_wait=framework_wait, after_reset=True, creative=creative)
    capturelog("document_reset", creative=creative)


async def ensure_viewport(page: Page, width: int, height: int, *, creative: str = "") -> bool:
    """Resize to ``width``x``height`` if needed; returns True when a resize happened."""

    current = page.viewport_size
    if current and current.get("width") == width and current.get("height") == height:
        return False
    await page.set_viewport_size({"width": width, "height": height})
    try:
        await page.wait_for_load_state("networkidle", timeout=RESIZE_IDLE_TIMEOUT_MS)
    except TimeoutError:
        capturelog("render_not_ready", creative=creative, level="warning", reason="resize_networkidle")
    await page.wait_for_timeout(RESIZE_REINIT_MS)
    capturelog("viewport_resized", creative=creative, width=width, height=height)
    return True


async def wait_assets_ready(page: Page, *, creative: str = "") -> None:
    """Wait briefly for fonts and pending images before the first frame."""

    try:
        if await page.evaluate(_IMAGES_COMPLETE_JS):
            return
    except Exception as exc:
        capturelog("images_check_failed", creative=creative, level="warning", error=str(exc))
        return
    capturelog("images_pending", creative=creative, wait_ms=IMAGES_PENDING_WAIT_MS)
    try:
        await asyncio.wait_for(page.evaluate(_ASSETS_READY_JS), timeout=IMAGES_PENDING_WAIT_MS / 1000.0)
    except asyncio.TimeoutError:
        capturelog("images_still_pending", creative=creative, level="warning", waited_ms=IMAGES_PENDING_WAIT_MS)


async def cleanup_playwright(context: BrowserContext | None, *, trace_path: str | None = None) -> None:
    """Stop tracing (if a path is given) and close the context."""

    try:
        if trace_path and context:
            await context.tracing.stop(path=trace_path)
    except Exception as exc:
        jlog("warning", event="trace_save_failed", path=trace_path, error=str(exc))
    try:
        if context:
            await context.close()
    except Exception as exc:
        jlog("warning", event="context_close_failed", error=str(exc))


@asynccontextmanager
async def open_render_session(
    browser: Browser,
    url: str,
    *,
    width: int,
    height: int,
    creative: str,
    navigation_timeout_ms: int,
    framework_wait: bool = False,
    trace_path: str | None = None,
) -> AsyncIterator[RenderSession]:
    """Open a fresh context + page at the target viewport and load ``url``.

    The viewport is set before navigation so layout engines initialize at
    the creative's size. The context is closed on every exit path.
    """

    context = None
    try:
        context = await browser.new_context(viewport={"width": width, "height": height})
        context.set_default_timeout(navigation_timeout_ms)
        if trace_path:
            await context.tracing.start(screenshots=True, snapshots=True, sources=True)
        page = await context.new_page()
        await navigate(page, url, timeout_ms=navigation_timeout_ms, creative=creative)
        await wait_render_settled(page, framework_wait=framework_wait, creative=creative)
        yield RenderSession(page=page, context=context, url=url, creative=creative)
    finally:
        await cleanup_playwright(context, trace_path=trace_path)


__all__ = [
    "CHROMIUM_LAUNCH_ARGS",
    "RenderSession",
    "cleanup_playwright",
    "ensure_viewport",
    "launch_browser",
    "navigate",
    "open_render_session",
    "reset_document",
    "wait_assets_ready",
    "wait_render_settled",
]

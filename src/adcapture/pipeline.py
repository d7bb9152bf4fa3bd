#!/usr/bin/env python3
"""
Batch conversion of HTML ad creatives into review artifacts.

Overview
--------
Each target (a local ``.html`` file or an http(s)/file URL) is rendered in its
own Chromium context at the requested ad size, classified as static or
animated, and written to ``--output-dir`` as either

- ``<name>_static_<timestamp>.png`` — a single viewport screenshot, or
- ``<name>_animated_<timestamp>.mp4`` — an adaptive-length H.264 capture that
  stops once the creative has visibly settled (or at the duration ceiling).

If video encoding fails the first captured frame is kept as
``<name>_animated_<timestamp>_fallback.png``.

Requirements
------------
- Python 3.10+
- Playwright (Chromium), Pillow
- ffmpeg on PATH (or ``--ffmpeg-bin`` / ``FFMPEG_BIN``)

Usage (examples)
----------------
python scripts/convert_creatives.py ./creative/index.html --width 300 --height 250

python scripts/convert_creatives.py a.html b.html c.html \\
  --output-dir ./output --concurrency 3 --framework-wait
"""
from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from dataclasses import dataclass

from playwright.async_api import Browser, async_playwright

from .capture import CaptureResult, capture_creative
from .config import (
    DEFAULT_ENCODER_BIN,
    DEFAULT_FRAME_RATE,
    DEFAULT_HEIGHT,
    DEFAULT_MIN_DURATION_S,
    DEFAULT_SETTLE_TIMEOUT_MS,
    DEFAULT_STABILITY_FRAMES,
    DEFAULT_WIDTH,
    CaptureConfig,
)
from .debug import ensure_debug_html, trace_path_for
from .errors import BrowserRestartRequired, CaptureError
from .logging import capturelog, jlog
from .playwright import launch_browser, open_render_session
from .urls import creative_name, document_url, is_remote_url

DEFAULT_OUTPUT_DIR = "./output"
DEFAULT_CONCURRENCY = int(os.getenv("CAPTURE_CONCURRENCY", "1"))
MAX_BROWSER_RESTARTS = 1


# ============================
# Argument parsing & validation
# ============================


@dataclass(frozen=True)
class CliArgs:
    targets: list[str]
    output_dir: str
    width: int
    height: int
    min_duration_s: float
    max_duration_s: float | None
    frame_rate: int
    stability_frames: int
    settle_timeout_ms: int
    framework_wait: bool
    ffmpeg_bin: str
    concurrency: int
    trace: bool
    debug_html: bool

    def capture_config(self) -> CaptureConfig:
        overrides: dict[str, object] = {
            "min_duration_s": self.min_duration_s,
            "frame_rate": self.frame_rate,
            "stability_threshold_frames": self.stability_frames,
            "settle_timeout_ms": self.settle_timeout_ms,
            "framework_wait": self.framework_wait,
            "encoder_bin": self.ffmpeg_bin,
        }
        if self.max_duration_s is not None:
            overrides["max_duration_s"] = self.max_duration_s
        return CaptureConfig.for_viewport(self.width, self.height, **overrides)


def validate_args(args: argparse.Namespace) -> None:
    """Reject inputs that cannot be rendered before any browser is launched."""

    for target in args.targets:
        if is_remote_url(target):
            continue
        if not os.path.isfile(target):
            raise ValueError(f"input file not found: {target}")
        if not target.lower().endswith((".html", ".htm")):
            raise ValueError(f"input file must be an HTML file: {target}")
    if args.concurrency < 1:
        raise ValueError(f"--concurrency must be >= 1, got {args.concurrency}")
    if args.max_duration is not None and args.max_duration < args.min_duration:
        raise ValueError(f"--max-duration ({args.max_duration}) is below --min-duration ({args.min_duration})")


def parse_args(argv: list[str] | None = None) -> CliArgs:
    p = argparse.ArgumentParser(description="Convert HTML ad creatives to PNG (static) or MP4 (animated)")
    p.add_argument("targets", nargs="+", help="HTML files or URLs to convert")
    p.add_argument("--output-dir", default=DEFAULT_OUTPUT_DIR)
    p.add_argument("--width", type=int, default=DEFAULT_WIDTH, help="Creative width in px (default 300)")
    p.add_argument("--height", type=int, default=DEFAULT_HEIGHT, help="Creative height in px (default 250)")
    p.add_argument(
        "--min-duration",
        type=float,
        default=DEFAULT_MIN_DURATION_S,
        help="Seconds captured before the animation may be declared settled (default 3).",
    )
    p.add_argument(
        "--max-duration",
        type=float,
        help="Capture ceiling in seconds (default 15, or 18 when either side exceeds 500px).",
    )
    p.add_argument("--frame-rate", type=int, default=DEFAULT_FRAME_RATE)
    p.add_argument(
        "--stability-frames",
        type=int,
        default=DEFAULT_STABILITY_FRAMES,
        help="Consecutive identical frames that end an animated capture (default 90).",
    )
    p.add_argument(
        "--settle-timeout-ms",
        type=int,
        default=DEFAULT_SETTLE_TIMEOUT_MS,
        help="Navigation / reload timeout in ms (default from CAPTURE_SETTLE_TIMEOUT_MS env or 30000).",
    )
    p.add_argument(
        "--framework-wait",
        action="store_true",
        help="Wait for an authoring-tool runtime (e.g. Hype) to initialize before analysis and capture.",
    )
    p.add_argument("--ffmpeg-bin", default=DEFAULT_ENCODER_BIN)
    p.add_argument("--concurrency", type=int, default=DEFAULT_CONCURRENCY, help="Parallel render sessions")
    p.add_argument("--trace", action="store_true", help="Save a Playwright trace per creative under the debug dir.")
    p.add_argument("--debug-html", action="store_true", help="Dump the rendered HTML per creative under the debug dir.")

    ns = p.parse_args(argv)
    validate_args(ns)

    cli = CliArgs(
        targets=list(ns.targets),
        output_dir=ns.output_dir,
        width=ns.width,
        height=ns.height,
        min_duration_s=ns.min_duration,
        max_duration_s=ns.max_duration,
        frame_rate=ns.frame_rate,
        stability_frames=ns.stability_frames,
        settle_timeout_ms=ns.settle_timeout_ms,
        framework_wait=ns.framework_wait,
        ffmpeg_bin=ns.ffmpeg_bin,
        concurrency=ns.concurrency,
        trace=ns.trace,
        debug_html=ns.debug_html,
    )
    # raises ValueError for derived values, e.g. --min-duration above the default ceiling
    cli.capture_config()
    return cli


# ============================
# Per-creative processing
# ============================


async def convert_target(browser: Browser, target: str, args: CliArgs, config: CaptureConfig) -> CaptureResult:
    """Render, classify and capture one target.

    Per-creative failures become a failed :class:`CaptureResult`. A failure
    caused by the browser itself going away raises
    :class:`~adcapture.errors.BrowserRestartRequired` so the worker can
    relaunch and retry.
    """

    creative = creative_name(target)
    url = document_url(target)
    if not browser.is_connected():
        raise BrowserRestartRequired("browser disconnected")
    capturelog("creative_start", creative=creative, url=url, width=config.width, height=config.height)
    try:
        async with open_render_session(
            browser,
            url,
            width=config.width,
            height=config.height,
            creative=creative,
            navigation_timeout_ms=config.settle_timeout_ms,
            framework_wait=config.framework_wait,
            trace_path=trace_path_for(creative) if args.trace else None,
        ) as session:
            if args.debug_html:
                await ensure_debug_html(session.page, creative)
            return await capture_creative(session.page, config, args.output_dir, creative=creative, url=url)
    except CaptureError as exc:
        if not browser.is_connected():
            raise BrowserRestartRequired(str(exc)) from exc
        capturelog("capture_failed", creative=creative, level="error", error_type=type(exc).__name__, error=str(exc))
        return CaptureResult(success=False, creative=creative, error=f"{type(exc).__name__}: {exc}")
    except Exception as exc:  # outermost safety net per creative
        if not browser.is_connected():
            raise BrowserRestartRequired(str(exc)) from exc
        capturelog("capture_failed", creative=creative, level="error", error_type=type(exc).__name__, error=str(exc))
        return CaptureResult(success=False, creative=creative, error=f"exception: {exc}")


async def _relaunch(pw, browser: Browser | None, reason: str) -> Browser | None:
    """Close ``browser`` (if any) and start a new one; None when the launch fails."""

    if browser is not None:
        try:
            await browser.close()
        except Exception as exc:
            jlog("warning", event="browser_close_failed", error=str(exc))
    try:
        fresh = await launch_browser(pw)
    except Exception as exc:
        jlog("error", event="browser_launch_failed", reason=reason, error=str(exc))
        return None
    jlog("warning", event="browser_restarted", reason=reason)
    return fresh


async def _convert_with_restart(pw, browser: Browser | None, target: str, args: CliArgs, config: CaptureConfig):
    """Convert ``target``, relaunching the browser and retrying once if it disconnects."""

    for attempt in range(MAX_BROWSER_RESTARTS + 1):
        if browser is None:
            browser = await _relaunch(pw, None, reason="no_browser")
            if browser is None:
                break
        try:
            return browser, await convert_target(browser, target, args, config)
        except BrowserRestartRequired as exc:
            jlog("warning", event="browser_disconnected", target=target, attempt=attempt + 1, error=str(exc))
            browser = await _relaunch(pw, browser, reason=str(exc))
    creative = creative_name(target)
    capturelog("capture_failed", creative=creative, level="error", error_type="BrowserRestartRequired")
    return browser, CaptureResult(success=False, creative=creative, error="BrowserRestartRequired: browser unavailable")


async def worker(pw, queue: asyncio.Queue, results: dict[int, CaptureResult], args: CliArgs, config: CaptureConfig) -> None:
    """Process queued targets with one browser; each target gets its own context."""

    browser = await _relaunch(pw, None, reason="worker_start")
    try:
        while True:
            item = await queue.get()
            if item is None:
                queue.task_done()
                break
            position, target = item
            try:
                browser, results[position] = await _convert_with_restart(pw, browser, target, args, config)
            finally:
                queue.task_done()
    finally:
        if browser is not None:
            try:
                await browser.close()
            except Exception as exc:
                jlog("warning", event="browser_close_failed", error=str(exc))


# ============================
# Entrypoint
# ============================


async def run(args: CliArgs) -> list[CaptureResult]:
    """Convert every target in ``args``; results keep the input order."""

    config = args.capture_config()
    jlog(
        "info",
        event="run_start",
        targets=len(args.targets),
        output_dir=args.output_dir,
        concurrency=args.concurrency,
        min_frames=config.min_frames,
        max_frames=config.max_frames,
    )
    queue: asyncio.Queue = asyncio.Queue()
    for position, target in enumerate(args.targets):
        queue.put_nowait((position, target))
    n_workers = min(args.concurrency, len(args.targets))
    for _ in range(n_workers):
        queue.put_nowait(None)

    results: dict[int, CaptureResult] = {}
    async with async_playwright() as pw:
        await asyncio.gather(*(worker(pw, queue, results, args, config) for _ in range(n_workers)))
    return [results[i] for i in range(len(args.targets))]


def emit_results(results: list[CaptureResult], stream=None) -> int:
    """Print one JSON line per result; return the process exit code."""

    stream = stream or sys.stdout
    for result in results:
        stream.write(json.dumps(result.to_dict(), ensure_ascii=False, sort_keys=True) + "\n")
    return 0 if all(r.success for r in results) else 1

__all__ = ["CliArgs", "convert_target", "emit_results", "parse_args", "run", "validate_args"]

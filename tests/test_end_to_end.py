"""Real Chromium + ffmpeg run; skipped when either is unavailable."""

import asyncio
import shutil

import pytest
from adcapture.config import CaptureConfig
from adcapture.pipeline import CliArgs, run
from adcapture.playwright import launch_browser
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

KEYFRAMES_HTML = """<!doctype html>
<html><head><style>
html, body { margin: 0; width: 300px; height: 250px; overflow: hidden; }
@keyframes slide { from { transform: translateX(0); } to { transform: translateX(200px); } }
.box { width: 50px; height: 50px; background: #c00; animation: slide 1s linear infinite; }
</style></head><body><div class="box"></div></body></html>
"""

STATIC_HTML = """<!doctype html>
<html><body style="margin:0;background:#0a0"><p>Static</p></body></html>
"""

pytestmark = pytest.mark.skipif(shutil.which("ffmpeg") is None, reason="ffmpeg not installed")


def _args(targets, out_dir) -> CliArgs:
    return CliArgs(
        targets=targets,
        output_dir=str(out_dir),
        width=300,
        height=250,
        min_duration_s=0.5,
        max_duration_s=1.5,
        frame_rate=10,
        stability_frames=5,
        settle_timeout_ms=15000,
        framework_wait=False,
        ffmpeg_bin="ffmpeg",
        concurrency=2,
        trace=False,
        debug_html=False,
    )


@pytest.fixture(scope="module")
def chromium_available():
    """Skip when the Chromium build Playwright needs is not installed."""

    async def launch_once():
        async with async_playwright() as pw:
            browser = await launch_browser(pw)
            await browser.close()

    try:
        asyncio.run(launch_once())
    except PlaywrightError as exc:
        pytest.skip(f"chromium unavailable: {exc}")


def test_keyframe_creative_becomes_video_and_plain_page_becomes_png(tmp_path, chromium_available):
    animated = tmp_path / "spin.html"
    animated.write_text(KEYFRAMES_HTML)
    static = tmp_path / "plain.html"
    static.write_text(STATIC_HTML)
    args = _args([str(animated), str(static)], tmp_path / "out")

    spin, plain = asyncio.run(run(args))
    cfg: CaptureConfig = args.capture_config()

    assert spin.success, spin.error
    assert spin.is_animated is True
    assert spin.classification.signals.keyframe_rule_count == 1
    assert spin.artifact_path.endswith(".mp4")
    assert not spin.used_fallback
    assert cfg.min_frames <= spin.frame_count <= cfg.max_frames

    assert plain.success, plain.error
    assert plain.is_animated is False
    assert plain.artifact_path.endswith(".png")
    assert plain.frame_count == 1

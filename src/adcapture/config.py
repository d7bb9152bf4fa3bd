"""Capture configuration: defaults, env overrides and derived frame budgets."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass

# ============================
# Defaults (overridable via env, then CLI)
# ============================
DEFAULT_WIDTH = 300
DEFAULT_HEIGHT = 250
DEFAULT_FRAME_RATE = int(os.getenv("CAPTURE_FRAME_RATE", "30"))
DEFAULT_MIN_DURATION_S = float(os.getenv("CAPTURE_MIN_DURATION_S", "3"))
DEFAULT_MAX_DURATION_S = float(os.getenv("CAPTURE_MAX_DURATION_S", "15"))
LARGE_FORMAT_MAX_DURATION_S = float(os.getenv("CAPTURE_LARGE_MAX_DURATION_S", "18"))
LARGE_FORMAT_EDGE_PX = 500
# 3 seconds of identical frames at the default frame rate
DEFAULT_STABILITY_FRAMES = int(os.getenv("CAPTURE_STABILITY_FRAMES", "90"))

DEFAULT_SETTLE_TIMEOUT_MS = int(os.getenv("CAPTURE_SETTLE_TIMEOUT_MS", "30000"))
DEFAULT_SIGNALS_TIMEOUT_MS = int(os.getenv("CAPTURE_SIGNALS_TIMEOUT_MS", "15000"))
DEFAULT_SCREENSHOT_TIMEOUT_MS = int(os.getenv("CAPTURE_SCREENSHOT_TIMEOUT_MS", "10000"))
DEFAULT_ENCODER_BIN = os.getenv("FFMPEG_BIN", "ffmpeg")
DEFAULT_ENCODER_TIMEOUT_S = int(os.getenv("FFMPEG_TIMEOUT_S", "600"))

# Settle waits after navigation (ms). The "reset" variants apply after the
# reload that rewinds an animated creative to its first frame.
DOM_READY_TIMEOUT_MS = 5000
SETTLE_DELAY_MS = 1500
RESET_SETTLE_DELAY_MS = 500
FRAMEWORK_READY_TIMEOUT_MS = 10000
FRAMEWORK_INIT_MS = 3000
RESET_FRAMEWORK_INIT_MS = 200
FRAMEWORK_FALLBACK_MS = 8000
RESET_FRAMEWORK_FALLBACK_MS = 2000
RESIZE_IDLE_TIMEOUT_MS = 10000
RESIZE_REINIT_MS = 3000
IMAGES_PENDING_WAIT_MS = 2000

SCRIPT_NAME = "convert"
SCRIPT_VERSION = "2025-11-04.1"


def get_capture_version(script_name: str = SCRIPT_NAME, script_version: str = SCRIPT_VERSION) -> str:
    """Return a human-readable version string with an env override."""

    return os.getenv("AD_CAPTURE_VERSION", f"{script_name}:{script_version}")


def max_duration_for(width: int, height: int) -> float:
    """Capture ceiling in seconds; larger formats tend to carry longer loops."""

    if width > LARGE_FORMAT_EDGE_PX or height > LARGE_FORMAT_EDGE_PX:
        return LARGE_FORMAT_MAX_DURATION_S
    return DEFAULT_MAX_DURATION_S


def _frames_for(seconds: float, frame_rate: int) -> int:
    # round() first so 0.1 * 30 does not ceil to 4
    return math.ceil(round(seconds * frame_rate, 6))


@dataclass(frozen=True, slots=True)
class CaptureConfig:
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    min_duration_s: float = DEFAULT_MIN_DURATION_S
    max_duration_s: float = DEFAULT_MAX_DURATION_S
    frame_rate: int = DEFAULT_FRAME_RATE
    stability_threshold_frames: int = DEFAULT_STABILITY_FRAMES
    settle_timeout_ms: int = DEFAULT_SETTLE_TIMEOUT_MS
    signals_timeout_ms: int = DEFAULT_SIGNALS_TIMEOUT_MS
    screenshot_timeout_ms: int = DEFAULT_SCREENSHOT_TIMEOUT_MS
    framework_wait: bool = False
    encoder_bin: str = DEFAULT_ENCODER_BIN
    encoder_timeout_s: int = DEFAULT_ENCODER_TIMEOUT_S

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"viewport must be positive, got {self.width}x{self.height}")
        if self.frame_rate <= 0:
            raise ValueError(f"frame_rate must be positive, got {self.frame_rate}")
        if self.min_duration_s < 0:
            raise ValueError(f"min_duration_s must not be negative, got {self.min_duration_s}")
        if self.max_duration_s <= 0 or self.max_duration_s < self.min_duration_s:
            raise ValueError(
                f"max_duration_s ({self.max_duration_s}) must be positive and >= min_duration_s ({self.min_duration_s})"
            )
        if self.stability_threshold_frames < 1:
            raise ValueError(f"stability_threshold_frames must be >= 1, got {self.stability_threshold_frames}")

    @classmethod
    def for_viewport(cls, width: int, height: int, **overrides) -> CaptureConfig:
        """Build a config whose ceiling follows the creative's size unless overridden."""

        overrides.setdefault("max_duration_s", max_duration_for(width, height))
        return cls(width=width, height=height, **overrides)

    @property
    def min_frames(self) -> int:
        return _frames_for(self.min_duration_s, self.frame_rate)

    @property
    def max_frames(self) -> int:
        return max(1, _frames_for(self.max_duration_s, self.frame_rate))

    @property
    def frame_interval_s(self) -> float:
        return 1.0 / self.frame_rate


__all__ = [
    "CaptureConfig",
    "DEFAULT_FRAME_RATE",
    "DEFAULT_HEIGHT",
    "DEFAULT_MAX_DURATION_S",
    "DEFAULT_MIN_DURATION_S",
    "DEFAULT_STABILITY_FRAMES",
    "DEFAULT_WIDTH",
    "get_capture_version",
    "max_duration_for",
]

"""Adaptive frame capture: stop once an animation has visibly settled."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from .logging import capturelog

STOP_STABILIZED = "stabilized"
STOP_MAX_FRAMES = "max_frames"


@dataclass(frozen=True, slots=True)
class Frame:
    index: int
    data: bytes = field(repr=False)

    def same_raster(self, other: Frame | None) -> bool:
        return other is not None and self.data == other.data


class StabilityDetector:
    """Per-frame stop decision for the capture loop.

    Frames are compared byte-for-byte with their predecessor once ``min_frames``
    have been captured; ``stability_threshold`` consecutive identical frames
    end the capture. Any difference resets the run. ``max_frames`` is a hard
    ceiling regardless of stability.
    """

    def __init__(self, *, min_frames: int, max_frames: int, stability_threshold: int) -> None:
        if max_frames < 1:
            raise ValueError("max_frames must be >= 1")
        if stability_threshold < 1:
            raise ValueError("stability_threshold must be >= 1")
        self.min_frames = max(0, min_frames)
        self.max_frames = max_frames
        self.stability_threshold = stability_threshold
        self.stable_count = 0
        self.stop_reason: str | None = None
        self._previous: Frame | None = None

    def observe(self, frame: Frame) -> bool:
        """Record ``frame`` and return True when capture should stop."""

        if self.stop_reason is not None:
            raise RuntimeError(f"detector already stopped ({self.stop_reason})")
        if frame.index >= self.min_frames and self._previous is not None:
            if frame.same_raster(self._previous):
                self.stable_count += 1
                if self.stable_count >= self.stability_threshold:
                    self.stop_reason = STOP_STABILIZED
                    return True
            else:
                self.stable_count = 0
        self._previous = frame
        if frame.index + 1 >= self.max_frames:
            self.stop_reason = STOP_MAX_FRAMES
            return True
        return False


async def capture_adaptive(
    grab: Callable[[], Awaitable[bytes]],
    detector: StabilityDetector,
    *,
    frame_rate: int,
    frames: list[Frame] | None = None,
    creative: str = "",
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> list[Frame]:
    """Grab frames at ``frame_rate`` until ``detector`` says stop.

    Frames are appended to ``frames`` (a fresh list if omitted), which is
    returned. Capture and sleep are strictly sequential.
    """

    frames = [] if frames is None else frames
    interval = 1.0 / frame_rate
    index = 0
    while True:
        frame = Frame(index=index, data=await grab())
        frames.append(frame)
        if detector.observe(frame):
            break
        index += 1
        if index % (3 * frame_rate) == 0:
            capturelog("capture_progress", creative=creative, frames=index, seconds=round(index / frame_rate, 1))
        await sleep(interval)

    if detector.stop_reason == STOP_STABILIZED:
        settled_at = (index + 1 - detector.stability_threshold) / frame_rate
        capturelog(
            "animation_stabilized",
            creative=creative,
            settled_at_s=round(settled_at, 2),
            stop_index=index,
            frames=len(frames),
        )
    else:
        capturelog("max_frames_reached", creative=creative, frames=len(frames), seconds=round(len(frames) / frame_rate, 2))
    return frames


__all__ = ["Frame", "STOP_MAX_FRAMES", "STOP_STABILIZED", "StabilityDetector", "capture_adaptive"]

"""Artifact encoding: still PNGs directly, videos through an external ffmpeg.

Video frames are staged as a numbered PNG sequence in a temporary directory,
encoded to H.264/MP4 with a fixed frame rate, yuv420p and ``+faststart``,
and the staging directory is removed whatever the outcome. When the encoder
fails the first captured frame is written as a ``*_fallback.png`` still.
"""

from __future__ import annotations

import os
import shutil
import subprocess
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from .config import DEFAULT_ENCODER_BIN, DEFAULT_ENCODER_TIMEOUT_S
from .errors import EncodingFailed, NoFramesCaptured
from .frames import Frame
from .logging import capturelog
from .storage import fallback_artifact_path, write_artifact

VIDEO_CODEC = "libx264"
PIXEL_FORMAT = "yuv420p"
PRESET = "fast"
CRF = 23


@dataclass(frozen=True, slots=True)
class EncodingOutcome:
    success: bool
    artifact_path: str
    frame_count: int
    used_fallback: bool


def frame_pattern(frame_count: int) -> str:
    digits = max(4, len(str(max(frame_count - 1, 0))))
    return f"frame_%0{digits}d.png"


def stage_frames(frames: Sequence[Frame], staging_dir: str | os.PathLike[str]) -> str:
    """Write ``frames`` as a zero-padded sequence and return the ffmpeg input pattern."""

    pattern = frame_pattern(len(frames))
    for seq, frame in enumerate(frames):
        (Path(staging_dir) / (pattern % seq)).write_bytes(frame.data)
    return str(Path(staging_dir) / pattern)


def build_encoder_command(encoder_bin: str, input_pattern: str, frame_rate: int, output_path: str) -> list[str]:
    return [
        encoder_bin,
        "-y",
        "-framerate",
        str(frame_rate),
        "-i",
        input_pattern,
        "-c:v",
        VIDEO_CODEC,
        "-pix_fmt",
        PIXEL_FORMAT,
        "-preset",
        PRESET,
        "-crf",
        str(CRF),
        # H.264 needs even dimensions
        "-vf",
        "pad=ceil(iw/2)*2:ceil(ih/2)*2",
        "-r",
        str(frame_rate),
        "-movflags",
        "+faststart",
        output_path,
    ]


def run_encoder(cmd: list[str], *, timeout_s: int) -> None:
    """Run the encoder synchronously, mapping every failure mode to :class:`EncodingFailed`."""

    try:
        subprocess.run(cmd, check=True, capture_output=True, text=True, timeout=timeout_s)
    except subprocess.CalledProcessError as exc:
        tail = (exc.stderr or "").strip().splitlines()[-5:]
        raise EncodingFailed(f"encoder exited with {exc.returncode}: {' | '.join(tail)}") from exc
    except subprocess.TimeoutExpired as exc:
        raise EncodingFailed(f"encoder timed out after {timeout_s}s") from exc
    except OSError as exc:
        raise EncodingFailed(f"encoder could not be started: {exc}") from exc


def verify_output(path: str | os.PathLike[str]) -> int:
    out = Path(path)
    if not out.exists():
        raise EncodingFailed(f"encoder produced no output at {out}")
    size = out.stat().st_size
    if size == 0:
        raise EncodingFailed(f"encoder produced an empty file at {out}")
    return size


def write_still(frames: Sequence[Frame], output_path: str | os.PathLike[str]) -> EncodingOutcome:
    """Write the single static frame as the PNG artifact."""

    if not frames:
        raise NoFramesCaptured("static capture produced no frame")
    if len(frames) != 1:
        raise ValueError(f"static capture expects exactly one frame, got {len(frames)}")
    out = write_artifact(output_path, frames[0].data, kind="static")
    return EncodingOutcome(success=True, artifact_path=str(out), frame_count=1, used_fallback=False)


def encode_video(
    frames: Sequence[Frame],
    output_path: str | os.PathLike[str],
    *,
    frame_rate: int,
    encoder_bin: str = DEFAULT_ENCODER_BIN,
    timeout_s: int = DEFAULT_ENCODER_TIMEOUT_S,
    creative: str = "",
) -> EncodingOutcome:
    """Encode ``frames`` to an MP4, falling back to the first frame as a PNG."""

    if not frames:
        raise NoFramesCaptured("no frames captured; refusing to encode")
    out = Path(output_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    staging = tempfile.mkdtemp(prefix=f"{out.stem}_frames_")
    try:
        pattern = stage_frames(frames, staging)
        cmd = build_encoder_command(encoder_bin, pattern, frame_rate, str(out.resolve()))
        try:
            run_encoder(cmd, timeout_s=timeout_s)
            size = verify_output(out)
        except EncodingFailed as exc:
            capturelog("encode_failed", creative=creative, level="error", error=str(exc), frames=len(frames))
            out.unlink(missing_ok=True)
            fallback = write_artifact(fallback_artifact_path(out), frames[0].data, kind="fallback")
            capturelog("fallback_artifact", creative=creative, path=str(fallback))
            return EncodingOutcome(success=True, artifact_path=str(fallback), frame_count=len(frames), used_fallback=True)
        capturelog("video_encoded", creative=creative, path=str(out), frames=len(frames), kb=round(size / 1024, 2))
        return EncodingOutcome(success=True, artifact_path=str(out), frame_count=len(frames), used_fallback=False)
    finally:
        shutil.rmtree(staging, ignore_errors=True)


def encode_artifact(
    frames: Sequence[Frame],
    output_path: str | os.PathLike[str],
    *,
    animated: bool,
    frame_rate: int,
    encoder_bin: str = DEFAULT_ENCODER_BIN,
    timeout_s: int = DEFAULT_ENCODER_TIMEOUT_S,
    creative: str = "",
) -> EncodingOutcome:
    if not animated:
        return write_still(frames, output_path)
    return encode_video(
        frames,
        output_path,
        frame_rate=frame_rate,
        encoder_bin=encoder_bin,
        timeout_s=timeout_s,
        creative=creative,
    )


__all__ = [
    "EncodingOutcome",
    "build_encoder_command",
    "encode_artifact",
    "encode_video",
    "frame_pattern",
    "run_encoder",
    "stage_frames",
    "verify_output",
    "write_still",
]

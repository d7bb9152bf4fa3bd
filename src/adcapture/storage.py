"""Canonical artifact naming and local artifact writes."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path

from .logging import jlog

UTC = getattr(datetime, "UTC", timezone.utc)

STATIC_KIND = "static"
ANIMATED_KIND = "animated"


def timestamp_slug(now: datetime | None = None) -> str:
    """ISO-8601 UTC timestamp (millisecond precision) with ':' and '.' replaced by '-'."""

    now = now or datetime.now(UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    iso = now.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return iso.replace(":", "-").replace(".", "-")


def canonical_artifact_name(base_name: str, *, animated: bool, now: datetime | None = None) -> str:
    kind, ext = (ANIMATED_KIND, "mp4") if animated else (STATIC_KIND, "png")
    return f"{base_name}_{kind}_{timestamp_slug(now)}.{ext}"


def canonical_artifact_path(output_dir: str | os.PathLike[str], base_name: str, *, animated: bool, now: datetime | None = None) -> Path:
    return Path(output_dir) / canonical_artifact_name(base_name, animated=animated, now=now)


def fallback_artifact_path(video_path: str | os.PathLike[str]) -> Path:
    """Still-image path used when a video cannot be encoded."""

    path = Path(video_path)
    return path.with_name(f"{path.stem}_fallback.png")


def ensure_output_dir(path: str | os.PathLike[str]) -> Path:
    out = Path(path)
    out.mkdir(parents=True, exist_ok=True)
    return out


def write_artifact(path: str | os.PathLike[str], data: bytes, *, kind: str) -> Path:
    """Write ``data`` to ``path`` (creating parent directories) and log it."""

    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(data)
    jlog("info", event="artifact_written", path=str(out), kind=kind, bytes=len(data))
    return out


__all__ = [
    "ANIMATED_KIND",
    "STATIC_KIND",
    "canonical_artifact_name",
    "canonical_artifact_path",
    "ensure_output_dir",
    "fallback_artifact_path",
    "timestamp_slug",
    "write_artifact",
]

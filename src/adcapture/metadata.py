"""Metadata describing a produced artifact."""

from __future__ import annotations

from collections import OrderedDict
from typing import OrderedDict as OrderedDictType


def build_artifact_metadata(
    *,
    creative: str,
    artifact_kind: str,
    width: int,
    height: int,
    frame_count: int,
    frame_rate: int | None,
    sha256: str,
    phash: str,
    capture_version: str,
    used_fallback: bool = False,
    rules: tuple[str, ...] | list[str] = (),
    source_url: str | None = None,
) -> OrderedDictType[str, str]:
    """Return metadata with deterministic ordering for auditability."""

    md: OrderedDictType[str, str] = OrderedDict()
    md["creative"] = creative
    md["artifact_kind"] = artifact_kind
    md["width"] = str(width)
    md["height"] = str(height)
    md["frame_count"] = str(frame_count)
    if frame_rate:
        md["frame_rate"] = str(frame_rate)
    md["sha256"] = sha256
    md["phash"] = phash
    md["capture_version"] = capture_version
    md["used_fallback"] = "true" if used_fallback else "false"
    if rules:
        md["rules"] = ",".join(rules)
    if source_url:
        md["source_url"] = source_url
    return md


__all__ = ["build_artifact_metadata"]

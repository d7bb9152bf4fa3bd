"""Helpers that turn CLI targets into navigable URLs and creative names."""

from __future__ import annotations

import os
import urllib.parse
from pathlib import Path

_REMOTE_SCHEMES = ("http", "https", "file")


def is_remote_url(target: str) -> bool:
    try:
        return urllib.parse.urlparse(target).scheme in _REMOTE_SCHEMES
    except Exception:
        return False


def document_url(target: str | os.PathLike[str]) -> str:
    """Return a URL for ``target``; local paths become absolute ``file://`` URIs.

    Navigating by URL (rather than injecting markup) keeps relative asset
    paths resolvable and lets a reload rewind the document.
    """

    text = os.fspath(target)
    if is_remote_url(text):
        return text
    return Path(text).resolve().as_uri()


def creative_name(target: str | os.PathLike[str]) -> str:
    """Base name used for artifacts: the file stem, or the last URL path segment."""

    text = os.fspath(target)
    if is_remote_url(text):
        parsed = urllib.parse.urlparse(text)
        segment = urllib.parse.unquote(parsed.path.rstrip("/").rsplit("/", 1)[-1])
        stem = Path(segment).stem if segment else ""
        return stem or (parsed.netloc or "creative").replace(":", "_")
    return Path(text).stem or "creative"


__all__ = ["creative_name", "document_url", "is_remote_url"]

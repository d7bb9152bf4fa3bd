"""Artifact fingerprints: exact digests and a perceptual average hash."""

from __future__ import annotations

import hashlib
import os
from io import BytesIO
from typing import TYPE_CHECKING, Any, Literal, Union, cast

from PIL import Image

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from PIL.Image import Resampling
else:  # Pillow < 10 compatibility where Resampling lives on Image
    Resampling = Any


LanczosType = Union["Resampling", Literal[0, 1, 2, 3, 4, 5]]


def _lanczos_filter() -> LanczosType:
    resampling: Any = getattr(Image, "Resampling", None)
    if resampling is not None:
        return cast(LanczosType, getattr(resampling, "LANCZOS"))
    return cast(LanczosType, getattr(Image, "LANCZOS"))


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def sha256_file(path: str | os.PathLike[str], chunk_size: int = 1 << 20) -> str:
    digest = hashlib.sha256()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()


def fingerprint_png(png_bytes: bytes) -> tuple[str, str, int, int]:
    """Return ``(sha256, ahash, width, height)`` for a PNG payload."""

    with Image.open(BytesIO(png_bytes)) as im:
        width, height = im.size
        ah = im.convert("L").resize((8, 8), resample=_lanczos_filter())
        pixels = list(ah.getdata())
        avg = sum(pixels) / len(pixels)
        bits = "".join("1" if p > avg else "0" for p in pixels)
        phash = f"{int(bits, 2):016x}"
    return sha256_hex(png_bytes), phash, width, height


__all__ = ["fingerprint_png", "sha256_file", "sha256_hex"]

"""Exception taxonomy for classification and capture sessions."""

from __future__ import annotations


class CaptureError(RuntimeError):
    """Base class for failures surfaced by a capture session."""


class ClassificationError(CaptureError):
    """Animation signals could not be collected before the settle deadline."""


class RendererUnavailable(CaptureError):
    """The page handle was closed or otherwise unusable when capture started."""


class NoFramesCaptured(CaptureError):
    """The encoder was handed an empty frame sequence."""


class EncodingFailed(CaptureError):
    """The external encoder exited non-zero or produced no usable output."""


class RenderNotReady(CaptureError):
    """The document did not reach a settled state within the settle timeout."""


class BrowserRestartRequired(RuntimeError):
    """The shared browser disconnected; the worker must relaunch it and retry."""


__all__ = [
    "BrowserRestartRequired",
    "CaptureError",
    "ClassificationError",
    "EncodingFailed",
    "NoFramesCaptured",
    "RenderNotReady",
    "RendererUnavailable",
]

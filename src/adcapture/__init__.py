"""Classify HTML ad creatives as static or animated and capture review artifacts."""

from .capture import CaptureResult, CaptureSession, CaptureState, capture_creative, run_capture_session
from .classifier import ClassificationResult, classify, is_animated
from .config import CaptureConfig, get_capture_version, max_duration_for
from .encoder import EncodingOutcome, encode_artifact, encode_video, write_still
from .errors import (
    CaptureError,
    ClassificationError,
    EncodingFailed,
    NoFramesCaptured,
    RendererUnavailable,
    RenderNotReady,
)
from .frames import Frame, StabilityDetector, capture_adaptive
from .logging import capturelog, jlog
from .signals import AnimationSignals, build_signals, collect_signals
from .storage import canonical_artifact_name, canonical_artifact_path, fallback_artifact_path

__all__ = [
    "AnimationSignals",
    "CaptureConfig",
    "CaptureError",
    "CaptureResult",
    "CaptureSession",
    "CaptureState",
    "ClassificationError",
    "ClassificationResult",
    "EncodingFailed",
    "EncodingOutcome",
    "Frame",
    "NoFramesCaptured",
    "RenderNotReady",
    "RendererUnavailable",
    "StabilityDetector",
    "build_signals",
    "canonical_artifact_name",
    "canonical_artifact_path",
    "capture_adaptive",
    "capture_creative",
    "capturelog",
    "classify",
    "collect_signals",
    "encode_artifact",
    "encode_video",
    "fallback_artifact_path",
    "get_capture_version",
    "is_animated",
    "jlog",
    "max_duration_for",
    "run_capture_session",
    "write_still",
]

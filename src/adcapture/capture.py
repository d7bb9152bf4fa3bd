"""Capture controller: classify a rendered creative and produce its artifact.

One :class:`CaptureSession` covers one document on one page. It moves through
``idle -> signals_collected -> classified -> {static|adaptive}_capturing ->
encoded -> done`` (or ``error``) and never switches strategy once classified.
Frames live only on the session and are dropped when it finishes.
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .classifier import ClassificationResult, classify
from .config import CaptureConfig, get_capture_version
from .encoder import EncodingOutcome, encode_artifact
from .errors import RendererUnavailable
from .frames import Frame, StabilityDetector, capture_adaptive
from .hashing import fingerprint_png, sha256_file
from .logging import capturelog
from .metadata import build_artifact_metadata
from .playwright import ensure_viewport, reset_document, wait_assets_ready
from .signals import collect_signals
from .storage import canonical_artifact_path


class CaptureState(str, Enum):
    IDLE = "idle"
    SIGNALS_COLLECTED = "signals_collected"
    CLASSIFIED = "classified"
    STATIC_CAPTURING = "static_capturing"
    ADAPTIVE_CAPTURING = "adaptive_capturing"
    ENCODED = "encoded"
    DONE = "done"
    ERROR = "error"


_TRANSITIONS: dict[CaptureState, frozenset[CaptureState]] = {
    CaptureState.IDLE: frozenset({CaptureState.SIGNALS_COLLECTED}),
    CaptureState.SIGNALS_COLLECTED: frozenset({CaptureState.CLASSIFIED}),
    CaptureState.CLASSIFIED: frozenset({CaptureState.STATIC_CAPTURING, CaptureState.ADAPTIVE_CAPTURING}),
    CaptureState.STATIC_CAPTURING: frozenset({CaptureState.ENCODED}),
    CaptureState.ADAPTIVE_CAPTURING: frozenset({CaptureState.ENCODED}),
    CaptureState.ENCODED: frozenset({CaptureState.DONE}),
    CaptureState.DONE: frozenset(),
    CaptureState.ERROR: frozenset(),
}


@dataclass
class CaptureSession:
    page: Any
    config: CaptureConfig
    creative: str
    url: str | None = None
    frames: list[Frame] = field(default_factory=list)
    state: CaptureState = CaptureState.IDLE
    classification: ClassificationResult | None = None

    @property
    def terminal(self) -> bool:
        return self.state in (CaptureState.DONE, CaptureState.ERROR)

    def advance(self, new_state: CaptureState) -> None:
        allowed = _TRANSITIONS[self.state]
        if new_state is not CaptureState.ERROR and new_state not in allowed:
            raise RuntimeError(f"illegal capture transition {self.state.value} -> {new_state.value}")
        if new_state is CaptureState.ERROR and self.terminal:
            raise RuntimeError(f"session already finished ({self.state.value})")
        self.state = new_state


@dataclass(frozen=True, slots=True)
class CaptureResult:
    success: bool
    creative: str
    artifact_path: str | None = None
    frame_count: int = 0
    used_fallback: bool = False
    classification: ClassificationResult | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    error: str | None = None

    @property
    def is_animated(self) -> bool | None:
        return self.classification.is_animated if self.classification else None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "success": self.success,
            "creative": self.creative,
            "artifact_path": self.artifact_path,
            "frame_count": self.frame_count,
            "used_fallback": self.used_fallback,
            "is_animated": self.is_animated,
        }
        if self.classification:
            out["rules"] = list(self.classification.rules)
            out["signals"] = self.classification.signals.as_dict()
        if self.metadata:
            out["metadata"] = dict(self.metadata)
        if self.error:
            out["error"] = self.error
        return out


async def _grab_frame(session: CaptureSession) -> bytes:
    page = session.page
    if page is None or page.is_closed():
        raise RendererUnavailable("page closed during capture")
    return await page.screenshot(type="png", full_page=False, timeout=session.config.screenshot_timeout_ms)


def _describe(session: CaptureSession, outcome: EncodingOutcome) -> dict[str, str]:
    """Fingerprint the artifact; a failure here is logged and yields no metadata."""

    classification = session.classification
    animated = bool(classification and classification.is_animated)
    try:
        sha, phash, width, height = fingerprint_png(session.frames[0].data)
        if animated and not outcome.used_fallback:
            sha = sha256_file(outcome.artifact_path)
    except Exception as exc:
        capturelog("fingerprint_failed", creative=session.creative, level="error", error=repr(exc))
        return {}
    if outcome.used_fallback:
        kind = "fallback"
    else:
        kind = "animated" if animated else "static"
    return dict(
        build_artifact_metadata(
            creative=session.creative,
            artifact_kind=kind,
            width=width,
            height=height,
            frame_count=outcome.frame_count,
            frame_rate=session.config.frame_rate if animated else None,
            sha256=sha,
            phash=phash,
            capture_version=get_capture_version(),
            used_fallback=outcome.used_fallback,
            rules=classification.rules if classification else (),
            source_url=session.url,
        )
    )


async def _capture_static(session: CaptureSession) -> None:
    cfg = session.config
    await ensure_viewport(session.page, cfg.width, cfg.height, creative=session.creative)
    session.frames.append(Frame(index=0, data=await _grab_frame(session)))


async def _capture_animated(session: CaptureSession) -> None:
    cfg = session.config
    detector = StabilityDetector(
        min_frames=cfg.min_frames,
        max_frames=cfg.max_frames,
        stability_threshold=cfg.stability_threshold_frames,
    )
    capturelog(
        "adaptive_capture_start",
        creative=session.creative,
        min_frames=detector.min_frames,
        max_frames=detector.max_frames,
        stability_threshold=detector.stability_threshold,
        frame_rate=cfg.frame_rate,
    )
    await ensure_viewport(session.page, cfg.width, cfg.height, creative=session.creative)
    await wait_assets_ready(session.page, creative=session.creative)
    await capture_adaptive(
        lambda: _grab_frame(session),
        detector,
        frame_rate=cfg.frame_rate,
        frames=session.frames,
        creative=session.creative,
    )


async def run_capture_session(
    session: CaptureSession,
    output_dir: str | os.PathLike[str],
    *,
    now: datetime | None = None,
) -> CaptureResult:
    """Classify the session's document and write its artifact under ``output_dir``.

    Fatal conditions (closed page, signal collection timeout, zero frames)
    propagate as :class:`~adcapture.errors.CaptureError` subclasses after the
    session is moved to ``error``.
    """

    cfg = session.config
    try:
        if session.page is None or session.page.is_closed():
            raise RendererUnavailable("page is closed; nothing to capture")

        signals = await collect_signals(session.page, creative=session.creative, timeout_ms=cfg.signals_timeout_ms)
        session.advance(CaptureState.SIGNALS_COLLECTED)

        classification = classify(signals)
        session.classification = classification
        session.advance(CaptureState.CLASSIFIED)
        capturelog(
            "classified",
            creative=session.creative,
            is_animated=classification.is_animated,
            rules=list(classification.rules),
        )

        animated = classification.is_animated
        output_path = canonical_artifact_path(output_dir, session.creative, animated=animated, now=now)
        if animated:
            await reset_document(
                session.page,
                timeout_ms=cfg.settle_timeout_ms,
                framework_wait=cfg.framework_wait,
                creative=session.creative,
            )
            session.advance(CaptureState.ADAPTIVE_CAPTURING)
            await _capture_animated(session)
        else:
            session.advance(CaptureState.STATIC_CAPTURING)
            await _capture_static(session)

        outcome = await asyncio.to_thread(
            encode_artifact,
            list(session.frames),
            output_path,
            animated=animated,
            frame_rate=cfg.frame_rate,
            encoder_bin=cfg.encoder_bin,
            timeout_s=cfg.encoder_timeout_s,
            creative=session.creative,
        )
        session.advance(CaptureState.ENCODED)
        metadata = _describe(session, outcome)
        session.advance(CaptureState.DONE)
        capturelog(
            "capture_done",
            creative=session.creative,
            artifact_path=outcome.artifact_path,
            frames=outcome.frame_count,
            used_fallback=outcome.used_fallback,
        )
        return CaptureResult(
            success=outcome.success,
            creative=session.creative,
            artifact_path=outcome.artifact_path,
            frame_count=outcome.frame_count,
            used_fallback=outcome.used_fallback,
            classification=classification,
            metadata=metadata,
        )
    except BaseException:
        if not session.terminal:
            session.advance(CaptureState.ERROR)
        raise
    finally:
        session.frames.clear()


async def capture_creative(
    page,
    config: CaptureConfig,
    output_dir: str | os.PathLike[str],
    *,
    creative: str,
    url: str | None = None,
    now: datetime | None = None,
) -> CaptureResult:
    """Run one capture session against an already rendered ``page``."""

    session = CaptureSession(page=page, config=config, creative=creative, url=url)
    return await run_capture_session(session, output_dir, now=now)


__all__ = [
    "CaptureResult",
    "CaptureSession",
    "CaptureState",
    "capture_creative",
    "run_capture_session",
]

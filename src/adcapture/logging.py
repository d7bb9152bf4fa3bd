"""JSON log records for the capture pipeline.

Each record is a single JSON object written to the ``adcapture`` logger.
Fields are layered, later layers winning:

1. process fields set once at startup with :func:`set_global_context`;
2. fields bound for the current task with :func:`logging_context`;
3. the keyword arguments of the :func:`jlog` call itself.

Task fields live in a :class:`contextvars.ContextVar`, so workers started with
``asyncio.gather`` each see only their own bindings.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Iterator, Mapping

UTC = getattr(datetime, "UTC", timezone.utc)
LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"

_logger = logging.getLogger("adcapture")
_process_fields: dict[str, Any] = {}
_task_fields: ContextVar[Mapping[str, Any]] = ContextVar("adcapture_log_fields", default={})


def _present(fields: Mapping[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in fields.items() if v is not None}


def configure_logging(level: int | str = logging.INFO) -> None:
    """Install the line formatter on the root logger and set the package level.

    ``basicConfig`` is a no-op once the root logger has handlers, so repeated
    calls only adjust the level.
    """

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logging.basicConfig(format=LOG_FORMAT)
    _logger.setLevel(level)


def set_global_context(**fields: Any) -> None:
    _process_fields.update(_present(fields))


@contextmanager
def logging_context(**fields: Any) -> Iterator[None]:
    """Bind ``fields`` to every record emitted by the current task inside the block."""

    token = _task_fields.set({**_task_fields.get(), **_present(fields)})
    try:
        yield
    finally:
        _task_fields.reset(token)


def current_context() -> dict[str, Any]:
    return {**_process_fields, **_task_fields.get()}


def format_record(fields: Mapping[str, Any]) -> str:
    record = {"ts": datetime.now(UTC).isoformat(), **current_context(), **fields}
    return json.dumps(record, ensure_ascii=False, sort_keys=True, default=str)


def jlog(level: str, /, **fields: Any) -> None:
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        numeric = logging.INFO
    if _logger.isEnabledFor(numeric):
        _logger.log(numeric, format_record(fields))


def capturelog(event: str, *, creative: str, level: str = "info", **kw: Any) -> None:
    """Record ``event`` for one creative."""

    jlog(level, event=event, creative=creative, **kw)


__all__ = [
    "capturelog",
    "configure_logging",
    "current_context",
    "format_record",
    "jlog",
    "logging_context",
    "set_global_context",
]

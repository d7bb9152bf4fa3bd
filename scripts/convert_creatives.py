#!/usr/bin/env python3
"""CLI shim for the creative converter.

Delegates to :mod:`adcapture.pipeline`; prints one JSON result per creative
and exits non-zero if any creative failed.
"""
from __future__ import annotations

import asyncio

from adcapture.config import SCRIPT_NAME, get_capture_version
from adcapture.logging import configure_logging, logging_context, set_global_context
from adcapture.pipeline import CliArgs, emit_results, parse_args, run


def main() -> None:
    """Parse CLI arguments and convert each creative."""
    configure_logging()
    set_global_context(app="adcapture", pipeline=SCRIPT_NAME)
    with logging_context(script=SCRIPT_NAME, capture_version=get_capture_version()):
        args: CliArgs = parse_args()
        results = asyncio.run(run(args))
    raise SystemExit(emit_results(results))


if __name__ == "__main__":
    main()

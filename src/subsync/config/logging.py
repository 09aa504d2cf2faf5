"""Logging setup for the command line entry point."""

from __future__ import annotations

import logging
from typing import Final

_HTTP_LOGGERS: Final[tuple[str, ...]] = ("httpx", "httpcore")


def configure_logging(*, verbose: bool = False, force: bool = False) -> None:
    """Initialise the root logger at INFO, or DEBUG when ``verbose``.

    httpx logs one INFO line per request, which drowns the reconciliation log
    when talking to the API server; the HTTP loggers stay at WARNING unless
    ``verbose`` is set.
    """

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    for name in _HTTP_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET if verbose else logging.WARNING)

from __future__ import annotations

import logging
import sys

_INSTALLED_HANDLERS: set[str] = set()


def ensure_console_logger(
    logger: logging.Logger,
    handler_name: str,
    *,
    level: int = logging.INFO,
) -> None:
    """Attach a single named stderr handler to *logger*.

    Repeated calls with the same *handler_name* only adjust the level, so the
    CLI can be invoked many times in one process (tests) without duplicating
    output.
    """

    if handler_name in _INSTALLED_HANDLERS:
        logger.setLevel(level)
        return
    for handler in logger.handlers:
        if getattr(handler, "name", None) == handler_name:
            _INSTALLED_HANDLERS.add(handler_name)
            logger.setLevel(level)
            return
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.DEBUG)
    handler.name = handler_name
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    _INSTALLED_HANDLERS.add(handler_name)

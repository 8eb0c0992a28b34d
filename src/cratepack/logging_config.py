"""Singleton logging configuration.

Generated code goes to stdout, so every log record is routed to stderr.
setup_logging() is idempotent (guarded by a module-level flag).
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(name)s] - %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"

# Third-party loggers to keep at WARNING even in verbose mode
_SUPPRESSED_LOGGERS = ("asyncio",)

_configured = False


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger on stderr.

    Idempotent: the second call only adjusts the root level, so a
    later ``--verbose`` still takes effect.
    """
    global _configured  # noqa: PLW0603
    root = logging.getLogger()
    if _configured:
        root.setLevel(getattr(logging, level.upper()))
        return
    _configured = True

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        stream=sys.stderr,
    )

    for name in _SUPPRESSED_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

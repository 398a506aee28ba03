"""Singleton logging configuration.

setup_logging() configures the root logger once and quiets the HTTP
client loggers, which otherwise log every classifier request at INFO.
Idempotent (guarded by a module-level flag); pass ``force=True`` to
re-apply a new level, e.g. after ``--verbose`` is parsed.
"""

import logging

LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(name)s] - %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"

# Third-party loggers to suppress to WARNING
_SUPPRESSED_LOGGERS = (
    "httpx",
    "httpcore",
)

_setup_done = False


def setup_logging(level: str = "INFO", *, force: bool = False) -> None:
    """Configure root logger and suppress noisy third-party loggers."""
    global _setup_done  # noqa: PLW0603
    if _setup_done and not force:
        return
    _setup_done = True

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        force=force,
    )

    for name in _SUPPRESSED_LOGGERS:
        lg = logging.getLogger(name)
        lg.setLevel(logging.WARNING)

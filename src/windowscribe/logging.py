"""
Logging for windowscribe.

Each module logs through its own child of the ``windowscribe`` logger:
``windowscribe.asr`` for backend initialization and device fallback,
``windowscribe.orchestrator`` for request lifecycle and skipped windows.
The CLI calls ``configure_logging`` once; library users attach their own
handlers instead.
"""

from __future__ import annotations

import logging

logger = logging.getLogger("windowscribe")

# faster-whisper logs every decoded window at INFO.
_NOISY_LOGGERS = ("faster_whisper",)


def configure_logging(verbose: bool = False) -> None:
    """Route windowscribe logs to stderr.

    Args:
        verbose: DEBUG for windowscribe and its backend when True, WARNING otherwise
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
    )
    logger.setLevel(level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(level)

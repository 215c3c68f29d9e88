from __future__ import annotations

import logging

from windowscribe.logging import configure_logging


def test_verbose_enables_debug_for_package_and_backend() -> None:
    configure_logging(verbose=True)

    assert logging.getLogger("windowscribe").level == logging.DEBUG
    assert logging.getLogger("windowscribe.orchestrator").getEffectiveLevel() == logging.DEBUG
    assert logging.getLogger("faster_whisper").level == logging.DEBUG


def test_quiet_mode_silences_per_window_backend_logs() -> None:
    configure_logging(verbose=False)

    assert logging.getLogger("windowscribe").level == logging.WARNING
    assert not logging.getLogger("faster_whisper").isEnabledFor(logging.INFO)

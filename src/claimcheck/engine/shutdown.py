# src/claimcheck/engine/shutdown.py
"""Signal-driven shutdown for the consumer loop.

``Consumer.run`` checks the event before each fetch and each retrieval and
sleeps on it between polls, so a signal stops the loop at the next of those
points. A batch cut short this way leaves the cursor where it was.
"""

from __future__ import annotations

import signal
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from types import FrameType

from claimcheck.core.logging import get_logger

logger = get_logger(__name__)

_SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


@contextmanager
def install_shutdown_handler() -> Iterator[threading.Event]:
    """Yield an event that SIGINT or SIGTERM sets while the block runs.

    The first signal asks the consumer to stop and puts SIGINT back to
    KeyboardInterrupt, so a second Ctrl-C aborts immediately. Signal
    handlers can only be installed from the main thread; elsewhere the
    event is returned unwired and must be set by the caller.
    """
    stop_requested = threading.Event()
    if threading.current_thread() is not threading.main_thread():
        yield stop_requested
        return

    def _request_stop(signum: int, frame: FrameType | None) -> None:
        if not stop_requested.is_set():
            logger.info("Shutdown requested, stopping after the current step", signal=signal.Signals(signum).name)
        stop_requested.set()
        signal.signal(signal.SIGINT, signal.default_int_handler)

    previous = {signum: signal.getsignal(signum) for signum in _SHUTDOWN_SIGNALS}
    for signum in _SHUTDOWN_SIGNALS:
        signal.signal(signum, _request_stop)
    try:
        yield stop_requested
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)

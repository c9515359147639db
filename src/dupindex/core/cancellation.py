"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/cancellation.py
Cooperative cancellation shared between a signal handler and the engine.
"""

import logging
import signal
import threading
from typing import Dict, Iterable

logger = logging.getLogger(__name__)

DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class CancellationToken:
    """
    Thread-safe stop flag. Instances are callable, so a token can be passed anywhere a
    stopped_flag() -> bool is expected.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def __call__(self) -> bool:
        return self._event.is_set()


class SignalListener:
    """
    Turns operator interrupts into a cancellation request.
    The first signal cancels the token; the previous handlers are restored at that point so
    a second signal terminates the process immediately.
    """

    def __init__(self, token: CancellationToken, signals: Iterable[int] = DEFAULT_SIGNALS):
        self.token = token
        self.signals = tuple(signals)
        self._previous: Dict[int, object] = {}

    def install(self) -> 'SignalListener':
        for signum in self.signals:
            self._previous[signum] = signal.signal(signum, self._handle)
        return self

    def restore(self) -> None:
        for signum, handler in self._previous.items():
            signal.signal(signum, handler)
        self._previous.clear()

    def _handle(self, signum, frame):  # noqa: ARG002
        logger.warning(f"Received signal {signum}, stopping after the current file...")
        self.token.cancel()
        self.restore()

    def __enter__(self) -> 'SignalListener':
        return self.install()

    def __exit__(self, exc_type, exc, tb):
        self.restore()
        return False

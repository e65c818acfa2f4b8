"""
Exit registry.

Collects release callbacks from every component that must react to
service shutdown and fires them once.
"""

import threading
from collections.abc import Callable

from loguru import logger


class Exit:
    """
    Shared shutdown coordinator.

    Thread-safe; ``exit()`` is idempotent and callbacks registered after
    it fired run immediately.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._exits: list[Callable[[], None]] = []
        self._exited = False

    @property
    def exited(self) -> bool:
        return self._exited

    def register_exit(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if not self._exited:
                self._exits.append(callback)
                return
        self._run(callback)

    def exit(self) -> None:
        with self._lock:
            if self._exited:
                return
            self._exited = True
            callbacks, self._exits = self._exits, []

        logger.info(f"Exit signalled, running {len(callbacks)} release callbacks")
        for callback in callbacks:
            self._run(callback)

    @staticmethod
    def _run(callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception as e:
            logger.exception(f"Exit callback failed: {e}")

"""Turn SIGTERM / SIGINT into a one-shot shutdown notification."""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys
from typing import Callable

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGTERM, signal.SIGINT)


def _hard_exit() -> None:
    os._exit(1)


class ShutdownCoordinator:
    """Resolve a single future the first time a termination signal arrives."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop | None = None,
        *,
        on_undeliverable: Callable[[], None] = _hard_exit,
    ):
        if sys.platform == "win32":
            raise RuntimeError(
                "This application only supports Unix platforms. Consider WSL or docker."
            )
        self._loop = loop or asyncio.get_running_loop()
        self._future: asyncio.Future[None] = self._loop.create_future()
        self._on_undeliverable = on_undeliverable
        self._installed: list[signal.Signals] = []

    @property
    def notification(self) -> asyncio.Future[None]:
        return self._future

    def install(self) -> None:
        logger.debug("Registering shutdown handler")
        for sig in SHUTDOWN_SIGNALS:
            self._loop.add_signal_handler(sig, self.trigger, sig)
            self._installed.append(sig)

    def uninstall(self) -> None:
        while self._installed:
            self._loop.remove_signal_handler(self._installed.pop())

    def trigger(self, sig: signal.Signals | None = None) -> None:
        if self._future.cancelled():
            logger.critical("Failed to shut down, is the shutdown handler running?")
            self._on_undeliverable()
            return
        if self._future.done():
            return
        logger.info("Shutting down! (signal=%s)", sig.name if sig is not None else "manual")
        self._future.set_result(None)

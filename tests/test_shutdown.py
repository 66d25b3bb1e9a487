from __future__ import annotations

import asyncio
import os
import signal

import pytest

from forum_upvote.shutdown import ShutdownCoordinator


def test_trigger_resolves_notification_once() -> None:
    async def runner() -> None:
        coordinator = ShutdownCoordinator()
        assert not coordinator.notification.done()

        coordinator.trigger(signal.SIGTERM)
        coordinator.trigger(signal.SIGINT)

        assert coordinator.notification.done()
        assert coordinator.notification.result() is None

    asyncio.run(runner())


def test_undeliverable_notification_is_fatal() -> None:
    exits: list[bool] = []

    async def runner() -> None:
        coordinator = ShutdownCoordinator(on_undeliverable=lambda: exits.append(True))
        coordinator.notification.cancel()
        coordinator.trigger(signal.SIGTERM)

    asyncio.run(runner())

    assert exits == [True]


@pytest.mark.parametrize("sig", [signal.SIGTERM, signal.SIGINT])
def test_installed_handler_reacts_to_real_signal(sig: signal.Signals) -> None:
    async def runner() -> None:
        coordinator = ShutdownCoordinator()
        coordinator.install()
        try:
            os.kill(os.getpid(), sig)
            await asyncio.wait_for(coordinator.notification, timeout=1.0)
        finally:
            coordinator.uninstall()

    asyncio.run(runner())

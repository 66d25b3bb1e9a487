"""Application bootstrap and gateway event loop."""

from __future__ import annotations

import asyncio
import contextlib
import enum
import logging

import aiohttp

from .cache import ForumCache
from .discord import DiscordClient
from .errors import GatewayError, ThreadHandlerError
from .gateway import CLOSE_NORMAL, GatewayShard
from .handler import AppState, on_thread_create
from .models import GatewayEvent, Settings, ThreadCreateEvent
from .shutdown import ShutdownCoordinator

logger = logging.getLogger(__name__)

THREAD_CREATE = "THREAD_CREATE"


class LoopState(enum.Enum):
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    CLOSED = "closed"


class EventLoop:
    """Consume gateway events until shutdown or a fatal transport error.

    Each iteration races the next gateway event against the shutdown
    notification. Events are handled one at a time, in delivery order.
    """

    def __init__(
        self,
        state: AppState,
        source: GatewayShard,
        shutdown: asyncio.Future[None],
    ):
        self._state = state
        self._source = source
        self._shutdown = shutdown
        self.status = LoopState.RUNNING

    async def run(self) -> None:
        try:
            while self.status is LoopState.RUNNING:
                event = await self._next_event()
                if event is None:
                    continue
                logger.debug("Got new event %s (seq=%s)", event.name, event.sequence)
                if event.name == THREAD_CREATE:
                    await self._dispatch_thread_create(event)
        finally:
            self.status = LoopState.SHUTTING_DOWN
            await self._close_source()

    async def _next_event(self) -> GatewayEvent | None:
        if self._shutdown.done():
            self._begin_shutdown()
            return None

        next_task = asyncio.ensure_future(self._source.next_event())
        try:
            await asyncio.wait({next_task, self._shutdown}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            if not next_task.done():
                next_task.cancel()

        if self._shutdown.done():
            with contextlib.suppress(asyncio.CancelledError, GatewayError):
                await next_task
            self._begin_shutdown()
            return None

        try:
            return next_task.result()
        except GatewayError as exc:
            logger.error("Error receiving event: %s", exc)
            if exc.is_fatal:
                self.status = LoopState.SHUTTING_DOWN
            return None

    def _begin_shutdown(self) -> None:
        logger.info("Shutdown requested, no further events will be consumed")
        self.status = LoopState.SHUTTING_DOWN

    async def _dispatch_thread_create(self, event: GatewayEvent) -> None:
        thread = ThreadCreateEvent.from_payload(event.data)
        try:
            await on_thread_create(self._state, thread)
        except ThreadHandlerError as exc:
            logger.error("Encountered an error handling thread %s: %s", thread.id, exc)
        except Exception:
            logger.exception("Unexpected error handling thread %s", thread.id)

    async def _close_source(self) -> None:
        try:
            await self._source.close(CLOSE_NORMAL)
        except Exception:
            logger.warning("Failed to close the gateway connection", exc_info=True)
        self.status = LoopState.CLOSED


class ForumUpvoteApp:
    """High level coordinator tying together the gateway, REST client and signals."""

    def __init__(self, settings: Settings):
        self._settings = settings

    async def run(self) -> None:
        coordinator = ShutdownCoordinator()
        coordinator.install()
        try:
            async with aiohttp.ClientSession() as session:
                state = AppState(
                    client=DiscordClient.from_settings(session, self._settings),
                    forums=ForumCache(),
                    cache_lookups=self._settings.cache_lookups,
                )
                shard = GatewayShard.from_settings(session, self._settings)
                logger.info("Created shard")
                await EventLoop(state, shard, coordinator.notification).run()
        finally:
            coordinator.uninstall()

"""Thread creation handling: upvote new forum posts."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .cache import ForumCache
from .discord import DiscordClient
from .errors import MissingParentError, MissingThreadIdError
from .models import UPVOTE_EMOJI, ThreadCreateEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AppState:
    """Process-wide state shared by every task.

    Built once at startup and never replaced.
    """

    client: DiscordClient
    forums: ForumCache
    cache_lookups: bool = False


async def on_thread_create(state: AppState, thread: ThreadCreateEvent) -> None:
    """Add the upvote reaction to ``thread`` when its parent is a forum.

    Raises :class:`MissingThreadIdError` or :class:`MissingParentError` before
    any lookup when the event lacks its id or parent, and lets
    :class:`RemoteApiError` propagate from the classification and reaction calls.
    """
    if not thread.id:
        raise MissingThreadIdError()

    parent = thread.parent_id
    if not parent:
        raise MissingParentError(thread.id)

    if not await is_forum_post(state, parent):
        logger.debug(
            "Skipping thread %s because parent %s was not a forum",
            thread.id,
            parent,
        )
        return

    # A forum post's opening message shares the thread's id.
    await state.client.create_reaction(thread.id, thread.id, UPVOTE_EMOJI)
    logger.info("Upvoted forum post %s in %s", thread.id, parent)


async def is_forum_post(state: AppState, parent: str) -> bool:
    cached = state.forums.get(parent)
    if cached is not None:
        return cached

    info = await state.client.fetch_channel_info(parent)
    # Misses are only written back when explicitly enabled.
    if state.cache_lookups:
        state.forums.set(parent, info.is_forum)
    return info.is_forum

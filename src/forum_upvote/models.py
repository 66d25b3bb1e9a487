"""Data models used across the upvote service."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

UPVOTE_EMOJI = "⬆️"
DEFAULT_GATEWAY_URL = "wss://gateway.discord.gg/?v=10&encoding=json"
DEFAULT_API_BASE = "https://discord.com/api/v10"


class ChannelType:
    """Discord channel type codes the service cares about."""

    GUILD_TEXT = 0
    GUILD_FORUM = 15


@dataclass(slots=True)
class ChannelInfo:
    """Basic channel metadata from Discord API."""

    id: str | None
    type: int
    guild_id: str | None = None
    name: str | None = None

    @property
    def is_forum(self) -> bool:
        return self.type == ChannelType.GUILD_FORUM


@dataclass(slots=True)
class GatewayEvent:
    """Single dispatch received from the gateway."""

    name: str
    data: Mapping[str, Any] = field(default_factory=dict)
    sequence: int | None = None


@dataclass(slots=True)
class ThreadCreateEvent:
    """Subset of the ``THREAD_CREATE`` payload used by the handler."""

    id: str | None
    parent_id: str | None = None
    guild_id: str | None = None
    name: str | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ThreadCreateEvent":
        thread_id = payload.get("id")
        parent = payload.get("parent_id")
        guild = payload.get("guild_id")
        return cls(
            id=str(thread_id) if thread_id else None,
            parent_id=str(parent) if parent else None,
            guild_id=str(guild) if guild else None,
            name=str(payload.get("name") or "") or None,
        )


@dataclass(slots=True)
class Settings:
    """Runtime configuration assembled from CLI flags and the environment."""

    token: str
    log_level: str = "INFO"
    gateway_url: str = DEFAULT_GATEWAY_URL
    api_base: str = DEFAULT_API_BASE
    user_agent: str | None = None
    proxy_url: str | None = None
    proxy_login: str | None = None
    proxy_password: str | None = None
    cache_lookups: bool = False

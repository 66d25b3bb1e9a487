"""Discord REST client."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping
from urllib.parse import quote

import aiohttp

from .errors import RemoteApiError
from .models import DEFAULT_API_BASE, ChannelInfo, Settings
from .utils import normalize_bot_token

_DEFAULT_USER_AGENT = "DiscordBot (https://github.com, 1.0)"


logger = logging.getLogger(__name__)


class DiscordClient:
    """Thin asynchronous wrapper around the two Discord REST calls we need."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        token: str,
        *,
        api_base: str = DEFAULT_API_BASE,
        user_agent: str | None = None,
        proxy_url: str | None = None,
        proxy_auth: aiohttp.BasicAuth | None = None,
        timeout: float = 15.0,
    ):
        self._session = session
        self._token = normalize_bot_token(token)
        self._api_base = api_base.rstrip("/")
        self._user_agent = user_agent or _DEFAULT_USER_AGENT
        self._proxy_url = proxy_url
        self._proxy_auth = proxy_auth
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    @classmethod
    def from_settings(
        cls, session: aiohttp.ClientSession, settings: Settings
    ) -> "DiscordClient":
        proxy_auth = None
        if settings.proxy_login:
            proxy_auth = aiohttp.BasicAuth(settings.proxy_login, settings.proxy_password or "")
        return cls(
            session,
            settings.token,
            api_base=settings.api_base,
            user_agent=settings.user_agent,
            proxy_url=settings.proxy_url,
            proxy_auth=proxy_auth,
        )

    async def fetch_channel_info(self, channel_id: str) -> ChannelInfo:
        """Fetch channel metadata including type and guild_id."""
        data = await self._request("GET", f"/channels/{channel_id}")
        if not isinstance(data, Mapping):
            raise RemoteApiError(f"Discord returned a malformed channel payload for {channel_id}")

        channel_type_raw = data.get("type")
        try:
            channel_type = int(str(channel_type_raw))
        except (TypeError, ValueError) as exc:
            raise RemoteApiError(
                f"Discord returned channel {channel_id} without a usable type: {channel_type_raw!r}"
            ) from exc

        return ChannelInfo(
            id=str(data.get("id") or channel_id),
            type=channel_type,
            guild_id=str(data.get("guild_id")) if data.get("guild_id") else None,
            name=str(data.get("name") or "") if data.get("name") else None,
        )

    async def create_reaction(self, channel_id: str, message_id: str, emoji: str) -> None:
        """Add ``emoji`` to a message as the current user."""
        path = (
            f"/channels/{channel_id}/messages/{message_id}"
            f"/reactions/{quote(emoji, safe='')}/@me"
        )
        await self._request("PUT", path)

    async def _request(self, method: str, path: str) -> Any:
        headers = {
            "Authorization": self._token,
            "User-Agent": self._user_agent,
            "Accept": "application/json",
        }
        url = f"{self._api_base}{path}"
        try:
            async with self._session.request(
                method,
                url,
                headers=headers,
                proxy=self._proxy_url,
                proxy_auth=self._proxy_auth,
                timeout=self._timeout,
            ) as resp:
                if resp.status >= 400:
                    body = await resp.text()
                    logger.warning(
                        "Discord responded with status %s to %s %s",
                        resp.status,
                        method,
                        path,
                    )
                    raise RemoteApiError(
                        f"Discord responded with status {resp.status} to {method} {path}: "
                        f"{body[:200]}",
                        status=resp.status,
                    )
                if resp.status == 204:
                    return None
                try:
                    return await resp.json()
                except (aiohttp.ContentTypeError, ValueError) as exc:
                    raise RemoteApiError(
                        f"Could not decode Discord response to {method} {path}: {exc}",
                        status=resp.status,
                    ) from exc
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise RemoteApiError(f"Discord request {method} {path} failed: {exc}") from exc

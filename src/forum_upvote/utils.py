"""Miscellaneous helpers."""

from __future__ import annotations

from typing import Mapping

from .models import Settings


def parse_bool(value: str | None, default: bool = False) -> bool:
    """Parse textual boolean configuration values.

    Supported truthy values: ``on``, ``true``, ``yes``, ``1`` (case-insensitive).
    Supported falsy values: ``off``, ``false``, ``no``, ``0``.
    Any other value returns ``default``.
    """

    if value is None:
        return default
    normalized = value.strip().lower()
    if not normalized:
        return default
    if normalized in {"on", "true", "yes", "1"}:
        return True
    if normalized in {"off", "false", "no", "0"}:
        return False
    return default


def normalize_bot_token(token: str) -> str:
    """Return ``token`` in ``Bot <token>`` form for the Authorization header."""

    stripped = token.strip()
    if stripped.lower().startswith("bot "):
        return f"Bot {stripped[4:].strip()}"
    return f"Bot {stripped}"


def raw_token(token: str) -> str:
    """Return ``token`` without the ``Bot`` prefix, as the gateway expects it."""

    stripped = token.strip()
    if stripped.lower().startswith("bot "):
        return stripped[4:].strip()
    return stripped


def _optional(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def load_settings(
    environ: Mapping[str, str],
    *,
    token: str | None = None,
    log_level: str | None = None,
) -> Settings | None:
    """Build settings from explicit overrides and environment variables.

    Returns ``None`` when no Discord token is available.
    """

    token_value = _optional(token) or _optional(environ.get("DISCORD_TOKEN"))
    if not token_value:
        return None

    settings = Settings(
        token=token_value,
        log_level=(
            _optional(log_level)
            or _optional(environ.get("FORUM_UPVOTE_LOG_LEVEL"))
            or "INFO"
        ),
        user_agent=_optional(environ.get("FORUM_UPVOTE_USER_AGENT")),
        proxy_url=_optional(environ.get("FORUM_UPVOTE_PROXY")),
        proxy_login=_optional(environ.get("FORUM_UPVOTE_PROXY_LOGIN")),
        proxy_password=_optional(environ.get("FORUM_UPVOTE_PROXY_PASSWORD")),
        cache_lookups=parse_bool(environ.get("FORUM_UPVOTE_CACHE_LOOKUPS"), False),
    )
    gateway_url = _optional(environ.get("FORUM_UPVOTE_GATEWAY_URL"))
    if gateway_url:
        settings.gateway_url = gateway_url
    api_base = _optional(environ.get("FORUM_UPVOTE_API_BASE"))
    if api_base:
        settings.api_base = api_base
    return settings

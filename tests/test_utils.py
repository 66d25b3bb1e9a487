from forum_upvote.models import DEFAULT_API_BASE, DEFAULT_GATEWAY_URL, Settings
from forum_upvote.utils import load_settings, normalize_bot_token, parse_bool, raw_token


def test_parse_bool_supports_truthy_and_falsy() -> None:
    assert parse_bool("on") is True
    assert parse_bool("NO") is False
    assert parse_bool(None, default=True) is True
    assert parse_bool("unexpected", default=False) is False


def test_bot_token_prefix_normalization() -> None:
    assert normalize_bot_token("abc") == "Bot abc"
    assert normalize_bot_token(" bot abc ") == "Bot abc"
    assert raw_token("Bot abc") == "abc"
    assert raw_token("abc") == "abc"


def test_load_settings_requires_token() -> None:
    assert load_settings({}) is None
    assert load_settings({"DISCORD_TOKEN": "   "}) is None


def test_load_settings_reads_environment() -> None:
    settings = load_settings(
        {
            "DISCORD_TOKEN": "from-env",
            "FORUM_UPVOTE_LOG_LEVEL": "debug",
            "FORUM_UPVOTE_PROXY": "http://proxy:3128",
            "FORUM_UPVOTE_PROXY_LOGIN": "user",
            "FORUM_UPVOTE_CACHE_LOOKUPS": "yes",
            "FORUM_UPVOTE_API_BASE": "http://localhost:8080/api",
        }
    )
    assert settings is not None
    assert settings.token == "from-env"
    assert settings.log_level == "debug"
    assert settings.proxy_url == "http://proxy:3128"
    assert settings.proxy_login == "user"
    assert settings.proxy_password is None
    assert settings.cache_lookups is True
    assert settings.api_base == "http://localhost:8080/api"
    assert settings.gateway_url.startswith("wss://gateway.discord.gg")


def test_cli_values_override_environment() -> None:
    settings = load_settings(
        {"DISCORD_TOKEN": "from-env", "FORUM_UPVOTE_LOG_LEVEL": "debug"},
        token="from-cli",
        log_level="WARNING",
    )
    assert settings is not None
    assert settings.token == "from-cli"
    assert settings.log_level == "WARNING"
    assert settings.cache_lookups is False


def test_settings_defaults_match_client_defaults() -> None:
    settings = Settings(token="abc")
    assert settings.gateway_url == DEFAULT_GATEWAY_URL
    assert settings.api_base == DEFAULT_API_BASE

    from_env = load_settings({"DISCORD_TOKEN": "abc"})
    assert from_env is not None
    assert from_env.gateway_url == DEFAULT_GATEWAY_URL
    assert from_env.api_base == DEFAULT_API_BASE

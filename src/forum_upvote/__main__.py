"""Command line entry point."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os

from dotenv import load_dotenv

from .app import ForumUpvoteApp
from .utils import load_settings


def main() -> None:
    parser = argparse.ArgumentParser(description="Upvote new Discord forum posts")
    parser.add_argument(
        "--token",
        help="Discord bot token. Can also be passed via DISCORD_TOKEN",
    )
    parser.add_argument("--log-level", help="Logging level (default: INFO)")
    parser.add_argument(
        "--env-file",
        default=None,
        help="Path to a .env file to load before reading the environment",
    )
    args = parser.parse_args()

    load_dotenv(args.env_file)

    settings = load_settings(os.environ, token=args.token, log_level=args.log_level)
    if settings is None:
        parser.error("Failed to get DISCORD_TOKEN: pass --token or set the environment variable")

    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    app = ForumUpvoteApp(settings)
    asyncio.run(app.run())


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""Command-line entry point: annotate one chat message."""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path

from .chat.manager import EmoteManager
from .core.settings import EmoteSettings


def setup_logging(verbose: bool = False) -> None:
    """Set up logging configuration."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )


def _load_json(path: str):
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chat-emotes",
        description="Annotate a chat message with Twitch, FFZ and BTTV emote positions.",
    )
    parser.add_argument("text", help="Raw message text")
    parser.add_argument("--emotes", default="", help="Twitch emotes tag, e.g. 25:0-4")
    parser.add_argument("--channel", default="", help="Channel the message was sent in")
    parser.add_argument("--ffz", help="FFZ room payload (JSON file)")
    parser.add_argument("--bttv", help="BTTV channel payload (JSON file)")
    parser.add_argument("--settings", help="Settings file (defaults to the user config dir)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


async def _load_catalogs(manager: EmoteManager, args: argparse.Namespace) -> None:
    if args.ffz:
        await manager.set_ffz_emotes(args.channel, _load_json(args.ffz))
    if args.bttv:
        await manager.set_bttv_emotes(args.channel, _load_json(args.bttv))


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    settings = EmoteSettings.load(Path(args.settings) if args.settings else None)
    manager = EmoteManager(settings)
    try:
        try:
            asyncio.run(_load_catalogs(manager, args))
        except (OSError, json.JSONDecodeError) as e:
            logging.error(f"Failed to read catalog payload: {e}")
            return 1

        occurrences = manager.annotate_message(args.emotes, args.text, args.channel)
        json.dump([asdict(o) for o in occurrences], sys.stdout, indent=2, ensure_ascii=False)
        sys.stdout.write("\n")
    finally:
        manager.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())

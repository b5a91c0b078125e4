#!/usr/bin/env python3
"""Headless chat session: connect, optionally autosend the prompt queue, print replies."""

from __future__ import annotations

import asyncio
import logging
import argparse
from pathlib import Path

from autochat.session import ChatSession
from autochat.state import FinalizedMessage
from autochat.runtime.logging import configure_logging
from autochat.runtime.settings_loader import load_settings
from autochat.runtime.loaders import FilePaths, ensure_default_files

logger = logging.getLogger("autochat")


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Agent chat session with timed prompt autosend")
    p.add_argument("--home", type=Path, default=None, help="Directory holding config.json and questions.json")
    p.add_argument("--cadence-ms", type=int, default=None, help="Delay between autosent prompts")
    p.add_argument("--silence-s", type=float, default=None, help="Quiet period before a reply is final")
    p.add_argument("--autosend", action="store_true", help="Send the prompt queue automatically")
    p.add_argument("--start-index", type=int, default=0, help="Prompt index to start autosend from")
    p.add_argument("--message", action="append", default=[], help="Message to send manually (repeatable)")
    p.add_argument("--duration-s", type=float, default=60.0, help="How long to keep the session open")
    p.add_argument("--debug", action="store_true", help="Verbose debug logs")
    return p.parse_args()


def _print_message(message: FinalizedMessage) -> None:
    print(f"[{message.sender.value}] {message.text}", flush=True)


async def run(args: argparse.Namespace) -> int:
    settings = load_settings(home=args.home, cadence_ms=args.cadence_ms, silence_window_s=args.silence_s)
    ensure_default_files(FilePaths.resolve(settings.files.home))

    session = ChatSession(
        settings,
        on_message=_print_message,
        on_status=lambda status: logger.info("status: %s", status.value),
    )
    async with session:
        if not session.state.config_ready:
            logger.error("config not ready; edit config.json under %s", settings.files.home)
            return 1

        for text in args.message:
            await session.submit_user_message(text)

        if args.autosend:
            session.select_index(args.start_index)
            if not await session.start():
                logger.error("autosend could not start (empty prompt queue or no connection)")

        loop = asyncio.get_running_loop()
        deadline = loop.time() + max(0.0, args.duration_s)
        while loop.time() < deadline:
            await asyncio.sleep(0.25)
            if args.autosend and not session.autosend_running and not session.state.buffers:
                break
    return 0


def main() -> None:
    args = parse_args()
    configure_logging(level="DEBUG" if args.debug else None)
    raise SystemExit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""Follow a game from the terminal: poll its state and log what a board view would show."""

import argparse
import asyncio
import logging
from typing import Optional

from ladderboard.client.poller import ConnectionStatus, GamePoller, PollUpdate, POLL_INTERVAL

logger = logging.getLogger("Ladderboard.watch")


def describe(update: PollUpdate) -> str:
    if update.state is None:
        return update.error or update.status.value
    state = update.state
    p1 = state.get("player1") or {}
    p2 = state.get("player2") or {}
    line = (
        f"{p1.get('name')}@{p1.get('position')} vs {p2.get('name')}@{p2.get('position')}"
        f" | turn: {state.get('current_turn')}"
    )
    if state.get("is_game_over"):
        line += f" | winner: {state.get('winner')}"
    return line


def log_update(update: PollUpdate) -> None:
    if update.status == ConnectionStatus.DISCONNECTED:
        logger.error(update.error)
    elif update.error:
        logger.warning(update.error)
    else:
        logger.info(describe(update))
    if update.notification:
        logger.info(update.notification)
    if update.show_winner:
        logger.info(f"*** {update.state['winner']} wins! ***")


async def watch(base_url: str, game_id: str, interval: float, ticks: Optional[int]) -> None:
    async with GamePoller(base_url, game_id, interval=interval) as poller:
        if ticks is None:
            await poller.run(log_update)
            return
        for _ in range(ticks):
            log_update(await poller.tick())
            await asyncio.sleep(interval)


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Poll a Snake & Ladder game and log its state.")
    parser.add_argument("game_id", help="Game id returned by mode selection")
    parser.add_argument("--url", default="http://localhost:8000", help="Backend base URL")
    parser.add_argument("--interval", type=float, default=POLL_INTERVAL, help="Seconds between polls")
    parser.add_argument("--ticks", type=int, default=None, help="Stop after this many polls")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )
    try:
        asyncio.run(watch(args.url, args.game_id, args.interval, args.ticks))
    except KeyboardInterrupt:
        logger.info("Stopped")


if __name__ == "__main__":
    main()

"""
Memmatch CLI - Command-line interface for the engine.

Usage:
    memmatch play [--seed N] [--delay S]     Play in the terminal
    memmatch deck [--seed N]                 Print a shuffled deck
    memmatch serve [--host H] [--port P]     Run the HTTP API
"""

from __future__ import annotations
from typing import Callable
import argparse
import sys
import time

from .config import configure_logging, get_config
from .engine_core.state import CardFace, GameSnapshot
from .session import GameLoop, LoopState, SessionManager, ClockScheduler, monotonic_clock_scheduler

GRID_COLUMNS = 4
PROGRESS_WIDTH = 24


def render_progress(snapshot: GameSnapshot, width: int = PROGRESS_WIDTH) -> str:
    """Progress bar filled to the matched fraction of its width."""
    filled = min(int(round(snapshot.progress * width)), width)
    bar = "#" * filled + "." * (width - filled)
    return f"Progress [{bar}] {snapshot.matched_pair_count}/{snapshot.total_pair_count}"


def render_board(snapshot: GameSnapshot, columns: int = GRID_COLUMNS, reveal: bool = False) -> str:
    """
    Render the grid, numbering cards from 1.

    Face-down cards show their number only; matched cards are marked with *.
    """
    cells = []
    for card in snapshot.cards:
        label = f"{card.position + 1:>2}"
        if card.face == CardFace.MATCHED:
            cells.append(f"{label} *{card.content_id:<9}")
        elif card.face == CardFace.FACE_UP:
            cells.append(f"{label}  {card.content_id:<9}")
        elif reveal:
            cells.append(f"{label} ({card.content_id:<8})")
        else:
            cells.append(f"{label}  {'?' * 9}")

    rows = [
        " | ".join(cells[i:i + columns])
        for i in range(0, len(cells), columns)
    ]
    return "\n".join(rows)


def render_screen(snapshot: GameSnapshot, reveal: bool = False) -> str:
    return "\n".join([
        "",
        "MEMORY MATCH",
        render_progress(snapshot),
        "",
        render_board(snapshot, reveal=reveal),
        "",
        "Card number to flip, 'n' new game, 'q' quit",
    ])


def run_game(
    loop: GameLoop,
    scheduler: ClockScheduler,
    read: Callable[[str], str] | None = None,
    write: Callable[[str], None] | None = None,
    sleep: Callable[[float], None] | None = None,
    reveal: bool = False,
) -> GameSnapshot:
    """
    Terminal presentation loop.

    Returns the last snapshot when the player quits or input ends.
    """
    read = read or input
    write = write or print
    sleep = sleep or time.sleep

    while True:
        snapshot = loop.snapshot()
        write(render_screen(snapshot, reveal=reveal))
        if loop.state == LoopState.GAME_OVER:
            write("All pairs matched! 'n' for a new game, 'q' to quit.")

        try:
            command = read("> ").strip().lower()
        except EOFError:
            return loop.snapshot()

        if command in ("q", "quit", "exit"):
            return loop.snapshot()
        if command in ("n", "new"):
            loop.new_game()
            continue
        if not command.isdigit():
            write(f"Pick a card number between 1 and {len(snapshot.cards)}.")
            continue

        position = int(command) - 1
        if not 0 <= position < len(snapshot.cards):
            write(f"No card {command}.")
            continue

        result = loop.choose(snapshot.cards[position].card_id)
        if not result.changed:
            write("That card is already showing.")
        elif result.matched_content_id:
            write(f"Match: {result.matched_content_id}!")
        elif result.flip_back_scheduled:
            write(render_screen(loop.snapshot(), reveal=reveal))
            write("No match.")
            sleep(loop.flip_back_delay)
            scheduler.run_due()


def main(argv: list[str] | None = None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Memmatch - Memory Matching Game",
        prog="memmatch",
    )
    parser.add_argument("--log-level", help="Logging level (default from MEMMATCH_LOG_LEVEL)")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Play command
    play_parser = subparsers.add_parser("play", help="Play in the terminal")
    play_parser.add_argument("--seed", type=int, help="Seed for a reproducible shuffle")
    play_parser.add_argument("--delay", type=float, help="Seconds a non-matching pair stays visible")
    play_parser.add_argument("--reveal", action="store_true", help="Show face-down cards (debugging)")

    # Deck command
    deck_parser = subparsers.add_parser("deck", help="Print a shuffled deck")
    deck_parser.add_argument("--seed", type=int, help="Seed for a reproducible shuffle")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port")

    args = parser.parse_args(argv)

    if args.command == "play":
        configure_logging(args.log_level or "WARNING")
        cmd_play(args)
    elif args.command == "deck":
        configure_logging(args.log_level)
        cmd_deck(args)
    elif args.command == "serve":
        configure_logging(args.log_level)
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_play(args):
    """Play in the terminal."""
    manager = SessionManager()
    session = manager.create_session(random_seed=args.seed)
    scheduler = monotonic_clock_scheduler()
    delay = args.delay if args.delay is not None else get_config().flip_back_delay
    loop = GameLoop(session, scheduler=scheduler, flip_back_delay=delay)

    try:
        run_game(loop, scheduler, reveal=args.reveal)
    except KeyboardInterrupt:
        print()
    finally:
        loop.close()
        manager.end_session(session.session_id, reason="user_ended")


def cmd_deck(args):
    """Print a shuffled deck."""
    from .games import new_flower_game

    game = new_flower_game(seed=args.seed)
    print(f"Game: {game.game_id}")
    print(f"Cards: {len(game.cards)} ({game.total_pair_count} pairs)")
    for i, card in enumerate(game.cards):
        print(f"  {i + 1:>2}. {card.content_id:<10} {card.card_id}")


def cmd_serve(args):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "memmatch.api.app:app",
        host=args.host,
        port=args.port,
        log_level=(args.log_level or get_config().log_level).lower(),
    )


if __name__ == "__main__":
    main()

"""
CLI 2048 game client for terminal play.
Run with: python play_cli.py play [-r RECORD] [-p PLAYBACK] [-s SEED] [-d DELAY]
"""
import sys
import termios
import tty
from itertools import takewhile
from pathlib import Path
from typing import NoReturn, Optional

import typer
from pydantic import ValidationError

from game import GRID_SIZE, Game2048, format_grid
from logger import SessionLogger
from replay import PlaybackInput, ReplayRecorder, first_divergence, read_replay
from session import (
    EVENT_DIRECTIONS,
    GameSession,
    InputEvent,
    SessionConfig,
    SessionStatus,
    parse_key,
)

app = typer.Typer(help="A sliding tile puzzle game with record and playback")

# tile colors cycle with the rank
COLORS = ["red", "green", "yellow", "blue", "magenta", "cyan"]


def get_key() -> str:
    """Get a single keypress from the terminal."""
    if not sys.stdin.isatty():
        # piped input: one character per key, end of input quits
        return sys.stdin.read(1) or "q"

    fd = sys.stdin.fileno()
    old_settings = termios.tcgetattr(fd)
    try:
        tty.setraw(sys.stdin.fileno())
        ch = sys.stdin.read(1)
        # Handle arrow keys (they send 3 characters: ESC [ A/B/C/D)
        if ch == "\x1b":
            ch += sys.stdin.read(2)
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)
    return ch


class KeyboardInput:
    """Live input source reading one key at a time."""

    def read_key(self) -> str:
        return get_key()

    def read_event(self) -> InputEvent:
        return parse_key(self.read_key())


def clear_screen():
    """Clear the terminal screen."""
    typer.echo("\033[2J\033[H", nl=False)


def format_tile(rank: int) -> str:
    if rank == 0:
        return "   ."
    return typer.style(f"{2**rank:4d}", fg=COLORS[rank % len(COLORS)], bold=rank < 6)


class TerminalRenderer:
    """Draws the score line and the board. Never touches the game."""

    def draw(self, game: Game2048, message: str = "") -> None:
        clear_screen()
        typer.echo(f"Score: {game.score:6d}  Turns: {game.turns:4d}")
        typer.echo()

        for row in game.grid:
            typer.echo(" ".join(format_tile(rank) for rank in row))
        typer.echo()

        if message:
            typer.echo(message)

        typer.echo("\nControls:")
        typer.echo("  ↑/W: Up    ↓/S: Down")
        typer.echo("  ←/A: Left  →/D: Right")
        typer.echo("  Q: Quit")


def fail(message: str) -> NoReturn:
    typer.echo(message, err=True)
    raise typer.Exit(code=1)


def build_config(**options) -> SessionConfig:
    # leave unset options to the config defaults (e.g. the time-based seed)
    try:
        return SessionConfig(**{k: v for k, v in options.items() if v is not None})
    except ValidationError as e:
        fail(f"Invalid configuration: {e}")


def wait_for_quit(keyboard: KeyboardInput) -> None:
    while keyboard.read_event() != InputEvent.QUIT:
        pass


@app.command()
def play(
    record: Optional[Path] = typer.Option(
        None, "--record", "-r", help="Record the session to this file"
    ),
    playback: Optional[Path] = typer.Option(
        None, "--playback", "-p", help="Play back keys from this file"
    ),
    seed: Optional[int] = typer.Option(
        None, "--seed", "-s", help="Seed for the tile generator (default: current time)"
    ),
    delay: int = typer.Option(
        250, "--delay", "-d", help="Delay in ms between moves when playing back"
    ),
    size: int = typer.Option(GRID_SIZE, "--size", help="Board dimension"),
    log_dir: Optional[Path] = typer.Option(
        None, "--log-dir", help="Directory for JSONL session logs (disabled if not set)"
    ),
):
    """Play 2048 in the terminal. Recording a playback runs silently as a batch replay."""
    config = build_config(
        record_path=record,
        playback_path=playback,
        seed=seed,
        delay_ms=delay,
        size=size,
        log_dir=log_dir,
    )

    recorder = None
    source = None
    try:
        if config.record_path is not None:
            recorder = ReplayRecorder.open(config.record_path)
        if config.playback_path is not None:
            source = PlaybackInput.open(
                config.playback_path, delay_ms=config.delay_ms, pace=not config.batch
            )
        logger = SessionLogger(config.log_dir)
    except OSError as e:
        if recorder is not None:
            recorder.close()
        if source is not None:
            source.close()
        fail(f"{e.filename}: {e.strerror}")

    renderer = None if config.batch else TerminalRenderer()
    keyboard = KeyboardInput()
    session = GameSession(
        config,
        source if source is not None else keyboard,
        renderer=renderer,
        recorder=recorder,
        logger=logger,
    )

    try:
        status = session.run()
        if config.batch:
            session.log_summary()
            return

        if status == SessionStatus.LOST:
            renderer.draw(session.game, "You lose! Press q to quit.")
            wait_for_quit(keyboard)
        clear_screen()
        session.log_summary(header=session.summary_line(), verbose=True)
    except KeyboardInterrupt:
        clear_screen()
        logger.print("\nGame interrupted. Goodbye!")
    finally:
        if recorder is not None:
            recorder.close()
        if source is not None:
            source.close()
        logger.close()


@app.command()
def verify(
    playback: Path = typer.Argument(..., help="Recorded session to check"),
    seed: int = typer.Option(..., "--seed", "-s", help="Seed the session was recorded with"),
    size: int = typer.Option(GRID_SIZE, "--size", help="Board dimension"),
):
    """Replay a recording unattended and check that every recorded score is reproduced."""
    config = build_config(playback_path=playback, seed=seed, size=size, delay_ms=0)

    try:
        entries = read_replay(config.playback_path)
        source = PlaybackInput.open(config.playback_path, delay_ms=0, pace=False)
    except OSError as e:
        fail(f"{e.filename}: {e.strerror}")

    # playback stops at the first line that is not a move
    expected = list(takewhile(lambda e: parse_key(e.key) in EVENT_DIRECTIONS, entries))

    recorder = ReplayRecorder()
    with source:
        session = GameSession(config, source, recorder=recorder, logger=SessionLogger())
        session.run()

    index = first_divergence(expected, recorder.entries)
    if index is not None:
        want = expected[index] if index < len(expected) else None
        got = recorder.entries[index] if index < len(recorder.entries) else None
        fail(f"Line {index + 1}: expected {want}, got {got}")

    session.log_summary(header=f"Reproduced {len(expected)} moves", verbose=True)
    typer.echo(format_grid(session.game.grid))


if __name__ == "__main__":
    app()

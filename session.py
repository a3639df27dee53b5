"""
Turn loop for a single 2048 session.

The controller only talks to its collaborators through small duck-typed
interfaces, so the same loop drives live terminal play, paced playback and
unattended batch replays:

    input_source.read_event() -> InputEvent
    renderer.draw(game, message="")
    recorder.append(key, score)
"""

import time
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from game import (
    GRID_SIZE,
    Board,
    Direction,
    Game2048,
    GameInvariantError,
    NoSpaceError,
    TileRandom,
)
from logger import SessionLogger


class InputEvent(Enum):
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"
    QUIT = "quit"
    UNRECOGNIZED = "unrecognized"


class SessionStatus(Enum):
    PLAYING = "playing"
    LOST = "lost"
    QUIT = "quit"


KEY_EVENTS = {
    "a": InputEvent.LEFT,
    "\x1b[D": InputEvent.LEFT,
    "d": InputEvent.RIGHT,
    "\x1b[C": InputEvent.RIGHT,
    "w": InputEvent.UP,
    "\x1b[A": InputEvent.UP,
    "s": InputEvent.DOWN,
    "\x1b[B": InputEvent.DOWN,
    "q": InputEvent.QUIT,
    # Ctrl-C, raw mode delivers it as a byte instead of a signal
    "\x03": InputEvent.QUIT,
}

EVENT_DIRECTIONS = {
    InputEvent.LEFT: Direction.LEFT,
    InputEvent.RIGHT: Direction.RIGHT,
    InputEvent.UP: Direction.UP,
    InputEvent.DOWN: Direction.DOWN,
}

CANONICAL_KEYS = {
    InputEvent.LEFT: "a",
    InputEvent.RIGHT: "d",
    InputEvent.UP: "w",
    InputEvent.DOWN: "s",
    InputEvent.QUIT: "q",
}


def parse_key(key: str) -> InputEvent:
    return KEY_EVENTS.get(key, InputEvent.UNRECOGNIZED)


def canonical_key(event: InputEvent) -> str:
    """The letter key recorded for an event, so arrow keys replay as letters."""
    return CANONICAL_KEYS[event]


class SessionConfig(BaseModel):
    """Options for one play session."""

    size: int = Field(GRID_SIZE, ge=2)
    seed: int = Field(default_factory=lambda: int(time.time()))
    record_path: Path | None = None
    playback_path: Path | None = None
    delay_ms: int = Field(250, ge=0)
    log_dir: Path | None = None

    @property
    def batch(self) -> bool:
        # recording a playback is a regression run: no display, no pacing
        return self.record_path is not None and self.playback_path is not None


class GameSession:
    """
    Drives one game from the two opening tiles until the player quits or no
    move is left.
    """

    def __init__(
        self,
        config: SessionConfig,
        input_source,
        renderer=None,
        recorder=None,
        logger: SessionLogger | None = None,
        rng=None,
    ):
        self.config = config
        self.input_source = input_source
        self.renderer = renderer
        self.recorder = recorder
        self.logger = logger
        self.rng = rng if rng is not None else TileRandom(config.seed)
        self.status = SessionStatus.PLAYING

        self.game = Game2048(Board(config.size))
        self.game.reset(self.rng)

    def step(self) -> SessionStatus:
        """Run one iteration of the loop and return the resulting status."""
        if self.status != SessionStatus.PLAYING:
            return self.status

        if self.game.is_terminal():
            self.status = SessionStatus.LOST
            return self.status

        event = self.input_source.read_event()
        if event == InputEvent.QUIT:
            self.status = SessionStatus.QUIT
            return self.status

        direction = EVENT_DIRECTIONS.get(event)
        if direction is None:
            return self.status

        if self.game.move(direction):
            try:
                self.game.add_tile(self.rng)
            except NoSpaceError as e:
                raise GameInvariantError(
                    f"board full after an effective {direction.value} move "
                    f"on turn {self.game.turns}"
                ) from e
            self._record(canonical_key(event))

        return self.status

    def _record(self, key: str) -> None:
        if self.recorder is not None:
            self.recorder.append(key, self.game.score)
        if self.logger is not None:
            self.logger.log(
                {
                    "key": key,
                    "score": self.game.score,
                    "max_tile": self.game.max_tile(),
                },
                step=self.game.turns,
                verbose=False,
            )

    def run(self) -> SessionStatus:
        while self.status == SessionStatus.PLAYING:
            if self.renderer is not None:
                self.renderer.draw(self.game)
            self.step()

        return self.status

    def log_summary(self, header: str | None = None, verbose: bool = False) -> None:
        """Log the outcome once the loop is over; echoed under `header` when verbose."""
        if self.logger is not None:
            self.logger.log(
                self.summary(), step=self.game.turns, header=header, verbose=verbose
            )

    def summary(self) -> dict:
        return {
            "outcome": self.status.value,
            "score": self.game.score,
            "turns": self.game.turns,
            "max_tile": self.game.max_tile(),
            "points_per_turn": self.game.score / self.game.turns if self.game.turns else 0.0,
            "seed": self.config.seed,
        }

    def summary_line(self) -> str:
        outcome = "lost" if self.status == SessionStatus.LOST else "quit"
        return (
            f"You {outcome} after scoring {self.game.score} points in "
            f"{self.game.turns} turns, with largest tile {self.game.max_tile()}"
        )

"""
Replay log for 2048 sessions.

A recording holds one line per effective move, `<key>:<score>`, where score is
the total score right after that move. Playing a recording back feeds the keys
to the game again; with the same seed the scores come out identical.
"""

import time
from pathlib import Path
from typing import IO, NamedTuple

from session import InputEvent, parse_key


class ReplayEntry(NamedTuple):
    key: str
    score: int | None


def format_entry(key: str, score: int) -> str:
    return f"{key}:{score}\n"


def parse_entry(line: str) -> ReplayEntry:
    """
    Parse one recorded line. The key is the first character after any leading
    spaces or tabs; anything after a ':' is the recorded score.
    Blank lines give an empty key.
    """
    stripped = line.lstrip(" \t").rstrip("\r\n")
    if not stripped:
        return ReplayEntry("", None)

    key = stripped[0]
    score = None
    _, sep, rest = stripped[1:].partition(":")
    if sep:
        try:
            score = int(rest.strip())
        except ValueError:
            score = None
    return ReplayEntry(key, score)


def read_replay(path: str | Path) -> list[ReplayEntry]:
    with open(path) as f:
        return [parse_entry(line) for line in f]


def first_divergence(
    expected: list[ReplayEntry], actual: list[ReplayEntry]
) -> int | None:
    """
    Index of the first entry where two recordings disagree, or None if they match.
    A recording that stops early diverges at the index where it ran out.
    """
    for i, (want, got) in enumerate(zip(expected, actual)):
        if want != got:
            return i
    if len(expected) != len(actual):
        return min(len(expected), len(actual))
    return None


class ReplayRecorder:
    """
    Append-only sink for the replay log. Every line is flushed as it is
    written so a crashed session still leaves a usable recording.
    """

    def __init__(self, stream: IO[str] | None = None):
        self._stream = stream
        self.entries: list[ReplayEntry] = []

    @classmethod
    def open(cls, path: str | Path) -> "ReplayRecorder":
        return cls(open(path, "w"))

    def append(self, key: str, score: int) -> None:
        self.entries.append(ReplayEntry(key, score))
        if self._stream is not None:
            self._stream.write(format_entry(key, score))
            self._stream.flush()

    def close(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class PlaybackInput:
    """
    Input source that reads recorded keys one line at a time.
    Unrecognized or blank lines, and the end of the file, read as quit so that
    playback always terminates.
    """

    def __init__(self, stream: IO[str], delay_ms: int = 250, pace: bool = True):
        self._stream = stream
        self.delay_ms = delay_ms
        self.pace = pace
        self.line_number = 0
        self.last_entry: ReplayEntry | None = None

    @classmethod
    def open(
        cls, path: str | Path, delay_ms: int = 250, pace: bool = True
    ) -> "PlaybackInput":
        return cls(open(path), delay_ms=delay_ms, pace=pace)

    def read_key(self) -> str:
        line = self._stream.readline()
        if self.pace:
            time.sleep(self.delay_ms / 1000)
        if not line:
            self.last_entry = None
            return "q"

        self.line_number += 1
        self.last_entry = parse_entry(line)
        return self.last_entry.key

    def read_event(self) -> InputEvent:
        event = parse_key(self.read_key())
        if event == InputEvent.UNRECOGNIZED:
            return InputEvent.QUIT
        return event

    def close(self) -> None:
        self._stream.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

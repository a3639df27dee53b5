"""Session logging utilities for 2048 games."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any

import typer


class SessionLogger:
    """
    A session logger that logs game events to:
    1. stdout (formatted as "  key: value") - only when verbose
    2. JSONL file (one JSON object per line) - only if log_dir is provided

    Usage:
        logger = SessionLogger(log_dir="./logs")

        # quiet call while the board is on screen, file only
        logger.log({
            "key": "a",
            "score": 1234,
            "max_tile": 128,
        }, step=100, verbose=False)

        # end of game, echoed and written
        logger.log({"score": 1234, "points_per_turn": 7.5}, step=164, header="Game over")

        # output:
        # Game over
        #   score: 1234
        #   points_per_turn: 7.50
    """

    def __init__(
        self,
        log_dir: str | Path | None = None,
        experiment_name: str = "session",
    ):
        """
        Initialize the session logger.

        Args:
            log_dir: Directory for JSONL logs. If None, file logging is disabled.
            experiment_name: Base name for log files (e.g., "session" -> "session_20260101_001.jsonl")
        """
        self.log_file = None
        self._file_handle = None

        # set up log directory only if provided
        if log_dir is not None:
            self.log_dir = Path(log_dir)
            self.log_dir.mkdir(parents=True, exist_ok=True)

            # find unique filename
            self.log_file = self._get_unique_filename(experiment_name)
            self._file_handle = open(self.log_file, "a")

    def _get_unique_filename(self, base_name: str) -> Path:
        """Find a unique filename by incrementing suffix if file exists."""
        timestamp = datetime.now().strftime("%Y%m%d")
        suffix = 1

        while True:
            filename = self.log_dir / f"{base_name}_{timestamp}_{suffix:03d}.jsonl"
            if not filename.exists():
                return filename
            suffix += 1

    def _format_value(self, value: Any) -> str:
        """Format a value for console output."""
        if isinstance(value, float):
            if abs(value) < 0.01 or abs(value) >= 10000:
                return f"{value:.2e}"
            return f"{value:.2f}"
        return str(value)

    def log(
        self,
        metrics: dict[str, Any],
        step: int | None = None,
        header: str | None = None,
        verbose: bool = True,
    ) -> None:
        """
        Log metrics to the JSONL file, optionally to stdout.

        Args:
            metrics: Dictionary of metric name -> value.
            step: Optional step number (the turn counter during a game).
            header: Optional line echoed above the metrics.
            verbose: If True, also print to stdout. If False, only log to file.
        """
        if verbose:
            if header is not None:
                typer.echo(header)

            for key, value in metrics.items():
                formatted = self._format_value(value)
                typer.echo(f"  {key}: {formatted}")

        # write to JSONL file only if file handle exists
        if self._file_handle is not None:
            log_entry = {"step": step, "timestamp": datetime.now().isoformat()}
            log_entry.update(metrics)

            self._file_handle.write(json.dumps(log_entry) + "\n")
            self._file_handle.flush()

    def print(self, message: str = "", err: bool = False) -> None:
        """Print a raw message to stdout (or stderr), never to the file."""
        typer.echo(message, err=err)

    def close(self) -> None:
        """Close the file handle."""
        if self._file_handle:
            self._file_handle.close()
            self._file_handle = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

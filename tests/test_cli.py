import json

import pytest
from typer.testing import CliRunner

import play_cli
from game import Board, Game2048
from play_cli import app, format_tile
from replay import read_replay
from session import GameSession

from conftest import CHECKERBOARD

runner = CliRunner()


@pytest.fixture
def keys_file(tmp_path):
    path = tmp_path / "keys.txt"
    path.write_text("a\ns\nd\nw\n" * 30)
    return path


def record(tmp_path, keys_file, seed=7, *extra):
    out = tmp_path / "out.rec"
    result = runner.invoke(
        app, ["play", "-r", str(out), "-p", str(keys_file), "-s", str(seed), *extra]
    )
    return result, out


def test_batch_run_is_silent_and_records(tmp_path, keys_file):
    result, out = record(tmp_path, keys_file)

    assert result.exit_code == 0
    assert result.output == ""
    entries = read_replay(out)
    assert entries
    assert all(entry.key in "asdw" for entry in entries)
    scores = [entry.score for entry in entries]
    assert scores == sorted(scores)


def test_batch_runs_are_reproducible(tmp_path, keys_file):
    _, out = record(tmp_path, keys_file, 31)
    first = out.read_text()
    _, out = record(tmp_path, keys_file, 31)

    assert out.read_text() == first


def test_verify_accepts_recording(tmp_path, keys_file):
    _, out = record(tmp_path, keys_file, 99)

    result = runner.invoke(app, ["verify", str(out), "-s", "99"])
    assert result.exit_code == 0
    assert f"Reproduced {len(read_replay(out))} moves" in result.output
    assert "  outcome: quit" in result.output


def test_verify_reports_tampered_score(tmp_path, keys_file):
    _, out = record(tmp_path, keys_file, 5)
    lines = out.read_text().splitlines()
    key, _, score = lines[2].partition(":")
    lines[2] = f"{key}:{int(score) + 2}"
    out.write_text("\n".join(lines) + "\n")

    result = runner.invoke(app, ["verify", str(out), "-s", "5"])
    assert result.exit_code == 1
    assert "Line 3" in result.output


def test_missing_playback_file_fails(tmp_path):
    result = runner.invoke(app, ["play", "-p", str(tmp_path / "missing.txt")])
    assert result.exit_code == 1


def test_unwritable_record_path_fails(tmp_path, keys_file):
    bad = tmp_path / "no" / "such" / "dir" / "out.rec"
    result = runner.invoke(app, ["play", "-r", str(bad), "-p", str(keys_file)])

    assert result.exit_code == 1
    assert not bad.exists()


def test_negative_delay_is_a_config_error(keys_file):
    result = runner.invoke(app, ["play", "-p", str(keys_file), "--delay=-5"])
    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


def test_malformed_seed_is_rejected(keys_file):
    result = runner.invoke(app, ["play", "-p", str(keys_file), "-s", "abc"])
    assert result.exit_code != 0


def test_batch_run_writes_session_log(tmp_path, keys_file):
    log_dir = tmp_path / "logs"
    result, out = record(tmp_path, keys_file, 7, "--log-dir", str(log_dir))

    assert result.exit_code == 0
    (log_file,) = log_dir.glob("session_*.jsonl")
    lines = [json.loads(line) for line in log_file.read_text().splitlines()]
    assert len(lines) == len(read_replay(out)) + 1
    assert lines[-1]["seed"] == 7


def test_format_tile():
    assert format_tile(0) == "   ."
    assert "2048" in format_tile(11)


class StuckSession(GameSession):
    """Starts on a full board where nothing can move."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.game = Game2048(Board(4, CHECKERBOARD), score=36, turns=12)


class InterruptedSession(GameSession):
    def run(self):
        raise KeyboardInterrupt


def test_playback_ending_in_quit_prints_summary(tmp_path):
    keys = tmp_path / "keys.txt"
    keys.write_text("a\nd\nq\n")

    result = runner.invoke(app, ["play", "-p", str(keys), "-d", "0", "-s", "3"])

    assert result.exit_code == 0
    assert "Score:" in result.output
    assert "Controls:" in result.output
    assert "You quit after scoring" in result.output
    assert "  outcome: quit" in result.output


def test_lost_game_waits_for_quit_key(monkeypatch, keys_file):
    monkeypatch.setattr(play_cli, "GameSession", StuckSession)

    result = runner.invoke(
        app, ["play", "-p", str(keys_file), "-d", "0", "-s", "3"], input="xq"
    )

    assert result.exit_code == 0
    assert "You lose! Press q to quit." in result.output
    assert (
        "You lost after scoring 36 points in 12 turns, with largest tile 4"
        in result.output
    )


def test_keyboard_play_quits_on_ctrl_c_byte():
    result = runner.invoke(app, ["play", "-s", "1"], input="x\x03")

    assert result.exit_code == 0
    assert "You quit after scoring 0 points in 0 turns" in result.output


def test_keyboard_play_quits_at_end_of_input():
    result = runner.invoke(app, ["play", "-s", "1"], input="")

    assert result.exit_code == 0
    assert "You quit after scoring" in result.output


def test_interrupt_says_goodbye(monkeypatch, tmp_path):
    monkeypatch.setattr(play_cli, "GameSession", InterruptedSession)
    rec = tmp_path / "out.rec"

    result = runner.invoke(app, ["play", "-r", str(rec), "-s", "1"], input="q")

    assert result.exit_code == 0
    assert "Game interrupted. Goodbye!" in result.output
    assert rec.read_text() == ""

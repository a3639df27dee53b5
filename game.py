GRID_SIZE = 4

Grid = list[list[int]]
from enum import Enum
import random


class Direction(Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"


class NoSpaceError(Exception):
    """Raised when a tile is spawned onto a board with no empty cell."""


class GameInvariantError(RuntimeError):
    """The engine reached a state that correct sequencing can never produce."""


class TileRandom:
    """
    Seeded source for the two random draws the game makes:
    which empty cell receives a new tile, and which rank that tile gets.
    """

    def __init__(self, seed: int | None = None):
        self._random = random.Random(seed)

    def seed(self, value: int) -> None:
        self._random.seed(value)

    def next_empty_index(self, n: int) -> int:
        if n <= 0:
            raise ValueError(f"need at least one empty cell, got {n}")
        return self._random.randrange(n)

    def next_tile_rank(self) -> int:
        # 9 in 10 draws give a 2 (rank 1), the rest a 4 (rank 2)
        return 1 if self._random.randrange(10) else 2


class Board:
    """
    Square grid of tile ranks where cell value = 2^rank.
    Empty cells are represented as 0.
    """

    def __init__(self, size: int = GRID_SIZE, cells: Grid | None = None):
        if size < 2:
            raise ValueError(f"board size must be at least 2, got {size}")
        self.size = size

        if cells is None:
            self.rows = [[0 for _ in range(size)] for _ in range(size)]
            return

        # otherwise we have to validate the given cells
        if len(cells) != size or any(len(row) != size for row in cells):
            raise ValueError(f"cells must form a {size}x{size} grid")
        if any(rank < 0 for row in cells for rank in row):
            raise ValueError("tile ranks cannot be negative")
        self.rows = [list(row) for row in cells]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self.size == other.size and self.rows == other.rows

    def __repr__(self) -> str:
        return f"Board(size={self.size}, cells={self.rows!r})"

    def copy(self) -> "Board":
        return Board(self.size, self.rows)

    def flat(self) -> list[int]:
        """Row-major view of every cell, for counting and scanning."""
        return [rank for row in self.rows for rank in row]

    def empty_count(self) -> int:
        return sum(1 for rank in self.flat() if rank == 0)

    def max_rank(self) -> int:
        return max(self.flat())

    def spawn_tile(self, rng) -> None:
        """
        Place a new tile in a random empty cell.
        The empty cell is picked by scanning row-major and skipping `index` empties.
        Raises NoSpaceError if the board is full.
        """
        num_empty = self.empty_count()
        if not num_empty:
            raise NoSpaceError("no empty cell to place a tile in")

        index = rng.next_empty_index(num_empty)
        for r, row in enumerate(self.rows):
            for c, rank in enumerate(row):
                if rank:
                    continue
                if index == 0:
                    self.rows[r][c] = rng.next_tile_rank()
                    return
                index -= 1

    def rotate_clockwise(self) -> None:
        old = [row[:] for row in self.rows]
        n = self.size
        self.rows = [[old[n - c - 1][r] for c in range(n)] for r in range(n)]

    @staticmethod
    def deflate_row_left(row: list[int]) -> bool:
        """Slide the non-empty tiles of a row to the left. Returns True if any tile moved."""
        compacted = [rank for rank in row if rank != 0]
        compacted += [0] * (len(row) - len(compacted))
        changed = compacted != row
        row[:] = compacted
        return changed

    @staticmethod
    def combine_row_left(row: list[int]) -> tuple[bool, int]:
        """
        Merge equal neighbours left-to-right, each tile merging at most once.
        The left tile is raised by one rank and the right one is emptied.
        Returns (merged_any, points) where points = sum of the merged tile values.
        """
        merged = False
        points = 0
        for c in range(1, len(row)):
            if row[c] and row[c - 1] == row[c]:
                row[c - 1] += 1
                row[c] = 0
                points += 2 ** row[c - 1]
                merged = True
        return merged, points


class Game2048:
    board: Board
    score: int
    turns: int

    def __init__(self, board: Board | None = None, score: int = 0, turns: int = 0):
        self.board = board if board is not None else Board()
        self.score = score
        self.turns = turns

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Game2048):
            return NotImplemented
        return (self.board, self.score, self.turns) == (
            other.board,
            other.score,
            other.turns,
        )

    def __repr__(self) -> str:
        return f"Game2048(score={self.score}, turns={self.turns}, board={self.board!r})"

    @property
    def grid(self) -> Grid:
        return self.board.rows

    def copy(self) -> "Game2048":
        return Game2048(self.board.copy(), self.score, self.turns)

    def reset(self, rng) -> None:
        """Reset the game to initial state with 2 random tiles."""
        self.board = Board(self.board.size)
        self.score = 0
        self.turns = 0
        self.add_tile(rng)
        self.add_tile(rng)

    def add_tile(self, rng) -> None:
        self.board.spawn_tile(rng)

    def max_tile(self) -> int:
        return 2 ** self.board.max_rank()

    def move_left(self) -> bool:
        """
        Shift every row left: deflate, combine, deflate again.
        The turn counter only advances when some row actually changed.
        """
        effective = False
        for row in self.board.rows:
            changed = Board.deflate_row_left(row)
            merged, points = Board.combine_row_left(row)
            self.score += points
            changed |= merged
            changed |= Board.deflate_row_left(row)
            effective |= changed

        if effective:
            self.turns += 1
        return effective

    def _rotated_move_left(self, before: int, after: int) -> bool:
        for _ in range(before):
            self.board.rotate_clockwise()
        effective = self.move_left()
        for _ in range(after):
            self.board.rotate_clockwise()
        return effective

    def move_right(self) -> bool:
        return self._rotated_move_left(2, 2)

    def move_up(self) -> bool:
        return self._rotated_move_left(3, 1)

    def move_down(self) -> bool:
        return self._rotated_move_left(1, 3)

    def move(self, direction: Direction) -> bool:
        if direction == Direction.LEFT:
            return self.move_left()
        elif direction == Direction.RIGHT:
            return self.move_right()
        elif direction == Direction.UP:
            return self.move_up()
        elif direction == Direction.DOWN:
            return self.move_down()
        raise ValueError(f"Invalid direction: {direction}")

    def is_terminal(self) -> bool:
        """True when no direction can change the board. Works on a throwaway copy."""
        test_game = self.copy()
        start_turns = test_game.turns
        test_game.move_left()
        test_game.move_up()
        test_game.move_down()
        test_game.move_right()
        return test_game.turns == start_turns


def format_grid(grid: Grid, indent: str = "  ") -> str:
    """
    Format a 2048 grid for pretty printing.
    Grid contains exponents (0 = empty, 1 = 2, 2 = 4, etc.)
    """
    lines = []
    size = len(grid)
    # Find max width needed for any cell
    max_val = max(2**cell if cell > 0 else 0 for row in grid for cell in row)
    cell_width = max(4, len(str(max_val)) + 1)
    rule = "─" * (cell_width * size + size - 1)

    lines.append(indent + "┌" + rule + "┐")

    for i, row in enumerate(grid):
        cells = []
        for cell in row:
            if cell == 0:
                cells.append(".".center(cell_width))
            else:
                cells.append(str(2**cell).center(cell_width))
        lines.append(indent + "│" + "│".join(cells) + "│")
        if i < size - 1:
            lines.append(indent + "├" + rule + "┤")

    lines.append(indent + "└" + rule + "┘")

    return "\n".join(lines)

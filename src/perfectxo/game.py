"""Board model for PerfectXO: placement, win/draw detection and move listing."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple

Player = str  # "X" or "O"

EMPTY = " "
SYMBOLS: Tuple[Player, Player] = ("X", "O")
SIZE = 3

# Fixed scan order: rows top to bottom, columns left to right, then diagonals.
WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


class Move(NamedTuple):
    row: int
    col: int


def other(symbol: Player) -> Player:
    """Return the opposing symbol."""
    if symbol not in SYMBOLS:
        raise ValueError(f"Unknown symbol {symbol!r}")
    return "O" if symbol == "X" else "X"


# ---------- Errors ----------


class PlacementError(ValueError):
    """A move could not be applied to the board."""


class OutOfRange(PlacementError):
    def __init__(self, move: Tuple[int, int]):
        super().__init__(f"Cell {tuple(move)} is outside the 3x3 grid")
        self.move = move


class OccupiedCell(PlacementError):
    def __init__(self, move: Tuple[int, int], symbol: Player):
        super().__init__(f"Cell {tuple(move)} is already taken by {symbol}")
        self.move = move
        self.symbol = symbol


# ---------- Outcome ----------


class Status(str, Enum):
    IN_PROGRESS = "in_progress"
    WIN = "win"
    DRAW = "draw"


@dataclass(frozen=True)
class Outcome:
    status: Status
    winner: Optional[Player] = None

    @property
    def terminal(self) -> bool:
        return self.status is not Status.IN_PROGRESS

    @classmethod
    def win(cls, symbol: Player) -> "Outcome":
        return cls(Status.WIN, symbol)


IN_PROGRESS = Outcome(Status.IN_PROGRESS)
DRAW = Outcome(Status.DRAW)


# ---------- Board ----------


@dataclass
class Board:
    # Row-major: cells[row * 3 + col] is 'X', 'O', or ' ' (space) for empty
    cells: List[str] = field(default_factory=lambda: [EMPTY] * (SIZE * SIZE))

    @classmethod
    def from_rows(cls, rows: Iterable[str]) -> "Board":
        """Build a board from three 3-character strings, e.g. ``["XX ", "OO ", "   "]``.

        ``"_"`` and ``"."`` are accepted as aliases for an empty cell.
        """
        rows = list(rows)
        if len(rows) != SIZE or any(len(row) != SIZE for row in rows):
            raise ValueError("Board needs exactly three rows of three cells")
        cells: List[str] = []
        for row in rows:
            for c in row:
                c = EMPTY if c in "_." else c.upper()
                if c != EMPTY and c not in SYMBOLS:
                    raise ValueError(f"Unexpected cell value {c!r}")
                cells.append(c)
        return cls(cells=cells)

    def rows(self) -> List[str]:
        return ["".join(self.cells[r * SIZE : (r + 1) * SIZE]) for r in range(SIZE)]

    def __str__(self) -> str:
        return "\n".join(row.replace(EMPTY, ".") for row in self.rows())

    def get(self, move: Tuple[int, int]) -> str:
        return self.cells[_index(move)]

    def place(self, move: Tuple[int, int], symbol: Player) -> None:
        if symbol not in SYMBOLS:
            raise ValueError(f"Unknown symbol {symbol!r}")
        idx = _index(move)
        current = self.cells[idx]
        if current != EMPTY:
            raise OccupiedCell(move, current)
        self.cells[idx] = symbol

    def available_moves(self) -> List[Move]:
        """Empty cells in row-major order."""
        return [Move(*divmod(i, SIZE)) for i, c in enumerate(self.cells) if c == EMPTY]

    def is_full(self) -> bool:
        return all(c != EMPTY for c in self.cells)

    def winning_line(self) -> Optional[Tuple[Move, Move, Move]]:
        for line in WINNING_LINES:
            a, b, c = line
            v = self.cells[a]
            if v != EMPTY and v == self.cells[b] == self.cells[c]:
                return tuple(Move(*divmod(i, SIZE)) for i in line)  # type: ignore[return-value]
        return None

    def winner(self) -> Optional[Player]:
        for a, b, c in WINNING_LINES:
            v = self.cells[a]
            if v != EMPTY and v == self.cells[b] == self.cells[c]:
                return v
        return None

    def outcome(self) -> Outcome:
        winner = self.winner()
        if winner is not None:
            return Outcome.win(winner)
        if self.is_full():
            return DRAW
        return IN_PROGRESS

    def counts(self) -> Dict[Player, int]:
        return {s: self.cells.count(s) for s in SYMBOLS}

    def clone(self) -> "Board":
        return Board(cells=self.cells.copy())

    def clear(self) -> None:
        self.cells[:] = [EMPTY] * (SIZE * SIZE)


def _index(move: Tuple[int, int]) -> int:
    row, col = move
    if not (0 <= row < SIZE and 0 <= col < SIZE):
        raise OutOfRange(move)
    return row * SIZE + col

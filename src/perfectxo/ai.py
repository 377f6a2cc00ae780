"""Exhaustive minimax opponent for PerfectXO."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .game import SYMBOLS, Board, Move, Player, Status

logger = logging.getLogger(__name__)

WIN_SCORE = 10


class NoMovesAvailable(RuntimeError):
    """The engine was asked to move on a board that admits no move."""


@dataclass
class MinimaxAI:
    """AI player that searches the full game tree.

    ``player`` is the maximizing side (the computer), ``opponent`` the
    minimizing side (the human). Terminal scores are biased by depth so that
    faster wins and slower losses are preferred; among equal scores the first
    move in row-major order wins.
    """

    player: Player
    opponent: Player
    nodes_searched: int = field(default=0, repr=False)

    def __post_init__(self) -> None:
        if self.player not in SYMBOLS or self.opponent not in SYMBOLS:
            raise ValueError(f"Symbols must be one of {SYMBOLS}")
        if self.player == self.opponent:
            raise ValueError("Computer and human cannot share a symbol")

    # ---- public API ----

    def choose(self, board: Board) -> Move:
        if not board.available_moves():
            raise NoMovesAvailable("No empty cell left on the board")
        if board.outcome().terminal:
            raise NoMovesAvailable("Game is already decided")

        self.nodes_searched = 0
        # Search works on its own copy; the caller's board is never touched.
        score, move = self.search(board.clone(), 0, True)
        if move is None:
            raise NoMovesAvailable("Search found no move")
        logger.debug(
            "%s chose %s (score %d, %d nodes)",
            self.player,
            tuple(move),
            score,
            self.nodes_searched,
        )
        return move

    # ---- core search ----

    def search(
        self, board: Board, depth: int, maximizing: bool
    ) -> Tuple[int, Optional[Move]]:
        self.nodes_searched += 1
        if board.outcome().terminal:
            return self.evaluate(board, depth), None

        symbol = self.player if maximizing else self.opponent
        # Outside the +-WIN_SCORE range, so the first move always replaces it.
        best_score = -WIN_SCORE - 1 if maximizing else WIN_SCORE + 1
        best_move: Optional[Move] = None

        for move in board.available_moves():
            child = board.clone()
            child.place(move, symbol)
            score, _ = self.search(child, depth + 1, not maximizing)
            # Strict comparison keeps the first move reaching the best score.
            if (maximizing and score > best_score) or (
                not maximizing and score < best_score
            ):
                best_score, best_move = score, move

        return best_score, best_move

    def evaluate(self, board: Board, depth: int) -> int:
        outcome = board.outcome()
        if outcome.status is Status.WIN:
            if outcome.winner == self.player:
                return WIN_SCORE - depth
            return depth - WIN_SCORE
        return 0


def choose_move(board: Board, computer: Player, human: Player) -> Move:
    """Best move for ``computer`` on ``board`` against ``human``."""
    return MinimaxAI(player=computer, opponent=human).choose(board)

"""Game session: owns the board, the symbol assignment and the turn flow."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from .ai import choose_move
from .game import SYMBOLS, Board, Move, OccupiedCell, Outcome, Player, other

logger = logging.getLogger(__name__)

# The symbol that makes the first move of a game.
OPENING_SYMBOL: Player = "X"


class Phase(str, Enum):
    CHOOSING_SYMBOL = "choosing_symbol"
    PLAYER_TURN = "player_turn"
    COMPUTER_TURN = "computer_turn"
    TERMINAL = "terminal"


class SessionError(ValueError):
    """An action does not fit the current state of the session."""


class TurnError(SessionError):
    """An action was attempted in the wrong phase."""


@dataclass
class GameSession:
    """One human against the computer, from symbol choice through resets.

    The session is the only writer of its board. Computer moves are computed
    on a snapshot and applied with :meth:`apply_computer_move`, which drops
    results produced before the latest :meth:`reset`.
    """

    board: Board = field(default_factory=Board)
    human: Optional[Player] = None
    computer: Optional[Player] = None
    phase: Phase = Phase.CHOOSING_SYMBOL
    generation: int = 0
    move_log: List[Tuple[Player, Move]] = field(default_factory=list)

    # ---- queries ----

    @property
    def outcome(self) -> Outcome:
        return self.board.outcome()

    @property
    def is_over(self) -> bool:
        return self.phase is Phase.TERMINAL

    @property
    def last_move(self) -> Optional[Tuple[Player, Move]]:
        return self.move_log[-1] if self.move_log else None

    # ---- transitions ----

    def choose_symbol(self, symbol: Player) -> Phase:
        if self.phase is not Phase.CHOOSING_SYMBOL:
            raise TurnError("Symbols have already been chosen")
        if symbol not in SYMBOLS:
            raise SessionError(f"Symbol must be one of {', '.join(SYMBOLS)}")

        self.human = symbol
        self.computer = other(symbol)
        if self.computer == OPENING_SYMBOL:
            self._enter(Phase.COMPUTER_TURN)
        else:
            self._enter(Phase.PLAYER_TURN)
        return self.phase

    def play(self, move: Tuple[int, int]) -> bool:
        """Apply a human move. Returns False if the cell was already taken."""
        if self.phase is not Phase.PLAYER_TURN:
            raise TurnError(f"Cannot play during {self.phase.value}")
        human, _ = self._symbols()

        move = Move(*move)
        try:
            self.board.place(move, human)
        except OccupiedCell:
            logger.debug("Ignoring click on occupied cell %s", tuple(move))
            return False

        self._after_move(human, move, Phase.COMPUTER_TURN)
        return True

    def snapshot(self) -> Tuple[int, Board]:
        return self.generation, self.board.clone()

    def apply_computer_move(self, move: Tuple[int, int], generation: int) -> bool:
        """Apply a move computed from :meth:`snapshot`; stale results are dropped."""
        if generation != self.generation:
            logger.info(
                "Discarding computer move %s from generation %d (now %d)",
                tuple(move),
                generation,
                self.generation,
            )
            return False
        if self.phase is not Phase.COMPUTER_TURN:
            logger.info("Discarding computer move %s during %s", tuple(move), self.phase.value)
            return False
        _, computer = self._symbols()

        move = Move(*move)
        self.board.place(move, computer)
        self._after_move(computer, move, Phase.PLAYER_TURN)
        return True

    def computer_turn(self) -> Move:
        """Run the engine synchronously and apply its move."""
        if self.phase is not Phase.COMPUTER_TURN:
            raise TurnError(f"Computer cannot move during {self.phase.value}")
        human, computer = self._symbols()

        generation, board = self.snapshot()
        move = choose_move(board, computer, human)
        self.apply_computer_move(move, generation)
        return move

    def reset(self) -> None:
        """Clear the board for another game; the human moves first."""
        if self.phase is Phase.CHOOSING_SYMBOL:
            raise TurnError("Choose a symbol before resetting")
        self.board.clear()
        self.move_log.clear()
        self.generation += 1
        self._enter(Phase.PLAYER_TURN)

    # ---- helpers ----

    def _symbols(self) -> Tuple[Player, Player]:
        if self.human is None or self.computer is None:
            raise TurnError("Choose a symbol first")
        return self.human, self.computer

    def _after_move(self, symbol: Player, move: Move, next_phase: Phase) -> None:
        self.move_log.append((symbol, move))
        outcome = self.board.outcome()
        if outcome.terminal:
            logger.info("Game over: %s %s", outcome.status.value, outcome.winner or "")
            self._enter(Phase.TERMINAL)
        else:
            self._enter(next_phase)

    def _enter(self, phase: Phase) -> None:
        logger.debug("Session phase %s -> %s", self.phase.value, phase.value)
        self.phase = phase

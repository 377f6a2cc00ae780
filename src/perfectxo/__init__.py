"""PerfectXO package exposing the board model, the minimax opponent, and the web application."""

from .ai import MinimaxAI, NoMovesAvailable, choose_move
from .game import Board, Move, OccupiedCell, Outcome, OutOfRange, PlacementError
from .session import GameSession, Phase
from .ui import app

__all__ = [
    "Board",
    "GameSession",
    "MinimaxAI",
    "Move",
    "NoMovesAvailable",
    "OccupiedCell",
    "OutOfRange",
    "Outcome",
    "Phase",
    "PlacementError",
    "app",
    "choose_move",
]

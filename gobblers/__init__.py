# Rules engine and heuristic AI for Gobblet Gobblers

from gobblers.ai import MoveReason, choose_move
from gobblers.analysis import Advantage, PositionAnalysis, analyze_position, predict_next_move
from gobblers.board import Board, top_of
from gobblers.errors import GobblersError, InvalidMoveError, InvalidSnapshotError, Rejection
from gobblers.evaluation import evaluate
from gobblers.explain import explain_move, get_move_explanation
from gobblers.game import ActionResult, AITurnTicket, GameSession
from gobblers.history import MoveRecord
from gobblers.moves import Move, MoveKind, generate_legal_moves, move_to_notation, simulate
from gobblers.rules import can_cover, compute_winner, is_legal_placement, is_legal_relocation
from gobblers.types import GameMode, GameStatus, Piece, Player, Position, Size

__all__ = [
    "AITurnTicket",
    "Advantage",
    "ActionResult",
    "Board",
    "GameMode",
    "GameSession",
    "GameStatus",
    "GobblersError",
    "InvalidMoveError",
    "InvalidSnapshotError",
    "Move",
    "MoveKind",
    "MoveReason",
    "MoveRecord",
    "Piece",
    "Player",
    "Position",
    "PositionAnalysis",
    "Rejection",
    "Size",
    "analyze_position",
    "can_cover",
    "choose_move",
    "compute_winner",
    "evaluate",
    "explain_move",
    "generate_legal_moves",
    "get_move_explanation",
    "is_legal_placement",
    "is_legal_relocation",
    "move_to_notation",
    "predict_next_move",
    "simulate",
    "top_of",
]

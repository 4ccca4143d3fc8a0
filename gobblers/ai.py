"""
Heuristic computer opponent.

The AI walks an ordered list of strategies and plays the first move any of
them proposes:

    win > block > fork > block fork > opening book > positional fallback

Each strategy is a plain function ``(board, legal_moves, side) -> Move | None``
so stages can be tested on their own. This is not a search: a
strategy looks at most one reply ahead.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Sequence

from gobblers.board import Board
from gobblers.evaluation import count_threats, evaluate, find_completion_cell
from gobblers.moves import Move, generate_legal_moves, move_to_notation, simulate
from gobblers.rules import compute_winner, is_legal_placement
from gobblers.types import CENTER, CORNERS, Piece, Player, Size

logger = logging.getLogger(__name__)

OPENING_PIECE_LIMIT = 3
FORK_THREATS = 2


class MoveReason(str, Enum):
    """Why the AI picked a move. Values are the explanation tags."""

    WIN_MOVE = "winMove"
    BLOCK_WIN = "blockWin"
    CREATE_FORK = "createFork"
    BLOCK_FORK = "blockFork"
    OPENING_MOVE = "openingMove"
    CORNER_CONTROL = "cornerControl"
    CENTER_CONTROL = "centerControl"
    STRATEGIC_ADVANTAGE = "strategicAdvantage"
    FALLBACK_MOVE = "fallbackMove"


Strategy = Callable[[Board, Sequence[Move], Player], Move | None]


def _tag(move: Move, reason: MoveReason) -> Move:
    return move.with_reason(reason.value)


def _smallest(moves: Sequence[Move]) -> Move:
    """First move using the smallest piece."""
    return min(moves, key=lambda m: m.piece.size.value)


def _best_scored(board: Board, moves: Sequence[Move], side: Player) -> Move:
    """First move with the highest evaluation after it is played."""
    return max(moves, key=lambda m: evaluate(simulate(board, m), side))


def find_winning_move(board: Board, moves: Sequence[Move], side: Player) -> Move | None:
    """Find a move that wins the game immediately."""
    for move in moves:
        if compute_winner(simulate(board, move)) == side:
            return _tag(move, MoveReason.WIN_MOVE)
    return None


def find_blocking_move(board: Board, moves: Sequence[Move], side: Player) -> Move | None:
    """
    Occupy the cell the opponent needs to complete a line.

    Larger blockers are preferred since they are harder to gobble back.
    """
    cell = find_completion_cell(board, side.opponent())
    if cell is None:
        return None
    blockers = [m for m in moves if m.to_pos == cell]
    if not blockers:
        return None
    return _tag(max(blockers, key=lambda m: m.piece.size.value), MoveReason.BLOCK_WIN)


def find_fork_move(board: Board, moves: Sequence[Move], side: Player) -> Move | None:
    """Find a move leaving two or more open threats at once."""
    for move in moves:
        if count_threats(simulate(board, move), side) >= FORK_THREATS:
            return _tag(move, MoveReason.CREATE_FORK)
    return None


def has_fork_drop(board: Board, player: Player) -> bool:
    """
    Whether ``player`` could create a fork with a single drop.

    The drop is always modelled as a Large piece on any cell the player does
    not already top, whatever the player actually has left. This is an
    approximation and can be wrong in both directions.
    """
    phantom = Piece(f"{player.value}-L-sim", player, Size.LARGE, is_reserved=False)
    for pos in board.all_positions():
        top = board.get_top(pos)
        if top is not None and top.owner == player:
            continue
        trial = board.copy()
        trial.push(phantom, pos)
        if count_threats(trial, player) >= FORK_THREATS:
            return True
    return False


def find_block_fork_move(board: Board, moves: Sequence[Move], side: Player) -> Move | None:
    """Take away an opponent fork that is available right now."""
    opponent = side.opponent()
    # Narrower than "first move that leaves no fork drop": without an
    # existing fork drop every move would qualify and shadow the opening book.
    if not has_fork_drop(board, opponent):
        return None
    for move in moves:
        if not has_fork_drop(simulate(board, move), opponent):
            return _tag(move, MoveReason.BLOCK_FORK)
    return None


def find_opening_move(board: Board, moves: Sequence[Move], side: Player) -> Move | None:
    """Opening book for the first few plies, always using the smallest viable piece."""
    on_board = board.count_pieces()
    if on_board >= OPENING_PIECE_LIMIT:
        return None

    placements = [m for m in moves if m.is_from_reserve]
    center = board.get_top(CENTER)

    if on_board == 0 and center is None:
        center_moves = [m for m in placements if m.to_pos == CENTER]
        if center_moves:
            return _tag(_smallest(center_moves), MoveReason.OPENING_MOVE)

    if center is not None and center.owner != side:
        corner_moves = [m for m in placements if m.to_pos in CORNERS]
        if corner_moves:
            return _tag(_smallest(corner_moves), MoveReason.CORNER_CONTROL)

    return None


def find_positional_move(board: Board, moves: Sequence[Move], side: Player) -> Move | None:
    """Center if free, else a corner, else whatever comes first."""
    if board.is_empty(CENTER):
        center_moves = [m for m in moves if m.to_pos == CENTER]
        if center_moves:
            return _tag(_best_scored(board, center_moves, side), MoveReason.CENTER_CONTROL)

    corner_moves = [m for m in moves if m.to_pos in CORNERS]
    if corner_moves:
        return _tag(_best_scored(board, corner_moves, side), MoveReason.CORNER_CONTROL)

    if moves:
        return _tag(moves[0], MoveReason.STRATEGIC_ADVANTAGE)
    return None


STRATEGIES: list[Strategy] = [
    find_winning_move,
    find_blocking_move,
    find_fork_move,
    find_block_fork_move,
    find_opening_move,
    find_positional_move,
]


def emergency_move(board: Board, reserve: Sequence[Piece], side: Player) -> Move | None:
    """Drop the largest reserved piece on the first cell that accepts it."""
    reserved = [p for p in reserve if p.owner == side and p.is_reserved]
    if not reserved:
        return None
    piece = max(reserved, key=lambda p: p.size.value)
    for row, col in board.all_positions():
        if is_legal_placement(board, piece, row, col):
            return Move(piece=piece, to_pos=(row, col), reason=MoveReason.FALLBACK_MOVE.value)
    return None


def choose_move(
    board: Board,
    reserve: Sequence[Piece],
    side: Player,
    strategies: Sequence[Strategy] = STRATEGIES,
) -> Move | None:
    """
    Pick the AI's move for ``side``.

    Returns None when the side has no legal move at all; the caller decides
    what a stalled turn means. Failures inside the strategies are logged and
    answered with :func:`emergency_move` instead of being raised.
    """
    try:
        moves = generate_legal_moves(board, reserve, side)
        if not moves:
            logger.info("No legal move available for %s", side.value)
            return None
        for strategy in strategies:
            move = strategy(board, moves, side)
            if move is not None:
                logger.debug("%s plays %s (%s)", side.value, move_to_notation(move), move.reason)
                return move
        return None
    except Exception:
        logger.exception("AI decision failed for %s, falling back", side.value)
        return emergency_move(board, reserve, side)

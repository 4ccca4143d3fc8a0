"""
Heuristic position evaluation.

Scores are from ``side``'s point of view. A decided game short-circuits to
plus or minus ``weights.win``; otherwise threats outweigh positional terms,
which in turn outweigh the tie-breaking material terms.
"""

from __future__ import annotations

from functools import lru_cache

from gobblers.board import Board
from gobblers.config import EvaluationWeights, load_weights
from gobblers.rules import compute_winner, line_tops
from gobblers.types import CENTER, CORNERS, STARTING_PIECES, Piece, Player, Position, Size


@lru_cache(maxsize=1)
def default_weights() -> EvaluationWeights:
    return load_weights()


def is_line_threat(pieces: list[Piece | None], side: Player) -> bool:
    """Two of the side's tops and one empty slot."""
    own = sum(1 for p in pieces if p is not None and p.owner == side)
    empty = sum(1 for p in pieces if p is None)
    return own == 2 and empty == 1


def count_threats(board: Board, side: Player) -> int:
    return sum(1 for _, pieces in line_tops(board) if is_line_threat(pieces, side))


def find_completion_cell(board: Board, side: Player) -> Position | None:
    """The empty cell ``side`` would fill to complete a line, first line found."""
    for line, pieces in line_tops(board):
        if is_line_threat(pieces, side):
            return line[pieces.index(None)]
    return None


def reserved_count(board: Board, side: Player, size: Size) -> int:
    """Pieces of a size still in reserve; every player starts with a fixed set."""
    return STARTING_PIECES[size] - board.count_on_board(side, size)


def reserve_potential(board: Board, side: Player) -> int:
    """Large pieces in reserve count double, Medium pieces once."""
    return 2 * reserved_count(board, side, Size.LARGE) + reserved_count(board, side, Size.MEDIUM)


def gobbling_potential(board: Board, side: Player) -> int:
    """Exposed opponent Small (2) and Medium (1) tops; Large tops are safe."""
    potential = 0
    for pos in board.all_positions():
        top = board.get_top(pos)
        if top is None or top.owner == side:
            continue
        if top.size == Size.SMALL:
            potential += 2
        elif top.size == Size.MEDIUM:
            potential += 1
    return potential


def size_advantage(board: Board, side: Player) -> int:
    """Sum of own top sizes minus the opponent's."""
    total = 0
    for pos in board.all_positions():
        top = board.get_top(pos)
        if top is not None:
            total += top.size.value if top.owner == side else -top.size.value
    return total


def controlled_positions(board: Board, side: Player) -> int:
    tops = (board.get_top(pos) for pos in board.all_positions())
    return sum(1 for top in tops if top is not None and top.owner == side)


def _signed(piece: Piece, side: Player, value: int) -> int:
    return value if piece.owner == side else -value


def evaluate(board: Board, side: Player, weights: EvaluationWeights | None = None) -> int:
    """Score a board for ``side``; higher is better."""
    w = weights or default_weights()
    opponent = side.opponent()

    winner = compute_winner(board)
    if winner == side:
        return w.win
    if winner == opponent:
        return -w.win

    score = 0

    center = board.get_top(CENTER)
    if center is not None:
        center_bonus = {
            Size.SMALL: w.center_size_small,
            Size.MEDIUM: w.center_size_medium,
            Size.LARGE: w.center_size_large,
        }[center.size]
        score += _signed(center, side, w.center_control + center_bonus)

    score += count_threats(board, side) * w.own_threat
    score -= count_threats(board, opponent) * w.opponent_threat

    corner_bonus = {Size.SMALL: w.corner_small, Size.MEDIUM: w.corner_medium, Size.LARGE: w.corner_large}
    for pos in CORNERS:
        piece = board.get_top(pos)
        if piece is not None:
            score += _signed(piece, side, corner_bonus[piece.size])

    score += (controlled_positions(board, side) - controlled_positions(board, opponent)) * w.controlled_position
    score += (reserve_potential(board, side) - reserve_potential(board, opponent)) * w.reserve_potential
    score += gobbling_potential(board, side) * w.gobbling_potential
    score += size_advantage(board, side) * w.size_advantage

    return score

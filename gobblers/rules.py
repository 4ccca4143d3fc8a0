"""
Pure rule checks for Gobblet Gobblers.

Nothing here mutates a board. Legality helpers come in two flavours: the
``*_rejection`` functions report why an action is illegal, and the
``is_legal_*`` predicates wrap them for callers that only need a yes/no.
"""

from __future__ import annotations

from typing import Iterator

from gobblers.board import Board
from gobblers.errors import Rejection
from gobblers.types import Piece, Player, Position, Size, in_bounds

WINNING_LINES: list[list[Position]] = [
    # Rows
    [(0, 0), (0, 1), (0, 2)],
    [(1, 0), (1, 1), (1, 2)],
    [(2, 0), (2, 1), (2, 2)],
    # Columns
    [(0, 0), (1, 0), (2, 0)],
    [(0, 1), (1, 1), (2, 1)],
    [(0, 2), (1, 2), (2, 2)],
    # Diagonals
    [(0, 0), (1, 1), (2, 2)],
    [(0, 2), (1, 1), (2, 0)],
]


def can_cover(attacker: Size, defender: Size) -> bool:
    """True iff the attacker is strictly larger. Equal sizes never gobble."""
    return attacker.can_gobble(defender)


def placement_rejection(board: Board, piece: Piece, row: int, col: int) -> Rejection | None:
    if not in_bounds(row, col):
        return Rejection.OUT_OF_BOUNDS
    top = board.get_top((row, col))
    # Ownership of the covered piece does not matter.
    if top is not None and not can_cover(piece.size, top.size):
        return Rejection.PIECE_TOO_SMALL
    return None


def is_legal_placement(board: Board, piece: Piece, row: int, col: int) -> bool:
    return placement_rejection(board, piece, row, col) is None


def relocation_rejection(
    board: Board, piece: Piece, from_row: int, from_col: int, to_row: int, to_col: int
) -> Rejection | None:
    if not in_bounds(from_row, from_col):
        return Rejection.OUT_OF_BOUNDS
    top = board.get_top((from_row, from_col))
    if top is None or top.id != piece.id:
        return Rejection.NOT_TOP_PIECE
    if (from_row, from_col) == (to_row, to_col):
        return Rejection.SAME_CELL
    return placement_rejection(board, piece, to_row, to_col)


def is_legal_relocation(
    board: Board, piece: Piece, from_row: int, from_col: int, to_row: int, to_col: int
) -> bool:
    return relocation_rejection(board, piece, from_row, from_col, to_row, to_col) is None


def line_tops(board: Board) -> Iterator[tuple[list[Position], list[Piece | None]]]:
    """Yield every winning line with its top pieces, rows first, then columns, then diagonals."""
    for line in WINNING_LINES:
        yield line, [board.get_top(pos) for pos in line]


def _line_owner(pieces: list[Piece | None]) -> Player | None:
    if any(p is None for p in pieces):
        return None
    owners = {p.owner for p in pieces}  # type: ignore[union-attr]
    return owners.pop() if len(owners) == 1 else None


def compute_winner(board: Board) -> Player | None:
    """
    Check if there's a winner (3 in a row of visible pieces).

    Returns the owner of the first complete line found. A board holding
    complete lines for both players is not resolved any further.
    """
    for _, pieces in line_tops(board):
        owner = _line_owner(pieces)
        if owner is not None:
            return owner
    return None


def winning_lines(board: Board, player: Player) -> list[list[Position]]:
    """Get all complete lines for a player."""
    return [line for line, pieces in line_tops(board) if _line_owner(pieces) == player]

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Sequence

from gobblers.board import Board
from gobblers.errors import InvalidMoveError
from gobblers.rules import is_legal_placement, is_legal_relocation
from gobblers.types import Piece, Player, Position, in_bounds


class MoveKind(Enum):
    PLACE = "place"
    MOVE = "move"


@dataclass(frozen=True)
class Move:
    """
    Represents a move in the game.

    A move is either:
    - Place from reserve: from_pos is None
    - Move on board: from_pos is the source position

    In both cases, to_pos is the destination. ``reason`` is the tag the AI
    attaches to explain why it picked the move.
    """

    piece: Piece
    to_pos: Position
    from_pos: Position | None = None  # None means place from reserve
    reason: str | None = None

    @property
    def player(self) -> Player:
        return self.piece.owner

    @property
    def is_from_reserve(self) -> bool:
        """True if this move places a piece from reserve."""
        return self.from_pos is None

    @property
    def kind(self) -> MoveKind:
        return MoveKind.PLACE if self.is_from_reserve else MoveKind.MOVE

    def with_reason(self, reason: str) -> Move:
        return replace(self, reason=reason)

    def __repr__(self) -> str:
        return move_to_notation(self)


def generate_legal_moves(board: Board, reserve: Sequence[Piece], side: Player) -> list[Move]:
    """
    Generate all legal moves for a side.

    Placements come first (reserve order, then rows 0..2, cols 0..2),
    followed by relocations of the side's visible pieces in row-major order
    of their cells.
    """
    moves: list[Move] = []

    # Moves from reserve
    for piece in reserve:
        if piece.owner != side or not piece.is_reserved:
            continue
        for row, col in board.all_positions():
            if is_legal_placement(board, piece, row, col):
                moves.append(Move(piece=piece, to_pos=(row, col)))

    # Moves from board (moving visible pieces owned by the side)
    for from_pos in board.all_positions():
        top = board.get_top(from_pos)
        if top is None or top.owner != side:
            continue
        for to_pos in board.all_positions():
            if is_legal_relocation(board, top, *from_pos, *to_pos):
                moves.append(Move(piece=top, to_pos=to_pos, from_pos=from_pos))

    return moves


def simulate(board: Board, move: Move) -> Board:
    """
    Return the board that results from playing ``move``.

    The input board is never mutated. Coordinates outside the grid, or a
    relocation whose source top is not the moving piece, raise
    InvalidMoveError.
    """
    if not in_bounds(*move.to_pos):
        raise InvalidMoveError(f"Destination out of bounds: {move!r}")

    new_board = board.copy()
    if move.from_pos is not None:
        if not in_bounds(*move.from_pos):
            raise InvalidMoveError(f"Source out of bounds: {move!r}")
        top = new_board.get_top(move.from_pos)
        if top is None or top.id != move.piece.id:
            raise InvalidMoveError(f"{move.piece.id} is not on top of {move.from_pos}")
        new_board.pop(move.from_pos)

    new_board.push(move.piece.on_board(), move.to_pos)
    return new_board


def move_to_notation(move: Move) -> str:
    """
    Convert a move to coordinate-based notation.

    Reserve placement: L(1,1), S(0,2), M(2,1)
    Board move: (0,0)→(2,2), (1,1)→(0,0)
    """
    to_row, to_col = move.to_pos
    if move.from_pos is None:
        return f"{move.piece.size.code}({to_row},{to_col})"
    from_row, from_col = move.from_pos
    return f"({from_row},{from_col})→({to_row},{to_col})"

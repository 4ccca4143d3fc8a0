from __future__ import annotations

from typing import Iterator, Sequence

from gobblers.types import BOARD_SIZE, Piece, Player, Position, Size

Cell = list[Piece]


def top_of(cell: Sequence[Piece]) -> Piece | None:
    """Return the top (visible) piece of a cell, or None if it is empty."""
    return cell[-1] if cell else None


class Board:
    """
    The 3x3 playing grid.

    Each cell holds a stack of pieces where index 0 is the bottom and -1 is
    the top (visible). Buried pieces are kept so that relocating a piece
    uncovers whatever it was gobbling.
    """

    def __init__(self, grid: list[list[Cell]] | None = None) -> None:
        if grid is None:
            grid = [[[] for _ in range(BOARD_SIZE)] for _ in range(BOARD_SIZE)]
        self._grid: list[list[Cell]] = grid

    def copy(self) -> Board:
        """Copy the board. Pieces are immutable, so copying stacks is enough."""
        return Board([[list(stack) for stack in row] for row in self._grid])

    # --- Access ---

    def get_stack(self, pos: Position) -> Cell:
        """Get the stack of pieces at a position (bottom to top)."""
        row, col = pos
        return self._grid[row][col]

    def get_top(self, pos: Position) -> Piece | None:
        """Get the top (visible) piece at a position, or None if empty."""
        return top_of(self.get_stack(pos))

    def is_empty(self, pos: Position) -> bool:
        return len(self.get_stack(pos)) == 0

    def tops(self) -> list[list[Piece | None]]:
        """Grid of top pieces."""
        return [[top_of(stack) for stack in row] for row in self._grid]

    def rows(self) -> list[list[Cell]]:
        return self._grid

    # --- Modification ---

    def push(self, piece: Piece, pos: Position) -> None:
        """Place a piece on top of the stack at position."""
        self.get_stack(pos).append(piece)

    def pop(self, pos: Position) -> Piece:
        """Remove and return the top piece from a position."""
        return self.get_stack(pos).pop()

    # --- Queries ---

    @staticmethod
    def all_positions() -> Iterator[Position]:
        """Iterate over all board positions in row-major order."""
        for row in range(BOARD_SIZE):
            for col in range(BOARD_SIZE):
                yield (row, col)

    def find_piece(self, piece_id: str) -> tuple[Position, int] | None:
        """Locate a piece by id; returns (position, stack index) or None."""
        for pos in self.all_positions():
            for index, piece in enumerate(self.get_stack(pos)):
                if piece.id == piece_id:
                    return pos, index
        return None

    def count_pieces(self) -> int:
        return sum(len(self.get_stack(pos)) for pos in self.all_positions())

    def pieces_of(self, player: Player) -> list[Piece]:
        """All pieces of a player on the board, buried ones included."""
        return [
            piece
            for pos in self.all_positions()
            for piece in self.get_stack(pos)
            if piece.owner == player
        ]

    def count_on_board(self, player: Player, size: Size) -> int:
        return sum(1 for piece in self.pieces_of(player) if piece.size == size)

    # --- Comparison and display ---

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self._grid == other._grid

    def __repr__(self) -> str:
        lines = ["  0   1   2"]
        for row in range(BOARD_SIZE):
            row_str = f"{row} "
            for col in range(BOARD_SIZE):
                top = self.get_top((row, col))
                row_str += ".. " if top is None else f"{top!r} "
            lines.append(row_str)
        return "\n".join(lines)

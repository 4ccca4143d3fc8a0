from __future__ import annotations

from dataclasses import dataclass

from gobblers.board import Board
from gobblers.moves import MoveKind
from gobblers.types import GameStatus, Piece, Player, Position, Size

FrozenBoard = tuple[tuple[tuple[Piece, ...], ...], ...]


@dataclass(frozen=True)
class MoveRecord:
    """One entry of the move log. Records are only ever appended."""

    player: Player
    kind: MoveKind
    piece_id: str
    piece_size: Size
    to_pos: Position
    from_pos: Position | None = None
    reason_tag: str | None = None
    timestamp: int = 0


@dataclass(frozen=True)
class HistorySnapshot:
    """
    Immutable copy of the core session fields used by undo/redo.

    UI-only fields (analysis mode, explanations) are not part of it.
    """

    board: FrozenBoard
    reserves: tuple[tuple[Player, tuple[Piece, ...]], ...]
    current_turn: Player
    status: GameStatus
    winner: Player | None
    selected_piece_id: str | None
    move_log: tuple[MoveRecord, ...]

    def thaw_board(self) -> Board:
        return Board([[list(stack) for stack in row] for row in self.board])

    def thaw_reserves(self) -> dict[Player, list[Piece]]:
        return {player: list(pieces) for player, pieces in self.reserves}


def freeze_board(board: Board) -> FrozenBoard:
    return tuple(tuple(tuple(stack) for stack in row) for row in board.rows())


def freeze_reserves(reserves: dict[Player, list[Piece]]) -> tuple[tuple[Player, tuple[Piece, ...]], ...]:
    return tuple((player, tuple(reserves[player])) for player in Player)

"""
Save-file format.

A saved game is a JSON object with camelCase keys::

    {
      "board": [[[piece, ...], ...3 cells], ...3 rows],
      "pieces": {"Red": [piece, ...], "Blue": [piece, ...]},
      "currentTurn": "Red",
      "gameMode": "local",
      "gameStatus": "in-progress",
      "winner": null,
      "moveHistory": [record, ...]
    }

where a piece is ``{"id", "player", "size", "isReserved"}``. ``pieces`` lists
the reserved pieces only; older files that list every piece with an
``isOffBoard``/``isReserved`` flag are accepted and placed pieces are dropped
from the reserve on load, and a record's tag may be stored as ``explanation``.
Undo/redo stacks and UI state are never saved.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from gobblers.board import Board
from gobblers.errors import InvalidSnapshotError
from gobblers.history import MoveRecord
from gobblers.moves import MoveKind
from gobblers.types import (
    BOARD_SIZE,
    STARTING_PIECES,
    GameMode,
    GameStatus,
    Piece,
    Player,
    Position,
    Size,
)

SizeCode = Literal["S", "M", "L"]


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class PieceModel(_Model):
    id: str
    player: Player
    size: SizeCode
    is_reserved: bool = Field(
        default=True,
        validation_alias=AliasChoices("isReserved", "isOffBoard", "is_reserved"),
        serialization_alias="isReserved",
    )

    @classmethod
    def from_piece(cls, piece: Piece) -> PieceModel:
        return cls(id=piece.id, player=piece.owner, size=piece.size.code, is_reserved=piece.is_reserved)

    def to_piece(self) -> Piece:
        return Piece(self.id, self.player, Size.from_code(self.size), self.is_reserved)


class CellRefModel(_Model):
    row: int = Field(ge=0, lt=BOARD_SIZE)
    col: int = Field(ge=0, lt=BOARD_SIZE)

    def to_pos(self) -> Position:
        return (self.row, self.col)


class MovedPieceModel(_Model):
    id: str
    size: SizeCode


class MoveRecordModel(_Model):
    player: Player
    move_type: MoveKind = Field(alias="moveType")
    piece: MovedPieceModel
    from_: CellRefModel | None = Field(default=None, alias="from")
    to: CellRefModel
    reason_tag: str | None = Field(
        default=None,
        validation_alias=AliasChoices("reasonTag", "explanation", "reason_tag"),
        serialization_alias="reasonTag",
    )
    timestamp: int = 0

    @classmethod
    def from_record(cls, record: MoveRecord) -> MoveRecordModel:
        return cls(
            player=record.player,
            move_type=record.kind,
            piece=MovedPieceModel(id=record.piece_id, size=record.piece_size.code),
            from_=None if record.from_pos is None else CellRefModel(row=record.from_pos[0], col=record.from_pos[1]),
            to=CellRefModel(row=record.to_pos[0], col=record.to_pos[1]),
            reason_tag=record.reason_tag,
            timestamp=record.timestamp,
        )

    def to_record(self) -> MoveRecord:
        return MoveRecord(
            player=self.player,
            kind=self.move_type,
            piece_id=self.piece.id,
            piece_size=Size.from_code(self.piece.size),
            to_pos=self.to.to_pos(),
            from_pos=None if self.from_ is None else self.from_.to_pos(),
            reason_tag=self.reason_tag,
            timestamp=self.timestamp,
        )


class SavedGameModel(_Model):
    board: list[list[list[PieceModel]]]
    pieces: dict[Player, list[PieceModel]]
    current_turn: Player = Field(alias="currentTurn")
    game_mode: GameMode = Field(alias="gameMode")
    game_status: GameStatus = Field(alias="gameStatus")
    winner: Player | None = None
    move_history: list[MoveRecordModel] = Field(default_factory=list, alias="moveHistory")

    @field_validator("board")
    @classmethod
    def _three_by_three(cls, board: list[list[list[PieceModel]]]) -> list[list[list[PieceModel]]]:
        if len(board) != BOARD_SIZE or any(len(row) != BOARD_SIZE for row in board):
            raise ValueError("board must be a 3x3 grid")
        return board

    @field_validator("move_history", mode="before")
    @classmethod
    def _missing_history(cls, value: Any) -> Any:
        return [] if value is None else value


@dataclass
class LoadedGame:
    """Core fields recovered from a save file."""

    board: Board
    reserves: dict[Player, list[Piece]]
    current_turn: Player
    mode: GameMode
    status: GameStatus
    winner: Player | None
    move_log: list[MoveRecord]


def dump_game(
    board: Board,
    reserves: dict[Player, list[Piece]],
    current_turn: Player,
    mode: GameMode,
    status: GameStatus,
    winner: Player | None,
    move_log: list[MoveRecord],
) -> dict[str, Any]:
    """Build the JSON-ready save payload."""
    model = SavedGameModel(
        board=[[[PieceModel.from_piece(p) for p in stack] for stack in row] for row in board.rows()],
        pieces={player: [PieceModel.from_piece(p) for p in reserves[player]] for player in Player},
        current_turn=current_turn,
        game_mode=mode,
        game_status=status,
        winner=winner,
        move_history=[MoveRecordModel.from_record(r) for r in move_log],
    )
    return model.model_dump(mode="json", by_alias=True)


def _check_inventory(board: Board, reserves: dict[Player, list[Piece]]) -> None:
    """Every player owns exactly the starting set and every id appears once."""
    all_pieces = [p for pos in board.all_positions() for p in board.get_stack(pos)]
    for player, pieces in reserves.items():
        if any(p.owner != player for p in pieces):
            raise InvalidSnapshotError(f"reserve of {player.value} holds a foreign piece")
        all_pieces.extend(pieces)

    ids = Counter(p.id for p in all_pieces)
    duplicated = sorted(piece_id for piece_id, count in ids.items() if count > 1)
    if duplicated:
        raise InvalidSnapshotError(f"duplicate piece ids: {', '.join(duplicated)}")

    for player in Player:
        owned = Counter(p.size for p in all_pieces if p.owner == player)
        if owned != Counter(STARTING_PIECES):
            raise InvalidSnapshotError(f"{player.value} does not own exactly 2 pieces of each size")

    for pos in board.all_positions():
        stack = board.get_stack(pos)
        for lower, upper in zip(stack, stack[1:]):
            if not upper.can_gobble(lower):
                raise InvalidSnapshotError(f"stack at {pos} is not ordered small to large")


def parse_game(payload: Any) -> LoadedGame:
    """
    Validate a save payload and rebuild the core fields.

    Raises InvalidSnapshotError on any schema or consistency problem.
    """
    try:
        model = SavedGameModel.model_validate(payload)
    except ValidationError as e:
        raise InvalidSnapshotError(f"Invalid saved game: {e}") from e

    board = Board([[[p.to_piece().on_board() for p in stack] for stack in row] for row in model.board])
    reserves: dict[Player, list[Piece]] = {player: [] for player in Player}
    for player, pieces in model.pieces.items():
        reserves[player] = [p.to_piece() for p in pieces if p.is_reserved]

    _check_inventory(board, reserves)

    if model.game_status == GameStatus.WIN and model.winner is None:
        raise InvalidSnapshotError("a won game must name its winner")

    return LoadedGame(
        board=board,
        reserves=reserves,
        current_turn=model.current_turn,
        mode=model.game_mode,
        status=model.game_status,
        winner=model.winner,
        move_log=[r.to_record() for r in model.move_history],
    )

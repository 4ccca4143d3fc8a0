from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

from gobblers.ai import choose_move
from gobblers.board import Board
from gobblers.errors import Rejection
from gobblers.explain import explain_move
from gobblers.history import HistorySnapshot, MoveRecord, freeze_board, freeze_reserves
from gobblers.moves import Move, MoveKind, generate_legal_moves
from gobblers.rules import compute_winner, placement_rejection, relocation_rejection
from gobblers.serialization import dump_game, parse_game
from gobblers.types import GameMode, GameStatus, Piece, Player, Position, initial_reserves

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class ActionResult:
    """Result of a session action. Falsy when the action was rejected."""

    ok: bool
    rejection: Rejection | None = None
    winner: Player | None = None
    move: Move | None = None

    @staticmethod
    def rejected(rejection: Rejection) -> ActionResult:
        return ActionResult(ok=False, rejection=rejection)

    def __bool__(self) -> bool:
        return self.ok


@dataclass(frozen=True)
class AITurnTicket:
    """
    A pending AI turn.

    The ticket remembers the session version it was issued at; if anything
    changed the game before it is played, it is discarded.
    """

    side: Player
    version: int


class GameSession:
    """
    A game of Gobblet Gobblers with undo/redo.

    The session is the only owner of the board, reserves and history.
    Actions never raise for illegal input: they return a falsy
    :class:`ActionResult` naming the :class:`Rejection` and leave the game
    untouched.
    """

    def __init__(self, mode: GameMode = GameMode.LOCAL, clock: Callable[[], int] = _now_ms) -> None:
        self._clock = clock
        self.version = 0
        self.init_game(mode)

    # --- Lifecycle ---

    def init_game(self, mode: GameMode = GameMode.LOCAL) -> None:
        """Start a fresh game. Red moves first."""
        self.board = Board()
        self.reserves: dict[Player, list[Piece]] = initial_reserves()
        self.current_turn = Player.RED
        self.status = GameStatus.IN_PROGRESS
        self.winner: Player | None = None
        self.selected_piece_id: str | None = None
        self.move_log: list[MoveRecord] = []
        self.mode = mode
        self.analysis_mode = False
        # UI-only state, never part of history snapshots
        self.pending_reason: str | None = None
        self.last_explanation: str | None = None
        self._undo: list[HistorySnapshot] = []
        self._redo: list[HistorySnapshot] = []
        self.version += 1

    def set_game_mode(self, mode: GameMode) -> None:
        self.mode = mode
        self.version += 1

    def toggle_analysis_mode(self) -> bool:
        self.analysis_mode = not self.analysis_mode
        self.version += 1
        return self.analysis_mode

    @property
    def free_play(self) -> bool:
        """In analysis mode against the AI a human drives both sides and turns do not advance."""
        return self.mode == GameMode.AI and self.analysis_mode

    def may_act(self, player: Player) -> bool:
        return self.free_play or player == self.current_turn

    def is_over(self) -> bool:
        return self.status != GameStatus.IN_PROGRESS

    # --- Piece lookup ---

    def find_piece(self, piece_id: str) -> tuple[Piece, Position | None] | None:
        """Find a piece by id; the position is None for reserved pieces."""
        for pieces in self.reserves.values():
            for piece in pieces:
                if piece.id == piece_id:
                    return piece, None
        located = self.board.find_piece(piece_id)
        if located is None:
            return None
        pos, index = located
        return self.board.get_stack(pos)[index], pos

    def _reject(self, rejection: Rejection, action: str) -> ActionResult:
        logger.info("Rejected %s: %s", action, rejection.value)
        return ActionResult.rejected(rejection)

    # --- Actions ---

    def select_piece(self, piece_id: str | None) -> ActionResult:
        """Select a piece of the acting side, or clear the selection."""
        if piece_id is None:
            self.selected_piece_id = None
            return ActionResult(ok=True)

        found = self.find_piece(piece_id)
        if found is None:
            self.selected_piece_id = None
            return self._reject(Rejection.UNKNOWN_PIECE, "select")
        piece, _ = found
        if not self.may_act(piece.owner):
            self.selected_piece_id = None
            return self._reject(Rejection.NOT_YOUR_PIECE, "select")

        self.selected_piece_id = piece_id
        return ActionResult(ok=True)

    def _selected(self, action: str) -> tuple[Piece, Position | None] | ActionResult:
        if self.is_over():
            return self._reject(Rejection.GAME_OVER, action)
        if self.selected_piece_id is None:
            return self._reject(Rejection.NO_SELECTION, action)
        found = self.find_piece(self.selected_piece_id)
        if found is None:
            return self._reject(Rejection.UNKNOWN_PIECE, action)
        if not self.may_act(found[0].owner):
            return self._reject(Rejection.NOT_YOUR_PIECE, action)
        return found

    def place_piece(self, row: int, col: int) -> ActionResult:
        """Place the selected reserved piece at (row, col)."""
        selected = self._selected("place")
        if isinstance(selected, ActionResult):
            return selected
        piece, pos = selected
        if pos is not None or not piece.is_reserved:
            return self._reject(Rejection.PIECE_NOT_IN_RESERVE, "place")
        rejection = placement_rejection(self.board, piece, row, col)
        if rejection is not None:
            return self._reject(rejection, "place")

        self._remember()
        reserve = self.reserves[piece.owner]
        reserve[:] = [p for p in reserve if p.id != piece.id]
        self.board.push(piece.on_board(), (row, col))
        return self._finish(piece, MoveKind.PLACE, (row, col))

    def move_piece(self, from_row: int, from_col: int, to_row: int, to_col: int) -> ActionResult:
        """Relocate the selected piece, which must be on top of (from_row, from_col)."""
        selected = self._selected("move")
        if isinstance(selected, ActionResult):
            return selected
        piece, pos = selected
        if pos is None:
            return self._reject(Rejection.PIECE_IN_RESERVE, "move")
        rejection = relocation_rejection(self.board, piece, from_row, from_col, to_row, to_col)
        if rejection is not None:
            return self._reject(rejection, "move")

        self._remember()
        self.board.pop((from_row, from_col))
        self.board.push(piece, (to_row, to_col))
        return self._finish(piece, MoveKind.MOVE, (to_row, to_col), (from_row, from_col))

    def apply_move(self, move: Move) -> ActionResult:
        """Select the move's piece and play it."""
        selected = self.select_piece(move.piece.id)
        if not selected:
            return selected
        if move.from_pos is None:
            result = self.place_piece(*move.to_pos)
        else:
            result = self.move_piece(*move.from_pos, *move.to_pos)
        if not result:
            return result
        return ActionResult(ok=True, winner=result.winner, move=move)

    def _finish(self, piece: Piece, kind: MoveKind, to_pos: Position, from_pos: Position | None = None) -> ActionResult:
        self.move_log.append(
            MoveRecord(
                player=piece.owner,
                kind=kind,
                piece_id=piece.id,
                piece_size=piece.size,
                to_pos=to_pos,
                from_pos=from_pos,
                reason_tag=self.pending_reason,
                timestamp=self._clock(),
            )
        )
        self.pending_reason = None
        self.selected_piece_id = None
        self.version += 1

        winner = compute_winner(self.board)
        if winner is not None:
            self.status = GameStatus.WIN
            self.winner = winner
            logger.info("%s wins after %d moves", winner.value, len(self.move_log))
            return ActionResult(ok=True, winner=winner)

        if not self.free_play:
            self.current_turn = self.current_turn.opponent()
        return ActionResult(ok=True)

    def check_win(self) -> Player | None:
        """Re-check the board for a winner and record it."""
        if self.is_over():
            return self.winner
        winner = compute_winner(self.board)
        if winner is not None:
            self.status = GameStatus.WIN
            self.winner = winner
            self.version += 1
        return winner

    def declare_draw(self) -> ActionResult:
        """End the game as a draw. The engine never detects draws by itself."""
        if self.is_over():
            return self._reject(Rejection.GAME_OVER, "draw")
        self._remember()
        self.status = GameStatus.DRAW
        self.selected_piece_id = None
        self.version += 1
        return ActionResult(ok=True)

    def set_move_explanation(self, reason_tag: str | None) -> None:
        """Attach a reason tag to the next recorded move."""
        self.pending_reason = reason_tag

    def legal_moves(self, side: Player | None = None) -> list[Move]:
        if self.is_over():
            return []
        side = side or self.current_turn
        return generate_legal_moves(self.board, self.reserves[side], side)

    # --- History ---

    def _snapshot(self) -> HistorySnapshot:
        return HistorySnapshot(
            board=freeze_board(self.board),
            reserves=freeze_reserves(self.reserves),
            current_turn=self.current_turn,
            status=self.status,
            winner=self.winner,
            selected_piece_id=self.selected_piece_id,
            move_log=tuple(self.move_log),
        )

    def _restore(self, snapshot: HistorySnapshot) -> None:
        self.board = snapshot.thaw_board()
        self.reserves = snapshot.thaw_reserves()
        self.current_turn = snapshot.current_turn
        self.status = snapshot.status
        self.winner = snapshot.winner
        self.selected_piece_id = snapshot.selected_piece_id
        self.move_log = list(snapshot.move_log)
        self.version += 1

    def _remember(self) -> None:
        """Push the pre-action state; a new action makes redo impossible."""
        self._undo.append(self._snapshot())
        self._redo.clear()

    def can_undo(self) -> bool:
        return len(self._undo) > 0

    def can_redo(self) -> bool:
        return len(self._redo) > 0

    def undo(self) -> bool:
        """Step back one action. Returns False when there is nothing to undo."""
        if not self._undo:
            return False
        self._redo.append(self._snapshot())
        self._restore(self._undo.pop())
        return True

    def redo(self) -> bool:
        """Replay an undone action. Returns False when there is nothing to redo."""
        if not self._redo:
            return False
        self._undo.append(self._snapshot())
        self._restore(self._redo.pop())
        return True

    # --- Persistence ---

    def save_game(self) -> dict[str, Any]:
        """Export the game (no history stacks, no UI state)."""
        return dump_game(
            self.board,
            self.reserves,
            self.current_turn,
            self.mode,
            self.status,
            self.winner,
            self.move_log,
        )

    def load_game(self, snapshot: Any) -> None:
        """
        Replace the game with a saved one.

        Raises InvalidSnapshotError without touching the session if the
        payload is malformed. Analysis mode is kept as it is.
        """
        loaded = parse_game(snapshot)
        self.board = loaded.board
        self.reserves = loaded.reserves
        self.current_turn = loaded.current_turn
        self.mode = loaded.mode
        self.status = loaded.status
        self.winner = loaded.winner
        self.move_log = loaded.move_log
        self.selected_piece_id = None
        self.pending_reason = None
        self.last_explanation = None
        self._undo.clear()
        self._redo.clear()
        self.version += 1
        logger.info("Loaded game with %d moves", len(self.move_log))

    # --- AI turns ---

    def request_ai_turn(self, side: Player) -> AITurnTicket | None:
        """Issue a ticket for the AI to play ``side`` once its thinking delay is over."""
        if self.is_over() or not self.may_act(side):
            return None
        return AITurnTicket(side=side, version=self.version)

    def play_ai_turn(self, ticket: AITurnTicket) -> ActionResult:
        """
        Compute and play the AI move for a ticket.

        The move is computed from the state at call time. A ticket issued
        before any later change to the game is refused as stale.
        """
        if ticket.version != self.version:
            return self._reject(Rejection.STALE_AI_TURN, "ai")
        if self.is_over():
            return self._reject(Rejection.GAME_OVER, "ai")

        move = choose_move(self.board.copy(), list(self.reserves[ticket.side]), ticket.side)
        if move is None:
            return self._reject(Rejection.NO_MOVE_AVAILABLE, "ai")

        self.set_move_explanation(move.reason)
        result = self.apply_move(move)
        if result:
            self.last_explanation = explain_move(move)
        else:
            self.pending_reason = None
        return result

    def __repr__(self) -> str:
        lines = [f"Current player: {self.current_turn.value} ({self.status.value})", ""]
        for player in Player:
            reserve_str = ", ".join(p.id for p in self.reserves[player]) or "-"
            lines.append(f"{player.value} reserves: {reserve_str}")
        lines.append("")
        lines.append(repr(self.board))
        return "\n".join(lines)

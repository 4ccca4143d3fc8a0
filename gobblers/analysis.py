"""Position commentary for analysis mode."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

from gobblers.ai import FORK_THREATS, choose_move
from gobblers.board import Board
from gobblers.evaluation import count_threats, evaluate, is_line_threat
from gobblers.moves import Move
from gobblers.rules import line_tops
from gobblers.types import CENTER, Piece, Player, Size

MIN_PIECES_ON_BOARD = 3

STRONG_ADVANTAGE = 15
ADVANTAGE = 5


class Advantage(str, Enum):
    """Who is ahead, from the AI side's point of view. Values are display keys."""

    AI_STRONG = "aiStrongAdvantage"
    AI = "aiAdvantage"
    EVEN = "evenPosition"
    PLAYER = "playerAdvantage"
    PLAYER_STRONG = "playerStrongAdvantage"


def advantage_of(ai_score: int, player_score: int) -> Advantage:
    diff = ai_score - player_score
    if diff > STRONG_ADVANTAGE:
        return Advantage.AI_STRONG
    if diff > ADVANTAGE:
        return Advantage.AI
    if diff < -STRONG_ADVANTAGE:
        return Advantage.PLAYER_STRONG
    if diff < -ADVANTAGE:
        return Advantage.PLAYER
    return Advantage.EVEN


@dataclass
class PositionAnalysis:
    side: Player
    pieces_on_board: dict[Player, int] = field(default_factory=dict)
    potential_lines: dict[Player, int] = field(default_factory=dict)
    threats: dict[Player, int] = field(default_factory=dict)
    fork_cells: dict[Player, int] = field(default_factory=dict)
    in_reserve: dict[Player, int] = field(default_factory=dict)
    center_owner: Player | None = None
    score: int = 0
    advantage: Advantage = Advantage.EVEN

    def summary(self) -> str:
        """Human-readable commentary from ``side``'s point of view."""
        me, them = self.side, self.side.opponent()
        parts: list[str] = []

        red, blue = self.pieces_on_board[Player.RED], self.pieces_on_board[Player.BLUE]
        if red > blue:
            parts.append("Red controls more of the board.")
        elif blue > red:
            parts.append("Blue controls more of the board.")
        elif red > 0:
            parts.append("Board control is even.")

        if self.center_owner is not None:
            parts.append(f"{self.center_owner.value} controls the center.")

        if self.potential_lines[me] > self.potential_lines[them]:
            parts.append(f"{me.value} has more potential winning lines ({self.potential_lines[me]}).")
        elif self.potential_lines[them] > 0:
            parts.append(
                f"{them.value} has {self.potential_lines[them]} potential winning lines - be careful!"
            )

        if self.fork_cells[me] > 0:
            parts.append(f"{me.value} can create a fork with {self.fork_cells[me]} potential move(s).")
        if self.fork_cells[them] > 0:
            parts.append(f"Watch out! {them.value} can create a fork with {self.fork_cells[them]} potential move(s).")

        if self.in_reserve[me] == 0 and self.pieces_on_board[me] < MIN_PIECES_ON_BOARD:
            parts.append(f"{me.value} must move existing pieces (no more in hand).")

        if not parts:
            return "The game is in the early stages with no clear advantage."
        return " ".join(parts)


def _potential_lines(board: Board, player: Player) -> int:
    """Open lines weighted by how many of the player's tops they already hold."""
    total = 0
    for _, pieces in line_tops(board):
        own = sum(1 for p in pieces if p is not None and p.owner == player)
        foreign = sum(1 for p in pieces if p is not None and p.owner != player)
        if 0 < own < 3 and foreign == 0:
            total += own
    return total


def _fork_cells(board: Board, player: Player) -> int:
    """
    Empty cells where dropping a piece leaves the player two threats through that cell.

    The dropped piece is assumed to be Large regardless of what is in hand.
    """
    count = 0
    for pos in board.all_positions():
        if not board.is_empty(pos):
            continue
        trial = board.copy()
        trial.push(Piece(f"{player.value}-L-sim", player, Size.LARGE, is_reserved=False), pos)
        through = [pieces for line, pieces in line_tops(trial) if pos in line]
        if sum(1 for pieces in through if is_line_threat(pieces, player)) >= FORK_THREATS:
            count += 1
    return count


def analyze_position(
    board: Board,
    reserves: dict[Player, Sequence[Piece]],
    side: Player,
    ai_side: Player | None = None,
) -> PositionAnalysis:
    """
    Analyse the board from ``side``'s point of view.

    ``advantage`` compares both sides' scores with ``ai_side`` (default:
    ``side``) in the AI seat.
    """
    ai_side = ai_side or side
    tops = [top for row in board.tops() for top in row]
    center = board.get_top(CENTER)
    return PositionAnalysis(
        side=side,
        pieces_on_board={p: sum(1 for t in tops if t is not None and t.owner == p) for p in Player},
        potential_lines={p: _potential_lines(board, p) for p in Player},
        threats={p: count_threats(board, p) for p in Player},
        fork_cells={p: _fork_cells(board, p) for p in Player},
        in_reserve={p: sum(1 for piece in reserves.get(p, ()) if piece.is_reserved) for p in Player},
        center_owner=None if center is None else center.owner,
        score=evaluate(board, side),
        advantage=advantage_of(evaluate(board, ai_side), evaluate(board, ai_side.opponent())),
    )


def predict_next_move(board: Board, reserve: Sequence[Piece], side: Player) -> Move | None:
    """What the AI would play for ``side`` right now."""
    return choose_move(board.copy(), reserve, side)

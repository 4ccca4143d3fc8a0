from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum


class Player(Enum):
    """The two players in the game."""

    RED = "Red"
    BLUE = "Blue"

    def opponent(self) -> "Player":
        """Return the opposing player."""
        return Player.BLUE if self == Player.RED else Player.RED


class Size(Enum):
    """Piece sizes, ordered small to large."""

    SMALL = 1
    MEDIUM = 2
    LARGE = 3

    @property
    def code(self) -> str:
        return _SIZE_CODES[self]

    @staticmethod
    def from_code(code: str) -> "Size":
        """Parse a one-letter size code (S, M or L)."""
        for size, size_code in _SIZE_CODES.items():
            if size_code == code:
                return size
        raise ValueError(f"Unknown size code: {code!r}")

    def can_gobble(self, other: "Size") -> bool:
        """Return True if this size can gobble (cover) the other size."""
        return self.value > other.value


_SIZE_CODES = {Size.SMALL: "S", Size.MEDIUM: "M", Size.LARGE: "L"}


class GameMode(Enum):
    LOCAL = "local"
    AI = "ai"


class GameStatus(Enum):
    IN_PROGRESS = "in-progress"
    WIN = "win"
    DRAW = "draw"


@dataclass(frozen=True)
class Piece:
    """
    A game piece.

    Identity (id, owner, size) is fixed for the whole game. Only the
    reserved flag changes, and it does so by replacing the value.
    """

    id: str
    owner: Player
    size: Size
    is_reserved: bool = True

    def can_gobble(self, other: Piece) -> bool:
        """Return True if this piece can gobble the other piece."""
        return self.size.can_gobble(other.size)

    def on_board(self) -> Piece:
        return replace(self, is_reserved=False)

    def __repr__(self) -> str:
        return f"{self.owner.value[0]}{self.size.code}"


# Board coordinates
Position = tuple[int, int]  # (row, col), 0-indexed

BOARD_SIZE = 3

# Standard starting pieces for each player
STARTING_PIECES: dict[Size, int] = {
    Size.SMALL: 2,
    Size.MEDIUM: 2,
    Size.LARGE: 2,
}

CENTER: Position = (1, 1)
CORNERS: tuple[Position, ...] = ((0, 0), (0, 2), (2, 0), (2, 2))


def in_bounds(row: int, col: int) -> bool:
    return 0 <= row < BOARD_SIZE and 0 <= col < BOARD_SIZE


def initial_reserve(player: Player) -> list[Piece]:
    """
    Build a player's six starting pieces.

    Ids follow "<owner>-<size>-<sequence>" with the sequence running 1..6
    across sizes, e.g. Red-S-1, Red-S-2, Red-M-3 ... Red-L-6.
    """
    pieces: list[Piece] = []
    sequence = 1
    for size, count in STARTING_PIECES.items():
        for _ in range(count):
            pieces.append(Piece(f"{player.value}-{size.code}-{sequence}", player, size))
            sequence += 1
    return pieces


def initial_reserves() -> dict[Player, list[Piece]]:
    return {player: initial_reserve(player) for player in Player}

from __future__ import annotations

from enum import Enum


class GobblersError(Exception):
    """Base class for errors raised by the engine."""


class InvalidSnapshotError(GobblersError, ValueError):
    """A saved game could not be loaded. The session is left unchanged."""


class InvalidMoveError(GobblersError, ValueError):
    """A move cannot be simulated on the given board."""


class Rejection(str, Enum):
    """
    Why an action was refused.

    Values double as display keys for the front-end, which owns the
    translated text.
    """

    GAME_OVER = "gameOver"
    NO_SELECTION = "noSelection"
    UNKNOWN_PIECE = "unknownPiece"
    NOT_YOUR_PIECE = "notYourPiece"
    PIECE_NOT_IN_RESERVE = "pieceNotInReserve"
    PIECE_IN_RESERVE = "pieceInReserve"
    NOT_TOP_PIECE = "notTopPiece"
    SAME_CELL = "sameCell"
    OUT_OF_BOUNDS = "outOfBounds"
    PIECE_TOO_SMALL = "pieceTooSmall"
    NO_MOVE_AVAILABLE = "noMoveAvailable"
    STALE_AI_TURN = "staleAiTurn"

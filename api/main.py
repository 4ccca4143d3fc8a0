"""FastAPI backend for Gobblet Gobblers."""

import asyncio
import logging
from typing import Any

from fastapi import Body, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from gobblers import (
    ActionResult,
    Advantage,
    GameMode,
    GameSession,
    GameStatus,
    InvalidSnapshotError,
    Move,
    Player,
    Rejection,
    analyze_position,
    explain_move,
    move_to_notation,
    predict_next_move,
)
from gobblers.config import Settings
from gobblers.serialization import MoveRecordModel, PieceModel

settings = Settings.from_env()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Gobblet Gobblers API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Game session ---
# Every endpoint is async so all of them run on the event loop thread and
# the session only ever has one writer.

session = GameSession()


# --- Pydantic models for API ---


class ApiModel(BaseModel):
    """camelCase on the wire, like the save file."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GameStateModel(ApiModel):
    board: list[list[list[PieceModel]]]  # 3x3 grid of stacks, bottom to top
    reserves: dict[Player, list[PieceModel]]
    current_turn: Player
    status: GameStatus
    winner: Player | None
    mode: GameMode
    analysis_mode: bool
    selected_piece_id: str | None
    move_history: list[MoveRecordModel]
    last_explanation: str | None  # Lookup key, e.g. "aiReasons.blockWin"
    can_undo: bool
    can_redo: bool


class NewGameModel(ApiModel):
    mode: GameMode = GameMode.LOCAL


class ModeModel(ApiModel):
    mode: GameMode


class SelectModel(ApiModel):
    piece_id: str | None = None


class PlaceModel(ApiModel):
    row: int
    col: int


class MoveModel(ApiModel):
    from_row: int
    from_col: int
    to_row: int
    to_col: int


class LegalMoveModel(ApiModel):
    piece_id: str
    size: str
    to_pos: tuple[int, int]
    from_pos: tuple[int, int] | None
    notation: str


class HintModel(ApiModel):
    move: LegalMoveModel | None
    explanation: str | None


class AnalysisModel(ApiModel):
    side: Player
    summary: str
    score: int
    threats: dict[Player, int]
    fork_cells: dict[Player, int]
    center_owner: Player | None
    advantage: Advantage


# --- Helper functions ---


def state_to_model(game: GameSession) -> GameStateModel:
    """Convert the session to the API model."""
    board = [
        [[PieceModel.from_piece(p) for p in game.board.get_stack((row, col))] for col in range(3)]
        for row in range(3)
    ]
    return GameStateModel(
        board=board,
        reserves={player: [PieceModel.from_piece(p) for p in game.reserves[player]] for player in Player},
        current_turn=game.current_turn,
        status=game.status,
        winner=game.winner,
        mode=game.mode,
        analysis_mode=game.analysis_mode,
        selected_piece_id=game.selected_piece_id,
        move_history=[MoveRecordModel.from_record(r) for r in game.move_log],
        last_explanation=game.last_explanation,
        can_undo=game.can_undo(),
        can_redo=game.can_redo(),
    )


def move_to_model(move: Move) -> LegalMoveModel:
    """Convert Move to API model."""
    return LegalMoveModel(
        piece_id=move.piece.id,
        size=move.piece.size.code,
        to_pos=move.to_pos,
        from_pos=move.from_pos,
        notation=move_to_notation(move),
    )


def _checked(result: ActionResult) -> GameStateModel:
    """Turn a rejected action into a 400 (409 for stale AI turns)."""
    if not result:
        assert result.rejection is not None
        status_code = 409 if result.rejection == Rejection.STALE_AI_TURN else 400
        raise HTTPException(status_code=status_code, detail=result.rejection.value)
    return state_to_model(session)


# --- API endpoints ---


@app.get("/game", response_model=GameStateModel)
async def get_game():
    """Get current game state."""
    return state_to_model(session)


@app.get("/moves", response_model=list[LegalMoveModel])
async def get_moves():
    """Get all legal moves for the current player."""
    return [move_to_model(m) for m in session.legal_moves()]


@app.post("/new", response_model=GameStateModel)
async def new_game(data: NewGameModel):
    """Start a new game."""
    session.init_game(data.mode)
    return state_to_model(session)


@app.post("/mode", response_model=GameStateModel)
async def set_mode(data: ModeModel):
    """Switch between local and vs-AI play without resetting the board."""
    session.set_game_mode(data.mode)
    return state_to_model(session)


@app.post("/analysis", response_model=GameStateModel)
async def toggle_analysis():
    """Toggle analysis mode."""
    session.toggle_analysis_mode()
    return state_to_model(session)


@app.post("/select", response_model=GameStateModel)
async def select_piece(data: SelectModel):
    """Select a piece (or clear the selection)."""
    return _checked(session.select_piece(data.piece_id))


@app.post("/place", response_model=GameStateModel)
async def place_piece(data: PlaceModel):
    """Place the selected reserved piece."""
    return _checked(session.place_piece(data.row, data.col))


@app.post("/move", response_model=GameStateModel)
async def move_piece(data: MoveModel):
    """Move the selected piece on the board."""
    return _checked(session.move_piece(data.from_row, data.from_col, data.to_row, data.to_col))


@app.post("/undo", response_model=GameStateModel)
async def undo():
    """Undo the last move."""
    if not session.undo():
        raise HTTPException(status_code=400, detail="Nothing to undo")
    return state_to_model(session)


@app.post("/redo", response_model=GameStateModel)
async def redo():
    """Redo a previously undone move."""
    if not session.redo():
        raise HTTPException(status_code=400, detail="Nothing to redo")
    return state_to_model(session)


@app.get("/save")
async def save_game() -> dict[str, Any]:
    """Export the current game as a save file."""
    return session.save_game()


@app.post("/load", response_model=GameStateModel)
async def load_game(payload: Any = Body(...)):
    """
    Load a saved game.

    This replaces the current game entirely (clears undo/redo history).
    """
    try:
        session.load_game(payload)
    except InvalidSnapshotError as e:
        logger.warning("Refused saved game: %s", e)
        raise HTTPException(status_code=400, detail=f"Invalid saved game: {e}")
    return state_to_model(session)


@app.post("/ai/move", response_model=GameStateModel)
async def ai_move():
    """
    Let the AI play its turn after the configured thinking delay.

    Anything that changes the game during the delay (new game, undo, a
    human move) makes the pending turn stale and it is dropped with a 409.
    """
    ticket = session.request_ai_turn(settings.ai_player)
    if ticket is None:
        raise HTTPException(status_code=400, detail="Not the AI's turn")
    await asyncio.sleep(settings.thinking_delay_ms / 1000)
    return _checked(session.play_ai_turn(ticket))


@app.get("/ai/hint", response_model=HintModel)
async def ai_hint():
    """Predict the AI's move for the side to play, without playing it."""
    if session.is_over():
        return HintModel(move=None, explanation=None)
    side = session.current_turn
    move = predict_next_move(session.board, session.reserves[side], side)
    return HintModel(
        move=None if move is None else move_to_model(move),
        explanation=explain_move(move),
    )


@app.get("/analysis/position", response_model=AnalysisModel)
async def position_analysis():
    """Commentary on the current position from the side to play."""
    analysis = analyze_position(
        session.board, session.reserves, session.current_turn, ai_side=settings.ai_player
    )
    return AnalysisModel(
        side=analysis.side,
        summary=analysis.summary(),
        score=analysis.score,
        threats=analysis.threats,
        fork_cells=analysis.fork_cells,
        center_owner=analysis.center_owner,
        advantage=analysis.advantage,
    )


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}

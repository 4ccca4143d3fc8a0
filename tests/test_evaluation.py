"""Tests for position evaluation and evaluation weights."""

import json

import pytest

from gobblers import Board, Piece, Player, Size, evaluate
from gobblers.config import WEIGHTS_FILE_ENV, EvaluationWeights, Settings, load_weights
from gobblers.evaluation import (
    count_threats,
    find_completion_cell,
    gobbling_potential,
    reserve_potential,
    size_advantage,
)


def red(size: Size, n: int = 1) -> Piece:
    return Piece(f"Red-{size.code}-{n}", Player.RED, size, is_reserved=False)


def blue(size: Size, n: int = 1) -> Piece:
    return Piece(f"Blue-{size.code}-{n}", Player.BLUE, size, is_reserved=False)


class TestThreats:
    """Two own tops and an empty third cell."""

    def test_single_threat(self) -> None:
        board = Board()
        board.push(red(Size.SMALL), (0, 0))
        board.push(red(Size.SMALL, 2), (0, 1))
        assert count_threats(board, Player.RED) == 1
        assert count_threats(board, Player.BLUE) == 0
        assert find_completion_cell(board, Player.RED) == (0, 2)

    def test_blocked_line_is_no_threat(self) -> None:
        board = Board()
        board.push(red(Size.SMALL), (0, 0))
        board.push(red(Size.SMALL, 2), (0, 1))
        board.push(blue(Size.SMALL), (0, 2))
        assert count_threats(board, Player.RED) == 0
        assert find_completion_cell(board, Player.RED) is None

    def test_fork(self) -> None:
        board = Board()
        board.push(red(Size.SMALL), (0, 0))
        board.push(red(Size.SMALL, 2), (0, 2))
        board.push(red(Size.MEDIUM, 3), (2, 2))
        assert count_threats(board, Player.RED) == 3


class TestTerms:
    """Individual evaluation terms."""

    def test_reserve_potential_at_start(self) -> None:
        # 2 Large x 2 + 2 Medium
        assert reserve_potential(Board(), Player.RED) == 6

    def test_reserve_potential_after_placing(self) -> None:
        board = Board()
        board.push(red(Size.LARGE, 5), (1, 1))
        assert reserve_potential(board, Player.RED) == 4
        assert reserve_potential(board, Player.BLUE) == 6

    def test_gobbling_potential(self) -> None:
        board = Board()
        board.push(blue(Size.SMALL), (0, 0))
        board.push(blue(Size.MEDIUM, 3), (0, 1))
        board.push(blue(Size.LARGE, 5), (0, 2))
        assert gobbling_potential(board, Player.RED) == 3
        assert gobbling_potential(board, Player.BLUE) == 0

    def test_size_advantage(self) -> None:
        board = Board()
        board.push(red(Size.LARGE, 5), (1, 1))
        board.push(blue(Size.SMALL), (0, 0))
        assert size_advantage(board, Player.RED) == 2
        assert size_advantage(board, Player.BLUE) == -2


class TestEvaluate:
    """Whole-board scores."""

    def test_empty_board_is_even(self) -> None:
        assert evaluate(Board(), Player.RED) == 0

    def test_win_short_circuits(self) -> None:
        board = Board()
        for col in range(3):
            board.push(red(Size.SMALL, col), (0, col))
        assert evaluate(board, Player.RED) == 1000
        assert evaluate(board, Player.BLUE) == -1000

    def test_center_is_worth_more_than_edge(self) -> None:
        center = Board()
        center.push(red(Size.SMALL), (1, 1))
        edge = Board()
        edge.push(red(Size.SMALL), (0, 1))
        assert evaluate(center, Player.RED) > evaluate(edge, Player.RED)

    def test_center_large(self) -> None:
        board = Board()
        board.push(red(Size.LARGE, 5), (1, 1))
        # center 15 + 8, control 4, reserve (4 - 6) x 3, size 3 x 4
        assert evaluate(board, Player.RED) == 15 + 8 + 4 - 6 + 12

    def test_custom_weights(self) -> None:
        board = Board()
        board.push(red(Size.LARGE, 5), (1, 1))
        weights = EvaluationWeights(center_control=0, center_size_large=0)
        assert evaluate(board, Player.RED, weights) == 4 - 6 + 12


class TestConfig:
    """Weights overrides and runtime settings."""

    def test_defaults_without_file(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv(WEIGHTS_FILE_ENV, raising=False)
        assert load_weights() == EvaluationWeights()

    def test_override_file(self, tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "weights.json"
        path.write_text(json.dumps({"own_threat": 40, "bogus": 1}))
        monkeypatch.setenv(WEIGHTS_FILE_ENV, str(path))

        weights = load_weights()
        assert weights.own_threat == 40
        assert weights.opponent_threat == 30

    def test_explicit_path_wins(self, tmp_path) -> None:
        path = tmp_path / "weights.json"
        path.write_text(json.dumps({"win": 500}))
        assert load_weights(path).win == 500

    def test_missing_file_falls_back(self, tmp_path) -> None:
        assert load_weights(tmp_path / "absent.json") == EvaluationWeights()

    def test_settings_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GOBBLERS_AI_PLAYER", "Red")
        monkeypatch.setenv("GOBBLERS_THINKING_DELAY_MS", "0")
        monkeypatch.setenv("GOBBLERS_CORS_ORIGINS", "http://a.test, http://b.test")
        monkeypatch.setenv("GOBBLERS_LOG_LEVEL", "debug")

        settings = Settings.from_env()
        assert settings.ai_player == Player.RED
        assert settings.thinking_delay_ms == 0
        assert settings.cors_origins == ["http://a.test", "http://b.test"]
        assert settings.log_level == "DEBUG"

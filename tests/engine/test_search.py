"""Tests for the built-in alpha-beta engine."""

import logging
from collections.abc import Sequence

import pytest

from rookery.core.enums import GameStatus
from rookery.core.move import Move
from rookery.core.move_applier import apply_move, make_move
from rookery.core.move_generator import MoveGenerator, legal_moves
from rookery.core.notation import STARTING_FEN, position_from_fen
from rookery.core.position import Position
from rookery.core.rules import Rules
from rookery.core.types import D5, E4, H1, H2
from rookery.engine import (
    MATE_SCORE,
    AlphaBetaEngine,
    EvalWeights,
    Evaluator,
    SearchBudgetExhaustedError,
    SearchLimits,
    best_move,
)
from rookery.engine.alphabeta import SearchAborted

KIWIPETE = "r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R w KQkq - 0 1"
BACK_RANK = "6k1/5ppp/8/8/8/8/5PPP/3R2K1 w - - 0 1"
HANGING_QUEEN = "4k3/8/8/3q4/4P3/8/8/4K3 w - - 0 1"


def _limits(depth: int, workers: int = 1) -> SearchLimits:
    return SearchLimits(max_depth=depth, time_limit_ms=None, workers=workers)


def minimax(
    evaluator: Evaluator,
    position: Position,
    depth: int,
    ply: int,
    history: Sequence[Position],
) -> int:
    """Unpruned negamax scored with the same terminal rules as the engine."""
    moves = legal_moves(position)
    status = Rules.classify(position, moves, history)
    if status == GameStatus.CHECKMATE:
        return -(MATE_SCORE - ply)
    if status.is_terminal:
        return 0
    if depth == 0:
        return evaluator.score(position)
    path = [*history, position]
    return max(
        -minimax(evaluator, make_move(position, move), depth - 1, ply + 1, path)
        for move in moves
    )


def root_minimax(evaluator: Evaluator, position: Position, depth: int) -> int:
    return max(
        -minimax(evaluator, make_move(position, move), depth - 1, 1, [position])
        for move in legal_moves(position)
    )


class _CountingEngine(AlphaBetaEngine):
    def __init__(self) -> None:
        super().__init__()
        self.root_depths: list[int] = []

    def _search_root(self, position, root_moves, depth, ctx):
        self.root_depths.append(depth)
        return super()._search_root(position, root_moves, depth, ctx)


class TestAlphaBetaEngine:
    def test_returns_legal_move_from_start(self) -> None:
        pos = position_from_fen(STARTING_FEN)
        result = AlphaBetaEngine().search(pos, _limits(2))

        assert result.best_move in legal_moves(pos)
        assert result.depth == 2
        assert result.nodes > 0
        assert result.has_move

    def test_depth_one_takes_hanging_queen(self) -> None:
        pos = position_from_fen(HANGING_QUEEN)
        result = AlphaBetaEngine().search(pos, _limits(1))
        assert result.best_move == Move(E4, D5)

    def test_finds_mate_in_one(self) -> None:
        pos = position_from_fen("7k/8/6K1/8/8/8/8/1Q6 w - - 0 1")
        result = AlphaBetaEngine().search(pos, _limits(3))

        assert result.best_move is not None
        assert Rules.is_checkmate(make_move(pos, result.best_move))
        assert result.score == MATE_SCORE - 1

    def test_back_rank_mate(self) -> None:
        pos = position_from_fen(BACK_RANK)
        result = AlphaBetaEngine().search(pos, _limits(2))
        assert result.best_move is not None
        assert result.best_move.uci == "d1d8"

    def test_checkmated_root_returns_no_move(self) -> None:
        pos = position_from_fen(
            "rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3"
        )
        result = AlphaBetaEngine().search(pos, _limits(3))
        assert result.best_move is None
        assert result.score == -MATE_SCORE
        assert result.depth == 0

    def test_stalemated_root_returns_no_move(self) -> None:
        pos = position_from_fen("7k/8/5KQ1/8/8/8/8/8 b - - 0 1")
        result = AlphaBetaEngine().search(pos, _limits(3))
        assert result.best_move is None
        assert result.score == 0

    def test_drawn_root_returns_no_move(self) -> None:
        pos = position_from_fen("4k3/8/8/8/8/8/8/R3K3 w - - 100 80")
        assert AlphaBetaEngine().search(pos, _limits(2)).best_move is None

    def test_iterative_deepening_visits_each_depth(self) -> None:
        engine = _CountingEngine()
        engine.search(position_from_fen(BACK_RANK), _limits(3))
        assert engine.root_depths == [1, 2, 3]

    def test_best_move_helper(self) -> None:
        result = best_move(position_from_fen(HANGING_QUEEN), _limits(1))
        assert result.best_move == Move(E4, D5)


class TestSearchEquivalence:
    @pytest.mark.parametrize(
        ("fen", "depth"),
        [
            (STARTING_FEN, 2),
            (HANGING_QUEEN, 3),
            (BACK_RANK, 3),
            ("7k/8/6K1/8/8/8/8/1Q6 w - - 0 1", 2),
        ],
    )
    def test_score_matches_unpruned_minimax(self, fen: str, depth: int) -> None:
        pos = position_from_fen(fen)
        evaluator = Evaluator()
        result = AlphaBetaEngine(evaluator).search(pos, _limits(depth))
        assert result.score == root_minimax(evaluator, pos, depth)

    @pytest.mark.slow
    def test_kiwipete_matches_unpruned_minimax(self) -> None:
        pos = position_from_fen(KIWIPETE)
        evaluator = Evaluator()
        result = AlphaBetaEngine(evaluator).search(pos, _limits(2))
        assert result.score == root_minimax(evaluator, pos, 2)

    def test_reported_move_achieves_reported_score(self) -> None:
        pos = position_from_fen(HANGING_QUEEN)
        evaluator = Evaluator()
        result = AlphaBetaEngine(evaluator).search(pos, _limits(3))
        assert result.best_move is not None
        child = make_move(pos, result.best_move)
        assert -minimax(evaluator, child, 2, 1, [pos]) == result.score


class TestDeterminism:
    def test_ties_go_to_first_generated_move(self, start: Position) -> None:
        engine = AlphaBetaEngine(Evaluator(EvalWeights.material_only()))
        result = engine.search(start, _limits(1))
        assert result.score == 0
        assert result.best_move == legal_moves(start)[0]

    def test_repeated_searches_agree(self) -> None:
        pos = position_from_fen(KIWIPETE)
        first = AlphaBetaEngine().search(pos, _limits(2))
        second = AlphaBetaEngine().search(pos, _limits(2))
        assert (first.best_move, first.score) == (second.best_move, second.score)

    @pytest.mark.parametrize("fen", [STARTING_FEN, BACK_RANK, HANGING_QUEEN])
    def test_parallel_matches_sequential(self, fen: str) -> None:
        pos = position_from_fen(fen)
        sequential = AlphaBetaEngine().search(pos, _limits(2))
        parallel = AlphaBetaEngine().search(pos, _limits(2, workers=4))
        assert parallel.best_move == sequential.best_move
        assert parallel.score == sequential.score

    def test_parallel_ties_go_to_first_generated_move(self, start: Position) -> None:
        engine = AlphaBetaEngine(Evaluator(EvalWeights.material_only()))
        result = engine.search(start, _limits(1, workers=3))
        assert result.best_move == legal_moves(start)[0]


class TestDraws:
    LOSING = "q3k3/8/8/8/8/8/8/4K2R w - - 0 1"

    def test_steers_into_repetition_when_behind(self) -> None:
        pos = position_from_fen(self.LOSING)
        repeated = apply_move(pos, Move(H1, H2))
        engine = AlphaBetaEngine()

        plain = engine.search(pos, _limits(1))
        assert plain.score < 0

        drawn = engine.search(pos, _limits(1), history=[repeated, repeated])
        assert drawn.best_move == Move(H1, H2)
        assert drawn.score == 0

    def test_history_never_mutated(self) -> None:
        pos = position_from_fen(self.LOSING)
        history = [apply_move(pos, Move(H1, H2))]
        AlphaBetaEngine().search(pos, _limits(2), history=history)
        assert len(history) == 1


class TestLimits:
    def test_cancel_keeps_depth_one_result(self) -> None:
        pos = position_from_fen(KIWIPETE)
        result = AlphaBetaEngine().search(pos, _limits(4), is_cancelled=lambda: True)
        assert result.depth == 1
        assert result.best_move in legal_moves(pos)

    def test_time_limit_stops_deepening(self) -> None:
        pos = position_from_fen(KIWIPETE)
        limits = SearchLimits(max_depth=12, time_limit_ms=1)
        result = AlphaBetaEngine().search(pos, limits)
        assert 1 <= result.depth < 12
        assert result.best_move in MoveGenerator(pos).generate_legal_moves()

    def test_time_only_limit_deepens_until_deadline(self) -> None:
        pos = position_from_fen(BACK_RANK)
        limits = SearchLimits(max_depth=None, time_limit_ms=50)
        result = AlphaBetaEngine().search(pos, limits)
        assert result.depth >= 1
        assert result.best_move in legal_moves(pos)

    def test_limit_without_any_bound_rejected(self) -> None:
        with pytest.raises(ValueError):
            SearchLimits(max_depth=None, time_limit_ms=None)

    @pytest.mark.parametrize(
        "kwargs",
        [{"max_depth": 0}, {"time_limit_ms": 0}, {"workers": 0}],
    )
    def test_invalid_limits_rejected(self, kwargs: dict[str, int]) -> None:
        with pytest.raises(ValueError):
            SearchLimits(**kwargs)

    def test_no_completed_depth_raises(
        self, monkeypatch: pytest.MonkeyPatch, start: Position
    ) -> None:
        def _abort(*_args: object) -> None:
            raise SearchAborted

        monkeypatch.setattr(AlphaBetaEngine, "_search_root", _abort)
        with pytest.raises(SearchBudgetExhaustedError):
            AlphaBetaEngine().search(start, _limits(2))

    def test_logs_completed_depths(
        self, caplog: pytest.LogCaptureFixture, start: Position
    ) -> None:
        with caplog.at_level(logging.DEBUG, logger="rookery.engine.alphabeta"):
            AlphaBetaEngine().search(start, _limits(2))
        messages = [r.getMessage() for r in caplog.records]
        assert any(m.startswith("depth 1:") for m in messages)
        assert any(m.startswith("depth 2:") for m in messages)

"""Pure-Python chess search: negamax with alpha-beta pruning."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from itertools import count
from time import perf_counter

from rookery.core.enums import GameStatus, MoveFlag, PieceType
from rookery.core.move import Move
from rookery.core.move_applier import make_move
from rookery.core.move_generator import MoveGenerator
from rookery.core.position import Position, RepetitionKey
from rookery.core.rules import FIFTY_MOVE_HALFMOVES, REPETITION_LIMIT, Rules
from rookery.engine.evaluation import PIECE_VALUES, Evaluator
from rookery.engine.search import (
    CancelCheck,
    IEngine,
    SearchBudgetExhaustedError,
    SearchLimits,
    SearchResult,
)

_LOGGER = logging.getLogger(__name__)

INF_SCORE = 1_000_000
MATE_SCORE = 100_000


def _never_cancelled() -> bool:
    return False


def _depths(limits: SearchLimits) -> Iterator[int]:
    if limits.max_depth is None:
        return count(1)
    return iter(range(1, limits.max_depth + 1))


class SearchAborted(Exception):
    """Raised inside the tree when the deadline passes or the caller cancels."""


@dataclass(slots=True)
class _SearchContext:
    """Per-branch mutable search state; never shared between threads."""

    deadline: float | None
    is_cancelled: CancelCheck
    abortable: bool
    repetitions: Counter[RepetitionKey] = field(default_factory=Counter)
    nodes: int = 0

    def enter_node(self) -> None:
        self.nodes += 1
        if not self.abortable:
            return
        if self.is_cancelled():
            raise SearchAborted
        if self.deadline is not None and perf_counter() >= self.deadline:
            raise SearchAborted

    def fork(self) -> _SearchContext:
        return _SearchContext(
            deadline=self.deadline,
            is_cancelled=self.is_cancelled,
            abortable=self.abortable,
            repetitions=self.repetitions.copy(),
        )


@dataclass(slots=True, frozen=True)
class _RootOutcome:
    move: Move
    index: int
    score: int
    depth: int


class AlphaBetaEngine(IEngine):
    """Minimax searcher (negamax form) with alpha-beta pruning.

    Iterative deepening runs depth 1, 2, … up to ``limits.max_depth``, or
    until the deadline when only a time limit is set. Only
    fully searched depths contribute to the result; depth 1 always completes,
    so a position with legal moves always yields a move.
    """

    __slots__ = ("_evaluator",)

    def __init__(self, evaluator: Evaluator | None = None) -> None:
        self._evaluator = evaluator or Evaluator()

    @property
    def evaluator(self) -> Evaluator:
        return self._evaluator

    def search(
        self,
        position: Position,
        limits: SearchLimits,
        is_cancelled: CancelCheck | None = None,
        history: Sequence[Position] = (),
    ) -> SearchResult:
        deadline: float | None = None
        if limits.time_limit_ms is not None:
            deadline = perf_counter() + (limits.time_limit_ms / 1000.0)

        root_moves = MoveGenerator(position).generate_legal_moves()
        status = Rules.classify(position, root_moves, history)
        if status.is_terminal:
            score = -MATE_SCORE if status == GameStatus.CHECKMATE else 0
            return SearchResult(None, score, 0, 0)

        repetitions: Counter[RepetitionKey] = Counter(p.repetition_key for p in history)
        ordered = self._order_moves(position, list(enumerate(root_moves)))
        best: _RootOutcome | None = None
        nodes = 0

        executor = ThreadPoolExecutor(max_workers=limits.workers) if limits.workers > 1 else None
        try:
            for depth in _depths(limits):
                ctx = _SearchContext(
                    deadline=deadline,
                    is_cancelled=is_cancelled or _never_cancelled,
                    abortable=depth > 1,
                    repetitions=repetitions.copy(),
                )
                try:
                    if executor is None:
                        outcome = self._search_root(position, ordered, depth, ctx)
                    else:
                        outcome = self._search_root_parallel(
                            executor, position, ordered, depth, ctx
                        )
                except SearchAborted:
                    nodes += ctx.nodes
                    _LOGGER.debug("Search aborted during depth %d", depth)
                    break
                nodes += ctx.nodes
                best = outcome
                _LOGGER.debug(
                    "depth %d: best %s score %d nodes %d",
                    depth,
                    outcome.move,
                    outcome.score,
                    nodes,
                )
                # Principal move first in the next iteration.
                ordered = [e for e in ordered if e[0] == outcome.index] + [
                    e for e in ordered if e[0] != outcome.index
                ]
        finally:
            if executor is not None:
                executor.shutdown(wait=True)

        if best is None:
            raise SearchBudgetExhaustedError(
                f"No move found for a position with {len(root_moves)} legal moves"
            )
        return SearchResult(best.move, best.score, best.depth, nodes)

    # -- Root ------------------------------------------------------------

    def _search_root(
        self,
        position: Position,
        root_moves: list[tuple[int, Move]],
        depth: int,
        ctx: _SearchContext,
    ) -> _RootOutcome:
        """Search every root move; ties go to the earliest generated move.

        A move generated before the current best is searched with a window one
        point lower, so an equal score is reported exactly and can win the tie.
        """
        best: _RootOutcome | None = None
        ctx.repetitions[position.repetition_key] += 1

        for index, move in root_moves:
            if best is None:
                alpha = -INF_SCORE
            elif index < best.index:
                alpha = best.score - 1
            else:
                alpha = best.score
            score = -self._negamax(make_move(position, move), depth - 1, -INF_SCORE, -alpha, 1, ctx)
            if best is None or score > best.score or (
                score == best.score and index < best.index
            ):
                best = _RootOutcome(move, index, score, depth)

        assert best is not None
        return best

    def _search_root_parallel(
        self,
        executor: ThreadPoolExecutor,
        position: Position,
        root_moves: list[tuple[int, Move]],
        depth: int,
        ctx: _SearchContext,
    ) -> _RootOutcome:
        """Search root moves concurrently, each with its own full window."""
        ctx.repetitions[position.repetition_key] += 1
        branches = [(index, move, ctx.fork()) for index, move in root_moves]
        futures = [
            executor.submit(
                self._negamax,
                make_move(position, move),
                depth - 1,
                -INF_SCORE,
                INF_SCORE,
                1,
                branch_ctx,
            )
            for _, move, branch_ctx in branches
        ]
        try:
            scores = [-future.result() for future in futures]
        finally:
            ctx.nodes += sum(branch_ctx.nodes for _, _, branch_ctx in branches)

        best: _RootOutcome | None = None
        for (index, move, _), score in zip(branches, scores):
            if best is None or score > best.score or (
                score == best.score and index < best.index
            ):
                best = _RootOutcome(move, index, score, depth)
        assert best is not None
        return best

    # -- Tree ------------------------------------------------------------

    def _negamax(
        self,
        position: Position,
        depth: int,
        alpha: int,
        beta: int,
        ply: int,
        ctx: _SearchContext,
    ) -> int:
        ctx.enter_node()
        gen = MoveGenerator(position)

        # Terminal checks mirror Rules.classify precedence.
        if depth <= 0:
            legal: list[Move] = []
            has_moves = gen.has_legal_move()
        else:
            legal = gen.generate_legal_moves()
            has_moves = bool(legal)
        if not has_moves:
            if gen.is_in_check(position.side_to_move):
                return -(MATE_SCORE - ply)
            return 0
        key = position.repetition_key
        if (
            position.halfmove_clock >= FIFTY_MOVE_HALFMOVES
            or ctx.repetitions[key] + 1 >= REPETITION_LIMIT
            or Rules.is_insufficient_material(position)
        ):
            return 0

        if depth <= 0:
            return self._evaluator.score(position)

        best_score = -INF_SCORE
        ctx.repetitions[key] += 1
        try:
            for _, move in self._order_moves(position, list(enumerate(legal))):
                child = make_move(position, move)
                score = -self._negamax(child, depth - 1, -beta, -alpha, ply + 1, ctx)
                if score > best_score:
                    best_score = score
                if score > alpha:
                    alpha = score
                if alpha >= beta:
                    break
        finally:
            ctx.repetitions[key] -= 1
        return best_score

    # -- Move ordering ---------------------------------------------------

    def _order_moves(
        self,
        position: Position,
        moves: list[tuple[int, Move]],
    ) -> list[tuple[int, Move]]:
        """Promotions and captures first (MVV-LVA); stable for equal keys."""
        return sorted(
            moves,
            key=lambda entry: self._move_order_score(position, entry[1]),
            reverse=True,
        )

    def _move_order_score(self, position: Position, move: Move) -> int:
        board = position.board
        moving_piece = board[move.from_sq]
        if moving_piece is None:
            return -INF_SCORE

        score = 0
        if move.flag == MoveFlag.PROMOTION and move.promotion is not None:
            score += 20_000 + PIECE_VALUES[move.promotion]

        target_piece = board[move.to_sq]
        if target_piece is not None:
            score += 10_000
            score += 10 * PIECE_VALUES[target_piece.piece_type]
            score -= PIECE_VALUES[moving_piece.piece_type]
        elif move.flag == MoveFlag.EN_PASSANT:
            score += 10_000
            score += 10 * PIECE_VALUES[PieceType.PAWN]
            score -= PIECE_VALUES[PieceType.PAWN]

        if move.is_castle:
            score += 120
        return score


def best_move(
    position: Position,
    limits: SearchLimits | None = None,
    *,
    history: Sequence[Position] = (),
    evaluator: Evaluator | None = None,
) -> SearchResult:
    """Search *position* with a fresh :class:`AlphaBetaEngine`."""
    engine = AlphaBetaEngine(evaluator)
    return engine.search(position, limits or SearchLimits(), history=history)

"""Shared engine search models and protocol."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from rookery.core.move import Move
    from rookery.core.position import Position

CancelCheck = Callable[[], bool]


class SearchBudgetExhaustedError(RuntimeError):
    """The search ended without a move although legal moves exist."""


@dataclass(slots=True, frozen=True)
class SearchLimits:
    """Search constraints for a single move computation.

    ``max_depth`` bounds iterative deepening and ``time_limit_ms`` bounds
    wall-clock time; either may be ``None`` but not both. ``workers`` > 1
    spreads the root moves over a thread pool.
    """

    max_depth: int | None = 3
    time_limit_ms: int | None = 700
    workers: int = 1

    def __post_init__(self) -> None:
        if self.max_depth is None and self.time_limit_ms is None:
            raise ValueError("Search needs a depth limit, a time limit or both")
        if self.max_depth is not None and self.max_depth <= 0:
            raise ValueError("Search depth must be >= 1")
        if self.time_limit_ms is not None and self.time_limit_ms <= 0:
            raise ValueError("Time limit must be positive or None")
        if self.workers <= 0:
            raise ValueError("Worker count must be >= 1")


@dataclass(slots=True, frozen=True)
class SearchResult:
    """Result produced by the engine search.

    ``best_move`` is ``None`` only when the root position is terminal; callers
    must check it before acting on the result.
    """

    best_move: Move | None
    score: int
    depth: int
    nodes: int

    @property
    def has_move(self) -> bool:
        return self.best_move is not None


class IEngine(Protocol):
    """Protocol for engines used by the session and the Qt worker."""

    def search(
        self,
        position: Position,
        limits: SearchLimits,
        is_cancelled: CancelCheck | None = None,
        history: Sequence[Position] = (),
    ) -> SearchResult: ...

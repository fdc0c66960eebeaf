"""Qt bridge to run engine search in a worker thread.

Move the worker to a ``QThread`` and drive it through queued signal
connections::

    thread = QThread()
    worker = EngineWorker(max_depth=4, time_limit_ms=1500)
    worker.moveToThread(thread)
    request.connect(worker.request_move)
    worker.best_move_ready.connect(on_engine_move)
    thread.start()
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence

from PyQt6.QtCore import QObject, pyqtSignal, pyqtSlot

from rookery.core.position import Position
from rookery.engine.alphabeta import AlphaBetaEngine
from rookery.engine.search import IEngine, SearchLimits

_LOGGER = logging.getLogger(__name__)


class EngineWorker(QObject):
    """Thread-affine worker that computes engine moves on demand."""

    # request_id, move, score, depth, nodes
    best_move_ready = pyqtSignal(int, object, int, int, int)
    search_cancelled = pyqtSignal(int)
    # request_id, score, depth, nodes
    search_no_move = pyqtSignal(int, int, int, int)
    search_error = pyqtSignal(int, str)

    def __init__(
        self,
        *,
        max_depth: int | None = 3,
        time_limit_ms: int | None = 700,
        engine: IEngine | None = None,
    ) -> None:
        super().__init__()
        self._engine: IEngine = engine or AlphaBetaEngine()
        self._limits = SearchLimits(max_depth=max_depth, time_limit_ms=time_limit_ms)
        self._cancel_event = threading.Event()

    @property
    def limits(self) -> SearchLimits:
        return self._limits

    @pyqtSlot(object, object, int)
    def request_move(
        self, position_obj: object, history_obj: object, request_id: int
    ) -> None:
        """Search for the best move in *position_obj* and emit the result.

        *history_obj* is the sequence of positions that preceded it (may be
        empty); it is needed to score repetitions as draws.
        """
        if not isinstance(position_obj, Position):
            self.search_error.emit(request_id, "Engine received invalid position")
            return
        history: Sequence[Position] = ()
        if history_obj is not None:
            if not isinstance(history_obj, Sequence) or not all(
                isinstance(p, Position) for p in history_obj
            ):
                self.search_error.emit(request_id, "Engine received invalid history")
                return
            history = history_obj

        self._cancel_event.clear()
        try:
            result = self._engine.search(
                position_obj,
                self._limits,
                is_cancelled=self._cancel_event.is_set,
                history=history,
            )
        except Exception as exc:
            _LOGGER.exception("Engine search failed for request %d", request_id)
            self.search_error.emit(request_id, str(exc))
            return

        if self._cancel_event.is_set():
            self.search_cancelled.emit(request_id)
            return

        if result.best_move is None:
            self.search_no_move.emit(
                request_id,
                result.score,
                result.depth,
                result.nodes,
            )
            return

        self.best_move_ready.emit(
            request_id,
            result.best_move,
            result.score,
            result.depth,
            result.nodes,
        )

    @pyqtSlot()
    def cancel(self) -> None:
        """Request cancellation of the current search."""
        self._cancel_event.set()

    @pyqtSlot(int, int)
    def set_limits(self, max_depth: int, time_limit_ms: int) -> None:
        """Update search limits (takes effect on the next search).

        A non-positive value removes that limit. If that would leave no limit
        at all, the previous limits stay in force.
        """
        try:
            self._limits = SearchLimits(
                max_depth=max_depth if max_depth > 0 else None,
                time_limit_ms=time_limit_ms if time_limit_ms > 0 else None,
            )
        except ValueError as exc:
            _LOGGER.warning("Ignoring engine limits (%d, %d): %s", max_depth, time_limit_ms, exc)

"""Chess engine package: evaluation and alpha-beta search.

The Qt worker lives in :mod:`rookery.engine.qt_bridge` and is imported
explicitly, so headless callers never load Qt.
"""

from rookery.engine.alphabeta import MATE_SCORE, AlphaBetaEngine, best_move
from rookery.engine.evaluation import PIECE_VALUES, EvalWeights, Evaluator
from rookery.engine.search import (
    CancelCheck,
    IEngine,
    SearchBudgetExhaustedError,
    SearchLimits,
    SearchResult,
)

__all__ = [
    "MATE_SCORE",
    "PIECE_VALUES",
    "AlphaBetaEngine",
    "CancelCheck",
    "EvalWeights",
    "Evaluator",
    "IEngine",
    "SearchBudgetExhaustedError",
    "SearchLimits",
    "SearchResult",
    "best_move",
]

"""High-level chess rules: checkmate, stalemate, draw detection."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from rookery.core.enums import Color, GameStatus, PieceType
from rookery.core.move_generator import MoveGenerator
from rookery.core.types import square_shade

if TYPE_CHECKING:
    from rookery.core.move import Move
    from rookery.core.position import Position

FIFTY_MOVE_HALFMOVES = 100  # 100 half-moves = 50 full moves
REPETITION_LIMIT = 3

_MINOR_PIECES = (PieceType.KNIGHT, PieceType.BISHOP)
_MATING_MATERIAL = (PieceType.PAWN, PieceType.ROOK, PieceType.QUEEN)


class Rules:
    """Static rule-checker that operates on a :class:`Position`.

    ``history`` arguments always hold the positions *before* the one being
    examined, oldest first.
    """

    @staticmethod
    def is_in_check(position: Position) -> bool:
        gen = MoveGenerator(position)
        return gen.is_in_check(position.side_to_move)

    @staticmethod
    def is_checkmate(position: Position) -> bool:
        if not Rules.is_in_check(position):
            return False
        return not MoveGenerator(position).generate_legal_moves()

    @staticmethod
    def is_stalemate(position: Position) -> bool:
        if Rules.is_in_check(position):
            return False
        return not MoveGenerator(position).generate_legal_moves()

    @staticmethod
    def is_insufficient_material(position: Position) -> bool:
        """K vs K, K+B vs K, K+N vs K, K+B vs K+B (same-color bishops)."""
        board = position.board
        for color in Color:
            for piece_type in _MATING_MATERIAL:
                if board.has_piece(color, piece_type):
                    return False

        minors = [
            (color, piece_type, sq)
            for color in Color
            for piece_type in _MINOR_PIECES
            for sq in board.pieces(color, piece_type)
        ]
        if len(minors) <= 1:
            return True

        # K+B vs K+B with same-colour bishops
        if len(minors) == 2:
            (c1, t1, s1), (c2, t2, s2) = minors
            return (
                c1 != c2
                and t1 == t2 == PieceType.BISHOP
                and square_shade(s1) == square_shade(s2)
            )
        return False

    @staticmethod
    def is_fifty_move_rule(position: Position) -> bool:
        return position.halfmove_clock >= FIFTY_MOVE_HALFMOVES

    @staticmethod
    def repetition_count(position: Position, history: Iterable[Position]) -> int:
        """Occurrences of *position* counting itself and its repeats in *history*."""
        key = position.repetition_key
        return 1 + sum(1 for prior in history if prior.repetition_key == key)

    @staticmethod
    def is_threefold_repetition(position: Position, history: Iterable[Position]) -> bool:
        return Rules.repetition_count(position, history) >= REPETITION_LIMIT

    @staticmethod
    def classify(
        position: Position,
        legal_moves: Sequence[Move],
        history: Iterable[Position] = (),
    ) -> GameStatus:
        """Status of *position* given its legal moves and the prior positions."""
        in_check = Rules.is_in_check(position)

        if not legal_moves:
            return GameStatus.CHECKMATE if in_check else GameStatus.STALEMATE
        if Rules.is_fifty_move_rule(position):
            return GameStatus.DRAW_BY_FIFTY_MOVE
        if Rules.is_threefold_repetition(position, history):
            return GameStatus.DRAW_BY_REPETITION
        if Rules.is_insufficient_material(position):
            return GameStatus.DRAW_BY_INSUFFICIENT_MATERIAL
        if in_check:
            return GameStatus.CHECK
        return GameStatus.ONGOING

    @staticmethod
    def status(position: Position, history: Iterable[Position] = ()) -> GameStatus:
        """Classify *position*, generating its legal moves."""
        legal = MoveGenerator(position).generate_legal_moves()
        return Rules.classify(position, legal, history)


def classify(
    position: Position,
    legal_moves: Sequence[Move],
    history: Iterable[Position] = (),
) -> GameStatus:
    """Module-level alias of :meth:`Rules.classify`."""
    return Rules.classify(position, legal_moves, history)

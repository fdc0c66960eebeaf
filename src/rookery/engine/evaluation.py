"""Static evaluation: material plus tunable positional terms."""

from __future__ import annotations

from dataclasses import dataclass

from rookery.core.enums import Color, PieceType
from rookery.core.move_generator import MoveGenerator
from rookery.core.position import Position
from rookery.core.types import Square, file_of, make_square, rank_of

PIECE_VALUES: dict[PieceType, int] = {
    PieceType.PAWN: 100,
    PieceType.KNIGHT: 300,
    PieceType.BISHOP: 300,
    PieceType.ROOK: 500,
    PieceType.QUEEN: 900,
    PieceType.KING: 0,
}

_CENTER_PIECES = (PieceType.PAWN, PieceType.KNIGHT, PieceType.BISHOP)


@dataclass(slots=True, frozen=True)
class EvalWeights:
    """Centipawn weights of the positional terms.

    Attributes:
        center: per pawn/minor piece on d4, e4, d5 or e5 (half for the ring
            c3–f6 around them).
        pawn_advance: per rank a pawn has advanced beyond its second rank.
        king_shelter: per own pawn directly in front of (or diagonally in
            front of) a king that still stands on its back rank.
        mobility: per pseudo-legal move of difference between the sides;
            ``0`` skips move generation entirely.
    """

    center: int = 10
    pawn_advance: int = 5
    king_shelter: int = 12
    mobility: int = 0

    @classmethod
    def material_only(cls) -> EvalWeights:
        return cls(center=0, pawn_advance=0, king_shelter=0, mobility=0)


def _center_bonus_table() -> tuple[int, ...]:
    table = [0] * 64
    for sq in range(64):
        f, r = file_of(sq), rank_of(sq)
        if 3 <= f <= 4 and 3 <= r <= 4:
            table[sq] = 2
        elif 2 <= f <= 5 and 2 <= r <= 5:
            table[sq] = 1
    return tuple(table)


_CENTER_BONUS = _center_bonus_table()


class Evaluator:
    """Scores positions in centipawns from the side to move's point of view."""

    __slots__ = ("_weights",)

    def __init__(self, weights: EvalWeights | None = None) -> None:
        self._weights = weights or EvalWeights()

    @property
    def weights(self) -> EvalWeights:
        return self._weights

    def score(self, position: Position) -> int:
        """Positive when the side to move is better."""
        white = self.side_score(position, Color.WHITE)
        black = self.side_score(position, Color.BLACK)
        score = white - black
        if self._weights.mobility:
            score += self._weights.mobility * self._mobility_balance(position)
        if position.side_to_move == Color.WHITE:
            return score
        return -score

    def side_score(self, position: Position, color: Color) -> int:
        """Material and static positional terms for one side."""
        board = position.board
        w = self._weights
        total = 0
        for piece_type, value in PIECE_VALUES.items():
            squares = board.pieces(color, piece_type)
            total += value * len(squares)
            if w.center and piece_type in _CENTER_PIECES:
                total += sum(w.center * _CENTER_BONUS[sq] // 2 for sq in squares)
            if w.pawn_advance and piece_type == PieceType.PAWN:
                total += sum(w.pawn_advance * _pawn_progress(sq, color) for sq in squares)
        if w.king_shelter:
            total += w.king_shelter * _king_shelter(position, color)
        return total

    def _mobility_balance(self, position: Position) -> int:
        """White's pseudo-legal move count minus Black's."""
        counts: dict[Color, int] = {}
        for color in Color:
            view = position.with_side_to_move(color)
            counts[color] = len(MoveGenerator(view).generate_pseudo_legal_moves())
        return counts[Color.WHITE] - counts[Color.BLACK]


def material_balance(position: Position) -> int:
    """White material minus Black material, in centipawns."""
    board = position.board
    return sum(
        value
        * (
            len(board.pieces(Color.WHITE, piece_type))
            - len(board.pieces(Color.BLACK, piece_type))
        )
        for piece_type, value in PIECE_VALUES.items()
    )


def _pawn_progress(sq: Square, color: Color) -> int:
    rank_idx = rank_of(sq)
    return rank_idx - 1 if color == Color.WHITE else 6 - rank_idx


def _king_shelter(position: Position, color: Color) -> int:
    board = position.board
    king_sq = board.king_square(color)
    home_rank = 0 if color == Color.WHITE else 7
    if rank_of(king_sq) != home_rank:
        return 0
    shield_rank = 1 if color == Color.WHITE else 6
    king_file = file_of(king_sq)
    pawns = board.pieces_bitboard(color, PieceType.PAWN)
    count = 0
    for f in (king_file - 1, king_file, king_file + 1):
        if 0 <= f < 8 and pawns & (1 << make_square(f, shield_rank)):
            count += 1
    return count

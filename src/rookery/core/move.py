"""Move value object (UCI-style representation)."""

from __future__ import annotations

from dataclasses import dataclass

from rookery.core.enums import MoveFlag, PieceType
from rookery.core.piece import piece_type_letter
from rookery.core.types import Square, square_name


@dataclass(frozen=True, slots=True)
class Move:
    """Immutable value object representing a single chess move.

    ``flag`` is assigned by the move generator from the origin, destination and
    board contents; callers identify a move by ``(from_sq, to_sq, promotion)``
    and look up the generated move (see :func:`rookery.core.notation.move_from_uci`).
    """

    from_sq: Square
    to_sq: Square
    flag: MoveFlag = MoveFlag.NORMAL
    promotion: PieceType | None = None

    def __str__(self) -> str:
        base = f"{square_name(self.from_sq)}{square_name(self.to_sq)}"
        if self.promotion is not None:
            base += piece_type_letter(self.promotion)
        return base

    @property
    def uci(self) -> str:
        """UCI long-algebraic notation."""
        return str(self)

    @property
    def is_castle(self) -> bool:
        return self.flag in (MoveFlag.CASTLE_KINGSIDE, MoveFlag.CASTLE_QUEENSIDE)

    def matches(self, from_sq: Square, to_sq: Square, promotion: PieceType | None) -> bool:
        """Whether this move has the given identifying triple."""
        return (
            self.from_sq == from_sq
            and self.to_sq == to_sq
            and self.promotion == promotion
        )

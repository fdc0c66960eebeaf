"""Position: complete game state (board + metadata) as an immutable value."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from rookery.core.board import Board
from rookery.core.enums import CastlingRights, Color
from rookery.core.types import Square

RepetitionKey = tuple[Board, Color, CastlingRights, Square | None]


@dataclass(frozen=True, slots=True)
class Position:
    """Full chess position: board + side to move + castling + en passant + clocks.

    Positions never change after construction; :func:`rookery.core.move_applier.make_move`
    returns a new instance for every transition.
    """

    board: Board = field(default_factory=Board.initial)
    side_to_move: Color = Color.WHITE
    castling: CastlingRights = CastlingRights.ALL
    en_passant: Square | None = None
    halfmove_clock: int = 0
    fullmove_number: int = 1

    def __post_init__(self) -> None:
        if self.halfmove_clock < 0:
            raise ValueError(f"Negative halfmove clock: {self.halfmove_clock}")
        if self.fullmove_number < 1:
            raise ValueError(f"Fullmove number must be >= 1: {self.fullmove_number}")

    @classmethod
    def initial(cls) -> Position:
        """Standard starting position, white to move."""
        return cls()

    @property
    def repetition_key(self) -> RepetitionKey:
        """Identity used for repetition: everything except the move counters.

        The en-passant target is set after every double pawn step, even when
        no capture is possible, so two positions that differ only in that
        target never repeat each other.
        """
        return (self.board, self.side_to_move, self.castling, self.en_passant)

    def is_repetition_of(self, other: Position) -> bool:
        return self.repetition_key == other.repetition_key

    def with_side_to_move(self, color: Color) -> Position:
        """Copy with a different side to move and no en-passant target."""
        return replace(self, side_to_move=color, en_passant=None)

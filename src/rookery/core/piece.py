"""Piece value object."""

from __future__ import annotations

from dataclasses import dataclass

from rookery.core.enums import Color, PieceType

_LETTERS: dict[PieceType, str] = {
    PieceType.PAWN: "p",
    PieceType.KNIGHT: "n",
    PieceType.BISHOP: "b",
    PieceType.ROOK: "r",
    PieceType.QUEEN: "q",
    PieceType.KING: "k",
}
_KINDS: dict[str, PieceType] = {v: k for k, v in _LETTERS.items()}


@dataclass(frozen=True, slots=True)
class Piece:
    """Immutable (color, kind) pair."""

    color: Color
    piece_type: PieceType

    def __str__(self) -> str:
        """FEN character (uppercase = white, lowercase = black)."""
        letter = _LETTERS[self.piece_type]
        return letter.upper() if self.color == Color.WHITE else letter

    @classmethod
    def from_char(cls, char: str) -> Piece:
        """Create piece from FEN character, e.g. 'N' → white knight."""
        ptype = _KINDS.get(char.lower()) if len(char) == 1 else None
        if ptype is None:
            raise ValueError(f"Invalid piece character: {char!r}")
        return cls(Color.WHITE if char.isupper() else Color.BLACK, ptype)


def piece_type_letter(piece_type: PieceType) -> str:
    """Lowercase letter for *piece_type*, as used in UCI promotion suffixes."""
    return _LETTERS[piece_type]


def piece_type_from_letter(letter: str) -> PieceType:
    """Inverse of :func:`piece_type_letter` (case-insensitive)."""
    try:
        return _KINDS[letter.lower()]
    except KeyError:
        raise ValueError(f"Invalid piece letter: {letter!r}") from None

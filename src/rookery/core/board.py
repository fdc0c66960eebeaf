"""Board - immutable piece placement on an 8x8 board."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping

from rookery.core.enums import Color, PieceType
from rookery.core.piece import Piece
from rookery.core.types import Square, make_square

_PIECE_TYPE_COUNT = 6
_COLOR_COUNT = 2

_BACK_RANK: tuple[PieceType, ...] = (
    PieceType.ROOK,
    PieceType.KNIGHT,
    PieceType.BISHOP,
    PieceType.QUEEN,
    PieceType.KING,
    PieceType.BISHOP,
    PieceType.KNIGHT,
    PieceType.ROOK,
)


class Board:
    """Immutable 64-square placement with derived per-piece bitboards.

    Every "mutation" goes through :meth:`replace`, which returns a new board
    and leaves the receiver untouched.
    """

    __slots__ = (
        "_squares",
        "_piece_bitboards",
        "_color_bitboards",
        "_king_squares",
        "_hash",
    )

    def __init__(self, squares: Iterable[Piece | None] = ()) -> None:
        cells = tuple(squares) or (None,) * 64
        if len(cells) != 64:
            raise ValueError(f"Board needs exactly 64 squares, got {len(cells)}")
        self._squares: tuple[Piece | None, ...] = cells
        # [color][piece_type-1] -> bitboard of occupied squares.
        self._piece_bitboards: list[list[int]] = [
            [0] * _PIECE_TYPE_COUNT for _ in range(_COLOR_COUNT)
        ]
        # [color] -> bitboard of all occupied squares for that color.
        self._color_bitboards: list[int] = [0] * _COLOR_COUNT
        # [color] -> king square cache (None if king missing).
        self._king_squares: list[Square | None] = [None] * _COLOR_COUNT
        self._hash: int | None = None
        for sq, piece in enumerate(cells):
            if piece is not None:
                self._index(sq, piece)

    @staticmethod
    def _piece_type_index(piece_type: PieceType) -> int:
        return int(piece_type) - 1

    @staticmethod
    def _squares_from_bitboard(bitboard: int) -> list[Square]:
        squares: list[Square] = []
        while bitboard:
            lsb = bitboard & -bitboard
            squares.append(lsb.bit_length() - 1)
            bitboard ^= lsb
        return squares

    def _index(self, sq: Square, piece: Piece) -> None:
        mask = 1 << sq
        color_idx = int(piece.color)
        self._piece_bitboards[color_idx][self._piece_type_index(piece.piece_type)] |= mask
        self._color_bitboards[color_idx] |= mask
        if piece.piece_type == PieceType.KING:
            self._king_squares[color_idx] = sq

    def _unindex(self, sq: Square, piece: Piece) -> None:
        mask = ~(1 << sq)
        color_idx = int(piece.color)
        self._piece_bitboards[color_idx][self._piece_type_index(piece.piece_type)] &= mask
        self._color_bitboards[color_idx] &= mask
        if (
            piece.piece_type == PieceType.KING
            and self._king_squares[color_idx] == sq
        ):
            self._king_squares[color_idx] = None

    # -- Element access -----------------------------------------------------

    def __getitem__(self, sq: Square) -> Piece | None:
        return self._squares[sq]

    def __iter__(self) -> Iterator[Piece | None]:
        return iter(self._squares)

    def __len__(self) -> int:
        return 64

    def is_empty(self, sq: Square) -> bool:
        return self._squares[sq] is None

    # -- Query helpers ------------------------------------------------------

    def pieces(self, color: Color, piece_type: PieceType) -> list[Square]:
        """Squares occupied by *color*'s *piece_type*."""
        return self._squares_from_bitboard(self.pieces_bitboard(color, piece_type))

    def pieces_bitboard(self, color: Color, piece_type: PieceType) -> int:
        """Bitboard of squares occupied by *color*'s *piece_type*."""
        return self._piece_bitboards[int(color)][self._piece_type_index(piece_type)]

    def has_piece(self, color: Color, piece_type: PieceType) -> bool:
        """Whether *color* has at least one piece of *piece_type*."""
        return bool(self.pieces_bitboard(color, piece_type))

    def all_pieces_bitboard(self, color: Color) -> int:
        """Bitboard of all squares occupied by *color*."""
        return self._color_bitboards[int(color)]

    def all_pieces(self, color: Color) -> list[Square]:
        """All squares occupied by *color*."""
        return self._squares_from_bitboard(self.all_pieces_bitboard(color))

    def occupied_bitboard(self) -> int:
        return self._color_bitboards[0] | self._color_bitboards[1]

    def king_count(self, color: Color) -> int:
        return self.pieces_bitboard(color, PieceType.KING).bit_count()

    def king_square(self, color: Color) -> Square:
        """Return the single king square for *color*."""
        sq = self._king_squares[int(color)]
        if sq is None:
            raise ValueError(f"No {color.name} king on board")
        return sq

    # -- Transitions --------------------------------------------------------

    def replace(self, changes: Mapping[Square, Piece | None]) -> Board:
        """Return a copy with *changes* applied (``None`` empties a square)."""
        board = Board.__new__(Board)
        squares = list(self._squares)
        board._piece_bitboards = [row.copy() for row in self._piece_bitboards]
        board._color_bitboards = self._color_bitboards.copy()
        board._king_squares = self._king_squares.copy()
        board._hash = None
        for sq, piece in changes.items():
            old_piece = squares[sq]
            if old_piece == piece:
                continue
            if old_piece is not None:
                board._unindex(sq, old_piece)
            squares[sq] = piece
            if piece is not None:
                board._index(sq, piece)
        board._squares = tuple(squares)
        return board

    # -- Factory ------------------------------------------------------------

    @classmethod
    def empty(cls) -> Board:
        return cls()

    @classmethod
    def initial(cls) -> Board:
        """Standard starting position."""
        squares: list[Piece | None] = [None] * 64
        for f, pt in enumerate(_BACK_RANK):
            squares[make_square(f, 0)] = Piece(Color.WHITE, pt)
            squares[make_square(f, 1)] = Piece(Color.WHITE, PieceType.PAWN)
            squares[make_square(f, 6)] = Piece(Color.BLACK, PieceType.PAWN)
            squares[make_square(f, 7)] = Piece(Color.BLACK, pt)
        return cls(squares)

    @classmethod
    def from_mapping(cls, pieces: Mapping[Square, Piece]) -> Board:
        """Build a board from a sparse square → piece mapping."""
        squares: list[Piece | None] = [None] * 64
        for sq, piece in pieces.items():
            squares[sq] = piece
        return cls(squares)

    # -- Dunder helpers -----------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self._squares == other._squares

    def __hash__(self) -> int:
        if self._hash is None:
            self._hash = hash(self._squares)
        return self._hash

    def __repr__(self) -> str:
        rows: list[str] = []
        for rank in range(7, -1, -1):
            row = []
            for file in range(8):
                p = self[make_square(file, rank)]
                row.append(str(p) if p else ".")
            rows.append(f"{rank + 1} {' '.join(row)}")
        rows.append("  a b c d e f g h")
        return "\n".join(rows)

"""Legal and pseudo-legal move generation + attack detection."""

from __future__ import annotations

from typing import TYPE_CHECKING, NamedTuple

from rookery.core.enums import CastlingRights, Color, MoveFlag, PieceType
from rookery.core.move import Move
from rookery.core.move_applier import make_move
from rookery.core.piece import Piece
from rookery.core.types import Square, make_square

if TYPE_CHECKING:
    from rookery.core.board import Board
    from rookery.core.position import Position


KNIGHT_OFFSETS: tuple[tuple[int, int], ...] = (
    (-2, -1),
    (-2, 1),
    (-1, -2),
    (-1, 2),
    (1, -2),
    (1, 2),
    (2, -1),
    (2, 1),
)

KING_OFFSETS: tuple[tuple[int, int], ...] = (
    (-1, -1),
    (-1, 0),
    (-1, 1),
    (0, -1),
    (0, 1),
    (1, -1),
    (1, 0),
    (1, 1),
)

BISHOP_DIRS: tuple[tuple[int, int], ...] = ((-1, -1), (-1, 1), (1, -1), (1, 1))
ROOK_DIRS: tuple[tuple[int, int], ...] = ((-1, 0), (1, 0), (0, -1), (0, 1))
QUEEN_DIRS: tuple[tuple[int, int], ...] = BISHOP_DIRS + ROOK_DIRS

PROMOTION_TYPES: tuple[PieceType, ...] = (
    PieceType.QUEEN,
    PieceType.ROOK,
    PieceType.BISHOP,
    PieceType.KNIGHT,
)

# Per color: forward step, start rank, promotion-from rank.
_PAWN_FORWARD: tuple[int, int] = (8, -8)
_PAWN_START_RANK: tuple[int, int] = (1, 6)
_PAWN_LAST_STEP_RANK: tuple[int, int] = (6, 1)


# -- Precomputed lookup tables ---------------------------------------------


def _build_targets(
    offsets: tuple[tuple[int, int], ...],
) -> tuple[tuple[Square, ...], ...]:
    targets: list[tuple[Square, ...]] = []
    for sq in range(64):
        file_idx = sq & 7
        rank_idx = sq >> 3
        moves: list[Square] = []
        for df, dr in offsets:
            af = file_idx + df
            ar = rank_idx + dr
            if 0 <= af < 8 and 0 <= ar < 8:
                moves.append(make_square(af, ar))
        targets.append(tuple(moves))
    return tuple(targets)


def _build_attack_masks(targets: tuple[tuple[Square, ...], ...]) -> tuple[int, ...]:
    masks: list[int] = [0] * 64
    for sq in range(64):
        mask = 0
        for to_sq in targets[sq]:
            mask |= 1 << to_sq
        masks[sq] = mask
    return tuple(masks)


def _build_pawn_captures() -> tuple[tuple[tuple[Square, ...], ...], ...]:
    """[color][sq] -> squares a pawn of *color* on *sq* attacks."""
    white = _build_targets(((-1, 1), (1, 1)))
    black = _build_targets(((-1, -1), (1, -1)))
    return (white, black)


def _build_pawn_attacker_masks(
    captures: tuple[tuple[tuple[Square, ...], ...], ...],
) -> tuple[tuple[int, ...], tuple[int, ...]]:
    """[color][sq] -> bitboard of squares from which a *color* pawn hits *sq*."""
    masks: list[list[int]] = [[0] * 64, [0] * 64]
    for color_idx in range(2):
        for from_sq in range(64):
            for to_sq in captures[color_idx][from_sq]:
                masks[color_idx][to_sq] |= 1 << from_sq
    return (tuple(masks[0]), tuple(masks[1]))


def _build_rays(
    directions: tuple[tuple[int, int], ...],
) -> tuple[tuple[tuple[Square, ...], ...], ...]:
    rays_per_square: list[tuple[tuple[Square, ...], ...]] = []
    for sq in range(64):
        file_idx = sq & 7
        rank_idx = sq >> 3
        square_rays: list[tuple[Square, ...]] = []
        for df, dr in directions:
            af = file_idx + df
            ar = rank_idx + dr
            ray: list[Square] = []
            while 0 <= af < 8 and 0 <= ar < 8:
                ray.append(make_square(af, ar))
                af += df
                ar += dr
            square_rays.append(tuple(ray))
        rays_per_square.append(tuple(square_rays))
    return tuple(rays_per_square)


_KNIGHT_TARGETS = _build_targets(KNIGHT_OFFSETS)
_KING_TARGETS = _build_targets(KING_OFFSETS)
_KNIGHT_ATTACK_MASKS = _build_attack_masks(_KNIGHT_TARGETS)
_KING_ATTACK_MASKS = _build_attack_masks(_KING_TARGETS)
_PAWN_CAPTURES = _build_pawn_captures()
_PAWN_ATTACKER_MASKS = _build_pawn_attacker_masks(_PAWN_CAPTURES)

_BISHOP_RAYS = _build_rays(BISHOP_DIRS)
_ROOK_RAYS = _build_rays(ROOK_DIRS)
_QUEEN_RAYS = _build_rays(QUEEN_DIRS)

_SLIDER_RAYS: dict[PieceType, tuple[tuple[tuple[Square, ...], ...], ...]] = {
    PieceType.BISHOP: _BISHOP_RAYS,
    PieceType.ROOK: _ROOK_RAYS,
    PieceType.QUEEN: _QUEEN_RAYS,
}


class _CastlePath(NamedTuple):
    right: CastlingRights
    flag: MoveFlag
    king_to: Square
    rook_from: Square
    must_be_empty: tuple[Square, ...]
    king_crosses: tuple[Square, ...]


def _castle_paths(
    base: Square, kingside: CastlingRights, queenside: CastlingRights
) -> tuple[_CastlePath, _CastlePath]:
    return (
        _CastlePath(
            kingside,
            MoveFlag.CASTLE_KINGSIDE,
            base + 6,
            base + 7,
            (base + 5, base + 6),
            (base + 5, base + 6),
        ),
        _CastlePath(
            queenside,
            MoveFlag.CASTLE_QUEENSIDE,
            base + 2,
            base,
            (base + 1, base + 2, base + 3),
            (base + 3, base + 2),
        ),
    )


_CASTLE_PATHS: tuple[tuple[_CastlePath, _CastlePath], ...] = (
    _castle_paths(0, CastlingRights.WHITE_KINGSIDE, CastlingRights.WHITE_QUEENSIDE),
    _castle_paths(56, CastlingRights.BLACK_KINGSIDE, CastlingRights.BLACK_QUEENSIDE),
)
_KING_HOMES: tuple[Square, Square] = (make_square(4, 0), make_square(4, 7))


def is_square_attacked(board: Board, sq: Square, by_color: Color) -> bool:
    """Is *sq* attacked by any piece of *by_color* on *board*?

    Only pseudo-legal reachability is considered: a pinned piece still attacks.
    """
    by_idx = int(by_color)

    if board.pieces_bitboard(by_color, PieceType.PAWN) & _PAWN_ATTACKER_MASKS[by_idx][sq]:
        return True

    if board.pieces_bitboard(by_color, PieceType.KNIGHT) & _KNIGHT_ATTACK_MASKS[sq]:
        return True

    if board.pieces_bitboard(by_color, PieceType.KING) & _KING_ATTACK_MASKS[sq]:
        return True

    queens = board.pieces_bitboard(by_color, PieceType.QUEEN)
    if board.pieces_bitboard(by_color, PieceType.BISHOP) or queens:
        for ray in _BISHOP_RAYS[sq]:
            for to_sq in ray:
                piece = board[to_sq]
                if piece is None:
                    continue
                if piece.color == by_color and piece.piece_type in (
                    PieceType.BISHOP,
                    PieceType.QUEEN,
                ):
                    return True
                break

    if board.pieces_bitboard(by_color, PieceType.ROOK) or queens:
        for ray in _ROOK_RAYS[sq]:
            for to_sq in ray:
                piece = board[to_sq]
                if piece is None:
                    continue
                if piece.color == by_color and piece.piece_type in (
                    PieceType.ROOK,
                    PieceType.QUEEN,
                ):
                    return True
                break

    return False


def legal_moves(position: Position) -> list[Move]:
    """All legal moves for the side to move, in generation order."""
    return MoveGenerator(position).generate_legal_moves()


class MoveGenerator:
    """Generates moves for a given :class:`Position`.

    Output order is deterministic: pieces by kind (pawn → king), origins by
    ascending square, promotions queen → knight.
    """

    __slots__ = ("_pos", "_board")

    def __init__(self, position: Position) -> None:
        self._pos = position
        self._board = position.board

    # -- Public API ---------------------------------------------------------

    def generate_legal_moves(self) -> list[Move]:
        """All strictly legal moves for the side to move."""
        legal: list[Move] = []
        moving_color = self._pos.side_to_move
        opponent = moving_color.opposite

        for move in self.generate_pseudo_legal_moves():
            if self._is_legal(move, moving_color, opponent):
                legal.append(move)
        return legal

    def has_legal_move(self) -> bool:
        """Whether the side to move has at least one legal move."""
        moving_color = self._pos.side_to_move
        opponent = moving_color.opposite
        return any(
            self._is_legal(move, moving_color, opponent)
            for move in self.generate_pseudo_legal_moves()
        )

    def _is_legal(self, move: Move, moving_color: Color, opponent: Color) -> bool:
        # Play the move on a scratch position and look at the mover's king.
        board = make_move(self._pos, move).board
        return not is_square_attacked(board, board.king_square(moving_color), opponent)

    def generate_pseudo_legal_moves(self) -> list[Move]:
        """All pseudo-legal moves (may leave own king in check)."""
        moves: list[Move] = []
        color = self._pos.side_to_move
        board = self._board

        for sq in board.pieces(color, PieceType.PAWN):
            self._gen_pawn(sq, color, moves)
        for sq in board.pieces(color, PieceType.KNIGHT):
            self._gen_steps(sq, color, _KNIGHT_TARGETS[sq], moves)
        for piece_type in (PieceType.BISHOP, PieceType.ROOK, PieceType.QUEEN):
            rays = _SLIDER_RAYS[piece_type]
            for sq in board.pieces(color, piece_type):
                self._gen_sliding(sq, color, rays[sq], moves)
        for sq in board.pieces(color, PieceType.KING):
            self._gen_steps(sq, color, _KING_TARGETS[sq], moves)
            self._gen_castling(sq, color, moves)

        return moves

    def find_move(
        self,
        from_sq: Square,
        to_sq: Square,
        promotion: PieceType | None = None,
    ) -> Move | None:
        """The legal move identified by (origin, destination, promotion), if any."""
        for move in self.generate_legal_moves():
            if move.matches(from_sq, to_sq, promotion):
                return move
        return None

    # -- Attack detection (public) -----------------------------------------

    def is_in_check(self, color: Color) -> bool:
        """Is *color*'s king attacked by the opponent?"""
        king_sq = self._board.king_square(color)
        return is_square_attacked(self._board, king_sq, color.opposite)

    def is_square_attacked(self, sq: Square, by_color: Color) -> bool:
        """Is *sq* attacked by any piece of *by_color*?"""
        return is_square_attacked(self._board, sq, by_color)

    # -- Piece-specific generators (private) -------------------------------

    def _gen_pawn(self, sq: Square, color: Color, moves: list[Move]) -> None:
        board = self._board
        color_idx = int(color)
        rank_idx = sq >> 3
        promoting = rank_idx == _PAWN_LAST_STEP_RANK[color_idx]

        one_step = sq + _PAWN_FORWARD[color_idx]
        if board.is_empty(one_step):
            if promoting:
                self._add_promotions(sq, one_step, moves)
            else:
                moves.append(Move(sq, one_step))
                if rank_idx == _PAWN_START_RANK[color_idx]:
                    two_step = one_step + _PAWN_FORWARD[color_idx]
                    if board.is_empty(two_step):
                        moves.append(Move(sq, two_step, MoveFlag.DOUBLE_PAWN))

        for cap_sq in _PAWN_CAPTURES[color_idx][sq]:
            target = board[cap_sq]
            if target is not None:
                if target.color == color:
                    continue
                if promoting:
                    self._add_promotions(sq, cap_sq, moves)
                else:
                    moves.append(Move(sq, cap_sq))
            elif cap_sq == self._pos.en_passant and self._has_en_passant_victim(
                sq, cap_sq, color
            ):
                moves.append(Move(sq, cap_sq, MoveFlag.EN_PASSANT))

    def _has_en_passant_victim(self, sq: Square, cap_sq: Square, color: Color) -> bool:
        victim = self._board[(sq & ~7) | (cap_sq & 7)]
        return victim == Piece(color.opposite, PieceType.PAWN)

    @staticmethod
    def _add_promotions(from_sq: Square, to_sq: Square, moves: list[Move]) -> None:
        for pt in PROMOTION_TYPES:
            moves.append(Move(from_sq, to_sq, MoveFlag.PROMOTION, pt))

    def _gen_steps(
        self,
        sq: Square,
        color: Color,
        targets: tuple[Square, ...],
        moves: list[Move],
    ) -> None:
        board = self._board
        for to_sq in targets:
            target = board[to_sq]
            if target is None or target.color != color:
                moves.append(Move(sq, to_sq))

    def _gen_sliding(
        self,
        sq: Square,
        color: Color,
        rays: tuple[tuple[Square, ...], ...],
        moves: list[Move],
    ) -> None:
        board = self._board
        for ray in rays:
            for to_sq in ray:
                target = board[to_sq]
                if target is None:
                    moves.append(Move(sq, to_sq))
                    continue
                if target.color != color:
                    moves.append(Move(sq, to_sq))
                break

    def _gen_castling(self, king_sq: Square, color: Color, moves: list[Move]) -> None:
        castling = self._pos.castling
        # Hand-built positions may carry rights without the king at home.
        if not castling or king_sq != _KING_HOMES[int(color)]:
            return
        if self.is_in_check(color):
            return

        board = self._board
        opponent = color.opposite
        rook = Piece(color, PieceType.ROOK)
        for path in _CASTLE_PATHS[int(color)]:
            if not castling & path.right or board[path.rook_from] != rook:
                continue
            if any(not board.is_empty(s) for s in path.must_be_empty):
                continue
            if any(is_square_attacked(board, s, opponent) for s in path.king_crosses):
                continue
            moves.append(Move(king_sq, path.king_to, path.flag))

"""Position transitions: apply a move and derive the successor position."""

from __future__ import annotations

from dataclasses import replace

from rookery.core.enums import CastlingRights, Color, MoveFlag, PieceType
from rookery.core.errors import IllegalMoveError
from rookery.core.move import Move
from rookery.core.piece import Piece
from rookery.core.position import Position
from rookery.core.types import Square, file_of, make_square, rank_of

# Rook home squares and the right lost when anything moves from or onto them.
_ROOK_CORNERS: dict[Square, CastlingRights] = {
    make_square(0, 0): CastlingRights.WHITE_QUEENSIDE,
    make_square(7, 0): CastlingRights.WHITE_KINGSIDE,
    make_square(0, 7): CastlingRights.BLACK_QUEENSIDE,
    make_square(7, 7): CastlingRights.BLACK_KINGSIDE,
}
_KING_RIGHTS: tuple[CastlingRights, CastlingRights] = (
    CastlingRights.WHITE_BOTH,
    CastlingRights.BLACK_BOTH,
)


def apply_move(position: Position, move: Move) -> Position:
    """Apply a legal *move* and return the resulting position.

    The move is matched on origin, destination and promotion; its flag is
    taken from the generated move.

    Raises:
        IllegalMoveError: *move* is not among the legal moves of *position*.
    """
    from rookery.core.move_generator import MoveGenerator

    legal = MoveGenerator(position).find_move(move.from_sq, move.to_sq, move.promotion)
    if legal is None:
        raise IllegalMoveError(move)
    return make_move(position, legal)


def make_move(position: Position, move: Move) -> Position:
    """Unchecked transition for moves produced by the move generator."""
    board = position.board
    piece = board[move.from_sq]
    if piece is None:
        raise IllegalMoveError(move, "no piece on origin square")

    changes: dict[Square, Piece | None] = {move.from_sq: None}
    captured = board[move.to_sq]

    # En passant: the captured pawn sits beside the origin, not on the target
    if move.flag == MoveFlag.EN_PASSANT:
        victim_sq = make_square(file_of(move.to_sq), rank_of(move.from_sq))
        captured = board[victim_sq]
        changes[victim_sq] = None

    placed = piece
    if move.flag == MoveFlag.PROMOTION and move.promotion is not None:
        placed = Piece(piece.color, move.promotion)
    changes[move.to_sq] = placed

    # Slide the rook for castling
    if move.flag == MoveFlag.CASTLE_KINGSIDE:
        r = rank_of(move.from_sq)
        changes[make_square(7, r)] = None
        changes[make_square(5, r)] = board[make_square(7, r)]
    elif move.flag == MoveFlag.CASTLE_QUEENSIDE:
        r = rank_of(move.from_sq)
        changes[make_square(0, r)] = None
        changes[make_square(3, r)] = board[make_square(0, r)]

    en_passant: Square | None = None
    if move.flag == MoveFlag.DOUBLE_PAWN:
        en_passant = make_square(
            file_of(move.from_sq),
            (rank_of(move.from_sq) + rank_of(move.to_sq)) // 2,
        )

    if piece.piece_type == PieceType.PAWN or captured is not None:
        halfmove_clock = 0
    else:
        halfmove_clock = position.halfmove_clock + 1

    fullmove_number = position.fullmove_number
    if position.side_to_move == Color.BLACK:
        fullmove_number += 1

    return replace(
        position,
        board=board.replace(changes),
        side_to_move=position.side_to_move.opposite,
        castling=_revoke_castling(position.castling, move, piece),
        en_passant=en_passant,
        halfmove_clock=halfmove_clock,
        fullmove_number=fullmove_number,
    )


def _revoke_castling(castling: CastlingRights, move: Move, piece: Piece) -> CastlingRights:
    if not castling:
        return castling
    if piece.piece_type == PieceType.KING:
        castling &= ~_KING_RIGHTS[int(piece.color)]
    for sq in (move.from_sq, move.to_sq):
        lost = _ROOK_CORNERS.get(sq)
        if lost is not None:
            castling &= ~lost
    return castling

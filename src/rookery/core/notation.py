"""Text forms of positions and moves: FEN and UCI."""

from __future__ import annotations

from rookery.core.board import Board
from rookery.core.enums import CastlingRights, Color, PieceType
from rookery.core.errors import MalformedPositionError
from rookery.core.move import Move
from rookery.core.move_generator import MoveGenerator, is_square_attacked
from rookery.core.piece import Piece, piece_type_from_letter
from rookery.core.position import Position
from rookery.core.types import (
    Square,
    file_of,
    make_square,
    parse_square,
    rank_of,
    square_name,
)

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

_EMPTY_RUNS = "12345678"

_CASTLING_CHARS: tuple[tuple[str, CastlingRights], ...] = (
    ("K", CastlingRights.WHITE_KINGSIDE),
    ("Q", CastlingRights.WHITE_QUEENSIDE),
    ("k", CastlingRights.BLACK_KINGSIDE),
    ("q", CastlingRights.BLACK_QUEENSIDE),
)

# Right -> (king home, rook home, color)
_CASTLING_HOMES: dict[CastlingRights, tuple[Square, Square, Color]] = {
    CastlingRights.WHITE_KINGSIDE: (make_square(4, 0), make_square(7, 0), Color.WHITE),
    CastlingRights.WHITE_QUEENSIDE: (make_square(4, 0), make_square(0, 0), Color.WHITE),
    CastlingRights.BLACK_KINGSIDE: (make_square(4, 7), make_square(7, 7), Color.BLACK),
    CastlingRights.BLACK_QUEENSIDE: (make_square(4, 7), make_square(0, 7), Color.BLACK),
}


# ── FEN ──────────────────────────────────────────────────────────────────────


def position_from_fen(fen: str) -> Position:
    """Parse a FEN string into a validated :class:`Position`.

    Raises:
        MalformedPositionError: the text is not FEN, or it describes a
            position that cannot arise in a game (see :func:`validate_position`).
    """
    parts = fen.split()
    if not (4 <= len(parts) <= 6):
        raise MalformedPositionError(f"Invalid FEN (need 4-6 fields): {fen!r}")

    placement, side_part, castling_part, ep_part = parts[:4]

    # 1. Piece placement
    ranks = placement.split("/")
    if len(ranks) != 8:
        raise MalformedPositionError(f"Invalid FEN board (must contain 8 ranks): {fen!r}")
    squares: list[Piece | None] = [None] * 64
    for rank_idx, rank_text in enumerate(ranks):
        rank = 7 - rank_idx
        file = 0
        for ch in rank_text:
            # str.isdigit() also accepts non-ASCII digits such as '²'.
            if ch in _EMPTY_RUNS:
                file += int(ch)
            elif ch.isdigit():
                raise MalformedPositionError(f"Invalid FEN digit {ch!r}: {fen!r}")
            else:
                if file >= 8:
                    raise MalformedPositionError(f"Invalid FEN rank width: {fen!r}")
                try:
                    squares[make_square(file, rank)] = Piece.from_char(ch)
                except ValueError as exc:
                    raise MalformedPositionError(str(exc)) from exc
                file += 1
            if file > 8:
                raise MalformedPositionError(f"Invalid FEN rank width: {fen!r}")
        if file != 8:
            raise MalformedPositionError(f"Invalid FEN rank width: {fen!r}")

    # 2. Side to move
    if side_part == "w":
        side = Color.WHITE
    elif side_part == "b":
        side = Color.BLACK
    else:
        raise MalformedPositionError(f"Invalid FEN side-to-move field: {side_part!r}")

    # 3. Castling
    castling = CastlingRights.NONE
    if castling_part != "-":
        rights = dict(_CASTLING_CHARS)
        seen: set[str] = set()
        for ch in castling_part:
            right = rights.get(ch)
            if right is None or ch in seen:
                raise MalformedPositionError(
                    f"Invalid FEN castling field: {castling_part!r}"
                )
            seen.add(ch)
            castling |= right

    # 4. En passant
    ep: Square | None = None
    if ep_part != "-":
        try:
            ep = parse_square(ep_part)
        except ValueError as exc:
            raise MalformedPositionError(str(exc)) from exc

    # 5–6. Clocks (optional)
    halfmove = _parse_counter(parts, 4, default=0, minimum=0, name="halfmove clock")
    fullmove = _parse_counter(parts, 5, default=1, minimum=1, name="fullmove number")

    position = Position(Board(squares), side, castling, ep, halfmove, fullmove)
    validate_position(position)
    return position


def _parse_counter(
    parts: list[str], index: int, *, default: int, minimum: int, name: str
) -> int:
    if len(parts) <= index:
        return default
    try:
        value = int(parts[index])
    except ValueError:
        raise MalformedPositionError(f"Invalid FEN {name}: {parts[index]!r}") from None
    if value < minimum:
        raise MalformedPositionError(f"Invalid FEN {name}: {parts[index]!r}")
    return value


def position_to_fen(pos: Position) -> str:
    """Serialise a :class:`Position` to FEN."""
    # 1. Board
    rows: list[str] = []
    for rank in range(7, -1, -1):
        empty = 0
        row = ""
        for file in range(8):
            piece = pos.board[make_square(file, rank)]
            if piece is None:
                empty += 1
            else:
                if empty:
                    row += str(empty)
                    empty = 0
                row += str(piece)
        if empty:
            row += str(empty)
        rows.append(row)
    board_str = "/".join(rows)

    # 2. Side
    side_str = "w" if pos.side_to_move == Color.WHITE else "b"

    # 3. Castling
    castling_str = "".join(ch for ch, right in _CASTLING_CHARS if pos.castling & right)

    # 4. En passant
    ep_str = square_name(pos.en_passant) if pos.en_passant is not None else "-"

    return (
        f"{board_str} {side_str} {castling_str or '-'} {ep_str} "
        f"{pos.halfmove_clock} {pos.fullmove_number}"
    )


def validate_position(position: Position) -> None:
    """Reject positions that break the invariants every reachable game keeps.

    Raises:
        MalformedPositionError: wrong king count, a pawn on the first or last
            rank, a castling right without king and rook at home, an
            en-passant target that no double step could have produced, or the
            side not to move standing in check.
    """
    board = position.board

    for color in Color:
        kings = board.king_count(color)
        if kings != 1:
            raise MalformedPositionError(f"{color.name} has {kings} kings (need 1)")

    for color in Color:
        for sq in board.pieces(color, PieceType.PAWN):
            if rank_of(sq) in (0, 7):
                raise MalformedPositionError(f"Pawn on back rank: {square_name(sq)}")

    for right, (king_sq, rook_sq, color) in _CASTLING_HOMES.items():
        if not position.castling & right:
            continue
        if board[king_sq] != Piece(color, PieceType.KING) or board[rook_sq] != Piece(
            color, PieceType.ROOK
        ):
            raise MalformedPositionError(
                f"Castling right {right.name} without king and rook at home"
            )

    if position.en_passant is not None:
        _validate_en_passant(position, position.en_passant)

    mover = position.side_to_move
    waiting = mover.opposite
    if is_square_attacked(board, board.king_square(waiting), mover):
        raise MalformedPositionError(f"{waiting.name} is in check but not to move")


def _validate_en_passant(position: Position, ep: Square) -> None:
    board = position.board
    # The pawn that just double-stepped belongs to the side not to move.
    if position.side_to_move == Color.WHITE:
        ep_rank, pawn_rank, origin_rank = 5, 4, 6
    else:
        ep_rank, pawn_rank, origin_rank = 2, 3, 1
    name = square_name(ep)
    if rank_of(ep) != ep_rank:
        raise MalformedPositionError(
            f"Invalid en-passant square for side-to-move: {name!r}"
        )
    file = file_of(ep)
    pawn = Piece(position.side_to_move.opposite, PieceType.PAWN)
    if (
        board[ep] is not None
        or board[make_square(file, origin_rank)] is not None
        or board[make_square(file, pawn_rank)] != pawn
    ):
        raise MalformedPositionError(f"No double-stepped pawn behind {name!r}")


# ── UCI ──────────────────────────────────────────────────────────────────────


def move_from_uci(position: Position, uci: str) -> Move | None:
    """Resolve UCI text (``e2e4``, ``e7e8q``) to the matching legal move.

    Returns ``None`` if the text is well-formed but names no legal move.

    Raises:
        ValueError: *uci* is not UCI move syntax.
    """
    text = uci.strip()
    if len(text) not in (4, 5):
        raise ValueError(f"Invalid UCI move: {uci!r}")
    from_sq = parse_square(text[0:2])
    to_sq = parse_square(text[2:4])
    promotion: PieceType | None = None
    if len(text) == 5:
        promotion = piece_type_from_letter(text[4])
        if promotion in (PieceType.PAWN, PieceType.KING):
            raise ValueError(f"Invalid UCI promotion piece: {uci!r}")
    return MoveGenerator(position).find_move(from_sq, to_sq, promotion)

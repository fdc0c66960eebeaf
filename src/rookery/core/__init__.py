"""Core domain layer: pure chess rules with zero external dependencies.

Quick start::

    from rookery.core import Position, apply_move, classify, legal_moves

    pos = Position.initial()
    moves = legal_moves(pos)
    pos = apply_move(pos, moves[0])
    print(classify(pos, legal_moves(pos), history=[Position.initial()]))
"""

from rookery.core.board import Board
from rookery.core.enums import CastlingRights, Color, GameStatus, MoveFlag, PieceType
from rookery.core.errors import (
    ChessError,
    GameOverError,
    IllegalMoveError,
    MalformedPositionError,
)
from rookery.core.move import Move
from rookery.core.move_applier import apply_move, make_move
from rookery.core.move_generator import MoveGenerator, is_square_attacked, legal_moves
from rookery.core.notation import (
    STARTING_FEN,
    move_from_uci,
    position_from_fen,
    position_to_fen,
    validate_position,
)
from rookery.core.piece import Piece
from rookery.core.position import Position
from rookery.core.rules import Rules, classify
from rookery.core.types import (
    Square,
    file_of,
    make_square,
    parse_square,
    rank_of,
    square_name,
)

__all__ = [
    # Enums / flags
    "CastlingRights",
    "Color",
    "GameStatus",
    "MoveFlag",
    "PieceType",
    # Errors
    "ChessError",
    "GameOverError",
    "IllegalMoveError",
    "MalformedPositionError",
    # Types / helpers
    "Square",
    "file_of",
    "make_square",
    "parse_square",
    "rank_of",
    "square_name",
    # Domain objects
    "Board",
    "Move",
    "MoveGenerator",
    "Piece",
    "Position",
    "Rules",
    # Operations
    "apply_move",
    "classify",
    "is_square_attacked",
    "legal_moves",
    "make_move",
    # Notation
    "STARTING_FEN",
    "move_from_uci",
    "position_from_fen",
    "position_to_fen",
    "validate_position",
]

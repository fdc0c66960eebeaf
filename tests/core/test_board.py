"""Tests for the immutable Board."""

import pytest

from rookery.core.board import Board
from rookery.core.enums import Color, PieceType
from rookery.core.piece import Piece
from rookery.core.types import A1, E1, E2, E4, E8, H8


class TestInitialBoard:
    def test_piece_counts(self) -> None:
        board = Board.initial()
        assert len(board.all_pieces(Color.WHITE)) == 16
        assert len(board.all_pieces(Color.BLACK)) == 16
        assert len(board.pieces(Color.WHITE, PieceType.PAWN)) == 8

    def test_king_squares(self) -> None:
        board = Board.initial()
        assert board.king_square(Color.WHITE) == E1
        assert board.king_square(Color.BLACK) == E8

    def test_corner_pieces(self) -> None:
        board = Board.initial()
        assert board[A1] == Piece(Color.WHITE, PieceType.ROOK)
        assert board[H8] == Piece(Color.BLACK, PieceType.ROOK)

    def test_repr_shows_ranks(self) -> None:
        text = repr(Board.initial())
        assert text.splitlines()[0] == "8 r n b q k b n r"
        assert text.splitlines()[-1] == "  a b c d e f g h"


class TestReplace:
    def test_returns_new_board_and_keeps_original(self) -> None:
        board = Board.initial()
        pawn = board[E2]
        moved = board.replace({E2: None, E4: pawn})

        assert board[E2] == pawn
        assert board[E4] is None
        assert moved[E2] is None
        assert moved[E4] == pawn

    def test_indexes_follow_changes(self) -> None:
        board = Board.initial()
        moved = board.replace({E2: None, E4: Piece(Color.WHITE, PieceType.PAWN)})

        assert E4 in moved.pieces(Color.WHITE, PieceType.PAWN)
        assert E2 not in moved.pieces(Color.WHITE, PieceType.PAWN)
        assert E2 in board.pieces(Color.WHITE, PieceType.PAWN)

    def test_king_cache_moves_with_king(self) -> None:
        board = Board.initial()
        king = board[E1]
        moved = board.replace({E1: None, E2: king})
        assert moved.king_square(Color.WHITE) == E2
        assert board.king_square(Color.WHITE) == E1

    def test_missing_king_raises(self) -> None:
        board = Board.initial().replace({E8: None})
        with pytest.raises(ValueError):
            board.king_square(Color.BLACK)


class TestValueSemantics:
    def test_equal_boards_hash_equal(self) -> None:
        a = Board.initial()
        b = Board.from_mapping({sq: p for sq, p in enumerate(a) if p is not None})
        assert a == b
        assert hash(a) == hash(b)

    def test_different_boards_not_equal(self) -> None:
        a = Board.initial()
        assert a != a.replace({E2: None})

    def test_wrong_square_count_rejected(self) -> None:
        with pytest.raises(ValueError):
            Board([None] * 63)

    def test_empty_board(self) -> None:
        board = Board.empty()
        assert board.occupied_bitboard() == 0
        assert board.king_count(Color.WHITE) == 0

"""Perft tests: the gold standard for move-generator correctness.

Reference values: https://www.chessprogramming.org/Perft_Results
"""

import pytest

from rookery.core.board import Board
from rookery.core.enums import CastlingRights, Color, MoveFlag, PieceType
from rookery.core.move import Move
from rookery.core.move_applier import make_move
from rookery.core.move_generator import MoveGenerator, is_square_attacked, legal_moves
from rookery.core.notation import STARTING_FEN, position_from_fen
from rookery.core.piece import Piece
from rookery.core.position import Position
from rookery.core.types import A7, A8, C1, D6, E1, E2, E5, E8, G1, H1


def perft(position: Position, depth: int) -> int:
    """Count leaf nodes at *depth* by applying moves to fresh positions."""
    if depth == 0:
        return 1
    moves = MoveGenerator(position).generate_legal_moves()
    if depth == 1:
        return len(moves)
    return sum(perft(make_move(position, move), depth - 1) for move in moves)


# ── Starting position ────────────────────────────────────────────────────────


class TestPerftStarting:
    def test_depth_1(self) -> None:
        pos = position_from_fen(STARTING_FEN)
        assert perft(pos, 1) == 20

    def test_depth_2(self) -> None:
        pos = position_from_fen(STARTING_FEN)
        assert perft(pos, 2) == 400

    def test_depth_3(self) -> None:
        pos = position_from_fen(STARTING_FEN)
        assert perft(pos, 3) == 8_902

    @pytest.mark.slow
    def test_depth_4(self) -> None:
        pos = position_from_fen(STARTING_FEN)
        assert perft(pos, 4) == 197_281


# ── Kiwipete (rich in tactics: castling, ep, promotions) ─────────────────────

KIWIPETE = "r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R w KQkq - 0 1"


class TestPerftKiwipete:
    def test_depth_1(self) -> None:
        pos = position_from_fen(KIWIPETE)
        assert perft(pos, 1) == 48

    def test_depth_2(self) -> None:
        pos = position_from_fen(KIWIPETE)
        assert perft(pos, 2) == 2_039

    @pytest.mark.slow
    def test_depth_3(self) -> None:
        pos = position_from_fen(KIWIPETE)
        assert perft(pos, 3) == 97_862


# ── Position 3: en-passant + promotion edge cases ───────────────────────────

POS3 = "8/2p5/3p4/KP5r/1R3p1k/8/4P1P1/8 w - - 0 1"


class TestPerftPos3:
    def test_depth_1(self) -> None:
        pos = position_from_fen(POS3)
        assert perft(pos, 1) == 14

    def test_depth_2(self) -> None:
        pos = position_from_fen(POS3)
        assert perft(pos, 2) == 191

    def test_depth_3(self) -> None:
        pos = position_from_fen(POS3)
        assert perft(pos, 3) == 2_812


# ── Position 4: side to move in check, many promotions ───────────────────────

POS4 = "r3k2r/Pppp1ppp/1b3nbN/nP6/BBP1P3/q4N2/Pp1P2PP/R2Q1RK1 w kq - 0 1"


class TestPerftPos4:
    def test_depth_1(self) -> None:
        pos = position_from_fen(POS4)
        assert perft(pos, 1) == 6

    def test_depth_2(self) -> None:
        pos = position_from_fen(POS4)
        assert perft(pos, 2) == 264

    def test_depth_3(self) -> None:
        pos = position_from_fen(POS4)
        assert perft(pos, 3) == 9_467


# ── Position 5 ───────────────────────────────────────────────────────────────

POS5 = "rnbq1k1r/pp1Pbppp/2p5/8/2B5/8/PPP1NnPP/RNBQK2R w KQ - 1 8"


class TestPerftPos5:
    def test_depth_1(self) -> None:
        pos = position_from_fen(POS5)
        assert perft(pos, 1) == 44

    def test_depth_2(self) -> None:
        pos = position_from_fen(POS5)
        assert perft(pos, 2) == 1_486

    @pytest.mark.slow
    def test_depth_3(self) -> None:
        pos = position_from_fen(POS5)
        assert perft(pos, 3) == 62_379


# ── Special moves ────────────────────────────────────────────────────────────


def _play(position: Position, *ucis: str) -> Position:
    for uci in ucis:
        move = next(m for m in legal_moves(position) if m.uci == uci)
        position = make_move(position, move)
    return position


class TestEnPassant:
    def test_available_right_after_double_step(self) -> None:
        pos = _play(Position.initial(), "e2e4", "a7a6", "e4e5", "d7d5")
        assert Move(E5, D6, MoveFlag.EN_PASSANT) in legal_moves(pos)

    def test_expires_after_one_ply(self) -> None:
        pos = _play(Position.initial(), "e2e4", "a7a6", "e4e5", "d7d5", "a2a3", "a6a5")
        assert all(m.flag != MoveFlag.EN_PASSANT for m in legal_moves(pos))

    def test_capture_blocked_when_it_exposes_king(self) -> None:
        # Both pawns leave rank 5 and open the rook's line to the king.
        pos = position_from_fen("8/8/8/K2pP2r/8/8/8/7k w - d6 0 1")
        assert all(m.flag != MoveFlag.EN_PASSANT for m in legal_moves(pos))


class TestPromotion:
    def test_four_choices_queen_first(self) -> None:
        pos = position_from_fen("4k3/P7/8/8/8/8/8/4K3 w - - 0 1")
        promos = [m for m in legal_moves(pos) if m.from_sq == A7]
        assert [m.promotion for m in promos] == [
            PieceType.QUEEN,
            PieceType.ROOK,
            PieceType.BISHOP,
            PieceType.KNIGHT,
        ]
        assert all(m.to_sq == A8 and m.flag == MoveFlag.PROMOTION for m in promos)

    def test_capture_promotions(self) -> None:
        pos = position_from_fen("1r2k3/P7/8/8/8/8/8/4K3 w - - 0 1")
        assert len([m for m in legal_moves(pos) if m.from_sq == A7]) == 8


class TestCastling:
    def test_both_sides_available(self) -> None:
        pos = position_from_fen("4k3/8/8/8/8/8/8/R3K2R w KQ - 0 1")
        moves = legal_moves(pos)
        assert Move(E1, G1, MoveFlag.CASTLE_KINGSIDE) in moves
        assert Move(E1, C1, MoveFlag.CASTLE_QUEENSIDE) in moves

    def test_not_through_attacked_square(self) -> None:
        pos = position_from_fen("4kr2/8/8/8/8/8/8/R3K2R w KQ - 0 1")
        flags = {m.flag for m in legal_moves(pos)}
        assert MoveFlag.CASTLE_KINGSIDE not in flags
        assert MoveFlag.CASTLE_QUEENSIDE in flags

    def test_rook_square_may_be_attacked(self) -> None:
        # b1 is attacked but the king never crosses it.
        pos = position_from_fen("1r2k3/8/8/8/8/8/8/R3K2R w KQ - 0 1")
        assert Move(E1, C1, MoveFlag.CASTLE_QUEENSIDE) in legal_moves(pos)

    def test_not_out_of_check(self) -> None:
        pos = position_from_fen("4r1k1/8/8/8/8/8/8/R3K2R w KQ - 0 1")
        assert not any(m.is_castle for m in legal_moves(pos))

    def test_not_through_pieces(self) -> None:
        pos = position_from_fen("4k3/8/8/8/8/8/8/RN2K1NR w KQ - 0 1")
        assert not any(m.is_castle for m in legal_moves(pos))

    def test_requires_king_on_home_square(self) -> None:
        board = Board.from_mapping(
            {
                E2: Piece(Color.WHITE, PieceType.KING),
                H1: Piece(Color.WHITE, PieceType.ROOK),
                E8: Piece(Color.BLACK, PieceType.KING),
            }
        )
        pos = Position(board, castling=CastlingRights.ALL)
        assert not any(m.is_castle for m in legal_moves(pos))

    def test_requires_right(self) -> None:
        pos = position_from_fen("4k3/8/8/8/8/8/8/R3K2R w - - 0 1")
        assert not any(m.is_castle for m in legal_moves(pos))


class TestLegality:
    def test_pinned_piece_cannot_leave_line(self) -> None:
        pos = position_from_fen("4k3/4r3/8/8/8/8/4B3/4K3 w - - 0 1")
        assert not [m for m in legal_moves(pos) if m.from_sq == E2]

    def test_every_move_leaves_own_king_safe(self) -> None:
        pos = position_from_fen(KIWIPETE)
        for move in legal_moves(pos):
            child = make_move(pos, move)
            for reply in legal_moves(child):
                after = make_move(child, reply)
                king = after.board.king_square(child.side_to_move)
                assert not is_square_attacked(after.board, king, after.side_to_move)

    def test_generation_order_is_stable(self) -> None:
        pos = position_from_fen(KIWIPETE)
        assert legal_moves(pos) == MoveGenerator(pos).generate_legal_moves()

    def test_has_legal_move_matches_generation(self) -> None:
        for fen in (STARTING_FEN, "7k/8/5KQ1/8/8/8/8/8 b - - 0 1"):
            pos = position_from_fen(fen)
            assert MoveGenerator(pos).has_legal_move() == bool(legal_moves(pos))

    def test_find_move_returns_generated_flag(self) -> None:
        pos = position_from_fen("4k3/8/8/8/8/8/8/R3K2R w KQ - 0 1")
        assert MoveGenerator(pos).find_move(E1, G1) == Move(E1, G1, MoveFlag.CASTLE_KINGSIDE)

"""GameSession: the mutable owner of one game's position and history."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from rookery.core.enums import GameStatus, MoveFlag
from rookery.core.errors import GameOverError, IllegalMoveError, MalformedPositionError
from rookery.core.move import Move
from rookery.core.move_applier import make_move
from rookery.core.move_generator import MoveGenerator
from rookery.core.notation import move_from_uci
from rookery.core.position import Position
from rookery.core.rules import Rules
from rookery.engine.alphabeta import AlphaBetaEngine
from rookery.engine.search import CancelCheck, IEngine, SearchLimits
from rookery.game.snapshot import decode_snapshot, encode_snapshot

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MoveRecord:
    """A single entry in the move history."""

    move: Move
    position_before: Position
    position_after: Position
    status: GameStatus
    was_capture: bool = False


MoveCallback = Callable[[MoveRecord], None]
GameOverCallback = Callable[[GameStatus], None]


@dataclass
class GameEvents:
    """Observable callbacks. Multiple handlers per event."""

    on_move: list[MoveCallback] = field(default_factory=list)
    on_game_over: list[GameOverCallback] = field(default_factory=list)


class GameSession:
    """Current position, position history and game status for one game.

    Not thread-safe: one caller at a time may play, undo or reset. The
    positions it hands out are immutable and may be searched on other threads.
    """

    __slots__ = ("_positions", "_records", "_legal", "_status", "events")

    def __init__(self, start: Position | None = None) -> None:
        self.events = GameEvents()
        self._positions: list[Position] = []
        self._records: list[MoveRecord] = []
        self._legal: list[Move] = []
        self._status = GameStatus.ONGOING
        self.reset(start)

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def position(self) -> Position:
        return self._positions[-1]

    @property
    def start_position(self) -> Position:
        return self._positions[0]

    @property
    def history(self) -> tuple[Position, ...]:
        """Every position of the game, oldest first, current one last."""
        return tuple(self._positions)

    @property
    def prior_positions(self) -> tuple[Position, ...]:
        """Positions before the current one (what the classifier compares)."""
        return tuple(self._positions[:-1])

    @property
    def moves(self) -> tuple[MoveRecord, ...]:
        return tuple(self._records)

    @property
    def status(self) -> GameStatus:
        return self._status

    @property
    def is_game_over(self) -> bool:
        return self._status.is_terminal

    @property
    def ply_count(self) -> int:
        """Number of half-moves played."""
        return len(self._records)

    def legal_moves(self) -> list[Move]:
        """Legal moves in the current position (empty once the game is over)."""
        if self.is_game_over:
            return []
        return list(self._legal)

    # ── Commands ─────────────────────────────────────────────────────────

    def reset(self, start: Position | None = None) -> None:
        """Start over from *start* (the standard position by default)."""
        position = start if start is not None else Position.initial()
        self._positions = [position]
        self._records = []
        self._refresh()

    def play(self, move: Move) -> MoveRecord:
        """Apply a legal *move* and return its history record.

        Raises:
            GameOverError: the game has already ended.
            IllegalMoveError: *move* is not legal in the current position.
        """
        if self.is_game_over:
            raise GameOverError(self._status)
        move = self._resolve(move)
        before = self.position
        was_capture = (
            before.board[move.to_sq] is not None or move.flag == MoveFlag.EN_PASSANT
        )
        after = make_move(before, move)
        self._positions.append(after)
        self._refresh()

        record = MoveRecord(
            move=move,
            position_before=before,
            position_after=after,
            status=self._status,
            was_capture=was_capture,
        )
        self._records.append(record)

        for cb in self.events.on_move:
            cb(record)
        if self.is_game_over:
            _LOGGER.info("Game over after %d plies: %s", self.ply_count, self._status.name)
            for cb in self.events.on_game_over:
                cb(self._status)
        return record

    def play_uci(self, uci: str) -> MoveRecord:
        """Play the move given in UCI text (``e2e4``, ``e7e8n``)."""
        if self.is_game_over:
            raise GameOverError(self._status)
        move = move_from_uci(self.position, uci)
        if move is None:
            raise IllegalMoveError(uci.strip())
        return self.play(move)

    def undo(self) -> Move | None:
        """Take back the last move. Returns it, or None if nothing was played."""
        if not self._records:
            return None
        record = self._records.pop()
        self._positions.pop()
        self._refresh()
        return record.move

    def engine_move(
        self,
        engine: IEngine | None = None,
        limits: SearchLimits | None = None,
        is_cancelled: CancelCheck | None = None,
    ) -> MoveRecord | None:
        """Let *engine* choose and play a move; None if the game is over."""
        if self.is_game_over:
            return None
        searcher = engine or AlphaBetaEngine()
        result = searcher.search(
            self.position,
            limits or SearchLimits(),
            is_cancelled=is_cancelled,
            history=self.prior_positions,
        )
        if result.best_move is None:
            return None
        return self.play(result.best_move)

    # ── Snapshots ────────────────────────────────────────────────────────

    def to_snapshot(self) -> str:
        """Serialise start position and moves (see :mod:`rookery.game.snapshot`)."""
        return encode_snapshot(self.start_position, [r.move for r in self._records])

    @classmethod
    def from_snapshot(cls, text: str) -> GameSession:
        """Rebuild a session by replaying a snapshot.

        Raises:
            MalformedPositionError: the snapshot is unreadable or a recorded
                move is not legal where it was played.
        """
        start, ucis = decode_snapshot(text)
        session = cls(start)
        for ply, uci in enumerate(ucis, start=1):
            try:
                session.play_uci(uci)
            except (ValueError, GameOverError) as exc:
                raise MalformedPositionError(
                    f"Snapshot move {ply} ({uci!r}) cannot be replayed: {exc}"
                ) from exc
        return session

    @classmethod
    def restore(cls, text: str) -> GameSession:
        """Like :meth:`from_snapshot`, but fall back to a new game on bad input."""
        try:
            return cls.from_snapshot(text)
        except MalformedPositionError as exc:
            _LOGGER.warning("Discarding unreadable game snapshot: %s", exc)
            return cls()

    # ── Internal ─────────────────────────────────────────────────────────

    def _refresh(self) -> None:
        position = self.position
        self._legal = MoveGenerator(position).generate_legal_moves()
        self._status = Rules.classify(position, self._legal, self._positions[:-1])

    def _resolve(self, move: Move) -> Move:
        for legal in self._legal:
            if legal.matches(move.from_sq, move.to_sq, move.promotion):
                return legal
        raise IllegalMoveError(move)

"""Exception hierarchy for rule violations and bad input."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rookery.core.enums import GameStatus
    from rookery.core.move import Move


class ChessError(Exception):
    """Base class for every error raised by the rules core."""


class IllegalMoveError(ChessError, ValueError):
    """A move outside the legal-move set was applied to a position."""

    def __init__(self, move: Move | str, reason: str = "not a legal move") -> None:
        super().__init__(f"Illegal move {move}: {reason}")
        self.move = move


class MalformedPositionError(ChessError, ValueError):
    """Serialized input does not describe a consistent chess position."""


class GameOverError(ChessError):
    """A move was submitted after the game reached a terminal status."""

    def __init__(self, status: GameStatus) -> None:
        super().__init__(f"Game is over ({status.name.lower()})")
        self.status = status

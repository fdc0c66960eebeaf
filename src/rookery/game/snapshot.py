"""Compact text snapshot of a game: start position plus the moves played.

Replaying the moves rebuilds the full position history, which repetition
detection needs; a bare FEN would lose it.
"""

from __future__ import annotations

import json
from collections.abc import Sequence

from rookery.core.errors import MalformedPositionError
from rookery.core.move import Move
from rookery.core.notation import position_from_fen, position_to_fen
from rookery.core.position import Position

SNAPSHOT_FORMAT = 1


def encode_snapshot(start: Position, moves: Sequence[Move]) -> str:
    """Serialise a game to a single-line JSON document."""
    payload = {
        "format": SNAPSHOT_FORMAT,
        "start": position_to_fen(start),
        "moves": [move.uci for move in moves],
    }
    return json.dumps(payload, separators=(",", ":"))


def decode_snapshot(text: str) -> tuple[Position, list[str]]:
    """Parse a snapshot into its start position and UCI move texts.

    Raises:
        MalformedPositionError: invalid JSON, unknown format version, or an
            invalid start position.
    """
    try:
        payload = json.loads(text)
    except (TypeError, ValueError) as exc:
        raise MalformedPositionError(f"Snapshot is not valid JSON: {exc}") from exc

    if not isinstance(payload, dict):
        raise MalformedPositionError("Snapshot must be a JSON object")
    if payload.get("format") != SNAPSHOT_FORMAT:
        raise MalformedPositionError(
            f"Unsupported snapshot format: {payload.get('format')!r}"
        )

    start_fen = payload.get("start")
    moves = payload.get("moves", [])
    if not isinstance(start_fen, str):
        raise MalformedPositionError("Snapshot start position must be a FEN string")
    if not isinstance(moves, list) or not all(isinstance(m, str) for m in moves):
        raise MalformedPositionError("Snapshot moves must be a list of UCI strings")

    return position_from_fen(start_fen), moves

"""Game management layer: the mutable session around the pure core.

Quick start::

    from rookery.game import GameSession
    from rookery.engine import SearchLimits

    session = GameSession()
    session.play_uci("e2e4")
    session.engine_move(limits=SearchLimits(max_depth=2, time_limit_ms=None))
    saved = session.to_snapshot()
"""

from rookery.game.session import GameEvents, GameSession, MoveRecord
from rookery.game.snapshot import SNAPSHOT_FORMAT, decode_snapshot, encode_snapshot

__all__ = [
    "SNAPSHOT_FORMAT",
    "GameEvents",
    "GameSession",
    "MoveRecord",
    "decode_snapshot",
    "encode_snapshot",
]

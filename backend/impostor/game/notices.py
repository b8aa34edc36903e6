from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .models import Player, Room


# Server -> client events
ROOM_CREATED = "room:created"
ROOM_JOINED = "room:joined"
ROOM_STATE = "room:state"
ROOM_KICKED = "room:kicked"
ROOM_ERROR = "room:error"
GAME_SECRET = "game:secret"
GAME_ROLE = "game:role"
GAME_TURN = "game:turn"
GAME_WORD = "game:word"
GAME_ROUND_ENDED = "game:round_ended"
CHAT_MESSAGE = "chat:message"
VOTE_STARTED = "vote:started"
VOTE_PROGRESS = "vote:progress"
VOTE_COMPLETE = "vote:complete"
VOTE_INTENTS = "vote:intents"
VOTE_RESULT = "vote:result"
POLL_STATE = "poll:state"


@dataclass(frozen=True)
class Notice:
    """One outbound message. ``to`` is a socket.io room (the room code) or a socket id."""

    event: str
    payload: dict[str, Any]
    to: str


def to_room(room: Room, event: str, payload: dict[str, Any] | None = None) -> Notice:
    body = {"roomCode": room.code}
    body.update(payload or {})
    return Notice(event=event, payload=body, to=room.code)


def to_player(room: Room, player: Player | None, event: str, payload: dict[str, Any] | None = None) -> list[Notice]:
    # Disconnected players simply miss private notices.
    if player is None or not player.sid:
        return []
    body = {"roomCode": room.code}
    body.update(payload or {})
    return [Notice(event=event, payload=body, to=player.sid)]


def to_sid(sid: str, event: str, payload: dict[str, Any] | None = None) -> Notice:
    return Notice(event=event, payload=dict(payload or {}), to=sid)

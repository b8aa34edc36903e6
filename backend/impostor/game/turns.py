from __future__ import annotations

import logging
import time

from . import errors
from .errors import GameError
from .models import Player, Room, RoundMeta
from .notices import GAME_ROUND_ENDED, GAME_TURN, GAME_WORD, Notice, to_room
from .state import poll_notice, state_notice


logger = logging.getLogger(__name__)

WORD_MAX_LEN = 40


def now_ms() -> int:
    return int(time.time() * 1000)


def set_turn_deadline(room: Room, now: int | None = None) -> None:
    meta = room.meta
    if meta is None:
        return
    if room.phase != "IN_GAME":
        meta.turn_ends_at_ms = None
        return
    meta.turn_ends_at_ms = (now or now_ms()) + room.settings.turn_time_sec * 1000


def next_alive_index(room: Room, meta: RoundMeta, start: int) -> int | None:
    """First index at or after ``start`` (wrapping) whose occupant is alive."""
    n = len(meta.turn_order)
    for i in range(n):
        idx = (start + i) % n
        player = room.get_player(meta.turn_order[idx])
        if player is not None and player.alive:
            return idx
    return None


def advance_turn(room: Room) -> None:
    meta = room.meta
    if meta is None or not meta.turn_order:
        return
    idx = next_alive_index(room, meta, meta.current_turn_index + 1)
    if idx is not None:
        meta.current_turn_index = idx


def turn_notice(room: Room) -> Notice:
    meta = room.meta
    return to_room(
        room,
        GAME_TURN,
        {
            "playerId": meta.current_speaker if meta else None,
            "turnEndsAtMs": meta.turn_ends_at_ms if meta else None,
        },
    )


def end_round(room: Room) -> list[Notice]:
    meta = room.meta
    room.phase = "ROUND_END"
    meta.poll_votes = {}
    meta.turn_ends_at_ms = None
    logger.debug("room %s: round %d ended", room.code, room.round)
    return [
        to_room(room, GAME_ROUND_ENDED, {"round": room.round}),
        state_notice(room),
        poll_notice(room),
    ]


def round_complete(room: Room) -> bool:
    meta = room.meta
    if meta is None:
        return False
    alive = room.alive_ids()
    return len(meta.submitted & alive) >= len(alive)


def start_next_round(room: Room, start_index: int = 0) -> list[Notice]:
    """Clear per-round bookkeeping and hand the turn to the first living player from ``start_index``."""
    meta = room.meta
    meta.submitted = set()
    meta.words = []
    meta.vote_intents = {}
    meta.poll_votes = None
    meta.vote_ends_at_ms = None

    idx = next_alive_index(room, meta, start_index)
    if idx is not None:
        meta.current_turn_index = idx

    room.round += 1
    room.phase = "IN_GAME"
    set_turn_deadline(room)
    return [state_notice(room), turn_notice(room)]


def _speaker(room: Room, caller_id: str | None) -> Player:
    player = room.get_player(caller_id)
    if player is None:
        raise GameError(errors.NOT_ALLOWED)
    if room.phase != "IN_GAME" or room.meta is None:
        raise GameError(errors.NOT_IN_GAME)
    if room.meta.current_speaker != player.id:
        raise GameError(errors.NOT_YOUR_TURN)
    return player


def _take_turn(room: Room, player: Player, text: str | None) -> list[Notice]:
    meta = room.meta
    notices: list[Notice] = []
    if text is not None:
        meta.words.append({"playerId": player.id, "word": text})
        notices.append(to_room(room, GAME_WORD, {"playerId": player.id, "word": text}))
    meta.submitted.add(player.id)

    advance_turn(room)
    set_turn_deadline(room)
    notices.append(turn_notice(room))

    if round_complete(room):
        notices.extend(end_round(room))
    return notices


def submit_clue(room: Room, caller_id: str | None, text) -> list[Notice]:
    player = _speaker(room, caller_id)
    word = text.strip() if isinstance(text, str) else ""
    if not word or len(word) > WORD_MAX_LEN:
        raise GameError(errors.INVALID_WORD)
    return _take_turn(room, player, word)


def skip_turn(room: Room, caller_id: str | None) -> list[Notice]:
    return _take_turn(room, _speaker(room, caller_id), None)


def auto_skip(room: Room, now: int | None = None) -> list[Notice]:
    """Timer command: skip for the current speaker once their deadline has passed."""
    meta = room.meta
    if room.phase != "IN_GAME" or meta is None or meta.turn_ends_at_ms is None:
        return []
    if (now or now_ms()) < meta.turn_ends_at_ms:
        return []
    logger.debug("room %s: turn of %s timed out", room.code, meta.current_speaker)
    return _take_turn(room, _speaker(room, meta.current_speaker), None)


def continue_round(room: Room, caller_id: str | None) -> list[Notice]:
    """Owner shortcut from ROUND_END back to IN_GAME; the speaker stays where the round left it."""
    if room.get_player(caller_id) is None or room.owner_id != caller_id:
        raise GameError(errors.NOT_ALLOWED)
    if room.phase != "ROUND_END" or room.meta is None:
        raise GameError(errors.POLL_NOT_AVAILABLE)
    return start_next_round(room, room.meta.current_turn_index)

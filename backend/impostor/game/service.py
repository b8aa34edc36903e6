from __future__ import annotations

import logging
from typing import Any, Callable

from ..config import Config
from . import errors
from .errors import GameError
from .models import Player, Room, Settings
from .notices import (
    CHAT_MESSAGE,
    ROOM_CREATED,
    ROOM_JOINED,
    ROOM_KICKED,
    Notice,
    to_player,
    to_room,
    to_sid,
)
from .poll import resolve_poll
from .registry import RoomRegistry, new_player_id, new_player_key, now_ms
from .roles import private_notices
from .state import room_public_state, state_notice
from .turns import end_round, next_alive_index, round_complete, set_turn_deadline, turn_notice
from .voting import check_winner, end_game, quorum_reached, resolve_votes
from .words import is_known_category


logger = logging.getLogger(__name__)

NAME_MAX_LEN = 16
CHAT_MAX_LEN = 200
CHAT_PHASES = ("IN_GAME", "ROUND_END", "DISCUSSION", "VOTING")


def validate_name(name) -> str:
    n = name.strip() if isinstance(name, str) else ""
    if not n or len(n) > NAME_MAX_LEN:
        raise GameError(errors.INVALID_NAME)
    # Avoid obvious HTML/script injection.
    if "<" in n or ">" in n:
        raise GameError(errors.INVALID_NAME)
    # No control characters.
    for ch in n:
        if ord(ch) < 32:
            raise GameError(errors.INVALID_NAME)
    return n


def joined_notice(room: Room, player: Player) -> list[Notice]:
    return to_player(
        room,
        player,
        ROOM_JOINED,
        {
            "state": room_public_state(room),
            "you": {"id": player.id, "name": player.name, "playerKey": player.player_key},
            "chatHistory": list(room.chat_history),
        },
    )


def find_participant_by_persistent_id(room: Room, player_key: str | None) -> Player | None:
    if not player_key:
        return None
    for p in room.players:
        if p.player_key == player_key:
            return p
    return None


def create_room(registry: RoomRegistry, owner_name, sid: str) -> tuple[Room, list[Notice]]:
    name = validate_name(owner_name)
    code, room, owner = registry.create_room(name, owner_sid=sid)
    return room, [to_sid(sid, ROOM_CREATED, {"roomCode": code})] + joined_notice(room, owner)


def join_room(room: Room, name, sid: str) -> tuple[Player, list[Notice]]:
    n = validate_name(name)
    if room.phase != "LOBBY":
        raise GameError(errors.GAME_ALREADY_STARTED)

    existing = room.find_by_sid(sid)
    if existing is not None:
        existing.name = n
        return existing, joined_notice(room, existing) + [state_notice(room)]

    player = Player(id=new_player_id(), name=n, sid=sid, player_key=new_player_key())
    room.players.append(player)
    if room.owner_id is None:
        room.owner_id = player.id

    logger.debug("room %s: %s joined as %s", room.code, n, player.id)
    return player, joined_notice(room, player) + [state_notice(room)]


def rejoin(room: Room, player_key, sid: str) -> tuple[Player, list[Notice]]:
    """Bind a new socket to a participant that is still in the room."""
    player = find_participant_by_persistent_id(room, player_key if isinstance(player_key, str) else None)
    if player is None:
        raise GameError(errors.PLAYER_NOT_FOUND)

    player.sid = sid
    notices = joined_notice(room, player) + [state_notice(room)]
    if room.phase not in ("LOBBY", "ENDED"):
        notices.extend(private_notices(room, player))
        if room.phase == "IN_GAME":
            turn = turn_notice(room)
            notices.extend(to_player(room, player, turn.event, turn.payload))
    logger.debug("room %s: %s rejoined", room.code, player.id)
    return player, notices


def _promote_owner(room: Room) -> None:
    if room.get_player(room.owner_id) is not None:
        return
    room.owner_id = room.players[0].id if room.players else None
    if room.owner_id:
        logger.info("room %s: ownership passed to %s", room.code, room.owner_id)


def _forget(room: Room, player_id: str) -> bool:
    """Drop ``player_id`` from the round bookkeeping. Returns True if they held the turn."""
    meta = room.meta
    if meta is None:
        return False

    was_speaker = room.phase == "IN_GAME" and meta.current_speaker == player_id
    if player_id in meta.turn_order:
        idx = meta.turn_order.index(player_id)
        meta.turn_order.pop(idx)
        if idx < meta.current_turn_index:
            meta.current_turn_index -= 1
        if meta.turn_order:
            meta.current_turn_index %= len(meta.turn_order)
        else:
            meta.current_turn_index = 0

    meta.submitted.discard(player_id)
    # Ballots naming the departed player are void; those voters vote again.
    meta.votes = {v: t for v, t in meta.votes.items() if v != player_id and t != player_id}
    meta.vote_intents = {v: t for v, t in meta.vote_intents.items() if v != player_id and t != player_id}
    if meta.poll_votes is not None:
        meta.poll_votes.pop(player_id, None)
    return was_speaker


def remove_participant(room: Room, player_id: str) -> list[Notice]:
    """Take a player out of the room for good and keep the game able to progress."""
    player = room.get_player(player_id)
    if player is None:
        return []

    room.players.remove(player)
    _promote_owner(room)
    if not room.players:
        return []

    was_speaker = _forget(room, player_id)
    if room.phase in ("LOBBY", "ENDED") or room.meta is None:
        return [state_notice(room)]

    winner = check_winner(room)
    if winner is not None:
        return end_game(room, winner)

    meta = room.meta
    if was_speaker and not round_complete(room):
        # The slot now holds whoever followed the departed speaker.
        idx = next_alive_index(room, meta, meta.current_turn_index)
        if idx is not None:
            meta.current_turn_index = idx
        set_turn_deadline(room)

    notices = [state_notice(room)]
    if room.phase == "IN_GAME":
        if round_complete(room):
            notices.extend(end_round(room))
        elif was_speaker:
            notices.append(turn_notice(room))
    elif room.phase == "ROUND_END":
        notices.extend(resolve_poll(room))
    elif room.phase == "VOTING" and quorum_reached(room):
        notices.extend(resolve_votes(room))
    return notices


def leave_room(room: Room, caller_id: str | None) -> list[Notice]:
    if room.get_player(caller_id) is None:
        raise GameError(errors.NOT_ALLOWED)
    logger.debug("room %s: %s left", room.code, caller_id)
    return remove_participant(room, caller_id)


def disconnect(
    registry: RoomRegistry,
    sid: str,
    on_room: Callable[[Room, list[Notice]], None] | None = None,
) -> list[Notice]:
    """A socket went away: its player leaves every room it was in.

    ``on_room(room, notices)`` runs while that room is still locked, so the
    notices go out before any other command touches the room. Without it the
    notices are collected and returned.
    """
    notices: list[Notice] = []
    for room in registry.rooms_with_sid(sid):
        with room.lock:
            if registry.get_room(room.code) is not room:
                continue
            player = room.find_by_sid(sid)
            if player is None:
                continue
            logger.debug("room %s: %s disconnected", room.code, player.id)
            departed = remove_participant(room, player.id)
            if not room.players or room.phase == "ENDED":
                registry.remove_room(room.code)
            if on_room is not None:
                on_room(room, departed)
            else:
                notices.extend(departed)
    return notices


def kick_player(room: Room, caller_id: str | None, target_id) -> list[Notice]:
    if room.get_player(caller_id) is None or room.owner_id != caller_id:
        raise GameError(errors.NOT_ALLOWED)
    if room.phase != "LOBBY":
        raise GameError(errors.CANNOT_KICK_AFTER_START)
    target = room.get_player(target_id) if isinstance(target_id, str) else None
    if target is None:
        raise GameError(errors.PLAYER_NOT_FOUND)
    if target.id == caller_id:
        raise GameError(errors.NOT_ALLOWED)

    notices = to_player(room, target, ROOM_KICKED, {"by": caller_id})
    room.players.remove(target)
    logger.info("room %s: %s kicked %s", room.code, caller_id, target.id)
    return notices + [state_notice(room)]


def transfer_owner(room: Room, caller_id: str | None, target_id) -> list[Notice]:
    if room.get_player(caller_id) is None or room.owner_id != caller_id:
        raise GameError(errors.NOT_ALLOWED)
    target = room.get_player(target_id) if isinstance(target_id, str) else None
    if target is None:
        raise GameError(errors.PLAYER_NOT_FOUND)
    room.owner_id = target.id
    return [state_notice(room)]


def _int_setting(value: Any, low: int, high: int) -> int:
    # bool is an int subclass; reject it explicitly.
    if isinstance(value, bool) or not isinstance(value, int):
        raise GameError(errors.INVALID_SETTINGS)
    if value < low or value > high:
        raise GameError(errors.INVALID_SETTINGS)
    return value


def _bool_setting(value: Any) -> bool:
    if not isinstance(value, bool):
        raise GameError(errors.INVALID_SETTINGS)
    return value


def _categories_setting(value: Any) -> list[str]:
    if not isinstance(value, list):
        raise GameError(errors.INVALID_SETTINGS)
    out: list[str] = []
    for c in value:
        if not isinstance(c, str) or not is_known_category(c):
            raise GameError(errors.INVALID_SETTINGS)
        if c not in out:
            out.append(c)
    return out


def apply_settings(current: Settings, patch: dict) -> Settings:
    """Validate the whole patch first, so a bad field leaves settings untouched."""
    updated = Settings(**{**current.__dict__, "categories": list(current.categories)})

    if "impostorCount" in patch:
        updated.impostor_count = _int_setting(patch["impostorCount"], 1, 10)
    if "turnTimeSeconds" in patch:
        updated.turn_time_sec = _int_setting(patch["turnTimeSeconds"], 5, 300)
    if "voteTimeSeconds" in patch:
        updated.vote_time_sec = _int_setting(patch["voteTimeSeconds"], 5, 300)
    if "discussionTimeSeconds" in patch:
        updated.discussion_time_sec = _int_setting(patch["discussionTimeSeconds"], 5, 300)
    if "categories" in patch:
        updated.categories = _categories_setting(patch["categories"])
    elif "category" in patch:
        # Older clients send a single category.
        updated.categories = _categories_setting([patch["category"]])
    if "hiddenImpostor" in patch:
        updated.hidden_impostor = _bool_setting(patch["hiddenImpostor"])
    if "hideCategory" in patch:
        updated.hide_category = _bool_setting(patch["hideCategory"])
    return updated


def update_settings(room: Room, caller_id: str | None, patch) -> list[Notice]:
    if room.get_player(caller_id) is None or room.owner_id != caller_id:
        raise GameError(errors.NOT_ALLOWED)
    if room.phase != "LOBBY":
        raise GameError(errors.GAME_ALREADY_STARTED)
    if not isinstance(patch, dict):
        raise GameError(errors.INVALID_SETTINGS)

    room.settings = apply_settings(room.settings, patch)
    return [state_notice(room)]


def send_chat(room: Room, caller_id: str | None, text) -> list[Notice]:
    player = room.get_player(caller_id)
    if player is None:
        raise GameError(errors.NOT_ALLOWED)
    if room.phase not in CHAT_PHASES:
        return []

    t = text.strip() if isinstance(text, str) else ""
    if not t:
        return []
    t = t[:CHAT_MAX_LEN]

    msg = {"from": player.id, "text": t, "atMs": now_ms()}
    room.chat_history.append(msg)
    limit = Config.CHAT_HISTORY_LIMIT
    if len(room.chat_history) > limit:
        room.chat_history = room.chat_history[-limit:]
    return [to_room(room, CHAT_MESSAGE, msg)]

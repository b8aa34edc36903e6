from __future__ import annotations

import logging
import random

from ..config import Config
from . import errors
from .errors import GameError
from .models import Player, Room, RoundMeta
from .notices import GAME_ROLE, GAME_SECRET, GAME_TURN, Notice, to_player, to_room
from .state import state_notice
from .turns import set_turn_deadline
from .words import pick_decoy, pick_secret


logger = logging.getLogger(__name__)


def assign_roles(room: Room, rng: random.Random) -> list[str]:
    """Pick ``impostor_count`` impostors from a uniform shuffle and set every player's role."""
    ids = [p.id for p in room.players]
    rng.shuffle(ids)
    chosen = ids[: room.settings.impostor_count]

    room.impostor_ids = chosen
    room.impostor_id = chosen[0] if chosen else None
    for p in room.players:
        p.role = "IMPOSTOR" if p.id in chosen else "CREWMATE"
        p.alive = True
    return chosen


def private_notices(room: Room, player: Player) -> list[Notice]:
    """What ``player`` alone may know: role and, for crewmates, the secret word."""
    meta = room.meta
    if meta is None or player.role is None:
        return []

    settings = room.settings
    if player.role == "CREWMATE":
        secret = {"word": meta.word, "category": meta.category}
        return to_player(room, player, GAME_SECRET, secret) + to_player(
            room, player, GAME_ROLE, {"playerId": player.id, "role": "CREWMATE", **secret}
        )

    if settings.hidden_impostor and meta.decoy_word:
        # Looks exactly like a crewmate's view, with the wrong word.
        decoy = {"word": meta.decoy_word, "category": meta.decoy_category}
        return to_player(room, player, GAME_SECRET, decoy) + to_player(
            room, player, GAME_ROLE, {"playerId": player.id, "role": "CREWMATE", **decoy}
        )

    category = None if settings.hide_category else meta.category
    return to_player(
        room,
        player,
        GAME_ROLE,
        {"playerId": player.id, "role": "IMPOSTOR", "word": None, "category": category},
    )


def start_game(
    room: Room,
    caller_id: str | None,
    rng: random.Random | None = None,
    min_players: int | None = None,
) -> list[Notice]:
    rng = rng or random.SystemRandom()
    min_players = min_players or Config.MIN_PLAYERS

    if room.get_player(caller_id) is None or room.owner_id != caller_id:
        raise GameError(errors.NOT_ALLOWED)
    if room.phase != "LOBBY":
        raise GameError(errors.GAME_ALREADY_STARTED)
    if len(room.players) < min_players:
        raise GameError(errors.NEED_MIN_PLAYERS)
    if room.settings.impostor_count >= len(room.players):
        raise GameError(errors.TOO_MANY_IMPOSTORS)

    impostors = assign_roles(room, rng)

    word, category = pick_secret(room.settings.categories, rng=rng, default=Config.DEFAULT_CATEGORY)
    decoy_word = decoy_category = None
    if room.settings.hidden_impostor:
        decoy_word, decoy_category = pick_decoy(category, word, rng=rng)

    order = [p.id for p in room.players]
    rng.shuffle(order)
    room.meta = RoundMeta(
        word=word,
        category=category,
        decoy_word=decoy_word,
        decoy_category=decoy_category,
        turn_order=order,
        current_turn_index=rng.randrange(len(order)),
    )
    room.phase = "IN_GAME"
    room.round = 1
    room.winner = None
    set_turn_deadline(room)

    logger.info("room %s: game started with %d players, %d impostor(s)", room.code, len(room.players), len(impostors))
    logger.debug("room %s: secret word %r (%s)", room.code, word, category)

    notices: list[Notice] = []
    for p in room.players:
        notices.extend(private_notices(room, p))
    notices.append(state_notice(room))
    notices.append(to_room(room, GAME_TURN, {"playerId": room.meta.current_speaker}))
    return notices

from __future__ import annotations

import logging
from collections import Counter

from . import errors
from .errors import GameError
from .models import Room
from .notices import (
    VOTE_COMPLETE,
    VOTE_INTENTS,
    VOTE_PROGRESS,
    VOTE_RESULT,
    VOTE_STARTED,
    Notice,
    to_room,
)
from .state import state_notice
from .turns import now_ms, start_next_round


logger = logging.getLogger(__name__)


def _vote_list(votes: dict[str, str | None]) -> list[dict]:
    return [{"voterId": vid, "targetId": tid} for vid, tid in votes.items()]


def start_voting(room: Room) -> list[Notice]:
    meta = room.meta
    meta.votes = {}
    meta.vote_intents = {}
    meta.turn_ends_at_ms = None
    meta.vote_ends_at_ms = now_ms() + room.settings.vote_time_sec * 1000
    room.phase = "VOTING"
    return [
        state_notice(room),
        to_room(room, VOTE_STARTED, {"voteEndsAtMs": meta.vote_ends_at_ms}),
    ]


def request_vote(room: Room, caller_id: str | None) -> list[Notice]:
    if room.get_player(caller_id) is None or room.owner_id != caller_id:
        raise GameError(errors.NOT_ALLOWED)
    if room.phase != "ROUND_END" or room.meta is None:
        raise GameError(errors.VOTE_NOT_AVAILABLE)
    return start_voting(room)


def _check_ballot(room: Room, caller_id: str | None, target_id) -> str:
    player = room.get_player(caller_id)
    if player is None:
        raise GameError(errors.NOT_ALLOWED)
    if room.phase != "VOTING" or room.meta is None:
        raise GameError(errors.VOTE_NOT_AVAILABLE)
    if not player.alive:
        raise GameError(errors.NOT_ALLOWED_TO_VOTE)
    if target_id is not None:
        target = room.get_player(target_id) if isinstance(target_id, str) else None
        if target is None or not target.alive:
            raise GameError(errors.INVALID_TARGET)
    return player.id


def set_vote_intent(room: Room, caller_id: str | None, target_id) -> list[Notice]:
    voter = _check_ballot(room, caller_id, target_id)
    room.meta.vote_intents[voter] = target_id
    return [to_room(room, VOTE_INTENTS, {"intents": _vote_list(room.meta.vote_intents)})]


def cast_vote(room: Room, caller_id: str | None, target_id) -> list[Notice]:
    voter = _check_ballot(room, caller_id, target_id)
    meta = room.meta
    meta.votes[voter] = target_id
    # Keep the preview in line with the confirmed vote.
    meta.vote_intents[voter] = target_id

    notices = [
        to_room(room, VOTE_PROGRESS, {"votes": _vote_list(meta.votes)}),
        to_room(room, VOTE_INTENTS, {"intents": _vote_list(meta.vote_intents)}),
    ]
    if quorum_reached(room):
        notices.extend(resolve_votes(room))
    return notices


def quorum_reached(room: Room) -> bool:
    alive = room.alive_ids()
    return len(set(room.meta.votes) & alive) >= len(alive)


def expire_vote(room: Room, now: int | None = None) -> list[Notice]:
    """Timer command: players who have not voted by the deadline abstain."""
    meta = room.meta
    if room.phase != "VOTING" or meta is None or meta.vote_ends_at_ms is None:
        return []
    if (now or now_ms()) < meta.vote_ends_at_ms:
        return []
    for pid in room.alive_ids() - set(meta.votes):
        meta.votes[pid] = None
    logger.debug("room %s: vote deadline passed", room.code)
    return [to_room(room, VOTE_PROGRESS, {"votes": _vote_list(meta.votes)})] + resolve_votes(room)


def tally_votes(votes: dict[str, str | None]) -> tuple[str | None, dict[str, int]]:
    """Returns ``(eliminated, counts)``. ``eliminated`` is None unless one target holds the maximum alone."""
    counts = Counter(t for t in votes.values() if t is not None)
    if not counts:
        return None, {}
    top = max(counts.values())
    leaders = [t for t, c in counts.items() if c == top]
    return (leaders[0] if len(leaders) == 1 else None), dict(counts)


def check_winner(room: Room) -> str | None:
    if room.phase in ("LOBBY", "ENDED"):
        return None
    alive = room.alive_players()
    impostors = sum(1 for p in alive if p.role == "IMPOSTOR")
    crew = sum(1 for p in alive if p.role == "CREWMATE")
    if impostors == 0:
        return "CREWMATES"
    if crew <= impostors:
        return "IMPOSTORS"
    return None


def end_game(room: Room, winner: str) -> list[Notice]:
    room.phase = "ENDED"
    room.winner = winner
    if room.meta is not None:
        room.meta.turn_ends_at_ms = None
        room.meta.vote_ends_at_ms = None
    logger.info("room %s: game over, %s win after %d round(s)", room.code, winner.lower(), room.round)
    return [state_notice(room)]


def resolve_votes(room: Room) -> list[Notice]:
    meta = room.meta
    eliminated, counts = tally_votes(meta.votes)
    notices = [to_room(room, VOTE_COMPLETE, {"counts": counts})]

    if eliminated is None:
        # A tie (or nobody named at all) is a win for the impostors.
        notices.append(to_room(room, VOTE_RESULT, {"eliminatedId": None}))
        return notices + end_game(room, "IMPOSTORS")

    room.get_player(eliminated).alive = False
    logger.info("room %s: %s eliminated in round %d", room.code, eliminated, room.round)
    notices.append(to_room(room, VOTE_RESULT, {"eliminatedId": eliminated}))

    winner = check_winner(room)
    if winner is not None:
        return notices + end_game(room, winner)

    meta.votes = {}
    start = meta.turn_order.index(eliminated) + 1 if eliminated in meta.turn_order else 0
    return notices + start_next_round(room, start)

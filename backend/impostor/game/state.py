from __future__ import annotations

from .models import Room, Settings
from .notices import POLL_STATE, ROOM_STATE, Notice, to_room


def majority(total: int) -> int:
    return total // 2 + 1 if total > 0 else 0


def settings_public(settings: Settings) -> dict:
    return {
        "impostorCount": settings.impostor_count,
        "turnTimeSeconds": settings.turn_time_sec,
        "voteTimeSeconds": settings.vote_time_sec,
        "discussionTimeSeconds": settings.discussion_time_sec,
        "categories": list(settings.categories),
        "hiddenImpostor": settings.hidden_impostor,
        "hideCategory": settings.hide_category,
    }


def room_public_state(room: Room) -> dict:
    """Room state safe for every member. Never carries the secret word or roles while a game runs."""
    ended = room.phase == "ENDED"
    meta = room.meta

    players = []
    for p in room.players:
        d = {"id": p.id, "name": p.name, "alive": p.alive, "connected": p.connected}
        if ended:
            d["role"] = p.role
        players.append(d)

    category = None
    if meta and not room.settings.hide_category and not room.settings.hidden_impostor:
        category = meta.category

    payload = {
        "code": room.code,
        "ownerId": room.owner_id,
        "phase": room.phase,
        "round": room.round,
        "createdAtMs": room.created_at_ms,
        "settings": settings_public(room.settings),
        "players": players,
        "category": category,
        "currentTurnId": meta.current_speaker if meta and room.phase == "IN_GAME" else None,
        "turnEndsAtMs": meta.turn_ends_at_ms if meta else None,
        "voteEndsAtMs": meta.vote_ends_at_ms if meta else None,
        "words": list(meta.words) if meta else [],
    }

    if ended:
        payload["winner"] = room.winner
        payload["impostorIds"] = list(room.impostor_ids)
        payload["word"] = meta.word if meta else None
        payload["category"] = meta.category if meta else None

    return payload


def state_notice(room: Room) -> Notice:
    return to_room(room, ROOM_STATE, {"state": room_public_state(room)})


def poll_counts(room: Room) -> dict:
    """Tally of the round-end poll over the players alive right now."""
    votes = (room.meta.poll_votes if room.meta else None) or {}
    alive = room.alive_ids()
    detailed = [{"playerId": pid, "choice": choice} for pid, choice in votes.items() if pid in alive]
    start = sum(1 for v in detailed if v["choice"] == "START")
    discuss = sum(1 for v in detailed if v["choice"] == "DISCUSS")
    total = len(alive)
    return {
        "startVotes": start,
        "discussVotes": discuss,
        "totalEligible": total,
        "majority": majority(total),
        "votes": detailed,
    }


def poll_notice(room: Room, counts: dict | None = None) -> Notice:
    return to_room(room, POLL_STATE, counts if counts is not None else poll_counts(room))

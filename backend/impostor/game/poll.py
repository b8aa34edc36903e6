"""Round-end consensus poll: vote now ("START") or play another round ("DISCUSS")."""

from __future__ import annotations

import logging

from . import errors
from .errors import GameError
from .models import POLL_CHOICES, Room
from .notices import Notice
from .state import poll_counts, poll_notice
from .turns import start_next_round
from .voting import start_voting


logger = logging.getLogger(__name__)


def resolve_poll(room: Room) -> list[Notice]:
    """Broadcast the current tally and apply whichever choice holds a majority, if any."""
    counts = poll_counts(room)
    notices = [poll_notice(room, counts)]

    needed = counts["majority"]
    if needed <= 0:
        return notices

    # Both counts come from the same snapshot of the living population.
    if counts["startVotes"] >= needed:
        logger.debug("room %s: poll decided to vote", room.code)
        notices.extend(start_voting(room))
    elif counts["discussVotes"] >= needed:
        logger.debug("room %s: poll decided on another round", room.code)
        notices.extend(start_next_round(room, 0))
    return notices


def choose_poll(room: Room, caller_id: str | None, choice) -> list[Notice]:
    if room.phase != "ROUND_END" or room.meta is None:
        raise GameError(errors.POLL_NOT_AVAILABLE)
    player = room.get_player(caller_id)
    if player is None or not player.alive:
        raise GameError(errors.NOT_ALLOWED)
    if choice not in POLL_CHOICES:
        raise GameError(errors.INVALID_CHOICE)

    if room.meta.poll_votes is None:
        room.meta.poll_votes = {}
    room.meta.poll_votes[player.id] = choice
    return resolve_poll(room)

from __future__ import annotations

import logging
import random
import secrets
import string
import time
from threading import RLock

from ..config import Config
from .models import Player, Room, Settings


logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


def new_player_id() -> str:
    return secrets.token_hex(4)


def new_player_key() -> str:
    return secrets.token_urlsafe(16)


def default_settings() -> Settings:
    return Settings(
        impostor_count=Config.DEFAULT_IMPOSTOR_COUNT,
        turn_time_sec=Config.DEFAULT_TURN_TIME_SEC,
        vote_time_sec=Config.DEFAULT_VOTE_TIME_SEC,
        discussion_time_sec=Config.DEFAULT_DISCUSSION_TIME_SEC,
    )


class RoomRegistry:
    """All live rooms of one server process, keyed by their short code."""

    def __init__(self, code_length: int | None = None, rng: random.Random | None = None) -> None:
        self._lock = RLock()
        self._rooms: dict[str, Room] = {}
        self._code_length = code_length or Config.ROOM_CODE_LENGTH
        self._rng = rng or random.SystemRandom()

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)

    def _new_code(self) -> str:
        return "".join(self._rng.choice(string.ascii_uppercase) for _ in range(self._code_length))

    def create_room(self, owner_name: str, owner_sid: str | None = None) -> tuple[str, Room, Player]:
        with self._lock:
            code = self._new_code()
            while code in self._rooms:
                code = self._new_code()

            owner = Player(id=new_player_id(), name=owner_name, sid=owner_sid, player_key=new_player_key())
            room = Room(
                code=code,
                owner_id=owner.id,
                settings=default_settings(),
                created_at_ms=now_ms(),
                players=[owner],
            )
            self._rooms[code] = room

        logger.info("room %s created by %s", code, owner.id)
        return code, room, owner

    def get_room(self, code: str | None) -> Room | None:
        if not code:
            return None
        with self._lock:
            return self._rooms.get(code.strip().upper())

    def remove_room(self, code: str) -> bool:
        with self._lock:
            room = self._rooms.pop(code, None)
        if room is None:
            return False
        logger.info("room %s removed", code)
        return True

    def list_rooms(self) -> list[Room]:
        with self._lock:
            return list(self._rooms.values())

    def rooms_with_sid(self, sid: str) -> list[Room]:
        return [r for r in self.list_rooms() if r.find_by_sid(sid) is not None]

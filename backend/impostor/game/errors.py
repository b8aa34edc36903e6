from __future__ import annotations


class GameError(Exception):
    """A rejected command. ``code`` is the symbolic reason sent back to the caller."""

    def __init__(self, code: str, message: str | None = None) -> None:
        super().__init__(message or code)
        self.code = code


ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
NOT_ALLOWED = "NOT_ALLOWED"
NOT_YOUR_TURN = "NOT_YOUR_TURN"
NOT_IN_GAME = "NOT_IN_GAME"
NEED_MIN_PLAYERS = "NEED_MIN_PLAYERS"
TOO_MANY_IMPOSTORS = "TOO_MANY_IMPOSTORS"
GAME_ALREADY_STARTED = "GAME_ALREADY_STARTED"
CANNOT_KICK_AFTER_START = "CANNOT_KICK_AFTER_START"
NOT_ALLOWED_TO_VOTE = "NOT_ALLOWED_TO_VOTE"
VOTE_NOT_AVAILABLE = "VOTE_NOT_AVAILABLE"
POLL_NOT_AVAILABLE = "POLL_NOT_AVAILABLE"
INVALID_PAYLOAD = "INVALID_PAYLOAD"
INVALID_NAME = "INVALID_NAME"
INVALID_WORD = "INVALID_WORD"
INVALID_CHOICE = "INVALID_CHOICE"
INVALID_TARGET = "INVALID_TARGET"
INVALID_SETTINGS = "INVALID_SETTINGS"

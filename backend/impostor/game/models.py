from __future__ import annotations

from dataclasses import dataclass, field
from threading import RLock
from typing import Literal


Phase = Literal["LOBBY", "IN_GAME", "ROUND_END", "DISCUSSION", "VOTING", "ENDED"]
Role = Literal["CREWMATE", "IMPOSTOR"]
PollChoice = Literal["START", "DISCUSS"]

POLL_CHOICES: tuple[str, ...] = ("START", "DISCUSS")


@dataclass
class Player:
    id: str
    name: str
    sid: str | None = None
    player_key: str = ""
    role: Role | None = None
    alive: bool = True

    @property
    def connected(self) -> bool:
        return self.sid is not None


@dataclass
class Settings:
    impostor_count: int = 1
    turn_time_sec: int = 20
    vote_time_sec: int = 30
    discussion_time_sec: int = 20
    categories: list[str] = field(default_factory=list)
    hidden_impostor: bool = False
    hide_category: bool = False


@dataclass
class RoundMeta:
    word: str
    category: str
    turn_order: list[str]
    current_turn_index: int = 0
    # Only set in hidden-impostor mode.
    decoy_word: str | None = None
    decoy_category: str | None = None
    submitted: set[str] = field(default_factory=set)
    words: list[dict] = field(default_factory=list)
    votes: dict[str, str | None] = field(default_factory=dict)
    vote_intents: dict[str, str | None] = field(default_factory=dict)
    poll_votes: dict[str, str] | None = None
    turn_ends_at_ms: int | None = None
    vote_ends_at_ms: int | None = None

    @property
    def current_speaker(self) -> str | None:
        if not self.turn_order:
            return None
        return self.turn_order[self.current_turn_index % len(self.turn_order)]


@dataclass
class Room:
    code: str
    owner_id: str | None
    settings: Settings = field(default_factory=Settings)
    phase: Phase = "LOBBY"
    round: int = 0
    created_at_ms: int = 0
    players: list[Player] = field(default_factory=list)
    impostor_ids: list[str] = field(default_factory=list)
    impostor_id: str | None = None
    meta: RoundMeta | None = None
    winner: Literal["IMPOSTORS", "CREWMATES"] | None = None
    chat_history: list[dict] = field(default_factory=list)
    # Serializes commands touching this room.
    lock: RLock = field(default_factory=RLock, repr=False, compare=False)

    def get_player(self, player_id: str | None) -> Player | None:
        if not player_id:
            return None
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def find_by_sid(self, sid: str | None) -> Player | None:
        if not sid:
            return None
        for p in self.players:
            if p.sid == sid:
                return p
        return None

    def alive_players(self) -> list[Player]:
        return [p for p in self.players if p.alive]

    def alive_ids(self) -> set[str]:
        return {p.id for p in self.players if p.alive}

import random

from impostor.game.registry import RoomRegistry


class ScriptedRandom(random.Random):
    """Replays letters in order so code collisions can be forced."""

    def __init__(self, letters):
        super().__init__(0)
        self._letters = list(letters)

    def choice(self, seq):
        return self._letters.pop(0)


def test_codes_are_short_uppercase_and_unique():
    registry = RoomRegistry()
    codes = {registry.create_room(f"p{i}")[0] for i in range(50)}

    assert len(codes) == 50
    assert all(len(c) == 4 and c.isalpha() and c.isupper() for c in codes)
    assert len(registry) == 50


def test_collision_retries_until_unique():
    registry = RoomRegistry(code_length=2, rng=ScriptedRandom("AAAAAB"))

    first, _, _ = registry.create_room("one")
    second, _, _ = registry.create_room("two")

    assert first == "AA"
    assert second == "AB"


def test_lookup_is_case_insensitive_and_remove_is_idempotent():
    registry = RoomRegistry()
    code, room, owner = registry.create_room("Ana", owner_sid="sid-a")

    assert registry.get_room(code.lower()) is room
    assert registry.get_room("") is None
    assert registry.rooms_with_sid("sid-a") == [room]
    assert registry.list_rooms() == [room]
    assert room.owner_id == owner.id
    assert room.phase == "LOBBY" and room.round == 0

    assert registry.remove_room(code) is True
    assert registry.remove_room(code) is False
    assert registry.get_room(code) is None

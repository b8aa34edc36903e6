import random

import pytest

from impostor.game import errors, roles
from impostor.game.errors import GameError
from impostor.game.notices import GAME_ROLE, GAME_SECRET, GAME_TURN, ROOM_STATE
from impostor.game.words import WORD_CATEGORIES

from conftest import events, make_room


def test_start_game_assigns_one_impostor_and_three_secrets(rng):
    room = make_room(4, impostor_count=1)

    notices = roles.start_game(room, "p0", rng=rng)

    impostors = [p for p in room.players if p.role == "IMPOSTOR"]
    assert len(impostors) == 1
    assert room.impostor_ids == [impostors[0].id]
    assert room.impostor_id == impostors[0].id
    assert room.phase == "IN_GAME"
    assert room.round == 1

    secrets = events(notices, GAME_SECRET)
    assert len(secrets) == 3
    assert impostors[0].sid not in {n.to for n in secrets}
    assert all(n.payload["word"] == room.meta.word for n in secrets)

    for n in events(notices, ROOM_STATE):
        assert "word" not in n.payload["state"]
        assert all("role" not in p for p in n.payload["state"]["players"])


def test_impostor_gets_category_but_never_the_word(rng):
    room = make_room(5, impostor_count=2)

    notices = roles.start_game(room, "p0", rng=rng)

    impostor_sids = {p.sid for p in room.players if p.role == "IMPOSTOR"}
    assert len(impostor_sids) == 2
    for n in notices:
        if n.to in impostor_sids:
            assert room.meta.word not in n.payload.values()
    role_info = [n for n in events(notices, GAME_ROLE) if n.to in impostor_sids]
    assert {n.payload["role"] for n in role_info} == {"IMPOSTOR"}
    assert all(n.payload["category"] == room.meta.category for n in role_info)


def test_turn_order_is_a_permutation_and_turn_is_announced(rng):
    room = make_room(4)

    notices = roles.start_game(room, "p0", rng=rng)

    assert sorted(room.meta.turn_order) == ["p0", "p1", "p2", "p3"]
    turn = events(notices, GAME_TURN)
    assert len(turn) == 1
    assert turn[0].payload["playerId"] == room.meta.current_speaker


def test_secret_comes_from_selected_categories(rng):
    room = make_room(3)
    room.settings.categories = ["Colores", "Emociones"]

    roles.start_game(room, "p0", rng=rng)

    assert room.meta.category in ("Colores", "Emociones")
    assert room.meta.word in WORD_CATEGORIES[room.meta.category]


def test_hidden_impostor_sees_a_decoy_and_a_crewmate_role(rng):
    room = make_room(4)
    room.settings.hidden_impostor = True

    notices = roles.start_game(room, "p0", rng=rng)

    impostor = next(p for p in room.players if p.role == "IMPOSTOR")
    mine = [n for n in notices if n.to == impostor.sid]
    assert {n.event for n in mine} == {GAME_SECRET, GAME_ROLE}
    for n in mine:
        assert n.payload["word"] == room.meta.decoy_word
        assert n.payload["word"] != room.meta.word
    assert events(mine, GAME_ROLE)[0].payload["role"] == "CREWMATE"


def test_hidden_impostor_gets_the_decoy_category(rng, monkeypatch):
    room = make_room(4)
    room.settings.hidden_impostor = True
    room.settings.categories = ["Alimentos"]
    monkeypatch.setattr(roles, "pick_decoy", lambda category, secret, rng=None: ("azul", "Colores"))

    notices = roles.start_game(room, "p0", rng=rng)

    impostor = next(p for p in room.players if p.role == "IMPOSTOR")
    mine = [n for n in notices if n.to == impostor.sid]
    assert room.meta.decoy_category == "Colores"
    assert all(n.payload["category"] == "Colores" for n in mine)
    crew = [n for n in events(notices, GAME_SECRET) if n.to != impostor.sid]
    assert all(n.payload["category"] == "Alimentos" for n in crew)


@pytest.mark.parametrize(
    "count, impostor_count, caller, code",
    [
        (4, 1, "p1", errors.NOT_ALLOWED),
        (4, 1, "nobody", errors.NOT_ALLOWED),
        (2, 1, "p0", errors.NEED_MIN_PLAYERS),
        (3, 3, "p0", errors.TOO_MANY_IMPOSTORS),
    ],
)
def test_start_game_rejections(count, impostor_count, caller, code):
    room = make_room(count, impostor_count=impostor_count)

    with pytest.raises(GameError) as exc:
        roles.start_game(room, caller, rng=random.Random(0))

    assert exc.value.code == code
    assert room.phase == "LOBBY"
    assert all(p.role is None for p in room.players)


def test_cannot_start_twice(rng):
    room = make_room(3)
    roles.start_game(room, "p0", rng=rng)

    with pytest.raises(GameError) as exc:
        roles.start_game(room, "p0", rng=rng)
    assert exc.value.code == errors.GAME_ALREADY_STARTED


def test_exactly_k_impostors_for_many_seeds():
    for seed in range(50):
        room = make_room(6, impostor_count=2)
        roles.start_game(room, "p0", rng=random.Random(seed))
        assert sum(p.role == "IMPOSTOR" for p in room.players) == 2

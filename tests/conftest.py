from __future__ import annotations

import random

import pytest

from impostor.game.models import Player, Room, RoundMeta, Settings
from impostor.server import create_app


def make_room(count: int = 4, impostor_count: int = 1) -> Room:
    players = [Player(id=f"p{i}", name=f"Player{i}", sid=f"sid{i}", player_key=f"key{i}") for i in range(count)]
    return Room(
        code="ABCD",
        owner_id="p0",
        settings=Settings(impostor_count=impostor_count),
        players=players,
        created_at_ms=1,
    )


def make_game(count: int = 4, impostors: tuple[str, ...] = ("p3",), start: int = 0) -> Room:
    """A room already IN_GAME with fixed roles and turn order p0, p1, ..."""
    room = make_room(count, impostor_count=len(impostors))
    for p in room.players:
        p.role = "IMPOSTOR" if p.id in impostors else "CREWMATE"
    room.impostor_ids = list(impostors)
    room.impostor_id = impostors[0] if impostors else None
    room.meta = RoundMeta(
        word="tamal",
        category="Alimentos",
        turn_order=[p.id for p in room.players],
        current_turn_index=start,
    )
    room.phase = "IN_GAME"
    room.round = 1
    return room


def events(notices, name):
    return [n for n in notices if n.event == name]


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def app_and_socketio():
    app, socketio = create_app(
        {
            "TESTING": True,
            "SOCKETIO_ASYNC_MODE": "threading",
            "SERVER_TIMERS": False,
            "TRUST_PROXY_HEADERS": False,
        }
    )
    return app, socketio


@pytest.fixture
def app(app_and_socketio):
    return app_and_socketio[0]


@pytest.fixture
def socketio(app_and_socketio):
    return app_and_socketio[1]


@pytest.fixture
def registry(app):
    return app.extensions["impostor.registry"]


@pytest.fixture
def http(app):
    return app.test_client()


@pytest.fixture
def connect(app, socketio):
    clients = []

    def _connect():
        client = socketio.test_client(app)
        clients.append(client)
        return client

    yield _connect

    for c in clients:
        if c.is_connected():
            c.disconnect()

import pytest

from impostor.game import errors, poll, turns
from impostor.game.errors import GameError
from impostor.game.notices import GAME_TURN, POLL_STATE, VOTE_STARTED
from impostor.game.state import majority

from conftest import events, make_game


def finish_round(room):
    while room.phase == "IN_GAME":
        turns.skip_turn(room, room.meta.current_speaker)


@pytest.mark.parametrize("total, needed", [(1, 1), (2, 2), (3, 2), (4, 3), (5, 3), (6, 4)])
def test_majority(total, needed):
    assert majority(total) == needed


def test_another_round_majority_skips_voting():
    room = make_game(5, start=2)
    finish_round(room)
    visited = []

    for pid in ("p0", "p1"):
        poll.choose_poll(room, pid, "DISCUSS")
        visited.append(room.phase)
    notices = poll.choose_poll(room, "p2", "DISCUSS")

    assert visited == ["ROUND_END", "ROUND_END"]
    assert room.phase == "IN_GAME"
    assert room.round == 2
    assert room.meta.words == []
    assert room.meta.submitted == set()
    assert room.meta.current_speaker == "p0"
    tally = events(notices, POLL_STATE)[0].payload
    assert (tally["discussVotes"], tally["totalEligible"], tally["majority"]) == (3, 5, 3)
    assert events(notices, GAME_TURN)[0].payload["playerId"] == "p0"
    assert not events(notices, VOTE_STARTED)


def test_vote_now_majority_opens_voting():
    room = make_game(4)
    finish_round(room)

    poll.choose_poll(room, "p0", "START")
    poll.choose_poll(room, "p1", "START")
    assert room.phase == "ROUND_END"
    notices = poll.choose_poll(room, "p2", "START")

    assert room.phase == "VOTING"
    assert room.meta.votes == {}
    assert room.meta.vote_intents == {}
    assert len(events(notices, VOTE_STARTED)) == 1


def test_later_choice_replaces_earlier_one():
    room = make_game(4)
    finish_round(room)

    poll.choose_poll(room, "p0", "START")
    notices = poll.choose_poll(room, "p0", "DISCUSS")

    tally = events(notices, POLL_STATE)[0].payload
    assert (tally["startVotes"], tally["discussVotes"]) == (0, 1)
    assert tally["votes"] == [{"playerId": "p0", "choice": "DISCUSS"}]


def test_split_poll_does_not_decide():
    room = make_game(4)
    finish_round(room)

    for pid, choice in (("p0", "START"), ("p1", "START"), ("p2", "DISCUSS"), ("p3", "DISCUSS")):
        poll.choose_poll(room, pid, choice)

    assert room.phase == "ROUND_END"


def test_eligible_population_is_living_players_only():
    room = make_game(5)
    room.get_player("p4").alive = False
    finish_round(room)

    poll.choose_poll(room, "p0", "START")
    notices = poll.choose_poll(room, "p1", "START")

    assert events(notices, POLL_STATE)[0].payload["totalEligible"] == 4
    assert room.phase == "ROUND_END"
    poll.choose_poll(room, "p2", "START")
    assert room.phase == "VOTING"


def test_poll_rejections():
    room = make_game(4)
    with pytest.raises(GameError) as exc:
        poll.choose_poll(room, "p0", "START")
    assert exc.value.code == errors.POLL_NOT_AVAILABLE

    finish_round(room)
    room.get_player("p1").alive = False
    with pytest.raises(GameError) as exc:
        poll.choose_poll(room, "p1", "START")
    assert exc.value.code == errors.NOT_ALLOWED

    with pytest.raises(GameError) as exc:
        poll.choose_poll(room, "p0", "MAYBE")
    assert exc.value.code == errors.INVALID_CHOICE

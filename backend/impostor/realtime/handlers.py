from __future__ import annotations

import logging
import random
from typing import Any, Callable

from flask import request
from flask_socketio import SocketIO, emit, join_room, leave_room

from ..game import errors, poll, roles, service, turns, voting
from ..game.errors import GameError
from ..game.models import Room
from ..game.notices import ROOM_ERROR, ROOM_KICKED, Notice
from ..game.registry import RoomRegistry


logger = logging.getLogger(__name__)

Command = Callable[[Room, "str | None", dict], "list[Notice]"]


def register_socketio_handlers(
    socketio: SocketIO,
    registry: RoomRegistry,
    server_timers: bool = False,
    rng: random.Random | None = None,
) -> None:
    room_tasks: dict[str, bool] = {}

    def _reject(code: str) -> dict:
        emit(ROOM_ERROR, {"error": code}, to=request.sid)
        return {"ok": False, "error": code}

    def _deliver(notices: list[Notice]) -> None:
        for n in notices:
            socketio.emit(n.event, n.payload, to=n.to)
            if n.event == ROOM_KICKED:
                leave_room(n.payload["roomCode"], sid=n.to)

    def _finish(room: Room) -> None:
        # ENDED is terminal; the final state has already been broadcast.
        if room.phase == "ENDED" or not room.players:
            registry.remove_room(room.code)
            socketio.close_room(room.code, namespace="/")

    def _registered(room: Room) -> bool:
        # The room may have been torn down while this command waited for its lock.
        return registry.get_room(room.code) is room

    def _room_from(data: Any) -> tuple[Room | None, str | None]:
        if not isinstance(data, dict):
            return None, errors.INVALID_PAYLOAD
        room_code = str(data.get("roomCode", "")).strip().upper()
        if not room_code:
            return None, errors.INVALID_PAYLOAD
        room = registry.get_room(room_code)
        if room is None:
            return None, errors.ROOM_NOT_FOUND
        return room, None

    def _command(data: Any, op: Command) -> dict:
        room, err = _room_from(data)
        if err:
            return _reject(err)

        with room.lock:
            if not _registered(room):
                return _reject(errors.ROOM_NOT_FOUND)
            caller = room.find_by_sid(request.sid)
            caller_id = caller.id if caller else None
            try:
                notices = op(room, caller_id, data)
            except GameError as e:
                logger.debug("room %s: %s rejected (%s)", room.code, request.event["message"], e.code)
                return _reject(e.code)
            logger.debug("room %s: %s by %s", room.code, request.event["message"], caller_id)
            _deliver(notices)
            _finish(room)
        return {"ok": True}

    def _ensure_room_task(room_code: str) -> None:
        if not server_timers or room_tasks.get(room_code):
            return
        room_tasks[room_code] = True

        def _runner() -> None:
            while True:
                room = registry.get_room(room_code)
                if room is None:
                    break

                # Deadlines go through the same lock as player commands.
                try:
                    with room.lock:
                        if not _registered(room):
                            break
                        notices = turns.auto_skip(room) + voting.expire_vote(room)
                        _deliver(notices)
                        _finish(room)
                except Exception:
                    logger.warning("room %s: timer tick failed", room_code, exc_info=True)

                socketio.sleep(0.25)

            room_tasks.pop(room_code, None)

        socketio.start_background_task(_runner)

    @socketio.on("room:create")
    def room_create(data):
        payload = data if isinstance(data, dict) else {}
        try:
            room, notices = service.create_room(registry, payload.get("name"), request.sid)
        except GameError as e:
            return _reject(e.code)

        join_room(room.code)
        _deliver(notices)
        return {"ok": True, "roomCode": room.code}

    @socketio.on("room:join")
    def room_join(data):
        room, err = _room_from(data)
        if err:
            return _reject(err)

        with room.lock:
            if not _registered(room):
                return _reject(errors.ROOM_NOT_FOUND)
            try:
                player, notices = service.join_room(room, data.get("name"), request.sid)
            except GameError as e:
                return _reject(e.code)
            join_room(room.code)
            _deliver(notices)
        return {"ok": True, "roomCode": room.code, "playerId": player.id}

    @socketio.on("room:rejoin")
    def room_rejoin(data):
        room, err = _room_from(data)
        if err:
            return _reject(err)

        with room.lock:
            if not _registered(room):
                return _reject(errors.ROOM_NOT_FOUND)
            try:
                player, notices = service.rejoin(room, data.get("playerKey"), request.sid)
            except GameError as e:
                return _reject(e.code)
            join_room(room.code)
            _deliver(notices)
        return {"ok": True, "roomCode": room.code, "playerId": player.id}

    @socketio.on("room:leave")
    def room_leave(data):
        def op(room, caller_id, _data):
            notices = service.leave_room(room, caller_id)
            leave_room(room.code)
            return notices

        return _command(data, op)

    @socketio.on("room:update_settings")
    def room_update_settings(data):
        return _command(data, lambda room, caller_id, d: service.update_settings(room, caller_id, d.get("settings")))

    @socketio.on("room:kick")
    def room_kick(data):
        return _command(data, lambda room, caller_id, d: service.kick_player(room, caller_id, d.get("playerId")))

    @socketio.on("room:transfer_owner")
    def room_transfer_owner(data):
        return _command(data, lambda room, caller_id, d: service.transfer_owner(room, caller_id, d.get("playerId")))

    @socketio.on("game:start")
    def game_start(data):
        result = _command(data, lambda room, caller_id, _d: roles.start_game(room, caller_id, rng=rng))
        if result["ok"]:
            _ensure_room_task(str(data.get("roomCode", "")).strip().upper())
        return result

    @socketio.on("game:submit_word")
    def game_submit_word(data):
        return _command(data, lambda room, caller_id, d: turns.submit_clue(room, caller_id, d.get("word")))

    @socketio.on("game:skip_turn")
    def game_skip_turn(data):
        return _command(data, lambda room, caller_id, _d: turns.skip_turn(room, caller_id))

    @socketio.on("game:continue_round")
    def game_continue_round(data):
        return _command(data, lambda room, caller_id, _d: turns.continue_round(room, caller_id))

    @socketio.on("vote:request")
    def vote_request(data):
        return _command(data, lambda room, caller_id, _d: voting.request_vote(room, caller_id))

    @socketio.on("poll:choice")
    def poll_choice(data):
        return _command(data, lambda room, caller_id, d: poll.choose_poll(room, caller_id, d.get("choice")))

    @socketio.on("vote:cast")
    def vote_cast(data):
        return _command(data, lambda room, caller_id, d: voting.cast_vote(room, caller_id, d.get("targetId")))

    @socketio.on("vote:intent")
    def vote_intent(data):
        return _command(data, lambda room, caller_id, d: voting.set_vote_intent(room, caller_id, d.get("targetId")))

    @socketio.on("chat:message")
    def chat_message(data):
        return _command(data, lambda room, caller_id, d: service.send_chat(room, caller_id, d.get("text")))

    @socketio.on("disconnect")
    def on_disconnect(reason=None):
        def _flush(room: Room, notices: list[Notice]) -> None:
            _deliver(notices)
            if not _registered(room):
                socketio.close_room(room.code, namespace="/")

        service.disconnect(registry, request.sid, on_room=_flush)

from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from ..game.state import room_public_state

bp = Blueprint("rooms", __name__)


@bp.get("/rooms/<code>")
def get_room(code: str):
    room = current_app.extensions["impostor.registry"].get_room(code)
    if not room:
        return jsonify({"error": "room_not_found"}), 404
    with room.lock:
        return jsonify(room_public_state(room))

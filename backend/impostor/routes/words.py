from __future__ import annotations

from flask import Blueprint, jsonify

from ..config import Config
from ..game.words import WORD_CATEGORIES

bp = Blueprint("words", __name__)


@bp.get("/categories")
def get_categories():
    # Only names and sizes; the words themselves stay on the server.
    categories = [{"name": name, "count": len(words)} for name, words in WORD_CATEGORIES.items()]
    return jsonify({"categories": categories, "default": Config.DEFAULT_CATEGORY})

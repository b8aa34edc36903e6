import os


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev")

    # CORS
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # Reverse proxy / IP headers
    TRUST_PROXY_HEADERS = os.environ.get("TRUST_PROXY_HEADERS", "1") == "1"

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    # Rooms
    ROOM_CODE_LENGTH = int(os.environ.get("ROOM_CODE_LENGTH", "4"))
    MIN_PLAYERS = int(os.environ.get("MIN_PLAYERS", "3"))
    CHAT_HISTORY_LIMIT = int(os.environ.get("CHAT_HISTORY_LIMIT", "200"))

    # Game defaults (owner can change them in the lobby)
    DEFAULT_CATEGORY = os.environ.get("DEFAULT_CATEGORY", "Alimentos")
    DEFAULT_IMPOSTOR_COUNT = int(os.environ.get("DEFAULT_IMPOSTOR_COUNT", "1"))
    DEFAULT_TURN_TIME_SEC = int(os.environ.get("DEFAULT_TURN_TIME_SEC", "20"))
    DEFAULT_VOTE_TIME_SEC = int(os.environ.get("DEFAULT_VOTE_TIME_SEC", "30"))
    DEFAULT_DISCUSSION_TIME_SEC = int(os.environ.get("DEFAULT_DISCUSSION_TIME_SEC", "20"))

    # Server-side turn / vote deadlines. Off means timers are advisory for clients only.
    SERVER_TIMERS = os.environ.get("SERVER_TIMERS", "0") == "1"

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ═══════════════════════════════════════════════════
    # FAL AI Configuration (image generation)
    # ═══════════════════════════════════════════════════
    FAL_KEY: str = ""
    IMAGE_ENDPOINT: str = "fal-ai/flux/schnell"
    IMAGE_SIZE: str = "square_hd"
    IMAGE_TIMEOUT_SEC: float = 30.0

    # ═══════════════════════════════════════════════════
    # FastAPI Application Settings
    # ═══════════════════════════════════════════════════
    APP_NAME: str = "Prompt Pictionary"
    VERSION: str = "0.1.0"
    ENV: str = "development"  # "development" | "production"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # ═══════════════════════════════════════════════════
    # Server Configuration
    # ═══════════════════════════════════════════════════
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # ═══════════════════════════════════════════════════
    # Room Limits
    # ═══════════════════════════════════════════════════
    MAX_ROOMS: int = 500
    ROOM_IDLE_TTL_SEC: float = 600.0  # rooms nobody connected to are dropped after this

    # ═══════════════════════════════════════════════════
    # WebSocket Configuration
    # ═══════════════════════════════════════════════════
    WS_MESSAGE_MAX_SIZE: int = 10000  # bytes

    # ═══════════════════════════════════════════════════
    # CORS Configuration
    # ═══════════════════════════════════════════════════
    CORS_ORIGINS: list[str] = ["*"]
    CORS_CREDENTIALS: bool = True
    CORS_METHODS: list[str] = ["*"]
    CORS_HEADERS: list[str] = ["*"]

    class Config:
        env_file = ".env"
        extra = "ignore"


_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Settings singleton.

    Read once per process from the environment / `.env`. The app factory
    accepts an explicit Settings instance instead, which is what tests use.
    """
    global _settings
    if not _settings:
        _settings = Settings()
    return _settings

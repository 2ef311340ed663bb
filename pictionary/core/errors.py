from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from pictionary.shared.schemas import ErrorDetail, ErrorResponse


class GameError(Exception):
    def __init__(self, code: str, message: str, status: int = 400, details: dict | None = None):
        self.code = code
        self.message = message
        self.status = status
        self.details = details or {}
        super().__init__(message)

    def to_message(self) -> dict:
        """Error frame pushed to a single WebSocket connection."""
        payload = {"type": "error", "error": self.message, "code": self.code}
        if self.details:
            payload["details"] = self.details
        return payload


# ── Room lifecycle ───────────────────────────────────

class RoomNotFound(GameError):
    def __init__(self, code: str = "ROOM_NOT_FOUND", message: str = "Room not found", details: dict | None = None):
        super().__init__(code, message, 404, details)


class RoomFull(GameError):
    def __init__(self, code: str = "ROOM_FULL", message: str = "Room is full", details: dict | None = None):
        super().__init__(code, message, 409, details)


class RoomLimitReached(GameError):
    def __init__(self, code: str = "ROOM_LIMIT", message: str = "Too many active rooms, try again later", details: dict | None = None):
        super().__init__(code, message, 503, details)


class PlayerNotInRoom(GameError):
    def __init__(self, code: str = "PLAYER_NOT_IN_ROOM", message: str = "Player is not part of this room", details: dict | None = None):
        super().__init__(code, message, 403, details)


# ── Game actions ─────────────────────────────────────

class GameNotActive(GameError):
    def __init__(self, code: str = "GAME_NOT_ACTIVE", message: str = "The game is not in progress", details: dict | None = None):
        super().__init__(code, message, 409, details)


class NotYourTurn(GameError):
    def __init__(self, code: str = "NOT_YOUR_TURN", message: str = "You cannot do that right now", details: dict | None = None):
        super().__init__(code, message, 403, details)


class NoAttemptsLeft(GameError):
    def __init__(self, code: str = "NO_ATTEMPTS_LEFT", message: str = "No attempts left this round", details: dict | None = None):
        super().__init__(code, message, 409, details)


class ActionInFlight(GameError):
    def __init__(self, code: str = "ACTION_IN_FLIGHT", message: str = "An image is still being generated", details: dict | None = None):
        super().__init__(code, message, 409, details)


class WordLocked(GameError):
    def __init__(self, code: str = "WORD_LOCKED", message: str = "The word can only change before the first guess", details: dict | None = None):
        super().__init__(code, message, 409, details)


class ImageGenerationFailed(GameError):
    def __init__(self, code: str = "IMAGE_GENERATION_FAILED", message: str = "Image generation failed, the attempt was used up", details: dict | None = None):
        super().__init__(code, message, 502, details)


class InvalidMessage(GameError):
    def __init__(self, code: str = "INVALID_MESSAGE", message: str = "Invalid message", details: dict | None = None):
        super().__init__(code, message, 422, details)


# ── Word bank ────────────────────────────────────────

class CategoryNotFound(GameError):
    def __init__(self, code: str = "CATEGORY_NOT_FOUND", message: str = "Category not found", details: dict | None = None):
        super().__init__(code, message, 404, details)


class ValidationError(GameError):
    def __init__(self, code: str = "VALIDATION_ERROR", message: str = "Invalid input", details: dict | None = None):
        super().__init__(code, message, 422, details)


def error_body(code: str, message: str, details: dict | None = None) -> dict:
    return ErrorResponse(error=ErrorDetail(code=code, message=message, details=details or {})).model_dump()


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(GameError)
    async def game_error_handler(request: Request, exc: GameError):
        return JSONResponse(status_code=exc.status, content=error_body(exc.code, exc.message, exc.details))

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        message = str(exc) if app.debug else "Internal server error"
        return JSONResponse(status_code=500, content=error_body("INTERNAL_ERROR", message))

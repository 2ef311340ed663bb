"""FastAPI dependencies. Everything lives on app.state, built by create_app()."""

from fastapi.requests import HTTPConnection

from pictionary.apps.rooms.service import RoomRegistry
from pictionary.apps.words.service import WordBank
from pictionary.apps.ws.service import ConnectionManager
from pictionary.core.config import Settings


def get_app_settings(conn: HTTPConnection) -> Settings:
    return conn.app.state.settings


def get_registry(conn: HTTPConnection) -> RoomRegistry:
    return conn.app.state.registry


def get_word_bank(conn: HTTPConnection) -> WordBank:
    return conn.app.state.word_bank


def get_sessions(conn: HTTPConnection) -> ConnectionManager:
    return conn.app.state.sessions

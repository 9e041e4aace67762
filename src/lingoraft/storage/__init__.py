from .session_store import STORAGE_KEY, InMemorySessionStore, JsonFileSessionStore, SessionStore

__all__ = ["STORAGE_KEY", "InMemorySessionStore", "JsonFileSessionStore", "SessionStore"]

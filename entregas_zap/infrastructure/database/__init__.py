"""Database access (Supabase Postgres via SQLModel)"""
from .connection import get_engine, get_session, get_session_maker, init_db

__all__ = [
    "get_engine",
    "get_session",
    "get_session_maker",
    "init_db",
]

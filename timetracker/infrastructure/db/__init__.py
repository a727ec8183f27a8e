"""
Database infrastructure: engine, sessions and table models.
"""

from .database import Base, engine, SessionLocal, get_db_session

__all__ = ["Base", "engine", "SessionLocal", "get_db_session"]

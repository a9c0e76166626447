"""SQLite persistence for the reference option store."""

from muloader.infrastructure.database.engine import create_db_engine, init_database

__all__ = ["create_db_engine", "init_database"]

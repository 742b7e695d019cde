"""Content store engine and sessions."""

from halqa.db.database import (
    async_session_maker,
    check_connection,
    close_db,
    engine,
    get_session,
    init_db,
    transaction,
)

__all__ = [
    "engine",
    "async_session_maker",
    "get_session",
    "init_db",
    "close_db",
    "transaction",
    "check_connection",
]

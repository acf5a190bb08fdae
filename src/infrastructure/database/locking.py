"""Write-lock support for SQLite engines.

PostgreSQL honours ``SELECT ... FOR UPDATE``; SQLite silently drops it. On
SQLite the driver's own transaction handling is switched off and every
transaction is opened explicitly, with ``BEGIN IMMEDIATE`` when the
connection was procured with :data:`WRITE_LOCK_OPTION`. That takes the
database write lock before the first read, so a second locking transaction
waits until the first commits.
"""

from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

WRITE_LOCK_OPTION = "sqlite_write_lock"


def configure_sqlite_locking(engine: AsyncEngine) -> None:
    """Install the connect/begin hooks on SQLite engines. No-op elsewhere."""
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin(conn: Connection) -> None:
        if conn.get_execution_options().get(WRITE_LOCK_OPTION):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")


async def acquire_write_lock(session: AsyncSession) -> None:
    """Procure the session's connection in write-lock mode.

    Must be the first statement of the transaction; once a connection is
    open the option no longer applies.
    """
    if session.in_transaction():
        return
    await session.connection(execution_options={WRITE_LOCK_OPTION: True})

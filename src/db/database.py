# manages connection to db, provides helper methods internal to db package
import asyncio
import os
import sqlite3
from contextlib import asynccontextmanager
from datetime import datetime
from sqlite3 import Row
from typing import AsyncIterator, Optional

import aiosqlite

from utils import config
from utils.errors import DataAccessError
from utils.logger import get_logger

_logger = get_logger(__name__)

DB_PATH = config.DB_PATH
_SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
DB_INIT_SCRIPTS = [
    os.path.join(_SCRIPT_DIR, "schema.sql"),
    os.path.join(_SCRIPT_DIR, "seed.sql"),
]

_initialized = False
_init_lock = asyncio.Lock()


def to_ts(when: datetime, timespec: str = "seconds") -> str:
    """Timestamps are stored as ISO-8601 text so they sort and compare as strings."""
    return when.isoformat(sep=" ", timespec=timespec)


def from_ts(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


async def _init_db(conn: aiosqlite.Connection) -> None:
    for script in DB_INIT_SCRIPTS:
        if not os.path.exists(script) or os.path.getsize(script) == 0:
            continue
        _logger.info(f"Initializing database with script {os.path.basename(script)}...")
        with open(script, "r", encoding="utf-8") as f:
            await conn.executescript(f.read())
    await conn.commit()


async def _table_exists(conn: aiosqlite.Connection, table_name: str) -> bool:
    cur = await conn.execute(
        """
        SELECT name
        FROM sqlite_master
        WHERE type = 'table'
          AND name = ?;
        """,
        (table_name,),
    )
    row = await cur.fetchone()
    await cur.close()
    return row is not None


@asynccontextmanager
async def connect() -> AsyncIterator[aiosqlite.Connection]:
    """Async context manager yielding an aiosqlite connection with FK enabled.

    Ensures the database is initialized (tables and seed data) on first use.
    Any sqlite failure, whether opening the connection or inside the block, is
    re-raised as DataAccessError.
    """
    global _initialized
    try:
        directory = os.path.dirname(DB_PATH)
        if directory:
            os.makedirs(directory, exist_ok=True)
        conn = await aiosqlite.connect(DB_PATH)
    except (sqlite3.Error, OSError) as e:
        _logger.error(f"Cannot open database {DB_PATH}: {e}")
        raise DataAccessError("The store is unreachable.") from e

    try:
        conn.row_factory = Row
        await conn.execute("PRAGMA foreign_keys = ON;")

        if not _initialized:
            async with _init_lock:
                if not _initialized:
                    if not await _table_exists(conn, "products"):
                        _logger.info("Initializing database...")
                        await _init_db(conn)
                    _initialized = True
        yield conn
    except sqlite3.Error as e:
        _logger.error(f"Database error: {e}")
        raise DataAccessError(f"Store request failed: {e}") from e
    finally:
        await conn.close()

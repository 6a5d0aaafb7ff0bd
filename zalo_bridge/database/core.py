"""SQLite database core infrastructure."""
import aiosqlite
import asyncio
import logging
from pathlib import Path
from typing import Any, Optional
from zalo_bridge.config.config import config
from zalo_bridge.database.schema import SCHEMA_SQL

logger = logging.getLogger(__name__)

class DatabaseCore:
    """Manage SQLite database connection and write queue."""
    
    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or config.SQLITE_DB_PATH
        self.conn: Optional[aiosqlite.Connection] = None
        self.write_queue: Optional[asyncio.Queue] = None
        self.writer_task: Optional[asyncio.Task] = None
        self._running = False
    
    async def connect(self) -> None:
        """Connect to SQLite and create tables."""
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        self.conn = await aiosqlite.connect(self.db_path)
        self.conn.row_factory = aiosqlite.Row
        
        # Enable Write-Ahead Logging for concurrency
        await self.conn.execute("PRAGMA journal_mode=WAL;")
        await self.conn.execute("PRAGMA synchronous=NORMAL;")
        
        await self._create_tables()
        
        self._running = True
        self.write_queue = asyncio.Queue()
        self.writer_task = asyncio.create_task(self._process_write_queue())
        logger.info(f"💾 Database connected: {self.db_path}")
    
    async def close(self) -> None:
        """Drain pending writes, stop the writer, then close the connection."""
        if self.writer_task:
            await self.write_queue.join()
            self._running = False
            self.writer_task.cancel()
            try:
                await self.writer_task
            except asyncio.CancelledError:
                pass
            self.writer_task = None
        self._running = False
        if self.conn:
            await self.conn.close()
            self.conn = None
    
    async def _create_tables(self) -> None:
        """Execute schema definition."""
        await self.conn.executescript(SCHEMA_SQL)
        await self.conn.commit()

    async def _process_write_queue(self) -> None:
        """Sequential writer to prevent SQLite locking errors."""
        while self._running:
            try:
                query, args, future = await self.write_queue.get()
                try:
                    cursor = await self.conn.execute(query, args)
                    await self.conn.commit()
                    if not future.done():
                        future.set_result(cursor.rowcount)
                except Exception as e:
                    if not future.done():
                        future.set_exception(e)
                finally:
                    self.write_queue.task_done()
            except asyncio.CancelledError:
                break

    async def _execute_write(self, query: str, args: tuple) -> Any:
        """Queue a write and wait for it; returns the affected row count."""
        if not self._running or self.conn is None:
            raise RuntimeError("Database is not connected")
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        await self.write_queue.put((query, args, future))
        return await future

    async def _fetch_one(self, query: str, args: tuple = ()) -> Optional[dict]:
        if self.conn is None:
            raise RuntimeError("Database is not connected")
        async with self.conn.execute(query, args) as cursor:
            row = await cursor.fetchone()
            return dict(row) if row else None

    async def _fetch_all(self, query: str, args: tuple = ()) -> list:
        if self.conn is None:
            raise RuntimeError("Database is not connected")
        async with self.conn.execute(query, args) as cursor:
            rows = await cursor.fetchall()
            return [dict(row) for row in rows]

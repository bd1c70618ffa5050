"""
SQLite3 비동기 커넥션풀

잡 큐의 claim(조건부 UPDATE)은 BEGIN IMMEDIATE 쓰기 트랜잭션으로 직렬화되므로
여러 워커 프로세스가 같은 DB 파일을 공유해도 한 행을 두 번 가져가지 않습니다.
다른 쓰기 트랜잭션이 끝날 때까지의 대기는 busy_timeout이 담당합니다.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import aiosqlite
import aiosql
from aiosql.queries import Queries

from database.base import BaseDatabase
from database.context import set_connection, clear_connection
from database.exception import (
    ConnectionPoolExhaustedError,
    ReadOnlyTransactionError,
    TransactionError,
)

logger = logging.getLogger(__name__)

WRITE_PREFIXES = ('INSERT', 'UPDATE', 'DELETE', 'REPLACE', 'CREATE', 'DROP', 'ALTER')


def _from_dict(cls, data: dict[str, Any] | None):
    """알 수 없는 키는 무시하고 dataclass 생성"""
    names = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in (data or {}).items() if k in names})


@dataclass
class PoolConfig:
    """커넥션풀 설정"""
    pool_size: int = 5
    pool_timeout: float = 30.0
    max_idle_time: float = 300.0


@dataclass
class SqliteOptions:
    """SQLite 연결 옵션 (연결마다 PRAGMA로 적용)"""
    busy_timeout: int = 5000
    journal_mode: str = 'WAL'
    synchronous: str = 'NORMAL'
    cache_size: int = -2000
    foreign_keys: bool = True

    def pragmas(self) -> list[str]:
        return [
            f"PRAGMA busy_timeout={self.busy_timeout}",
            f"PRAGMA journal_mode={self.journal_mode}",
            f"PRAGMA synchronous={self.synchronous}",
            f"PRAGMA cache_size={self.cache_size}",
            f"PRAGMA foreign_keys={'ON' if self.foreign_keys else 'OFF'}",
        ]


class TransactionContext:
    """
    현재 태스크에 바인딩된 트랜잭션

    aiosql 쿼리에는 ctx.connection을 넘기고, 직접 SQL은 execute/fetch_* 를 사용합니다.
    """

    def __init__(self, connection: aiosqlite.Connection, readonly: bool = False):
        self._connection = connection
        self._readonly = readonly

    @property
    def connection(self) -> aiosqlite.Connection:
        return self._connection

    @property
    def readonly(self) -> bool:
        return self._readonly

    async def execute(self, sql: str, parameters: Any = None) -> aiosqlite.Cursor:
        if self._readonly and sql.lstrip().upper().startswith(WRITE_PREFIXES):
            raise ReadOnlyTransactionError("Cannot execute write query in readonly transaction")

        logger.debug(f"[SQL] {' '.join(sql.split())} | params: {parameters}")
        return await self._connection.execute(sql, parameters or ())

    async def execute_write(self, sql: str, parameters: Any = None) -> int:
        """쓰기 SQL 실행 - affected rows 반환"""
        cursor = await self.execute(sql, parameters)
        return cursor.rowcount

    async def fetch_one(self, sql: str, parameters: Any = None) -> aiosqlite.Row | None:
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchone()

    async def fetch_all(self, sql: str, parameters: Any = None) -> list[aiosqlite.Row]:
        cursor = await self.execute(sql, parameters)
        return list(await cursor.fetchall())

    async def fetch_val(self, sql: str, parameters: Any = None) -> Any:
        """첫 행 첫 컬럼 값"""
        row = await self.fetch_one(sql, parameters)
        return row[0] if row else None


@dataclass
class _Slot:
    connection: aiosqlite.Connection
    released_at: float


class AsyncConnectionPool:
    """
    고정 크기 커넥션풀

    유휴 연결은 큐에 보관하고, max_idle_time을 넘긴 연결은 꺼낼 때 다시 엽니다.
    """

    def __init__(self, db_path: str | Path, pool_config: PoolConfig, sqlite_options: SqliteOptions):
        self._db_path = Path(db_path)
        self._pool_config = pool_config
        self._sqlite_options = sqlite_options
        self._idle: asyncio.Queue[_Slot] = asyncio.Queue()
        self._in_use: set[aiosqlite.Connection] = set()
        self._closed = False

    async def initialize(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        for _ in range(self._pool_config.pool_size):
            self._idle.put_nowait(_Slot(await self._connect(), time.monotonic()))

        logger.info(
            f"Connection pool initialized: {self._db_path} "
            f"(size={self._pool_config.pool_size}, timeout={self._pool_config.pool_timeout}s)"
        )

    async def _connect(self) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(self._db_path, timeout=self._sqlite_options.busy_timeout / 1000.0)
        conn.row_factory = aiosqlite.Row
        for pragma in self._sqlite_options.pragmas():
            await conn.execute(pragma)
        return conn

    async def acquire(self, timeout: float | None = None) -> aiosqlite.Connection:
        """
        연결 획득

        Raises:
            ConnectionPoolExhaustedError: timeout 안에 반환된 연결이 없는 경우
        """
        if self._closed:
            raise RuntimeError("Connection pool is closed")

        timeout = timeout or self._pool_config.pool_timeout
        try:
            slot = await asyncio.wait_for(self._idle.get(), timeout=timeout)
        except asyncio.TimeoutError:
            raise ConnectionPoolExhaustedError(f"Connection pool exhausted. Timeout after {timeout}s")

        if time.monotonic() - slot.released_at > self._pool_config.max_idle_time:
            await slot.connection.close()
            slot.connection = await self._connect()
            logger.debug("Reopened idle connection")

        self._in_use.add(slot.connection)
        return slot.connection

    async def release(self, connection: aiosqlite.Connection) -> None:
        self._in_use.discard(connection)
        if self._closed:
            await connection.close()
            return
        self._idle.put_nowait(_Slot(connection, time.monotonic()))

    async def close(self) -> None:
        """유휴 연결 종료 (사용 중인 연결은 반환 시 종료)"""
        self._closed = True
        while not self._idle.empty():
            slot = self._idle.get_nowait()
            try:
                await slot.connection.close()
            except Exception as e:
                logger.error(f"Error closing connection: {e}")
        logger.info("Connection pool closed")

    @property
    def size(self) -> int:
        return self._idle.qsize() + len(self._in_use)

    @property
    def available(self) -> int:
        return self._idle.qsize()


class ManagedTransaction:
    """
    async with db.transaction() as ctx

    쓰기는 BEGIN IMMEDIATE(시작 시점에 쓰기 잠금 획득), 읽기 전용은 BEGIN DEFERRED.
    정상 종료 시 커밋, 예외 시 롤백합니다.
    """

    def __init__(self, db: 'SQLiteDatabase', readonly: bool = False):
        self._db = db
        self._readonly = readonly
        self._connection: aiosqlite.Connection | None = None

    async def __aenter__(self) -> TransactionContext:
        self._connection = await self._db.pool.acquire()
        try:
            await self._connection.execute("BEGIN DEFERRED" if self._readonly else "BEGIN IMMEDIATE")
        except aiosqlite.Error as e:
            await self._db.pool.release(self._connection)
            raise TransactionError(f"Failed to begin transaction: {e}") from e

        ctx = TransactionContext(self._connection, self._readonly)
        set_connection(self._db.name, ctx)
        return ctx

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        try:
            if exc_type is None:
                await self._connection.commit()
            else:
                await self._connection.rollback()
                logger.debug(f"Transaction rolled back: {exc_type.__name__}")
        finally:
            clear_connection(self._db.name)
            await self._db.pool.release(self._connection)


class SQLiteDatabase(BaseDatabase):
    """
    SQLite 데이터베이스

    config 예시 (database.yaml의 databases.<name>):
        type: sqlite3
        path: ./data/postwatch.db
        init_schema: true
        pool: {pool_size: 5, pool_timeout: 30.0}
        options: {busy_timeout: 5000, journal_mode: WAL}
    """

    def __init__(self, name: str, config: dict[str, Any]):
        super().__init__(name)
        self._config = config
        self._pool: AsyncConnectionPool | None = None
        self._queries: dict[str, Queries] = {}

    @classmethod
    async def create(cls, name: str, config: dict[str, Any]) -> 'SQLiteDatabase':
        instance = cls(name, config)
        await instance._initialize()
        return instance

    async def _initialize(self) -> None:
        self._pool = AsyncConnectionPool(
            db_path=self._config.get('path', f'./data/{self.name}.db'),
            pool_config=_from_dict(PoolConfig, self._config.get('pool')),
            sqlite_options=_from_dict(SqliteOptions, self._config.get('options')),
        )
        await self._pool.initialize()

        if self._config.get('init_schema', True):
            await self._create_schema()

        logger.info(f"SQLiteDatabase '{self.name}' initialized")

    async def _create_schema(self) -> None:
        """sql/init.sql 실행 (CREATE IF NOT EXISTS)"""
        queries = aiosql.from_path(str(Path(__file__).parent / 'sql' / 'init.sql'), "aiosqlite")
        conn = await self._pool.acquire()
        try:
            await queries.create_schema(conn)
            await conn.commit()
        finally:
            await self._pool.release(conn)

    def transaction(self, readonly: bool = False) -> ManagedTransaction:
        return ManagedTransaction(self, readonly)

    @property
    def pool(self) -> AsyncConnectionPool:
        if self._pool is None:
            raise RuntimeError(f"Database '{self.name}' not initialized")
        return self._pool

    def load_queries(self, name: str, sql_path: str) -> Queries:
        """aiosql 쿼리 파일 로드 후 이름으로 캐시"""
        queries = aiosql.from_path(sql_path, "aiosqlite")
        self._queries[name] = queries
        return queries

    def get_queries(self, name: str) -> Queries | None:
        return self._queries.get(name)

    async def close(self) -> None:
        if self._pool:
            await self._pool.close()
        logger.info(f"SQLiteDatabase '{self.name}' closed")

"""
SQLite3 백엔드

DatabaseRegistry가 type: sqlite3 설정으로 SQLiteDatabase를 생성합니다.
스키마(job_queue, submissions, monitoring_schedule, submission_captures)는
sql/init.sql에 있으며 초기화 시 자동 생성됩니다.
"""

from database.sqlite3.connection import (
    SQLiteDatabase,
    AsyncConnectionPool,
    TransactionContext,
    ManagedTransaction,
    PoolConfig,
    SqliteOptions,
)

__all__ = [
    'SQLiteDatabase',
    'AsyncConnectionPool',
    'TransactionContext',
    'ManagedTransaction',
    'PoolConfig',
    'SqliteOptions',
]

"""
비동기 데이터베이스 패키지

사용 예시:
    from database import transactional, get_connection, get_db
    from database.registry import DatabaseRegistry

    await DatabaseRegistry.init_from_config(config)

    @transactional
    async def claim_job(job_id):
        ctx = get_connection()
        return await queries.claim_job(ctx.connection, id=job_id, ...)

    async with get_db().transaction() as ctx:
        await ctx.execute("DELETE FROM ...")
"""

from database.base import BaseDatabase
from database.context import get_connection
from database.exception import (
    DatabaseError,
    ConnectionPoolExhaustedError,
    ReadOnlyTransactionError,
    TransactionError,
    DatabaseNotFoundError,
    NoActiveConnectionError,
)
from database.registry import DatabaseRegistry
from database.transaction import transactional, transactional_readonly


def get_db(name: str = "default") -> BaseDatabase:
    """등록된 DB 인스턴스 반환"""
    return DatabaseRegistry.get(name)


__all__ = [
    'BaseDatabase',
    'DatabaseRegistry',
    'get_db',
    'get_connection',
    'transactional',
    'transactional_readonly',
    'DatabaseError',
    'ConnectionPoolExhaustedError',
    'ReadOnlyTransactionError',
    'TransactionError',
    'DatabaseNotFoundError',
    'NoActiveConnectionError',
]

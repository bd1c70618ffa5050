"""
트랜잭션 데코레이터

사용 예시:
    @transactional
    async def claim(job_id):            # default DB
        ctx = get_connection()
        ...

    @transactional(db)                  # DB 인스턴스 지정
    @transactional('sqlite_2')          # DB 이름 지정
    @transactional_readonly             # 읽기 전용 (BEGIN DEFERRED)

이미 같은 DB의 트랜잭션이 열려 있으면 새로 열지 않고 참여합니다.
"""

import functools
import logging
from typing import Any, Callable

from database.base import BaseDatabase
from database.context import has_connection
from database.registry import DatabaseRegistry

logger = logging.getLogger(__name__)


def _resolve(target: BaseDatabase | str | None) -> BaseDatabase:
    if isinstance(target, BaseDatabase):
        return target
    return DatabaseRegistry.get(target or "default")


def _make_decorator(target: BaseDatabase | str | None, readonly: bool) -> Callable:
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            db = _resolve(target)
            if has_connection(db.name):
                return await func(*args, **kwargs)
            async with db.transaction(readonly=readonly):
                return await func(*args, **kwargs)
        return wrapper
    return decorator


def transactional(arg: Callable | BaseDatabase | str | None = None) -> Callable:
    """쓰기 트랜잭션 데코레이터 (예외 시 롤백)"""
    if callable(arg) and not isinstance(arg, BaseDatabase):
        return _make_decorator(None, readonly=False)(arg)
    return _make_decorator(arg, readonly=False)


def transactional_readonly(arg: Callable | BaseDatabase | str | None = None) -> Callable:
    """읽기 전용 트랜잭션 데코레이터"""
    if callable(arg) and not isinstance(arg, BaseDatabase):
        return _make_decorator(None, readonly=True)(arg)
    return _make_decorator(arg, readonly=True)

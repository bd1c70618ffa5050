"""
트랜잭션 컨텍스트 저장소

현재 asyncio 태스크에 바인딩된 DB별 TransactionContext를 contextvars로 관리합니다.
태스크마다 독립적인 값을 가지므로 동시 실행되는 잡끼리 연결이 섞이지 않습니다.
"""

from contextvars import ContextVar
from typing import Any

from database.exception import NoActiveConnectionError

_connections: ContextVar[dict[str, Any] | None] = ContextVar("db_connections", default=None)


def set_connection(name: str, ctx: Any) -> None:
    """DB 이름에 트랜잭션 컨텍스트 바인딩"""
    current = dict(_connections.get() or {})
    current[name] = ctx
    _connections.set(current)


def clear_connection(name: str) -> None:
    """바인딩 해제"""
    current = dict(_connections.get() or {})
    current.pop(name, None)
    _connections.set(current)


def has_connection(name: str) -> bool:
    return name in (_connections.get() or {})


def get_connection(name: str = "default") -> Any:
    """
    현재 태스크의 트랜잭션 컨텍스트 반환

    Raises:
        NoActiveConnectionError: 바인딩된 트랜잭션이 없는 경우
    """
    current = _connections.get() or {}
    if name not in current:
        raise NoActiveConnectionError(name)
    return current[name]

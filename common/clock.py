"""
시간 유틸리티

DB에는 UTC 'YYYY-MM-DD HH:MM:SS' 문자열로 저장합니다.
SQLite CURRENT_TIMESTAMP와 같은 포맷이므로 문자열 비교가 시간 비교와 일치합니다.
"""

from datetime import datetime, timezone

DB_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_db_time(dt: datetime) -> str:
    """datetime -> DB 문자열 (naive는 UTC로 간주)"""
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.strftime(DB_TIME_FORMAT)


def from_db_time(value: str | None) -> datetime | None:
    """DB 문자열 -> aware datetime (UTC)"""
    if not value:
        return None
    return datetime.strptime(value[:19].replace("T", " "), DB_TIME_FORMAT).replace(tzinfo=timezone.utc)

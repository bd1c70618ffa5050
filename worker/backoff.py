"""
재시도 대기 시간 계산

backoff(attempts) = 2^attempts * base
attempts는 이번 실행 전의 시도 횟수 (첫 실패 시 0 -> base).
지터는 넣지 않습니다.
"""

from datetime import datetime, timedelta


def backoff_delay(attempts: int, base_seconds: float) -> timedelta:
    """재시도까지 대기 시간"""
    if attempts < 0:
        raise ValueError(f"attempts must be >= 0, got {attempts}")
    if base_seconds <= 0:
        raise ValueError(f"base_seconds must be > 0, got {base_seconds}")
    return timedelta(seconds=(2 ** attempts) * base_seconds)


def next_attempt_at(now: datetime, attempts: int, base_seconds: float) -> datetime:
    """다음 실행 가능 시각"""
    return now + backoff_delay(attempts, base_seconds)

"""
잡 큐 등록 API

다른 서브시스템(제출물 생성, 모니터링 스케줄러, admin API)이 백그라운드 작업을
요청하는 유일한 쓰기 경로입니다.
"""

import json
import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any

import aiosql

from common.clock import to_db_time, utcnow
from database import get_connection, transactional, transactional_readonly
from worker.exception import InvalidPayloadError, UnknownJobTypeError
from worker.model import Job, JobType

logger = logging.getLogger(__name__)

queries = aiosql.from_path(Path(__file__).parent / "sql" / "worker.sql", "aiosqlite")

DEFAULT_MAX_ATTEMPTS = 3


@transactional
async def enqueue_job(
    job_type: JobType | str,
    payload: dict[str, Any],
    priority: int = 0,
    scheduled_for: datetime | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    now: datetime | None = None,
) -> str:
    """
    잡 등록

    Args:
        job_type: JobType 멤버 (문자열이면 변환)
        payload: JSON 직렬화 가능한 dict
        priority: 클수록 먼저 실행
        scheduled_for: 이 시각 이전에는 실행하지 않음 (기본: now)
        max_attempts: 최대 시도 횟수
        now: 기준 시각 (테스트용)

    Returns:
        생성된 잡 id

    Raises:
        UnknownJobTypeError: JobType에 없는 타입
        InvalidPayloadError: JSON 직렬화 불가
    """
    parsed = JobType.parse(getattr(job_type, "value", job_type))
    if parsed is None:
        raise UnknownJobTypeError(str(job_type))
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

    try:
        payload_json = json.dumps(payload)
    except (TypeError, ValueError) as e:
        raise InvalidPayloadError(f"Payload is not JSON serializable: {e}") from e

    now = now or utcnow()
    job_id = uuid.uuid4().hex

    ctx = get_connection()
    await queries.insert_job(
        ctx.connection,
        id=job_id,
        job_type=parsed.value,
        payload=payload_json,
        priority=priority,
        scheduled_for=to_db_time(scheduled_for or now),
        max_attempts=max_attempts,
        created_at=to_db_time(now),
    )
    logger.info(f"Enqueued job: id={job_id}, type={parsed.value}, priority={priority}")
    return job_id


@transactional_readonly
async def get_job(job_id: str) -> Job | None:
    """잡 조회"""
    ctx = get_connection()
    row = await queries.get_job_by_id(ctx.connection, id=job_id)
    return Job.from_row(row) if row else None

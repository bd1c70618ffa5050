"""
잡 실행기 모듈

점유(claim) -> 핸들러 실행 -> 완료/재시도/실패 전이를 담당합니다.
"""

import logging
from datetime import datetime
from typing import Callable

from pydantic import ValidationError

from common.clock import to_db_time, utcnow
from database import get_connection, transactional
from worker.backoff import next_attempt_at
from worker.base import HandlerContext, get_handler
from worker.exception import InvalidPayloadError, LeaseConflict
from worker.model import Job, HandlerResult

logger = logging.getLogger(__name__)


class Executor:
    """
    잡 실행기

    한 번의 drain 사이클 동안 하나의 worker_id로 동작합니다.
    점유는 status='pending' AND locked_by IS NULL 조건의 UPDATE 한 번으로 이루어지며,
    affected rows가 1인 경우에만 핸들러를 실행합니다.
    """

    def __init__(
        self,
        queries,
        worker_id: str,
        context: HandlerContext,
        backoff_base_seconds: float,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._queries = queries
        self._worker_id = worker_id
        self._context = context
        self._backoff_base_seconds = backoff_base_seconds
        self._clock = clock

    @property
    def worker_id(self) -> str:
        return self._worker_id

    async def execute(self, job: Job) -> bool:
        """
        잡 실행

        Args:
            job: 조회 시점의 잡 스냅샷

        Returns:
            bool: completed로 전이했으면 True
        """
        try:
            await self._claim(job)
        except LeaseConflict:
            logger.info(f"Skipping job already claimed: id={job.id}")
            return False

        logger.info(
            f"Processing job: id={job.id}, type={job.job_type}, "
            f"attempt={job.attempts + 1}/{job.max_attempts}"
        )

        try:
            return await self._process(job)
        except Exception as e:
            # 결과 기록 실패: 잡은 processing으로 남고 lease 만료 시 회수됨
            logger.error(f"Failed to record job outcome: id={job.id}, error={e}", exc_info=True)
            return False

    async def _process(self, job: Job) -> bool:
        try:
            result = await self._run_handler(job)
        except Exception as e:
            error_message = str(e) or type(e).__name__
            logger.error(f"Job failed: id={job.id}, error={error_message}")
            await self._handle_failure(job, error_message)
            return False

        await self._complete(job)
        if result is not None:
            logger.debug(f"Job result: id={job.id}, result={result.model_dump_json()}")
        logger.info(f"Job completed: id={job.id}")
        return True

    async def _run_handler(self, job: Job) -> HandlerResult | None:
        """job_type으로 핸들러 조회 후 실행"""
        job_type = job.known_type
        if job_type is None:
            # JobType 밖의 태그는 큐를 막지 않도록 no-op 완료
            logger.warning(f"Unknown job type, completing as no-op: id={job.id}, type={job.job_type}")
            return None

        handler = get_handler(job_type, self._context)
        try:
            params = handler.params_model.model_validate(job.payload_dict())
        except ValidationError as e:
            raise InvalidPayloadError(f"Invalid payload for {job_type.value}: {e}") from e

        return await handler.execute(params)

    async def _handle_failure(self, job: Job, error_message: str) -> None:
        if job.is_last_attempt:
            await self._fail(job, error_message)
            logger.warning(
                f"Job failed permanently: id={job.id}, attempts={job.attempts + 1}/{job.max_attempts}"
            )
        else:
            retry_at = next_attempt_at(self._clock(), job.attempts, self._backoff_base_seconds)
            await self._retry(job, retry_at, error_message)
            logger.info(f"Scheduling retry: id={job.id}, retry_at={to_db_time(retry_at)}")

    @transactional
    async def _claim(self, job: Job) -> None:
        """pending -> processing (조건부 UPDATE)"""
        ctx = get_connection()
        # aiosql의 ! 연산자는 affected rows (int)를 직접 반환
        affected_rows = await self._queries.claim_job(
            ctx.connection,
            id=job.id,
            worker_id=self._worker_id,
            now=to_db_time(self._clock()),
        )
        if affected_rows == 0:
            raise LeaseConflict(job.id)

    @transactional
    async def _complete(self, job: Job) -> None:
        """processing -> completed"""
        ctx = get_connection()
        affected_rows = await self._queries.complete_job(
            ctx.connection,
            id=job.id,
            worker_id=self._worker_id,
            now=to_db_time(self._clock()),
        )
        if affected_rows == 0:
            logger.warning(f"Lease lost before completion: id={job.id}")

    @transactional
    async def _retry(self, job: Job, retry_at: datetime, error_message: str) -> None:
        """processing -> pending (scheduled_for = retry_at)"""
        ctx = get_connection()
        affected_rows = await self._queries.retry_job(
            ctx.connection,
            id=job.id,
            worker_id=self._worker_id,
            scheduled_for=to_db_time(retry_at),
            error_message=error_message,
        )
        if affected_rows == 0:
            logger.warning(f"Lease lost before retry: id={job.id}")

    @transactional
    async def _fail(self, job: Job, error_message: str) -> None:
        """processing -> failed"""
        ctx = get_connection()
        affected_rows = await self._queries.fail_job(
            ctx.connection,
            id=job.id,
            worker_id=self._worker_id,
            error_message=error_message,
        )
        if affected_rows == 0:
            logger.warning(f"Lease lost before failure: id={job.id}")

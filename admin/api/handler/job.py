"""잡 큐 조회/재시도 비즈니스 로직 핸들러"""

import logging
from pathlib import Path

from aiosql.queries import Queries

from common.clock import to_db_time, utcnow
from database import get_db, get_connection, transactional, transactional_readonly
from admin.api.model.job import CaptureResponse, EnqueueJobRequest, JobResponse
from admin.exception import JobNotFoundError, JobStatusError
from worker.model import JobStatus
from worker.queue import enqueue_job

logger = logging.getLogger(__name__)


class JobHandler:
    """잡 큐 핸들러"""

    def __init__(self):
        self._queries = None

    def _get_queries(self) -> Queries:
        if self._queries is None:
            db = get_db()
            self._queries = db.get_queries('admin')
            if self._queries is None:
                sql_path = Path(__file__).parent.parent / 'sql' / 'admin.sql'
                self._queries = db.load_queries('admin', str(sql_path))
        return self._queries

    @staticmethod
    def _row_to_response(row) -> JobResponse:
        """DB row를 JobResponse로 변환"""
        return JobResponse.model_validate(dict(row))

    @transactional_readonly
    async def get_list(
        self,
        page: int = 1,
        size: int = 20,
        status: str | None = None,
        job_type: str | None = None,
    ) -> tuple[list[JobResponse], int]:
        """잡 목록 조회"""
        queries = self._get_queries()
        conn = get_connection().connection

        total_row = await queries.count_jobs(conn, status=status, job_type=job_type)
        rows = await queries.get_jobs_paged(
            conn,
            status=status,
            job_type=job_type,
            limit=size,
            offset=(page - 1) * size,
        )

        total = total_row['cnt'] if total_row else 0
        return [self._row_to_response(row) for row in rows], total

    @transactional_readonly
    async def get_by_id(self, job_id: str) -> JobResponse:
        """ID로 잡 조회"""
        queries = self._get_queries()
        conn = get_connection().connection

        row = await queries.get_job_by_id(conn, job_id=job_id)
        if not row:
            raise JobNotFoundError(job_id)
        return self._row_to_response(row)

    @transactional
    async def enqueue(self, request: EnqueueJobRequest) -> JobResponse:
        """잡 등록 (UnknownJobTypeError는 호출자가 처리)"""
        job_id = await enqueue_job(
            request.job_type,
            request.payload,
            priority=request.priority,
            scheduled_for=request.scheduled_for,
            max_attempts=request.max_attempts,
        )
        return await self.get_by_id(job_id)

    @transactional
    async def retry(self, job_id: str) -> JobResponse:
        """실패한 잡 재시도 (failed -> pending)"""
        queries = self._get_queries()
        conn = get_connection().connection

        row = await queries.get_job_by_id(conn, job_id=job_id)
        if not row:
            raise JobNotFoundError(job_id)

        current_status = row['status']
        if current_status != JobStatus.FAILED.value:
            raise JobStatusError(job_id, current_status)

        await queries.reset_failed_job(conn, job_id=job_id, now=to_db_time(utcnow()))
        logger.info(f"Reset failed job to pending: id={job_id}")

        return await self.get_by_id(job_id)

    @transactional_readonly
    async def get_captures(self, submission_id: str) -> list[CaptureResponse]:
        """제출물 캡처 이력 (최신순)"""
        queries = self._get_queries()
        conn = get_connection().connection

        rows = await queries.get_captures_by_submission(conn, submission_id=submission_id)
        return [CaptureResponse.model_validate(dict(row)) for row in rows]

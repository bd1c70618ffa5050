"""
MonitoringDispatcher: 주기 캡처 Job 생성 모듈

monitoring_schedule에서 점검 시각에 도달한 스케줄을 조회하여
job_queue에 monitor_submission Job(capture_type=scheduled)을 생성하고
다음 점검 시각을 갱신합니다.

실행 방법:
    python -m dispatcher.main      # 스캔 1회
    postwatch monitor
"""

import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable

import aiosql

from common.clock import to_db_time, utcnow
from database import get_connection, transactional, transactional_readonly
from dispatcher.model.dispatcher import DispatcherConfig, MonitoringSchedule
from worker.model import CaptureType, JobType, TERMINAL_SUBMISSION_STATUSES
from worker.queue import enqueue_job

logger = logging.getLogger(__name__)


class MonitoringDispatcher:
    """
    모니터링 스케줄 Dispatcher

    monitor_submission Job의 유일한 생산자입니다.
    최초 capture_submission Job은 제출물 생성 쪽에서 등록합니다.
    """

    def __init__(self, config: DispatcherConfig, clock: Callable[[], datetime] = utcnow):
        self._config = config
        self._clock = clock
        sql_path = Path(__file__).parent / "sql" / "dispatcher.sql"
        self._queries = aiosql.from_path(str(sql_path), "aiosqlite")

    async def run_once(self) -> int:
        """
        스캔 1회 실행

        Returns:
            생성한 Job 수
        """
        now = self._clock()
        schedules = await self._get_due_schedules(now)

        if not schedules:
            logger.debug("No submissions due for monitoring")
            return 0

        logger.info(f"Found {len(schedules)} submissions to monitor")

        enqueued = 0
        for schedule in schedules:
            try:
                if await self._process_schedule(schedule, now):
                    enqueued += 1
            except Exception as e:
                # 개별 스케줄 에러는 격리하여 다른 스케줄 처리에 영향을 주지 않음
                logger.error(f"Error processing schedule {schedule.id}: {e}", exc_info=True)

        logger.info(f"Monitoring scan complete: enqueued={enqueued}")
        return enqueued

    @transactional_readonly
    async def _get_due_schedules(self, now: datetime) -> list[MonitoringSchedule]:
        ctx = get_connection()
        rows = await self._queries.get_due_schedules(
            ctx.connection,
            now=to_db_time(now),
            limit=self._config.batch_size,
        )
        return [MonitoringSchedule.from_row(row) for row in rows] if rows else []

    @transactional
    async def _process_schedule(self, schedule: MonitoringSchedule, now: datetime) -> bool:
        """
        개별 스케줄 처리

        Returns:
            True: Job 생성됨
            False: 제출물이 없거나 종료 상태라 비활성화했거나, 다른 스캔이 먼저 처리함
        """
        ctx = get_connection()
        submission = await self._queries.get_submission(ctx.connection, submission_id=schedule.submission_id)

        if not submission or submission["status"] in TERMINAL_SUBMISSION_STATUSES:
            status = submission["status"] if submission else "missing"
            logger.info(f"Deactivating monitoring: schedule={schedule.id}, submission_status={status}")
            await self._queries.deactivate_schedule(ctx.connection, id=schedule.id)
            return False

        interval_hours = schedule.check_interval_hours or self._config.default_interval_hours
        next_check_at = now + timedelta(hours=interval_hours)
        advanced = await self._queries.advance_schedule(
            ctx.connection,
            id=schedule.id,
            next_check_at=to_db_time(next_check_at),
            now=to_db_time(now),
        )
        if advanced == 0:
            logger.info(f"Schedule already advanced by another scan: schedule={schedule.id}")
            return False

        job_id = await enqueue_job(
            JobType.MONITOR_SUBMISSION,
            self._build_payload(schedule, submission),
            priority=self._config.monitor_priority,
            max_attempts=self._config.max_attempts,
            now=now,
        )
        logger.debug(
            f"Queued monitoring job: schedule={schedule.id}, job={job_id}, "
            f"next_check_at={to_db_time(next_check_at)}, remaining={schedule.checks_remaining - 1}"
        )
        return True

    @staticmethod
    def _build_payload(schedule: MonitoringSchedule, submission: Any) -> dict[str, Any]:
        return {
            "submission_id": schedule.submission_id,
            "url": submission["url"],
            "platform": submission["platform"],
            "capture_type": CaptureType.SCHEDULED.value,
        }


if __name__ == "__main__":
    import asyncio

    from common.config import load_config
    from common.logging import setup_logging
    from database.registry import DatabaseRegistry

    async def main():
        config = load_config()
        setup_logging(level="DEBUG", json_format=False)

        dispatcher_config = DispatcherConfig(**config.get("dispatcher", {}))
        await DatabaseRegistry.init_from_config(config, [dispatcher_config.database])

        try:
            await MonitoringDispatcher(dispatcher_config).run_once()
        finally:
            await DatabaseRegistry.close_all()

    asyncio.run(main())

"""
QueueProcessor: job_queue drain 모듈

한 번 호출될 때마다 실행 가능한 잡을 최대 batch_size개 조회하여
하나씩 점유하고 순차 실행합니다. 호출 주기는 외부 트리거(cron)가 정합니다.

실행 방법:
    python -m worker.main          # drain 1회
    postwatch drain
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable

import aiosql

from common.clock import to_db_time, utcnow
from database import get_connection, transactional, transactional_readonly
from worker.base import HandlerContext, verify_handlers
from worker.capture import CaptureConfig, ScreenshotClient, StorageConfig, create_storage
from worker.executor import Executor
from worker.model import Job
from worker.sweep import SweepConfig

logger = logging.getLogger(__name__)

SQL_PATH = Path(__file__).parent / "sql" / "worker.sql"


@dataclass
class WorkerConfig:
    """워커 설정"""
    database: str = "default"
    batch_size: int = 10
    backoff_base_seconds: float = 300.0
    lease_timeout_seconds: float | None = None
    capture: CaptureConfig = field(default_factory=CaptureConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    sweep: SweepConfig = field(default_factory=SweepConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "WorkerConfig":
        data = dict(data or {})
        capture = CaptureConfig(**(data.pop("capture", None) or {}))
        storage = StorageConfig(**(data.pop("storage", None) or {}))
        sweep = SweepConfig(**(data.pop("sweep", None) or {}))
        return cls(capture=capture, storage=storage, sweep=sweep, **data)


def create_handler_context(config: WorkerConfig) -> HandlerContext:
    """설정으로 핸들러 컨텍스트 생성 (프로세스 시작 시 1회)"""
    return HandlerContext(
        screenshot=ScreenshotClient(config.capture),
        storage=create_storage(config.storage),
    )


class QueueProcessor:
    """
    잡 큐 처리기

    여러 프로세스가 동시에 run_once()를 호출해도 claim_job의 조건부 UPDATE로
    각 잡은 하나의 워커에만 할당됩니다. 배치 내 잡은 우선순위 순으로 하나씩 실행합니다.
    """

    def __init__(
        self,
        config: WorkerConfig,
        context: HandlerContext,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._config = config
        self._context = context
        self._clock = clock
        self._queries = aiosql.from_path(str(SQL_PATH), "aiosqlite")

    async def run_once(self) -> int:
        """
        drain 1회 실행

        Returns:
            completed로 전이한 잡 수

        Raises:
            DatabaseError: 잡 조회 자체가 실패한 경우 (개별 잡 실패는 여기로 오지 않음)
        """
        worker_id = uuid.uuid4().hex[:8]

        if self._config.lease_timeout_seconds:
            released = await self._release_stale_leases()
            if released:
                logger.warning(f"Released {released} stale leases")

        jobs = await self._get_eligible_jobs(self._config.batch_size)
        if not jobs:
            logger.debug("No pending jobs")
            return 0

        logger.info(f"Found {len(jobs)} pending jobs (worker={worker_id})")

        executor = Executor(
            self._queries,
            worker_id=worker_id,
            context=self._context,
            backoff_base_seconds=self._config.backoff_base_seconds,
            clock=self._clock,
        )

        processed = 0
        for job in jobs:
            if await executor.execute(job):
                processed += 1

        logger.info(f"Processed {processed}/{len(jobs)} jobs (worker={worker_id})")
        return processed

    @transactional_readonly
    async def _get_eligible_jobs(self, limit: int) -> list[Job]:
        """실행 가능한 잡 목록 조회"""
        ctx = get_connection()
        rows = await self._queries.get_eligible_jobs(
            ctx.connection,
            now=to_db_time(self._clock()),
            limit=limit,
        )
        return [Job.from_row(row) for row in rows] if rows else []

    @transactional
    async def _release_stale_leases(self) -> int:
        """lease_timeout_seconds보다 오래 processing인 잡 반환"""
        ctx = get_connection()
        cutoff = self._clock() - timedelta(seconds=self._config.lease_timeout_seconds)
        return await self._queries.release_stale_leases(ctx.connection, cutoff=to_db_time(cutoff))


def _load_handlers() -> None:
    """핸들러 모듈 로드 (데코레이터 등록을 위해, 하위 폴더 재귀 탐색) 후 누락 검사"""
    import importlib
    import pkgutil
    from worker import job as job_pkg

    def load_recursive(package, prefix: str):
        for _, module_name, is_pkg in pkgutil.iter_modules(package.__path__):
            full_name = f"{prefix}.{module_name}"
            module = importlib.import_module(full_name)
            logger.debug(f"Loaded handler module: {full_name}")
            if is_pkg:
                load_recursive(module, full_name)

    load_recursive(job_pkg, "worker.job")
    verify_handlers()


if __name__ == "__main__":
    import asyncio

    from common.config import load_config
    from common.logging import setup_logging
    from database.registry import DatabaseRegistry

    async def main():
        config = load_config()
        setup_logging(level="DEBUG", json_format=False)

        _load_handlers()
        worker_config = WorkerConfig.from_dict(config.get("worker"))
        await DatabaseRegistry.init_from_config(config, [worker_config.database])

        try:
            processor = QueueProcessor(worker_config, create_handler_context(worker_config))
            processed = await processor.run_once()
            logger.info(f"Drain finished: processed={processed}")
        finally:
            await DatabaseRegistry.close_all()

    asyncio.run(main())

"""
RetentionSweep: 오래된 종료 잡 삭제

completed/failed 상태이면서 created_at이 retention_days 이전인 잡을 삭제합니다.
실패해도 로그만 남기며, 행이 그대로 남아 있으므로 다음 실행에서 다시 시도됩니다.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable

import aiosql

from common.clock import to_db_time, utcnow
from database import get_connection, transactional

logger = logging.getLogger(__name__)

queries = aiosql.from_path(Path(__file__).parent / "sql" / "worker.sql", "aiosqlite")


@dataclass
class SweepConfig:
    """보관 기간 설정"""
    retention_days: int = 7


class RetentionSweep:

    def __init__(self, config: SweepConfig, clock: Callable[[], datetime] = utcnow):
        self._config = config
        self._clock = clock

    def cutoff(self) -> datetime:
        return self._clock() - timedelta(days=self._config.retention_days)

    async def run_once(self) -> int:
        """삭제한 잡 수 반환 (실패 시 0)"""
        cutoff = self.cutoff()
        logger.info(f"Cleaning up jobs finished before {to_db_time(cutoff)}")
        try:
            deleted = await self._delete_before(cutoff)
        except Exception as e:
            logger.error(f"Cleanup failed: {e}", exc_info=True)
            return 0
        logger.info(f"Cleanup complete: deleted={deleted}")
        return deleted

    @transactional
    async def _delete_before(self, cutoff: datetime) -> int:
        ctx = get_connection()
        return await queries.delete_finished_jobs_before(ctx.connection, cutoff=to_db_time(cutoff))

"""
CronTrigger: 주기 실행 트리거

drain(1분), monitor(5분), sweep(매일) 같은 엔트리를 cron 표현식에 맞춰 실행합니다.
각 실행은 독립된 태스크이며, 한 엔트리의 예외는 다른 엔트리나 루프를 멈추지 않습니다.
같은 엔트리의 이전 실행이 끝나지 않았으면 이번 실행은 건너뜁니다.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable

from croniter import croniter

from common.clock import utcnow
from dispatcher.exception import CronIntervalTooShortError, CronParseError

logger = logging.getLogger(__name__)


@dataclass
class CronEntry:
    """트리거 엔트리"""
    name: str
    expression: str
    action: Callable[[], Awaitable[Any]]


def validate_cron_expression(expression: str, min_interval_seconds: int, now: datetime | None = None) -> None:
    """
    크론 표현식 검증 (초단위 크론 차단)

    Raises:
        CronParseError: 파싱 실패
        CronIntervalTooShortError: 간격이 min_interval_seconds 미만
    """
    try:
        cron = croniter(expression, now or utcnow())
        next1 = cron.get_next(datetime)
        next2 = cron.get_next(datetime)
    except Exception as e:
        raise CronParseError(expression, str(e))

    interval_seconds = (next2 - next1).total_seconds()
    if interval_seconds < min_interval_seconds:
        raise CronIntervalTooShortError(expression, interval_seconds, min_interval_seconds)


class CronTrigger:
    """cron 표현식 기반 트리거 루프"""

    def __init__(
        self,
        entries: list[CronEntry],
        min_interval_seconds: int = 60,
        shutdown_timeout_seconds: int = 30,
        clock: Callable[[], datetime] = utcnow,
    ):
        for entry in entries:
            validate_cron_expression(entry.expression, min_interval_seconds)
        self._entries = entries
        self._shutdown_timeout_seconds = shutdown_timeout_seconds
        self._clock = clock
        self._running = False
        self._stop_event: asyncio.Event | None = None
        self._active: dict[str, asyncio.Task] = {}
        self._last_fired_at: datetime | None = None

    async def start(self) -> None:
        """트리거 메인 루프 시작"""
        if self._running:
            logger.warning("CronTrigger is already running")
            return

        self._running = True
        self._stop_event = asyncio.Event()
        logger.info(
            "CronTrigger started: " + ", ".join(f"{e.name}='{e.expression}'" for e in self._entries)
        )

        try:
            await self._main_loop()
        except asyncio.CancelledError:
            logger.info("CronTrigger cancelled")
        finally:
            await self._wait_running_tasks()
            self._running = False
            logger.info("CronTrigger stopped")

    async def stop(self) -> None:
        """graceful shutdown"""
        if not self._running:
            return

        logger.info("Stopping CronTrigger...")
        self._running = False
        if self._stop_event:
            self._stop_event.set()

    def next_fire(self, now: datetime) -> tuple[datetime, list[CronEntry]]:
        """now 이후 가장 빠른 실행 시각과 그 시각에 실행할 엔트리들"""
        base = max(now, self._last_fired_at) if self._last_fired_at else now
        schedule = [(croniter(e.expression, base).get_next(datetime), e) for e in self._entries]
        fire_at = min(t for t, _ in schedule)
        return fire_at, [e for t, e in schedule if t == fire_at]

    async def _main_loop(self) -> None:
        while self._running:
            fire_at, due = self.next_fire(self._clock())
            await self._sleep((fire_at - self._clock()).total_seconds())
            if not self._running:
                break

            self._last_fired_at = fire_at
            for entry in due:
                self.fire(entry)

    async def _sleep(self, seconds: float) -> None:
        """인터럽트 가능한 sleep"""
        if seconds <= 0:
            return
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    def fire(self, entry: CronEntry) -> asyncio.Task | None:
        """엔트리 실행 (이전 실행이 남아 있으면 건너뜀)"""
        running = self._active.get(entry.name)
        if running and not running.done():
            logger.warning(f"[CRON] Skipping '{entry.name}': previous run still in progress")
            return None

        task = asyncio.create_task(self._run_entry(entry))
        self._active[entry.name] = task
        return task

    async def _run_entry(self, entry: CronEntry) -> None:
        logger.info(f"[CRON] Triggered: {entry.name} ({entry.expression})")
        try:
            result = await entry.action()
            logger.info(f"[CRON] Finished: {entry.name} result={result}")
        except Exception as e:
            logger.error(f"[CRON] Error in '{entry.name}': {e}", exc_info=True)

    async def _wait_running_tasks(self) -> None:
        """실행 중인 태스크 완료 대기 (graceful shutdown)"""
        running = [t for t in self._active.values() if not t.done()]
        if not running:
            return

        logger.info(f"Waiting for {len(running)} running tasks...")
        try:
            await asyncio.wait_for(
                asyncio.gather(*running, return_exceptions=True),
                timeout=self._shutdown_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Shutdown timeout ({self._shutdown_timeout_seconds}s), cancelling tasks")
            for task in running:
                task.cancel()

    @property
    def is_running(self) -> bool:
        return self._running

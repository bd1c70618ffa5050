"""
모니터링 스케줄 및 Dispatcher 설정 모델 정의
"""

from typing import Any

from pydantic import BaseModel, Field


class MonitoringSchedule(BaseModel):
    """monitoring_schedule 행"""
    id: str
    submission_id: str
    is_active: bool = True
    next_check_at: str
    check_interval_hours: int | None = None
    checks_remaining: int = 0
    total_checks: int | None = 0
    last_checked_at: str | None = None

    @classmethod
    def from_row(cls, row: Any) -> "MonitoringSchedule":
        return cls.model_validate(dict(row))


class DispatcherConfig(BaseModel):
    """모니터링 Dispatcher 설정"""
    database: str = Field(default="default", description="database.yaml에 정의된 DB 이름")
    batch_size: int = Field(default=20, ge=1, le=500)
    monitor_priority: int = Field(default=5)
    default_interval_hours: int = Field(default=24, ge=1)
    max_attempts: int = Field(default=3, ge=1, le=10)


class CronConfig(BaseModel):
    """트리거 주기 (cron 표현식)"""
    drain: str = "* * * * *"
    monitor: str = "*/5 * * * *"
    sweep: str = "0 0 * * *"
    min_interval_seconds: int = Field(default=60, ge=60, le=3600)
    shutdown_timeout_seconds: int = Field(default=30, ge=1)

"""
Worker 모델 - job_queue 행 구조체
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from worker.exception import InvalidPayloadError


class JobType(str, Enum):
    """잡 타입 (닫힌 집합, 모든 멤버는 핸들러가 등록되어 있어야 함)"""
    CAPTURE_SUBMISSION = "capture_submission"
    MONITOR_SUBMISSION = "monitor_submission"
    SEND_EMAIL = "send_email"
    SEND_PUSH = "send_push"
    PROCESS_PAYMENT = "process_payment"

    @classmethod
    def parse(cls, value: str) -> "JobType | None":
        try:
            return cls(value)
        except ValueError:
            return None


class JobStatus(str, Enum):
    """잡 상태: pending -> processing -> completed | pending(retry) | failed"""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class Job:
    """job_queue 행 스냅샷 (조회 시점 기준)"""
    id: str
    job_type: str
    payload: str | None
    status: str
    priority: int
    scheduled_for: str
    attempts: int
    max_attempts: int
    locked_by: str | None = None
    locked_at: str | None = None
    error_message: str | None = None
    created_at: str | None = None
    completed_at: str | None = None

    @classmethod
    def from_row(cls, row: Any) -> "Job":
        data = dict(row)
        return cls(**{k: data.get(k) for k in cls.__dataclass_fields__})

    @property
    def known_type(self) -> JobType | None:
        return JobType.parse(self.job_type)

    @property
    def is_last_attempt(self) -> bool:
        """이번 실행이 실패하면 더 이상 재시도하지 않음"""
        return self.attempts + 1 >= self.max_attempts

    def payload_dict(self) -> dict[str, Any]:
        if not self.payload:
            return {}
        try:
            data = json.loads(self.payload)
        except json.JSONDecodeError as e:
            raise InvalidPayloadError(f"Invalid payload JSON: {e}") from e
        if not isinstance(data, dict):
            raise InvalidPayloadError("Payload must be a JSON object")
        return data

"""
핸들러 입출력 모델

job_queue.payload(JSON)를 핸들러별 파라미터 모델로 검증합니다.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class SubmissionStatus(str, Enum):
    """submissions.status 중 워커가 읽고 쓰는 값"""
    PENDING = "pending"
    CAPTURING = "capturing"
    MONITORING = "monitoring"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


TERMINAL_SUBMISSION_STATUSES = frozenset({
    SubmissionStatus.APPROVED.value,
    SubmissionStatus.REJECTED.value,
    SubmissionStatus.COMPLETED.value,
})


class CaptureType(str, Enum):
    INITIAL = "initial"
    SCHEDULED = "scheduled"


class HandlerParams(BaseModel):
    """핸들러 입력 파라미터 (공통)"""
    model_config = ConfigDict(extra='allow')  # 정의 안 된 필드도 허용


class CaptureParams(HandlerParams):
    """capture_submission / monitor_submission payload"""
    submission_id: str
    url: str
    platform: str | None = None
    capture_type: CaptureType = CaptureType.INITIAL


class HandlerResult(BaseModel):
    """핸들러 실행 결과 (공통, 완료 로그에 기록)"""
    model_config = ConfigDict(extra='allow')

    action: str
    success: bool = True
    data: Any = None
    error: str | None = None

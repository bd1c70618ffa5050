"""잡 큐 / 캡처 이력 관련 모델 정의"""

import json
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class JobResponse(BaseModel):
    """잡 응답 모델"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    job_type: str
    payload: dict[str, Any] | None = None
    status: str
    priority: int = 0
    scheduled_for: datetime | None = None
    attempts: int = 0
    max_attempts: int = 3
    locked_by: str | None = None
    locked_at: datetime | None = None
    error_message: str | None = None
    created_at: datetime | None = None
    completed_at: datetime | None = None

    @field_validator('payload', mode='before')
    @classmethod
    def _parse_payload(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                return {"raw": value}
        return value


class JobListResponse(BaseModel):
    """잡 목록 응답"""
    items: list[JobResponse]
    total: int
    page: int
    size: int
    pages: int


class EnqueueJobRequest(BaseModel):
    """잡 등록 요청"""
    job_type: str
    payload: dict[str, Any] = Field(default_factory=dict)
    priority: int = 0
    scheduled_for: datetime | None = None
    max_attempts: int = Field(default=3, ge=1, le=10)


class CaptureResponse(BaseModel):
    """캡처 이력 응답 모델"""
    id: str
    submission_id: str
    capture_type: str
    screenshot_url: str | None = None
    raw_metadata: dict[str, Any] | None = None
    is_live: bool
    error_message: str | None = None
    created_at: datetime | None = None

    @field_validator('raw_metadata', mode='before')
    @classmethod
    def _parse_metadata(cls, value: Any) -> Any:
        if isinstance(value, str):
            return json.loads(value)
        return value


class CaptureListResponse(BaseModel):
    submission_id: str
    items: list[CaptureResponse]


class TriggerResponse(BaseModel):
    success: bool
    processed: int

"""Admin API 모델 패키지"""

from admin.api.model.common import page_count
from admin.api.model.job import (
    JobResponse,
    JobListResponse,
    EnqueueJobRequest,
    CaptureResponse,
    CaptureListResponse,
    TriggerResponse,
)

__all__ = [
    'page_count',
    'JobResponse',
    'JobListResponse',
    'EnqueueJobRequest',
    'CaptureResponse',
    'CaptureListResponse',
    'TriggerResponse',
]

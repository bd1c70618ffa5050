"""Worker 모델"""

from worker.model.executor import Job, JobStatus, JobType
from worker.model.handler import (
    CaptureParams,
    CaptureType,
    HandlerParams,
    HandlerResult,
    SubmissionStatus,
    TERMINAL_SUBMISSION_STATUSES,
)

__all__ = [
    'Job',
    'JobStatus',
    'JobType',
    'CaptureParams',
    'CaptureType',
    'HandlerParams',
    'HandlerResult',
    'SubmissionStatus',
    'TERMINAL_SUBMISSION_STATUSES',
]

"""Admin API 라우터 (모든 API 통합)"""

import hmac
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from common.clock import utcnow
from database import DatabaseNotFoundError, get_db
from admin.api.model.common import page_count
from admin.api.model.job import (
    CaptureListResponse,
    EnqueueJobRequest,
    JobListResponse,
    JobResponse,
    TriggerResponse,
)
from admin.api.handler.job import JobHandler
from admin.exception import JobNotFoundError, JobStatusError
from worker.exception import InvalidPayloadError, UnknownJobTypeError

logger = logging.getLogger(__name__)

router = APIRouter()

# 핸들러 인스턴스
job_handler = JobHandler()


def require_service_key(request: Request) -> None:
    """Authorization: Bearer <service_key> 확인"""
    expected = getattr(request.app.state, "service_key", None)
    auth = request.headers.get("Authorization", "")
    if not expected or not hmac.compare_digest(auth.encode(), f"Bearer {expected}".encode()):
        raise HTTPException(status_code=401, detail="Unauthorized")


# ============================================
# Service
# ============================================

@router.get("/", tags=["Service"])
async def index(request: Request):
    """서비스 정보"""
    cron = getattr(request.app.state, "cron", None)
    return {
        "name": "postwatch background worker",
        "endpoints": {
            "/health": "Health check",
            "/trigger": "Manual queue drain (POST, requires auth)",
            "/api/jobs": "Job queue inspection (requires auth)",
        },
        "crons": {
            "drain": cron.drain,
            "monitor": cron.monitor,
            "sweep": cron.sweep,
        } if cron else {},
    }


@router.get("/health", tags=["Service"])
async def health_check(request: Request):
    """서버 상태 확인 (항상 200)"""
    try:
        get_db()
        db_configured = True
    except DatabaseNotFoundError:
        db_configured = False

    context = getattr(request.app.state, "handler_context", None)
    return {
        "status": "ok",
        "timestamp": utcnow().isoformat(),
        "configured": {
            "database": db_configured,
            "screenshot": bool(context and context.screenshot and context.screenshot.is_configured),
            "storage": bool(context and context.storage and context.storage.is_configured),
        },
    }


@router.post("/trigger", response_model=TriggerResponse, tags=["Service"],
             dependencies=[Depends(require_service_key)])
async def trigger(request: Request):
    """drain 1회 동기 실행"""
    processor = request.app.state.processor
    try:
        processed = await processor.run_once()
    except Exception as e:
        logger.error(f"Manual trigger failed: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"success": False, "error": str(e) or "Unknown error"})
    return TriggerResponse(success=True, processed=processed)


# ============================================
# JOB API
# ============================================

@router.get("/api/jobs", response_model=JobListResponse, tags=["Job"],
            dependencies=[Depends(require_service_key)])
async def get_jobs(
    page: int = Query(default=1, ge=1, description="페이지 번호"),
    size: int = Query(default=20, ge=1, le=100, description="페이지 크기"),
    status: str | None = Query(default=None, description="상태 필터"),
    job_type: str | None = Query(default=None, description="잡 타입 필터"),
):
    """잡 목록 조회"""
    items, total = await job_handler.get_list(page=page, size=size, status=status, job_type=job_type)
    return JobListResponse(items=items, total=total, page=page, size=size, pages=page_count(total, size))


@router.post("/api/jobs", response_model=JobResponse, status_code=201, tags=["Job"],
             dependencies=[Depends(require_service_key)])
async def create_job(request: EnqueueJobRequest):
    """잡 등록"""
    try:
        return await job_handler.enqueue(request)
    except (UnknownJobTypeError, InvalidPayloadError) as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/api/jobs/{job_id}", response_model=JobResponse, tags=["Job"],
            dependencies=[Depends(require_service_key)])
async def get_job(job_id: str):
    """잡 상세 조회"""
    try:
        return await job_handler.get_by_id(job_id)
    except JobNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/api/jobs/{job_id}/retry", response_model=JobResponse, tags=["Job"],
             dependencies=[Depends(require_service_key)])
async def retry_job(job_id: str):
    """실패한 잡 재시도"""
    try:
        return await job_handler.retry(job_id)
    except JobNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except JobStatusError as e:
        raise HTTPException(status_code=400, detail=str(e))


# ============================================
# CAPTURE API
# ============================================

@router.get("/api/submissions/{submission_id}/captures", response_model=CaptureListResponse,
            tags=["Capture"], dependencies=[Depends(require_service_key)])
async def get_captures(submission_id: str):
    """제출물 캡처 이력 조회"""
    items = await job_handler.get_captures(submission_id)
    return CaptureListResponse(submission_id=submission_id, items=items)

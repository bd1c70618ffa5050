"""
Capture 핸들러 - 제출물 게시물 스크린샷

1. submissions.status = capturing
2. 스크린샷 서비스 호출
3. 스토리지 업로드 -> 공개 URL -> submission_captures(is_live=1) -> status = monitoring
4. 2~3 단계 실패 시 submission_captures(is_live=0, error_message) 기록,
   initial 캡처면 status = monitoring 으로 넘긴 뒤 예외를 다시 던짐 (재시도는 Executor 담당)

매 시도마다 새 타임스탬프 경로와 새 캡처 행을 쓰므로 재실행해도 이전 결과를 덮어쓰지 않습니다.
"""

import json
import logging
import uuid
from datetime import datetime
from pathlib import Path

import aiosql

from common.clock import to_db_time, utcnow
from database import get_connection, transactional
from worker.base import BaseHandler, handler
from worker.model import (
    CaptureParams,
    CaptureType,
    HandlerResult,
    JobType,
    SubmissionStatus,
)

logger = logging.getLogger(__name__)

queries = aiosql.from_path(Path(__file__).parent / "sql" / "capture.sql", "aiosqlite")

CONTENT_TYPE = "image/png"


def capture_path(submission_id: str, at: datetime) -> str:
    """submissions/{id}/{epoch_millis}.png"""
    return f"submissions/{submission_id}/{int(at.timestamp() * 1000)}.png"


@handler(JobType.CAPTURE_SUBMISSION, JobType.MONITOR_SUBMISSION)
class CaptureHandler(BaseHandler):
    """제출물 URL 캡처 (최초 캡처와 주기 모니터링 공용)"""

    params_model = CaptureParams

    async def execute(self, params: CaptureParams) -> HandlerResult:
        submission_id = params.submission_id
        logger.info(f"Capture starting: submission={submission_id}, type={params.capture_type.value}, url={params.url}")

        await self._set_status(submission_id, SubmissionStatus.CAPTURING)

        try:
            screenshot = await self.context.require_screenshot().capture(params.url)

            captured_at = utcnow()
            path = capture_path(submission_id, captured_at)
            storage = self.context.require_storage()
            await storage.upload(path, screenshot, CONTENT_TYPE)
            public_url = storage.get_public_url(path)
            logger.info(f"Capture uploaded: {public_url}")

            await self._record_success(params, public_url, {
                "url": params.url,
                "platform": params.platform,
                "captured_at": captured_at.isoformat(),
                "size_bytes": len(screenshot),
            })
        except Exception as e:
            error_message = str(e) or "Capture failed"
            logger.error(f"Capture failed: submission={submission_id}, error={error_message}")
            await self._record_failure(params, error_message)
            raise

        logger.info(f"Capture complete: submission={submission_id}")
        return HandlerResult(
            action="capture",
            data={"submission_id": submission_id, "screenshot_url": public_url},
        )

    @transactional
    async def _set_status(self, submission_id: str, status: SubmissionStatus) -> None:
        ctx = get_connection()
        await queries.update_submission_status(
            ctx.connection,
            submission_id=submission_id,
            status=status.value,
            now=to_db_time(utcnow()),
        )

    @transactional
    async def _record_success(self, params: CaptureParams, screenshot_url: str, metadata: dict) -> None:
        await self._insert_capture(
            params,
            screenshot_url=screenshot_url,
            raw_metadata=json.dumps(metadata),
            is_live=True,
            error_message=None,
        )
        await self._set_status(params.submission_id, SubmissionStatus.MONITORING)

    @transactional
    async def _record_failure(self, params: CaptureParams, error_message: str) -> None:
        await self._insert_capture(
            params,
            screenshot_url=None,
            raw_metadata=None,
            is_live=False,
            error_message=error_message,
        )
        # 최초 캡처 실패도 monitoring으로 넘겨야 주기 캡처가 이어받음
        if params.capture_type == CaptureType.INITIAL:
            await self._set_status(params.submission_id, SubmissionStatus.MONITORING)

    async def _insert_capture(
        self,
        params: CaptureParams,
        screenshot_url: str | None,
        raw_metadata: str | None,
        is_live: bool,
        error_message: str | None,
    ) -> None:
        ctx = get_connection()
        await queries.insert_capture(
            ctx.connection,
            id=uuid.uuid4().hex,
            submission_id=params.submission_id,
            capture_type=params.capture_type.value,
            screenshot_url=screenshot_url,
            raw_metadata=raw_metadata,
            is_live=1 if is_live else 0,
            error_message=error_message,
            created_at=to_db_time(utcnow()),
        )

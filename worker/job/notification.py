"""알림 핸들러 - 이메일/푸시 발송은 애플리케이션 쪽 구현 전까지 로그만 남김"""

import logging

from worker.base import BaseHandler, handler
from worker.model import HandlerParams, HandlerResult, JobType

logger = logging.getLogger(__name__)


@handler(JobType.SEND_EMAIL)
class SendEmailHandler(BaseHandler):

    async def execute(self, params: HandlerParams) -> HandlerResult:
        logger.info(f"Email job (not implemented): {params.model_dump()}")
        return HandlerResult(action="send_email", data={"delivered": False})


@handler(JobType.SEND_PUSH)
class SendPushHandler(BaseHandler):

    async def execute(self, params: HandlerParams) -> HandlerResult:
        logger.info(f"Push job (not implemented): {params.model_dump()}")
        return HandlerResult(action="send_push", data={"delivered": False})

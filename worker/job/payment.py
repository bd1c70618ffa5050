"""결제 핸들러"""

import logging

from worker.base import BaseHandler, handler
from worker.model import HandlerParams, HandlerResult, JobType

logger = logging.getLogger(__name__)


@handler(JobType.PROCESS_PAYMENT)
class ProcessPaymentHandler(BaseHandler):
    """결제 처리는 웹훅 쪽에서 수행하므로 잡으로 들어오면 기록만 함"""

    async def execute(self, params: HandlerParams) -> HandlerResult:
        logger.info(f"Payment job (not implemented): {params.model_dump()}")
        return HandlerResult(action="process_payment", data={"processed": False})

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from worker.exception import ConfigurationError, HandlerNotFoundError
from worker.model import HandlerParams, HandlerResult, JobType

if TYPE_CHECKING:
    from worker.capture.screenshot import ScreenshotClient
    from worker.capture.storage import ObjectStorage

__all__ = [
    'handler',
    'get_handler',
    'get_registered_handlers',
    'verify_handlers',
    'BaseHandler',
    'HandlerContext',
    'HandlerNotFoundError',
    'HandlerParams',
    'HandlerResult',
]

# 핸들러 레지스트리 (모듈 레벨)
_registry: dict[JobType, type["BaseHandler"]] = {}


@dataclass
class HandlerContext:
    """프로세스 시작 시 한 번 생성되어 모든 핸들러에 전달되는 외부 클라이언트"""
    screenshot: "ScreenshotClient | None" = None
    storage: "ObjectStorage | None" = None

    def require_screenshot(self) -> "ScreenshotClient":
        if self.screenshot is None:
            raise ConfigurationError("Screenshot client not configured")
        return self.screenshot

    def require_storage(self) -> "ObjectStorage":
        if self.storage is None:
            raise ConfigurationError("Object storage not configured")
        return self.storage


def handler(*job_types: JobType):
    """핸들러 등록 데코레이터 (하나의 클래스가 여러 타입을 처리할 수 있음)"""
    def decorator(cls):
        for job_type in job_types:
            _registry[JobType(job_type)] = cls
        return cls
    return decorator


def get_handler(job_type: JobType, context: HandlerContext | None = None) -> "BaseHandler":
    """핸들러 인스턴스 반환"""
    if job_type not in _registry:
        raise HandlerNotFoundError(str(getattr(job_type, 'value', job_type)))
    return _registry[job_type](context or HandlerContext())


def get_registered_handlers() -> dict[JobType, type["BaseHandler"]]:
    """등록된 핸들러 목록 반환 (테스트용)"""
    return _registry.copy()


def verify_handlers() -> None:
    """
    모든 JobType에 핸들러가 등록되어 있는지 확인 (워커 시작 시 호출)

    Raises:
        HandlerNotFoundError: 핸들러가 없는 JobType이 있는 경우
    """
    missing = [t.value for t in JobType if t not in _registry]
    if missing:
        raise HandlerNotFoundError(", ".join(missing))


class BaseHandler(ABC):
    """잡 핸들러 기본 클래스"""

    # payload 검증 모델 (하위 클래스에서 지정)
    params_model: type[HandlerParams] = HandlerParams

    def __init__(self, context: HandlerContext):
        self.context = context

    @abstractmethod
    async def execute(self, params: HandlerParams) -> HandlerResult | None:
        """
        잡 실행 로직

        Args:
            params: params_model로 검증된 payload

        Returns:
            실행 결과 (완료 로그에 기록)

        Raises:
            Exception: 실행 실패 시 예외 발생 (Executor가 재시도/실패 처리)
        """
        pass

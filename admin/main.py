"""Admin API 서버 진입점"""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field

from common.config import load_config
from database.registry import DatabaseRegistry
from admin.api.router.api import router
from dispatcher.model.dispatcher import CronConfig
from worker.capture import LocalStorage
from worker.main import QueueProcessor, WorkerConfig, create_handler_context, _load_handlers

logger = logging.getLogger(__name__)


class AdminConfig(BaseModel):
    """Admin API 설정"""
    host: str = "0.0.0.0"
    port: int = Field(default=8080, ge=1, le=65535)
    database: str = "default"
    service_key: str | None = None
    cors: dict[str, Any] = Field(default_factory=dict)


def create_app(config: dict | None = None, init_database: bool = True) -> FastAPI:
    """
    FastAPI 앱 생성

    Args:
        config: load_config() 결과 (None이면 config/ 디렉토리에서 로드)
        init_database: lifespan에서 DB 초기화/종료 여부 (테스트에서 이미 초기화한 경우 False)
    """
    config = config if config is not None else load_config()
    admin_config = AdminConfig(**(config.get('admin') or {}))
    worker_config = WorkerConfig.from_dict(config.get('worker'))

    _load_handlers()
    handler_context = create_handler_context(worker_config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if init_database:
            await DatabaseRegistry.init_from_config(config, [admin_config.database])
            logger.info("Database initialized")

        yield

        if init_database:
            await DatabaseRegistry.close_all()
            logger.info("Database closed")

    app = FastAPI(
        title="postwatch Admin API",
        description="잡 큐 운영 API (health, 수동 drain, 잡/캡처 조회)",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.service_key = admin_config.service_key
    app.state.handler_context = handler_context
    app.state.processor = QueueProcessor(worker_config, handler_context)
    app.state.cron = CronConfig(**(config.get('cron') or {}))

    cors_config = admin_config.cors
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_config.get('origins', ['*']),
        allow_credentials=cors_config.get('allow_credentials', True),
        allow_methods=cors_config.get('allow_methods', ['*']),
        allow_headers=cors_config.get('allow_headers', ['*']),
    )

    app.include_router(router)

    # 로컬 스토리지 사용 시 캡처 이미지 서빙
    if isinstance(handler_context.storage, LocalStorage):
        handler_context.storage.root.mkdir(parents=True, exist_ok=True)
        app.mount(
            f"/storage/{worker_config.storage.bucket}",
            StaticFiles(directory=str(handler_context.storage.root)),
            name="storage",
        )

    return app


if __name__ == "__main__":
    import uvicorn

    from common.logging import setup_logging

    config = load_config()
    admin_config = AdminConfig(**(config.get('admin') or {}))
    setup_logging(level="INFO", json_format=False)

    uvicorn.run(
        create_app(config),
        host=admin_config.host,
        port=admin_config.port,
    )

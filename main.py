"""
postwatch 통합 진입점

Cron 트리거(drain / monitor / sweep)와 Admin API를 한 번에 실행합니다.

사용법:
    python main.py                 # 전체 실행
    python main.py cron            # 트리거 루프만
    python main.py admin           # Admin API만
"""

import sys
import os

# Windows 인코딩 설정 (cp949 -> UTF-8)
if sys.platform == "win32":
    os.environ["PYTHONUTF8"] = "1"

import asyncio
import signal
import logging

from common.config import load_config
from common.logging import setup_logging
from database.registry import DatabaseRegistry

logger = logging.getLogger(__name__)

VALID_MODULES = ("cron", "admin")


def build_cron_entries(config: dict):
    """설정으로 drain / monitor / sweep 엔트리 생성"""
    from dispatcher.cron import CronEntry
    from dispatcher.main import MonitoringDispatcher
    from dispatcher.model.dispatcher import CronConfig, DispatcherConfig
    from worker.main import QueueProcessor, WorkerConfig, create_handler_context, _load_handlers
    from worker.sweep import RetentionSweep

    _load_handlers()
    worker_config = WorkerConfig.from_dict(config.get("worker"))
    cron_config = CronConfig(**(config.get("cron") or {}))

    processor = QueueProcessor(worker_config, create_handler_context(worker_config))
    monitor = MonitoringDispatcher(DispatcherConfig(**(config.get("dispatcher") or {})))
    sweep = RetentionSweep(worker_config.sweep)

    entries = [
        CronEntry("drain", cron_config.drain, processor.run_once),
        CronEntry("monitor", cron_config.monitor, monitor.run_once),
        CronEntry("sweep", cron_config.sweep, sweep.run_once),
    ]
    return entries, cron_config


async def run_cron(config: dict, stop_event: asyncio.Event):
    """Cron 트리거 실행"""
    from dispatcher.cron import CronTrigger

    entries, cron_config = build_cron_entries(config)
    trigger = CronTrigger(
        entries,
        min_interval_seconds=cron_config.min_interval_seconds,
        shutdown_timeout_seconds=cron_config.shutdown_timeout_seconds,
    )

    async def wait_stop():
        await stop_event.wait()
        await trigger.stop()

    asyncio.create_task(wait_stop())
    await trigger.start()


async def run_admin(config: dict, stop_event: asyncio.Event):
    """Admin API 실행"""
    import uvicorn
    from admin.main import AdminConfig, create_app

    admin_config = AdminConfig(**(config.get("admin") or {}))
    uv_config = uvicorn.Config(
        create_app(config, init_database=False),
        host=admin_config.host,
        port=admin_config.port,
        log_level="info",
    )
    server = uvicorn.Server(uv_config)

    async def wait_stop():
        await stop_event.wait()
        server.should_exit = True

    asyncio.create_task(wait_stop())
    await server.serve()


async def main(modules: list[str], config: dict | None = None):
    """메인 함수"""
    config = config if config is not None else load_config()

    log_config = config.get("logging") or {}
    setup_logging(
        level=log_config.get("level", "INFO"),
        json_format=log_config.get("json_format", True),
        log_file=log_config.get("log_file"),
    )

    # 필요한 DB 목록 수집
    db_names = {(config.get("worker") or {}).get("database", "default")}
    db_names.add((config.get("dispatcher") or {}).get("database", "default"))
    if "admin" in modules:
        db_names.add((config.get("admin") or {}).get("database", "default"))

    await DatabaseRegistry.init_from_config(config, sorted(db_names))

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def signal_handler():
        logger.info("Received shutdown signal")
        stop_event.set()

    # Windows는 add_signal_handler를 지원하지 않음
    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, signal_handler)

    tasks = []
    if "cron" in modules:
        tasks.append(asyncio.create_task(run_cron(config, stop_event)))
        logger.info("Cron trigger started")
    if "admin" in modules:
        tasks.append(asyncio.create_task(run_admin(config, stop_event)))
        logger.info("Admin API started")

    try:
        await asyncio.gather(*tasks)
    except asyncio.CancelledError:
        logger.info("Tasks cancelled")
    finally:
        await DatabaseRegistry.close_all()
        logger.info("All modules stopped")


def parse_modules(args: list[str]) -> list[str] | None:
    if not args:
        return list(VALID_MODULES)
    modules = [m for m in args if m in VALID_MODULES]
    return modules or None


if __name__ == "__main__":
    modules = parse_modules(sys.argv[1:])
    if modules is None:
        print("Usage: python main.py [cron] [admin]")
        sys.exit(1)

    print(f"Starting postwatch: {', '.join(modules)}")
    try:
        asyncio.run(main(modules))
    except KeyboardInterrupt:
        print("\nShutdown requested by user")

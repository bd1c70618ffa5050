"""postwatch CLI"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from postwatch import __version__


async def _with_database(config: dict, coro_factory):
    """DB 초기화 -> 실행 -> 종료"""
    from database.registry import DatabaseRegistry

    names = {(config.get(section) or {}).get("database", "default") for section in ("worker", "dispatcher")}
    await DatabaseRegistry.init_from_config(config, sorted(names))
    try:
        return await coro_factory()
    finally:
        await DatabaseRegistry.close_all()


async def run_drain(config: dict) -> int:
    from worker.main import QueueProcessor, WorkerConfig, create_handler_context, _load_handlers

    _load_handlers()
    worker_config = WorkerConfig.from_dict(config.get("worker"))
    processor = QueueProcessor(worker_config, create_handler_context(worker_config))
    return await _with_database(config, processor.run_once)


async def run_monitor(config: dict) -> int:
    from dispatcher.main import MonitoringDispatcher
    from dispatcher.model.dispatcher import DispatcherConfig

    dispatcher = MonitoringDispatcher(DispatcherConfig(**(config.get("dispatcher") or {})))
    return await _with_database(config, dispatcher.run_once)


async def run_sweep(config: dict) -> int:
    from worker.main import WorkerConfig
    from worker.sweep import RetentionSweep

    sweep = RetentionSweep(WorkerConfig.from_dict(config.get("worker")).sweep)
    return await _with_database(config, sweep.run_once)


async def run_enqueue(config: dict, job_type: str, payload: dict, priority: int, max_attempts: int) -> str:
    from worker.queue import enqueue_job

    return await _with_database(
        config,
        lambda: enqueue_job(job_type, payload, priority=priority, max_attempts=max_attempts),
    )


async def run_init_db(config: dict) -> int:
    # 스키마는 DB 초기화 시 init.sql로 생성됨
    async def noop():
        return 0
    return await _with_database(config, noop)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="postwatch",
        description="postwatch - 제출물 캡처 잡 큐 워커"
    )
    parser.add_argument("-c", "--config-dir", type=Path, default=None, help="Config directory (default: ./config)")
    parser.add_argument("--log-level", default="INFO", help="Log level (default: INFO)")
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("run", help="Run cron triggers and admin API")
    subparsers.add_parser("drain", help="Process one batch of pending jobs")
    subparsers.add_parser("monitor", help="Run one monitoring schedule scan")
    subparsers.add_parser("sweep", help="Delete finished jobs past retention")
    subparsers.add_parser("init-db", help="Create tables")

    enqueue_parser = subparsers.add_parser("enqueue", help="Add a job to the queue")
    enqueue_parser.add_argument("job_type", help="Job type (e.g. capture_submission)")
    enqueue_parser.add_argument("payload", help="JSON payload")
    enqueue_parser.add_argument("-p", "--priority", type=int, default=0)
    enqueue_parser.add_argument("--max-attempts", type=int, default=3)

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return

    from common.config import load_config
    from common.logging import setup_logging

    config = load_config(args.config_dir)
    setup_logging(level=args.log_level, json_format=False)

    if args.command == "run":
        import main as entrypoint
        asyncio.run(entrypoint.main(list(entrypoint.VALID_MODULES), config))
    elif args.command == "drain":
        print(f"processed={asyncio.run(run_drain(config))}")
    elif args.command == "monitor":
        print(f"enqueued={asyncio.run(run_monitor(config))}")
    elif args.command == "sweep":
        print(f"deleted={asyncio.run(run_sweep(config))}")
    elif args.command == "init-db":
        asyncio.run(run_init_db(config))
        print("Database initialized")
    elif args.command == "enqueue":
        from worker.exception import InvalidPayloadError, UnknownJobTypeError

        try:
            payload = json.loads(args.payload)
        except json.JSONDecodeError as e:
            print(f"Error: invalid JSON payload: {e}")
            sys.exit(1)
        try:
            job_id = asyncio.run(run_enqueue(config, args.job_type, payload, args.priority, args.max_attempts))
        except (UnknownJobTypeError, InvalidPayloadError) as e:
            print(f"Error: {e}")
            sys.exit(1)
        print(job_id)


if __name__ == "__main__":
    main()

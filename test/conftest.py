"""
공통 테스트 fixture

각 테스트는 tmp_path 아래의 새 SQLite 파일을 사용합니다 (init.sql로 스키마 자동 생성).
"""

import json
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path

import pytest
import pytest_asyncio

# 프로젝트 루트 경로 추가
sys.path.insert(0, str(Path(__file__).parent.parent))

from common.clock import to_db_time
from database import get_db
from database.registry import DatabaseRegistry

# 테스트 기준 시각
NOW = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


def make_db_config(tmp_path: Path, pool_size: int = 3) -> dict:
    return {
        "databases": {
            "default": {
                "type": "sqlite3",
                "path": str(tmp_path / "postwatch_test.db"),
                "pool": {"pool_size": pool_size, "pool_timeout": 5.0},
            }
        }
    }


class Seeder:
    """테스트 데이터 직접 삽입/조회"""

    def __init__(self, db):
        self.db = db

    async def job(
        self,
        job_type: str = "send_email",
        payload: dict | str | None = None,
        status: str = "pending",
        priority: int = 0,
        scheduled_for: datetime = NOW,
        attempts: int = 0,
        max_attempts: int = 3,
        locked_by: str | None = None,
        locked_at: datetime | None = None,
        created_at: datetime = NOW,
    ) -> str:
        job_id = uuid.uuid4().hex
        if payload is None:
            payload = {}
        if not isinstance(payload, str):
            payload = json.dumps(payload)
        async with self.db.transaction() as ctx:
            await ctx.execute(
                """
                INSERT INTO job_queue
                    (id, job_type, payload, status, priority, scheduled_for,
                     attempts, max_attempts, locked_by, locked_at, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    job_id, job_type, payload, status, priority, to_db_time(scheduled_for),
                    attempts, max_attempts, locked_by,
                    to_db_time(locked_at) if locked_at else None,
                    to_db_time(created_at),
                ),
            )
        return job_id

    async def submission(self, submission_id: str, status: str = "pending", url: str = "https://example.com/p/1",
                         platform: str | None = "instagram") -> str:
        async with self.db.transaction() as ctx:
            await ctx.execute(
                "INSERT INTO submissions (id, url, platform, status) VALUES (?, ?, ?, ?)",
                (submission_id, url, platform, status),
            )
        return submission_id

    async def schedule(
        self,
        submission_id: str,
        next_check_at: datetime,
        checks_remaining: int = 3,
        check_interval_hours: int | None = None,
        is_active: bool = True,
    ) -> str:
        schedule_id = uuid.uuid4().hex
        async with self.db.transaction() as ctx:
            await ctx.execute(
                """
                INSERT INTO monitoring_schedule
                    (id, submission_id, is_active, next_check_at, check_interval_hours, checks_remaining)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (schedule_id, submission_id, 1 if is_active else 0, to_db_time(next_check_at),
                 check_interval_hours, checks_remaining),
            )
        return schedule_id

    async def fetch_one(self, sql: str, params: tuple = ()) -> dict | None:
        async with self.db.transaction(readonly=True) as ctx:
            row = await ctx.fetch_one(sql, params)
        return dict(row) if row else None

    async def fetch_all(self, sql: str, params: tuple = ()) -> list[dict]:
        async with self.db.transaction(readonly=True) as ctx:
            rows = await ctx.fetch_all(sql, params)
        return [dict(row) for row in rows]

    async def get_job(self, job_id: str) -> dict | None:
        return await self.fetch_one("SELECT * FROM job_queue WHERE id = ?", (job_id,))


@pytest.fixture
def db_config(tmp_path):
    return make_db_config(tmp_path)


@pytest_asyncio.fixture
async def database(db_config):
    """테스트용 Database 인스턴스 (DatabaseRegistry 사용)"""
    DatabaseRegistry.clear()
    await DatabaseRegistry.init_from_config(db_config)

    yield get_db("default")

    await DatabaseRegistry.close_all()


@pytest_asyncio.fixture
async def seed(database):
    return Seeder(database)

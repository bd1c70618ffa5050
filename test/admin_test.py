"""
Admin API 테스트

테스트 항목:
1. /health (인증 없이 항상 200, 설정 상태 보고)
2. /trigger 인증 (401, 비ASCII 토큰 포함), 성공 (200), 실패 (500)
3. 잡 목록 / 상세 / 등록 / 재시도 API
4. 제출물 캡처 이력 API

실행: python -m pytest test/admin_test.py -v
"""

from datetime import timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from admin.main import create_app
from conftest import NOW

SERVICE_KEY = "test-service-key"
AUTH = {"Authorization": f"Bearer {SERVICE_KEY}"}


class BrokenProcessor:
    async def run_once(self) -> int:
        raise RuntimeError("database is locked")


@pytest.fixture
def app_config(db_config, tmp_path):
    return {
        **db_config,
        "worker": {
            "storage": {"backend": "local", "root": str(tmp_path / "storage")},
        },
        "admin": {"service_key": SERVICE_KEY},
    }


@pytest.fixture
def app(app_config):
    return create_app(app_config, init_database=False)


@pytest_asyncio.fixture
async def client(database, app):
    """테스트용 HTTP 클라이언트 (DB는 database fixture가 초기화)"""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# ============================================================
# Service Endpoints
# ============================================================

class TestHealthCheck:

    @pytest.mark.asyncio
    async def test_health_without_auth(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert "timestamp" in data
        assert data["configured"] == {"database": True, "screenshot": False, "storage": True}

    @pytest.mark.asyncio
    async def test_index_lists_crons(self, client):
        response = await client.get("/")

        assert response.status_code == 200
        assert response.json()["crons"]["drain"] == "* * * * *"


class TestTrigger:

    @pytest.mark.asyncio
    async def test_missing_auth(self, client):
        response = await client.post("/trigger")

        assert response.status_code == 401
        assert response.json() == {"detail": "Unauthorized"}

    @pytest.mark.asyncio
    async def test_wrong_key(self, client):
        response = await client.post("/trigger", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_non_ascii_key_rejected(self, client):
        # latin-1 바이트 헤더는 Starlette에서 비ASCII 문자열로 디코딩됨
        response = await client.post("/trigger", headers={"Authorization": b"Bearer caf\xe9"})

        assert response.status_code == 401
        assert response.json() == {"detail": "Unauthorized"}

    @pytest.mark.asyncio
    async def test_no_key_configured_rejects_all(self, database, app_config):
        app_config["admin"] = {}
        app = create_app(app_config, init_database=False)
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            response = await ac.post("/trigger", headers={"Authorization": "Bearer "})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_trigger_drains_queue(self, client, seed):
        job_id = await seed.job(job_type="send_email", scheduled_for=NOW - timedelta(days=365))

        response = await client.post("/trigger", headers=AUTH)

        assert response.status_code == 200
        assert response.json() == {"success": True, "processed": 1}
        assert (await seed.get_job(job_id))["status"] == "completed"

    @pytest.mark.asyncio
    async def test_trigger_empty_queue(self, client):
        response = await client.post("/trigger", headers=AUTH)

        assert response.status_code == 200
        assert response.json() == {"success": True, "processed": 0}

    @pytest.mark.asyncio
    async def test_trigger_failure_returns_500(self, client, app):
        app.state.processor = BrokenProcessor()

        response = await client.post("/trigger", headers=AUTH)

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "database is locked"}


# ============================================================
# Job API
# ============================================================

class TestJobApi:

    @pytest.mark.asyncio
    async def test_requires_auth(self, client):
        assert (await client.get("/api/jobs")).status_code == 401

    @pytest.mark.asyncio
    async def test_list_with_filters(self, client, seed):
        await seed.job(job_type="send_email", status="pending")
        await seed.job(job_type="send_email", status="failed")
        await seed.job(job_type="send_push", status="failed")

        response = await client.get("/api/jobs", headers=AUTH)
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert data["pages"] == 1

        response = await client.get("/api/jobs", params={"status": "failed", "job_type": "send_push"}, headers=AUTH)
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["job_type"] == "send_push"

    @pytest.mark.asyncio
    async def test_list_paging(self, client, seed):
        for i in range(5):
            await seed.job(created_at=NOW + timedelta(seconds=i))

        response = await client.get("/api/jobs", params={"page": 2, "size": 2}, headers=AUTH)

        data = response.json()
        assert data["total"] == 5
        assert data["pages"] == 3
        assert len(data["items"]) == 2

    @pytest.mark.asyncio
    async def test_get_by_id(self, client, seed):
        job_id = await seed.job(payload={"to": "a@example.com"})

        response = await client.get(f"/api/jobs/{job_id}", headers=AUTH)

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == job_id
        assert data["payload"] == {"to": "a@example.com"}

    @pytest.mark.asyncio
    async def test_get_not_found(self, client):
        response = await client.get("/api/jobs/missing", headers=AUTH)

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_enqueue(self, client, seed):
        response = await client.post(
            "/api/jobs",
            json={
                "job_type": "capture_submission",
                "payload": {"submission_id": "sub-1", "url": "https://example.com/p/1"},
                "priority": 2,
            },
            headers=AUTH,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["priority"] == 2
        assert (await seed.get_job(data["id"]))["job_type"] == "capture_submission"

    @pytest.mark.asyncio
    async def test_enqueue_unknown_type(self, client):
        response = await client.post("/api/jobs", json={"job_type": "legacy_task"}, headers=AUTH)

        assert response.status_code == 400
        assert "legacy_task" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_retry_failed_job(self, client, seed):
        job_id = await seed.job(status="failed", attempts=3, max_attempts=3)

        response = await client.post(f"/api/jobs/{job_id}/retry", headers=AUTH)

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "pending"
        assert data["attempts"] == 0

    @pytest.mark.asyncio
    async def test_retry_rejects_non_failed(self, client, seed):
        job_id = await seed.job(status="pending")

        response = await client.post(f"/api/jobs/{job_id}/retry", headers=AUTH)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_retry_not_found(self, client):
        response = await client.post("/api/jobs/missing/retry", headers=AUTH)

        assert response.status_code == 404


# ============================================================
# Capture API
# ============================================================

class TestCaptureApi:

    @pytest.mark.asyncio
    async def test_captures_newest_first(self, client, database):
        async with database.transaction() as ctx:
            await ctx.execute(
                """
                INSERT INTO submission_captures
                    (id, submission_id, capture_type, screenshot_url, raw_metadata, is_live, error_message, created_at)
                VALUES
                    ('c1', 'sub-1', 'initial', 'http://test/storage/captures/a.png', '{"size_bytes": 10}', 1, NULL,
                     '2026-01-15 12:00:00'),
                    ('c2', 'sub-1', 'scheduled', NULL, NULL, 0, 'Screenshot API error: 500 - x',
                     '2026-01-16 12:00:00'),
                    ('c3', 'sub-2', 'initial', NULL, NULL, 0, 'boom', '2026-01-15 12:00:00')
                """
            )

        response = await client.get("/api/submissions/sub-1/captures", headers=AUTH)

        assert response.status_code == 200
        data = response.json()
        assert data["submission_id"] == "sub-1"
        assert [c["id"] for c in data["items"]] == ["c2", "c1"]
        assert data["items"][1]["is_live"] is True
        assert data["items"][1]["raw_metadata"] == {"size_bytes": 10}
        assert data["items"][0]["is_live"] is False

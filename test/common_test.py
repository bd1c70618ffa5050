"""
공통 모듈 테스트 (설정 로드, 시간 변환, JSON 로깅)

실행: python -m pytest test/common_test.py -v
"""

import json
import logging
from datetime import datetime, timedelta, timezone

import pytest

from common.clock import from_db_time, to_db_time
from common.config import load_config
from common.logging import CustomJsonFormatter, setup_logging


class TestClock:

    def test_aware_converted_to_utc(self):
        kst = timezone(timedelta(hours=9))
        assert to_db_time(datetime(2026, 1, 15, 21, 0, tzinfo=kst)) == "2026-01-15 12:00:00"

    def test_naive_treated_as_utc(self):
        assert to_db_time(datetime(2026, 1, 15, 12, 0, 5)) == "2026-01-15 12:00:05"

    def test_parse(self):
        assert from_db_time("2026-01-15 12:00:00") == datetime(2026, 1, 15, 12, tzinfo=timezone.utc)
        assert from_db_time("2026-01-15T12:00:00.123Z") == datetime(2026, 1, 15, 12, tzinfo=timezone.utc)
        assert from_db_time(None) is None


class TestConfig:

    def test_default_config_files(self):
        config = load_config(env={})

        assert config["databases"]["default"]["type"] == "sqlite3"
        assert config["worker"]["backoff_base_seconds"] == 300
        assert config["worker"]["sweep"]["retention_days"] == 7
        assert config["dispatcher"]["monitor_priority"] == 5
        assert config["cron"]["drain"] == "* * * * *"
        assert config["admin"]["port"] == 8080
        assert config["worker"]["capture"]["api_key"] is None

    def test_environment_overrides(self, tmp_path):
        (tmp_path / "worker.yaml").write_text("worker:\n  batch_size: 4\n", encoding="utf-8")

        config = load_config(tmp_path, env={
            "SCREENSHOT_API_URL": "https://shots.example.com",
            "SCREENSHOT_API_KEY": "shot-key",
            "SUPABASE_URL": "https://proj.supabase.co",
            "SUPABASE_SERVICE_KEY": "svc",
            "POSTWATCH_SERVICE_KEY": "admin-key",
            "POSTWATCH_DB_PATH": str(tmp_path / "x.db"),
        })

        assert config["worker"]["batch_size"] == 4
        assert config["worker"]["capture"] == {"api_url": "https://shots.example.com", "api_key": "shot-key"}
        assert config["worker"]["storage"]["service_key"] == "svc"
        assert config["admin"]["service_key"] == "admin-key"
        assert config["databases"]["default"]["path"] == str(tmp_path / "x.db")

    def test_empty_env_value_ignored(self, tmp_path):
        config = load_config(tmp_path, env={"SCREENSHOT_API_KEY": ""})
        assert "worker" not in config


class TestLogging:

    def test_json_formatter_fields(self):
        formatter = CustomJsonFormatter('%(timestamp)s %(level)s %(name)s %(message)s')
        record = logging.LogRecord("worker.executor", logging.INFO, __file__, 1, "Job completed: id=%s", ("abc",), None)

        data = json.loads(formatter.format(record))

        assert data["level"] == "INFO"
        assert data["logger"] == "worker.executor"
        assert data["message"] == "Job completed: id=abc"
        assert "timestamp" in data

    @pytest.mark.parametrize("json_format", [True, False])
    def test_setup_logging(self, tmp_path, json_format):
        log_file = tmp_path / "postwatch.log"
        setup_logging(level="DEBUG", json_format=json_format, log_file=str(log_file))
        try:
            logging.getLogger("postwatch.test").info("hello")
            for handler in logging.getLogger().handlers:
                handler.flush()

            assert "hello" in log_file.read_text(encoding="utf-8")
            assert logging.getLogger("httpx").level == logging.WARNING
        finally:
            for handler in logging.getLogger().handlers:
                handler.close()
            logging.basicConfig(force=True, handlers=[logging.NullHandler()])

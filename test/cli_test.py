"""
CLI / 진입점 테스트

실행: python -m pytest test/cli_test.py -v
"""

import pytest
import yaml

import main as entrypoint
from conftest import make_db_config
from postwatch.cli import main


@pytest.fixture
def config_dir(tmp_path):
    config_path = tmp_path / "config"
    config_path.mkdir()
    with open(config_path / "database.yaml", "w", encoding="utf-8") as f:
        yaml.safe_dump(make_db_config(tmp_path), f)
    with open(config_path / "worker.yaml", "w", encoding="utf-8") as f:
        yaml.safe_dump({"worker": {"storage": {"root": str(tmp_path / "storage")}}}, f)
    return config_path


class TestCli:

    def test_enqueue_then_drain(self, config_dir, capsys):
        main(["-c", str(config_dir), "enqueue", "send_email", '{"to": "a@example.com"}'])
        job_id = capsys.readouterr().out.strip().splitlines()[-1]
        assert len(job_id) == 32

        main(["-c", str(config_dir), "drain"])
        assert "processed=1" in capsys.readouterr().out

    def test_enqueue_rejects_bad_json(self, config_dir, capsys):
        with pytest.raises(SystemExit):
            main(["-c", str(config_dir), "enqueue", "send_email", "{oops"])
        assert "invalid JSON" in capsys.readouterr().out

    def test_enqueue_rejects_unknown_type(self, config_dir, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["-c", str(config_dir), "enqueue", "bogus_type", "{}"])

        assert exc_info.value.code == 1
        assert "Error: Unknown job type: bogus_type" in capsys.readouterr().out

    def test_sweep_and_monitor(self, config_dir, capsys):
        main(["-c", str(config_dir), "monitor"])
        main(["-c", str(config_dir), "sweep"])

        out = capsys.readouterr().out
        assert "enqueued=0" in out
        assert "deleted=0" in out

    def test_init_db(self, config_dir, tmp_path, capsys):
        main(["-c", str(config_dir), "init-db"])

        assert "Database initialized" in capsys.readouterr().out
        assert (tmp_path / "postwatch_test.db").exists()


class TestEntrypoint:

    def test_parse_modules(self):
        assert entrypoint.parse_modules([]) == ["cron", "admin"]
        assert entrypoint.parse_modules(["cron"]) == ["cron"]
        assert entrypoint.parse_modules(["bogus"]) is None

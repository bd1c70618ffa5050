"""
설정 로드

config/ 디렉토리의 YAML 파일을 하나의 dict로 병합하고,
비밀값은 환경변수로 덮어씁니다 (YAML에 키를 커밋하지 않기 위함).
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILES = ("database.yaml", "worker.yaml", "dispatcher.yaml", "admin.yaml", "logging.yaml")

DEFAULT_CONFIG_DIR = Path(__file__).parent.parent / "config"

# 환경변수 -> (섹션, 하위 섹션, 키)
ENV_OVERRIDES: dict[str, tuple[str, str | None, str]] = {
    "SCREENSHOT_API_URL": ("worker", "capture", "api_url"),
    "SCREENSHOT_API_KEY": ("worker", "capture", "api_key"),
    "SUPABASE_URL": ("worker", "storage", "base_url"),
    "SUPABASE_SERVICE_KEY": ("worker", "storage", "service_key"),
    "POSTWATCH_SERVICE_KEY": ("admin", None, "service_key"),
    "POSTWATCH_DB_PATH": ("databases", "default", "path"),
}


def load_config(config_dir: str | Path | None = None, env: dict[str, str] | None = None) -> dict[str, Any]:
    """
    설정 파일 병합 로드

    Args:
        config_dir: 설정 디렉토리 (기본: 프로젝트 루트의 config/)
        env: 환경변수 (테스트용, 기본 os.environ)

    Returns:
        {'databases': ..., 'worker': ..., 'dispatcher': ..., 'admin': ...}
    """
    config_path = Path(config_dir) if config_dir else DEFAULT_CONFIG_DIR
    config: dict[str, Any] = {}

    for filename in CONFIG_FILES:
        path = config_path / filename
        if not path.exists():
            logger.debug(f"Config file not found, skipping: {path}")
            continue
        with open(path, encoding="utf-8") as f:
            config.update(yaml.safe_load(f) or {})

    _apply_env_overrides(config, os.environ if env is None else env)
    return config


def _apply_env_overrides(config: dict[str, Any], env: Any) -> None:
    for var, (section, sub, key) in ENV_OVERRIDES.items():
        value = env.get(var)
        if not value:
            continue
        target = config.setdefault(section, {}) or {}
        config[section] = target
        if sub is not None:
            target = target.setdefault(sub, {}) or {}
            config[section][sub] = target
        target[key] = value
        logger.debug(f"Config override from environment: {var}")

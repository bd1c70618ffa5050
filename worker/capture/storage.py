"""
캡처 이미지 오브젝트 스토리지

- SupabaseStorage: Storage REST API (POST /storage/v1/object/{bucket}/{path})
- LocalStorage: 로컬 디렉토리 (개발/테스트용, admin 서버가 /storage로 서빙)
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

import httpx

from worker.exception import ConfigurationError, StorageError

logger = logging.getLogger(__name__)


@dataclass
class StorageConfig:
    """스토리지 설정"""
    backend: str = "local"
    bucket: str = "captures"
    base_url: str | None = None
    service_key: str | None = None
    root: str = "./data/storage"
    public_base_url: str = "http://localhost:8080/storage"
    timeout_seconds: float = 30.0


class ObjectStorage(ABC):
    """업로드 + 공개 URL 인터페이스"""

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        ...

    @abstractmethod
    async def upload(self, path: str, data: bytes, content_type: str) -> None:
        """
        Raises:
            StorageError: 업로드 실패
        """
        ...

    @abstractmethod
    def get_public_url(self, path: str) -> str:
        ...


class SupabaseStorage(ObjectStorage):

    def __init__(self, config: StorageConfig, transport: httpx.AsyncBaseTransport | None = None):
        self._config = config
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self._config.base_url and self._config.service_key)

    @property
    def _base(self) -> str:
        return (self._config.base_url or "").rstrip("/")

    async def upload(self, path: str, data: bytes, content_type: str) -> None:
        if not self.is_configured:
            raise ConfigurationError("Storage not configured. Set SUPABASE_URL and SUPABASE_SERVICE_KEY")

        url = f"{self._base}/storage/v1/object/{self._config.bucket}/{path}"
        headers = {
            "apikey": self._config.service_key,
            "Authorization": f"Bearer {self._config.service_key}",
            "Content-Type": content_type,
        }
        try:
            async with httpx.AsyncClient(
                timeout=self._config.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(url, content=data, headers=headers)
        except httpx.HTTPError as e:
            raise StorageError(f"Storage upload failed: {e}") from e

        if not response.is_success:
            raise StorageError(f"Storage upload failed: {response.status_code} - {response.text}")

    def get_public_url(self, path: str) -> str:
        return f"{self._base}/storage/v1/object/public/{self._config.bucket}/{path}"


class LocalStorage(ObjectStorage):

    def __init__(self, config: StorageConfig):
        self._config = config
        self._root = Path(config.root).resolve() / config.bucket

    @property
    def is_configured(self) -> bool:
        return True

    @property
    def root(self) -> Path:
        return self._root

    def _target(self, path: str) -> Path:
        target = (self._root / path).resolve()
        if not target.is_relative_to(self._root):
            raise StorageError(f"Invalid storage path: {path}")
        return target

    async def upload(self, path: str, data: bytes, content_type: str) -> None:
        target = self._target(path)

        def write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)

        try:
            await asyncio.to_thread(write)
        except OSError as e:
            raise StorageError(f"Storage upload failed: {e}") from e
        logger.debug(f"Stored {len(data)} bytes ({content_type}) at {target}")

    def get_public_url(self, path: str) -> str:
        return f"{self._config.public_base_url.rstrip('/')}/{self._config.bucket}/{path}"


def create_storage(config: StorageConfig, transport: httpx.AsyncBaseTransport | None = None) -> ObjectStorage:
    """설정된 backend로 스토리지 생성"""
    if config.backend == "supabase":
        return SupabaseStorage(config, transport=transport)
    if config.backend == "local":
        return LocalStorage(config)
    raise ConfigurationError(f"Unknown storage backend: {config.backend}")

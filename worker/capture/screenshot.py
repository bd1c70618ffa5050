"""스크린샷 렌더링 서비스 클라이언트"""

import logging
from dataclasses import dataclass

import httpx

from worker.exception import ConfigurationError, RemoteServiceError

logger = logging.getLogger(__name__)


@dataclass
class CaptureConfig:
    """스크린샷 서비스 설정"""
    api_url: str | None = None
    api_key: str | None = None
    timeout_seconds: float = 60.0
    viewport_width: int = 1280
    viewport_height: int = 800
    full_page: bool = False

    @property
    def is_configured(self) -> bool:
        return bool(self.api_url and self.api_key)


class ScreenshotClient:
    """
    원격 스크린샷 서비스 호출

    POST {api_url}
        {"url": ..., "options": {"fullPage": false, "type": "png",
                                 "viewport": {"width": 1280, "height": 800}}}
    응답 본문은 PNG 바이트입니다.
    """

    def __init__(self, config: CaptureConfig, transport: httpx.AsyncBaseTransport | None = None):
        self._config = config
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return self._config.is_configured

    def _build_request_body(self, url: str) -> dict:
        return {
            "url": url,
            "options": {
                "fullPage": self._config.full_page,
                "type": "png",
                "viewport": {
                    "width": self._config.viewport_width,
                    "height": self._config.viewport_height,
                },
            },
        }

    async def capture(self, url: str) -> bytes:
        """
        URL 스크린샷 촬영

        Raises:
            ConfigurationError: api_url/api_key 미설정
            RemoteServiceError: 비정상 응답 또는 전송 실패
        """
        if not self._config.is_configured:
            raise ConfigurationError(
                "Screenshot service not configured. Set SCREENSHOT_API_URL and SCREENSHOT_API_KEY"
            )

        logger.info(f"Requesting screenshot: {url}")
        headers = {"Authorization": f"Bearer {self._config.api_key}"}

        try:
            async with httpx.AsyncClient(
                timeout=self._config.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self._config.api_url,
                    json=self._build_request_body(url),
                    headers=headers,
                )
        except httpx.HTTPError as e:
            raise RemoteServiceError(None, str(e) or type(e).__name__) from e

        if not response.is_success:
            raise RemoteServiceError(response.status_code, response.text)

        logger.debug(f"Screenshot received: {len(response.content)} bytes")
        return response.content

"""캡처 태스크가 사용하는 외부 서비스 클라이언트"""

from worker.capture.screenshot import CaptureConfig, ScreenshotClient
from worker.capture.storage import (
    StorageConfig,
    ObjectStorage,
    LocalStorage,
    SupabaseStorage,
    create_storage,
)

__all__ = [
    'CaptureConfig',
    'ScreenshotClient',
    'StorageConfig',
    'ObjectStorage',
    'LocalStorage',
    'SupabaseStorage',
    'create_storage',
]

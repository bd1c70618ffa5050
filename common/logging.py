"""
로깅 설정

기본은 JSON 한 줄 로그(python-json-logger)이며, 로컬 개발이나 CLI에서는 텍스트 포맷을 사용합니다.
모든 레코드에 timestamp / level / logger 필드가 붙습니다.
"""

import logging
import sys

from pythonjsonlogger.json import JsonFormatter

JSON_FORMAT = '%(timestamp)s %(level)s %(name)s %(message)s'
TEXT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# 요청/쿼리마다 로그를 남기는 라이브러리
QUIET_LOGGERS = ('asyncio', 'aiosqlite', 'httpx', 'httpcore')


class CustomJsonFormatter(JsonFormatter):

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record.update(
            timestamp=self.formatTime(record),
            level=record.levelname,
            logger=record.name,
        )
        log_record.setdefault('message', record.getMessage())


def _build_formatter(json_format: bool) -> logging.Formatter:
    return CustomJsonFormatter(JSON_FORMAT) if json_format else logging.Formatter(TEXT_FORMAT)


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: str | None = None
) -> None:
    """
    루트 로거 재설정

    Args:
        level: DEBUG, INFO, WARNING, ERROR, CRITICAL
        json_format: False면 텍스트 포맷
        log_file: 지정 시 stdout과 함께 파일에도 기록
    """
    formatter = _build_formatter(json_format)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=level.upper(), handlers=handlers, force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

"""
Dispatcher / CronTrigger 예외
"""


class DispatcherError(Exception):
    """Dispatcher 기본 예외"""
    pass


class CronParseError(DispatcherError):
    """croniter가 해석하지 못한 표현식"""
    def __init__(self, expression: str, reason: str | None = None):
        self.expression = expression
        detail = f": {reason}" if reason else ""
        super().__init__(f"Cannot parse cron expression '{expression}'{detail}")


class CronIntervalTooShortError(DispatcherError):
    """연속 두 실행 간격이 허용 최소값보다 짧음"""
    def __init__(self, expression: str, interval_seconds: float, min_interval_seconds: int):
        self.expression = expression
        self.interval_seconds = interval_seconds
        self.min_interval_seconds = min_interval_seconds
        super().__init__(
            f"Cron '{expression}' fires every {interval_seconds:.0f}s, "
            f"shorter than the {min_interval_seconds}s minimum"
        )

"""
Worker 관련 예외 클래스 정의
"""


class WorkerError(Exception):
    """Worker 기본 예외"""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class HandlerNotFoundError(WorkerError):
    """핸들러를 찾을 수 없음"""
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Handler not found: {name}")


class UnknownJobTypeError(WorkerError):
    """JobType에 없는 job_type으로 enqueue 시도"""
    def __init__(self, job_type: str):
        self.job_type = job_type
        super().__init__(f"Unknown job type: {job_type}")


class InvalidPayloadError(WorkerError):
    """payload 파싱/검증 실패 (재시도 대상)"""
    pass


class LeaseConflict(WorkerError):
    """
    claim UPDATE가 0건 (다른 워커가 먼저 가져감)

    에러가 아니라 '이미 누가 가져갔음' 신호이며 Executor 밖으로 나가지 않습니다.
    """
    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job already claimed or no longer pending: {job_id}")


class TaskError(WorkerError):
    """태스크 실행 실패 기본 예외"""
    pass


class ConfigurationError(TaskError):
    """외부 서비스 URL/키 미설정"""
    pass


class RemoteServiceError(TaskError):
    """스크린샷 서비스 비정상 응답"""
    def __init__(self, status_code: int | None, detail: str):
        self.status_code = status_code
        self.detail = detail
        if status_code is None:
            super().__init__(f"Screenshot API request failed: {detail}")
        else:
            super().__init__(f"Screenshot API error: {status_code} - {detail}")


class StorageError(TaskError):
    """오브젝트 스토리지 업로드 실패"""
    pass

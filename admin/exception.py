"""
Admin API 예외 (라우터에서 404 / 400 으로 변환)
"""


class AdminError(Exception):
    """Admin 기본 예외"""
    pass


class JobNotFoundError(AdminError):
    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job '{job_id}' not found")


class JobStatusError(AdminError):
    """failed 가 아닌 잡에 대한 재시도 요청"""
    def __init__(self, job_id: str, current_status: str):
        self.job_id = job_id
        self.current_status = current_status
        super().__init__(f"Job '{job_id}' is {current_status}; only failed jobs can be retried")

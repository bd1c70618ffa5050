"""공통 모델 정의"""


def page_count(total: int, size: int) -> int:
    """전체 페이지 수"""
    return (total + size - 1) // size if size > 0 else 0

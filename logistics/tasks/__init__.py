"""
Celery 태스크 패키지
모든 태스크를 여기서 임포트하여 Celery가 자동으로 발견할 수 있게 함
"""

from .storage_tasks import accrue_package_storage_task, accrue_storage_charges_task

__all__ = [
    # 보관료 정산 태스크
    "accrue_storage_charges_task",
    "accrue_package_storage_task",
]

from __future__ import annotations

import traceback
from datetime import date
from typing import Any

from celery import shared_task
from celery.utils.log import get_task_logger
from django.conf import settings
from django.utils import timezone

logger = get_task_logger(__name__)


def _parse_through_date(value: str | None) -> date:
    """태스크 인자(ISO 문자열) → date, 기본값은 오늘"""
    return date.fromisoformat(value) if value else timezone.localdate()


@shared_task(
    name="logistics.tasks.storage_tasks.accrue_storage_charges_task",
    max_retries=3,
    default_retry_delay=300,  # 5분 후 재시도
)
def accrue_storage_charges_task(through_date: str | None = None) -> dict[str, Any]:
    """
    보관료 일괄 정산 태스크
    매일 새벽 1시에 실행됨 (오늘 0시 기준 = 어제까지 보관일 청구)

    STORAGE_ACCRUAL_FANOUT이 켜져 있으면 화물별 서브태스크로 분산합니다.

    Args:
        through_date: 정산 종료일 ISO 문자열 (제외, 기본: 오늘)

    Returns:
        처리 결과 딕셔너리
    """
    from logistics.services.storage_fee_service import StorageFeeService

    target_date = _parse_through_date(through_date)
    logger.info(f"보관료 일괄 정산 시작: through_date={target_date}")

    try:
        if settings.STORAGE_ACCRUAL_FANOUT:
            package_ids = [str(pk) for pk in StorageFeeService.billable_package_ids()]
            for package_id in package_ids:
                accrue_package_storage_task.delay(package_id, target_date.isoformat())

            result = {
                "status": "dispatched",
                "through_date": target_date.isoformat(),
                "dispatched_count": len(package_ids),
                "executed_at": timezone.now().isoformat(),
            }
            logger.info(f"보관료 정산 서브태스크 분배 완료: {result}")
            return result

        summary = StorageFeeService.accrue_all(target_date)
        result = {
            "status": "success",
            "through_date": target_date.isoformat(),
            "processed": summary["processed"],
            "charges_created": summary["charges_created"],
            "failed": summary["failed"],
            "executed_at": timezone.now().isoformat(),
        }
        logger.info(f"보관료 일괄 정산 완료: {result}")
        return result

    except Exception as e:
        logger.error(f"보관료 일괄 정산 실패: {str(e)}\n{traceback.format_exc()}")
        raise accrue_storage_charges_task.retry(exc=e)


@shared_task(
    name="logistics.tasks.storage_tasks.accrue_package_storage_task",
    max_retries=3,
    default_retry_delay=60,
)
def accrue_package_storage_task(package_id: str, through_date: str | None = None) -> dict[str, Any]:
    """
    화물 1건 보관료 정산 태스크 (일괄 정산 분산 실행용)

    비즈니스 오류(요금표 없음 등)는 재시도하지 않고 결과로 반환합니다.
    같은 through_date로 재실행해도 중복 청구되지 않습니다.
    """
    from logistics.services.base import ServiceError
    from logistics.services.storage_fee_service import StorageFeeService

    target_date = _parse_through_date(through_date)

    try:
        charges = StorageFeeService.accrue_charges(package_id, target_date)
    except ServiceError as e:
        return {
            "status": "failed",
            "package_id": package_id,
            "code": e.code,
            "message": e.message,
        }
    except Exception as e:
        logger.error(f"보관료 정산 실패: package_id={package_id}, error={str(e)}")
        raise accrue_package_storage_task.retry(exc=e)

    return {
        "status": "success",
        "package_id": package_id,
        "through_date": target_date.isoformat(),
        "charges_created": len(charges),
    }

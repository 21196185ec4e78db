"""
요금/무게/보관료 정산 서비스 패키지

- ZoneService: 목적지 국가 → 배송 Zone
- WeightService: 부피중량/청구중량
- RateService: 배송 요금 견적
- BinAssignmentService: Bin 배정/해제
- StorageFeeService: 보관료 정산
"""

from .base import ServiceError, log_service_call
from .bin_assignment_service import BinAssignmentService
from .exceptions import (
    AmbiguousError,
    ConstraintViolationError,
    InvalidInputError,
    InvalidStateError,
    LogisticsError,
    NotFoundError,
)
from .rate_service import QuoteResult, RateService
from .storage_fee_service import AccrualSummary, StorageEstimate, StorageFeeService
from .weight_service import WeightService
from .zone_service import ZoneService

__all__ = [
    # Base
    "ServiceError",
    "log_service_call",
    # 예외 카테고리
    "LogisticsError",
    "NotFoundError",
    "ConstraintViolationError",
    "InvalidStateError",
    "AmbiguousError",
    "InvalidInputError",
    # Services
    "ZoneService",
    "WeightService",
    "RateService",
    "QuoteResult",
    "BinAssignmentService",
    "StorageFeeService",
    "AccrualSummary",
    "StorageEstimate",
]

"""
logistics 서비스 예외

예상 가능한 비즈니스 결과는 모두 ServiceError 하위 클래스로 표현합니다.
뷰는 카테고리(부모 클래스)로 HTTP 상태 코드를 결정합니다.

    NotFoundError            → 404
    ConstraintViolationError → 409
    InvalidStateError        → 409
    InvalidInputError        → 400
    AmbiguousError           → 500 (데이터 정합성 오류)

DB 오류 등 인프라 예외는 ServiceError가 아니며 그대로 전파됩니다.
"""

from __future__ import annotations

from .base import ServiceError


class LogisticsError(ServiceError):
    """
    logistics 예외 공통 부모

    하위 클래스는 default_code만 지정하면 됩니다.
    """

    default_code = "LOGISTICS_ERROR"

    def __init__(self, message: str, code: str | None = None, details: dict | None = None):
        super().__init__(message, code=code or self.default_code, details=details)


# ==========================================================================
# 카테고리
# ==========================================================================


class NotFoundError(LogisticsError):
    """조회 대상이 없음"""

    default_code = "NOT_FOUND"


class ConstraintViolationError(LogisticsError):
    """용량/무게/유효기간 등 제약 위반"""

    default_code = "CONSTRAINT_VIOLATION"


class InvalidStateError(LogisticsError):
    """현재 상태에서 수행할 수 없는 작업"""

    default_code = "INVALID_STATE"


class AmbiguousError(LogisticsError):
    """하나여야 할 설정 행이 여러 개 (데이터 정합성 오류)"""

    default_code = "AMBIGUOUS"
    fatal = True


class InvalidInputError(LogisticsError):
    """입력값 오류"""

    default_code = "INVALID_INPUT"


# ==========================================================================
# Zone / 요율
# ==========================================================================


class ZoneNotFound(NotFoundError):
    default_code = "ZONE_NOT_FOUND"


class AmbiguousZone(AmbiguousError):
    default_code = "AMBIGUOUS_ZONE"


class ZoneCountryConflict(ConstraintViolationError):
    default_code = "ZONE_COUNTRY_CONFLICT"


class NoRatesForZone(NotFoundError):
    default_code = "NO_RATES_FOR_ZONE"


class RateNotFound(NotFoundError):
    default_code = "RATE_NOT_FOUND"


class AmbiguousRate(AmbiguousError):
    default_code = "AMBIGUOUS_RATE"


class WeightExceedsRateLimit(ConstraintViolationError):
    default_code = "WEIGHT_EXCEEDS_RATE_LIMIT"


class InvalidQuoteRequest(InvalidInputError):
    default_code = "INVALID_QUOTE_REQUEST"


class OverlappingEffectivePeriod(ConstraintViolationError):
    default_code = "OVERLAPPING_EFFECTIVE_PERIOD"


class WarehouseNotFound(NotFoundError):
    default_code = "WAREHOUSE_NOT_FOUND"


# ==========================================================================
# 무게
# ==========================================================================


class InvalidMeasurement(InvalidInputError):
    default_code = "INVALID_MEASUREMENT"


# ==========================================================================
# Bin 배정
# ==========================================================================


class BinNotFound(NotFoundError):
    default_code = "BIN_NOT_FOUND"


class PackageNotFound(NotFoundError):
    default_code = "PACKAGE_NOT_FOUND"


class BinInactive(InvalidStateError):
    default_code = "BIN_INACTIVE"


class BinWarehouseMismatch(ConstraintViolationError):
    default_code = "BIN_WAREHOUSE_MISMATCH"


class BinCapacityExceeded(ConstraintViolationError):
    default_code = "BIN_CAPACITY_EXCEEDED"


class WeightExceedsLimit(ConstraintViolationError):
    default_code = "WEIGHT_EXCEEDS_LIMIT"


class PackageNotStorable(InvalidStateError):
    default_code = "PACKAGE_NOT_STORABLE"


class NoActiveAssignment(InvalidStateError):
    default_code = "NO_ACTIVE_ASSIGNMENT"


# ==========================================================================
# 보관료
# ==========================================================================


class PackageNotInStorage(InvalidStateError):
    default_code = "PACKAGE_NOT_IN_STORAGE"


class StoragePricingNotFound(NotFoundError):
    default_code = "STORAGE_PRICING_NOT_FOUND"


class ChargeAlreadyInvoiced(InvalidStateError):
    default_code = "CHARGE_ALREADY_INVOICED"


class AmbiguousStoragePricing(AmbiguousError):
    default_code = "AMBIGUOUS_STORAGE_PRICING"


class CurrencyMismatch(InvalidStateError):
    default_code = "CURRENCY_MISMATCH"


class FutureThroughDate(InvalidInputError):
    """아직 지나지 않은 날은 정산할 수 없음"""

    default_code = "FUTURE_THROUGH_DATE"

"""
배송 요율 서비스

견적 계산 순서:
1. 목적지 국가 → Zone (ZoneService)
2. (창고, Zone)에 활성 요율이 하나라도 있는지
3. (창고, Zone, 서비스 타입) 중 기준일에 유효한 요율 1건
4. 최대 중량 확인
5. max(기본요금 + kg당 요금 × 청구중량, 최소요금) → 통화 단위 반올림
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from typing import Any, TypedDict

from django.conf import settings
from django.core.cache import cache
from django.db import transaction
from django.utils import timezone

from ..models import ShippingRate, Warehouse
from ..utils.currency import CurrencyRegistry
from .base import log_service_call
from .exceptions import (
    AmbiguousRate,
    InvalidInputError,
    InvalidQuoteRequest,
    NoRatesForZone,
    OverlappingEffectivePeriod,
    RateNotFound,
    WarehouseNotFound,
    WeightExceedsRateLimit,
)
from .weight_service import WeightService
from .zone_service import ZoneService

logger = logging.getLogger(__name__)

SERVICE_TYPES = [choice for choice, _ in ShippingRate.SERVICE_TYPE_CHOICES]

RATE_TABLE_VERSION_KEY = "logistics:rate_table_version"


class QuoteResult(TypedDict):
    """배송 요금 견적 결과"""

    rate_id: str
    service_type: str
    base_rate: Decimal
    per_kg_rate: Decimal
    weight_charge: Decimal
    min_charge: Decimal
    min_charge_applied: bool
    total: Decimal
    currency: str
    zone_name: str
    warehouse_name: str
    chargeable_weight_kg: Decimal
    as_of_date: date


class RateService:
    """배송 요율 조회 및 견적 계산 서비스"""

    # ==========================================================================
    # 캐시 (요율표 버전 기반 무효화)
    # ==========================================================================

    @staticmethod
    def rate_table_version() -> int:
        """
        현재 요율표 버전

        키가 없으면(최초 실행, 캐시 축출) 현재 시각(ns)으로 새로 시작하므로
        이전에 쓰던 버전 번호로 돌아가지 않습니다.
        """
        version = cache.get(RATE_TABLE_VERSION_KEY)
        if version is None:
            version = time.time_ns()
            if not cache.add(RATE_TABLE_VERSION_KEY, version, timeout=None):
                version = cache.get(RATE_TABLE_VERSION_KEY, version)
        return version

    @staticmethod
    def bump_rate_table_version() -> None:
        """
        요율표 버전 증가

        Zone/국가/요율이 바뀌면 호출되며, 이전 버전 키의 캐시된 견적은 더 이상 조회되지 않습니다.
        """
        try:
            cache.incr(RATE_TABLE_VERSION_KEY)
        except ValueError:
            cache.set(RATE_TABLE_VERSION_KEY, time.time_ns(), timeout=None)

    @staticmethod
    def _quote_cache_key(
        warehouse_id, country_code: str, service_type: str, weight: Decimal, as_of_date: date
    ) -> str:
        return (
            f"logistics:quote:v{RateService.rate_table_version()}:"
            f"{warehouse_id}:{country_code}:{service_type}:{weight}:{as_of_date.isoformat()}"
        )

    # ==========================================================================
    # 견적
    # ==========================================================================

    @staticmethod
    def _validate_request(service_type: str, chargeable_weight_kg: Any) -> Decimal:
        if service_type not in SERVICE_TYPES:
            raise InvalidQuoteRequest(
                f"지원하지 않는 서비스 타입입니다: {service_type}",
                details={"service_type": service_type, "allowed": SERVICE_TYPES},
            )
        try:
            weight = Decimal(str(chargeable_weight_kg))
        except ArithmeticError:
            weight = None
        if weight is None or not weight.is_finite() or weight <= 0:
            raise InvalidQuoteRequest(
                "청구중량은 0보다 커야 합니다.",
                details={"chargeable_weight_kg": str(chargeable_weight_kg)},
            )
        return weight

    @staticmethod
    @log_service_call
    def quote(
        warehouse_id,
        country_code: str,
        service_type: str,
        chargeable_weight_kg: Decimal,
        as_of_date: date | None = None,
    ) -> QuoteResult:
        """
        배송 요금 견적

        같은 입력과 같은 요율표 버전이면 항상 같은 결과를 반환하므로 캐시합니다.

        Args:
            warehouse_id: 출고 창고 ID
            country_code: 목적지 국가 코드
            service_type: economy / standard / express
            chargeable_weight_kg: 청구중량(kg)
            as_of_date: 요율 기준일 (기본: 오늘)

        Returns:
            QuoteResult: 견적 결과

        Raises:
            ZoneNotFound, AmbiguousZone: Zone 조회 실패
            InvalidQuoteRequest: 서비스 타입/중량 오류
            NoRatesForZone: 해당 창고에 이 Zone 요율이 전혀 없음
            RateNotFound: 서비스 타입/기준일에 맞는 요율 없음
            AmbiguousRate: 유효 요율이 2건 이상 (데이터 정합성 오류)
            WeightExceedsRateLimit: 요율 최대 중량 초과
        """
        zone = ZoneService.resolve_zone(country_code)
        weight = RateService._validate_request(service_type, chargeable_weight_kg)
        as_of_date = as_of_date or timezone.localdate()
        code = ZoneService.normalize_country_code(country_code)

        cache_key = RateService._quote_cache_key(warehouse_id, code, service_type, weight, as_of_date)
        cached = cache.get(cache_key)
        if cached is not None:
            return cached

        zone_rates = ShippingRate.objects.filter(warehouse_id=warehouse_id, zone=zone, is_active=True)
        if not zone_rates.exists():
            raise NoRatesForZone(
                f"이 창고에는 '{zone.name}' Zone 요율이 없습니다.",
                details={"warehouse_id": str(warehouse_id), "zone": zone.name},
            )

        rates = list(
            zone_rates.filter(ShippingRate.effective_on_q(as_of_date), service_type=service_type)
            .select_related("warehouse")[:2]
        )
        if not rates:
            raise RateNotFound(
                f"'{zone.name}' Zone의 {service_type} 요율이 {as_of_date}에 없습니다.",
                details={
                    "warehouse_id": str(warehouse_id),
                    "zone": zone.name,
                    "service_type": service_type,
                    "as_of_date": as_of_date.isoformat(),
                },
            )
        if len(rates) > 1:
            raise AmbiguousRate(
                "기준일에 유효한 요율이 2건 이상입니다.",
                details={"rate_ids": [str(r.id) for r in rates], "as_of_date": as_of_date.isoformat()},
            )

        rate = rates[0]
        if rate.max_weight_kg is not None and weight > rate.max_weight_kg:
            raise WeightExceedsRateLimit(
                f"{service_type} 최대 중량({rate.max_weight_kg}kg)을 초과했습니다.",
                details={
                    "chargeable_weight_kg": str(weight),
                    "max_weight_kg": str(rate.max_weight_kg),
                    "service_type": service_type,
                },
            )

        result = RateService._calculate(rate, weight, as_of_date, zone.name)
        cache.set(cache_key, result, settings.RATE_QUOTE_CACHE_TIMEOUT)
        return result

    @staticmethod
    def _calculate(rate: ShippingRate, weight: Decimal, as_of_date: date, zone_name: str) -> QuoteResult:
        raw_weight_charge = rate.per_kg_rate * weight
        subtotal = rate.base_rate + raw_weight_charge
        min_charge_applied = subtotal < rate.min_charge

        return {
            "rate_id": str(rate.id),
            "service_type": rate.service_type,
            "base_rate": rate.base_rate,
            "per_kg_rate": rate.per_kg_rate,
            "weight_charge": CurrencyRegistry.round(raw_weight_charge, rate.currency),
            "min_charge": rate.min_charge,
            "min_charge_applied": min_charge_applied,
            "total": CurrencyRegistry.round(max(subtotal, rate.min_charge), rate.currency),
            "currency": rate.currency,
            "zone_name": zone_name,
            "warehouse_name": rate.warehouse.name,
            "chargeable_weight_kg": weight,
            "as_of_date": as_of_date,
        }

    @staticmethod
    @log_service_call
    def available_services(
        warehouse_id,
        country_code: str,
        chargeable_weight_kg: Decimal,
        as_of_date: date | None = None,
    ) -> list[QuoteResult]:
        """
        이용 가능한 서비스 타입별 견적 목록

        요율이 없거나 최대 중량을 넘는 서비스 타입은 제외합니다.
        Zone/창고 단위 실패(ZoneNotFound, NoRatesForZone)는 그대로 전파됩니다.
        """
        results: list[QuoteResult] = []
        for service_type in SERVICE_TYPES:
            try:
                results.append(
                    RateService.quote(warehouse_id, country_code, service_type, chargeable_weight_kg, as_of_date)
                )
            except (RateNotFound, WeightExceedsRateLimit):
                continue
        return sorted(results, key=lambda r: r["total"])

    @staticmethod
    @log_service_call
    def quote_for_packages(
        warehouse_id,
        country_code: str,
        service_type: str,
        packages: Iterable[Any],
        as_of_date: date | None = None,
    ) -> QuoteResult:
        """
        여러 화물(합배송)의 견적

        화물별 청구중량의 합계로 견적을 계산합니다.
        """
        weight = WeightService.aggregate_chargeable_weight(packages)
        return RateService.quote(warehouse_id, country_code, service_type, weight, as_of_date)

    # ==========================================================================
    # 요율 설정 변경 (쓰기 시점 유효기간 중복 검사)
    # ==========================================================================

    EDITABLE_FIELDS = {
        "base_rate",
        "per_kg_rate",
        "min_charge",
        "max_weight_kg",
        "currency",
        "is_active",
        "effective_from",
        "effective_until",
    }

    @staticmethod
    def _lock_warehouse(warehouse_id) -> Warehouse:
        try:
            return Warehouse.objects.select_for_update().get(pk=warehouse_id)
        except Warehouse.DoesNotExist:
            raise WarehouseNotFound(
                "창고를 찾을 수 없습니다.", details={"warehouse_id": str(warehouse_id)}
            ) from None

    @staticmethod
    def _check_overlap(rate: ShippingRate) -> None:
        if rate.effective_until is not None and rate.effective_until < rate.effective_from:
            raise InvalidInputError(
                "종료일은 시작일보다 빠를 수 없습니다.",
                code="INVALID_EFFECTIVE_PERIOD",
                details={
                    "effective_from": rate.effective_from.isoformat(),
                    "effective_until": rate.effective_until.isoformat(),
                },
            )
        if not rate.is_active:
            return

        overlapping = ShippingRate.find_overlapping(
            rate.warehouse_id,
            rate.zone_id,
            rate.service_type,
            rate.effective_from,
            rate.effective_until,
            exclude_pk=None if rate._state.adding else rate.pk,
        )
        conflict_ids = [str(pk) for pk in overlapping.values_list("id", flat=True)]
        if conflict_ids:
            raise OverlappingEffectivePeriod(
                "같은 창고/Zone/서비스 타입에 유효기간이 겹치는 활성 요율이 있습니다.",
                details={"conflicting_rate_ids": conflict_ids},
            )

    @staticmethod
    @log_service_call
    @transaction.atomic
    def create_rate(*, warehouse_id, zone_id, service_type: str, **fields: Any) -> ShippingRate:
        """
        요율 등록

        창고 행을 잠가 같은 창고의 요율 변경을 직렬화한 뒤 유효기간 중복을 검사합니다.

        Raises:
            WarehouseNotFound: 창고 없음
            InvalidQuoteRequest: 지원하지 않는 서비스 타입
            OverlappingEffectivePeriod: 유효기간 중복
        """
        if service_type not in SERVICE_TYPES:
            raise InvalidQuoteRequest(
                f"지원하지 않는 서비스 타입입니다: {service_type}",
                details={"service_type": service_type},
            )
        unknown = set(fields) - RateService.EDITABLE_FIELDS
        if unknown:
            raise InvalidInputError("알 수 없는 필드입니다.", details={"fields": sorted(unknown)})

        RateService._lock_warehouse(warehouse_id)

        rate = ShippingRate(warehouse_id=warehouse_id, zone_id=zone_id, service_type=service_type, **fields)
        RateService._check_overlap(rate)
        rate.save()

        logger.info(
            "요율 등록 | rate=%s, warehouse=%s, zone=%s, service=%s, from=%s, until=%s",
            rate.id,
            warehouse_id,
            zone_id,
            service_type,
            rate.effective_from,
            rate.effective_until,
        )
        return rate

    @staticmethod
    @log_service_call
    @transaction.atomic
    def update_rate(rate_id, **fields: Any) -> ShippingRate:
        """
        요율 수정 (창고/Zone/서비스 타입은 변경 불가)

        Raises:
            RateNotFound: 요율 없음
            OverlappingEffectivePeriod: 수정 후 유효기간 중복
        """
        unknown = set(fields) - RateService.EDITABLE_FIELDS
        if unknown:
            raise InvalidInputError("수정할 수 없는 필드입니다.", details={"fields": sorted(unknown)})

        warehouse_id = ShippingRate.objects.filter(pk=rate_id).values_list("warehouse_id", flat=True).first()
        if warehouse_id is None:
            raise RateNotFound("요율을 찾을 수 없습니다.", details={"rate_id": str(rate_id)})

        RateService._lock_warehouse(warehouse_id)
        rate = ShippingRate.objects.select_for_update().get(pk=rate_id)

        for name, value in fields.items():
            setattr(rate, name, value)
        RateService._check_overlap(rate)
        rate.save()

        logger.info("요율 수정 | rate=%s, fields=%s", rate.id, sorted(fields))
        return rate

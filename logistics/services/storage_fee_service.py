"""
보관료 정산 서비스

날짜 규칙: 시작일 포함, 종료일 제외. StorageCharge.charge_to_date는 청구되지 않은 첫 날짜입니다.

정산 절차 (화물 1건):
1. 화물 행 잠금 (배정/해제와 직렬화)
2. 마지막 청구 행의 charge_to_date부터 through_date 전날까지가 정산 구간
3. Bin 배정 구간을 정산 구간으로 자르고, 보관 요금표 유효기간으로 다시 분할
4. 무료 보관일은 입고일부터 화물당 한 번만 적용
5. 분할 구간마다 StorageCharge 1행 (무료 구간의 0원 행 포함)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, TypedDict

from django.conf import settings
from django.db import transaction
from django.db.models import Q, QuerySet
from django.utils import timezone

from ..models import BinLocation, Package, StorageCharge, StoragePricing, Warehouse
from ..utils.currency import CurrencyRegistry
from .base import ServiceError, log_service_call
from .exceptions import (
    AmbiguousStoragePricing,
    ChargeAlreadyInvoiced,
    CurrencyMismatch,
    FutureThroughDate,
    InvalidInputError,
    NotFoundError,
    OverlappingEffectivePeriod,
    PackageNotFound,
    PackageNotInStorage,
    StoragePricingNotFound,
    WarehouseNotFound,
)

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


class AccrualSummary(TypedDict):
    """일괄 정산 결과"""

    through_date: date
    processed: int
    charges_created: int
    failed: int
    failures: list[dict[str, str]]


class StorageEstimate(TypedDict):
    """예상 보관료"""

    estimated_fee: Decimal
    currency: str
    free_days: int
    daily_rate: Decimal
    chargeable_days: int
    package_count: int
    pricing_id: str | None


class StorageFeeService:
    """보관료 계산/정산 서비스"""

    # ==========================================================================
    # 요금표 조회
    # ==========================================================================

    @staticmethod
    def _resolve_through_date(through_date: date | None) -> date:
        """정산 종료일 기본값(오늘) 적용, 오늘 이후는 거부 (미포함이므로 오늘이면 어제까지 정산)"""
        today = timezone.localdate()
        if through_date is None:
            return today
        if through_date > today:
            raise FutureThroughDate(
                "정산 종료일은 오늘 이후일 수 없습니다.",
                details={"through_date": through_date.isoformat(), "today": today.isoformat()},
            )
        return through_date

    @staticmethod
    def _pricings_for(warehouse_id, start: date, end: date) -> tuple[list[StoragePricing], list[StoragePricing]]:
        """
        [start, end) 구간에 걸치는 활성 요금표

        Returns:
            (창고 전용 요금표, 기본 요금표)
        """
        rows = list(
            StoragePricing.objects.filter(
                StoragePricing.overlap_q(start, end - ONE_DAY),
                Q(warehouse_id=warehouse_id) | Q(warehouse__isnull=True),
                is_active=True,
            ).order_by("effective_from")
        )
        warehouse_rows = [p for p in rows if p.warehouse_id is not None]
        default_rows = [p for p in rows if p.warehouse_id is None]
        return warehouse_rows, default_rows

    @staticmethod
    def _pricing_on(day: date, pricings: list[StoragePricing]) -> StoragePricing | None:
        covering = [p for p in pricings if p.covers(day)]
        if len(covering) > 1:
            raise AmbiguousStoragePricing(
                f"{day}에 유효한 보관 요금표가 2건 이상입니다.",
                details={"date": day.isoformat(), "pricing_ids": [str(p.id) for p in covering]},
            )
        return covering[0] if covering else None

    @staticmethod
    def _split_by_pricing(
        start: date,
        end: date,
        warehouse_pricings: list[StoragePricing],
        default_pricings: list[StoragePricing],
    ) -> list[tuple[date, date, StoragePricing]]:
        """
        [start, end)를 요금표 유효기간 경계로 분할

        창고 전용 요금표가 우선이며, 없는 날짜는 기본 요금표로 채웁니다.

        Raises:
            StoragePricingNotFound: 어느 요금표에도 속하지 않는 날짜가 있음
        """
        pieces: list[tuple[date, date, StoragePricing]] = []
        day = start
        while day < end:
            pricing = StorageFeeService._pricing_on(day, warehouse_pricings)
            candidates = warehouse_pricings
            if pricing is None:
                pricing = StorageFeeService._pricing_on(day, default_pricings)
                if pricing is None:
                    raise StoragePricingNotFound(
                        f"{day}에 적용할 보관 요금표가 없습니다.",
                        details={"date": day.isoformat()},
                    )
                # 기본 요금표 구간은 창고 전용 요금표가 시작되는 날에서도 끊음
                candidates = warehouse_pricings + default_pricings

            # 다른 요금표 시작일에서 분할
            boundaries = [end] + [p.effective_from for p in candidates if p.effective_from > day]
            if pricing.effective_until is not None:
                boundaries.append(pricing.effective_until + ONE_DAY)

            piece_end = min(boundaries)
            pieces.append((day, piece_end, pricing))
            day = piece_end
        return pieces

    # ==========================================================================
    # 정산
    # ==========================================================================

    @staticmethod
    def _build_charge(
        package: Package,
        bin_location: BinLocation,
        start: date,
        end: date,
        pricing: StoragePricing,
        received_date: date,
    ) -> StorageCharge:
        elapsed = (end - start).days
        days_since_received = max(0, (start - received_date).days)
        remaining_free = max(0, pricing.free_days - days_since_received)
        billable = max(0, elapsed - remaining_free)

        currency = pricing.currency
        if bin_location.daily_premium and bin_location.currency != currency:
            raise CurrencyMismatch(
                "Bin 할증 통화와 보관 요금표 통화가 다릅니다.",
                details={"bin_currency": bin_location.currency, "pricing_currency": currency},
            )

        base_fee = CurrencyRegistry.round(pricing.daily_rate_after_free * billable, currency)
        bin_fee = CurrencyRegistry.round(bin_location.daily_premium * billable, currency)

        return StorageCharge(
            package=package,
            bin_location=bin_location,
            charge_from_date=start,
            charge_to_date=end,
            days_charged=elapsed,
            base_storage_fee=base_fee,
            bin_location_fee=bin_fee,
            total_storage_fee=base_fee + bin_fee,
            currency=currency,
            daily_rate=pricing.daily_rate_after_free,
            free_days_applied=min(elapsed, remaining_free),
        )

    @staticmethod
    @log_service_call
    @transaction.atomic
    def accrue_charges(package_id, through_date: date | None = None) -> list[StorageCharge]:
        """
        화물 1건의 보관료 정산

        마지막 청구 이후부터 through_date 전날까지만 계산하므로 같은 through_date로
        다시 실행해도 중복 행이 생기지 않습니다.

        Args:
            package_id: 화물 ID
            through_date: 정산 종료일 (제외, 기본: 오늘)

        Returns:
            list[StorageCharge]: 새로 생성된 청구 행

        Raises:
            PackageNotFound: 화물 없음
            PackageNotInStorage: Bin 배정 이력이 없음
            StoragePricingNotFound: 요금표가 없는 날짜가 있음
            AmbiguousStoragePricing: 같은 날짜에 요금표가 2건 이상
            CurrencyMismatch: Bin 할증 통화와 요금표 통화가 다름
            FutureThroughDate: 정산 종료일이 오늘 이후
        """
        through_date = StorageFeeService._resolve_through_date(through_date)

        package = Package.objects.select_for_update().filter(pk=package_id).first()
        if package is None:
            raise PackageNotFound("화물을 찾을 수 없습니다.", details={"package_id": str(package_id)})

        assignments = list(package.bin_assignments.select_related("bin").order_by("assigned_at"))
        if not assignments:
            raise PackageNotInStorage(
                "Bin에 보관된 적이 없는 화물입니다.",
                details={"package_id": str(package.id)},
            )

        received_date = (
            timezone.localdate(package.received_at)
            if package.received_at
            else timezone.localdate(assignments[0].assigned_at)
        )

        last_charge = package.storage_charges.order_by("-charge_to_date").first()
        cursor = max(received_date, last_charge.charge_to_date) if last_charge else received_date

        # 배정 구간을 정산 구간으로 자름
        segments: list[tuple[date, date, BinLocation]] = []
        for assignment in assignments:
            start = max(timezone.localdate(assignment.assigned_at), cursor)
            end = timezone.localdate(assignment.removed_at) if assignment.removed_at else through_date
            end = min(end, through_date)
            if start >= end:
                continue
            segments.append((start, end, assignment.bin))
            cursor = end

        if not segments:
            return []

        warehouse_pricings, default_pricings = StorageFeeService._pricings_for(
            package.warehouse_id, segments[0][0], segments[-1][1]
        )

        charges: list[StorageCharge] = []
        for start, end, bin_location in segments:
            for piece_start, piece_end, pricing in StorageFeeService._split_by_pricing(
                start, end, warehouse_pricings, default_pricings
            ):
                charge = StorageFeeService._build_charge(
                    package, bin_location, piece_start, piece_end, pricing, received_date
                )
                charge.save()
                charges.append(charge)

        logger.info(
            "보관료 정산 | package=%s, through=%s, rows=%d, total=%s",
            package.internal_id,
            through_date,
            len(charges),
            sum((c.total_storage_fee for c in charges), Decimal("0")),
        )
        return charges

    @staticmethod
    def billable_package_ids() -> QuerySet:
        """
        일괄 정산 대상 화물 ID

        입고일이 있고, Bin 배정 이력이 있으며, 보관 종료 상태가 아닌 화물
        """
        return (
            Package.objects.filter(received_at__isnull=False, bin_assignments__isnull=False)
            .exclude(status__in=settings.STORAGE_BILLING_TERMINAL_STATUSES)
            .distinct()
            .order_by("id")
            .values_list("id", flat=True)
        )

    @staticmethod
    @log_service_call
    def accrue_all(through_date: date | None = None, package_ids: Iterable[Any] | None = None) -> AccrualSummary:
        """
        보관료 일괄 정산

        화물마다 별도 트랜잭션으로 처리하며, 실패한 화물은 기록 후 계속 진행합니다.

        Args:
            through_date: 정산 종료일 (제외, 기본: 오늘)
            package_ids: 대상 화물 ID (기본: billable_package_ids())
        """
        through_date = StorageFeeService._resolve_through_date(through_date)
        if package_ids is None:
            package_ids = StorageFeeService.billable_package_ids()

        summary: AccrualSummary = {
            "through_date": through_date,
            "processed": 0,
            "charges_created": 0,
            "failed": 0,
            "failures": [],
        }

        for package_id in package_ids:
            try:
                charges = StorageFeeService.accrue_charges(package_id, through_date)
            except ServiceError as e:
                summary["failed"] += 1
                summary["failures"].append({"package_id": str(package_id), "code": e.code, "message": e.message})
                continue
            except Exception as e:
                logger.error("보관료 정산 실패 | package=%s, error=%s", package_id, str(e), exc_info=True)
                summary["failed"] += 1
                summary["failures"].append({"package_id": str(package_id), "code": "UNEXPECTED", "message": str(e)})
                continue

            summary["processed"] += 1
            summary["charges_created"] += len(charges)

        logger.info(
            "보관료 일괄 정산 완료 | through=%s, processed=%d, charges=%d, failed=%d",
            through_date,
            summary["processed"],
            summary["charges_created"],
            summary["failed"],
        )
        return summary

    # ==========================================================================
    # 청구서 연동
    # ==========================================================================

    @staticmethod
    def get_unbilled_charges(package_id=None) -> QuerySet:
        """청구서에 포함되지 않은 보관료"""
        queryset = StorageCharge.objects.select_related("package", "bin_location").filter(is_invoiced=False)
        if package_id is not None:
            queryset = queryset.filter(package_id=package_id)
        return queryset.order_by("package_id", "charge_from_date")

    @staticmethod
    @log_service_call
    @transaction.atomic
    def mark_invoiced(charge_ids: Iterable[Any], invoice_id: str) -> int:
        """
        보관료를 청구서에 포함 처리

        하나라도 이미 청구되었거나 없으면 전체를 거부합니다.

        Returns:
            int: 처리된 행 수

        Raises:
            InvalidInputError: 청구서 번호 없음
            NotFoundError: 존재하지 않는 보관료 ID
            ChargeAlreadyInvoiced: 이미 청구된 보관료 포함
        """
        if not invoice_id:
            raise InvalidInputError("청구서 번호가 필요합니다.", code="INVALID_INVOICE_ID")

        ids = {str(pk) for pk in charge_ids}
        charges = list(StorageCharge.objects.select_for_update().filter(pk__in=ids).order_by("id"))

        missing = ids - {str(c.pk) for c in charges}
        if missing:
            raise NotFoundError(
                "존재하지 않는 보관료가 포함되어 있습니다.",
                code="STORAGE_CHARGE_NOT_FOUND",
                details={"charge_ids": sorted(missing)},
            )

        invoiced = [str(c.pk) for c in charges if c.is_invoiced]
        if invoiced:
            raise ChargeAlreadyInvoiced(
                "이미 청구서에 포함된 보관료가 있습니다.",
                details={"charge_ids": invoiced},
            )

        updated = StorageCharge.objects.filter(pk__in=ids, is_invoiced=False).update(
            is_invoiced=True, invoice_id=invoice_id
        )
        logger.info("보관료 청구 처리 | invoice=%s, rows=%d", invoice_id, updated)
        return updated

    # ==========================================================================
    # 견적 / 설정
    # ==========================================================================

    @staticmethod
    @log_service_call
    def estimate_storage_fee(
        warehouse_id,
        package_count: int,
        projected_days: int,
        as_of_date: date | None = None,
    ) -> StorageEstimate:
        """
        예상 보관료 (견적용)

        요금표가 없으면 설정 기본값(무료 7일, 일 2.00)으로 계산합니다.
        Bin 할증은 포함하지 않습니다.
        """
        if package_count < 0 or projected_days < 0:
            raise InvalidInputError(
                "화물 수와 예상 보관일은 0 이상이어야 합니다.",
                details={"package_count": package_count, "projected_days": projected_days},
            )

        as_of_date = as_of_date or timezone.localdate()
        warehouse_pricings, default_pricings = StorageFeeService._pricings_for(
            warehouse_id, as_of_date, as_of_date + ONE_DAY
        )
        pricing = StorageFeeService._pricing_on(as_of_date, warehouse_pricings) or StorageFeeService._pricing_on(
            as_of_date, default_pricings
        )

        if pricing is not None:
            free_days = pricing.free_days
            daily_rate = pricing.daily_rate_after_free
            currency = pricing.currency
        else:
            free_days = settings.STORAGE_ESTIMATE_DEFAULT_FREE_DAYS
            daily_rate = Decimal(settings.STORAGE_ESTIMATE_DEFAULT_DAILY_RATE)
            currency = settings.DEFAULT_CURRENCY

        chargeable_days = max(0, projected_days - free_days)
        return {
            "estimated_fee": CurrencyRegistry.round(daily_rate * chargeable_days * package_count, currency),
            "currency": currency,
            "free_days": free_days,
            "daily_rate": daily_rate,
            "chargeable_days": chargeable_days,
            "package_count": package_count,
            "pricing_id": str(pricing.id) if pricing else None,
        }

    # ==========================================================================
    # 보관 요금표 설정 변경 (쓰기 시점 유효기간 중복 검사)
    # ==========================================================================

    EDITABLE_PRICING_FIELDS = {
        "free_days",
        "daily_rate_after_free",
        "currency",
        "is_active",
        "effective_from",
        "effective_until",
        "notes",
        "created_by",
    }

    @staticmethod
    def _lock_pricing_scope(warehouse_id) -> None:
        """창고 전용이면 창고 행을, 기본 요금표면 기존 기본 요금표 행을 잠금"""
        if warehouse_id is not None:
            if not Warehouse.objects.select_for_update().filter(pk=warehouse_id).exists():
                raise WarehouseNotFound("창고를 찾을 수 없습니다.", details={"warehouse_id": str(warehouse_id)})
        else:
            list(StoragePricing.objects.select_for_update().filter(warehouse__isnull=True).order_by("id"))

    @staticmethod
    def _check_pricing_overlap(pricing: StoragePricing) -> None:
        if pricing.effective_until is not None and pricing.effective_until < pricing.effective_from:
            raise InvalidInputError(
                "종료일은 시작일보다 빠를 수 없습니다.",
                code="INVALID_EFFECTIVE_PERIOD",
                details={
                    "effective_from": pricing.effective_from.isoformat(),
                    "effective_until": pricing.effective_until.isoformat(),
                },
            )
        if not pricing.is_active:
            return

        overlapping = StoragePricing.find_overlapping(
            pricing.warehouse_id,
            pricing.effective_from,
            pricing.effective_until,
            exclude_pk=None if pricing._state.adding else pricing.pk,
        )
        conflict_ids = [str(pk) for pk in overlapping.values_list("id", flat=True)]
        if conflict_ids:
            raise OverlappingEffectivePeriod(
                "같은 범위에 유효기간이 겹치는 활성 보관 요금표가 있습니다.",
                details={"conflicting_pricing_ids": conflict_ids},
            )

    @staticmethod
    @log_service_call
    @transaction.atomic
    def create_pricing(*, warehouse_id=None, **fields: Any) -> StoragePricing:
        """
        보관 요금표 등록

        창고 전용이면 창고 행을, 기본 요금표면 기존 기본 요금표 행을 잠근 뒤
        같은 범위의 활성 요금표와 유효기간이 겹치는지 검사합니다.

        Raises:
            WarehouseNotFound: 창고 없음
            InvalidInputError: 알 수 없는 필드, 종료일이 시작일보다 빠름
            OverlappingEffectivePeriod: 유효기간 중복
        """
        unknown = set(fields) - StorageFeeService.EDITABLE_PRICING_FIELDS
        if unknown:
            raise InvalidInputError("알 수 없는 필드입니다.", details={"fields": sorted(unknown)})

        StorageFeeService._lock_pricing_scope(warehouse_id)

        pricing = StoragePricing(warehouse_id=warehouse_id, **fields)
        StorageFeeService._check_pricing_overlap(pricing)
        pricing.save()

        logger.info(
            "보관 요금표 등록 | pricing=%s, warehouse=%s, from=%s, until=%s, free_days=%s, daily=%s",
            pricing.id,
            warehouse_id or "default",
            pricing.effective_from,
            pricing.effective_until,
            pricing.free_days,
            pricing.daily_rate_after_free,
        )
        return pricing

    @staticmethod
    @log_service_call
    @transaction.atomic
    def update_pricing(pricing_id, **fields: Any) -> StoragePricing:
        """
        보관 요금표 수정 (적용 창고는 변경 불가)

        이미 생성된 청구 행은 다시 계산하지 않습니다.

        Raises:
            StoragePricingNotFound: 요금표 없음
            InvalidInputError: 수정할 수 없는 필드, 종료일이 시작일보다 빠름
            OverlappingEffectivePeriod: 수정 후 유효기간 중복
        """
        unknown = set(fields) - StorageFeeService.EDITABLE_PRICING_FIELDS
        if unknown:
            raise InvalidInputError("수정할 수 없는 필드입니다.", details={"fields": sorted(unknown)})

        scope = StoragePricing.objects.filter(pk=pricing_id).values_list("warehouse_id", flat=True)
        if not scope.exists():
            raise StoragePricingNotFound("보관 요금표를 찾을 수 없습니다.", details={"pricing_id": str(pricing_id)})

        StorageFeeService._lock_pricing_scope(scope.first())
        pricing = StoragePricing.objects.select_for_update().get(pk=pricing_id)

        for name, value in fields.items():
            setattr(pricing, name, value)
        StorageFeeService._check_pricing_overlap(pricing)
        pricing.save()

        logger.info("보관 요금표 수정 | pricing=%s, fields=%s", pricing.id, sorted(fields))
        return pricing

"""
Bin 배정 서비스

화물 상태: 미배정 → 배정 → 해제 (해제 후 다시 배정 가능)

잠금 순서: 화물 행 → Bin 행(id 순). 보관료 정산도 화물 행을 먼저 잠그므로
같은 화물의 배정/해제/정산은 서로 직렬화됩니다.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import F, Sum
from django.utils import timezone

from ..models import BinLocation, Package, PackageBinAssignment
from .base import ServiceError, log_service_call
from .exceptions import (
    BinCapacityExceeded,
    BinInactive,
    BinNotFound,
    BinWarehouseMismatch,
    NoActiveAssignment,
    PackageNotFound,
    PackageNotStorable,
    WeightExceedsLimit,
)

logger = logging.getLogger(__name__)

DEFAULT_ASSIGNMENT_REASON = "manual_assignment"
DEFAULT_REMOVAL_REASON = "manual_removal"
MOVED_REASON = "moved"


class BinAssignmentService:
    """화물 Bin 배정/해제 서비스"""

    @staticmethod
    def _lock_package(package_id) -> Package:
        package = Package.objects.select_for_update().filter(pk=package_id).first()
        if package is None:
            raise PackageNotFound("화물을 찾을 수 없습니다.", details={"package_id": str(package_id)})
        return package

    @staticmethod
    def _open_assignment(package: Package) -> PackageBinAssignment | None:
        return PackageBinAssignment.objects.filter(package=package, removed_at__isnull=True).first()

    @staticmethod
    def _close(
        assignment: PackageBinAssignment,
        reason: str,
        actor,
        notes: str = "",
    ) -> PackageBinAssignment:
        """열린 배정을 닫고 Bin 적재 수를 1 감소"""
        assignment.removed_at = timezone.now()
        assignment.removed_by = actor
        assignment.removal_reason = reason
        if notes:
            assignment.notes = f"{assignment.notes}\n{notes}".strip()
        assignment.save(update_fields=["removed_at", "removed_by", "removal_reason", "notes"])

        BinLocation.objects.filter(pk=assignment.bin_id).update(
            current_occupancy=F("current_occupancy") - 1
        )
        return assignment

    @staticmethod
    @log_service_call
    @transaction.atomic
    def assign(
        package_id,
        bin_id,
        reason: str = DEFAULT_ASSIGNMENT_REASON,
        actor=None,
        notes: str = "",
    ) -> PackageBinAssignment:
        """
        화물을 Bin에 배정

        처리 순서:
        1. Bin/화물 존재 확인, 화물 행 잠금
        2. 화물 상태, Bin 활성 여부, 창고 일치 확인
        3. 기존 열린 배정이 있으면 닫기 (사유: moved)
        4. Bin 행 잠금 상태에서 용량/누적 무게 확인
        5. 새 배정 생성 + 적재 수 F() 증가

        Args:
            package_id: 화물 ID
            bin_id: Bin ID
            reason: 배정 사유
            actor: 처리자 (User 또는 None)
            notes: 메모

        Returns:
            PackageBinAssignment: 새로 열린 배정

        Raises:
            BinNotFound, PackageNotFound: 대상 없음
            PackageNotStorable: 출고/폐기 등 종료 상태 화물
            BinInactive: 비활성 Bin
            BinWarehouseMismatch: 다른 창고의 Bin
            BinCapacityExceeded: Bin 가득 참
            WeightExceedsLimit: Bin 누적 무게 한도 초과
        """
        if not BinLocation.objects.filter(pk=bin_id).exists():
            raise BinNotFound("Bin을 찾을 수 없습니다.", details={"bin_id": str(bin_id)})

        package = BinAssignmentService._lock_package(package_id)

        if package.status in settings.STORAGE_BILLING_TERMINAL_STATUSES:
            raise PackageNotStorable(
                f"'{package.get_status_display()}' 상태의 화물은 보관할 수 없습니다.",
                details={"package_id": str(package.id), "status": package.status},
            )

        previous = BinAssignmentService._open_assignment(package)

        # Bin 행 잠금 (id 순서 고정으로 교착 방지)
        bin_ids = {bin_id} | ({previous.bin_id} if previous else set())
        locked_bins = {
            str(b.pk): b
            for b in BinLocation.objects.select_for_update().filter(pk__in=bin_ids).order_by("id")
        }
        bin_location = locked_bins.get(str(bin_id))
        if bin_location is None:
            raise BinNotFound("Bin을 찾을 수 없습니다.", details={"bin_id": str(bin_id)})

        if not bin_location.is_active:
            raise BinInactive(
                f"비활성 Bin입니다: {bin_location.bin_code}",
                details={"bin_id": str(bin_location.id)},
            )

        if bin_location.warehouse_id != package.warehouse_id:
            raise BinWarehouseMismatch(
                "화물과 다른 창고의 Bin입니다.",
                details={
                    "package_warehouse_id": str(package.warehouse_id),
                    "bin_warehouse_id": str(bin_location.warehouse_id),
                },
            )

        if previous:
            BinAssignmentService._close(previous, MOVED_REASON, actor)
            logger.info(
                "기존 배정 해제(이동) | package=%s, from_bin=%s, to_bin=%s",
                package.internal_id,
                previous.bin_id,
                bin_location.id,
            )
            bin_location.refresh_from_db(fields=["current_occupancy"])

        if bin_location.current_occupancy >= bin_location.max_capacity:
            raise BinCapacityExceeded(
                f"Bin {bin_location.bin_code}의 수용 한도를 초과했습니다.",
                details={
                    "bin_id": str(bin_location.id),
                    "current_occupancy": bin_location.current_occupancy,
                    "max_capacity": bin_location.max_capacity,
                },
            )

        if bin_location.max_weight_kg is not None:
            current_weight = (
                Package.objects.filter(
                    bin_assignments__bin=bin_location,
                    bin_assignments__removed_at__isnull=True,
                ).aggregate(total=Sum("weight_actual_kg"))["total"]
                or Decimal("0")
            )
            new_total = current_weight + (package.weight_actual_kg or Decimal("0"))
            if new_total > bin_location.max_weight_kg:
                raise WeightExceedsLimit(
                    f"Bin {bin_location.bin_code}의 무게 한도를 초과했습니다.",
                    details={
                        "bin_id": str(bin_location.id),
                        "current_weight_kg": str(current_weight),
                        "package_weight_kg": str(package.weight_actual_kg or 0),
                        "max_weight_kg": str(bin_location.max_weight_kg),
                    },
                )

        assignment = PackageBinAssignment.objects.create(
            package=package,
            bin=bin_location,
            assigned_at=timezone.now(),
            assigned_by=actor,
            assignment_reason=reason or DEFAULT_ASSIGNMENT_REASON,
            notes=notes,
        )
        BinLocation.objects.filter(pk=bin_location.pk).update(current_occupancy=F("current_occupancy") + 1)

        logger.info(
            "Bin 배정 | package=%s, bin=%s, reason=%s",
            package.internal_id,
            bin_location.bin_code,
            assignment.assignment_reason,
        )
        return assignment

    @staticmethod
    @log_service_call
    @transaction.atomic
    def remove(
        package_id,
        reason: str = DEFAULT_REMOVAL_REASON,
        actor=None,
        notes: str = "",
    ) -> PackageBinAssignment:
        """
        화물 Bin 배정 해제

        해제 후 해제일(제외)까지 보관료를 정산합니다.
        요금표 누락/중복, 통화 불일치 등으로 정산할 수 없으면 로그만 남기고 해제는 유지합니다.

        Raises:
            PackageNotFound: 화물 없음
            NoActiveAssignment: 열린 배정 없음
        """
        from .storage_fee_service import StorageFeeService

        package = BinAssignmentService._lock_package(package_id)

        assignment = BinAssignmentService._open_assignment(package)
        if assignment is None:
            raise NoActiveAssignment(
                "배정된 Bin이 없는 화물입니다.",
                details={"package_id": str(package.id)},
            )

        BinLocation.objects.select_for_update().get(pk=assignment.bin_id)
        BinAssignmentService._close(assignment, reason or DEFAULT_REMOVAL_REASON, actor, notes)

        logger.info(
            "Bin 배정 해제 | package=%s, bin=%s, reason=%s",
            package.internal_id,
            assignment.bin_id,
            assignment.removal_reason,
        )

        # 정산은 savepoint 안에서 실행되므로 실패해도 해제는 롤백되지 않음
        try:
            StorageFeeService.accrue_charges(package.id, timezone.localdate(assignment.removed_at))
        except ServiceError as e:
            log = logger.error if e.fatal else logger.warning
            log(
                "해제 시 보관료 정산 생략 | package=%s, code=%s, reason=%s",
                package.internal_id,
                e.code,
                e.message,
            )

        return assignment

    @staticmethod
    def current_assignment(package_id) -> PackageBinAssignment | None:
        """현재 열린 배정 (없으면 None)"""
        return (
            PackageBinAssignment.objects.select_related("bin")
            .filter(package_id=package_id, removed_at__isnull=True)
            .first()
        )

    @staticmethod
    def history(package_id) -> list[PackageBinAssignment]:
        """배정 이력 (최근 순)"""
        return list(
            PackageBinAssignment.objects.select_related("bin", "assigned_by", "removed_by")
            .filter(package_id=package_id)
            .order_by("-assigned_at")
        )

    @staticmethod
    @log_service_call
    @transaction.atomic
    def reconcile_occupancy(bin_id) -> int:
        """
        Bin 적재 수를 열린 배정 수로 다시 맞춤

        Returns:
            int: 맞춘 후 적재 수
        """
        bin_location = BinLocation.objects.select_for_update().filter(pk=bin_id).first()
        if bin_location is None:
            raise BinNotFound("Bin을 찾을 수 없습니다.", details={"bin_id": str(bin_id)})

        actual = PackageBinAssignment.objects.filter(bin=bin_location, removed_at__isnull=True).count()
        if actual != bin_location.current_occupancy:
            logger.warning(
                "Bin 적재 수 불일치 보정 | bin=%s, cached=%s, actual=%s",
                bin_location.bin_code,
                bin_location.current_occupancy,
                actual,
            )
            BinLocation.objects.filter(pk=bin_location.pk).update(current_occupancy=actual)
        return actual

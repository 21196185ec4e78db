from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from logistics.utils.currency import default_currency

from .base import EffectivePeriodModel


class PackageBinAssignment(models.Model):
    """
    화물-Bin 배정 이력

    추가 전용(append-only) 테이블입니다. 해제 시 removed_at만 기록합니다.
    화물당 열린 배정(removed_at IS NULL)은 최대 1개입니다.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    package = models.ForeignKey(
        "Package",
        on_delete=models.PROTECT,
        related_name="bin_assignments",
        verbose_name="화물",
    )

    bin = models.ForeignKey(
        "BinLocation",
        on_delete=models.PROTECT,
        related_name="assignments",
        verbose_name="Bin",
    )

    assigned_at = models.DateTimeField(verbose_name="배정일시")
    assigned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        verbose_name="배정자",
    )

    removed_at = models.DateTimeField(null=True, blank=True, verbose_name="해제일시")
    removed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        verbose_name="해제자",
    )

    assignment_reason = models.CharField(max_length=100, blank=True, verbose_name="배정 사유")
    removal_reason = models.CharField(max_length=100, blank=True, verbose_name="해제 사유")
    notes = models.TextField(blank=True, verbose_name="메모")

    class Meta:
        db_table = "logistics_package_bin_assignment"
        verbose_name = "Bin 배정"
        verbose_name_plural = "Bin 배정 이력"
        ordering = ["-assigned_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["package"],
                condition=models.Q(removed_at__isnull=True),
                name="unique_open_assignment_per_package",
            ),
        ]
        indexes = [
            models.Index(fields=["bin", "removed_at"], name="idx_assignment_bin_open"),
            models.Index(fields=["package", "assigned_at"], name="idx_assignment_package_time"),
        ]

    def __str__(self) -> str:
        return f"{self.package_id} @ {self.bin_id}"

    @property
    def is_open(self) -> bool:
        return self.removed_at is None


class StoragePricing(EffectivePeriodModel):
    """
    보관 요금표

    warehouse가 NULL이면 전체 기본 요금표입니다.
    같은 범위(창고 또는 기본) 안에서 활성 행의 유효기간은 겹치면 안 됩니다.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    warehouse = models.ForeignKey(
        "Warehouse",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="storage_pricings",
        verbose_name="창고",
        help_text="비워두면 기본 요금표",
    )

    free_days = models.PositiveIntegerField(default=0, verbose_name="무료 보관일")

    daily_rate_after_free = models.DecimalField(
        max_digits=10,
        decimal_places=4,
        validators=[MinValueValidator(Decimal("0"))],
        verbose_name="무료기간 이후 일일 요금",
    )

    currency = models.CharField(max_length=3, default=default_currency, verbose_name="통화")

    notes = models.TextField(blank=True, verbose_name="메모")

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        verbose_name="등록자",
    )

    created_at = models.DateTimeField(auto_now_add=True, verbose_name="생성일시")

    class Meta:
        db_table = "logistics_storage_pricing"
        verbose_name = "보관 요금표"
        verbose_name_plural = "보관 요금표 목록"
        ordering = ["warehouse", "-effective_from"]
        indexes = [
            models.Index(fields=["warehouse", "is_active", "effective_from"], name="idx_storage_pricing_lookup"),
        ]

    def __str__(self) -> str:
        scope = self.warehouse_id or "default"
        return f"{scope} {self.effective_from}~ free={self.free_days}d"

    @classmethod
    def find_overlapping(
        cls,
        warehouse_id,
        effective_from: date,
        effective_until: date | None,
        exclude_pk=None,
    ) -> models.QuerySet:
        """같은 범위에서 유효기간이 겹치는 활성 요금표 조회"""
        queryset = cls.objects.filter(
            cls.overlap_q(effective_from, effective_until),
            is_active=True,
        )
        if warehouse_id is None:
            queryset = queryset.filter(warehouse__isnull=True)
        else:
            queryset = queryset.filter(warehouse_id=warehouse_id)
        if exclude_pk is not None:
            queryset = queryset.exclude(pk=exclude_pk)
        return queryset

    def clean(self) -> None:
        super().clean()

        if not (self.is_active and self.effective_from):
            return

        overlapping = self.find_overlapping(
            self.warehouse_id,
            self.effective_from,
            self.effective_until,
            exclude_pk=self.pk if not self._state.adding else None,
        )
        if overlapping.exists():
            raise ValidationError(
                {"effective_from": "같은 범위에 유효기간이 겹치는 활성 보관 요금표가 있습니다."}
            )


class StorageCharge(models.Model):
    """
    보관료 청구 내역

    charge_to_date는 제외(exclusive)입니다. 즉 청구되지 않은 첫 날짜.
    인보이스에 포함된 행은 변경할 수 없습니다.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    package = models.ForeignKey(
        "Package",
        on_delete=models.PROTECT,
        related_name="storage_charges",
        verbose_name="화물",
    )

    bin_location = models.ForeignKey(
        "BinLocation",
        on_delete=models.PROTECT,
        related_name="storage_charges",
        verbose_name="Bin",
    )

    charge_from_date = models.DateField(verbose_name="청구 시작일")
    charge_to_date = models.DateField(verbose_name="청구 종료일", help_text="해당 날짜는 미포함")
    days_charged = models.PositiveIntegerField(verbose_name="보관일수")

    base_storage_fee = models.DecimalField(max_digits=12, decimal_places=4, verbose_name="기본 보관료")
    bin_location_fee = models.DecimalField(max_digits=12, decimal_places=4, verbose_name="Bin 할증료")
    total_storage_fee = models.DecimalField(max_digits=12, decimal_places=4, verbose_name="합계")
    currency = models.CharField(max_length=3, verbose_name="통화")

    daily_rate = models.DecimalField(max_digits=10, decimal_places=4, verbose_name="적용 일일 요금")
    free_days_applied = models.PositiveIntegerField(default=0, verbose_name="적용된 무료일수")

    is_invoiced = models.BooleanField(default=False, db_index=True, verbose_name="청구서 발행 여부")
    invoice_id = models.CharField(max_length=100, blank=True, verbose_name="청구서 번호")

    calculated_at = models.DateTimeField(auto_now_add=True, verbose_name="계산일시")
    notes = models.TextField(blank=True, verbose_name="메모")

    class Meta:
        db_table = "logistics_storage_charge"
        verbose_name = "보관료"
        verbose_name_plural = "보관료 목록"
        ordering = ["package", "charge_from_date"]
        constraints = [
            models.UniqueConstraint(
                fields=["package", "charge_from_date"],
                name="unique_charge_per_package_start",
            ),
            models.CheckConstraint(
                condition=models.Q(charge_to_date__gt=models.F("charge_from_date")),
                name="charge_period_not_empty",
            ),
        ]
        indexes = [
            models.Index(fields=["package", "is_invoiced"], name="idx_charge_package_invoiced"),
        ]

    def __str__(self) -> str:
        return f"{self.package_id} {self.charge_from_date}~{self.charge_to_date} {self.total_storage_fee}"

    def save(self, *args, **kwargs) -> None:
        """
        청구서에 포함된 행은 수정 불가
        """
        if not self._state.adding:
            was_invoiced = (
                StorageCharge.objects.filter(pk=self.pk, is_invoiced=True).values_list("pk", flat=True).exists()
            )
            if was_invoiced:
                raise ValidationError("청구서에 포함된 보관료는 수정할 수 없습니다.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.is_invoiced:
            raise ValidationError("청구서에 포함된 보관료는 삭제할 수 없습니다.")
        return super().delete(*args, **kwargs)

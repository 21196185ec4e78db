from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from logistics.utils.currency import default_currency

from .base import EffectivePeriodModel


class ShippingRate(EffectivePeriodModel):
    """
    배송 요율표

    (창고, Zone, 서비스 타입) 단위로 유효기간을 가집니다.
    같은 키의 활성 행끼리 유효기간이 겹치면 안 됩니다 (쓰기 시점에 검증).
    """

    SERVICE_TYPE_CHOICES = [
        ("economy", "이코노미"),
        ("standard", "스탠다드"),
        ("express", "특송"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    warehouse = models.ForeignKey(
        "Warehouse",
        on_delete=models.PROTECT,
        related_name="shipping_rates",
        verbose_name="출고 창고",
    )

    zone = models.ForeignKey(
        "Zone",
        on_delete=models.PROTECT,
        related_name="shipping_rates",
        verbose_name="배송 Zone",
    )

    service_type = models.CharField(
        max_length=20,
        choices=SERVICE_TYPE_CHOICES,
        verbose_name="서비스 타입",
    )

    base_rate = models.DecimalField(
        max_digits=12,
        decimal_places=4,
        validators=[MinValueValidator(Decimal("0"))],
        verbose_name="기본 요금",
    )

    per_kg_rate = models.DecimalField(
        max_digits=12,
        decimal_places=4,
        validators=[MinValueValidator(Decimal("0"))],
        verbose_name="kg당 요금",
    )

    min_charge = models.DecimalField(
        max_digits=12,
        decimal_places=4,
        default=Decimal("0"),
        validators=[MinValueValidator(Decimal("0"))],
        verbose_name="최소 요금",
    )

    max_weight_kg = models.DecimalField(
        max_digits=10,
        decimal_places=3,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0"))],
        verbose_name="최대 중량(kg)",
    )

    currency = models.CharField(max_length=3, default=default_currency, verbose_name="통화")

    created_at = models.DateTimeField(auto_now_add=True, verbose_name="생성일시")

    class Meta:
        db_table = "logistics_shipping_rate"
        verbose_name = "배송 요율"
        verbose_name_plural = "배송 요율 목록"
        ordering = ["warehouse", "zone", "service_type", "-effective_from"]
        indexes = [
            models.Index(
                fields=["warehouse", "zone", "service_type", "is_active"],
                name="idx_rate_lookup",
            ),
            models.Index(fields=["effective_from", "effective_until"], name="idx_rate_effective_period"),
        ]

    def __str__(self) -> str:
        return f"{self.warehouse_id} → {self.zone} [{self.service_type}] {self.effective_from}~"

    @classmethod
    def find_overlapping(
        cls,
        warehouse_id,
        zone_id,
        service_type: str,
        effective_from: date,
        effective_until: date | None,
        exclude_pk=None,
    ) -> models.QuerySet:
        """
        같은 (창고, Zone, 서비스 타입)에서 유효기간이 겹치는 활성 요율 조회
        """
        queryset = cls.objects.filter(
            cls.overlap_q(effective_from, effective_until),
            warehouse_id=warehouse_id,
            zone_id=zone_id,
            service_type=service_type,
            is_active=True,
        )
        if exclude_pk is not None:
            queryset = queryset.exclude(pk=exclude_pk)
        return queryset

    def clean(self) -> None:
        """
        관리자 화면 저장 시 유효기간 중복 검증
        """
        super().clean()

        if not (self.is_active and self.warehouse_id and self.zone_id and self.effective_from):
            return

        overlapping = self.find_overlapping(
            self.warehouse_id,
            self.zone_id,
            self.service_type,
            self.effective_from,
            self.effective_until,
            exclude_pk=self.pk if not self._state.adding else None,
        )
        if overlapping.exists():
            raise ValidationError(
                {"effective_from": "같은 창고/Zone/서비스 타입에 유효기간이 겹치는 활성 요율이 있습니다."}
            )

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Any

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models


class Package(models.Model):
    """
    창고에 입고된 고객 화물

    volumetric_weight_kg / chargeable_weight_kg는 저장 시 계산되며
    직접 입력하지 않습니다.
    """

    STATUS_CHOICES = [
        ("expected", "입고예정"),
        ("received", "입고완료"),
        ("processing", "검수중"),
        ("ready_to_ship", "출고대기"),
        ("reserved", "출고예약"),
        ("held", "보류"),
        ("shipped", "출고완료"),
        ("delivered", "배송완료"),
        ("returned", "반송"),
        ("disposed", "폐기"),
        ("missing", "분실"),
        ("damaged", "파손"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    internal_id = models.CharField(max_length=50, unique=True, verbose_name="내부 관리번호")

    warehouse = models.ForeignKey(
        "Warehouse",
        on_delete=models.PROTECT,
        related_name="packages",
        verbose_name="창고",
    )

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="packages",
        verbose_name="고객",
    )

    description = models.CharField(max_length=255, blank=True, verbose_name="내용물")

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default="expected",
        db_index=True,
        verbose_name="상태",
    )

    # 실측 정보
    weight_actual_kg = models.DecimalField(
        max_digits=10,
        decimal_places=3,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0"))],
        verbose_name="실중량(kg)",
    )
    length_cm = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0"))],
        verbose_name="길이(cm)",
    )
    width_cm = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0"))],
        verbose_name="너비(cm)",
    )
    height_cm = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0"))],
        verbose_name="높이(cm)",
    )

    # 계산 필드
    volumetric_weight_kg = models.DecimalField(
        max_digits=10,
        decimal_places=3,
        default=Decimal("0"),
        editable=False,
        verbose_name="부피중량(kg)",
    )
    chargeable_weight_kg = models.DecimalField(
        max_digits=10,
        decimal_places=3,
        default=Decimal("0"),
        editable=False,
        verbose_name="청구중량(kg)",
    )

    received_at = models.DateTimeField(null=True, blank=True, verbose_name="입고일시")

    created_at = models.DateTimeField(auto_now_add=True, verbose_name="생성일시")
    updated_at = models.DateTimeField(auto_now=True, verbose_name="수정일시")

    class Meta:
        db_table = "logistics_package"
        verbose_name = "화물"
        verbose_name_plural = "화물 목록"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["warehouse", "status"], name="idx_package_warehouse_status"),
            models.Index(fields=["received_at"], name="idx_package_received_at"),
        ]

    def __str__(self) -> str:
        return self.internal_id

    @property
    def is_billing_terminal(self) -> bool:
        """보관료 청구 대상에서 제외되는 상태인지"""
        return self.status in settings.STORAGE_BILLING_TERMINAL_STATUSES

    def clean(self) -> None:
        super().clean()
        for field in ("weight_actual_kg", "length_cm", "width_cm", "height_cm"):
            value = getattr(self, field)
            if value is not None and value < 0:
                raise ValidationError({field: "음수는 입력할 수 없습니다."})

    def save(self, *args: Any, **kwargs: Any) -> None:
        """
        저장 시 부피중량/청구중량을 다시 계산
        """
        from logistics.services.weight_service import WeightService

        self.volumetric_weight_kg = WeightService.volumetric_weight(
            self.length_cm, self.width_cm, self.height_cm
        )
        self.chargeable_weight_kg = WeightService.chargeable_weight(
            self.weight_actual_kg or Decimal("0"),
            self.length_cm,
            self.width_cm,
            self.height_cm,
        )

        update_fields = kwargs.get("update_fields")
        if update_fields is not None:
            kwargs["update_fields"] = set(update_fields) | {
                "volumetric_weight_kg",
                "chargeable_weight_kg",
            }

        super().save(*args, **kwargs)

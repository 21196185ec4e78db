from __future__ import annotations

import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from logistics.utils.currency import default_currency


class Warehouse(models.Model):
    """
    파트너 물류센터(창고)

    Bin, 배송 요율, 보관 요금표의 소유자입니다.
    요율/요금표 설정 변경 시 이 행을 잠가서 쓰기를 직렬화합니다.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    code = models.CharField(max_length=20, unique=True, verbose_name="창고 코드")

    name = models.CharField(max_length=100, verbose_name="창고명")

    # ISO 3166-1 alpha-2
    country_code = models.CharField(max_length=2, verbose_name="국가 코드")

    is_active = models.BooleanField(default=True, verbose_name="운영 여부")

    created_at = models.DateTimeField(auto_now_add=True, verbose_name="생성일시")

    class Meta:
        db_table = "logistics_warehouse"
        verbose_name = "창고"
        verbose_name_plural = "창고 목록"
        ordering = ["code"]

    def __str__(self) -> str:
        return f"{self.code} ({self.name})"


class BinLocation(models.Model):
    """
    창고 내 보관 위치(Bin)

    current_occupancy는 PackageBinAssignment의 열린 배정 수를 캐시한 값입니다.
    BinAssignmentService만 배정 행과 같은 트랜잭션 안에서 변경합니다.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    warehouse = models.ForeignKey(
        Warehouse,
        on_delete=models.PROTECT,
        related_name="bins",
        verbose_name="창고",
    )

    bin_code = models.CharField(max_length=50, verbose_name="Bin 코드")

    # 물리적 구역 라벨 (배송 Zone과 무관)
    zone_name = models.CharField(max_length=50, blank=True, verbose_name="구역명")

    description = models.CharField(max_length=255, blank=True, verbose_name="설명")

    max_capacity = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
        verbose_name="최대 수용 개수",
    )

    current_occupancy = models.PositiveIntegerField(
        default=0,
        editable=False,
        verbose_name="현재 적재 개수",
        help_text="열린 배정 수 (BinAssignmentService에서만 변경)",
    )

    max_weight_kg = models.DecimalField(
        max_digits=10,
        decimal_places=3,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0"))],
        verbose_name="최대 적재 무게(kg)",
        help_text="비워두면 무게 제한 없음",
    )

    daily_premium = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0"),
        validators=[MinValueValidator(Decimal("0"))],
        verbose_name="일일 추가 요금",
        help_text="특수 Bin(냉난방, 보안 등) 일일 할증",
    )

    currency = models.CharField(
        max_length=3,
        default=default_currency,
        verbose_name="통화",
    )

    is_climate_controlled = models.BooleanField(default=False, verbose_name="온습도 관리")
    is_secured = models.BooleanField(default=False, verbose_name="보안 구역")
    is_accessible = models.BooleanField(default=True, verbose_name="접근 가능")
    is_active = models.BooleanField(default=True, verbose_name="사용 여부")

    created_at = models.DateTimeField(auto_now_add=True, verbose_name="생성일시")
    updated_at = models.DateTimeField(auto_now=True, verbose_name="수정일시")

    class Meta:
        db_table = "logistics_bin_location"
        verbose_name = "보관 위치"
        verbose_name_plural = "보관 위치 목록"
        ordering = ["warehouse", "bin_code"]
        constraints = [
            models.UniqueConstraint(
                fields=["warehouse", "bin_code"],
                name="unique_bin_code_per_warehouse",
            ),
            models.CheckConstraint(
                condition=models.Q(current_occupancy__gte=0)
                & models.Q(current_occupancy__lte=models.F("max_capacity")),
                name="bin_occupancy_within_capacity",
            ),
        ]
        indexes = [
            models.Index(fields=["warehouse", "is_active"], name="idx_bin_warehouse_active"),
        ]

    def __str__(self) -> str:
        return f"{self.warehouse.code}:{self.bin_code}"

    @property
    def available_capacity(self) -> int:
        return self.max_capacity - self.current_occupancy

    @property
    def is_full(self) -> bool:
        return self.current_occupancy >= self.max_capacity

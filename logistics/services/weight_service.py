"""무게 계산 서비스 (실중량 / 부피중량 / 청구중량)"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import ROUND_CEILING, Decimal, InvalidOperation
from typing import Any, TypedDict

from django.conf import settings

from .base import log_service_call
from .exceptions import InvalidMeasurement

# 결과는 g 단위까지 (소수점 3자리, 올림)
WEIGHT_QUANTUM = Decimal("0.001")

Number = Decimal | int | float | str


class PackageMeasurement(TypedDict, total=False):
    """화물 실측값 (aggregate_chargeable_weight 입력)"""

    weight_actual_kg: Number
    length_cm: Number | None
    width_cm: Number | None
    height_cm: Number | None


class WeightService:
    """청구중량 계산 서비스"""

    @staticmethod
    def _to_decimal(value: Number | None, field: str) -> Decimal | None:
        if value is None or value == "":
            return None
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError) as e:
            raise InvalidMeasurement(
                f"{field} 값이 숫자가 아닙니다.",
                details={"field": field, "value": str(value)},
            ) from e
        if not result.is_finite() or result < 0:
            raise InvalidMeasurement(
                f"{field} 값은 0 이상이어야 합니다.",
                details={"field": field, "value": str(value)},
            )
        return result

    @staticmethod
    def _quantize(value: Decimal) -> Decimal:
        return value.quantize(WEIGHT_QUANTUM, rounding=ROUND_CEILING)

    @staticmethod
    def volumetric_weight(
        length_cm: Number | None,
        width_cm: Number | None,
        height_cm: Number | None,
    ) -> Decimal:
        """
        부피중량 계산: (가로 × 세로 × 높이) / VOLUMETRIC_DIVISOR

        세 치수가 모두 있고 양수일 때만 계산하며, 아니면 0입니다.

        Raises:
            InvalidMeasurement: 음수 또는 숫자가 아닌 치수
        """
        dims = [
            WeightService._to_decimal(length_cm, "length_cm"),
            WeightService._to_decimal(width_cm, "width_cm"),
            WeightService._to_decimal(height_cm, "height_cm"),
        ]
        if any(d is None or d <= 0 for d in dims):
            return WeightService._quantize(Decimal("0"))

        length, width, height = dims
        divisor = Decimal(settings.VOLUMETRIC_DIVISOR)
        return WeightService._quantize(length * width * height / divisor)

    @staticmethod
    def chargeable_weight(
        actual_kg: Number,
        length_cm: Number | None = None,
        width_cm: Number | None = None,
        height_cm: Number | None = None,
    ) -> Decimal:
        """
        청구중량 = max(실중량, 부피중량)

        Args:
            actual_kg: 실중량(kg)
            length_cm, width_cm, height_cm: 치수(cm), 없으면 실중량만 사용

        Returns:
            Decimal: 청구중량(kg), 소수점 3자리

        Raises:
            InvalidMeasurement: 음수 무게/치수
        """
        actual = WeightService._to_decimal(actual_kg, "weight_actual_kg")
        if actual is None:
            raise InvalidMeasurement("실중량이 입력되지 않았습니다.", details={"field": "weight_actual_kg"})

        volumetric = WeightService.volumetric_weight(length_cm, width_cm, height_cm)
        return WeightService._quantize(max(actual, volumetric))

    @staticmethod
    @log_service_call
    def aggregate_chargeable_weight(packages: Iterable[Any]) -> Decimal:
        """
        여러 화물의 청구중량 합계

        화물마다 이미 계산된 청구중량을 더합니다 (합포장 부피로 계산하지 않음).

        Args:
            packages: Package 인스턴스(저장된 chargeable_weight_kg 사용) 또는
                PackageMeasurement 딕셔너리 목록

        Returns:
            Decimal: 청구중량 합계(kg)
        """
        total = Decimal("0")
        for package in packages:
            if not isinstance(package, Mapping):
                stored = WeightService._to_decimal(package.chargeable_weight_kg, "chargeable_weight_kg")
                total += stored or Decimal("0")
                continue

            fields = package
            total += WeightService.chargeable_weight(
                fields.get("weight_actual_kg"),
                fields.get("length_cm"),
                fields.get("width_cm"),
                fields.get("height_cm"),
            )
        return WeightService._quantize(total)

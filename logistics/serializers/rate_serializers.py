from __future__ import annotations

from decimal import Decimal
from typing import Any

from rest_framework import serializers

from ..models import ShippingRate, Zone


class ZoneSerializer(serializers.ModelSerializer):
    """배송 Zone 조회용 시리얼라이저"""

    country_codes = serializers.ListField(child=serializers.CharField(), read_only=True)

    class Meta:
        model = Zone
        fields = ["id", "name", "description", "is_active", "country_codes"]
        read_only_fields = fields


class ChargeableWeightSerializer(serializers.Serializer):
    """청구중량 계산 요청"""

    weight_actual_kg = serializers.DecimalField(max_digits=10, decimal_places=3, min_value=Decimal("0"))
    length_cm = serializers.DecimalField(
        max_digits=8, decimal_places=2, min_value=Decimal("0"), required=False, allow_null=True
    )
    width_cm = serializers.DecimalField(
        max_digits=8, decimal_places=2, min_value=Decimal("0"), required=False, allow_null=True
    )
    height_cm = serializers.DecimalField(
        max_digits=8, decimal_places=2, min_value=Decimal("0"), required=False, allow_null=True
    )


class ChargeableWeightResultSerializer(serializers.Serializer):
    """청구중량 계산 결과"""

    weight_actual_kg = serializers.DecimalField(max_digits=10, decimal_places=3)
    volumetric_weight_kg = serializers.DecimalField(max_digits=10, decimal_places=3)
    chargeable_weight_kg = serializers.DecimalField(max_digits=10, decimal_places=3)


class QuoteRequestSerializer(serializers.Serializer):
    """
    배송 요금 견적 요청

    chargeable_weight_kg 또는 packages(실측값 목록) 중 하나는 필수입니다.
    """

    warehouse_id = serializers.UUIDField()
    country_code = serializers.CharField(max_length=2, min_length=2)
    service_type = serializers.ChoiceField(choices=ShippingRate.SERVICE_TYPE_CHOICES)
    chargeable_weight_kg = serializers.DecimalField(
        max_digits=10, decimal_places=3, required=False, allow_null=True
    )
    packages = ChargeableWeightSerializer(many=True, required=False)
    as_of_date = serializers.DateField(required=False, allow_null=True)

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        if attrs.get("chargeable_weight_kg") is None and not attrs.get("packages"):
            raise serializers.ValidationError(
                {"chargeable_weight_kg": "청구중량 또는 화물 실측값 목록이 필요합니다."}
            )
        attrs["country_code"] = attrs["country_code"].upper()
        return attrs


class QuoteResultSerializer(serializers.Serializer):
    """배송 요금 견적 결과"""

    rate_id = serializers.UUIDField()
    service_type = serializers.CharField()
    base_rate = serializers.DecimalField(max_digits=12, decimal_places=4)
    per_kg_rate = serializers.DecimalField(max_digits=12, decimal_places=4)
    weight_charge = serializers.DecimalField(max_digits=12, decimal_places=4)
    min_charge = serializers.DecimalField(max_digits=12, decimal_places=4)
    min_charge_applied = serializers.BooleanField()
    total = serializers.DecimalField(max_digits=12, decimal_places=4)
    currency = serializers.CharField()
    zone_name = serializers.CharField()
    warehouse_name = serializers.CharField()
    chargeable_weight_kg = serializers.DecimalField(max_digits=10, decimal_places=3)
    as_of_date = serializers.DateField()


class AvailableServicesQuerySerializer(serializers.Serializer):
    """서비스 타입별 견적 조회 파라미터"""

    warehouse_id = serializers.UUIDField()
    country = serializers.CharField(max_length=2, min_length=2)
    weight = serializers.DecimalField(max_digits=10, decimal_places=3)
    as_of_date = serializers.DateField(required=False)

from __future__ import annotations

from rest_framework import serializers

from ..models import StorageCharge


class StorageChargeSerializer(serializers.ModelSerializer):
    """보관료 조회용 시리얼라이저"""

    bin_code = serializers.CharField(source="bin_location.bin_code", read_only=True)
    package_internal_id = serializers.CharField(source="package.internal_id", read_only=True)

    class Meta:
        model = StorageCharge
        fields = [
            "id",
            "package",
            "package_internal_id",
            "bin_location",
            "bin_code",
            "charge_from_date",
            "charge_to_date",
            "days_charged",
            "free_days_applied",
            "daily_rate",
            "base_storage_fee",
            "bin_location_fee",
            "total_storage_fee",
            "currency",
            "is_invoiced",
            "invoice_id",
            "calculated_at",
        ]
        read_only_fields = fields


class AccrueRequestSerializer(serializers.Serializer):
    """보관료 정산 요청"""

    through_date = serializers.DateField(required=False, allow_null=True, help_text="정산 종료일 (미포함)")

from __future__ import annotations

from rest_framework import serializers

from ..models import PackageBinAssignment


class PackageBinAssignmentSerializer(serializers.ModelSerializer):
    """Bin 배정 이력 조회용 시리얼라이저"""

    bin_code = serializers.CharField(source="bin.bin_code", read_only=True)
    assigned_by = serializers.CharField(source="assigned_by.username", read_only=True, allow_null=True)
    removed_by = serializers.CharField(source="removed_by.username", read_only=True, allow_null=True)

    class Meta:
        model = PackageBinAssignment
        fields = [
            "id",
            "package",
            "bin",
            "bin_code",
            "assigned_at",
            "assigned_by",
            "assignment_reason",
            "removed_at",
            "removed_by",
            "removal_reason",
            "notes",
        ]
        read_only_fields = fields


class BinAssignSerializer(serializers.Serializer):
    """Bin 배정 요청"""

    bin_id = serializers.UUIDField()
    reason = serializers.CharField(max_length=100, required=False, default="manual_assignment")
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class BinRemoveSerializer(serializers.Serializer):
    """Bin 배정 해제 요청"""

    reason = serializers.CharField(max_length=100, required=False, default="manual_removal")
    notes = serializers.CharField(required=False, allow_blank=True, default="")

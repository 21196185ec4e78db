from __future__ import annotations

import logging

from drf_spectacular.utils import extend_schema
from rest_framework import permissions, status
from rest_framework import serializers as drf_serializers
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from ..permissions import IsWarehouseStaff
from ..serializers import (
    BinAssignSerializer,
    BinRemoveSerializer,
    ErrorResponseSerializer,
    PackageBinAssignmentSerializer,
)
from ..services import BinAssignmentService, ServiceError
from .mixins import ServiceErrorResponseMixin

logger = logging.getLogger(__name__)


# ===== Swagger 문서화용 응답 Serializers =====


class BinAssignmentStatusResponseSerializer(drf_serializers.Serializer):
    """현재 배정 + 배정 이력 응답"""

    current = PackageBinAssignmentSerializer(allow_null=True)
    history = PackageBinAssignmentSerializer(many=True)


@extend_schema(tags=["Bin Assignment"])
class PackageBinAssignmentView(ServiceErrorResponseMixin, APIView):
    """화물 Bin 배정 조회/배정/해제 API"""

    permission_classes = [permissions.IsAuthenticated, IsWarehouseStaff]

    @extend_schema(
        responses={200: BinAssignmentStatusResponseSerializer},
        summary="화물의 현재 배정과 배정 이력을 조회한다.",
    )
    def get(self, request: Request, package_id) -> Response:
        current = BinAssignmentService.current_assignment(package_id)
        history = BinAssignmentService.history(package_id)
        return Response(
            {
                "current": PackageBinAssignmentSerializer(current).data if current else None,
                "history": PackageBinAssignmentSerializer(history, many=True).data,
            }
        )

    @extend_schema(
        request=BinAssignSerializer,
        responses={
            201: PackageBinAssignmentSerializer,
            404: ErrorResponseSerializer,
            409: ErrorResponseSerializer,
        },
        summary="화물을 Bin에 배정한다.",
        description="""처리 내용:
- Bin 활성 여부, 창고 일치, 수용 개수, 누적 무게 한도를 확인한다.
- 기존 배정이 있으면 해제(moved) 후 새 Bin에 배정한다.""",
    )
    def post(self, request: Request, package_id) -> Response:
        serializer = BinAssignSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        try:
            assignment = BinAssignmentService.assign(
                package_id,
                data["bin_id"],
                reason=data["reason"],
                actor=request.user,
                notes=data["notes"],
            )
        except ServiceError as e:
            return self.service_error_response(e)

        return Response(PackageBinAssignmentSerializer(assignment).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        request=BinRemoveSerializer,
        responses={
            200: PackageBinAssignmentSerializer,
            404: ErrorResponseSerializer,
            409: ErrorResponseSerializer,
        },
        summary="화물의 Bin 배정을 해제한다.",
        description="""처리 내용:
- 열린 배정을 닫고 Bin 적재 수를 줄인다.
- 해제일 전날까지 보관료를 정산한다.""",
    )
    def delete(self, request: Request, package_id) -> Response:
        serializer = BinRemoveSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        try:
            assignment = BinAssignmentService.remove(
                package_id,
                reason=data["reason"],
                actor=request.user,
                notes=data["notes"],
            )
        except ServiceError as e:
            return self.service_error_response(e)

        return Response(PackageBinAssignmentSerializer(assignment).data)

from __future__ import annotations

import logging
import uuid

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import permissions, status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from ..models import StorageCharge
from ..permissions import IsWarehouseStaff
from ..serializers import AccrueRequestSerializer, ErrorResponseSerializer, StorageChargeSerializer
from ..services import ServiceError, StorageFeeService
from .mixins import ServiceErrorResponseMixin

logger = logging.getLogger(__name__)


@extend_schema(tags=["Storage Charges"])
class PackageStorageChargeListView(APIView):
    """화물별 보관료 내역"""

    permission_classes = [permissions.IsAuthenticated, IsWarehouseStaff]

    @extend_schema(
        responses={200: StorageChargeSerializer(many=True)},
        summary="화물의 보관료 내역을 조회한다.",
    )
    def get(self, request: Request, package_id) -> Response:
        charges = (
            StorageCharge.objects.select_related("package", "bin_location")
            .filter(package_id=package_id)
            .order_by("charge_from_date")
        )
        return Response(StorageChargeSerializer(charges, many=True).data)


@extend_schema(tags=["Storage Charges"])
class PackageStorageAccrueView(ServiceErrorResponseMixin, APIView):
    """화물 1건 보관료 정산"""

    permission_classes = [permissions.IsAuthenticated, IsWarehouseStaff]

    @extend_schema(
        request=AccrueRequestSerializer,
        responses={
            201: StorageChargeSerializer(many=True),
            404: ErrorResponseSerializer,
            409: ErrorResponseSerializer,
        },
        summary="화물의 보관료를 정산한다.",
        description="""처리 내용:
- 마지막 정산 이후부터 through_date 전날까지 보관료를 계산한다.
- 같은 through_date로 다시 요청해도 중복 청구되지 않는다.""",
    )
    def post(self, request: Request, package_id) -> Response:
        serializer = AccrueRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            charges = StorageFeeService.accrue_charges(package_id, serializer.validated_data.get("through_date"))
        except ServiceError as e:
            return self.service_error_response(e)

        logger.info(
            "보관료 수동 정산: package_id=%s, user=%s, rows=%d",
            package_id,
            request.user.username,
            len(charges),
        )
        return Response(StorageChargeSerializer(charges, many=True).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=["Storage Charges"])
class UnbilledStorageChargeListView(APIView):
    """미청구 보관료 목록 (청구서 작성용)"""

    permission_classes = [permissions.IsAuthenticated, IsWarehouseStaff]

    @extend_schema(
        parameters=[
            OpenApiParameter(name="package", description="화물 ID 필터", required=False, type=str),
        ],
        responses={200: StorageChargeSerializer(many=True)},
        summary="청구서에 포함되지 않은 보관료를 조회한다.",
    )
    def get(self, request: Request) -> Response:
        package_id = request.query_params.get("package") or None
        if package_id is not None:
            try:
                uuid.UUID(package_id)
            except ValueError:
                return Response({"package": "올바른 화물 ID가 아닙니다."}, status=status.HTTP_400_BAD_REQUEST)

        charges = StorageFeeService.get_unbilled_charges(package_id)
        return Response(StorageChargeSerializer(charges, many=True).data)

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import permissions, status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from ..serializers import (
    AvailableServicesQuerySerializer,
    ChargeableWeightResultSerializer,
    ChargeableWeightSerializer,
    ErrorResponseSerializer,
    QuoteRequestSerializer,
    QuoteResultSerializer,
    ZoneSerializer,
)
from ..services import RateService, ServiceError, WeightService, ZoneService
from .mixins import ServiceErrorResponseMixin

logger = logging.getLogger(__name__)


@extend_schema(tags=["Rates"])
class ZoneResolveView(ServiceErrorResponseMixin, APIView):
    """목적지 국가 → 배송 Zone 조회"""

    permission_classes = [permissions.AllowAny]

    @extend_schema(
        parameters=[
            OpenApiParameter(name="country", description="ISO 3166-1 alpha-2 국가 코드", required=True, type=str),
        ],
        responses={200: ZoneSerializer, 404: ErrorResponseSerializer},
        summary="목적지 국가의 배송 Zone을 조회한다.",
    )
    def get(self, request: Request) -> Response:
        try:
            zone = ZoneService.resolve_zone(request.query_params.get("country", ""))
        except ServiceError as e:
            return self.service_error_response(e)
        return Response(ZoneSerializer(zone).data)


@extend_schema(tags=["Rates"])
class ChargeableWeightView(ServiceErrorResponseMixin, APIView):
    """청구중량 계산"""

    permission_classes = [permissions.AllowAny]

    @extend_schema(
        request=ChargeableWeightSerializer,
        responses={200: ChargeableWeightResultSerializer, 400: ErrorResponseSerializer},
        summary="실중량과 치수로 청구중량을 계산한다.",
        description="""처리 내용:
- 부피중량 = 가로 × 세로 × 높이 / 5000 (세 치수가 모두 있을 때)
- 청구중량 = max(실중량, 부피중량)""",
    )
    def post(self, request: Request) -> Response:
        serializer = ChargeableWeightSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        try:
            volumetric = WeightService.volumetric_weight(
                data.get("length_cm"), data.get("width_cm"), data.get("height_cm")
            )
            chargeable = WeightService.chargeable_weight(
                data["weight_actual_kg"], data.get("length_cm"), data.get("width_cm"), data.get("height_cm")
            )
        except ServiceError as e:
            return self.service_error_response(e)

        result = {
            "weight_actual_kg": data["weight_actual_kg"],
            "volumetric_weight_kg": volumetric,
            "chargeable_weight_kg": chargeable,
        }
        return Response(ChargeableWeightResultSerializer(result).data)


@extend_schema(tags=["Rates"])
class RateQuoteView(ServiceErrorResponseMixin, APIView):
    """배송 요금 견적 (공개 견적 폼)"""

    permission_classes = [permissions.AllowAny]

    @extend_schema(
        request=QuoteRequestSerializer,
        responses={
            200: QuoteResultSerializer,
            400: ErrorResponseSerializer,
            404: ErrorResponseSerializer,
            409: ErrorResponseSerializer,
        },
        summary="배송 요금 견적을 계산한다.",
        description="""처리 내용:
- 목적지 국가로 배송 Zone을 찾는다.
- 기준일에 유효한 요율로 max(기본요금 + kg당 요금 × 청구중량, 최소요금)을 계산한다.
- packages를 보내면 화물별 청구중량 합계로 계산한다.""",
    )
    def post(self, request: Request) -> Response:
        serializer = QuoteRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        try:
            if data.get("chargeable_weight_kg") is not None:
                quote = RateService.quote(
                    data["warehouse_id"],
                    data["country_code"],
                    data["service_type"],
                    data["chargeable_weight_kg"],
                    data.get("as_of_date"),
                )
            else:
                quote = RateService.quote_for_packages(
                    data["warehouse_id"],
                    data["country_code"],
                    data["service_type"],
                    data["packages"],
                    data.get("as_of_date"),
                )
        except ServiceError as e:
            return self.service_error_response(e)

        return Response(QuoteResultSerializer(quote).data)


@extend_schema(tags=["Rates"])
class AvailableServicesView(ServiceErrorResponseMixin, APIView):
    """서비스 타입별 견적 목록"""

    permission_classes = [permissions.AllowAny]

    @extend_schema(
        parameters=[AvailableServicesQuerySerializer],
        responses={200: QuoteResultSerializer(many=True), 404: ErrorResponseSerializer},
        summary="이용 가능한 서비스 타입별 견적을 조회한다.",
    )
    def get(self, request: Request) -> Response:
        serializer = AvailableServicesQuerySerializer(data=request.query_params)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        try:
            quotes = RateService.available_services(
                data["warehouse_id"],
                data["country"],
                data["weight"],
                data.get("as_of_date"),
            )
        except ServiceError as e:
            return self.service_error_response(e)

        return Response(QuoteResultSerializer(quotes, many=True).data)

"""View mixins for common functionality"""

import logging

from rest_framework import status
from rest_framework.response import Response

from ..services.exceptions import (
    AmbiguousError,
    ConstraintViolationError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
)

logger = logging.getLogger(__name__)

# 예외 카테고리 → HTTP 상태 코드 (위에서부터 먼저 일치하는 것 사용)
ERROR_STATUS_MAP = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConstraintViolationError, status.HTTP_409_CONFLICT),
    (InvalidStateError, status.HTTP_409_CONFLICT),
    (InvalidInputError, status.HTTP_400_BAD_REQUEST),
    (AmbiguousError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


class ServiceErrorResponseMixin:
    """
    서비스 예외를 API 에러 응답으로 변환하는 Mixin

    응답 형식:
        {"success": false, "error_code": "...", "message": "...", "errors": {...}}
    """

    def service_error_response(self, error):
        """
        Args:
            error: ServiceError 인스턴스

        Returns:
            Response: 카테고리에 맞는 상태 코드의 에러 응답
        """
        http_status = status.HTTP_400_BAD_REQUEST
        for error_class, mapped_status in ERROR_STATUS_MAP:
            if isinstance(error, error_class):
                http_status = mapped_status
                break

        if http_status >= 500:
            logger.error("데이터 정합성 오류 응답: code=%s, message=%s", error.code, error.message)

        return Response(
            {
                "success": False,
                "error_code": error.code,
                "message": error.message,
                "errors": error.details,
            },
            status=http_status,
        )

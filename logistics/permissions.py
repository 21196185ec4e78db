# 창고 운영자 권한 관련 커스텀 권한 클래스를 정의합니다.

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework import permissions

if TYPE_CHECKING:
    from rest_framework.request import Request
    from rest_framework.views import APIView


class IsWarehouseStaff(permissions.BasePermission):
    """
    창고 운영자 권한 체크

    - 인증된 사용자이면서 is_staff=True인 경우에만 허용
    - Bin 배정/해제, 보관료 정산/조회에 사용
    """

    message = "창고 운영자만 접근 가능합니다."

    def has_permission(self, request: Request, view: APIView) -> bool:
        if not request.user or not request.user.is_authenticated:
            return False
        return bool(request.user.is_staff)

"""
통화 참조 데이터

통화별 소수 자릿수(minor units)는 settings.CURRENCY_MINOR_UNITS에서 주입받습니다.
금액 반올림은 항상 ROUND_HALF_UP입니다.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings


def default_currency() -> str:
    """모델 currency 필드 기본값"""
    return settings.DEFAULT_CURRENCY


class CurrencyRegistry:
    """
    통화 코드 → 소수 자릿수 조회

    등록되지 않은 통화는 CURRENCY_DEFAULT_MINOR_UNITS(기본 2자리)를 사용합니다.
    """

    @staticmethod
    def minor_units(currency: str) -> int:
        table = getattr(settings, "CURRENCY_MINOR_UNITS", {})
        default = getattr(settings, "CURRENCY_DEFAULT_MINOR_UNITS", 2)
        return table.get((currency or "").upper(), default)

    @classmethod
    def quantum(cls, currency: str) -> Decimal:
        """
        통화의 최소 단위

        Examples:
            USD → Decimal("0.01"), KRW → Decimal("1")
        """
        return Decimal(1).scaleb(-cls.minor_units(currency))

    @classmethod
    def round(cls, amount: Decimal, currency: str) -> Decimal:
        """금액을 통화 최소 단위로 반올림 (half-up)"""
        return Decimal(amount).quantize(cls.quantum(currency), rounding=ROUND_HALF_UP)

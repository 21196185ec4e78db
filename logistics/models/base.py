from __future__ import annotations

from datetime import date

from django.core.exceptions import ValidationError
from django.db import models


class EffectivePeriodModel(models.Model):
    """
    유효기간을 가지는 설정 테이블 공통 필드

    effective_until은 포함(inclusive)이며, NULL이면 종료일 없음.
    """

    is_active = models.BooleanField(default=True, verbose_name="활성 여부")

    effective_from = models.DateField(verbose_name="적용 시작일")

    effective_until = models.DateField(
        null=True,
        blank=True,
        verbose_name="적용 종료일",
        help_text="포함. 비워두면 종료일 없음",
    )

    class Meta:
        abstract = True

    @staticmethod
    def overlap_q(effective_from: date, effective_until: date | None) -> models.Q:
        """
        [effective_from, effective_until] 구간과 겹치는 행 조건

        Args:
            effective_from: 시작일
            effective_until: 종료일 (None이면 무기한)

        Returns:
            Q: 겹치는 행을 찾는 필터 조건
        """
        q = models.Q(effective_until__isnull=True) | models.Q(effective_until__gte=effective_from)
        if effective_until is not None:
            q &= models.Q(effective_from__lte=effective_until)
        return q

    @staticmethod
    def effective_on_q(as_of: date) -> models.Q:
        """as_of 날짜에 유효한 행 조건"""
        return models.Q(effective_from__lte=as_of) & (
            models.Q(effective_until__isnull=True) | models.Q(effective_until__gte=as_of)
        )

    def covers(self, day: date) -> bool:
        if day < self.effective_from:
            return False
        return self.effective_until is None or day <= self.effective_until

    def clean(self) -> None:
        super().clean()
        if (
            self.effective_from
            and self.effective_until
            and self.effective_until < self.effective_from
        ):
            raise ValidationError({"effective_until": "종료일은 시작일보다 빠를 수 없습니다."})

from __future__ import annotations

import uuid

from django.core.exceptions import ValidationError
from django.db import models


class Zone(models.Model):
    """
    배송 Zone

    요율표가 참조하는 국가 그룹입니다.
    하나의 국가는 활성 Zone 하나에만 속할 수 있습니다.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=100, unique=True, verbose_name="Zone명")

    description = models.CharField(max_length=255, blank=True, verbose_name="설명")

    is_active = models.BooleanField(default=True, verbose_name="활성 여부")

    created_at = models.DateTimeField(auto_now_add=True, verbose_name="생성일시")

    class Meta:
        db_table = "logistics_zone"
        verbose_name = "배송 Zone"
        verbose_name_plural = "배송 Zone 목록"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name

    def clean(self) -> None:
        """
        활성화 시 소속 국가가 다른 활성 Zone과 겹치는지 검증
        """
        super().clean()

        if not self.is_active or self._state.adding:
            return

        codes = self.countries.values_list("country_code", flat=True)
        conflicts = (
            ZoneCountry.objects.filter(country_code__in=list(codes), zone__is_active=True)
            .exclude(zone_id=self.pk)
            .values_list("country_code", flat=True)
        )
        if conflicts:
            raise ValidationError(
                {"is_active": f"다른 활성 Zone과 겹치는 국가가 있습니다: {', '.join(sorted(set(conflicts)))}"}
            )

    @property
    def country_codes(self) -> list[str]:
        return sorted(self.countries.values_list("country_code", flat=True))


class ZoneCountry(models.Model):
    """Zone 소속 국가"""

    zone = models.ForeignKey(
        Zone,
        on_delete=models.CASCADE,
        related_name="countries",
        verbose_name="Zone",
    )

    # ISO 3166-1 alpha-2 (대문자로 저장)
    country_code = models.CharField(max_length=2, verbose_name="국가 코드")

    class Meta:
        db_table = "logistics_zone_country"
        verbose_name = "Zone 소속 국가"
        verbose_name_plural = "Zone 소속 국가 목록"
        constraints = [
            models.UniqueConstraint(
                fields=["zone", "country_code"],
                name="unique_country_per_zone",
            ),
        ]
        indexes = [
            models.Index(fields=["country_code"], name="idx_zone_country_code"),
        ]

    def __str__(self) -> str:
        return f"{self.zone.name} - {self.country_code}"

    def save(self, *args, **kwargs) -> None:
        self.country_code = (self.country_code or "").upper()
        super().save(*args, **kwargs)

    def clean(self) -> None:
        """
        다른 활성 Zone에 같은 국가가 이미 있으면 거부
        """
        super().clean()

        code = (self.country_code or "").upper()
        if len(code) != 2 or not code.isalpha():
            raise ValidationError({"country_code": "국가 코드는 영문 2자리여야 합니다."})

        if self.zone_id and self.zone.is_active:
            conflict = (
                ZoneCountry.objects.filter(country_code=code, zone__is_active=True)
                .exclude(zone_id=self.zone_id)
                .select_related("zone")
                .first()
            )
            if conflict:
                raise ValidationError(
                    {"country_code": f"{code}는 이미 활성 Zone '{conflict.zone.name}'에 속해 있습니다."}
                )

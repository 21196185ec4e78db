"""
배송 Zone 서비스

- 목적지 국가 → 배송 Zone 조회
- Zone 소속 국가 변경 (하나의 국가는 활성 Zone 하나에만 속함)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from django.db import transaction
from django.db.models import Q

from ..models import Zone, ZoneCountry
from .base import log_service_call
from .exceptions import AmbiguousZone, InvalidInputError, ZoneCountryConflict, ZoneNotFound

logger = logging.getLogger(__name__)


class ZoneService:
    """배송 Zone 조회/설정 서비스"""

    @staticmethod
    def normalize_country_code(country_code: str | None) -> str:
        return (country_code or "").strip().upper()

    @staticmethod
    def _validate_country_code(country_code: str | None) -> str:
        code = ZoneService.normalize_country_code(country_code)
        if len(code) != 2 or not code.isalpha():
            raise InvalidInputError(
                "국가 코드는 영문 2자리여야 합니다.",
                code="INVALID_COUNTRY_CODE",
                details={"country_code": country_code},
            )
        return code

    @staticmethod
    @log_service_call
    def resolve_zone(country_code: str) -> Zone:
        """
        목적지 국가가 속한 활성 Zone 조회

        Args:
            country_code: ISO 3166-1 alpha-2 국가 코드 (대소문자 무관)

        Returns:
            Zone: 국가가 속한 활성 Zone

        Raises:
            ZoneNotFound: 국가를 포함하는 활성 Zone이 없음
            AmbiguousZone: 활성 Zone 2개 이상에 속함 (데이터 정합성 오류)
        """
        code = ZoneService.normalize_country_code(country_code)

        zones = list(
            Zone.objects.filter(is_active=True, countries__country_code=code).distinct()[:2]
        )

        if not zones:
            raise ZoneNotFound(
                f"배송 가능한 Zone이 없는 국가입니다: {code or country_code!r}",
                details={"country_code": code},
            )

        if len(zones) > 1:
            raise AmbiguousZone(
                f"{code}가 여러 활성 Zone에 속해 있습니다.",
                details={"country_code": code, "zone_ids": [str(z.id) for z in zones]},
            )

        return zones[0]

    # ==========================================================================
    # 설정 변경 (쓰기 시점 중복 검사)
    # ==========================================================================

    @staticmethod
    def _lock_zones(zone_id) -> Zone:
        """
        대상 Zone과 모든 활성 Zone을 id 순서로 잠금

        국가 소속 변경끼리 직렬화하여 검사-후-쓰기 사이의 경합을 막습니다.
        """
        zones = Zone.objects.select_for_update().filter(Q(pk=zone_id) | Q(is_active=True)).order_by("id")
        for zone in zones:
            if str(zone.pk) == str(zone_id):
                return zone
        raise ZoneNotFound("Zone을 찾을 수 없습니다.", details={"zone_id": str(zone_id)})

    @staticmethod
    def _find_conflicts(zone: Zone, codes: Iterable[str]) -> dict[str, str]:
        """다른 활성 Zone에 이미 속한 국가 → 해당 Zone 이름"""
        rows = (
            ZoneCountry.objects.filter(country_code__in=list(codes), zone__is_active=True)
            .exclude(zone_id=zone.id)
            .values_list("country_code", "zone__name")
        )
        return dict(rows)

    @staticmethod
    def _raise_conflicts(zone: Zone, conflicts: dict[str, str]) -> None:
        if conflicts:
            raise ZoneCountryConflict(
                "이미 다른 활성 Zone에 속한 국가가 있습니다.",
                details={"zone": zone.name, "conflicts": conflicts},
            )

    @staticmethod
    @log_service_call
    @transaction.atomic
    def add_country(zone_id, country_code: str) -> ZoneCountry:
        """
        Zone에 국가 추가

        Raises:
            ZoneNotFound: Zone 없음
            ZoneCountryConflict: 활성 Zone에 추가하려는 국가가 다른 활성 Zone에 있음
        """
        code = ZoneService._validate_country_code(country_code)
        zone = ZoneService._lock_zones(zone_id)

        if zone.is_active:
            ZoneService._raise_conflicts(zone, ZoneService._find_conflicts(zone, [code]))

        zone_country, created = ZoneCountry.objects.get_or_create(zone=zone, country_code=code)
        if created:
            logger.info("Zone 국가 추가 | zone=%s, country=%s", zone.name, code)
        return zone_country

    @staticmethod
    @log_service_call
    @transaction.atomic
    def remove_country(zone_id, country_code: str) -> bool:
        """
        Zone에서 국가 제거

        Returns:
            bool: 실제로 제거되었는지 여부
        """
        code = ZoneService.normalize_country_code(country_code)
        zone = ZoneService._lock_zones(zone_id)

        deleted, _ = ZoneCountry.objects.filter(zone=zone, country_code=code).delete()
        if deleted:
            logger.info("Zone 국가 제거 | zone=%s, country=%s", zone.name, code)
        return bool(deleted)

    @staticmethod
    @log_service_call
    @transaction.atomic
    def set_countries(zone_id, country_codes: Iterable[str]) -> list[str]:
        """
        Zone 소속 국가를 주어진 목록으로 교체

        전체를 검사한 뒤 한 번에 반영합니다 (일부만 반영되지 않음).

        Returns:
            list[str]: 반영된 국가 코드 (정렬)
        """
        codes = {ZoneService._validate_country_code(c) for c in country_codes}
        zone = ZoneService._lock_zones(zone_id)

        if zone.is_active:
            ZoneService._raise_conflicts(zone, ZoneService._find_conflicts(zone, codes))

        existing = set(zone.countries.values_list("country_code", flat=True))

        # 개별 delete/save로 처리해야 시그널(요율 캐시 무효화)이 발생함
        for zone_country in zone.countries.filter(country_code__in=existing - codes):
            zone_country.delete()
        for code in sorted(codes - existing):
            ZoneCountry.objects.create(zone=zone, country_code=code)

        logger.info(
            "Zone 국가 목록 변경 | zone=%s, added=%s, removed=%s",
            zone.name,
            sorted(codes - existing),
            sorted(existing - codes),
        )
        return sorted(codes)

    @staticmethod
    @log_service_call
    @transaction.atomic
    def activate_zone(zone_id) -> Zone:
        """
        Zone 활성화

        Raises:
            ZoneCountryConflict: 소속 국가 중 하나라도 다른 활성 Zone에 있음
        """
        zone = ZoneService._lock_zones(zone_id)
        if zone.is_active:
            return zone

        codes = zone.countries.values_list("country_code", flat=True)
        ZoneService._raise_conflicts(zone, ZoneService._find_conflicts(zone, codes))

        zone.is_active = True
        zone.save(update_fields=["is_active"])
        logger.info("Zone 활성화 | zone=%s", zone.name)
        return zone

    @staticmethod
    @log_service_call
    @transaction.atomic
    def deactivate_zone(zone_id) -> Zone:
        """Zone 비활성화 (국가 중복 검사 불필요)"""
        zone = ZoneService._lock_zones(zone_id)
        if zone.is_active:
            zone.is_active = False
            zone.save(update_fields=["is_active"])
            logger.info("Zone 비활성화 | zone=%s", zone.name)
        return zone

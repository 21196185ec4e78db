"""RateService 테스트 (견적 계산 / 요율 쓰기 검사 / 캐시)"""

import uuid
from datetime import date
from decimal import Decimal

from django.core.cache import cache

import pytest

from logistics.models import ShippingRate
from logistics.services.exceptions import (
    AmbiguousRate,
    ConstraintViolationError,
    InvalidInputError,
    InvalidQuoteRequest,
    NoRatesForZone,
    OverlappingEffectivePeriod,
    RateNotFound,
    WarehouseNotFound,
    WeightExceedsRateLimit,
    ZoneNotFound,
)
from logistics.services.rate_service import RATE_TABLE_VERSION_KEY, RateService
from logistics.tests.factories import PackageFactory, ShippingRateFactory, TestConstants, ZoneFactory


@pytest.fixture
def locmem_cache(settings):
    """견적 캐시 동작 확인용 로컬 메모리 캐시"""
    settings.CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "rate-quote-tests",
        }
    }
    cache.clear()
    yield cache
    cache.clear()


@pytest.mark.django_db
class TestQuoteCalculation:
    """견적 금액 계산"""

    def test_min_charge_applied(self, warehouse, standard_rate):
        """
        기본 10 + kg당 2 × 2kg = 14 < 최소 15 → 15 USD
        """
        # Act
        result = RateService.quote(warehouse.id, "KR", "standard", Decimal("2"))

        # Assert
        assert result["weight_charge"] == Decimal("4.00")
        assert result["total"] == Decimal("15.00")
        assert result["min_charge_applied"] is True
        assert result["currency"] == "USD"
        assert result["rate_id"] == str(standard_rate.id)
        assert result["zone_name"] == "Asia"

    def test_weight_based_total(self, warehouse, standard_rate):
        """10 + 2 × 4.8 = 19.6"""
        result = RateService.quote(warehouse.id, "KR", "standard", Decimal("4.8"))

        assert result["weight_charge"] == Decimal("9.60")
        assert result["total"] == Decimal("19.60")
        assert result["min_charge_applied"] is False

    def test_total_rounded_half_up_to_currency_units(self, warehouse, zone):
        """USD는 소수점 2자리 half-up"""
        ShippingRateFactory(
            warehouse=warehouse,
            zone=zone,
            base_rate=Decimal("10"),
            per_kg_rate=Decimal("1.2345"),
            min_charge=Decimal("0"),
        )

        # 10 + 1.2345 × 1 = 11.2345 → 11.23, 10 + 1.2345 × 3 = 13.7035 → 13.70
        assert RateService.quote(warehouse.id, "KR", "standard", Decimal("1"))["total"] == Decimal("11.23")
        assert RateService.quote(warehouse.id, "KR", "standard", Decimal("3"))["total"] == Decimal("13.70")

    def test_zero_decimal_currency(self, warehouse, zone):
        """KRW는 정수 단위로 반올림"""
        ShippingRateFactory(
            warehouse=warehouse,
            zone=zone,
            base_rate=Decimal("15000"),
            per_kg_rate=Decimal("3500.5"),
            min_charge=Decimal("0"),
            currency="KRW",
        )

        result = RateService.quote(warehouse.id, "KR", "standard", Decimal("1"))

        assert result["total"] == Decimal("18501")
        assert result["currency"] == "KRW"

    def test_quote_is_pure(self, warehouse, standard_rate):
        """같은 입력, 요율표 변경 없음 → 같은 결과"""
        first = RateService.quote(warehouse.id, "KR", "standard", Decimal("3.5"), date(2025, 6, 1))
        second = RateService.quote(warehouse.id, "KR", "standard", Decimal("3.5"), date(2025, 6, 1))

        assert first == second


@pytest.mark.django_db
class TestQuoteFailures:
    """견적 실패 결과"""

    def test_zone_not_found_regardless_of_weight(self, warehouse, standard_rate):
        """Zone이 없는 국가 → 중량/창고가 잘못되어도 ZoneNotFound"""
        with pytest.raises(ZoneNotFound):
            RateService.quote(warehouse.id, "BR", "standard", Decimal("2"))

        with pytest.raises(ZoneNotFound):
            RateService.quote(uuid.uuid4(), "BR", "standard", Decimal("-5"))

        with pytest.raises(ZoneNotFound):
            RateService.quote(warehouse.id, "BR", "overnight", Decimal("0"))

    @pytest.mark.parametrize("weight", [Decimal("0"), Decimal("-1"), "abc", None])
    def test_invalid_weight(self, warehouse, standard_rate, weight):
        with pytest.raises(InvalidQuoteRequest) as exc_info:
            RateService.quote(warehouse.id, "KR", "standard", weight)

        assert isinstance(exc_info.value, InvalidInputError)

    def test_unknown_service_type(self, warehouse, standard_rate):
        with pytest.raises(InvalidQuoteRequest) as exc_info:
            RateService.quote(warehouse.id, "KR", "overnight", Decimal("1"))

        assert exc_info.value.details["service_type"] == "overnight"

    def test_no_rates_for_zone(self, other_warehouse, standard_rate):
        """다른 창고에는 Asia 요율이 없음"""
        with pytest.raises(NoRatesForZone) as exc_info:
            RateService.quote(other_warehouse.id, "KR", "standard", Decimal("1"))

        assert exc_info.value.code == "NO_RATES_FOR_ZONE"

    def test_rate_not_found_for_service_type(self, warehouse, standard_rate):
        """Zone 요율은 있지만 express 요율이 없음"""
        with pytest.raises(RateNotFound):
            RateService.quote(warehouse.id, "KR", "express", Decimal("1"))

    def test_rate_not_found_outside_effective_period(self, warehouse, zone):
        """기준일이 유효기간 밖"""
        ShippingRateFactory(
            warehouse=warehouse,
            zone=zone,
            effective_from=date(2025, 1, 1),
            effective_until=date(2025, 6, 30),
        )

        with pytest.raises(RateNotFound):
            RateService.quote(warehouse.id, "KR", "standard", Decimal("1"), date(2025, 7, 1))

        # 종료일 당일은 포함
        result = RateService.quote(warehouse.id, "KR", "standard", Decimal("1"), date(2025, 6, 30))
        assert result["total"] == TestConstants.DEFAULT_MIN_CHARGE

    def test_inactive_rate_ignored(self, warehouse, zone):
        ShippingRateFactory(warehouse=warehouse, zone=zone, is_active=False)

        with pytest.raises(NoRatesForZone):
            RateService.quote(warehouse.id, "KR", "standard", Decimal("1"))

    def test_weight_exceeds_rate_limit(self, warehouse, zone):
        ShippingRateFactory(warehouse=warehouse, zone=zone, max_weight_kg=Decimal("30"))

        with pytest.raises(WeightExceedsRateLimit) as exc_info:
            RateService.quote(warehouse.id, "KR", "standard", Decimal("30.001"))

        assert isinstance(exc_info.value, ConstraintViolationError)
        # 경계값은 허용
        assert RateService.quote(warehouse.id, "KR", "standard", Decimal("30"))["total"] == Decimal("70.00")

    def test_overlapping_rates_at_read_time_are_fatal(self, warehouse, zone):
        """쓰기 검사를 우회해 겹친 요율 → AmbiguousRate (임의 선택하지 않음)"""
        ShippingRateFactory(warehouse=warehouse, zone=zone, effective_from=date(2025, 1, 1))
        ShippingRateFactory(warehouse=warehouse, zone=zone, effective_from=date(2025, 3, 1))

        with pytest.raises(AmbiguousRate) as exc_info:
            RateService.quote(warehouse.id, "KR", "standard", Decimal("1"), date(2025, 4, 1))

        assert exc_info.value.fatal is True
        assert len(exc_info.value.details["rate_ids"]) == 2


@pytest.mark.django_db
class TestAvailableServices:
    """서비스 타입별 견적 목록"""

    def test_lists_services_sorted_by_total(self, warehouse, zone, standard_rate):
        ShippingRateFactory.express(warehouse=warehouse, zone=zone, base_rate=Decimal("30"))
        ShippingRateFactory.economy(warehouse=warehouse, zone=zone, base_rate=Decimal("5"), min_charge=Decimal("0"))

        results = RateService.available_services(warehouse.id, "KR", Decimal("1"))

        assert [r["service_type"] for r in results] == ["economy", "standard", "express"]
        assert [r["total"] for r in results] == [Decimal("7.00"), Decimal("15.00"), Decimal("32.00")]

    def test_skips_services_over_weight_limit(self, warehouse, zone, standard_rate):
        ShippingRateFactory.economy(warehouse=warehouse, zone=zone, max_weight_kg=Decimal("5"))

        results = RateService.available_services(warehouse.id, "KR", Decimal("10"))

        assert [r["service_type"] for r in results] == ["standard"]

    def test_zone_not_found_propagates(self, warehouse, standard_rate):
        with pytest.raises(ZoneNotFound):
            RateService.available_services(warehouse.id, "BR", Decimal("1"))


@pytest.mark.django_db
class TestQuoteForPackages:
    """합배송 견적"""

    def test_uses_sum_of_package_chargeable_weights(self, warehouse, standard_rate):
        # 4.8kg + 2kg = 6.8kg → 10 + 13.6 = 23.6
        box = PackageFactory(warehouse=warehouse, weight_actual_kg=Decimal("2"), length_cm=40, width_cm=30, height_cm=20)
        envelope = PackageFactory(warehouse=warehouse, weight_actual_kg=Decimal("2"))

        result = RateService.quote_for_packages(warehouse.id, "KR", "standard", [box, envelope])

        assert result["chargeable_weight_kg"] == Decimal("6.800")
        assert result["total"] == Decimal("23.60")


@pytest.mark.django_db
class TestRateWrites:
    """요율 등록/수정 시 유효기간 중복 검사"""

    def test_create_rate(self, warehouse, zone):
        rate = RateService.create_rate(
            warehouse_id=warehouse.id,
            zone_id=zone.id,
            service_type="express",
            base_rate=Decimal("20"),
            per_kg_rate=Decimal("5"),
            effective_from=date(2025, 1, 1),
        )

        assert ShippingRate.objects.filter(pk=rate.pk, service_type="express").exists()

    def test_create_rate_overlap_rejected(self, warehouse, zone, standard_rate):
        """무기한 요율과 겹치는 기간"""
        with pytest.raises(OverlappingEffectivePeriod) as exc_info:
            RateService.create_rate(
                warehouse_id=warehouse.id,
                zone_id=zone.id,
                service_type="standard",
                base_rate=Decimal("12"),
                per_kg_rate=Decimal("2"),
                effective_from=date(2026, 1, 1),
            )

        assert exc_info.value.details["conflicting_rate_ids"] == [str(standard_rate.id)]
        assert ShippingRate.objects.filter(warehouse=warehouse, service_type="standard").count() == 1

    def test_adjacent_periods_allowed(self, warehouse, zone):
        """종료일 다음날 시작하는 요율은 허용"""
        RateService.create_rate(
            warehouse_id=warehouse.id,
            zone_id=zone.id,
            service_type="standard",
            base_rate=Decimal("10"),
            per_kg_rate=Decimal("2"),
            effective_from=date(2025, 1, 1),
            effective_until=date(2025, 6, 30),
        )
        RateService.create_rate(
            warehouse_id=warehouse.id,
            zone_id=zone.id,
            service_type="standard",
            base_rate=Decimal("11"),
            per_kg_rate=Decimal("2"),
            effective_from=date(2025, 7, 1),
        )

        june = RateService.quote(warehouse.id, "KR", "standard", Decimal("5"), date(2025, 6, 30))
        july = RateService.quote(warehouse.id, "KR", "standard", Decimal("5"), date(2025, 7, 1))
        assert june["total"] == Decimal("20.00")
        assert july["total"] == Decimal("21.00")

    def test_same_period_other_service_type_allowed(self, warehouse, zone, standard_rate):
        rate = RateService.create_rate(
            warehouse_id=warehouse.id,
            zone_id=zone.id,
            service_type="economy",
            base_rate=Decimal("5"),
            per_kg_rate=Decimal("1"),
            effective_from=standard_rate.effective_from,
        )

        assert rate.pk is not None

    def test_inactive_rate_may_overlap(self, warehouse, zone, standard_rate):
        """비활성 요율은 중복 검사 대상이 아님"""
        rate = RateService.create_rate(
            warehouse_id=warehouse.id,
            zone_id=zone.id,
            service_type="standard",
            base_rate=Decimal("9"),
            per_kg_rate=Decimal("2"),
            effective_from=date(2026, 1, 1),
            is_active=False,
        )

        assert rate.is_active is False

    def test_invalid_period(self, warehouse, zone):
        with pytest.raises(InvalidInputError) as exc_info:
            RateService.create_rate(
                warehouse_id=warehouse.id,
                zone_id=zone.id,
                service_type="standard",
                base_rate=Decimal("10"),
                per_kg_rate=Decimal("2"),
                effective_from=date(2025, 7, 1),
                effective_until=date(2025, 6, 30),
            )

        assert exc_info.value.code == "INVALID_EFFECTIVE_PERIOD"

    def test_unknown_warehouse(self, zone):
        with pytest.raises(WarehouseNotFound):
            RateService.create_rate(
                warehouse_id=uuid.uuid4(),
                zone_id=zone.id,
                service_type="standard",
                base_rate=Decimal("10"),
                per_kg_rate=Decimal("2"),
                effective_from=date(2025, 1, 1),
            )

    def test_update_rate_closing_period_then_create_successor(self, warehouse, zone, standard_rate):
        """기존 요율 종료일 지정 후 후속 요율 등록"""
        RateService.update_rate(standard_rate.id, effective_until=date(2025, 12, 31))
        successor = RateService.create_rate(
            warehouse_id=warehouse.id,
            zone_id=zone.id,
            service_type="standard",
            base_rate=Decimal("12"),
            per_kg_rate=Decimal("2"),
            effective_from=date(2026, 1, 1),
        )

        assert successor.pk is not None

    def test_update_rate_overlap_rejected(self, warehouse, zone):
        first = ShippingRateFactory(
            warehouse=warehouse, zone=zone, effective_from=date(2025, 1, 1), effective_until=date(2025, 6, 30)
        )
        ShippingRateFactory(warehouse=warehouse, zone=zone, effective_from=date(2025, 7, 1))

        with pytest.raises(OverlappingEffectivePeriod):
            RateService.update_rate(first.id, effective_until=date(2025, 7, 15))

        first.refresh_from_db()
        assert first.effective_until == date(2025, 6, 30)

    def test_update_rate_not_editable_field(self, standard_rate):
        with pytest.raises(InvalidInputError):
            RateService.update_rate(standard_rate.id, service_type="express")

    def test_update_unknown_rate(self, db):
        with pytest.raises(RateNotFound):
            RateService.update_rate(uuid.uuid4(), base_rate=Decimal("1"))


@pytest.mark.django_db
class TestQuoteCache:
    """견적 캐시와 요율표 버전 무효화"""

    def test_cached_quote_returned(self, warehouse, standard_rate, locmem_cache, django_assert_num_queries):
        """두 번째 호출은 Zone 조회만 하고 요율은 캐시에서 가져옴"""
        first = RateService.quote(warehouse.id, "KR", "standard", Decimal("2"), date(2025, 6, 1))

        with django_assert_num_queries(1):
            second = RateService.quote(warehouse.id, "KR", "standard", Decimal("2"), date(2025, 6, 1))

        assert first == second

    def test_rate_change_invalidates_cache(
        self, warehouse, zone, standard_rate, locmem_cache, django_capture_on_commit_callbacks
    ):
        """요율 수정이 커밋되면 이전 견적 캐시는 사용되지 않음"""
        before = RateService.quote(warehouse.id, "KR", "standard", Decimal("5"), date(2025, 6, 1))

        with django_capture_on_commit_callbacks(execute=True):
            RateService.update_rate(standard_rate.id, base_rate=Decimal("20"))

        after = RateService.quote(warehouse.id, "KR", "standard", Decimal("5"), date(2025, 6, 1))
        assert before["total"] == Decimal("20.00")
        assert after["total"] == Decimal("30.00")

    def test_zone_membership_change_bumps_version(
        self, zone, locmem_cache, django_capture_on_commit_callbacks
    ):
        version = RateService.rate_table_version()

        with django_capture_on_commit_callbacks(execute=True):
            ZoneFactory(name="Oceania", countries=["AU"])

        assert RateService.rate_table_version() > version

    def test_bump_after_eviction_moves_past_previous_versions(self, locmem_cache):
        """버전 키가 축출된 뒤 bump해도 이전 버전 번호로 돌아가지 않음"""
        RateService.bump_rate_table_version()
        previous = RateService.rate_table_version()
        cache.delete(RATE_TABLE_VERSION_KEY)

        RateService.bump_rate_table_version()

        assert RateService.rate_table_version() > previous

    def test_evicted_version_does_not_serve_stale_quote(self, warehouse, zone, standard_rate, locmem_cache):
        """버전 키 축출 후에는 이전 버전으로 캐시된 견적을 쓰지 않음"""
        # Arrange: 견적 캐시 후 시그널 없이 요율 변경
        RateService.quote(warehouse.id, "KR", "standard", Decimal("5"), date(2025, 6, 1))
        ShippingRate.objects.filter(pk=standard_rate.pk).update(base_rate=Decimal("20"))
        cached = RateService.quote(warehouse.id, "KR", "standard", Decimal("5"), date(2025, 6, 1))

        # Act
        cache.delete(RATE_TABLE_VERSION_KEY)
        fresh = RateService.quote(warehouse.id, "KR", "standard", Decimal("5"), date(2025, 6, 1))

        # Assert
        assert cached["total"] == Decimal("20.00")
        assert fresh["total"] == Decimal("30.00")

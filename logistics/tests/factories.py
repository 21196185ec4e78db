"""
Test factories for logistics app

Factory Boy를 사용하여 테스트 데이터를 생성합니다.
- 창고/Zone/요율/Bin/화물/보관료 기본값 제공
- 필요한 값만 오버라이드해서 사용
"""

from datetime import date
from decimal import Decimal

import factory
from django.contrib.auth import get_user_model
from django.utils import timezone
from factory.django import DjangoModelFactory

from logistics.models import (
    BinLocation,
    Package,
    PackageBinAssignment,
    ShippingRate,
    StorageCharge,
    StoragePricing,
    Warehouse,
    Zone,
    ZoneCountry,
)


# ==========================================
# 상수 정의
# ==========================================


class TestConstants:
    """테스트에서 사용하는 상수"""

    # 요율 (예: 기본 10 + kg당 2, 최소 15 USD)
    DEFAULT_BASE_RATE = Decimal("10")
    DEFAULT_PER_KG_RATE = Decimal("2")
    DEFAULT_MIN_CHARGE = Decimal("15")
    DEFAULT_CURRENCY = "USD"

    # 요율/요금표 유효기간
    DEFAULT_EFFECTIVE_FROM = date(2024, 1, 1)

    # 보관 요금표 (무료 7일, 이후 일 2.00)
    DEFAULT_FREE_DAYS = 7
    DEFAULT_DAILY_RATE = Decimal("2.00")

    # Bin
    DEFAULT_BIN_CAPACITY = 5

    # 화물
    DEFAULT_WEIGHT_KG = Decimal("2.000")

    # 비밀번호
    DEFAULT_PASSWORD = "testpass123"


# ==========================================
# User Factories
# ==========================================


class UserFactory(DjangoModelFactory):
    """
    User factory

    사용 예시:
        user = UserFactory()  # 일반 사용자
        staff = UserFactory.staff()  # 창고 운영자
    """

    class Meta:
        model = get_user_model()
        django_get_or_create = ("username",)
        skip_postgeneration_save = True

    username = factory.Sequence(lambda n: f"testuser{n}")
    email = factory.LazyAttribute(lambda obj: f"{obj.username}@test.com")
    is_staff = False
    is_active = True

    @factory.post_generation
    def password(obj, create, extracted, **kwargs):
        """extracted가 있으면 해당 비밀번호, 없으면 기본 비밀번호"""
        if not create:
            return

        obj.set_password(extracted if extracted else TestConstants.DEFAULT_PASSWORD)
        obj.save()

    @classmethod
    def staff(cls, **kwargs):
        """창고 운영자"""
        kwargs.setdefault("is_staff", True)
        return cls(**kwargs)


# ==========================================
# 창고 / Zone / 요율 Factories
# ==========================================


class WarehouseFactory(DjangoModelFactory):
    """Warehouse factory"""

    class Meta:
        model = Warehouse
        django_get_or_create = ("code",)

    code = factory.Sequence(lambda n: f"WH{n:03d}")
    name = factory.Sequence(lambda n: f"테스트 창고 {n}")
    country_code = "US"
    is_active = True


class ZoneFactory(DjangoModelFactory):
    """
    Zone factory

    사용 예시:
        zone = ZoneFactory()  # 국가 없음
        zone = ZoneFactory(countries=["US", "CA"])  # 국가 포함
    """

    class Meta:
        model = Zone
        skip_postgeneration_save = True

    name = factory.Sequence(lambda n: f"Zone {n}")
    description = "테스트 Zone"
    is_active = True

    @factory.post_generation
    def countries(obj, create, extracted, **kwargs):
        if not create or not extracted:
            return

        for code in extracted:
            ZoneCountry.objects.create(zone=obj, country_code=code)

    @classmethod
    def inactive(cls, **kwargs):
        """비활성 Zone"""
        kwargs.setdefault("is_active", False)
        return cls(**kwargs)


class ZoneCountryFactory(DjangoModelFactory):
    """ZoneCountry factory"""

    class Meta:
        model = ZoneCountry

    zone = factory.SubFactory(ZoneFactory)
    country_code = "US"


class ShippingRateFactory(DjangoModelFactory):
    """
    ShippingRate factory

    사용 예시:
        rate = ShippingRateFactory(warehouse=warehouse, zone=zone)
        rate = ShippingRateFactory.express(warehouse=warehouse, zone=zone)
    """

    class Meta:
        model = ShippingRate

    warehouse = factory.SubFactory(WarehouseFactory)
    zone = factory.SubFactory(ZoneFactory)
    service_type = "standard"
    base_rate = TestConstants.DEFAULT_BASE_RATE
    per_kg_rate = TestConstants.DEFAULT_PER_KG_RATE
    min_charge = TestConstants.DEFAULT_MIN_CHARGE
    max_weight_kg = None
    currency = TestConstants.DEFAULT_CURRENCY
    is_active = True
    effective_from = TestConstants.DEFAULT_EFFECTIVE_FROM
    effective_until = None

    @classmethod
    def economy(cls, **kwargs):
        kwargs.setdefault("service_type", "economy")
        return cls(**kwargs)

    @classmethod
    def express(cls, **kwargs):
        kwargs.setdefault("service_type", "express")
        return cls(**kwargs)


# ==========================================
# Bin / 화물 Factories
# ==========================================


class BinLocationFactory(DjangoModelFactory):
    """
    BinLocation factory

    사용 예시:
        bin_location = BinLocationFactory(warehouse=warehouse)
        bin_location = BinLocationFactory.single(warehouse=warehouse)  # 1개만 수용
    """

    class Meta:
        model = BinLocation

    warehouse = factory.SubFactory(WarehouseFactory)
    bin_code = factory.Sequence(lambda n: f"A-{n:02d}-01")
    zone_name = "A"
    max_capacity = TestConstants.DEFAULT_BIN_CAPACITY
    max_weight_kg = None
    daily_premium = Decimal("0")
    currency = TestConstants.DEFAULT_CURRENCY
    is_active = True

    @classmethod
    def single(cls, **kwargs):
        """수용 개수 1개인 Bin"""
        kwargs.setdefault("max_capacity", 1)
        return cls(**kwargs)

    @classmethod
    def premium(cls, **kwargs):
        """온습도 관리 할증 Bin"""
        kwargs.setdefault("daily_premium", Decimal("1.00"))
        kwargs.setdefault("is_climate_controlled", True)
        return cls(**kwargs)


class PackageFactory(DjangoModelFactory):
    """
    Package factory

    사용 예시:
        package = PackageFactory(warehouse=warehouse)
        package = PackageFactory.shipped(warehouse=warehouse)
    """

    class Meta:
        model = Package

    internal_id = factory.Sequence(lambda n: f"PKG-{n:06d}")
    warehouse = factory.SubFactory(WarehouseFactory)
    description = "테스트 화물"
    status = "received"
    weight_actual_kg = TestConstants.DEFAULT_WEIGHT_KG
    length_cm = None
    width_cm = None
    height_cm = None
    received_at = factory.LazyFunction(timezone.now)

    @classmethod
    def shipped(cls, **kwargs):
        """출고 완료 (보관 종료)"""
        kwargs.setdefault("status", "shipped")
        return cls(**kwargs)

    @classmethod
    def expected(cls, **kwargs):
        """입고 예정 (입고일 없음)"""
        kwargs.setdefault("status", "expected")
        kwargs.setdefault("received_at", None)
        return cls(**kwargs)


class PackageBinAssignmentFactory(DjangoModelFactory):
    """
    PackageBinAssignment factory

    서비스를 거치지 않으므로 Bin 적재 수는 변하지 않습니다.
    보관료 계산처럼 배정 이력만 필요한 테스트에 사용합니다.
    """

    class Meta:
        model = PackageBinAssignment

    package = factory.SubFactory(PackageFactory)
    bin = factory.SubFactory(BinLocationFactory, warehouse=factory.SelfAttribute("..package.warehouse"))
    assigned_at = factory.LazyFunction(timezone.now)
    removed_at = None
    assignment_reason = "manual_assignment"


# ==========================================
# 보관료 Factories
# ==========================================


class StoragePricingFactory(DjangoModelFactory):
    """
    StoragePricing factory

    warehouse=None이면 기본 요금표입니다.
    """

    class Meta:
        model = StoragePricing

    warehouse = None
    free_days = TestConstants.DEFAULT_FREE_DAYS
    daily_rate_after_free = TestConstants.DEFAULT_DAILY_RATE
    currency = TestConstants.DEFAULT_CURRENCY
    is_active = True
    effective_from = TestConstants.DEFAULT_EFFECTIVE_FROM
    effective_until = None


class StorageChargeFactory(DjangoModelFactory):
    """StorageCharge factory"""

    class Meta:
        model = StorageCharge

    package = factory.SubFactory(PackageFactory)
    bin_location = factory.SubFactory(BinLocationFactory, warehouse=factory.SelfAttribute("..package.warehouse"))
    charge_from_date = date(2025, 1, 1)
    charge_to_date = date(2025, 1, 11)
    days_charged = 10
    base_storage_fee = Decimal("6.00")
    bin_location_fee = Decimal("0.00")
    total_storage_fee = Decimal("6.00")
    currency = TestConstants.DEFAULT_CURRENCY
    daily_rate = TestConstants.DEFAULT_DAILY_RATE
    free_days_applied = 7
    is_invoiced = False

from datetime import timedelta

from django.conf import settings
from django.utils import timezone

import pytest
from rest_framework.test import APIClient

from logistics.tests.factories import (
    BinLocationFactory,
    PackageFactory,
    ShippingRateFactory,
    StoragePricingFactory,
    TestConstants,
    UserFactory,
    WarehouseFactory,
    ZoneFactory,
)

# ==========================================
# 1. 전역 설정 (Session Scope)
# ==========================================


@pytest.fixture(scope="session", autouse=True)
def setup_celery_for_tests():
    """
    테스트 환경에서 Celery 동기 실행 설정

    Session scope: 전체 테스트 세션에서 한 번만 실행
    autouse: 자동으로 모든 테스트에 적용
    """
    settings.CELERY_TASK_ALWAYS_EAGER = True
    settings.CELERY_TASK_EAGER_PROPAGATES = True


@pytest.fixture(scope="session", autouse=True)
def setup_logging_for_tests():
    """
    테스트 환경에서 로그 propagation 활성화

    caplog가 로그를 캡처할 수 있도록 propagate=True로 설정
    """
    import logging

    for logger_name in [
        "logistics.services",
        "logistics.tasks",
        "logistics.views",
    ]:
        logger = logging.getLogger(logger_name)
        logger.propagate = True


# ==========================================
# 2. API 클라이언트 / 사용자 Fixture
# ==========================================


@pytest.fixture
def api_client():
    """DRF APIClient 인스턴스 (비인증)"""
    return APIClient()


@pytest.fixture
def user(db):
    """일반 사용자 (창고 운영 권한 없음)"""
    return UserFactory(username="testuser")


@pytest.fixture
def staff_user(db):
    """창고 운영자"""
    return UserFactory.staff(username="staffuser")


@pytest.fixture
def authenticated_client(api_client, user):
    """일반 사용자로 인증된 클라이언트"""
    api_client.force_authenticate(user=user)
    return api_client


@pytest.fixture
def staff_client(api_client, staff_user):
    """창고 운영자로 인증된 클라이언트"""
    api_client.force_authenticate(user=staff_user)
    return api_client


# ==========================================
# 3. 창고 / Zone / 요율 Fixture
# ==========================================


@pytest.fixture
def warehouse(db):
    """기본 창고 (미국)"""
    return WarehouseFactory(code="US-DE", name="델라웨어 센터")


@pytest.fixture
def other_warehouse(db):
    """다른 창고"""
    return WarehouseFactory(code="JP-TK", name="도쿄 센터", country_code="JP")


@pytest.fixture
def zone(db):
    """
    아시아 Zone (KR, JP)
    """
    return ZoneFactory(name="Asia", countries=["KR", "JP"])


@pytest.fixture
def standard_rate(db, warehouse, zone):
    """
    스탠다드 요율: 기본 10 + kg당 2, 최소 15 USD (기간 제한 없음)
    """
    return ShippingRateFactory(warehouse=warehouse, zone=zone, service_type="standard")


# ==========================================
# 4. Bin / 화물 / 보관 요금표 Fixture
# ==========================================


@pytest.fixture
def bin_location(db, warehouse):
    """수용 개수 5개 Bin"""
    return BinLocationFactory(warehouse=warehouse, bin_code="A-01-01")


@pytest.fixture
def single_bin(db, warehouse):
    """수용 개수 1개 Bin"""
    return BinLocationFactory.single(warehouse=warehouse, bin_code="B-01-01")


@pytest.fixture
def package(db, warehouse):
    """입고 완료된 2kg 화물"""
    return PackageFactory(warehouse=warehouse)


@pytest.fixture
def package_factory(db, warehouse):
    """
    같은 창고의 화물을 여러 개 만드는 Factory

    사용 예시:
        def test_something(package_factory):
            p1 = package_factory()
            p2 = package_factory(weight_actual_kg=Decimal("5"))
    """

    def _create(**kwargs):
        kwargs.setdefault("warehouse", warehouse)
        return PackageFactory(**kwargs)

    return _create


@pytest.fixture
def default_pricing(db):
    """기본 보관 요금표: 무료 7일, 이후 일 2.00 USD"""
    return StoragePricingFactory(
        free_days=TestConstants.DEFAULT_FREE_DAYS,
        daily_rate_after_free=TestConstants.DEFAULT_DAILY_RATE,
    )


@pytest.fixture
def days_ago():
    """
    N일 전 같은 시각

    timezone.localdate() 기준으로 날짜 차이가 정확히 N일이 되도록 현재 시각에서 뺍니다.
    """

    def _days_ago(days):
        return timezone.now() - timedelta(days=days)

    return _days_ago


# ==========================================
# 5. 기타 유틸리티 Fixture
# ==========================================


@pytest.fixture
def freeze_time(mocker):
    """
    시간 고정 유틸리티

    사용 예시:
        def test_with_time(freeze_time):
            freeze_time(timezone.make_aware(datetime(2025, 1, 15, 10, 0, 0)))
    """

    def _freeze(dt):
        return mocker.patch("django.utils.timezone.now", return_value=dt)

    return _freeze

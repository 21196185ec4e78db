"""WeightService 단위 테스트"""

from decimal import Decimal

import pytest

from logistics.services.exceptions import InvalidInputError, InvalidMeasurement
from logistics.services.weight_service import WeightService
from logistics.tests.factories import PackageFactory


class TestVolumetricWeight:
    """부피중량 계산 테스트"""

    def test_volumetric_weight_standard_box(self):
        """40×30×20cm → 24000 / 5000 = 4.8kg"""
        # Act
        result = WeightService.volumetric_weight(40, 30, 20)

        # Assert
        assert result == Decimal("4.800")

    def test_volumetric_weight_rounds_to_grams(self):
        """소수점 3자리 올림"""
        # 11 × 11 × 11 = 1331 / 5000 = 0.2662
        result = WeightService.volumetric_weight(11, 11, 11)

        assert result == Decimal("0.267")

    @pytest.mark.parametrize(
        "dims",
        [
            (None, 30, 20),
            (40, None, 20),
            (40, 30, None),
            (0, 30, 20),
            ("", 30, 20),
        ],
    )
    def test_missing_or_zero_dimension_returns_zero(self, dims):
        """치수가 하나라도 없거나 0이면 부피중량 0"""
        result = WeightService.volumetric_weight(*dims)

        assert result == Decimal("0")

    def test_negative_dimension_raises(self):
        """음수 치수는 InvalidMeasurement"""
        with pytest.raises(InvalidMeasurement) as exc_info:
            WeightService.volumetric_weight(-1, 30, 20)

        assert exc_info.value.code == "INVALID_MEASUREMENT"
        assert exc_info.value.details["field"] == "length_cm"

    def test_non_numeric_dimension_raises(self):
        """숫자가 아닌 치수는 InvalidMeasurement"""
        with pytest.raises(InvalidMeasurement):
            WeightService.volumetric_weight("abc", 30, 20)

    def test_volumetric_divisor_from_settings(self, settings):
        """VOLUMETRIC_DIVISOR 설정값 사용"""
        settings.VOLUMETRIC_DIVISOR = 6000

        result = WeightService.volumetric_weight(40, 30, 20)

        assert result == Decimal("4.000")


class TestChargeableWeight:
    """청구중량 계산 테스트"""

    def test_volumetric_greater_than_actual(self):
        """40×30×20cm, 실중량 2kg → 청구중량 4.8kg"""
        # Act
        result = WeightService.chargeable_weight(Decimal("2"), 40, 30, 20)

        # Assert
        assert result == Decimal("4.800")

    def test_actual_greater_than_volumetric(self):
        """실중량이 더 크면 실중량"""
        result = WeightService.chargeable_weight(Decimal("10.5"), 40, 30, 20)

        assert result == Decimal("10.500")

    def test_without_dimensions_uses_actual(self):
        """치수가 없으면 실중량만 사용"""
        result = WeightService.chargeable_weight("3.25")

        assert result == Decimal("3.250")

    def test_zero_actual_weight_allowed(self):
        """실중량 0 + 치수 없음 → 0"""
        result = WeightService.chargeable_weight(0)

        assert result == Decimal("0.000")

    def test_negative_actual_weight_raises(self):
        """음수 실중량은 InvalidMeasurement"""
        with pytest.raises(InvalidMeasurement) as exc_info:
            WeightService.chargeable_weight(Decimal("-1"))

        assert exc_info.value.details["field"] == "weight_actual_kg"

    def test_missing_actual_weight_raises(self):
        """실중량이 없으면 InvalidMeasurement"""
        with pytest.raises(InvalidMeasurement):
            WeightService.chargeable_weight(None, 40, 30, 20)

    def test_invalid_measurement_is_invalid_input(self):
        """InvalidMeasurement는 입력 오류 카테고리"""
        with pytest.raises(InvalidInputError):
            WeightService.chargeable_weight(Decimal("-0.1"))

    @pytest.mark.parametrize(
        "actual, dims",
        [
            (Decimal("0.5"), (10, 10, 10)),
            (Decimal("1"), (50, 40, 30)),
            (Decimal("25"), (50, 40, 30)),
            (Decimal("7.777"), (33.3, 21.7, 14.1)),
            (Decimal("0"), (1, 1, 1)),
            (Decimal("0.001"), (3, 3, 3)),
            (Decimal("2.0004"), (10, 10, 10)),
            (Decimal("0.0001"), (11, 11, 11)),
        ],
    )
    def test_chargeable_not_less_than_either_weight(self, actual, dims):
        """청구중량 ≥ 실중량, 청구중량 ≥ 반올림 전 부피중량"""
        chargeable = WeightService.chargeable_weight(actual, *dims)
        length, width, height = (Decimal(str(d)) for d in dims)
        exact_volumetric = length * width * height / Decimal("5000")

        assert chargeable >= actual
        assert chargeable >= exact_volumetric

    def test_sub_gram_actual_weight_rounds_up(self):
        """g 미만 실중량은 올림 (2.0004kg → 2.001kg)"""
        result = WeightService.chargeable_weight(Decimal("2.0004"))

        assert result == Decimal("2.001")

    def test_sub_gram_volumetric_weight_rounds_up(self):
        """3×3×3cm = 0.0054kg → 0.006kg"""
        result = WeightService.chargeable_weight(Decimal("0.001"), 3, 3, 3)

        assert result == Decimal("0.006")


@pytest.mark.django_db
class TestAggregateChargeableWeight:
    """여러 화물 청구중량 합계 테스트"""

    def test_sums_per_package_chargeable_weight(self):
        """화물별 청구중량을 더함 (합포장 부피로 계산하지 않음)"""
        # Arrange
        packages = [
            {"weight_actual_kg": Decimal("2"), "length_cm": 40, "width_cm": 30, "height_cm": 20},  # 4.8
            {"weight_actual_kg": Decimal("3")},  # 3
        ]

        # Act
        total = WeightService.aggregate_chargeable_weight(packages)

        # Assert
        assert total == Decimal("7.800")

    def test_uses_stored_weight_for_model_instances(self):
        """Package 인스턴스는 저장된 chargeable_weight_kg 사용"""
        # Arrange
        box = PackageFactory(weight_actual_kg=Decimal("2"), length_cm=40, width_cm=30, height_cm=20)
        envelope = PackageFactory(weight_actual_kg=Decimal("0.5"))

        # Act
        total = WeightService.aggregate_chargeable_weight([box, envelope])

        # Assert
        assert box.chargeable_weight_kg == Decimal("4.800")
        assert total == Decimal("5.300")

    def test_empty_list_returns_zero(self):
        assert WeightService.aggregate_chargeable_weight([]) == Decimal("0.000")

    def test_invalid_entry_raises(self):
        """목록 중 하나라도 잘못되면 InvalidMeasurement"""
        with pytest.raises(InvalidMeasurement):
            WeightService.aggregate_chargeable_weight(
                [{"weight_actual_kg": Decimal("1")}, {"weight_actual_kg": Decimal("-2")}]
            )


@pytest.mark.django_db
class TestPackageDerivedWeights:
    """Package 저장 시 파생 무게 계산"""

    def test_save_computes_volumetric_and_chargeable(self):
        """입고 실측 후 저장하면 부피중량/청구중량이 채워짐"""
        package = PackageFactory(weight_actual_kg=Decimal("2"), length_cm=40, width_cm=30, height_cm=20)

        package.refresh_from_db()
        assert package.volumetric_weight_kg == Decimal("4.800")
        assert package.chargeable_weight_kg == Decimal("4.800")

    def test_update_fields_includes_derived_weights(self):
        """update_fields로 치수만 저장해도 파생 무게가 함께 저장됨"""
        package = PackageFactory(weight_actual_kg=Decimal("1"))

        package.length_cm = Decimal("50")
        package.width_cm = Decimal("40")
        package.height_cm = Decimal("30")
        package.save(update_fields=["length_cm", "width_cm", "height_cm"])

        package.refresh_from_db()
        assert package.volumetric_weight_kg == Decimal("12.000")
        assert package.chargeable_weight_kg == Decimal("12.000")

    def test_missing_actual_weight_saves_volumetric_only(self):
        """실중량 미입력 화물은 부피중량만 반영"""
        package = PackageFactory.expected(weight_actual_kg=None, length_cm=40, width_cm=30, height_cm=20)

        package.refresh_from_db()
        assert package.chargeable_weight_kg == Decimal("4.800")

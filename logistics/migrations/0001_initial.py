import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

import logistics.utils.currency


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Warehouse",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("code", models.CharField(max_length=20, unique=True, verbose_name="창고 코드")),
                ("name", models.CharField(max_length=100, verbose_name="창고명")),
                ("country_code", models.CharField(max_length=2, verbose_name="국가 코드")),
                ("is_active", models.BooleanField(default=True, verbose_name="운영 여부")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="생성일시")),
            ],
            options={
                "verbose_name": "창고",
                "verbose_name_plural": "창고 목록",
                "db_table": "logistics_warehouse",
                "ordering": ["code"],
            },
        ),
        migrations.CreateModel(
            name="Zone",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=100, unique=True, verbose_name="Zone명")),
                ("description", models.CharField(blank=True, max_length=255, verbose_name="설명")),
                ("is_active", models.BooleanField(default=True, verbose_name="활성 여부")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="생성일시")),
            ],
            options={
                "verbose_name": "배송 Zone",
                "verbose_name_plural": "배송 Zone 목록",
                "db_table": "logistics_zone",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="ZoneCountry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("country_code", models.CharField(max_length=2, verbose_name="국가 코드")),
                (
                    "zone",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="countries",
                        to="logistics.zone",
                        verbose_name="Zone",
                    ),
                ),
            ],
            options={
                "verbose_name": "Zone 소속 국가",
                "verbose_name_plural": "Zone 소속 국가 목록",
                "db_table": "logistics_zone_country",
                "indexes": [models.Index(fields=["country_code"], name="idx_zone_country_code")],
                "constraints": [
                    models.UniqueConstraint(fields=("zone", "country_code"), name="unique_country_per_zone"),
                ],
            },
        ),
        migrations.CreateModel(
            name="BinLocation",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("bin_code", models.CharField(max_length=50, verbose_name="Bin 코드")),
                ("zone_name", models.CharField(blank=True, max_length=50, verbose_name="구역명")),
                ("description", models.CharField(blank=True, max_length=255, verbose_name="설명")),
                (
                    "max_capacity",
                    models.PositiveIntegerField(
                        default=1,
                        validators=[django.core.validators.MinValueValidator(1)],
                        verbose_name="최대 수용 개수",
                    ),
                ),
                (
                    "current_occupancy",
                    models.PositiveIntegerField(
                        default=0,
                        editable=False,
                        help_text="열린 배정 수 (BinAssignmentService에서만 변경)",
                        verbose_name="현재 적재 개수",
                    ),
                ),
                (
                    "max_weight_kg",
                    models.DecimalField(
                        blank=True,
                        decimal_places=3,
                        help_text="비워두면 무게 제한 없음",
                        max_digits=10,
                        null=True,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                        verbose_name="최대 적재 무게(kg)",
                    ),
                ),
                (
                    "daily_premium",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0"),
                        help_text="특수 Bin(냉난방, 보안 등) 일일 할증",
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                        verbose_name="일일 추가 요금",
                    ),
                ),
                (
                    "currency",
                    models.CharField(
                        default=logistics.utils.currency.default_currency, max_length=3, verbose_name="통화"
                    ),
                ),
                ("is_climate_controlled", models.BooleanField(default=False, verbose_name="온습도 관리")),
                ("is_secured", models.BooleanField(default=False, verbose_name="보안 구역")),
                ("is_accessible", models.BooleanField(default=True, verbose_name="접근 가능")),
                ("is_active", models.BooleanField(default=True, verbose_name="사용 여부")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="생성일시")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="수정일시")),
                (
                    "warehouse",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bins",
                        to="logistics.warehouse",
                        verbose_name="창고",
                    ),
                ),
            ],
            options={
                "verbose_name": "보관 위치",
                "verbose_name_plural": "보관 위치 목록",
                "db_table": "logistics_bin_location",
                "ordering": ["warehouse", "bin_code"],
                "indexes": [models.Index(fields=["warehouse", "is_active"], name="idx_bin_warehouse_active")],
                "constraints": [
                    models.UniqueConstraint(fields=("warehouse", "bin_code"), name="unique_bin_code_per_warehouse"),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("current_occupancy__gte", 0),
                            ("current_occupancy__lte", models.F("max_capacity")),
                        ),
                        name="bin_occupancy_within_capacity",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ShippingRate",
            fields=[
                ("is_active", models.BooleanField(default=True, verbose_name="활성 여부")),
                ("effective_from", models.DateField(verbose_name="적용 시작일")),
                (
                    "effective_until",
                    models.DateField(
                        blank=True, help_text="포함. 비워두면 종료일 없음", null=True, verbose_name="적용 종료일"
                    ),
                ),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "service_type",
                    models.CharField(
                        choices=[("economy", "이코노미"), ("standard", "스탠다드"), ("express", "특송")],
                        max_length=20,
                        verbose_name="서비스 타입",
                    ),
                ),
                (
                    "base_rate",
                    models.DecimalField(
                        decimal_places=4,
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                        verbose_name="기본 요금",
                    ),
                ),
                (
                    "per_kg_rate",
                    models.DecimalField(
                        decimal_places=4,
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                        verbose_name="kg당 요금",
                    ),
                ),
                (
                    "min_charge",
                    models.DecimalField(
                        decimal_places=4,
                        default=Decimal("0"),
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                        verbose_name="최소 요금",
                    ),
                ),
                (
                    "max_weight_kg",
                    models.DecimalField(
                        blank=True,
                        decimal_places=3,
                        max_digits=10,
                        null=True,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                        verbose_name="최대 중량(kg)",
                    ),
                ),
                (
                    "currency",
                    models.CharField(
                        default=logistics.utils.currency.default_currency, max_length=3, verbose_name="통화"
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="생성일시")),
                (
                    "warehouse",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="shipping_rates",
                        to="logistics.warehouse",
                        verbose_name="출고 창고",
                    ),
                ),
                (
                    "zone",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="shipping_rates",
                        to="logistics.zone",
                        verbose_name="배송 Zone",
                    ),
                ),
            ],
            options={
                "verbose_name": "배송 요율",
                "verbose_name_plural": "배송 요율 목록",
                "db_table": "logistics_shipping_rate",
                "ordering": ["warehouse", "zone", "service_type", "-effective_from"],
                "indexes": [
                    models.Index(fields=["warehouse", "zone", "service_type", "is_active"], name="idx_rate_lookup"),
                    models.Index(
                        fields=["effective_from", "effective_until"], name="idx_rate_effective_period"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Package",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("internal_id", models.CharField(max_length=50, unique=True, verbose_name="내부 관리번호")),
                ("description", models.CharField(blank=True, max_length=255, verbose_name="내용물")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("expected", "입고예정"),
                            ("received", "입고완료"),
                            ("processing", "검수중"),
                            ("ready_to_ship", "출고대기"),
                            ("reserved", "출고예약"),
                            ("held", "보류"),
                            ("shipped", "출고완료"),
                            ("delivered", "배송완료"),
                            ("returned", "반송"),
                            ("disposed", "폐기"),
                            ("missing", "분실"),
                            ("damaged", "파손"),
                        ],
                        db_index=True,
                        default="expected",
                        max_length=20,
                        verbose_name="상태",
                    ),
                ),
                (
                    "weight_actual_kg",
                    models.DecimalField(
                        blank=True,
                        decimal_places=3,
                        max_digits=10,
                        null=True,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                        verbose_name="실중량(kg)",
                    ),
                ),
                (
                    "length_cm",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        max_digits=8,
                        null=True,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                        verbose_name="길이(cm)",
                    ),
                ),
                (
                    "width_cm",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        max_digits=8,
                        null=True,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                        verbose_name="너비(cm)",
                    ),
                ),
                (
                    "height_cm",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        max_digits=8,
                        null=True,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                        verbose_name="높이(cm)",
                    ),
                ),
                (
                    "volumetric_weight_kg",
                    models.DecimalField(
                        decimal_places=3, default=Decimal("0"), editable=False, max_digits=10, verbose_name="부피중량(kg)"
                    ),
                ),
                (
                    "chargeable_weight_kg",
                    models.DecimalField(
                        decimal_places=3, default=Decimal("0"), editable=False, max_digits=10, verbose_name="청구중량(kg)"
                    ),
                ),
                ("received_at", models.DateTimeField(blank=True, null=True, verbose_name="입고일시")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="생성일시")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="수정일시")),
                (
                    "owner",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="packages",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="고객",
                    ),
                ),
                (
                    "warehouse",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="packages",
                        to="logistics.warehouse",
                        verbose_name="창고",
                    ),
                ),
            ],
            options={
                "verbose_name": "화물",
                "verbose_name_plural": "화물 목록",
                "db_table": "logistics_package",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["warehouse", "status"], name="idx_package_warehouse_status"),
                    models.Index(fields=["received_at"], name="idx_package_received_at"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PackageBinAssignment",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("assigned_at", models.DateTimeField(verbose_name="배정일시")),
                ("removed_at", models.DateTimeField(blank=True, null=True, verbose_name="해제일시")),
                ("assignment_reason", models.CharField(blank=True, max_length=100, verbose_name="배정 사유")),
                ("removal_reason", models.CharField(blank=True, max_length=100, verbose_name="해제 사유")),
                ("notes", models.TextField(blank=True, verbose_name="메모")),
                (
                    "assigned_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="배정자",
                    ),
                ),
                (
                    "bin",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="assignments",
                        to="logistics.binlocation",
                        verbose_name="Bin",
                    ),
                ),
                (
                    "package",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bin_assignments",
                        to="logistics.package",
                        verbose_name="화물",
                    ),
                ),
                (
                    "removed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="해제자",
                    ),
                ),
            ],
            options={
                "verbose_name": "Bin 배정",
                "verbose_name_plural": "Bin 배정 이력",
                "db_table": "logistics_package_bin_assignment",
                "ordering": ["-assigned_at"],
                "indexes": [
                    models.Index(fields=["bin", "removed_at"], name="idx_assignment_bin_open"),
                    models.Index(fields=["package", "assigned_at"], name="idx_assignment_package_time"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("removed_at__isnull", True)),
                        fields=("package",),
                        name="unique_open_assignment_per_package",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="StoragePricing",
            fields=[
                ("is_active", models.BooleanField(default=True, verbose_name="활성 여부")),
                ("effective_from", models.DateField(verbose_name="적용 시작일")),
                (
                    "effective_until",
                    models.DateField(
                        blank=True, help_text="포함. 비워두면 종료일 없음", null=True, verbose_name="적용 종료일"
                    ),
                ),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("free_days", models.PositiveIntegerField(default=0, verbose_name="무료 보관일")),
                (
                    "daily_rate_after_free",
                    models.DecimalField(
                        decimal_places=4,
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                        verbose_name="무료기간 이후 일일 요금",
                    ),
                ),
                (
                    "currency",
                    models.CharField(
                        default=logistics.utils.currency.default_currency, max_length=3, verbose_name="통화"
                    ),
                ),
                ("notes", models.TextField(blank=True, verbose_name="메모")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="생성일시")),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="등록자",
                    ),
                ),
                (
                    "warehouse",
                    models.ForeignKey(
                        blank=True,
                        help_text="비워두면 기본 요금표",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="storage_pricings",
                        to="logistics.warehouse",
                        verbose_name="창고",
                    ),
                ),
            ],
            options={
                "verbose_name": "보관 요금표",
                "verbose_name_plural": "보관 요금표 목록",
                "db_table": "logistics_storage_pricing",
                "ordering": ["warehouse", "-effective_from"],
                "indexes": [
                    models.Index(
                        fields=["warehouse", "is_active", "effective_from"], name="idx_storage_pricing_lookup"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="StorageCharge",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("charge_from_date", models.DateField(verbose_name="청구 시작일")),
                ("charge_to_date", models.DateField(help_text="해당 날짜는 미포함", verbose_name="청구 종료일")),
                ("days_charged", models.PositiveIntegerField(verbose_name="보관일수")),
                ("base_storage_fee", models.DecimalField(decimal_places=4, max_digits=12, verbose_name="기본 보관료")),
                ("bin_location_fee", models.DecimalField(decimal_places=4, max_digits=12, verbose_name="Bin 할증료")),
                ("total_storage_fee", models.DecimalField(decimal_places=4, max_digits=12, verbose_name="합계")),
                ("currency", models.CharField(max_length=3, verbose_name="통화")),
                ("daily_rate", models.DecimalField(decimal_places=4, max_digits=10, verbose_name="적용 일일 요금")),
                ("free_days_applied", models.PositiveIntegerField(default=0, verbose_name="적용된 무료일수")),
                ("is_invoiced", models.BooleanField(db_index=True, default=False, verbose_name="청구서 발행 여부")),
                ("invoice_id", models.CharField(blank=True, max_length=100, verbose_name="청구서 번호")),
                ("calculated_at", models.DateTimeField(auto_now_add=True, verbose_name="계산일시")),
                ("notes", models.TextField(blank=True, verbose_name="메모")),
                (
                    "bin_location",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="storage_charges",
                        to="logistics.binlocation",
                        verbose_name="Bin",
                    ),
                ),
                (
                    "package",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="storage_charges",
                        to="logistics.package",
                        verbose_name="화물",
                    ),
                ),
            ],
            options={
                "verbose_name": "보관료",
                "verbose_name_plural": "보관료 목록",
                "db_table": "logistics_storage_charge",
                "ordering": ["package", "charge_from_date"],
                "indexes": [
                    models.Index(fields=["package", "is_invoiced"], name="idx_charge_package_invoiced"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("package", "charge_from_date"), name="unique_charge_per_package_start"
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("charge_to_date__gt", models.F("charge_from_date"))),
                        name="charge_period_not_empty",
                    ),
                ],
            },
        ),
    ]

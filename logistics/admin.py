from django.contrib import admin, messages
from django.utils import timezone

from .models import (
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
from .services import BinAssignmentService, StorageFeeService


# Warehouse Admin
@admin.register(Warehouse)
class WarehouseAdmin(admin.ModelAdmin):
    list_display = ["code", "name", "country_code", "is_active", "created_at"]
    list_filter = ["is_active", "country_code"]
    search_fields = ["code", "name"]


class ZoneCountryInline(admin.TabularInline):
    model = ZoneCountry
    extra = 1


# Zone Admin
@admin.register(Zone)
class ZoneAdmin(admin.ModelAdmin):
    """
    배송 Zone 관리자 페이지 설정
    국가 추가/활성화 시 다른 활성 Zone과의 중복은 model.clean()에서 거부됩니다.
    """

    list_display = ["name", "is_active", "countries_display", "created_at"]
    list_filter = ["is_active"]
    search_fields = ["name", "countries__country_code"]
    inlines = [ZoneCountryInline]

    def countries_display(self, obj):
        return ", ".join(obj.country_codes)

    countries_display.short_description = "국가"


# ShippingRate Admin
@admin.register(ShippingRate)
class ShippingRateAdmin(admin.ModelAdmin):
    """
    배송 요율 관리자 페이지 설정
    유효기간 중복은 model.clean()에서 거부됩니다.
    """

    list_display = [
        "warehouse",
        "zone",
        "service_type",
        "base_rate",
        "per_kg_rate",
        "min_charge",
        "max_weight_kg",
        "currency",
        "effective_from",
        "effective_until",
        "is_active",
    ]
    list_filter = ["is_active", "service_type", "warehouse", "zone"]
    date_hierarchy = "effective_from"
    readonly_fields = ["created_at"]


# Package Admin
@admin.register(Package)
class PackageAdmin(admin.ModelAdmin):
    list_display = [
        "internal_id",
        "warehouse",
        "owner",
        "status",
        "weight_actual_kg",
        "chargeable_weight_kg",
        "received_at",
    ]
    list_filter = ["status", "warehouse"]
    search_fields = ["internal_id", "description", "owner__username"]
    readonly_fields = ["volumetric_weight_kg", "chargeable_weight_kg", "created_at", "updated_at"]
    actions = ["accrue_storage_charges"]

    @admin.action(description="선택한 화물 보관료 정산 (오늘 기준)")
    def accrue_storage_charges(self, request, queryset):
        summary = StorageFeeService.accrue_all(
            timezone.localdate(), package_ids=list(queryset.values_list("id", flat=True))
        )
        self.message_user(
            request,
            f"정산 완료: 처리 {summary['processed']}개, 생성 {summary['charges_created']}건, 실패 {summary['failed']}개",
            level=messages.WARNING if summary["failed"] else messages.SUCCESS,
        )


# BinLocation Admin
@admin.register(BinLocation)
class BinLocationAdmin(admin.ModelAdmin):
    list_display = [
        "bin_code",
        "warehouse",
        "zone_name",
        "current_occupancy",
        "max_capacity",
        "max_weight_kg",
        "daily_premium",
        "is_active",
    ]
    list_filter = ["warehouse", "is_active", "is_climate_controlled", "is_secured"]
    search_fields = ["bin_code", "zone_name"]
    readonly_fields = ["current_occupancy", "created_at", "updated_at"]
    actions = ["reconcile_occupancy"]

    @admin.action(description="적재 수 재계산")
    def reconcile_occupancy(self, request, queryset):
        for bin_location in queryset:
            BinAssignmentService.reconcile_occupancy(bin_location.pk)
        self.message_user(request, f"{queryset.count()}개 Bin의 적재 수를 재계산했습니다.")


# PackageBinAssignment Admin (조회 전용 - 배정/해제는 API 사용)
@admin.register(PackageBinAssignment)
class PackageBinAssignmentAdmin(admin.ModelAdmin):
    list_display = ["package", "bin", "assigned_at", "assignment_reason", "removed_at", "removal_reason"]
    list_filter = ["bin__warehouse", "assignment_reason", "removal_reason"]
    search_fields = ["package__internal_id", "bin__bin_code"]
    date_hierarchy = "assigned_at"

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# StoragePricing Admin
@admin.register(StoragePricing)
class StoragePricingAdmin(admin.ModelAdmin):
    """
    보관 요금표 관리자 페이지 설정
    같은 범위(창고/기본)의 유효기간 중복은 model.clean()에서 거부됩니다.
    """

    list_display = [
        "warehouse",
        "free_days",
        "daily_rate_after_free",
        "currency",
        "effective_from",
        "effective_until",
        "is_active",
    ]
    list_filter = ["is_active", "warehouse"]
    readonly_fields = ["created_by", "created_at"]

    def save_model(self, request, obj, form, change):
        if not change:
            obj.created_by = request.user
        super().save_model(request, obj, form, change)


# StorageCharge Admin (조회 전용)
@admin.register(StorageCharge)
class StorageChargeAdmin(admin.ModelAdmin):
    list_display = [
        "package",
        "bin_location",
        "charge_from_date",
        "charge_to_date",
        "days_charged",
        "free_days_applied",
        "total_storage_fee",
        "currency",
        "is_invoiced",
        "invoice_id",
    ]
    list_filter = ["is_invoiced", "currency"]
    search_fields = ["package__internal_id", "invoice_id"]
    date_hierarchy = "charge_from_date"

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return obj is not None and not obj.is_invoiced

from django.urls import path

from logistics.views.bin_views import PackageBinAssignmentView
from logistics.views.rate_views import (
    AvailableServicesView,
    ChargeableWeightView,
    RateQuoteView,
    ZoneResolveView,
)
from logistics.views.storage_views import (
    PackageStorageAccrueView,
    PackageStorageChargeListView,
    UnbilledStorageChargeListView,
)

app_name = "logistics"

urlpatterns = [
    # 요금 견적
    path("zones/resolve/", ZoneResolveView.as_view(), name="zone-resolve"),
    path("weights/chargeable/", ChargeableWeightView.as_view(), name="chargeable-weight"),
    path("rates/quote/", RateQuoteView.as_view(), name="rate-quote"),
    path("rates/services/", AvailableServicesView.as_view(), name="rate-services"),
    # Bin 배정
    path(
        "packages/<uuid:package_id>/bin-assignment/",
        PackageBinAssignmentView.as_view(),
        name="package-bin-assignment",
    ),
    # 보관료
    path(
        "packages/<uuid:package_id>/storage-charges/",
        PackageStorageChargeListView.as_view(),
        name="package-storage-charges",
    ),
    path(
        "packages/<uuid:package_id>/storage-charges/accrue/",
        PackageStorageAccrueView.as_view(),
        name="package-storage-accrue",
    ),
    path("storage-charges/unbilled/", UnbilledStorageChargeListView.as_view(), name="unbilled-storage-charges"),
]

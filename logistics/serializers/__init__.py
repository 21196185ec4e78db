from .bin_serializers import BinAssignSerializer, BinRemoveSerializer, PackageBinAssignmentSerializer
from .common_serializers import ErrorResponseSerializer
from .rate_serializers import (
    AvailableServicesQuerySerializer,
    ChargeableWeightResultSerializer,
    ChargeableWeightSerializer,
    QuoteRequestSerializer,
    QuoteResultSerializer,
    ZoneSerializer,
)
from .storage_serializers import AccrueRequestSerializer, StorageChargeSerializer

__all__ = [
    "ErrorResponseSerializer",
    "ZoneSerializer",
    "ChargeableWeightSerializer",
    "ChargeableWeightResultSerializer",
    "QuoteRequestSerializer",
    "QuoteResultSerializer",
    "AvailableServicesQuerySerializer",
    "PackageBinAssignmentSerializer",
    "BinAssignSerializer",
    "BinRemoveSerializer",
    "StorageChargeSerializer",
    "AccrueRequestSerializer",
]

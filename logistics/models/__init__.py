from .geography import Zone, ZoneCountry
from .package import Package
from .rate import ShippingRate
from .storage import PackageBinAssignment, StorageCharge, StoragePricing
from .warehouse import BinLocation, Warehouse

__all__ = [
    "Warehouse",
    "BinLocation",
    "Zone",
    "ZoneCountry",
    "ShippingRate",
    "Package",
    "PackageBinAssignment",
    "StoragePricing",
    "StorageCharge",
]

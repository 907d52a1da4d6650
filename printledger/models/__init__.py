"""Database models."""

from printledger.models.device import Device
from printledger.models.reading import CounterReading
from printledger.models.revenue import AppSetting, ManualRevenueEntry
from printledger.models.waste import WasteEntry, WasteSummary

__all__ = [
    "Device",
    "CounterReading",
    "WasteEntry",
    "WasteSummary",
    "ManualRevenueEntry",
    "AppSetting",
]

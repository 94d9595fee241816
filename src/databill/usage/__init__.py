"""Usage recording, lookup and CSV import."""

from databill.usage.csv_import import ImportResult, InvalidRowCounts, UsageCsvImporter
from databill.usage.service import UsageService

__all__ = [
    "ImportResult",
    "InvalidRowCounts",
    "UsageCsvImporter",
    "UsageService",
]

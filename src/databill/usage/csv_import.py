"""Bulk import of usage records from CSV.

Expected columns::

    phone_number,plan_id,date,usage_in_mb
    5551234567,basic-5gb,1705276800000,1200

``date`` is a Unix timestamp in milliseconds and is stored as its UTC
calendar day. Each row either imports one usage record or is counted under
exactly one skip reason; rows are processed in file order so a subscriber
created by an earlier row is known to later ones.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from pathlib import Path
from typing import IO, Any

import polars as pl

from databill.billing.models import UsageObservation
from databill.billing.repositories import SubscriberRegistry, UsageLedger
from databill.billing.service import PHONE_NUMBER_PATTERN
from databill.core.exceptions import InvalidDataFormatError
from databill.core.logging import LoggerMixin, correlation_scope

REQUIRED_COLUMNS = ("phone_number", "plan_id", "date", "usage_in_mb")
LEADING_INTEGER = re.compile(r"[+-]?\d+")


@dataclass
class InvalidRowCounts:
    """Rows rejected by validation, per reason."""

    invalid_phone_number: int = 0
    invalid_plan_id: int = 0
    invalid_date: int = 0
    invalid_usage: int = 0

    @property
    def total(self) -> int:
        return (
            self.invalid_phone_number
            + self.invalid_plan_id
            + self.invalid_date
            + self.invalid_usage
        )


@dataclass
class ImportResult:
    """Outcome of a CSV import.

    Attributes:
        total_processed: Data rows read from the file.
        imported: Usage records created.
        duplicates: Rows skipped because the subscriber already has usage that day.
        invalid: Rows skipped by validation.
        new_subscribers: Subscribers created by the import.
    """

    total_processed: int = 0
    imported: int = 0
    duplicates: int = 0
    invalid: InvalidRowCounts = field(default_factory=InvalidRowCounts)
    new_subscribers: int = 0

    @property
    def skipped(self) -> int:
        return self.duplicates + self.invalid.total


def _clean(value: Any) -> str:
    return "" if value is None else str(value).strip()


def parse_usage_in_mb(value: Any) -> int | None:
    """Parse a usage amount the way ``parseInt`` reads it; None if invalid.

    The leading integer is taken and anything after it is ignored, so
    ``"12.5"`` reads as 12 and ``"300MB"`` as 300. Negative amounts and
    values without leading digits are invalid.
    """
    match = LEADING_INTEGER.match(_clean(value))
    if match is None:
        return None
    usage = int(match.group(0))
    return usage if usage >= 0 else None


def parse_timestamp_ms(value: Any) -> date | None:
    """Parse a millisecond Unix timestamp to its UTC day; None if invalid."""
    try:
        timestamp_ms = int(_clean(value))
        return datetime.fromtimestamp(timestamp_ms / 1000, tz=UTC).date()
    except (ValueError, OverflowError, OSError):
        return None


class UsageCsvImporter(LoggerMixin):
    """Imports usage rows, creating or re-planning subscribers as needed."""

    def __init__(self, registry: SubscriberRegistry, usage_ledger: UsageLedger) -> None:
        """Initialize the importer.

        Args:
            registry: Plan catalog and subscriber directory
            usage_ledger: Destination of imported usage
        """
        self.registry = registry
        self.usage_ledger = usage_ledger

    def read_rows(self, source: str | Path | bytes | IO[bytes]) -> list[dict[str, Any]]:
        """Read CSV rows as strings.

        Args:
            source: File path, raw CSV bytes or a binary file object

        Returns:
            One dict per non-blank data row

        Raises:
            InvalidDataFormatError: If the CSV cannot be parsed, for example a row
                with extra fields or bytes that are not UTF-8, or a required
                column is missing
        """
        try:
            frame = pl.read_csv(source, infer_schema=False)
        except pl.exceptions.NoDataError:
            return []
        except pl.exceptions.PolarsError as e:
            raise InvalidDataFormatError(
                "CSV could not be parsed",
                details={"reason": str(e)},
            ) from e

        missing = [column for column in REQUIRED_COLUMNS if column not in frame.columns]
        if missing:
            raise InvalidDataFormatError(
                f"CSV is missing required columns: {', '.join(missing)}",
                details={"missing_columns": missing, "columns": frame.columns},
            )

        return [
            row
            for row in frame.select(list(REQUIRED_COLUMNS)).iter_rows(named=True)
            if any(_clean(value) for value in row.values())
        ]

    async def import_csv(self, source: str | Path | bytes | IO[bytes]) -> ImportResult:
        """Import usage records from CSV.

        Args:
            source: File path, raw CSV bytes or a binary file object

        Returns:
            Counts of processed, imported and skipped rows
        """
        rows = self.read_rows(source)
        result = ImportResult()

        with correlation_scope(operation="csv_import", row_count=len(rows)):
            for row in rows:
                result.total_processed += 1
                await self._import_row(row, result)

            self.logger.info(
                "csv_import_completed",
                total_processed=result.total_processed,
                imported=result.imported,
                duplicates=result.duplicates,
                invalid=result.invalid.total,
                new_subscribers=result.new_subscribers,
            )
        return result

    async def _import_row(self, row: dict[str, Any], result: ImportResult) -> None:
        phone_number = _clean(row["phone_number"])
        if not PHONE_NUMBER_PATTERN.match(phone_number):
            result.invalid.invalid_phone_number += 1
            return

        usage_in_mb = parse_usage_in_mb(row["usage_in_mb"])
        if usage_in_mb is None:
            result.invalid.invalid_usage += 1
            return

        usage_date = parse_timestamp_ms(row["date"])
        if usage_date is None:
            result.invalid.invalid_date += 1
            return

        plan_id = _clean(row["plan_id"])
        if await self.registry.get_plan(plan_id) is None:
            result.invalid.invalid_plan_id += 1
            return

        current_plan_id = await self.registry.get_subscriber_plan_id(phone_number)
        if current_plan_id is None:
            await self.registry.add_subscriber(phone_number, plan_id)
            result.new_subscribers += 1
        elif current_plan_id != plan_id:
            await self.registry.assign_plan(phone_number, plan_id)

        if await self.usage_ledger.has_usage_on(phone_number, usage_date):
            result.duplicates += 1
            return

        await self.usage_ledger.record_usage(
            phone_number, UsageObservation(date=usage_date, usage_in_mb=usage_in_mb)
        )
        result.imported += 1

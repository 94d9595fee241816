"""Tests for CSV usage import."""

from datetime import date
from decimal import Decimal
from pathlib import Path

import polars as pl
import pytest

from databill.billing.repositories import InMemorySubscriberDirectory, InMemoryUsageStore
from databill.core.exceptions import InvalidDataFormatError
from databill.usage.csv_import import (
    UsageCsvImporter,
    parse_timestamp_ms,
    parse_usage_in_mb,
)

JAN_15_MS = "1705276800000"
JAN_16_MS = "1705363200000"
HEADER = "phone_number,plan_id,date,usage_in_mb\n"


@pytest.fixture
def importer(
    directory: InMemorySubscriberDirectory, usage_store: InMemoryUsageStore
) -> UsageCsvImporter:
    return UsageCsvImporter(directory, usage_store)


def test_parse_usage_in_mb() -> None:
    assert parse_usage_in_mb("1200") == 1200
    assert parse_usage_in_mb(" 0 ") == 0
    assert parse_usage_in_mb("-1") is None
    assert parse_usage_in_mb(None) is None
    assert parse_usage_in_mb("abc") is None


@pytest.mark.parametrize(("raw", "expected"), [("12.5", 12), ("300MB", 300), ("+7", 7)])
def test_parse_usage_in_mb_takes_leading_integer(raw: str, expected: int) -> None:
    assert parse_usage_in_mb(raw) == expected


def test_parse_timestamp_ms() -> None:
    assert parse_timestamp_ms(JAN_15_MS) == date(2024, 1, 15)
    assert parse_timestamp_ms("2024-01-15") is None
    assert parse_timestamp_ms("") is None
    assert parse_timestamp_ms("9" * 30) is None


async def test_import_creates_subscribers_and_usage(
    importer: UsageCsvImporter,
    directory: InMemorySubscriberDirectory,
    usage_store: InMemoryUsageStore,
) -> None:
    csv_data = (
        HEADER
        + f"5551234567,basic-5gb,{JAN_15_MS},1200\n"
        + f"5551234567,basic-5gb,{JAN_16_MS},800\n"
        + f"5559876543,weekly-1gb,{JAN_15_MS},300\n"
    ).encode()

    result = await importer.import_csv(csv_data)

    assert result.total_processed == 3
    assert result.imported == 3
    assert result.new_subscribers == 2
    assert result.skipped == 0
    assert await directory.get_subscriber_plan_id("5559876543") == "weekly-1gb"
    usage = await usage_store.fetch_usage("5551234567")
    assert usage is not None
    assert [(u.date, u.usage_in_mb) for u in usage] == [
        (date(2024, 1, 15), Decimal("1200")),
        (date(2024, 1, 16), Decimal("800")),
    ]


async def test_import_counts_each_skip_reason(importer: UsageCsvImporter) -> None:
    csv_data = (
        HEADER
        + f"555-1234,basic-5gb,{JAN_15_MS},100\n"  # invalid phone number
        + f"5551234567,basic-5gb,{JAN_15_MS},-5\n"  # invalid usage
        + "5551234567,basic-5gb,yesterday,100\n"  # invalid date
        + f"5551234567,unknown-plan,{JAN_15_MS},100\n"  # invalid plan
        + f"5551234567,basic-5gb,{JAN_15_MS},100\n"  # imported
        + f"5551234567,basic-5gb,{JAN_15_MS},100\n"  # duplicate
    ).encode()

    result = await importer.import_csv(csv_data)

    assert result.total_processed == 6
    assert result.imported == 1
    assert result.duplicates == 1
    assert result.invalid.invalid_phone_number == 1
    assert result.invalid.invalid_usage == 1
    assert result.invalid.invalid_date == 1
    assert result.invalid.invalid_plan_id == 1
    assert result.skipped == 5
    assert result.new_subscribers == 1


async def test_import_moves_subscriber_to_new_plan(
    importer: UsageCsvImporter,
    directory: InMemorySubscriberDirectory,
    subscriber: str,
) -> None:
    csv_data = (HEADER + f"{subscriber},weekly-1gb,{JAN_15_MS},100\n").encode()

    result = await importer.import_csv(csv_data)

    assert result.new_subscribers == 0
    assert result.imported == 1
    assert await directory.get_subscriber_plan_id(subscriber) == "weekly-1gb"


async def test_import_skips_existing_usage_day(
    importer: UsageCsvImporter,
    usage_store: InMemoryUsageStore,
    subscriber: str,
) -> None:
    first = (HEADER + f"{subscriber},basic-5gb,{JAN_15_MS},100\n").encode()
    await importer.import_csv(first)

    result = await importer.import_csv(first)

    assert result.imported == 0
    assert result.duplicates == 1
    usage = await usage_store.fetch_usage(subscriber)
    assert usage is not None
    assert len(usage) == 1


async def test_import_ignores_blank_lines(importer: UsageCsvImporter) -> None:
    csv_data = (
        HEADER
        + f"5551234567,basic-5gb,{JAN_15_MS},100\n"
        + ",,,\n"
        + f"5551234567,basic-5gb,{JAN_16_MS},100\n"
    ).encode()

    result = await importer.import_csv(csv_data)

    assert result.total_processed == 2
    assert result.imported == 2


async def test_import_empty_input(importer: UsageCsvImporter) -> None:
    result = await importer.import_csv(b"")

    assert result.total_processed == 0
    assert result.imported == 0


async def test_import_header_only(importer: UsageCsvImporter) -> None:
    result = await importer.import_csv(HEADER.encode())

    assert result.total_processed == 0


async def test_import_missing_columns(importer: UsageCsvImporter) -> None:
    csv_data = b"phone_number,date\n5551234567,1705276800000\n"

    with pytest.raises(InvalidDataFormatError) as exc:
        await importer.import_csv(csv_data)

    assert exc.value.details["missing_columns"] == ["plan_id", "usage_in_mb"]


async def test_import_from_path(importer: UsageCsvImporter, tmp_path: Path) -> None:
    csv_file = tmp_path / "usage.csv"
    csv_file.write_text(HEADER + f"5551234567,basic-5gb,{JAN_15_MS},100\n")

    result = await importer.import_csv(csv_file)

    assert result.imported == 1


async def test_import_leading_zero_phone_numbers_kept(
    importer: UsageCsvImporter, directory: InMemorySubscriberDirectory
) -> None:
    csv_data = (HEADER + f"0551234567,basic-5gb,{JAN_15_MS},100\n").encode()

    await importer.import_csv(csv_data)

    assert await directory.get_subscriber_plan_id("0551234567") == "basic-5gb"


async def test_import_truncates_fractional_usage(
    importer: UsageCsvImporter, usage_store: InMemoryUsageStore
) -> None:
    csv_data = (HEADER + f"5551234567,basic-5gb,{JAN_15_MS},12.5\n").encode()

    result = await importer.import_csv(csv_data)

    assert result.imported == 1
    assert result.invalid.invalid_usage == 0
    usage = await usage_store.fetch_usage("5551234567")
    assert usage is not None
    assert usage[0].usage_in_mb == Decimal("12")


async def test_import_row_with_extra_fields(importer: UsageCsvImporter) -> None:
    csv_data = (HEADER + f"5551234567,basic-5gb,{JAN_15_MS},5,extra\n").encode()

    with pytest.raises(InvalidDataFormatError, match="could not be parsed") as exc:
        await importer.import_csv(csv_data)

    assert isinstance(exc.value.__cause__, pl.exceptions.PolarsError)
    assert "reason" in exc.value.details


async def test_import_bytes_not_utf8(importer: UsageCsvImporter) -> None:
    csv_data = HEADER.encode() + b"\xff\xfe,basic-5gb," + JAN_15_MS.encode() + b",5\n"

    with pytest.raises(InvalidDataFormatError):
        await importer.import_csv(csv_data)

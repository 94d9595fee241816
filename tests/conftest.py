"""Test configuration and fixtures."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from databill.billing.models import DataPlan, PlanTerms
from databill.billing.repositories import InMemorySubscriberDirectory, InMemoryUsageStore
from databill.core.config import get_settings
from databill.core.logging import clear_contextvars, clear_correlation_id

AS_OF = date(2024, 1, 31)
SUBSCRIBER_ID = "5551234567"


@pytest.fixture(autouse=True)
def _reset_context() -> None:
    """Isolate logging context and cached settings between tests."""
    clear_contextvars()
    clear_correlation_id()
    get_settings.cache_clear()


@pytest.fixture
def as_of() -> date:
    """Fixed evaluation date."""
    return AS_OF


@pytest.fixture
def plan_terms() -> PlanTerms:
    """30-day plan, 50.00 base, 5000 MB included, 0.01 per excess MB."""
    return PlanTerms(
        base_price=Decimal("50.00"),
        included_data_in_mb=Decimal("5000"),
        cycle_length_in_days=30,
        excess_charge_per_mb=Decimal("0.01"),
    )


@pytest.fixture
def basic_plan() -> DataPlan:
    """Catalog plan matching the plan_terms fixture."""
    return DataPlan(
        plan_id="basic-5gb",
        provider="acme",
        name="Basic 5GB",
        data_free_in_gb=Decimal("5"),
        billing_cycle_in_days=30,
        price=Decimal("50.00"),
        excess_charge_per_mb=Decimal("0.01"),
    )


@pytest.fixture
def weekly_plan() -> DataPlan:
    """7-day catalog plan."""
    return DataPlan(
        plan_id="weekly-1gb",
        provider="acme",
        name="Weekly 1GB",
        data_free_in_gb=Decimal("1"),
        billing_cycle_in_days=7,
        price=Decimal("10.00"),
        excess_charge_per_mb=Decimal("0.02"),
    )


@pytest.fixture
def directory(basic_plan: DataPlan, weekly_plan: DataPlan) -> InMemorySubscriberDirectory:
    """Directory with two catalog plans and no subscribers."""
    return InMemorySubscriberDirectory([basic_plan, weekly_plan])


@pytest.fixture
def usage_store(directory: InMemorySubscriberDirectory) -> InMemoryUsageStore:
    """Usage store backed by the directory fixture."""
    return InMemoryUsageStore(directory)


@pytest.fixture
async def subscriber(directory: InMemorySubscriberDirectory) -> str:
    """Subscriber on the basic plan."""
    await directory.add_subscriber(SUBSCRIBER_ID, "basic-5gb")
    return SUBSCRIBER_ID

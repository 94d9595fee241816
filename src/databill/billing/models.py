"""Value objects for plan terms, usage observations and billing reports.

Money and data amounts are held as ``Decimal`` so that per-cycle excess
charges and report totals do not accumulate binary floating point error.
Floats only appear at the serialization boundary (see ``billing.schemas``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation

from databill.core.exceptions import ValidationError

# Decimal gigabytes. Deployments billing in binary units set
# Settings.megabytes_per_gigabyte to 1024.
MB_PER_GB = 1000

END_OF_DAY = time(23, 59, 59, 999000)

Number = Decimal | int | float | str


def to_decimal(value: Number, *, field_name: str = "value") -> Decimal:
    """Coerce a numeric value to ``Decimal``.

    Floats go through ``str`` so ``0.1`` becomes ``Decimal("0.1")`` rather than
    its binary expansion.

    Raises:
        ValidationError: If the value is not numeric or not finite.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be numeric", field=field_name, value=value)
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(
            f"{field_name} must be numeric", field=field_name, value=value
        ) from e
    if not result.is_finite():
        raise ValidationError(f"{field_name} must be finite", field=field_name, value=value)
    return result


def to_calendar_date(value: date | datetime) -> date:
    """Reduce a datetime to its calendar date; dates pass through."""
    if isinstance(value, datetime):
        return value.date()
    return value


def _require_non_negative(value: Decimal, field_name: str) -> None:
    if value < 0:
        raise ValidationError(
            f"{field_name} cannot be negative, got {value}",
            field=field_name,
            value=value,
            constraint=f"{field_name} >= 0",
        )


@dataclass
class DataPlan:
    """Catalog entry for a data plan.

    Attributes:
        plan_id: Catalog key referenced by subscribers and CSV imports.
        provider: Carrier offering the plan.
        name: Display name.
        data_free_in_gb: Data included per cycle, in gigabytes.
        billing_cycle_in_days: Length of one billing cycle.
        price: Base price charged per cycle.
        excess_charge_per_mb: Rate applied to usage beyond the allowance.
    """

    plan_id: str
    provider: str
    name: str
    data_free_in_gb: Decimal
    billing_cycle_in_days: int
    price: Decimal
    excess_charge_per_mb: Decimal

    def __post_init__(self) -> None:
        self.data_free_in_gb = to_decimal(self.data_free_in_gb, field_name="data_free_in_gb")
        self.price = to_decimal(self.price, field_name="price")
        self.excess_charge_per_mb = to_decimal(
            self.excess_charge_per_mb, field_name="excess_charge_per_mb"
        )
        _require_non_negative(self.data_free_in_gb, "data_free_in_gb")
        _require_non_negative(self.price, "price")
        _require_non_negative(self.excess_charge_per_mb, "excess_charge_per_mb")
        if self.billing_cycle_in_days < 1:
            raise ValidationError(
                "billing_cycle_in_days must be at least 1",
                field="billing_cycle_in_days",
                value=self.billing_cycle_in_days,
                constraint="billing_cycle_in_days >= 1",
            )


@dataclass(frozen=True)
class Subscriber:
    """A phone number and the catalog plan it is billed on."""

    subscriber_id: str
    plan_id: str


@dataclass
class PlanTerms:
    """Billing parameters of a subscriber's current plan.

    Attributes:
        base_price: Charged per cycle regardless of usage.
        included_data_in_mb: Free allowance per cycle, in megabytes.
        cycle_length_in_days: Length of one billing cycle.
        excess_charge_per_mb: Rate applied to usage beyond the allowance.

    Raises:
        ValidationError: If an amount is negative or the cycle is shorter than a day.
    """

    base_price: Decimal
    included_data_in_mb: Decimal
    cycle_length_in_days: int
    excess_charge_per_mb: Decimal

    def __post_init__(self) -> None:
        """Coerce amounts to Decimal and validate them."""
        self.base_price = to_decimal(self.base_price, field_name="base_price")
        self.included_data_in_mb = to_decimal(
            self.included_data_in_mb, field_name="included_data_in_mb"
        )
        self.excess_charge_per_mb = to_decimal(
            self.excess_charge_per_mb, field_name="excess_charge_per_mb"
        )
        _require_non_negative(self.base_price, "base_price")
        _require_non_negative(self.included_data_in_mb, "included_data_in_mb")
        _require_non_negative(self.excess_charge_per_mb, "excess_charge_per_mb")
        if self.cycle_length_in_days < 1:
            raise ValidationError(
                "cycle_length_in_days must be at least 1",
                field="cycle_length_in_days",
                value=self.cycle_length_in_days,
                constraint="cycle_length_in_days >= 1",
            )

    @classmethod
    def from_data_plan(cls, plan: DataPlan, *, mb_per_gb: int = MB_PER_GB) -> PlanTerms:
        """Derive billing terms from a catalog plan.

        Args:
            plan: Catalog plan the subscriber is assigned to.
            mb_per_gb: Gigabyte to megabyte conversion factor.

        Returns:
            Plan terms with the allowance expressed in megabytes.
        """
        return cls(
            base_price=plan.price,
            included_data_in_mb=plan.data_free_in_gb * mb_per_gb,
            cycle_length_in_days=plan.billing_cycle_in_days,
            excess_charge_per_mb=plan.excess_charge_per_mb,
        )


@dataclass
class UsageObservation:
    """Data usage recorded for a subscriber on one day.

    A datetime is normalized to its calendar date.
    """

    date: date
    usage_in_mb: Decimal

    def __post_init__(self) -> None:
        self.date = to_calendar_date(self.date)
        self.usage_in_mb = to_decimal(self.usage_in_mb, field_name="usage_in_mb")
        _require_non_negative(self.usage_in_mb, "usage_in_mb")


@dataclass(frozen=True)
class BillingCycle:
    """One complete billing cycle with its usage and cost breakdown.

    Attributes:
        start_date: First day of the cycle (inclusive).
        end_date: Last day of the cycle (inclusive).
        base_price: Copied from the plan.
        total_usage_in_mb: Usage observed between start_date and end_date.
        included_data_in_mb: Copied from the plan.
        excess_data_in_mb: Usage beyond the allowance, never negative.
        excess_cost: excess_data_in_mb times the plan's excess rate.
        total_cost: base_price plus excess_cost.
    """

    start_date: date
    end_date: date
    base_price: Decimal
    total_usage_in_mb: Decimal
    included_data_in_mb: Decimal
    excess_data_in_mb: Decimal
    excess_cost: Decimal
    total_cost: Decimal

    @property
    def starts_at(self) -> datetime:
        """Start of the first day (00:00:00.000)."""
        return datetime.combine(self.start_date, time.min)

    @property
    def ends_at(self) -> datetime:
        """End of the last day (23:59:59.999)."""
        return datetime.combine(self.end_date, END_OF_DAY)

    @property
    def length_in_days(self) -> int:
        return (self.end_date - self.start_date).days + 1


@dataclass(frozen=True)
class BillingReport:
    """Billing report for one subscriber.

    Attributes:
        subscriber_id: Phone number of the subscriber.
        total_cost: Sum of total_cost across billing_cycles.
        billing_cycles: Complete cycles inside the lookback window, oldest first.
        window_start: First day of the lookback window.
        window_end: Last day of the lookback window (the as-of date).
    """

    subscriber_id: str
    total_cost: Decimal
    billing_cycles: list[BillingCycle] = field(default_factory=list)
    window_start: date | None = None
    window_end: date | None = None

"""Billing cycle computation engine.

Given a subscriber's plan terms and the usage observed in a rolling lookback
window, the engine partitions the window into consecutive fixed-length
billing cycles, sums usage per cycle and prices each cycle:

    excess_data_in_mb = max(0, total_usage_in_mb - included_data_in_mb)
    excess_cost       = excess_data_in_mb * excess_charge_per_mb
    total_cost        = base_price + excess_cost

Cycles are anchored to the start of the lookback window, not to the
subscriber's signup date, and only cycles that end on or before the as-of
date are billed. A cycle still in progress is left out together with its
usage.

The engine is a pure function of its inputs. It never reads the clock, so
callers pass ``as_of`` explicitly.

Examples:
    >>> from datetime import date
    >>> from decimal import Decimal
    >>> from databill.billing.engine import BillingEngine
    >>> from databill.billing.models import PlanTerms, UsageObservation
    >>>
    >>> terms = PlanTerms(
    ...     base_price=Decimal("50.00"),
    ...     included_data_in_mb=Decimal("5000"),
    ...     cycle_length_in_days=30,
    ...     excess_charge_per_mb=Decimal("0.01"),
    ... )
    >>> report = BillingEngine().compute_billing_report(
    ...     "5551234567",
    ...     terms,
    ...     [UsageObservation(date(2024, 1, 15), 5100)],
    ...     as_of=date(2024, 1, 31),
    ... )
    >>> report.total_cost
    Decimal('51.00')
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, timedelta
from decimal import Decimal

from databill.billing.models import (
    BillingCycle,
    BillingReport,
    PlanTerms,
    UsageObservation,
    to_calendar_date,
)
from databill.core.logging import LoggerMixin

LOOKBACK_DAYS = 30


class BillingEngine(LoggerMixin):
    """Computes billing reports over a rolling lookback window.

    Attributes:
        lookback_days: Number of days, ending on the as-of date, searched for
            complete cycles.
    """

    def __init__(self, lookback_days: int = LOOKBACK_DAYS) -> None:
        if lookback_days < 1:
            raise ValueError(f"lookback_days must be at least 1, got {lookback_days}")
        self.lookback_days = lookback_days

    def lookback_window(self, as_of: date | datetime) -> tuple[date, date]:
        """Return the inclusive (start, end) days of the lookback window.

        Args:
            as_of: Evaluation instant. A datetime is reduced to its calendar date.

        Returns:
            Tuple of first and last day; the last day is the as-of date.
        """
        window_end = to_calendar_date(as_of)
        window_start = window_end - timedelta(days=self.lookback_days - 1)
        return window_start, window_end

    def compute_billing_report(
        self,
        subscriber_id: str,
        plan_terms: PlanTerms,
        usage_observations: Iterable[UsageObservation],
        as_of: date | datetime,
    ) -> BillingReport:
        """Compute the billing report for one subscriber.

        Args:
            subscriber_id: Subscriber phone number, copied into the report.
            plan_terms: Terms of the subscriber's current plan.
            usage_observations: Usage records in any order. Records outside
                the lookback window or in an incomplete cycle are ignored;
                records sharing a date are summed.
            as_of: Evaluation instant.

        Returns:
            Report with the complete cycles of the window, oldest first. The
            cycle list is empty when no cycle fits in the window.
        """
        observations = list(usage_observations)
        window_start, window_end = self.lookback_window(as_of)
        cycle_length = timedelta(days=plan_terms.cycle_length_in_days)

        billing_cycles: list[BillingCycle] = []
        cycle_start = window_start
        while cycle_start <= window_end:
            cycle_end = cycle_start + cycle_length - timedelta(days=1)
            if cycle_end > window_end:
                break

            total_usage_in_mb = sum(
                (
                    observation.usage_in_mb
                    for observation in observations
                    if cycle_start <= observation.date <= cycle_end
                ),
                Decimal("0"),
            )
            billing_cycles.append(
                self._price_cycle(cycle_start, cycle_end, total_usage_in_mb, plan_terms)
            )
            cycle_start += cycle_length

        total_cost = sum((cycle.total_cost for cycle in billing_cycles), Decimal("0"))

        self.logger.debug(
            "billing_report_computed",
            subscriber_id=subscriber_id,
            window_start=window_start.isoformat(),
            window_end=window_end.isoformat(),
            cycle_count=len(billing_cycles),
            observation_count=len(observations),
            total_cost=str(total_cost),
        )

        return BillingReport(
            subscriber_id=subscriber_id,
            total_cost=total_cost,
            billing_cycles=billing_cycles,
            window_start=window_start,
            window_end=window_end,
        )

    @staticmethod
    def _price_cycle(
        start_date: date,
        end_date: date,
        total_usage_in_mb: Decimal,
        plan_terms: PlanTerms,
    ) -> BillingCycle:
        """Apply plan pricing to the usage of one cycle."""
        excess_data_in_mb = max(
            Decimal("0"), total_usage_in_mb - plan_terms.included_data_in_mb
        )
        excess_cost = excess_data_in_mb * plan_terms.excess_charge_per_mb
        return BillingCycle(
            start_date=start_date,
            end_date=end_date,
            base_price=plan_terms.base_price,
            total_usage_in_mb=total_usage_in_mb,
            included_data_in_mb=plan_terms.included_data_in_mb,
            excess_data_in_mb=excess_data_in_mb,
            excess_cost=excess_cost,
            total_cost=plan_terms.base_price + excess_cost,
        )


_default_engine = BillingEngine()


def compute_billing_report(
    subscriber_id: str,
    plan_terms: PlanTerms,
    usage_observations: Iterable[UsageObservation],
    as_of: date | datetime,
) -> BillingReport:
    """Compute a billing report with the default 30-day lookback window."""
    return _default_engine.compute_billing_report(
        subscriber_id, plan_terms, usage_observations, as_of
    )

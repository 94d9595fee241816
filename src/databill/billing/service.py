"""Billing service: resolves subscriber data and runs the billing engine."""

import re
from datetime import date, datetime

from databill.billing.engine import BillingEngine
from databill.billing.models import BillingReport
from databill.billing.repositories import SubscriberDirectory, UsageStore
from databill.core.config import get_settings
from databill.core.exceptions import InvalidPhoneNumberError, SubscriberNotFoundError
from databill.core.logging import LoggerMixin, correlation_scope

PHONE_NUMBER_PATTERN = re.compile(r"^\d+$")


def validate_phone_number(phone_number: str | None) -> str:
    """Return the phone number if it is a non-empty string of digits.

    Raises:
        InvalidPhoneNumberError: If the phone number is empty or not all digits.
    """
    if not phone_number or not PHONE_NUMBER_PATTERN.match(phone_number):
        raise InvalidPhoneNumberError(phone_number)
    return phone_number


class BillingService(LoggerMixin):
    """Service for generating subscriber billing reports."""

    def __init__(
        self,
        directory: SubscriberDirectory,
        usage_store: UsageStore,
        engine: BillingEngine | None = None,
    ) -> None:
        """Initialize billing service.

        Args:
            directory: Resolves subscribers to their plan terms
            usage_store: Serves recorded usage
            engine: Billing engine; defaults to one using the configured lookback
        """
        self.directory = directory
        self.usage_store = usage_store
        self.engine = engine or BillingEngine(
            lookback_days=get_settings().billing_lookback_days
        )

    async def get_billing_report(
        self,
        subscriber_id: str,
        as_of: date | datetime,
    ) -> BillingReport:
        """Get the billing report of a subscriber.

        Args:
            subscriber_id: Subscriber phone number
            as_of: Evaluation instant, normally the request time

        Returns:
            Billing report covering the complete cycles of the lookback window

        Raises:
            InvalidPhoneNumberError: If subscriber_id is not a phone number
            SubscriberNotFoundError: If the directory or usage store does not
                know the subscriber
        """
        validate_phone_number(subscriber_id)

        with correlation_scope(operation="billing_report"):
            plan_terms = await self.directory.resolve_plan_terms(subscriber_id)
            if plan_terms is None:
                self.logger.warning(
                    "billing_subscriber_not_found",
                    subscriber_id=subscriber_id,
                    source="directory",
                )
                raise SubscriberNotFoundError(subscriber_id)

            window_start, window_end = self.engine.lookback_window(as_of)
            usage = await self.usage_store.fetch_usage_in_range(
                subscriber_id, window_start, window_end
            )
            if usage is None:
                self.logger.warning(
                    "billing_subscriber_not_found",
                    subscriber_id=subscriber_id,
                    source="usage_store",
                )
                raise SubscriberNotFoundError(subscriber_id)

            report = self.engine.compute_billing_report(
                subscriber_id, plan_terms, usage, as_of
            )

            self.logger.info(
                "billing_report_generated",
                subscriber_id=subscriber_id,
                cycle_count=len(report.billing_cycles),
                total_cost=str(report.total_cost),
            )

        return report

"""Service for recording and querying subscriber data usage."""

from datetime import date, datetime
from decimal import Decimal

from databill.billing.models import UsageObservation, to_calendar_date
from databill.billing.repositories import UsageLedger
from databill.billing.service import validate_phone_number
from databill.core.exceptions import (
    InvalidDateRangeError,
    InvalidUsageError,
    SubscriberNotFoundError,
    ValidationError,
)
from databill.core.logging import LoggerMixin


class UsageService(LoggerMixin):
    """Service for usage recording and lookup."""

    def __init__(self, usage_ledger: UsageLedger) -> None:
        self.usage_ledger = usage_ledger

    async def record_usage(
        self,
        subscriber_id: str,
        usage_date: date | datetime,
        usage_in_mb: Decimal | int | float,
    ) -> UsageObservation:
        """Record usage for a subscriber on one day.

        Args:
            subscriber_id: Subscriber phone number
            usage_date: Day of usage; a datetime is normalized to its date
            usage_in_mb: Amount used, in megabytes

        Returns:
            The stored observation

        Raises:
            InvalidPhoneNumberError: If subscriber_id is not a phone number
            InvalidUsageError: If usage_in_mb is not a non-negative number
            SubscriberNotFoundError: If the subscriber is unknown
        """
        validate_phone_number(subscriber_id)

        try:
            observation = UsageObservation(date=usage_date, usage_in_mb=usage_in_mb)
        except ValidationError as e:
            raise InvalidUsageError(
                "Usage must be a non-negative number",
                field="usage_in_mb",
                value=usage_in_mb,
                constraint="usage_in_mb >= 0",
            ) from e

        stored = await self.usage_ledger.record_usage(subscriber_id, observation)
        if stored is None:
            raise SubscriberNotFoundError(subscriber_id)

        self.logger.info(
            "usage_recorded",
            subscriber_id=subscriber_id,
            usage_date=stored.date.isoformat(),
            usage_in_mb=str(stored.usage_in_mb),
        )
        return stored

    async def get_usage(self, subscriber_id: str) -> list[UsageObservation]:
        """Get all usage of a subscriber, oldest first."""
        validate_phone_number(subscriber_id)

        usage = await self.usage_ledger.fetch_usage(subscriber_id)
        if usage is None:
            raise SubscriberNotFoundError(subscriber_id)
        return usage

    async def get_usage_in_range(
        self,
        subscriber_id: str,
        start_date: date | datetime,
        end_date: date | datetime,
    ) -> list[UsageObservation]:
        """Get usage of a subscriber between two days, both inclusive.

        Raises:
            InvalidPhoneNumberError: If subscriber_id is not a phone number
            InvalidDateRangeError: If start_date is after end_date
            SubscriberNotFoundError: If the subscriber is unknown
        """
        validate_phone_number(subscriber_id)

        start, end = to_calendar_date(start_date), to_calendar_date(end_date)
        if start > end:
            raise InvalidDateRangeError(
                "Start date must be before or equal to end date",
                details={"start_date": start.isoformat(), "end_date": end.isoformat()},
            )

        usage = await self.usage_ledger.fetch_usage_in_range(subscriber_id, start, end)
        if usage is None:
            raise SubscriberNotFoundError(subscriber_id)
        return usage

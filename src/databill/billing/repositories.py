"""Collaborator interfaces consumed by the billing and usage services.

``SubscriberDirectory`` and ``UsageStore`` are the read side the billing
service needs. ``None`` is the "unknown subscriber" answer of both; an empty
list from ``UsageStore`` means a known subscriber without usage.

``SubscriberRegistry`` and ``UsageLedger`` add the write operations used by
usage recording, subscriber and plan management and CSV import. The
in-memory implementations back the services in tests and local tooling.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import defaultdict
from collections.abc import Iterable
from datetime import date, datetime

from databill.billing.models import (
    MB_PER_GB,
    DataPlan,
    PlanTerms,
    Subscriber,
    UsageObservation,
    to_calendar_date,
)
from databill.core.exceptions import (
    PlanExistsError,
    PlanNotFoundError,
    SubscriberExistsError,
    SubscriberNotFoundError,
)
from databill.core.logging import LoggerMixin


class SubscriberDirectory(ABC):
    """Resolves subscribers to the terms of their current plan."""

    @abstractmethod
    async def resolve_plan_terms(self, subscriber_id: str) -> PlanTerms | None:
        """Return the subscriber's plan terms, or None if the subscriber is unknown."""
        ...


class UsageStore(ABC):
    """Serves recorded usage observations."""

    @abstractmethod
    async def fetch_usage_in_range(
        self,
        subscriber_id: str,
        start_date: date,
        end_date: date,
    ) -> list[UsageObservation] | None:
        """Return usage dated within [start_date, end_date].

        Returns:
            Observations ordered by date, an empty list for a known subscriber
            without usage, or None if the subscriber is unknown.
        """
        ...


class SubscriberRegistry(SubscriberDirectory):
    """Subscriber directory that also manages the plan catalog and assignments."""

    @abstractmethod
    async def get_plan(self, plan_id: str) -> DataPlan | None:
        """Look up a catalog plan."""
        ...

    @abstractmethod
    async def list_plans(self, provider: str | None = None) -> list[DataPlan]:
        """List catalog plans, optionally only those of one provider."""
        ...

    @abstractmethod
    async def add_plan(self, plan: DataPlan) -> DataPlan:
        """Add a plan to the catalog.

        Raises:
            PlanExistsError: If the plan id is already in the catalog.
        """
        ...

    @abstractmethod
    async def update_plan(self, plan_id: str, plan: DataPlan) -> DataPlan:
        """Replace the catalog entry of an existing plan.

        Raises:
            PlanNotFoundError: If the plan id is not in the catalog.
        """
        ...

    @abstractmethod
    async def get_subscriber(self, subscriber_id: str) -> Subscriber | None:
        """Return the subscriber, or None if unknown."""
        ...

    @abstractmethod
    async def list_subscribers(self) -> list[Subscriber]:
        """List all subscribers ordered by phone number."""
        ...

    @abstractmethod
    async def get_subscriber_plan_id(self, subscriber_id: str) -> str | None:
        """Return the plan id assigned to the subscriber, or None if unknown."""
        ...

    @abstractmethod
    async def add_subscriber(self, subscriber_id: str, plan_id: str) -> Subscriber:
        """Register a new subscriber on a plan.

        Raises:
            SubscriberExistsError: If the phone number is already registered.
            PlanNotFoundError: If the plan is not in the catalog.
        """
        ...

    @abstractmethod
    async def assign_plan(self, subscriber_id: str, plan_id: str) -> Subscriber:
        """Move an existing subscriber to another plan.

        Raises:
            SubscriberNotFoundError: If the subscriber is unknown.
            PlanNotFoundError: If the plan is not in the catalog.
        """
        ...


class UsageLedger(UsageStore):
    """Usage store that also records new observations."""

    @abstractmethod
    async def record_usage(
        self, subscriber_id: str, observation: UsageObservation
    ) -> UsageObservation | None:
        """Store an observation; None if the subscriber is unknown."""
        ...

    @abstractmethod
    async def has_usage_on(self, subscriber_id: str, usage_date: date) -> bool:
        """Check whether any usage is recorded for the subscriber on a day."""
        ...

    @abstractmethod
    async def fetch_usage(self, subscriber_id: str) -> list[UsageObservation] | None:
        """Return all usage of the subscriber ordered by date, or None if unknown."""
        ...


class InMemorySubscriberDirectory(SubscriberRegistry, LoggerMixin):
    """Dictionary-backed plan catalog and subscriber directory."""

    def __init__(
        self,
        plans: Iterable[DataPlan] = (),
        *,
        mb_per_gb: int = MB_PER_GB,
    ) -> None:
        """Initialize the directory.

        Args:
            plans: Initial plan catalog.
            mb_per_gb: Conversion factor used when deriving plan terms.
        """
        self.mb_per_gb = mb_per_gb
        self._plans: dict[str, DataPlan] = {plan.plan_id: plan for plan in plans}
        self._subscribers: dict[str, str] = {}

    async def get_plan(self, plan_id: str) -> DataPlan | None:
        return self._plans.get(plan_id)

    async def list_plans(self, provider: str | None = None) -> list[DataPlan]:
        plans = list(self._plans.values())
        if provider is not None:
            plans = [plan for plan in plans if plan.provider == provider]
        return plans

    async def add_plan(self, plan: DataPlan) -> DataPlan:
        if plan.plan_id in self._plans:
            raise PlanExistsError(plan.plan_id)
        self._plans[plan.plan_id] = plan
        self.logger.info("plan_added", plan_id=plan.plan_id, provider=plan.provider)
        return plan

    async def update_plan(self, plan_id: str, plan: DataPlan) -> DataPlan:
        if plan_id not in self._plans:
            raise PlanNotFoundError(plan_id)
        self._plans[plan_id] = plan
        self.logger.info("plan_updated", plan_id=plan_id, provider=plan.provider)
        return plan

    async def get_subscriber(self, subscriber_id: str) -> Subscriber | None:
        plan_id = self._subscribers.get(subscriber_id)
        if plan_id is None:
            return None
        return Subscriber(subscriber_id=subscriber_id, plan_id=plan_id)

    async def list_subscribers(self) -> list[Subscriber]:
        return [
            Subscriber(subscriber_id=subscriber_id, plan_id=plan_id)
            for subscriber_id, plan_id in sorted(self._subscribers.items())
        ]

    async def get_subscriber_plan_id(self, subscriber_id: str) -> str | None:
        return self._subscribers.get(subscriber_id)

    async def add_subscriber(self, subscriber_id: str, plan_id: str) -> Subscriber:
        if subscriber_id in self._subscribers:
            raise SubscriberExistsError(subscriber_id)
        if plan_id not in self._plans:
            raise PlanNotFoundError(plan_id)
        self._subscribers[subscriber_id] = plan_id
        self.logger.info("subscriber_added", subscriber_id=subscriber_id, plan_id=plan_id)
        return Subscriber(subscriber_id=subscriber_id, plan_id=plan_id)

    async def assign_plan(self, subscriber_id: str, plan_id: str) -> Subscriber:
        if subscriber_id not in self._subscribers:
            raise SubscriberNotFoundError(subscriber_id)
        if plan_id not in self._plans:
            raise PlanNotFoundError(plan_id)
        previous_plan_id = self._subscribers[subscriber_id]
        self._subscribers[subscriber_id] = plan_id
        self.logger.info(
            "subscriber_plan_changed",
            subscriber_id=subscriber_id,
            previous_plan_id=previous_plan_id,
            plan_id=plan_id,
        )
        return Subscriber(subscriber_id=subscriber_id, plan_id=plan_id)

    async def resolve_plan_terms(self, subscriber_id: str) -> PlanTerms | None:
        plan_id = self._subscribers.get(subscriber_id)
        if plan_id is None:
            return None
        return PlanTerms.from_data_plan(self._plans[plan_id], mb_per_gb=self.mb_per_gb)


class InMemoryUsageStore(UsageLedger):
    """Usage ledger kept in memory.

    Subscriber existence is answered by the directory, so a subscriber with no
    usage yields an empty list while an unknown one yields None.
    """

    def __init__(self, directory: SubscriberRegistry) -> None:
        self.directory = directory
        self._records: dict[str, list[UsageObservation]] = defaultdict(list)

    async def _is_known(self, subscriber_id: str) -> bool:
        return await self.directory.get_subscriber_plan_id(subscriber_id) is not None

    async def record_usage(
        self, subscriber_id: str, observation: UsageObservation
    ) -> UsageObservation | None:
        if not await self._is_known(subscriber_id):
            return None
        self._records[subscriber_id].append(observation)
        return observation

    async def has_usage_on(self, subscriber_id: str, usage_date: date | datetime) -> bool:
        day = to_calendar_date(usage_date)
        return any(record.date == day for record in self._records.get(subscriber_id, []))

    async def fetch_usage(self, subscriber_id: str) -> list[UsageObservation] | None:
        if not await self._is_known(subscriber_id):
            return None
        return sorted(self._records.get(subscriber_id, []), key=lambda record: record.date)

    async def fetch_usage_in_range(
        self,
        subscriber_id: str,
        start_date: date,
        end_date: date,
    ) -> list[UsageObservation] | None:
        records = await self.fetch_usage(subscriber_id)
        if records is None:
            return None
        start, end = to_calendar_date(start_date), to_calendar_date(end_date)
        return [record for record in records if start <= record.date <= end]

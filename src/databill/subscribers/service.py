"""Service for registering subscribers and moving them between plans."""

from databill.billing.models import Subscriber
from databill.billing.repositories import SubscriberRegistry
from databill.billing.service import validate_phone_number
from databill.core.exceptions import SubscriberExistsError, SubscriberNotFoundError
from databill.core.logging import LoggerMixin


class SubscriberService(LoggerMixin):
    """Service for subscriber lookup and plan assignment."""

    def __init__(self, registry: SubscriberRegistry) -> None:
        self.registry = registry

    async def create_subscriber(self, subscriber_id: str, plan_id: str) -> Subscriber:
        """Register a phone number on a catalog plan.

        Args:
            subscriber_id: Subscriber phone number
            plan_id: Catalog plan to bill the subscriber on

        Returns:
            The new subscriber

        Raises:
            InvalidPhoneNumberError: If subscriber_id is not a phone number
            SubscriberExistsError: If the phone number is already registered
            PlanNotFoundError: If the plan is not in the catalog
        """
        validate_phone_number(subscriber_id)

        if await self.registry.get_subscriber(subscriber_id) is not None:
            self.logger.warning("subscriber_already_exists", subscriber_id=subscriber_id)
            raise SubscriberExistsError(subscriber_id)

        subscriber = await self.registry.add_subscriber(subscriber_id, plan_id)
        self.logger.info("subscriber_created", subscriber_id=subscriber_id, plan_id=plan_id)
        return subscriber

    async def get_subscriber(self, subscriber_id: str) -> Subscriber:
        """Get a subscriber by phone number.

        Raises:
            InvalidPhoneNumberError: If subscriber_id is not a phone number
            SubscriberNotFoundError: If the subscriber is unknown
        """
        validate_phone_number(subscriber_id)

        subscriber = await self.registry.get_subscriber(subscriber_id)
        if subscriber is None:
            raise SubscriberNotFoundError(subscriber_id)
        return subscriber

    async def list_subscribers(self) -> list[Subscriber]:
        return await self.registry.list_subscribers()

    async def change_plan(self, subscriber_id: str, plan_id: str) -> Subscriber:
        """Move a subscriber to another catalog plan.

        Billing reports computed afterwards price every cycle of the window
        with the new plan's terms.

        Raises:
            InvalidPhoneNumberError: If subscriber_id is not a phone number
            SubscriberNotFoundError: If the subscriber is unknown
            PlanNotFoundError: If the plan is not in the catalog
        """
        validate_phone_number(subscriber_id)
        return await self.registry.assign_plan(subscriber_id, plan_id)

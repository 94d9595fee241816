"""Plan catalog management."""

from dataclasses import replace

from databill.billing.models import DataPlan
from databill.billing.repositories import SubscriberRegistry
from databill.core.exceptions import PlanNotFoundError
from databill.core.logging import LoggerMixin


class PlanService(LoggerMixin):
    """Service for listing, creating and updating catalog plans."""

    def __init__(self, registry: SubscriberRegistry) -> None:
        self.registry = registry

    async def list_plans(self, provider: str | None = None) -> list[DataPlan]:
        """List catalog plans, optionally only those of one provider."""
        return await self.registry.list_plans(provider)

    async def get_plan(self, plan_id: str) -> DataPlan:
        """Get a catalog plan.

        Raises:
            PlanNotFoundError: If the plan is not in the catalog
        """
        plan = await self.registry.get_plan(plan_id)
        if plan is None:
            raise PlanNotFoundError(plan_id)
        return plan

    async def create_plan(self, plan: DataPlan) -> DataPlan:
        """Add a plan to the catalog.

        Raises:
            PlanExistsError: If the plan id is already taken
        """
        created = await self.registry.add_plan(plan)
        self.logger.info(
            "plan_created",
            plan_id=created.plan_id,
            provider=created.provider,
            billing_cycle_in_days=created.billing_cycle_in_days,
        )
        return created

    async def update_plan(self, plan_id: str, plan: DataPlan) -> DataPlan:
        """Replace the terms of an existing plan.

        The stored plan keeps ``plan_id`` whatever id ``plan`` carries, so
        subscribers on the plan stay attached to it. Their next billing
        report uses the new terms.

        Raises:
            PlanNotFoundError: If the plan is not in the catalog
        """
        updated = await self.registry.update_plan(plan_id, replace(plan, plan_id=plan_id))
        self.logger.info("plan_terms_updated", plan_id=plan_id, price=str(updated.price))
        return updated

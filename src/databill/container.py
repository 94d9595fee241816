"""Service factory wiring settings, logging and collaborators together."""

from collections.abc import Iterable
from dataclasses import dataclass

from databill.billing.engine import BillingEngine
from databill.billing.models import DataPlan
from databill.billing.plans import PlanService
from databill.billing.repositories import InMemorySubscriberDirectory, InMemoryUsageStore
from databill.billing.service import BillingService
from databill.core.config import Settings, get_settings
from databill.core.logging import configure_logging, get_logger
from databill.subscribers.service import SubscriberService
from databill.usage.csv_import import UsageCsvImporter
from databill.usage.service import UsageService

logger = get_logger(__name__)


@dataclass
class Services:
    """Application services sharing one set of collaborators."""

    settings: Settings
    directory: InMemorySubscriberDirectory
    usage_store: InMemoryUsageStore
    billing: BillingService
    usage: UsageService
    subscribers: SubscriberService
    plans: PlanService
    csv_importer: UsageCsvImporter


def create_services(
    settings: Settings | None = None,
    plans: Iterable[DataPlan] = (),
    *,
    setup_logging: bool = True,
) -> Services:
    """Create the services backed by in-memory collaborators.

    Args:
        settings: Settings to use; defaults to the cached environment settings.
        plans: Initial plan catalog.
        setup_logging: Configure structlog from the settings.
    """
    settings = settings or get_settings()

    if setup_logging:
        configure_logging(
            json_logs=settings.json_logs or settings.is_production,
            log_level="DEBUG" if settings.debug else settings.log_level,
        )

    directory = InMemorySubscriberDirectory(plans, mb_per_gb=settings.megabytes_per_gigabyte)
    usage_store = InMemoryUsageStore(directory)
    engine = BillingEngine(lookback_days=settings.billing_lookback_days)

    logger.info(
        "services_created",
        app_name=settings.app_name,
        env=settings.app_env,
        lookback_days=settings.billing_lookback_days,
        mb_per_gb=settings.megabytes_per_gigabyte,
    )

    return Services(
        settings=settings,
        directory=directory,
        usage_store=usage_store,
        billing=BillingService(directory, usage_store, engine=engine),
        usage=UsageService(usage_store),
        subscribers=SubscriberService(directory),
        plans=PlanService(directory),
        csv_importer=UsageCsvImporter(directory, usage_store),
    )

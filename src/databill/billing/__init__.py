"""Billing cycle computation and billing report generation."""

from databill.billing.engine import LOOKBACK_DAYS, BillingEngine, compute_billing_report
from databill.billing.models import (
    MB_PER_GB,
    BillingCycle,
    BillingReport,
    DataPlan,
    PlanTerms,
    Subscriber,
    UsageObservation,
)
from databill.billing.plans import PlanService
from databill.billing.repositories import (
    InMemorySubscriberDirectory,
    InMemoryUsageStore,
    SubscriberDirectory,
    SubscriberRegistry,
    UsageLedger,
    UsageStore,
)
from databill.billing.service import BillingService

__all__ = [
    "LOOKBACK_DAYS",
    "MB_PER_GB",
    "BillingCycle",
    "BillingEngine",
    "BillingReport",
    "BillingService",
    "DataPlan",
    "InMemorySubscriberDirectory",
    "InMemoryUsageStore",
    "PlanService",
    "PlanTerms",
    "Subscriber",
    "SubscriberDirectory",
    "SubscriberRegistry",
    "UsageLedger",
    "UsageObservation",
    "UsageStore",
    "compute_billing_report",
]

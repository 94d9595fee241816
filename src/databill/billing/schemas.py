"""Pydantic schemas for plan input and billing report output.

Billing reports use the camelCase field names of the admin API and expose
money and data amounts as plain floats; ``Decimal`` stays internal.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from databill.billing.models import BillingCycle, BillingReport, DataPlan


class DataPlanBase(BaseModel):
    """Base schema for a data plan."""

    plan_id: str = Field(..., min_length=1, max_length=100)
    provider: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=100)
    data_free_in_gb: Decimal = Field(..., ge=0)
    billing_cycle_in_days: int = Field(..., ge=1)
    price: Decimal = Field(..., ge=0)
    excess_charge_per_mb: Decimal = Field(..., ge=0)


class DataPlanCreate(DataPlanBase):
    """Schema for creating a data plan."""

    def to_data_plan(self) -> DataPlan:
        """Build the catalog entry."""
        return DataPlan(**self.model_dump())


class DataPlanResponse(DataPlanBase):
    """Schema for data plan response."""

    model_config = ConfigDict(from_attributes=True)


class BillingCycleResponse(BaseModel):
    """Schema for one billing cycle in a report."""

    model_config = ConfigDict(populate_by_name=True)

    start_date: datetime = Field(..., alias="startDate")
    end_date: datetime = Field(..., alias="endDate")
    base_price: float = Field(..., alias="basePrice")
    total_usage_in_mb: float = Field(..., alias="totalUsageInMB")
    included_data_in_mb: float = Field(..., alias="includedDataInMB")
    excess_data_in_mb: float = Field(..., alias="excessDataInMB")
    excess_cost: float = Field(..., alias="excessCost")
    total_cost: float = Field(..., alias="totalCost")

    @classmethod
    def from_cycle(cls, cycle: BillingCycle) -> "BillingCycleResponse":
        """Convert a computed cycle, widening its day range to full-day bounds."""
        return cls(
            start_date=cycle.starts_at,
            end_date=cycle.ends_at,
            base_price=float(cycle.base_price),
            total_usage_in_mb=float(cycle.total_usage_in_mb),
            included_data_in_mb=float(cycle.included_data_in_mb),
            excess_data_in_mb=float(cycle.excess_data_in_mb),
            excess_cost=float(cycle.excess_cost),
            total_cost=float(cycle.total_cost),
        )


class BillingReportResponse(BaseModel):
    """Schema for billing report response."""

    model_config = ConfigDict(populate_by_name=True)

    phone_number: str = Field(..., alias="phoneNumber")
    total_cost: float = Field(..., alias="totalCost")
    billing_cycles: list[BillingCycleResponse] = Field(
        default_factory=list, alias="billingCycles"
    )

    @classmethod
    def from_report(cls, report: BillingReport) -> "BillingReportResponse":
        """Convert a computed report."""
        return cls(
            phone_number=report.subscriber_id,
            total_cost=float(report.total_cost),
            billing_cycles=[
                BillingCycleResponse.from_cycle(cycle) for cycle in report.billing_cycles
            ],
        )

    def to_json_dict(self) -> dict:
        """Dump with wire field names and JSON-compatible values."""
        return self.model_dump(by_alias=True, mode="json")

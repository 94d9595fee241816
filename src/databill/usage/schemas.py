"""Pydantic schemas for usage input, usage output and CSV import summaries."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from databill.billing.models import UsageObservation
from databill.usage.csv_import import ImportResult


class UsageRecordCreate(BaseModel):
    """Schema for recording usage."""

    model_config = ConfigDict(populate_by_name=True)

    phone_number: str = Field(..., pattern=r"^\d+$", alias="phoneNumber")
    usage_date: datetime | date = Field(..., alias="date")
    usage_in_mb: Decimal = Field(..., ge=0, alias="usageInMB")


class UsageRecordResponse(BaseModel):
    """Schema for a usage record."""

    model_config = ConfigDict(populate_by_name=True)

    usage_date: date = Field(..., alias="date")
    usage_in_mb: float = Field(..., alias="usageInMB")

    @classmethod
    def from_observation(cls, observation: UsageObservation) -> "UsageRecordResponse":
        return cls(usage_date=observation.date, usage_in_mb=float(observation.usage_in_mb))


class InvalidRowCountsResponse(BaseModel):
    """Invalid row counters of an import."""

    model_config = ConfigDict(populate_by_name=True)

    invalid_phone_number: int = Field(0, alias="invalidPhoneNumber")
    invalid_plan_id: int = Field(0, alias="invalidPlanId")
    invalid_date: int = Field(0, alias="invalidDate")
    invalid_usage: int = Field(0, alias="invalidUsage")


class SkippedRowsResponse(BaseModel):
    """Skipped row counters of an import."""

    duplicates: int = 0
    invalid: InvalidRowCountsResponse = Field(default_factory=InvalidRowCountsResponse)


class ImportResultResponse(BaseModel):
    """Schema for CSV import summary."""

    model_config = ConfigDict(populate_by_name=True)

    total_processed: int = Field(0, alias="totalProcessed")
    imported: int = 0
    skipped: SkippedRowsResponse = Field(default_factory=SkippedRowsResponse)
    new_subscribers: int = Field(0, alias="newSubscribers")

    @classmethod
    def from_result(cls, result: ImportResult) -> "ImportResultResponse":
        return cls(
            total_processed=result.total_processed,
            imported=result.imported,
            skipped=SkippedRowsResponse(
                duplicates=result.duplicates,
                invalid=InvalidRowCountsResponse(
                    invalid_phone_number=result.invalid.invalid_phone_number,
                    invalid_plan_id=result.invalid.invalid_plan_id,
                    invalid_date=result.invalid.invalid_date,
                    invalid_usage=result.invalid.invalid_usage,
                ),
            ),
            new_subscribers=result.new_subscribers,
        )

"""Pydantic schemas for subscriber input and output."""

from pydantic import BaseModel, ConfigDict, Field

from databill.billing.models import Subscriber


class SubscriberCreate(BaseModel):
    """Schema for registering a subscriber."""

    model_config = ConfigDict(populate_by_name=True)

    phone_number: str = Field(..., pattern=r"^\d+$", alias="phoneNumber")
    plan_id: str = Field(..., min_length=1, max_length=100, alias="planId")


class SubscriberPlanUpdate(BaseModel):
    """Schema for moving a subscriber to another plan."""

    model_config = ConfigDict(populate_by_name=True)

    plan_id: str = Field(..., min_length=1, max_length=100, alias="planId")


class SubscriberResponse(BaseModel):
    """Schema for subscriber response."""

    model_config = ConfigDict(populate_by_name=True)

    phone_number: str = Field(..., alias="phoneNumber")
    plan_id: str = Field(..., alias="planId")

    @classmethod
    def from_subscriber(cls, subscriber: Subscriber) -> "SubscriberResponse":
        return cls(phone_number=subscriber.subscriber_id, plan_id=subscriber.plan_id)

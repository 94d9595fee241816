"""Tests for API schemas and wire field names."""

from datetime import date, datetime
from decimal import Decimal

import pytest
from pydantic import ValidationError as PydanticValidationError

from databill.billing.engine import BillingEngine
from databill.billing.models import DataPlan, PlanTerms, UsageObservation
from databill.billing.schemas import (
    BillingReportResponse,
    DataPlanCreate,
    DataPlanResponse,
)
from databill.usage.csv_import import ImportResult, InvalidRowCounts
from databill.usage.schemas import (
    ImportResultResponse,
    UsageRecordCreate,
    UsageRecordResponse,
)

AS_OF = date(2024, 1, 31)


class TestBillingReportResponse:
    """Tests for billing report serialization."""

    def test_wire_field_names(self, plan_terms: PlanTerms) -> None:
        report = BillingEngine().compute_billing_report(
            "5551234567",
            plan_terms,
            [UsageObservation(date(2024, 1, 15), 5100)],
            AS_OF,
        )

        payload = BillingReportResponse.from_report(report).to_json_dict()

        assert set(payload) == {"phoneNumber", "totalCost", "billingCycles"}
        assert payload["phoneNumber"] == "5551234567"
        assert payload["totalCost"] == pytest.approx(51.0)
        cycle = payload["billingCycles"][0]
        assert set(cycle) == {
            "startDate",
            "endDate",
            "basePrice",
            "totalUsageInMB",
            "includedDataInMB",
            "excessDataInMB",
            "excessCost",
            "totalCost",
        }
        assert datetime.fromisoformat(cycle["startDate"]) == datetime(2024, 1, 2)
        assert datetime.fromisoformat(cycle["endDate"]) == datetime(
            2024, 1, 31, 23, 59, 59, 999000
        )
        assert cycle["basePrice"] == 50.0
        assert cycle["totalUsageInMB"] == 5100.0
        assert cycle["includedDataInMB"] == 5000.0
        assert cycle["excessDataInMB"] == 100.0
        assert cycle["excessCost"] == pytest.approx(1.0)
        assert isinstance(cycle["totalCost"], float)

    def test_empty_report(self) -> None:
        terms = PlanTerms(
            base_price=Decimal("10"),
            included_data_in_mb=Decimal("0"),
            cycle_length_in_days=45,
            excess_charge_per_mb=Decimal("0"),
        )
        report = BillingEngine().compute_billing_report("1", terms, [], AS_OF)

        payload = BillingReportResponse.from_report(report).to_json_dict()

        assert payload == {"phoneNumber": "1", "totalCost": 0.0, "billingCycles": []}


class TestDataPlanCreate:
    """Tests for plan input validation."""

    def test_builds_data_plan(self) -> None:
        plan = DataPlanCreate(
            plan_id="basic-5gb",
            provider="acme",
            name="Basic",
            data_free_in_gb="5",
            billing_cycle_in_days=30,
            price="50.00",
            excess_charge_per_mb="0.01",
        ).to_data_plan()

        assert isinstance(plan, DataPlan)
        assert plan.price == Decimal("50.00")

    def test_response_from_catalog_plan(self, basic_plan: DataPlan) -> None:
        response = DataPlanResponse.model_validate(basic_plan)

        assert response.plan_id == "basic-5gb"
        assert response.data_free_in_gb == Decimal("5")
        assert response.billing_cycle_in_days == 30

    @pytest.mark.parametrize(
        ("field_name", "value"),
        [("billing_cycle_in_days", 0), ("price", "-1"), ("excess_charge_per_mb", "-0.01")],
    )
    def test_rejects_invalid_values(self, field_name: str, value: object) -> None:
        values: dict[str, object] = {
            "plan_id": "p",
            "provider": "acme",
            "name": "Plan",
            "data_free_in_gb": "1",
            "billing_cycle_in_days": 30,
            "price": "1",
            "excess_charge_per_mb": "0",
        }
        values[field_name] = value

        with pytest.raises(PydanticValidationError):
            DataPlanCreate(**values)


class TestUsageSchemas:
    """Tests for usage input and output schemas."""

    def test_usage_record_create_accepts_wire_names(self) -> None:
        record = UsageRecordCreate.model_validate(
            {"phoneNumber": "5551234567", "date": "2024-01-15", "usageInMB": "250"}
        )
        assert record.phone_number == "5551234567"
        assert record.usage_in_mb == Decimal("250")

    @pytest.mark.parametrize(
        "payload",
        [
            {"phoneNumber": "555-123", "date": "2024-01-15", "usageInMB": 1},
            {"phoneNumber": "5551234567", "date": "2024-01-15", "usageInMB": -1},
        ],
    )
    def test_usage_record_create_rejects_invalid(self, payload: dict) -> None:
        with pytest.raises(PydanticValidationError):
            UsageRecordCreate.model_validate(payload)

    def test_usage_record_response(self) -> None:
        response = UsageRecordResponse.from_observation(
            UsageObservation(date(2024, 1, 15), 250)
        )
        assert response.model_dump(by_alias=True, mode="json") == {
            "date": "2024-01-15",
            "usageInMB": 250.0,
        }

    def test_import_result_response(self) -> None:
        result = ImportResult(
            total_processed=6,
            imported=2,
            duplicates=1,
            invalid=InvalidRowCounts(
                invalid_phone_number=1,
                invalid_plan_id=1,
                invalid_date=0,
                invalid_usage=1,
            ),
            new_subscribers=1,
        )

        payload = ImportResultResponse.from_result(result).model_dump(by_alias=True)

        assert payload == {
            "totalProcessed": 6,
            "imported": 2,
            "skipped": {
                "duplicates": 1,
                "invalid": {
                    "invalidPhoneNumber": 1,
                    "invalidPlanId": 1,
                    "invalidDate": 0,
                    "invalidUsage": 1,
                },
            },
            "newSubscribers": 1,
        }

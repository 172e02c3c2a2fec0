"""Unit tests for request DTO parsing and response serialization."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from identsoft.core.exceptions import InvalidAmountError, InvalidInputError
from identsoft.domain.entities import Invoice
from identsoft.schemas.dtos import (
    AppointmentCreateRequest,
    CampaignCreateRequest,
    DoctorScheduleCreateRequest,
    InvoiceCreateRequest,
    PaymentCreateRequest,
    StatusChangeRequest,
    parse_filters,
    to_json_dict,
)


@pytest.mark.unit
class TestMoneyParsing:
    def test_amount_is_quantized_to_cents(self):
        request = PaymentCreateRequest.from_dict(
            {
                "invoice_id": 1,
                "amount": "10.005",
                "payment_method": "card",
                "payment_date": "2024-01-15",
            }
        )

        assert request.amount == Decimal("10.01")

    @pytest.mark.parametrize(
        "amount",
        [0, -10, "0.00", "abc", None, True, "NaN", "Infinity", "123456789012.34", 1e12],
    )
    def test_invalid_total_raises_invalid_amount(self, amount):
        with pytest.raises(InvalidAmountError) as exc_info:
            InvoiceCreateRequest.from_dict(
                {
                    "patient_id": 1,
                    "company_id": 1,
                    "total_amount": amount,
                    "due_date": "2024-01-31",
                }
            )

        assert exc_info.value.field == "total_amount"

    def test_invalid_amount_wins_over_other_errors(self):
        with pytest.raises(InvalidAmountError) as exc_info:
            InvoiceCreateRequest.from_dict({"total_amount": -1})

        assert "patient_id: is required" in exc_info.value.message

    def test_largest_column_value_accepted(self):
        request = PaymentCreateRequest.from_dict(
            {
                "invoice_id": 1,
                "amount": "99999999.99",
                "payment_method": "card",
                "payment_date": "2024-01-15",
            }
        )

        assert request.amount == Decimal("99999999.99")

    def test_amount_rounding_past_the_ceiling_rejected(self):
        with pytest.raises(InvalidAmountError) as exc_info:
            PaymentCreateRequest.from_dict(
                {
                    "invoice_id": 1,
                    "amount": "99999999.995",
                    "payment_method": "card",
                    "payment_date": "2024-01-15",
                }
            )

        assert "at most 99999999.99" in exc_info.value.message

    def test_float_amount_accepted(self):
        request = InvoiceCreateRequest.from_dict(
            {
                "patient_id": 1,
                "company_id": 2,
                "total_amount": 250.75,
                "due_date": "2024-01-31",
            }
        )

        assert request.total_amount == Decimal("250.75")
        assert request.due_date == date(2024, 1, 31)


@pytest.mark.unit
class TestAppointmentParsing:
    def test_time_is_normalized(self):
        request = AppointmentCreateRequest.from_dict(
            {
                "patient_id": "3",
                "doctor_id": 4,
                "appointment_date": "2024-03-04T00:00:00",
                "appointment_time": "9:05",
            }
        )

        assert request.patient_id == 3
        assert request.appointment_date == date(2024, 3, 4)
        assert request.appointment_time == "09:05"

    @pytest.mark.parametrize("value", ["24:00", "12:60", "noon", "", None, 930])
    def test_invalid_time_rejected(self, value):
        with pytest.raises(InvalidInputError) as exc_info:
            AppointmentCreateRequest.from_dict(
                {
                    "patient_id": 1,
                    "doctor_id": 1,
                    "appointment_date": "2024-03-04",
                    "appointment_time": value,
                }
            )

        assert exc_info.value.field == "appointment_time"

    def test_all_missing_fields_reported(self):
        with pytest.raises(InvalidInputError) as exc_info:
            AppointmentCreateRequest.from_dict({})

        message = exc_info.value.message
        for field in ("patient_id", "doctor_id", "appointment_date", "appointment_time"):
            assert field in message

    @pytest.mark.parametrize(
        "value", [0, -1, "x", 1.5, False, float("inf"), float("-inf"), float("nan")]
    )
    def test_bad_ids_rejected(self, value):
        with pytest.raises(InvalidInputError):
            AppointmentCreateRequest.from_dict(
                {
                    "patient_id": value,
                    "doctor_id": 1,
                    "appointment_date": "2024-03-04",
                    "appointment_time": "10:00",
                }
            )


    @pytest.mark.parametrize(
        "value", ["2024-02-15 not a date", "2024-02-15junk", "2024-02-30", "15/02/2024"]
    )
    def test_date_with_trailing_text_rejected(self, value):
        with pytest.raises(InvalidInputError) as exc_info:
            AppointmentCreateRequest.from_dict(
                {
                    "patient_id": 1,
                    "doctor_id": 1,
                    "appointment_date": value,
                    "appointment_time": "10:00",
                }
            )

        assert exc_info.value.field == "appointment_date"

    @pytest.mark.parametrize(
        "value", [" 2024-02-15 ", "2024-02-15T08:30:00", "2024-02-15T08:30:00Z"]
    )
    def test_date_and_timestamp_forms_accepted(self, value):
        request = AppointmentCreateRequest.from_dict(
            {
                "patient_id": 1,
                "doctor_id": 1,
                "appointment_date": value,
                "appointment_time": "10:00",
            }
        )

        assert request.appointment_date == date(2024, 2, 15)


@pytest.mark.unit
class TestOtherRequests:
    def test_schedule_end_must_follow_start(self):
        with pytest.raises(InvalidInputError) as exc_info:
            DoctorScheduleCreateRequest.from_dict(
                {
                    "doctor_id": 1,
                    "day_of_week": 1,
                    "start_time": "17:00",
                    "end_time": "09:00",
                }
            )

        assert exc_info.value.field == "end_time"

    def test_schedule_day_range(self):
        with pytest.raises(InvalidInputError):
            DoctorScheduleCreateRequest.from_dict(
                {"doctor_id": 1, "day_of_week": 7, "start_time": "09:00", "end_time": "17:00"}
            )

    def test_sunday_is_day_zero(self):
        request = DoctorScheduleCreateRequest.from_dict(
            {"doctor_id": 1, "day_of_week": 0, "start_time": "09:00", "end_time": "13:00"}
        )

        assert request.day_of_week == 0
        assert request.is_available is True

    def test_status_must_be_known(self):
        with pytest.raises(InvalidInputError):
            StatusChangeRequest.for_invoice({"status": "refunded"})

        assert StatusChangeRequest.for_appointment({"status": "confirmed"}).status == "confirmed"

    def test_campaign_scheduled_date_accepts_z_suffix(self):
        request = CampaignCreateRequest.from_dict(
            {
                "company_id": 1,
                "name": "Recall",
                "type": "sms",
                "message": "Time for your check-up",
                "scheduled_date": "2024-05-01T08:00:00Z",
            }
        )

        assert request.scheduled_date.year == 2024
        assert request.scheduled_date.utcoffset().total_seconds() == 0


@pytest.mark.unit
class TestFiltersAndSerialization:
    def test_absent_filters_are_none(self):
        assert parse_filters({}, "patient_id", "company_id") == {
            "patient_id": None,
            "company_id": None,
        }

    def test_filters_are_parsed_as_ints(self):
        assert parse_filters({"company_id": "4"}, "company_id") == {"company_id": 4}

    def test_required_filter(self):
        with pytest.raises(InvalidInputError):
            parse_filters({}, "doctor_id", required=("doctor_id",))

    def test_invoice_json_includes_balance(self):
        invoice = Invoice(
            id=1,
            patient_id=2,
            company_id=3,
            invoice_number="INV-3-0001",
            total_amount=Decimal("250.75"),
            paid_amount=Decimal("100.00"),
            due_date=date(2024, 1, 31),
            created_at=datetime(2024, 1, 1, 12, 0),
        )

        data = to_json_dict(invoice)

        assert data["total_amount"] == 250.75
        assert data["balance_due"] == 150.75
        assert data["due_date"] == "2024-01-31"
        assert data["created_at"] == "2024-01-01T12:00:00"

"""
Unit tests per la validazione dell'input di creazione SPK e dei pagamenti.
"""

import datetime
from decimal import Decimal

import pytest

from spk_tracker.core.exceptions import ValidationError
from spk_tracker.schemas.payment import PaymentStatus
from spk_tracker.services.validator import (
    check_contract_value,
    check_currency,
    check_percentage,
    check_split_total,
    check_start_date,
    check_vendor_email,
    validate_payment_update,
    validate_work_order_input,
)


class TestValidateWorkOrderInput:
    """Tests per validate_work_order_input."""

    def test_valid_camel_case_input(self, valid_input):
        """Test input completo dal form (camelCase)."""
        data = validate_work_order_input(valid_input)

        assert data.vendor_name == "PT Maju Jaya"
        assert data.contract_value == Decimal("100000000")
        assert data.currency == "IDR"
        assert data.start_date == datetime.date(2026, 1, 15)
        assert data.end_date == datetime.date(2026, 6, 30)
        assert data.notes is None

    def test_valid_snake_case_input(self):
        """Test chiavi snake_case e valuta di default."""
        data = validate_work_order_input(
            {
                "vendor_name": "  CV Sinar  ",
                "project_name": "Pengecatan",
                "start_date": "2026-03-01",
                "contract_value": "5000000",
                "dp_percentage": "50",
                "progress_percentage": "25",
                "final_percentage": "25",
            },
            default_currency="IDR",
        )

        assert data.vendor_name == "CV Sinar"
        assert data.currency == "IDR"
        assert data.vendor_email is None

    def test_first_failing_check_wins(self):
        """Test con più errori viene segnalato il primo nell'ordine stabilito."""
        with pytest.raises(ValidationError) as exc_info:
            validate_work_order_input(
                {
                    "vendorName": "",
                    "projectName": "",
                    "contractValue": -1,
                    "dpPercentage": 10,
                    "progressPercentage": 10,
                    "finalPercentage": 10,
                }
            )

        assert exc_info.value.field == "vendor_name"

    def test_missing_project_name(self, valid_input):
        valid_input["projectName"] = "   "

        with pytest.raises(ValidationError) as exc_info:
            validate_work_order_input(valid_input)

        assert exc_info.value.field == "project_name"

    def test_start_date_checked_before_email(self, valid_input):
        """Test data di inizio mancante prima di un'email non valida."""
        valid_input["startDate"] = ""
        valid_input["vendorEmail"] = "not-an-email"

        with pytest.raises(ValidationError) as exc_info:
            validate_work_order_input(valid_input)

        assert exc_info.value.field == "start_date"

    def test_invalid_email(self, valid_input):
        valid_input["vendorEmail"] = "procurement@"

        with pytest.raises(ValidationError) as exc_info:
            validate_work_order_input(valid_input)

        assert exc_info.value.field == "vendor_email"

    def test_split_total_attributed_to_dp(self, valid_input):
        """Test somma percentuali errata: errore sempre sul campo DP."""
        valid_input["finalPercentage"] = 20

        with pytest.raises(ValidationError) as exc_info:
            validate_work_order_input(valid_input)

        assert exc_info.value.field == "dp_percentage"
        assert exc_info.value.extra["total"] == "90"
        assert "100%" in exc_info.value.detail

    def test_percentage_out_of_range_before_total(self, valid_input):
        valid_input["progressPercentage"] = 140

        with pytest.raises(ValidationError) as exc_info:
            validate_work_order_input(valid_input)

        assert exc_info.value.field == "progress_percentage"

    def test_three_decimal_percentages_rejected(self, valid_input):
        """Test 33.333/33.333/33.334: più decimali di quanti ne registra il database."""
        valid_input.update(
            dpPercentage="33.333", progressPercentage="33.333", finalPercentage="33.334"
        )

        with pytest.raises(ValidationError) as exc_info:
            validate_work_order_input(valid_input)

        assert exc_info.value.field == "dp_percentage"
        assert "2 decimali" in exc_info.value.detail

    def test_two_decimal_thirds_accepted(self, valid_input):
        valid_input.update(
            dpPercentage="33.33", progressPercentage="33.33", finalPercentage="33.34"
        )

        data = validate_work_order_input(valid_input)

        assert data.final_percentage == Decimal("33.34")

    def test_contract_value_rounded_to_minor_unit(self, valid_input):
        """Test valore contratto arrotondato alla minor unit della valuta."""
        valid_input.update(contractValue="1500000.6", currency="IDR")
        assert validate_work_order_input(valid_input).contract_value == Decimal("1500001")

        valid_input.update(contractValue="100.005", currency="USD")
        assert validate_work_order_input(valid_input).contract_value == Decimal("100.01")

        valid_input.update(contractValue="12.3456", currency="KWD")
        assert validate_work_order_input(valid_input).contract_value == Decimal("12.346")

    def test_contract_value_below_minor_unit_rejected(self, valid_input):
        valid_input.update(contractValue="0.4", currency="IDR")

        with pytest.raises(ValidationError) as exc_info:
            validate_work_order_input(valid_input)

        assert exc_info.value.field == "contract_value"

    def test_end_date_before_start_date_is_accepted(self, valid_input):
        """Test la data di fine non è confrontata con quella di inizio."""
        valid_input["endDate"] = "2025-12-31"

        data = validate_work_order_input(valid_input)

        assert data.end_date == datetime.date(2025, 12, 31)

    def test_invalid_end_date_reports_field(self, valid_input):
        valid_input["endDate"] = "31/12/2026"

        with pytest.raises(ValidationError) as exc_info:
            validate_work_order_input(valid_input)

        assert exc_info.value.field == "end_date"


class TestSingleChecks:
    """Tests per i controlli singoli."""

    def test_contract_value_zero(self):
        with pytest.raises(ValidationError) as exc_info:
            check_contract_value(0)
        assert exc_info.value.field == "contract_value"

    def test_contract_value_not_a_number(self):
        with pytest.raises(ValidationError):
            check_contract_value("cento")

    def test_contract_value_bool_rejected(self):
        with pytest.raises(ValidationError):
            check_contract_value(True)

    def test_contract_value_string_number(self):
        assert check_contract_value("1500000.50") == Decimal("1500000.50")

    def test_currency_default_and_upper(self):
        assert check_currency(None, "IDR") == "IDR"
        assert check_currency("  ", "IDR") == "IDR"
        assert check_currency("usd", "IDR") == "USD"

    def test_currency_invalid(self):
        with pytest.raises(ValidationError) as exc_info:
            check_currency("RUPIAH", "IDR")
        assert exc_info.value.field == "currency"

    @pytest.mark.parametrize("value", [0, 100, "55.5"])
    def test_percentage_in_range(self, value):
        assert check_percentage(value, "dp_percentage") == Decimal(str(value))

    @pytest.mark.parametrize("value", [-0.01, 100.01, None, "", "12.345", "33.3333"])
    def test_percentage_invalid(self, value):
        with pytest.raises(ValidationError) as exc_info:
            check_percentage(value, "final_percentage")
        assert exc_info.value.field == "final_percentage"

    def test_split_total_tolerance(self):
        check_split_total(Decimal("33.33"), Decimal("33.33"), Decimal("33.34"))
        with pytest.raises(ValidationError):
            check_split_total(Decimal("30"), Decimal("40"), Decimal("29.9"))

    def test_start_date_formats(self):
        assert check_start_date("2026-01-15") == datetime.date(2026, 1, 15)
        assert check_start_date("2026-01-15T08:00:00Z") == datetime.date(2026, 1, 15)
        assert check_start_date(datetime.datetime(2026, 1, 15, 8)) == datetime.date(2026, 1, 15)

    def test_start_date_invalid(self):
        with pytest.raises(ValidationError) as exc_info:
            check_start_date("domani")
        assert exc_info.value.field == "start_date"

    def test_vendor_email_optional(self):
        assert check_vendor_email(None) is None
        assert check_vendor_email("") is None
        assert check_vendor_email("ops@vendor.co.id") == "ops@vendor.co.id"


class TestValidatePaymentUpdate:
    """Tests per validate_payment_update."""

    def test_valid_update(self):
        data = validate_payment_update(
            {"status": "paid", "paidDate": "2026-02-01", "paymentReference": "TRF-001"}
        )

        assert data.status == PaymentStatus.PAID
        assert data.paid_date == datetime.date(2026, 2, 1)
        assert data.payment_reference == "TRF-001"

    def test_paid_without_date_is_accepted(self):
        data = validate_payment_update({"status": "paid"})

        assert data.paid_date is None

    def test_blank_fields_become_none(self):
        data = validate_payment_update(
            {"status": "overdue", "paid_date": "", "payment_reference": "  "}
        )

        assert data.paid_date is None
        assert data.payment_reference is None

    @pytest.mark.parametrize("status", ["cancelled", "", None, "PAID"])
    def test_invalid_status(self, status):
        with pytest.raises(ValidationError) as exc_info:
            validate_payment_update({"status": status})
        assert exc_info.value.field == "status"

    def test_invalid_paid_date(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_payment_update({"status": "paid", "paidDate": "ieri"})
        assert exc_info.value.field == "paid_date"

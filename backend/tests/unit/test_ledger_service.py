"""
Unit tests for LedgerService.

Repositories, the reference validator and the sequence allocator are mocks;
the session is a MagicMock so commit/rollback calls can be asserted.
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal
from unittest.mock import Mock

import pytest

from identsoft.core.exceptions import (
    CompanyNotFoundError,
    InvalidAmountError,
    InvalidInputError,
    InvalidStatusTransitionError,
    InvoiceNotFoundError,
    TenantMismatchError,
)
from identsoft.domain.entities import Invoice
from identsoft.schemas.dtos import (
    InvoiceCreateRequest,
    PaymentCreateRequest,
    StatusChangeRequest,
)
from identsoft.services.ledger_service import LedgerService
from identsoft.services.reference_validator import ReferenceValidator
from identsoft.services.sequence_allocator import SequenceAllocator
from tests.factories.repository_factories import (
    InvoiceRepositoryFactory,
    PaymentRepositoryFactory,
    create_mock_session,
)


@pytest.fixture
def session():
    return create_mock_session()


@pytest.fixture
def invoice_repo():
    repo = InvoiceRepositoryFactory.create_mock_full()
    repo.create.side_effect = lambda invoice: replace(invoice, id=100)
    return repo


@pytest.fixture
def payment_repo():
    repo = PaymentRepositoryFactory.create_mock_full()
    repo.create.side_effect = lambda payment: replace(payment, id=500)
    return repo


@pytest.fixture
def validator():
    return Mock(spec=ReferenceValidator)


@pytest.fixture
def allocator():
    mock_allocator = Mock(spec=SequenceAllocator)
    mock_allocator.next_invoice_number.return_value = "INV-1-0001"
    return mock_allocator


@pytest.fixture
def service(session, invoice_repo, payment_repo, validator, allocator):
    return LedgerService(session, invoice_repo, payment_repo, validator, allocator)


def invoice_request(**overrides):
    data = dict(
        patient_id=10,
        company_id=1,
        total_amount=Decimal("250.75"),
        due_date=date(2024, 1, 31),
    )
    data.update(overrides)
    return InvoiceCreateRequest(**data)


def payment_request(**overrides):
    data = dict(
        invoice_id=100,
        amount=Decimal("100.00"),
        payment_method="cash",
        payment_date=date(2024, 1, 15),
    )
    data.update(overrides)
    return PaymentCreateRequest(**data)


@pytest.mark.unit
@pytest.mark.services
class TestCreateInvoice:
    def test_creates_draft_invoice_with_allocated_number(
        self, service, session, invoice_repo, validator, allocator
    ):
        invoice = service.create_invoice(invoice_request())

        assert invoice.id == 100
        assert invoice.invoice_number == "INV-1-0001"
        assert invoice.status == "draft"
        assert invoice.paid_amount == Decimal("0.00")
        assert invoice.total_amount == Decimal("250.75")
        validator.require_tenant.assert_called_once_with(1, patient_id=10)
        allocator.next_invoice_number.assert_called_once_with(1)
        session.commit.assert_called_once()

    @pytest.mark.parametrize(
        "amount", [None, Decimal("0"), Decimal("-5.00"), Decimal("100000000.00")]
    )
    def test_non_positive_total_rejected_before_store_access(
        self, service, session, validator, allocator, amount
    ):
        with pytest.raises(InvalidAmountError):
            service.create_invoice(invoice_request(total_amount=amount))

        validator.require_tenant.assert_not_called()
        allocator.next_invoice_number.assert_not_called()
        session.commit.assert_not_called()

    def test_tenant_mismatch_rolls_back_without_numbering(
        self, service, session, invoice_repo, validator, allocator
    ):
        validator.require_tenant.side_effect = TenantMismatchError("patient", 10, 1)

        with pytest.raises(TenantMismatchError):
            service.create_invoice(invoice_request())

        allocator.next_invoice_number.assert_not_called()
        invoice_repo.create.assert_not_called()
        session.rollback.assert_called_once()
        session.commit.assert_not_called()

    def test_missing_company_propagates(self, service, validator):
        validator.require_tenant.side_effect = CompanyNotFoundError(1)

        with pytest.raises(CompanyNotFoundError):
            service.create_invoice(invoice_request())


@pytest.mark.unit
@pytest.mark.services
class TestRecordPayment:
    def test_increments_paid_amount_and_inserts_payment(
        self, service, session, invoice_repo, payment_repo
    ):
        invoice_repo.get_by_id.return_value = Invoice(
            id=100,
            company_id=1,
            patient_id=10,
            total_amount=Decimal("250.75"),
            paid_amount=Decimal("100.00"),
        )
        payment_repo.sum_for_invoice.return_value = Decimal("100.00")

        payment = service.record_payment(payment_request())

        assert payment.id == 500
        assert payment.amount == Decimal("100.00")
        invoice_repo.add_to_paid_amount.assert_called_once_with(100, Decimal("100.00"))
        payment_repo.create.assert_called_once()
        session.commit.assert_called_once()

    def test_status_is_not_changed_by_payment(self, service, invoice_repo):
        service.record_payment(payment_request())

        invoice_repo.update_status.assert_not_called()

    @pytest.mark.parametrize(
        "amount", [None, Decimal("0.00"), Decimal("-1.00"), Decimal("100000000.00")]
    )
    def test_invalid_amount_rejected_before_store_access(
        self, service, session, invoice_repo, validator, amount
    ):
        with pytest.raises(InvalidAmountError):
            service.record_payment(payment_request(amount=amount))

        validator.validate.assert_not_called()
        invoice_repo.add_to_paid_amount.assert_not_called()
        session.commit.assert_not_called()

    def test_unknown_method_rejected(self, service, invoice_repo):
        with pytest.raises(InvalidInputError) as exc_info:
            service.record_payment(payment_request(payment_method="bitcoin"))

        assert not isinstance(exc_info.value, InvalidAmountError)
        invoice_repo.add_to_paid_amount.assert_not_called()

    def test_missing_invoice_writes_nothing(
        self, service, session, validator, invoice_repo, payment_repo
    ):
        validator.validate.side_effect = InvoiceNotFoundError(100)

        with pytest.raises(InvoiceNotFoundError):
            service.record_payment(payment_request())

        invoice_repo.add_to_paid_amount.assert_not_called()
        payment_repo.create.assert_not_called()
        session.rollback.assert_called_once()

    def test_invoice_vanishing_before_increment_raises_not_found(
        self, service, session, invoice_repo, payment_repo
    ):
        invoice_repo.add_to_paid_amount.return_value = False

        with pytest.raises(InvoiceNotFoundError):
            service.record_payment(payment_request())

        payment_repo.create.assert_not_called()
        session.rollback.assert_called_once()

    def test_paid_amount_ceiling_rejects_payment(
        self, service, session, invoice_repo, payment_repo
    ):
        invoice_repo.add_to_paid_amount.return_value = False
        invoice_repo.get_by_id.return_value = Invoice(
            id=100,
            company_id=1,
            patient_id=10,
            total_amount=Decimal("99999999.99"),
            paid_amount=Decimal("99999999.99"),
        )

        with pytest.raises(InvalidAmountError) as exc_info:
            service.record_payment(payment_request())

        assert exc_info.value.field == "amount"
        payment_repo.create.assert_not_called()
        session.rollback.assert_called_once()
        session.commit.assert_not_called()

    def test_payment_insert_failure_rolls_back_increment(
        self, service, session, payment_repo
    ):
        payment_repo.create.side_effect = RuntimeError("insert failed")

        with pytest.raises(RuntimeError):
            service.record_payment(payment_request())

        session.rollback.assert_called_once()
        session.commit.assert_not_called()

    def test_over_payment_is_accepted_and_logged(
        self, service, invoice_repo, payment_repo, caplog
    ):
        invoice_repo.get_by_id.return_value = Invoice(
            id=100,
            company_id=1,
            patient_id=10,
            total_amount=Decimal("50.00"),
            paid_amount=Decimal("100.00"),
        )
        payment_repo.sum_for_invoice.return_value = Decimal("100.00")

        with caplog.at_level("WARNING", logger="identsoft.services.ledger_service"):
            payment = service.record_payment(payment_request())

        assert payment.id == 500
        assert "Invoice over-paid" in caplog.text
        assert "Ledger balance mismatch" not in caplog.text

    def test_balance_mismatch_is_logged_as_error(
        self, service, invoice_repo, payment_repo, caplog
    ):
        invoice_repo.get_by_id.return_value = Invoice(
            id=100,
            company_id=1,
            patient_id=10,
            total_amount=Decimal("250.75"),
            paid_amount=Decimal("100.00"),
        )
        payment_repo.sum_for_invoice.return_value = Decimal("60.00")

        with caplog.at_level("ERROR", logger="identsoft.services.ledger_service"):
            service.record_payment(payment_request())

        payment_repo.sum_for_invoice.assert_called_once_with(100)
        mismatch = [r for r in caplog.records if r.getMessage() == "Ledger balance mismatch"]
        assert len(mismatch) == 1
        assert mismatch[0].context["paid_amount"] == "100.00"
        assert mismatch[0].context["payments_total"] == "60.00"


@pytest.mark.unit
@pytest.mark.services
class TestChangeInvoiceStatus:
    def _existing(self, invoice_repo, status):
        invoice = Invoice(id=100, company_id=1, patient_id=10, status=status)
        invoice_repo.get_for_update.return_value = invoice
        invoice_repo.update_status.side_effect = (
            lambda invoice_id, new, expected_status=None: replace(invoice, status=new)
        )

    def test_allowed_transition(self, service, invoice_repo):
        self._existing(invoice_repo, "draft")

        updated = service.change_invoice_status(100, StatusChangeRequest("sent"))

        assert updated.status == "sent"
        invoice_repo.get_for_update.assert_called_once_with(100)
        invoice_repo.update_status.assert_called_once_with(
            100, "sent", expected_status="draft"
        )

    def test_missing_invoice(self, service, session, invoice_repo):
        with pytest.raises(InvoiceNotFoundError):
            service.change_invoice_status(100, StatusChangeRequest("sent"))

        invoice_repo.update_status.assert_not_called()
        session.rollback.assert_called_once()

    def test_forbidden_transition(self, service, session, invoice_repo):
        self._existing(invoice_repo, "paid")

        with pytest.raises(InvalidStatusTransitionError):
            service.change_invoice_status(100, StatusChangeRequest("draft"))

        invoice_repo.update_status.assert_not_called()
        session.rollback.assert_called_once()

    def test_same_status_is_allowed(self, service, invoice_repo):
        self._existing(invoice_repo, "paid")

        assert service.change_invoice_status(100, StatusChangeRequest("paid")).status == "paid"

    def test_status_changed_after_read_is_rejected(self, service, session, invoice_repo):
        self._existing(invoice_repo, "sent")
        invoice_repo.update_status.side_effect = None
        invoice_repo.update_status.return_value = None
        invoice_repo.get_by_id.return_value = Invoice(
            id=100, company_id=1, patient_id=10, status="cancelled"
        )

        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            service.change_invoice_status(100, StatusChangeRequest("paid"))

        assert exc_info.value.current == "cancelled"
        session.rollback.assert_called_once()
        session.commit.assert_not_called()

    def test_invoice_deleted_after_read_is_not_found(self, service, invoice_repo):
        self._existing(invoice_repo, "sent")
        invoice_repo.update_status.side_effect = None
        invoice_repo.update_status.return_value = None

        with pytest.raises(InvoiceNotFoundError):
            service.change_invoice_status(100, StatusChangeRequest("paid"))

    def test_guards_can_be_disabled(self, service, invoice_repo, monkeypatch):
        monkeypatch.setenv("ENFORCE_STATUS_TRANSITIONS", "false")
        self._existing(invoice_repo, "cancelled")

        updated = service.change_invoice_status(100, StatusChangeRequest("draft"))

        assert updated.status == "draft"
        invoice_repo.update_status.assert_called_once_with(
            100, "draft", expected_status=None
        )

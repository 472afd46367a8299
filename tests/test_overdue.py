from datetime import datetime
from decimal import Decimal

import pytest

from fleetcore_backend.billing import PaymentRecorder, SQLAlchemyBillingStore, process_overdue_payments
from fleetcore_backend.billing.errors import RecordingError
from fleetcore_backend.models import LateFeeRecord

RUN_DATE = datetime(2024, 3, 6)


@pytest.fixture
def store(db):
    return SQLAlchemyBillingStore()


def run(store, when=RUN_DATE):
    return process_overdue_payments(store, run_date=when, default_daily_rate=Decimal("120"))


def test_assesses_unpaid_active_agreement(store, agreement):
    result = run(store)

    assert result["success"] is True
    assert result["processed_count"] == 1
    assert result["details"] == [{
        "agreement_number": agreement.agreement_number,
        "success": True,
        "late_fee_amount": 600.0,
        "days_overdue": 5,
    }]

    fee = LateFeeRecord.query.one()
    assert fee.amount_due == Decimal("3600")
    assert fee.amount_paid == 0
    assert fee.balance == Decimal("3600")
    assert fee.payment_date is None
    assert fee.original_due_date == datetime(2024, 3, 1)
    assert fee.is_auto_generated is True
    assert fee.description == "Auto-generated late payment record for March"


def test_skips_paid_and_inactive_agreements(store, make_agreement):
    paid = make_agreement()
    make_agreement(status="closed")
    PaymentRecorder(store).record_payment(paid.id, 3000, "Cash", "", datetime(2024, 3, 1, 9))

    assert run(store)["processed_count"] == 0
    assert LateFeeRecord.query.count() == 0


def test_second_run_in_the_same_month_creates_nothing(store, agreement):
    run(store)
    again = run(store, datetime(2024, 3, 20))
    assert again["processed_count"] == 0
    assert LateFeeRecord.query.count() == 1


def test_nothing_to_do_on_the_first(store, agreement):
    result = run(store, datetime(2024, 3, 1, 23, 59))
    assert result["processed_count"] == 0
    assert result["message"] == "No late fees to process yet this month"
    assert LateFeeRecord.query.count() == 0


def test_uses_agreement_rate_then_default(store, make_agreement):
    make_agreement(daily_late_fee="50")
    make_agreement(daily_late_fee=None)
    amounts = [d["late_fee_amount"] for d in run(store)["details"]]
    assert amounts == [250.0, 600.0]


def test_later_payment_reuses_batch_fee(store, agreement):
    run(store)
    payment = PaymentRecorder(store).record_payment(agreement.id, 3600, "Cash", "", datetime(2024, 3, 18))
    assert payment.late_fine_amount == Decimal("600")
    assert payment.late_fee_record_id == LateFeeRecord.query.one().id
    assert payment.balance == 0


def test_failure_for_one_agreement_does_not_stop_the_run(store, make_agreement, monkeypatch):
    first = make_agreement()
    make_agreement()
    original = store.create_late_fee_record

    def flaky(**fields):
        if fields["agreement_id"] == first.id:
            raise RecordingError("disk full")
        return original(**fields)

    monkeypatch.setattr(store, "create_late_fee_record", flaky)
    result = run(store)

    assert result["processed_count"] == 1
    assert result["details"][0] == {
        "agreement_number": first.agreement_number,
        "success": False,
        "error": "disk full",
    }

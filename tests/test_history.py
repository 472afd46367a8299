from datetime import datetime
from decimal import Decimal

from fleetcore_backend.billing.history import (
    AUTO_GENERATED_MARKER,
    aggregate_history,
    grouping_date,
    is_historical_payment,
)
from fleetcore_backend.models import LateFeeRecord, RegularPayment


def payment(id, when=None, paid="0", fee="0", description="", **kwargs):
    return RegularPayment(
        id=id,
        agreement_id=1,
        amount_due=Decimal("3000") + Decimal(fee),
        amount_paid=Decimal(paid),
        balance=Decimal("3000") + Decimal(fee) - Decimal(paid),
        late_fine_amount=Decimal(fee),
        payment_date=when,
        description=description,
        **kwargs,
    )


def test_marker_flags_only_the_marked_record():
    plain = payment(1, datetime(2024, 3, 5), paid="3000")
    marked = payment(2, datetime(2024, 3, 20), description=f"{AUTO_GENERATED_MARKER} for March")

    history = aggregate_history([plain, marked])

    assert len(history.groups) == 1
    group = history.groups[0]
    assert group.label == "March 2024"
    assert [e.is_auto_generated for e in group.entries] == [False, True]
    assert history.summary.auto_generated_count == 1


def test_groups_newest_first_and_keep_input_order():
    records = [
        payment(1, datetime(2024, 1, 10)),
        payment(2, datetime(2024, 3, 2)),
        payment(3, datetime(2023, 12, 31)),
        payment(4, datetime(2024, 3, 28)),
        payment(5, datetime(2024, 3, 1)),
    ]
    history = aggregate_history(records)

    assert [(g.year, g.month) for g in history.groups] == [(2024, 3), (2024, 1), (2023, 12)]
    assert [e.record.id for e in history.groups[0].entries] == [2, 4, 5]


def test_every_record_lands_in_exactly_one_group():
    records = [payment(i, datetime(2024, 1 + i % 5, 1 + i)) for i in range(12)]
    history = aggregate_history(records)

    flattened = history.records()
    assert sorted(r.id for r in flattened) == list(range(12))
    assert history.summary.record_count == 12


def test_missing_dates_fall_back():
    now = datetime(2024, 6, 15)
    fee = LateFeeRecord(
        id=1, agreement_id=1, amount_due=Decimal("3240"), amount_paid=Decimal("0"),
        balance=Decimal("3240"), late_fine_amount=Decimal("240"),
        original_due_date=datetime(2024, 4, 1),
    )
    undated = payment(2)

    assert grouping_date(fee, now) == datetime(2024, 4, 1)
    assert grouping_date(undated, now) == now

    history = aggregate_history([fee, undated], now=now)
    assert [g.label for g in history.groups] == ["June 2024", "April 2024"]
    assert history.groups[1].entries[0].is_late_fee_record


def test_flags_are_not_exclusive():
    record = LateFeeRecord(
        id=1, agreement_id=1, amount_due=Decimal("3600"), amount_paid=Decimal("0"),
        balance=Decimal("3600"), late_fine_amount=Decimal("600"),
        original_due_date=datetime(2024, 3, 1),
        description=f"{AUTO_GENERATED_MARKER} for March (Historical Payment import)",
    )
    entry = aggregate_history([record]).groups[0].entries[0]
    assert entry.is_late_fee_record
    assert entry.is_auto_generated
    assert entry.is_historical_payment


def test_stored_flags_win_without_markers():
    record = payment(1, datetime(2024, 3, 5), is_historical=True, is_auto_generated=True)
    entry = aggregate_history([record]).groups[0].entries[0]
    assert entry.is_historical_payment
    assert entry.is_auto_generated


def test_historical_marker_is_case_insensitive():
    assert is_historical_payment(payment(1, description="Imported HISTORICAL PAYMENT"))
    assert not is_historical_payment(payment(2, description="history"))
    assert not is_historical_payment(payment(3, description=None))


def test_summary_totals():
    records = [
        payment(1, datetime(2024, 3, 6), paid="3600", fee="600"),
        payment(2, datetime(2024, 2, 1), paid="3000"),
        payment(3, datetime(2024, 1, 4), paid="1500.50", fee="360", description="historical payment"),
    ]
    summary = aggregate_history(records).summary

    assert summary.total_paid == Decimal("8100.50")
    assert summary.total_late_fees == Decimal("960")
    assert summary.historical_count == 1
    assert summary.serialize()["total_paid"] == 8100.5


def test_records_are_not_modified():
    record = payment(1, datetime(2024, 3, 6), paid="100", description="historical payment")
    before = record.serialize()
    aggregate_history([record])
    assert record.serialize() == before


def test_empty_history():
    history = aggregate_history([])
    assert history.groups == []
    assert history.serialize()["summary"]["record_count"] == 0


def test_fee_shared_by_a_fee_row_and_its_payments_is_counted_once():
    fee = LateFeeRecord(
        id=1, agreement_id=1, amount_due=Decimal("3600"), amount_paid=Decimal("3600"),
        balance=Decimal("0"), late_fine_amount=Decimal("600"),
        original_due_date=datetime(2024, 3, 1),
    )
    first = payment(2, datetime(2024, 3, 6), paid="1000", fee="600",
                    original_due_date=datetime(2024, 3, 1), late_fee_record_id=1)
    second = payment(3, datetime(2024, 3, 15), paid="2600", fee="600",
                     original_due_date=datetime(2024, 3, 1), late_fee_record_id=1)
    april = payment(4, datetime(2024, 4, 3), paid="3240", fee="240",
                    original_due_date=datetime(2024, 4, 1))

    summary = aggregate_history([april, second, first, fee]).summary

    assert summary.total_late_fees == Decimal("840")
    assert summary.total_paid == Decimal("6840")


def test_fee_row_amount_wins_over_payment_copies():
    fee = LateFeeRecord(
        id=1, agreement_id=1, amount_due=Decimal("3450"), amount_paid=Decimal("0"),
        balance=Decimal("3450"), late_fine_amount=Decimal("450"),
        original_due_date=datetime(2024, 3, 1),
    )
    later = payment(2, datetime(2024, 3, 20), fee="900", original_due_date=datetime(2024, 3, 1))

    assert aggregate_history([later, fee]).summary.total_late_fees == Decimal("450")

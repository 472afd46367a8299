"""
Month-by-month view of an agreement's payment records.

Everything here is read-only: records are inspected, never modified, and
missing dates fall back (payment date, then original due date, then now)
instead of raising.
"""
import calendar
from datetime import datetime
from decimal import Decimal
from typing import List, NamedTuple

from fleetcore_backend.models import LateFeeRecord
from fleetcore_backend.utils.money import to_decimal

AUTO_GENERATED_MARKER = "Auto-generated late payment record"
HISTORICAL_MARKER = "historical payment"


class HistoryEntry(NamedTuple):
    record: object
    is_late_fee_record: bool
    is_historical_payment: bool
    is_auto_generated: bool

    def serialize(self):
        data = self.record.serialize()
        data.update(
            is_late_fee_record=self.is_late_fee_record,
            is_historical_payment=self.is_historical_payment,
            is_auto_generated=self.is_auto_generated,
        )
        return data


class MonthGroup(NamedTuple):
    year: int
    month: int
    entries: List[HistoryEntry]

    @property
    def label(self):
        return f"{calendar.month_name[self.month]} {self.year}"

    def serialize(self):
        return {
            "year": self.year,
            "month": self.month,
            "label": self.label,
            "payments": [entry.serialize() for entry in self.entries],
        }


class HistorySummary(NamedTuple):
    record_count: int
    total_paid: Decimal
    total_late_fees: Decimal
    auto_generated_count: int
    historical_count: int

    def serialize(self):
        return {
            "record_count": self.record_count,
            "total_paid": float(self.total_paid),
            "total_late_fees": float(self.total_late_fees),
            "auto_generated_count": self.auto_generated_count,
            "historical_count": self.historical_count,
        }


class PaymentHistory(NamedTuple):
    groups: List[MonthGroup]
    summary: HistorySummary

    def records(self):
        """Flatten back to records, newest month first."""
        return [entry.record for group in self.groups for entry in group.entries]

    def serialize(self):
        return {
            "groups": [group.serialize() for group in self.groups],
            "summary": self.summary.serialize(),
        }


def is_historical_payment(record):
    if getattr(record, "is_historical", False):
        return True
    return HISTORICAL_MARKER in (record.description or "").lower()


def is_auto_generated(record):
    if getattr(record, "is_auto_generated", False):
        return True
    return AUTO_GENERATED_MARKER in (record.description or "")


def classify(record):
    return HistoryEntry(
        record=record,
        is_late_fee_record=isinstance(record, LateFeeRecord),
        is_historical_payment=is_historical_payment(record),
        is_auto_generated=is_auto_generated(record),
    )


def grouping_date(record, now):
    return record.payment_date or record.original_due_date or now


def _amount(value):
    return to_decimal(value) if value is not None else Decimal("0")


def _billing_period(record):
    due = record.original_due_date
    return (due.year, due.month) if due is not None else id(record)


def late_fee_total(entries):
    """
    Sum the late fees charged, once per billing period.

    A fee row and the payments that consumed it all carry the same
    ``late_fine_amount``; the fee row's amount wins when present.
    """
    assessed = {}
    charged = {}
    for entry in entries:
        period = _billing_period(entry.record)
        amount = _amount(entry.record.late_fine_amount)
        if entry.is_late_fee_record:
            assessed[period] = amount
        else:
            charged[period] = max(charged.get(period, Decimal("0")), amount)
    charged.update(assessed)
    return sum(charged.values(), Decimal("0"))


def aggregate_history(records, now=None):
    now = now or datetime.utcnow()

    buckets = {}
    for record in records:
        when = grouping_date(record, now)
        buckets.setdefault((when.year, when.month), []).append(classify(record))

    groups = [
        MonthGroup(year=year, month=month, entries=entries)
        for (year, month), entries in sorted(buckets.items(), reverse=True)
    ]

    entries = [entry for group in groups for entry in group.entries]
    summary = HistorySummary(
        record_count=len(entries),
        total_paid=sum(
            (_amount(e.record.amount_paid) for e in entries if not e.is_late_fee_record),
            Decimal("0"),
        ),
        total_late_fees=late_fee_total(entries),
        auto_generated_count=sum(1 for e in entries if e.is_auto_generated),
        historical_count=sum(1 for e in entries if e.is_historical_payment),
    )
    return PaymentHistory(groups=groups, summary=summary)

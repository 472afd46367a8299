import logging
from datetime import datetime
from decimal import Decimal
from typing import NamedTuple, Optional

from .anchor import as_datetime, due_anchor
from .errors import BillingError, RecordingError
from .fee_lookup import resolve_late_fine
from .late_fee import resolve_daily_rate
from .ledger import compute_ledger, validate_amount_paid

log = logging.getLogger(__name__)


class PaymentQuote(NamedTuple):
    agreement_id: int
    as_of: datetime
    original_due_date: datetime
    rent_amount: Decimal
    daily_late_fee: Decimal
    days_overdue: int
    late_fine_amount: Decimal
    amount_due: Decimal
    existing_fee_id: Optional[int]

    def serialize(self):
        return {
            "agreement_id": self.agreement_id,
            "as_of": self.as_of.isoformat(),
            "original_due_date": self.original_due_date.isoformat(),
            "rent_amount": float(self.rent_amount),
            "daily_late_fee": float(self.daily_late_fee),
            "days_overdue": self.days_overdue,
            "late_fine_amount": float(self.late_fine_amount),
            "amount_due": float(self.amount_due),
            "existing_fee_id": self.existing_fee_id,
        }


class PaymentRecorder:
    """
    Turns a payment submission into one self-consistent, idempotent write.

    ``store`` is the persistence collaborator (see ``billing.store``),
    ``default_daily_rate`` the configured fallback rate and ``clock`` a
    zero-argument callable used when no payment date is given.
    """

    def __init__(self, store, default_daily_rate=None, clock=datetime.utcnow):
        self.store = store
        self.default_daily_rate = default_daily_rate
        self.clock = clock

    def _resolve(self, agreement_id, reference):
        billing = self.store.get_agreement_billing(agreement_id)
        anchor = due_anchor(reference)
        if billing.rent_due_day and billing.rent_due_day != anchor.day:
            # Due day is stored per agreement but cycles are still anchored on the 1st.
            log.debug("Agreement %s has rent_due_day=%s; anchoring on %s",
                      agreement_id, billing.rent_due_day, anchor.date())
        rate = resolve_daily_rate(billing.daily_late_fee, self.default_daily_rate)
        fee = resolve_late_fine(self.store, agreement_id, anchor, reference, rate)
        return billing, anchor, rate, fee

    def quote(self, agreement_id, as_of=None):
        """What the agreement owes right now, without writing anything."""
        reference = as_datetime(as_of) if as_of is not None else self.clock()
        billing, anchor, rate, fee = self._resolve(agreement_id, reference)
        return PaymentQuote(
            agreement_id=agreement_id,
            as_of=reference,
            original_due_date=anchor,
            rent_amount=billing.rent_amount,
            daily_late_fee=rate,
            days_overdue=fee.days_overdue,
            late_fine_amount=fee.late_fine_amount,
            amount_due=billing.rent_amount + fee.late_fine_amount,
            existing_fee_id=fee.existing_fee_id,
        )

    def record_payment(self, agreement_id, amount_paid, payment_method, description, payment_date=None):
        validate_amount_paid(amount_paid)
        reference = as_datetime(payment_date) if payment_date is not None else self.clock()

        billing, anchor, _rate, fee = self._resolve(agreement_id, reference)
        ledger = compute_ledger(billing.rent_amount, fee.late_fine_amount, amount_paid)

        try:
            payment = self.store.record_payment_with_late_fee(
                agreement_id=agreement_id,
                amount_due=ledger.amount_due,
                amount_paid=ledger.amount_paid,
                balance=ledger.balance,
                payment_method=payment_method,
                description=description,
                payment_date=reference,
                late_fine_amount=ledger.late_fine_amount,
                days_overdue=fee.days_overdue,
                original_due_date=anchor,
                existing_fee_id=fee.existing_fee_id,
            )
        except RecordingError:
            log.exception("Recording payment failed for agreement %s", agreement_id)
            raise
        except BillingError:
            raise
        except Exception as e:
            log.exception("Recording payment failed for agreement %s", agreement_id)
            raise RecordingError(f"payment could not be recorded: {e}", agreement_id=agreement_id) from e

        log.info(
            "Recorded payment %s for agreement %s: due=%s paid=%s balance=%s fee=%s (%s)",
            payment.id, agreement_id, payment.amount_due, payment.amount_paid, payment.balance,
            payment.late_fine_amount, "reused" if fee.reused else "computed",
        )
        return payment

    def delete_payment(self, payment_id):
        self.store.delete_payment_record(payment_id, {"status": "deleted"})
        log.info("Deleted payment %s", payment_id)

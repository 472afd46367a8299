from decimal import Decimal
from typing import NamedTuple

from fleetcore_backend.utils.money import to_decimal
from .errors import ValidationError


class Ledger(NamedTuple):
    rent_amount: Decimal
    late_fine_amount: Decimal
    amount_due: Decimal
    amount_paid: Decimal
    balance: Decimal

    @property
    def status(self):
        return 'completed' if self.balance <= 0 else 'pending'


def validate_amount_paid(amount_paid) -> Decimal:
    """Accept any finite, non-negative amount; overpayment is allowed."""
    if amount_paid is None:
        raise ValidationError("amount_paid is required", field="amount_paid")
    try:
        amount = to_decimal(amount_paid)
    except (TypeError, ValueError):
        raise ValidationError(f"amount_paid must be a number, got {amount_paid!r}", field="amount_paid")
    if not amount.is_finite():
        raise ValidationError("amount_paid must be finite", field="amount_paid")
    if amount < 0:
        raise ValidationError("amount_paid cannot be negative", field="amount_paid")
    return amount


def compute_ledger(rent_amount, late_fine_amount, amount_paid) -> Ledger:
    paid = validate_amount_paid(amount_paid)
    rent = to_decimal(rent_amount)
    fee = to_decimal(late_fine_amount)
    amount_due = rent + fee
    return Ledger(
        rent_amount=rent,
        late_fine_amount=fee,
        amount_due=amount_due,
        amount_paid=paid,
        balance=amount_due - paid,
    )

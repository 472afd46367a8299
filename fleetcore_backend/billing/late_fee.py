from decimal import Decimal

from fleetcore_backend.utils.money import to_decimal
from .anchor import as_datetime, due_anchor

# Used when neither the agreement nor the configuration sets a rate
FALLBACK_DAILY_LATE_FEE = Decimal("120")


def resolve_daily_rate(agreement_rate=None, configured_rate=None):
    """
    Pick the daily late-fee rate for an agreement.

    Precedence is the agreement's own rate, then the configured default
    (``DEFAULT_DAILY_LATE_FEE``), then ``FALLBACK_DAILY_LATE_FEE``. A rate of
    zero counts as unset.
    """
    for candidate in (agreement_rate, configured_rate):
        if candidate is None:
            continue
        rate = to_decimal(candidate)
        if rate > 0:
            return rate
    return FALLBACK_DAILY_LATE_FEE


def days_overdue(reference):
    """Whole days elapsed since the anchor of ``reference``'s month."""
    reference = as_datetime(reference)
    elapsed = reference - due_anchor(reference)
    return max(0, elapsed.days)


def late_fee(overdue_days, daily_rate):
    if overdue_days <= 0:
        return Decimal("0")
    return overdue_days * to_decimal(daily_rate)

import calendar
import logging
from datetime import datetime
from decimal import Decimal

from dateutil.relativedelta import relativedelta

from .anchor import as_datetime, due_anchor
from .errors import BillingError
from .history import AUTO_GENERATED_MARKER
from .late_fee import days_overdue, late_fee, resolve_daily_rate

log = logging.getLogger(__name__)


def process_overdue_payments(store, run_date=None, default_daily_rate=None):
    """
    Assess this month's late fee for every active agreement that has not paid.

    An agreement gets an auto-generated fee record when it has no payment
    dated in the current month and no fee record for the month's anchor yet.
    Running twice in the same month creates nothing new. Failures are logged
    per agreement and reported in ``details``; they do not stop the run.
    """
    today = as_datetime(run_date) if run_date is not None else datetime.utcnow()
    anchor = due_anchor(today)
    elapsed = days_overdue(today)
    log.info("Processing overdue payments for %s, days elapsed: %s", today.date(), elapsed)

    if elapsed <= 0:
        return {
            "success": True,
            "processed_count": 0,
            "message": "No late fees to process yet this month",
            "details": [],
        }

    next_anchor = anchor + relativedelta(months=1)
    processed = 0
    details = []

    for agreement in store.list_active_agreements():
        try:
            if store.has_payment_between(agreement.id, anchor, next_anchor):
                continue
            if store.find_late_fee_record(agreement.id, anchor) is not None:
                continue

            rate = resolve_daily_rate(agreement.daily_late_fee, default_daily_rate)
            fee = late_fee(elapsed, rate)
            amount_due = agreement.rent_amount + fee
            _, created = store.create_late_fee_record(
                agreement_id=agreement.id,
                amount_due=amount_due,
                amount_paid=Decimal("0"),
                balance=amount_due,
                late_fine_amount=fee,
                days_overdue=elapsed,
                payment_date=None,
                original_due_date=anchor,
                description=f"{AUTO_GENERATED_MARKER} for {calendar.month_name[anchor.month]}",
                is_auto_generated=True,
            )
        except BillingError as e:
            log.error("Error processing late fee for agreement %s: %s", agreement.agreement_number, e)
            details.append({
                "agreement_number": agreement.agreement_number,
                "success": False,
                "error": e.message,
            })
            continue

        if created:
            processed += 1
            details.append({
                "agreement_number": agreement.agreement_number,
                "success": True,
                "late_fee_amount": float(fee),
                "days_overdue": elapsed,
            })

    log.info("Processed %s late fee records", processed)
    return {"success": True, "processed_count": processed, "details": details}

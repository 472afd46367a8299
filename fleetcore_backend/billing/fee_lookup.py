import logging
from decimal import Decimal
from typing import NamedTuple, Optional

from .errors import FeeLookupError
from .late_fee import days_overdue, late_fee

log = logging.getLogger(__name__)


class FeeResolution(NamedTuple):
    late_fine_amount: Decimal
    days_overdue: int
    existing_fee_id: Optional[int]

    @property
    def reused(self):
        return self.existing_fee_id is not None


def resolve_late_fine(store, agreement_id, anchor, reference, daily_rate) -> FeeResolution:
    """
    Decide the late fee for the month anchored at ``anchor``.

    A fee already persisted for that anchor wins and is returned exactly as
    stored, however many days have passed since it was assessed. Only when no
    fee exists (or the lookup itself fails) is the fee computed from
    ``reference``. Always queries the store; nothing is cached between calls.
    """
    overdue = days_overdue(reference)
    try:
        existing = store.find_late_fee_record(agreement_id, anchor)
    except FeeLookupError as e:
        log.warning("Existing late fee lookup failed for agreement %s, computing instead: %s",
                    agreement_id, e)
        existing = None

    if existing is not None:
        return FeeResolution(
            late_fine_amount=existing.late_fine_amount or Decimal("0"),
            days_overdue=overdue,
            existing_fee_id=existing.id,
        )

    return FeeResolution(
        late_fine_amount=late_fee(overdue, daily_rate),
        days_overdue=overdue,
        existing_fee_id=None,
    )

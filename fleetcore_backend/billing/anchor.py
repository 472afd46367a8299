from datetime import date, datetime, time


def as_datetime(value):
    """Promote a plain ``date`` to midnight of that day."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    raise TypeError(f"expected date or datetime, got {type(value).__name__}")


def due_anchor(reference):
    """
    Return the monthly anchor for ``reference``.

    Rent is due on the first of every month, so the anchor is the first
    calendar day of the reference's month at start of day. Timezone info on
    the reference is kept. Dates in the same month always map to the same
    anchor.
    """
    reference = as_datetime(reference)
    return reference.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

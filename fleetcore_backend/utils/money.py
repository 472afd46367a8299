from decimal import Decimal, InvalidOperation


def to_decimal(value):
    """Convert a number or numeric string to ``Decimal`` without float noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("booleans are not amounts")
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"not a number: {value!r}") from e

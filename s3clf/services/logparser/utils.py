from decimal import ROUND_HALF_UP, Decimal

from .errors import MalformedLogLine


def parse_int(value: str | None, field_name: str) -> int:
    """Parse an integer-as-string field, raising MalformedLogLine if it is not one."""
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as e:
        raise MalformedLogLine(str(value), f"Field {field_name} is not an integer") from e


def round_half_up(value: float | int | Decimal) -> int:
    """Round halves away from zero (1.5 -> 2, 2.5 -> 3), unlike round()."""
    return int(Decimal(str(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))

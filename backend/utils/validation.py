import math

from exceptions import InvalidInput


def to_number(value, label: str) -> float:
    if value is None or isinstance(value, bool):
        raise InvalidInput(f"{label} is required and must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"{label} must be a number")
    if not math.isfinite(number):
        raise InvalidInput(f"{label} must be a finite number")
    return number


def require_positive(value, label: str) -> float:
    number = to_number(value, label)
    if number <= 0:
        raise InvalidInput(f"{label} must be greater than 0")
    return number


def require_non_negative(value, label: str) -> float:
    number = to_number(value, label)
    if number < 0:
        raise InvalidInput(f"{label} must be >= 0")
    return number


def require_count(value, label: str, positive: bool = False) -> int:
    """Validate a whole-number count such as mortality, birds or cages."""
    number = to_number(value, label)
    if not number.is_integer():
        raise InvalidInput(f"{label} must be a whole number")
    if positive and number <= 0:
        raise InvalidInput(f"{label} must be greater than 0")
    if number < 0:
        raise InvalidInput(f"{label} must be >= 0")
    return int(number)


def require_text(value, label: str) -> str:
    text = str(value).strip() if value is not None else ""
    if not text:
        raise InvalidInput(f"{label} is required")
    return text

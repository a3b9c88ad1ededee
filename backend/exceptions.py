"""Domain errors raised by the ledger and report layer.

Each error carries a machine-readable ``kind`` and a human-readable
``detail``. The HTTP layer maps them to responses in one place (see main.py);
the CRUD layer never raises HTTPException itself.
"""

from datetime import date
from typing import Optional


class PoultryDomainError(Exception):
    """Base class for every rejected ledger / batch operation."""

    kind = "DomainError"
    status_code = 400

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)

    def to_dict(self) -> dict:
        return {"error": self.kind, "detail": self.detail}


class InvalidInput(PoultryDomainError):
    kind = "InvalidInput"


class InvalidDate(PoultryDomainError):
    kind = "InvalidDate"


class OutOfSequence(PoultryDomainError):
    kind = "OutOfSequence"
    status_code = 409

    def __init__(self, detail: str, next_required_date: Optional[date] = None):
        self.next_required_date = next_required_date
        super().__init__(detail)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["next_required_date"] = self.next_required_date.isoformat() if self.next_required_date else None
        return data


class AgeOutOfRange(PoultryDomainError):
    kind = "AgeOutOfRange"


class InsufficientStock(PoultryDomainError):
    kind = "InsufficientStock"
    status_code = 409

    def __init__(self, detail: str, available_kg: float = 0.0):
        self.available_kg = available_kg
        super().__init__(detail)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["available_kg"] = self.available_kg
        return data


class InsufficientBirds(PoultryDomainError):
    kind = "InsufficientBirds"
    status_code = 409

    def __init__(self, detail: str, remaining: int = 0):
        self.remaining = remaining
        super().__init__(detail)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["remaining"] = self.remaining
        return data


class InvalidWeight(PoultryDomainError):
    kind = "InvalidWeight"


class BatchInactive(PoultryDomainError):
    kind = "BatchInactive"


class NotFound(PoultryDomainError):
    kind = "NotFound"
    status_code = 404


class CompensationFailure(PoultryDomainError):
    """A saga step failed and undoing the already committed step failed too."""

    kind = "CompensationFailure"
    status_code = 500


class ActiveBatchExists(InvalidInput):
    kind = "ActiveBatchExists"
    status_code = 409


class ClosingNotAllowed(InvalidInput):
    kind = "ClosingNotAllowed"

"""Helpers shared by the ledger services."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from fastapi import HTTPException, status

Q2 = Decimal("0.01")


def q2(value: Decimal) -> Decimal:
    return Decimal(value).quantize(Q2, rounding=ROUND_HALF_UP)


def money(value: Decimal) -> str:
    return str(q2(value))


def validation_error(loc: str | tuple[str | int, ...], message: str) -> HTTPException:
    """422 carrying the same field-level shape FastAPI uses for body errors.

    ``loc`` is a field name or a path into the body such as
    ``("quantities", 0, "parcel_type_id")``.
    """

    path = [loc] if isinstance(loc, str) else list(loc)
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=[{"loc": ["body", *path], "msg": message, "type": "value_error"}],
    )


def not_found(entity: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{entity} not found.")


@dataclass(slots=True)
class PageWindow:
    page: int
    per_page: int
    total: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page

    @property
    def last_page(self) -> int:
        return max(1, -(-self.total // self.per_page))

    def envelope(self, items: list[dict[str, object]]) -> dict[str, object]:
        return {
            "items": items,
            "page": self.page,
            "per_page": self.per_page,
            "total": self.total,
            "last_page": self.last_page,
        }

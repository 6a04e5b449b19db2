from decimal import Decimal

from pydantic import BaseModel, Field


class BreakdownLine(BaseModel):
    item_index: int
    item_name: str
    amount: Decimal
    note: str


class Allocation(BaseModel):
    """
    Exact (unrounded) result of allocating a bill.

    owed has the payer forced to zero; personal_consumption keeps what every
    participant actually consumed, payer included. unallocated is the part of
    total_bill nobody was billed for (unclaimed counted units, or items with no
    participants at all, which are also listed in flagged_items).
    """
    owed: dict[str, Decimal] = Field(default_factory=dict)
    breakdown: dict[str, list[BreakdownLine]] = Field(default_factory=dict)
    personal_consumption: dict[str, Decimal] = Field(default_factory=dict)
    total_bill: Decimal = Decimal("0")
    payer_id: str | None = None
    payer_refund: Decimal | None = None
    unallocated: Decimal = Decimal("0")
    flagged_items: list[int] = Field(default_factory=list)

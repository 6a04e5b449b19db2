from decimal import Decimal
from pydantic import BaseModel


class PersonInfo(BaseModel):
    participant_id: str
    name: str
    initial: str
    color: str
    is_payer: bool


class BreakdownLineResponse(BaseModel):
    item_index: int
    item_name: str
    amount: Decimal
    note: str


class PersonSummary(PersonInfo):
    owed: Decimal
    consumption: Decimal
    breakdown: list[BreakdownLineResponse] = []


class TransferResponse(BaseModel):
    from_participant_id: str
    from_name: str
    to_participant_id: str
    to_name: str
    amount: Decimal


class SummaryResponse(BaseModel):
    total_bill: Decimal
    receipt_total: Decimal | None
    receipt_total_matches: bool | None
    payer: PersonInfo | None
    payer_refund: Decimal | None
    unallocated: Decimal
    flagged_items: list[int]
    participants: list[PersonSummary]
    transfers: list[TransferResponse]

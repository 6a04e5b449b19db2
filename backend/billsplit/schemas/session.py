import uuid
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict

from billsplit.models.notice import Notice
from billsplit.models.session import BillSession
from billsplit.schemas.assignment import ItemAssignmentResponse
from billsplit.schemas.receipt import ItemResponse
from billsplit.services.assignment_service import item_state


class ParticipantCreate(BaseModel):
    name: str


class PayerUpdate(BaseModel):
    participant_id: str


class ParticipantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    name: str
    initial: str
    color: str
    is_payer: bool


class NoticeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    code: str
    message: str
    item_index: int | None = None


class SessionResponse(BaseModel):
    id: uuid.UUID
    created_at: datetime
    items: list[ItemResponse]
    participants: list[ParticipantResponse]
    assignments: list[ItemAssignmentResponse]
    receipt_total: Decimal | None
    total_bill: Decimal
    notices: list[NoticeResponse] = []

    @classmethod
    def from_session(cls, session: BillSession, notices: list[Notice] | None = None) -> "SessionResponse":
        order = {p.id: i for i, p in enumerate(session.participants)}

        def ordered(ids):
            return sorted(ids, key=lambda pid: order.get(pid, len(order)))

        assignments = []
        for item in session.items:
            entry = session.assignments.entry(item.index)
            assignments.append(ItemAssignmentResponse(
                item_index=item.index,
                state=item_state(entry, item),
                participants=ordered(entry.participants),
                is_shared=entry.is_shared,
                unit_counts=dict(entry.unit_counts),
                portions=[ordered(portion) for portion in entry.portions],
            ))

        return cls(
            id=session.id,
            created_at=session.created_at,
            items=[ItemResponse.model_validate(item) for item in session.items],
            participants=[ParticipantResponse.model_validate(p) for p in session.participants],
            assignments=assignments,
            receipt_total=session.receipt_total,
            total_bill=session.total_bill,
            notices=[NoticeResponse.model_validate(n) for n in notices or []],
        )

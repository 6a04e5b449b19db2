import uuid
from datetime import datetime, timezone
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from billsplit.models.assignment import AssignmentStore
from billsplit.models.item import Item
from billsplit.models.participant import Participant


class BillSession(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    items: tuple[Item, ...] = ()
    participants: tuple[Participant, ...] = ()
    assignments: AssignmentStore = Field(default_factory=AssignmentStore)
    receipt_total: Decimal | None = None
    image_mime_type: str | None = None

    @property
    def payer(self) -> Participant | None:
        return next((p for p in self.participants if p.is_payer), None)

    @property
    def total_bill(self) -> Decimal:
        return sum((item.total_price for item in self.items), Decimal("0"))

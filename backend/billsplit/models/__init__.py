from billsplit.models.item import Item
from billsplit.models.participant import Participant
from billsplit.models.assignment import AssignmentStore, ItemAssignment
from billsplit.models.allocation import Allocation, BreakdownLine
from billsplit.models.notice import Notice
from billsplit.models.session import BillSession

__all__ = [
    "Item", "Participant",
    "AssignmentStore", "ItemAssignment",
    "Allocation", "BreakdownLine",
    "Notice", "BillSession",
]

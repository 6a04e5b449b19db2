import uuid
from decimal import Decimal

from billsplit.models.assignment import AssignmentStore, ItemAssignment
from billsplit.models.item import Item
from billsplit.models.session import BillSession
from billsplit.services.participant_service import add_participant
from billsplit.services.settlement_service import build_summary


def people(*names):
    participants = ()
    for name in names:
        participants, _ = add_participant(participants, name)
    return participants


def test_pizza_summary():
    alice, bob = people("Alice", "Bob")
    session = BillSession(
        items=(Item(index=0, name="Pizza", quantity=1, unit_price=Decimal("20.00")),),
        participants=(alice, bob),
        assignments=AssignmentStore(entries={0: ItemAssignment(participants=frozenset({alice.id, bob.id}))}),
        receipt_total=Decimal("20.00"),
    )

    summary = build_summary(session)

    assert summary["total_bill"] == Decimal("20.00")
    assert summary["receipt_total_matches"] is True
    assert summary["payer"]["participant_id"] == alice.id
    assert summary["payer_refund"] == Decimal("10.00")
    by_id = {p["participant_id"]: p for p in summary["participants"]}
    assert by_id[alice.id]["owed"] == Decimal("0.00")
    assert by_id[alice.id]["consumption"] == Decimal("10.00")
    assert by_id[bob.id]["owed"] == Decimal("10.00")
    assert by_id[bob.id]["breakdown"] == [
        {"item_index": 0, "item_name": "Pizza", "amount": Decimal("10.00"), "note": "split 2 ways"},
    ]
    assert summary["transfers"] == [{
        "from_participant_id": bob.id,
        "from_name": "Bob",
        "to_participant_id": alice.id,
        "to_name": "Alice",
        "amount": Decimal("10.00"),
    }]


def test_rounded_amounts_add_up():
    """Three-way split of 10.00: whoever gets the spare cent, every figure reconciles."""
    alice, bob, carol = people("Alice", "Bob", "Carol")
    for n in range(40):
        session = BillSession(
            id=uuid.UUID(int=n),
            items=(Item(index=0, name="Cake", quantity=1, unit_price=Decimal("10.00")),),
            participants=(alice, bob, carol),
        )

        summary = build_summary(session)

        by_id = {p["participant_id"]: p for p in summary["participants"]}
        consumed = [p["consumption"] for p in summary["participants"]]
        owed = [p["owed"] for p in summary["participants"]]
        assert sorted(consumed) == [Decimal("3.33"), Decimal("3.33"), Decimal("3.34")]
        assert summary["total_bill"] == Decimal("10.00")
        assert by_id[alice.id]["consumption"] + summary["payer_refund"] == summary["total_bill"]
        assert sum(owed) == summary["payer_refund"]
        assert sum(t["amount"] for t in summary["transfers"]) == summary["payer_refund"]
        assert build_summary(session) == summary


def test_breakdown_lines_add_up_to_consumption():
    """Three people sharing every unit of a 3 x 1.00 item: lines of 1/3 still sum to 1.00."""
    alice, bob, carol = people("Alice", "Bob", "Carol")
    everyone = frozenset({alice.id, bob.id, carol.id})
    session = BillSession(
        items=(Item(index=0, name="Skewers", quantity=3, unit_price=Decimal("1.00")),),
        participants=(alice, bob, carol),
        assignments=AssignmentStore(entries={0: ItemAssignment(
            participants=everyone, is_shared=True, portions=(everyone, everyone, everyone),
        )}),
    )

    summary = build_summary(session)

    for person in summary["participants"]:
        amounts = [line["amount"] for line in person["breakdown"]]
        assert person["consumption"] == Decimal("1.00")
        assert sum(amounts) == person["consumption"]
        assert sorted(amounts) == [Decimal("0.33"), Decimal("0.33"), Decimal("0.34")]


def test_unallocated_units_count_towards_refund():
    alice, bob = people("Alice", "Bob")
    session = BillSession(
        items=(Item(index=0, name="Beer", quantity=3, unit_price=Decimal("2.00")),),
        participants=(alice, bob),
        assignments=AssignmentStore(entries={0: ItemAssignment(
            participants=frozenset({bob.id}), unit_counts={bob.id: 1},
        )}),
    )

    summary = build_summary(session)

    assert summary["unallocated"] == Decimal("4.00")
    assert summary["payer_refund"] == Decimal("6.00")
    assert [t["amount"] for t in summary["transfers"]] == [Decimal("2.00")]


def test_no_payer_means_no_transfers():
    session = BillSession(
        items=(Item(index=0, name="Cake", quantity=1, unit_price=Decimal("10.00")),),
    )

    summary = build_summary(session)

    assert summary["payer"] is None
    assert summary["payer_refund"] is None
    assert summary["transfers"] == []
    assert summary["participants"] == []
    assert summary["flagged_items"] == [0]
    assert summary["unallocated"] == Decimal("10.00")


def test_receipt_total_mismatch_is_reported():
    (alice,) = people("Alice")
    session = BillSession(
        items=(Item(index=0, name="Soup", quantity=2, unit_price=Decimal("4.50")),),
        participants=(alice,),
        receipt_total=Decimal("10.00"),
    )

    summary = build_summary(session)

    assert summary["total_bill"] == Decimal("9.00")
    assert summary["receipt_total"] == Decimal("10.00")
    assert summary["receipt_total_matches"] is False
    assert summary["transfers"] == []
    assert summary["payer_refund"] == Decimal("0.00")

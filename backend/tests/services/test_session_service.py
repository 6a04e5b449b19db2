from decimal import Decimal
import pytest

from billsplit.core.errors import ErrorCode, ItemNotFoundError, ParticipantNotFoundError
from billsplit.models.session import BillSession
from billsplit.services import session_service as svc


@pytest.fixture
def session():
    """Alice (payer) and Bob with Pizza x1 and Fries x3 on the bill."""
    s = BillSession()
    s, _ = svc.add_participant(s, "Alice")
    s, _ = svc.add_participant(s, "Bob")
    s, _ = svc.add_item(s, {"name": "Pizza", "quantity": 1, "unit_price": "20.00"})
    s, _ = svc.add_item(s, {"name": "Fries", "quantity": 3, "unit_price": "2.00"})
    return s


def ids(s):
    return [p.id for p in s.participants]


def test_commands_return_new_sessions(session):
    alice, bob = ids(session)
    updated, notices = svc.toggle_assignment(session, 0, bob)
    assert notices == []
    assert updated.assignments.entry(0).participants == {bob}
    assert session.assignments.entries == {}


def test_full_flow_allocates(session):
    alice, bob = ids(session)
    s, _ = svc.toggle_assignment(session, 0, alice)
    s, _ = svc.toggle_assignment(s, 0, bob)
    s, _ = svc.set_item_shared(s, 1, True)
    s, _ = svc.save_portions(s, 1, [[alice, bob], [alice], []])

    allocation = svc.allocate_session(s)

    assert allocation.owed == {alice: Decimal("0"), bob: Decimal("12.00")}
    assert allocation.personal_consumption[alice] == Decimal("14.00")
    assert allocation.payer_refund == Decimal("12.00")


def test_change_units_steps_both_ways(session):
    alice, _ = ids(session)
    s, _ = svc.change_units(session, 1, alice, 1)
    s, _ = svc.change_units(s, 1, alice, 1)
    assert s.assignments.entry(1).unit_counts == {alice: 2}
    s, _ = svc.change_units(s, 1, alice, -1)
    assert s.assignments.entry(1).unit_counts == {alice: 1}


def test_quantity_decrease_cascades(session):
    alice, bob = ids(session)
    s, _ = svc.set_units(session, 1, alice, 2)
    s, _ = svc.set_units(s, 1, bob, 1)

    s, notices = svc.change_quantity(s, 1, -1)

    assert s.items[1].quantity == 2
    assert s.assignments.entry(1).is_empty
    assert [n.code for n in notices] == [ErrorCode.ASSIGNMENTS_RESET]
    assert notices[0].item_index == 1


def test_remove_item_reindexes(session):
    alice, bob = ids(session)
    s, _ = svc.toggle_assignment(session, 0, bob)
    s, _ = svc.set_units(s, 1, alice, 1)

    s, _ = svc.remove_item(s, 0)

    assert [(i.index, i.name) for i in s.items] == [(0, "Fries")]
    assert s.assignments.entry(0).unit_counts == {alice: 1}
    assert set(s.assignments.entries) == {0}


def test_remove_participant_purges_assignments(session):
    alice, bob = ids(session)
    s, _ = svc.toggle_assignment(session, 0, alice)
    s, _ = svc.toggle_assignment(s, 0, bob)

    s, _ = svc.remove_participant(s, alice)

    assert ids(s) == [bob]
    assert s.payer.id == bob
    assert s.assignments.entry(0).participants == {bob}


def test_unknown_references_raise(session):
    alice, _ = ids(session)
    with pytest.raises(ItemNotFoundError):
        svc.toggle_assignment(session, 7, alice)
    with pytest.raises(ParticipantNotFoundError):
        svc.toggle_assignment(session, 0, "ghost")
    with pytest.raises(ParticipantNotFoundError):
        svc.save_portions(session, 1, [["ghost"], [], []])


def test_load_items_without_assignments_has_no_notice(session):
    s, notices = svc.load_items(session, session.items[:1], receipt_total=Decimal("20.00"))
    assert notices == []
    assert len(s.items) == 1
    assert s.receipt_total == Decimal("20.00")


def test_counting_units_after_quantity_increase_bills_only_counted(session):
    alice, bob = ids(session)
    s, _ = svc.toggle_assignment(session, 0, alice)
    s, _ = svc.toggle_assignment(s, 0, bob)
    s, _ = svc.change_quantity(s, 0, 1)

    s, notices = svc.change_units(s, 0, alice, 1)

    assert [n.code for n in notices] == [ErrorCode.SPLIT_BY_UNITS]
    assert bob not in s.assignments.entry(0).linked
    allocation = svc.allocate_session(s)
    assert [line.amount for line in allocation.breakdown[alice] if line.item_index == 0] == [Decimal("20.00")]
    assert not any(line.item_index == 0 for line in allocation.breakdown[bob])
    assert allocation.unallocated == Decimal("20.00")

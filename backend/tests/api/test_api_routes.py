import base64
import uuid
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from billsplit.core.errors import MalformedResponseError
from billsplit.core.sessions import SessionStore, get_store
from billsplit.main import app


@pytest.fixture
def client():
    store = SessionStore()
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


def new_session(client):
    return client.post("/api/sessions").json()["id"]


def add_person(client, sid, name):
    body = client.post(f"/api/sessions/{sid}/participants", json={"name": name}).json()
    return body["participants"][-1]["id"]


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


def test_manual_bill_end_to_end(client):
    sid = new_session(client)
    alice = add_person(client, sid, "Alice")
    bob = add_person(client, sid, "Bob")

    res = client.post(f"/api/sessions/{sid}/items", json={"name": "Pizza", "quantity": 1, "unit_price": "20.00"})
    assert res.status_code == 201
    client.post(f"/api/sessions/{sid}/items/0/toggle", json={"participant_id": alice})
    res = client.post(f"/api/sessions/{sid}/items/0/toggle", json={"participant_id": bob})

    body = res.json()
    assert body["assignments"][0]["state"] == "simple"
    assert body["assignments"][0]["participants"] == [alice, bob]
    assert Decimal(body["total_bill"]) == Decimal("20.00")

    summary = client.get(f"/api/sessions/{sid}/summary").json()
    owed = {p["participant_id"]: Decimal(p["owed"]) for p in summary["participants"]}
    assert owed == {alice: Decimal("0"), bob: Decimal("10.00")}
    assert Decimal(summary["payer_refund"]) == Decimal("10.00")
    assert summary["transfers"][0]["from_participant_id"] == bob
    assert summary["transfers"][0]["to_participant_id"] == alice


def test_unit_limit_comes_back_as_notice(client):
    sid = new_session(client)
    alice = add_person(client, sid, "Alice")
    client.post(f"/api/sessions/{sid}/items", json={"name": "Beer", "quantity": 2, "unit_price": "4.00"})

    res = client.put(f"/api/sessions/{sid}/items/0/units", json={"participant_id": alice, "count": 3})

    assert res.status_code == 200
    assert [n["code"] for n in res.json()["notices"]] == ["LIMIT_EXCEEDED"]

    res = client.post(f"/api/sessions/{sid}/items/0/units", json={"participant_id": alice, "delta": 1})
    assert res.json()["assignments"][0]["unit_counts"] == {alice: 1}
    assert res.json()["assignments"][0]["state"] == "counted"


def test_portions_round_trip(client):
    sid = new_session(client)
    alice = add_person(client, sid, "Alice")
    bob = add_person(client, sid, "Bob")
    client.post(f"/api/sessions/{sid}/items", json={"name": "Fries", "quantity": 3, "unit_price": "2.00"})
    client.put(f"/api/sessions/{sid}/items/0/shared", json={"shared": True})

    editor = client.get(f"/api/sessions/{sid}/items/0/portions").json()
    assert editor == {"item_index": 0, "quantity": 3, "portions": [[], [], []]}

    res = client.put(f"/api/sessions/{sid}/items/0/portions",
                     json={"portions": [[bob, alice], [alice], []]})
    assert res.json()["assignments"][0]["state"] == "shared_by_portion"

    editor = client.get(f"/api/sessions/{sid}/items/0/portions").json()
    assert editor["portions"] == [[alice, bob], [alice], []]

    summary = client.get(f"/api/sessions/{sid}/summary").json()
    consumed = {p["participant_id"]: Decimal(p["consumption"]) for p in summary["participants"]}
    assert consumed == {alice: Decimal("4.00"), bob: Decimal("2.00")}


def test_quantity_change_resets_with_notice(client):
    sid = new_session(client)
    alice = add_person(client, sid, "Alice")
    client.post(f"/api/sessions/{sid}/items", json={"name": "Beer", "quantity": 2, "unit_price": "4.00"})
    client.put(f"/api/sessions/{sid}/items/0/units", json={"participant_id": alice, "count": 2})

    res = client.patch(f"/api/sessions/{sid}/items/0", json={"delta": -1})

    body = res.json()
    assert body["items"][0]["quantity"] == 1
    assert body["assignments"][0]["state"] == "unassigned"
    assert body["notices"][0]["code"] == "ASSIGNMENTS_RESET"


def test_receipt_upload(client):
    sid = new_session(client)
    extracted = {"items": [{"name": "Soup", "quantity": 2, "unitPrice": 4.5, "totalPrice": 9.0}], "total": 9.0}
    image = base64.b64encode(b"jpeg-bytes").decode()

    with patch("billsplit.services.receipt_service.extract_receipt",
               new=AsyncMock(return_value=extracted)) as mock_extract:
        res = client.post(f"/api/sessions/{sid}/receipt", json={"image_base64": image})

    assert res.status_code == 200
    mock_extract.assert_awaited_once_with(b"jpeg-bytes", "image/jpeg")
    body = res.json()
    assert body["items"][0]["name"] == "Soup"
    assert Decimal(body["receipt_total"]) == Decimal("9.0")


def test_receipt_reader_failure_is_502(client):
    sid = new_session(client)
    image = base64.b64encode(b"jpeg-bytes").decode()

    with patch("billsplit.services.receipt_service.extract_receipt",
               new=AsyncMock(side_effect=MalformedResponseError("no json"))):
        res = client.post(f"/api/sessions/{sid}/receipt", json={"image_base64": image})

    assert res.status_code == 502
    assert res.json()["error"]["code"] == "MALFORMED_RESPONSE"
    assert res.json()["error"]["detail"] == "no json"


def test_bad_base64_is_rejected(client):
    sid = new_session(client)
    res = client.post(f"/api/sessions/{sid}/receipt", json={"image_base64": "not base64!"})
    assert res.status_code == 422
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


def test_unknown_session_and_item(client):
    res = client.get(f"/api/sessions/{uuid.uuid4()}")
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "SESSION_NOT_FOUND"

    sid = new_session(client)
    alice = add_person(client, sid, "Alice")
    res = client.post(f"/api/sessions/{sid}/items/3/toggle", json={"participant_id": alice})
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "ITEM_NOT_FOUND"


def test_delete_session(client):
    sid = new_session(client)
    assert client.delete(f"/api/sessions/{sid}").status_code == 204
    assert client.get(f"/api/sessions/{sid}").status_code == 404
    assert client.delete(f"/api/sessions/{sid}").status_code == 404


def test_payer_and_participant_removal(client):
    sid = new_session(client)
    alice = add_person(client, sid, "Alice")
    bob = add_person(client, sid, "Bob")

    res = client.put(f"/api/sessions/{sid}/payer", json={"participant_id": bob})
    assert [p["is_payer"] for p in res.json()["participants"]] == [False, True]

    res = client.delete(f"/api/sessions/{sid}/participants/{bob}")
    assert [p["id"] for p in res.json()["participants"]] == [alice]
    assert res.json()["participants"][0]["is_payer"] is True

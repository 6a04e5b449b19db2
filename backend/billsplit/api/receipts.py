import base64
import binascii
import uuid

from fastapi import APIRouter, Depends

from billsplit.core.errors import ValidationError
from billsplit.core.sessions import SessionStore, get_store
from billsplit.schemas.receipt import ItemCreate, QuantityChange, ReceiptUpload
from billsplit.schemas.session import SessionResponse
from billsplit.services.receipt_service import process_receipt
from billsplit.services.session_service import add_item, change_quantity, remove_item
from billsplit.workers.ocr import fetch_image

router = APIRouter(tags=["receipts"])


@router.post("/api/sessions/{session_id}/receipt", response_model=SessionResponse)
async def upload_receipt(
    session_id: uuid.UUID,
    body: ReceiptUpload,
    store: SessionStore = Depends(get_store),
):
    """Read a receipt and replace the session's items with what was found on it."""
    session = store.load(session_id)
    if body.image_url is not None:
        image_bytes, mime_type = await fetch_image(body.image_url)
        mime_type = body.mime_type or mime_type
    else:
        try:
            image_bytes = base64.b64decode(body.image_base64, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValidationError("image_base64 is not valid base64", detail=str(e)) from e
        mime_type = body.mime_type or "image/jpeg"

    session, notices = await process_receipt(session, image_bytes, mime_type)
    store.save(session)
    return SessionResponse.from_session(session, notices)


@router.post("/api/sessions/{session_id}/items", response_model=SessionResponse, status_code=201)
async def create_item(
    session_id: uuid.UUID,
    body: ItemCreate,
    store: SessionStore = Depends(get_store),
):
    session, notices = add_item(store.load(session_id), body.model_dump(exclude_none=True))
    store.save(session)
    return SessionResponse.from_session(session, notices)


@router.patch("/api/sessions/{session_id}/items/{index}", response_model=SessionResponse)
async def update_item_quantity(
    session_id: uuid.UUID,
    index: int,
    body: QuantityChange,
    store: SessionStore = Depends(get_store),
):
    session, notices = change_quantity(store.load(session_id), index, body.delta)
    store.save(session)
    return SessionResponse.from_session(session, notices)


@router.delete("/api/sessions/{session_id}/items/{index}", response_model=SessionResponse)
async def delete_item(
    session_id: uuid.UUID,
    index: int,
    store: SessionStore = Depends(get_store),
):
    session, notices = remove_item(store.load(session_id), index)
    store.save(session)
    return SessionResponse.from_session(session, notices)

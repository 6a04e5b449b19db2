import logging
from decimal import Decimal

from billsplit.core.errors import MalformedResponseError
from billsplit.models.item import Item
from billsplit.models.session import BillSession
from billsplit.services.item_service import create_item, parse_money
from billsplit.services.session_service import SessionResult, load_items
from billsplit.workers.ocr import extract_receipt

logger = logging.getLogger(__name__)

REQUIRED_ITEM_KEYS = ("name", "quantity", "unitPrice", "totalPrice")


def parse_extraction(data: dict) -> tuple[tuple[Item, ...], Decimal]:
    """
    Validate the reader's JSON ({items: [...], total}) and build the items.
    Either every item is valid or nothing is returned.
    """
    if not isinstance(data, dict) or data.get("items") is None or data.get("total") is None:
        raise MalformedResponseError("Response is missing required keys: items or total")

    raw_items = data["items"]
    if not isinstance(raw_items, list):
        raise MalformedResponseError("items must be a list")

    for position, raw in enumerate(raw_items, start=1):
        if not isinstance(raw, dict):
            raise MalformedResponseError(f"Item {position} is not an object")
        missing = [key for key in REQUIRED_ITEM_KEYS if raw.get(key) is None]
        if missing:
            raise MalformedResponseError(f"Item {position} is missing {', '.join(missing)}")

    items = tuple(create_item(raw, index=i) for i, raw in enumerate(raw_items))
    total = parse_money(data["total"], "total")
    return items, total


async def process_receipt(
    session: BillSession, image_bytes: bytes, mime_type: str = "image/jpeg"
) -> SessionResult:
    """Read a receipt image and load its items into the session."""
    data = await extract_receipt(image_bytes, mime_type)
    items, total = parse_extraction(data)
    logger.info(f"Session {session.id}: extracted {len(items)} items, receipt total {total}")
    return load_items(session, items, receipt_total=total, image_mime_type=mime_type)

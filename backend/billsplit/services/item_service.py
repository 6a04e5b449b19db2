from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from billsplit.core.errors import ValidationError
from billsplit.models.item import Item


_FIELD_ALIASES = {
    "name": ("name", "description"),
    "quantity": ("quantity",),
    "unit_price": ("unitPrice", "unit_price"),
    "total_price": ("totalPrice", "total_price", "amount"),
}


def _field(raw: Mapping[str, Any], field: str) -> Any:
    for key in _FIELD_ALIASES[field]:
        if raw.get(key) is not None:
            return raw[key]
    return None


def parse_money(value: Any, field: str) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", detail=repr(value))
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number", detail=repr(value))
    if not number.is_finite():
        raise ValidationError(f"{field} must be a finite number", detail=repr(value))
    if number < 0:
        raise ValidationError(f"{field} must not be negative", detail=repr(value))
    return number


def _to_quantity(value: Decimal) -> int:
    if value != value.to_integral_value():
        raise ValidationError("quantity must be a whole number", detail=str(value))
    quantity = int(value)
    if quantity < 1:
        raise ValidationError("quantity must be at least 1", detail=str(value))
    return quantity


def create_item(raw: Mapping[str, Any], index: int) -> Item:
    """
    Build an Item from an extracted or manually entered line.

    Accepts the OCR keys (name, quantity, unitPrice, totalPrice) or their
    snake_case forms. Unit price falls back to totalPrice / quantity and
    quantity to totalPrice / unitPrice when that is a whole number.
    Anything missing and not derivable raises ValidationError.
    """
    name = _field(raw, "name")
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Item name is required")

    quantity_raw = _field(raw, "quantity")
    unit_raw = _field(raw, "unit_price")
    total_raw = _field(raw, "total_price")

    unit_price = parse_money(unit_raw, "unitPrice") if unit_raw is not None else None
    total_price = parse_money(total_raw, "totalPrice") if total_raw is not None else None

    if quantity_raw is not None:
        quantity = _to_quantity(parse_money(quantity_raw, "quantity"))
    elif unit_price is not None and total_price is not None and unit_price > 0:
        quantity = _to_quantity(total_price / unit_price)
    else:
        raise ValidationError(f"Quantity missing for {name.strip()!r}")

    if unit_price is None:
        if total_price is None:
            raise ValidationError(f"Price missing for {name.strip()!r}")
        unit_price = total_price / quantity

    return Item(index=index, name=name.strip(), quantity=quantity, unit_price=unit_price)


def mutate_quantity(item: Item, delta: int) -> Item:
    return item.model_copy(update={"quantity": max(1, item.quantity + delta)})

from typing import Optional

from app.models.place import PointOfInterest
from app.services.classification import categorize_place

DEFAULT_CURRENCY_SYMBOL = "¥"

PRICE_LABELS = {
    "food": "Avg: ",
    "accommodation": "Stay: ",
    "activities": "Entry: ",
    "shopping": "Cost: ",
}


def format_amount(value: float) -> str:
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,}"


def format_price(poi: PointOfInterest) -> Optional[str]:
    """
    Short price label for lists, e.g. "Entry: ¥1,000" or "Stay: ¥20,000-¥40,000".

    Tries the entrance fee (attractions only), the value, the range, the
    price level as repeated currency symbols, then the free-text description.
    """
    price = poi.price
    if not price:
        return None

    category = categorize_place(poi.types)
    label = PRICE_LABELS.get(category, "")
    currency = price.currency or DEFAULT_CURRENCY_SYMBOL

    if price.entrance_fee is not None and category == "activities":
        return f"{label}{currency}{format_amount(price.entrance_fee)}"
    if price.value is not None:
        return f"{label}{currency}{format_amount(price.value)}"
    if price.range and price.range.min and price.range.max:
        return f"{label}{currency}{format_amount(price.range.min)}-{currency}{format_amount(price.range.max)}"
    if price.level is not None:
        symbol = "¥" if currency == "¥" else "$"
        return f"{label}{symbol * (price.level + 1)}"
    if price.description:
        return price.description
    return None

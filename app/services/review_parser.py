"""
Mines price and visit information out of Google review text.

Places details rarely carry more than a ``price_level``; the numbers users
mention in reviews ("entrance fee is 600 yen") are the best signal there is.
"""
import re
from typing import Any, Dict, Iterable, List, Optional

from app.models.place import AdditionalInfo, PriceInfo, PriceRange
from app.services.classification import categorize_place

DEFAULT_CURRENCY_SYMBOL = "¥"

PRICE_KEYWORDS = ["price", "cost", "fee", "ticket", "admission", "entrance", "expensive", "cheap", "円", "¥", "yen"]
TICKET_KEYWORDS = ["ticket", "admission", "entrance fee", "entry fee"]
ACCESSIBILITY_KEYWORDS = ["accessibility", "wheelchair", "accessible", "disability"]

PRICE_LEVEL_LABELS = {
    0: "Free",
    1: "Inexpensive",
    2: "Moderate",
    3: "Expensive",
    4: "Very Expensive",
}

_SENTENCE_SPLIT = re.compile(r"[.!?。]+")
_PRICE_VALUE_RE = re.compile(r"(\d{3,})\s*(yen|円|¥)", re.IGNORECASE)
_ENTRANCE_FEE_RE = re.compile(r"(entrance|admission|entry)\s+fee\s*(?:is|was|:)?\s*(\d{3,})\s*(?:yen|円|¥)", re.IGNORECASE)
_ROOM_PRICE_RE = re.compile(r"(?:room|night|per night|nightly).*?(\d{3,})\s*(?:yen|円|¥)", re.IGNORECASE)
_MEAL_PRICE_RE = re.compile(r"(?:meal|dish|course|menu|set|lunch|dinner).*?(\d{3,})\s*(?:yen|円|¥)", re.IGNORECASE)
_BEST_TIME_RE = re.compile(r"best time to visit|recommend visiting|best season|popular time", re.IGNORECASE)
_DURATION_RE = re.compile(
    r"(?:spent|took|requires|need|needs|recommended)\s+(?:about|around)?\s*(\d+)[- ]*(hour|hr|minute|min|day)",
    re.IGNORECASE,
)


def _texts(reviews: Optional[Iterable[Dict[str, Any]]]) -> List[str]:
    return [review["text"] for review in reviews or [] if review.get("text")]


def _sentences(text: str) -> List[str]:
    return [sentence.strip() for sentence in _SENTENCE_SPLIT.split(text)]


def _first_sentence_with(reviews, keywords) -> Optional[str]:
    for text in _texts(reviews):
        for sentence in _sentences(text):
            lowered = sentence.lower()
            if any(keyword in lowered for keyword in keywords):
                return sentence
    return None


def extract_price_description(reviews) -> Optional[str]:
    return _first_sentence_with(reviews, PRICE_KEYWORDS)


def extract_ticket_info(reviews) -> Optional[str]:
    return _first_sentence_with(reviews, TICKET_KEYWORDS)


def extract_price_values(reviews) -> List[int]:
    """Every yen amount mentioned in any review, within 1..99999."""
    prices = []
    for text in _texts(reviews):
        for match in _PRICE_VALUE_RE.finditer(text):
            price = int(match.group(1))
            if 0 < price < 100000:
                prices.append(price)
    return prices


def extract_entrance_fee(reviews) -> Optional[int]:
    for text in _texts(reviews):
        match = _ENTRANCE_FEE_RE.search(text)
        if match:
            fee = int(match.group(2))
            if 0 < fee < 10000:
                return fee
    return None


def _first_match_per_review(reviews, pattern, low: int, high: int) -> List[int]:
    prices = []
    for text in _texts(reviews):
        match = pattern.search(text)
        if match:
            price = int(match.group(1))
            if low < price < high:
                prices.append(price)
    return prices


def extract_room_prices(reviews) -> List[int]:
    return _first_match_per_review(reviews, _ROOM_PRICE_RE, 1000, 100000)


def extract_meal_prices(reviews) -> List[int]:
    return _first_match_per_review(reviews, _MEAL_PRICE_RE, 100, 50000)


def format_price_level(level: Optional[int]) -> Optional[str]:
    if level is None:
        return None
    return PRICE_LEVEL_LABELS.get(level)


def _apply_samples(price: PriceInfo, samples: List[int]) -> PriceInfo:
    if not samples:
        return price
    update = {"value": round(sum(samples) / len(samples))}
    if len(samples) > 1:
        update["range"] = PriceRange(min=min(samples), max=max(samples))
    return price.model_copy(update=update)


def build_price_info(price_level: Optional[int], types: List[str], reviews) -> PriceInfo:
    """
    Price record of a details response.

    Starts from the Google price level; review text then refines the value,
    with the extractor for the place's budget category overriding the
    generic yen amounts.
    """
    price = PriceInfo(
        level=price_level,
        currency=DEFAULT_CURRENCY_SYMBOL,
        formatted_price=format_price_level(price_level),
        source="Google Places",
    )
    if not _texts(reviews):
        return price

    category = categorize_place(types)
    price = price.model_copy(update={"description": extract_price_description(reviews)})
    price = _apply_samples(price, extract_price_values(reviews))

    if category == "activities":
        price = price.model_copy(update={
            "ticket_info": extract_ticket_info(reviews),
            "entrance_fee": extract_entrance_fee(reviews) or price.entrance_fee,
        })
    elif category == "accommodation":
        price = _apply_samples(price, extract_room_prices(reviews))
    elif category == "food":
        price = _apply_samples(price, extract_meal_prices(reviews))
    return price


def extract_additional_info(reviews, editorial_summary: Optional[Dict[str, Any]] = None) -> Optional[AdditionalInfo]:
    info: Dict[str, str] = {}

    overview = (editorial_summary or {}).get("overview")
    if overview and _BEST_TIME_RE.search(overview):
        for sentence in _sentences(overview):
            if _BEST_TIME_RE.search(sentence):
                info["best_time_to_visit"] = sentence
                break

    for text in _texts(reviews):
        for sentence in _sentences(text):
            if any(keyword in sentence.lower() for keyword in ACCESSIBILITY_KEYWORDS):
                info["accessibility"] = sentence
                break

        if "estimated_duration" not in info:
            match = _DURATION_RE.search(text)
            if match:
                amount, unit = match.group(1), match.group(2)
                info["estimated_duration"] = f"{amount} {unit}{'s' if amount != '1' else ''}"

    return AdditionalInfo(**info) if info else None

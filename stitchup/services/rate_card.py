from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

SERVICE_TEMPLATES: dict[str, list[str]] = {
    "Shirt": ["Full Stitching", "Collar Adjustment", "Sleeve Shortening", "Slimming / Fitting", "Button Replacement"],
    "Pant / Trousers": ["Full Stitching", "Hemming", "Waist Expansion / Reduction", "Zip Replacement", "Tapering"],
    "Blouse": ["Simple Stitching", "Designer Stitching", "Adding Padding", "Hook & Eye Fix", "Neckline Alteration"],
    "Kurta": ["Full Stitching", "Side Slit Repair", "Length Shortening", "Neck Design"],
    "Suit / Blazer": ["Full Stitching", "Lining Replacement", "Shoulder Adjustment", "Sleeve Length Fix"],
    "Saree": ["Fall & Pico", "Blouse Piece Cutting", "Custom Draping Stitches"],
}
OTHER_CATEGORY = "Other"
KEY_SEPARATOR = " - "

DEFAULT_SKILLS = {"Stitching": True, "Alteration": True, "Urgent": False}
DEFAULT_HOURS = {"open": "10:00", "close": "19:00"}


def rate_card_key(category: str, task: str) -> str:
    return f"{category}{KEY_SEPARATOR}{task}"


def split_service_name(name: str) -> tuple[str, str]:
    """Split ``"Shirt - Hemming"`` into ``("Shirt", "Hemming")``; a bare name has no category."""
    parts = name.split(KEY_SEPARATOR)
    if len(parts) > 1:
        return parts[0], parts[1]
    return "", name


def _to_number(value: Any) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def set_price(pricing: Mapping[str, Any], item: str, value: Any) -> dict[str, Any]:
    """Return a copy of ``pricing`` with ``item`` priced at ``value``; blank removes it."""
    updated = dict(pricing or {})
    number = _to_number(value)
    if number is None:
        updated.pop(item, None)
        return updated
    updated[item] = int(number) if number == number.to_integral_value() else float(number)
    return updated


def clean_pricing(pricing: Mapping[str, Any] | None) -> dict[str, Any]:
    cleaned: dict[str, Any] = {}
    for item, value in (pricing or {}).items():
        name = str(item or "").strip()
        if name:
            cleaned = set_price(cleaned, name, value)
    return cleaned


def min_price(pricing: Mapping[str, Any] | None) -> Decimal:
    prices = [number for number in (_to_number(v) for v in (pricing or {}).values()) if number is not None and number > 0]
    return min(prices) if prices else Decimal("0")


def rate_card_rows(pricing: Mapping[str, Any] | None) -> list[dict[str, Any]]:
    rows = []
    for name, price in (pricing or {}).items():
        category, task = split_service_name(name)
        rows.append({"name": name, "category": category, "task": task, "price": price})
    return rows

"""Price and address formatting for brochure pages."""
from __future__ import annotations

LOCATION_PLACEHOLDER = "Location not specified"


def format_price(amount: float, currency: str) -> str:
    whole = int(round(amount or 0))
    return f"{currency} {whole:,}"


def format_location(address: str, city: str, state: str, zip_code: str,
                    placeholder: str = LOCATION_PLACEHOLDER) -> str:
    parts = [str(p).strip() for p in (address, city, state, zip_code) if p and str(p).strip()]
    if not parts:
        return placeholder
    return ", ".join(parts)

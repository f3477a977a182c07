"""
Service-name business rules as named predicates.

Providers report free-text appointment type names ("Men's Haircut", "Scissor Cut",
"Kids Haircut"). These helpers decide which names count as the primary service
and which count as a standard adult cut for capacity math.
"""
from chairtime.core.constants import DEFAULT_PRIMARY_SERVICE


def normalize_service_name(value: str | None) -> str:
    """Collapse provider names onto the shop's service list. Blank names are the primary service."""
    name = (value or "").strip().lower()
    if not name:
        return DEFAULT_PRIMARY_SERVICE
    if "haircut" in name:
        return DEFAULT_PRIMARY_SERVICE
    if "kids" in name:
        return "Kids Haircut"
    if "lineup" in name:
        return "Lineup"
    if "beard" in name:
        return "Beard"
    if "shave" in name:
        return "Head Shave"
    return (value or "").strip() or DEFAULT_PRIMARY_SERVICE


def is_default_service_name(value: str | None) -> bool:
    return normalize_service_name(value).lower() == DEFAULT_PRIMARY_SERVICE.lower()


def is_haircut_like(value: str | None) -> bool:
    """Adult cut: mentions haircut or scissor, and nothing for kids."""
    name = (value or "").lower()
    if "kid" in name:
        return False
    return "haircut" in name or "scissor" in name

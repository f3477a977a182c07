"""Collapse slot reports that share an identity key to one, preferring the primary service, then the lower price."""
from chairtime.core.times import finite_number
from chairtime.services.availability.service_names import is_default_service_name
from chairtime.services.providers.types import Slot, SlotKey


def pick_preferred_slot(current: Slot, candidate: Slot) -> Slot:
    current_default = is_default_service_name(current.appointment_type_name)
    candidate_default = is_default_service_name(candidate.appointment_type_name)
    if current_default and not candidate_default:
        return current
    if candidate_default and not current_default:
        return candidate

    # Missing price loses to any price; two missing keep the first seen
    current_price = finite_number(current.price)
    candidate_price = finite_number(candidate.price)
    if candidate_price is None:
        return current
    if current_price is None:
        return candidate
    return candidate if candidate_price < current_price else current


def dedupe_slots(slots: list[Slot]) -> list[Slot]:
    """One slot per Slot.key(); keeps first-seen order of keys."""
    best: dict[SlotKey, Slot] = {}
    for slot in slots:
        key = slot.key()
        current = best.get(key)
        best[key] = slot if current is None else pick_preferred_slot(current, slot)
    return list(best.values())

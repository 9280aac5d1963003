"""
Dynamic court pricing.

A slot costs the court's base hourly price unless an active rule matches the
booking day and overlaps the slot's hours. Date-specific rules win over
weekday rules; within a kind, the first matching rule applies.
"""

from dataclasses import dataclass
from typing import List, Sequence

from services.timeslots import Slot, to_minutes

DAY_NAMES = ("MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY", "SUNDAY")


@dataclass
class SlotsPrice:
    price_per_slot: List[int]
    total_price: int


def _matches_day(rule, day) -> bool:
    if rule.date is not None:
        return rule.date == day
    if rule.day_of_week:
        return rule.day_of_week.strip().upper() == DAY_NAMES[day.weekday()]
    return False


def _matches_hours(rule, slot: Slot) -> bool:
    start = to_minutes(rule.start_hour)
    end = to_minutes(rule.end_hour, closing=True)
    return slot.start < end and slot.end > start


def calculate_slot_price(slot: Slot, day, base_price: int, rules: Sequence) -> int:
    active = [r for r in rules if r.is_active and not getattr(r, "archived_at", None)]
    dated = [r for r in active if r.date is not None]
    weekly = [r for r in active if r.date is None]
    for rule in dated + weekly:
        if _matches_day(rule, day) and _matches_hours(rule, slot):
            return rule.price
    return base_price


def calculate_slots_price(slots: Sequence[Slot], day, base_price: int, rules: Sequence = ()) -> SlotsPrice:
    prices = [calculate_slot_price(s, day, base_price, rules) for s in slots]
    return SlotsPrice(price_per_slot=prices, total_price=sum(prices))

"""Bag capacity and stacking rules (pure functions)."""

from typing import List

from src.core.item.models import Item

BAG_CAPACITY = 50  # slots


def free_slots(bag: List[Item], capacity: int = BAG_CAPACITY) -> int:
    return max(0, capacity - len(bag))


def can_add_item(bag: List[Item], item: Item, capacity: int = BAG_CAPACITY) -> bool:
    """Whether the whole quantity of ``item`` fits (merging into existing stacks first)."""
    remaining = item.quantity
    if item.stackable:
        for slot in bag:
            if slot.id == item.id:
                remaining -= slot.max_stack - slot.quantity
                if remaining <= 0:
                    return True
    needed = -(-remaining // item.max_stack)  # ceil
    return needed <= free_slots(bag, capacity)


def add_item(bag: List[Item], item: Item, capacity: int = BAG_CAPACITY) -> bool:
    """Merge stackable items on identical id up to max_stack, overflow to new slots.

    All-or-nothing: returns False and leaves the bag untouched when it cannot fit.
    """
    if not can_add_item(bag, item, capacity):
        return False

    remaining = item.quantity
    if item.stackable:
        for slot in bag:
            if slot.id == item.id and slot.quantity < slot.max_stack:
                moved = min(slot.max_stack - slot.quantity, remaining)
                slot.quantity += moved
                remaining -= moved
                if remaining == 0:
                    return True

    while remaining > 0:
        chunk = min(item.max_stack, remaining)
        bag.append(item.copy(quantity=chunk))
        remaining -= chunk
    return True


def remove_item(bag: List[Item], item_id: str, quantity: int = 1) -> bool:
    """Take ``quantity`` units of ``item_id`` out of the bag (last stacks first)."""
    total = sum(slot.quantity for slot in bag if slot.id == item_id)
    if total < quantity:
        return False

    remaining = quantity
    for index in range(len(bag) - 1, -1, -1):
        slot = bag[index]
        if slot.id != item_id:
            continue
        taken = min(slot.quantity, remaining)
        slot.quantity -= taken
        remaining -= taken
        if slot.quantity == 0:
            bag.pop(index)
        if remaining == 0:
            break
    return True


def find_item(bag: List[Item], item_id: str):
    for slot in bag:
        if slot.id == item_id:
            return slot
    return None

"""Chronicle: the tribe's running journal, fed from the EventBus.

Subscribes to the game loop's notifications and keeps the most recent
MAX_ENTRIES lines. It never reads or mutates session state itself.
"""

from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, List

from src.core.event_bus import BusEvent, EventBus
from src.core.event_types import EventTypes
from src.core.logging import get_logger

logger = get_logger(__name__)

MAX_ENTRIES = 200


@dataclass
class ChronicleEntry:
    day: int
    kind: str
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"day": self.day, "kind": self.kind, "text": self.text}


class Chronicle:
    """Usage:
        chronicle = Chronicle()
        chronicle.attach(game.bus)
        ...
        chronicle.entries()  # oldest first
    """

    def __init__(self, max_entries: int = MAX_ENTRIES) -> None:
        self._entries: Deque[ChronicleEntry] = deque(maxlen=max(1, max_entries))

    def attach(self, bus: EventBus) -> None:
        bus.subscribe(EventTypes.ACTION_RESOLVED, self.on_action_resolved)
        bus.subscribe(EventTypes.COMBAT_RESOLVED, self.on_combat_resolved)
        bus.subscribe(EventTypes.PLAYER_LEVELED_UP, self.on_player_leveled_up)
        bus.subscribe(EventTypes.MILESTONE_REACHED, self.on_milestone_reached)
        bus.subscribe(EventTypes.WORLD_EVENT, self.on_world_event)
        bus.subscribe(EventTypes.NPC_GROWTH_PROCESSED, self.on_npc_growth_processed)
        bus.subscribe(EventTypes.DAY_ENDED, self.on_day_ended)

    def _record(self, day: int, kind: str, text: str) -> None:
        self._entries.append(ChronicleEntry(day=day, kind=kind, text=text))
        logger.debug(f"Chronicle day {day}: {text}")

    # ── handlers ─────────────────────────────────────────────

    def on_action_resolved(self, event: BusEvent) -> None:
        data = event.data
        if data["partial"]:
            result = "partly succeeded"
        elif data["success"]:
            result = "succeeded"
        else:
            result = "failed"
        self._record(data["day"], "action", f"{data['action'].capitalize()} {result}.")

    def on_combat_resolved(self, event: BusEvent) -> None:
        data = event.data
        if data["decision"] == "flee":
            text = f"Fled from a {data['animal']}."
        elif data["victory"]:
            text = f"Defeated a {data['animal']}."
        else:
            text = f"Was driven off by a {data['animal']}."
        self._record(data["day"], "combat", text)

    def on_player_leveled_up(self, event: BusEvent) -> None:
        self._record(event.data["day"], "level_up", f"Reached level {event.data['level']}.")

    def on_milestone_reached(self, event: BusEvent) -> None:
        self._record(event.data["day"], "milestone", f"Tribe milestone: {event.data['event_id']}.")

    def on_world_event(self, event: BusEvent) -> None:
        self._record(event.data["day"], "world", event.data["text"])

    def on_npc_growth_processed(self, event: BusEvent) -> None:
        for message in event.data["messages"]:
            self._record(event.data["day"], "npc_growth", message)

    def on_day_ended(self, event: BusEvent) -> None:
        self._record(event.data["day"], "day_end", f"Day {event.data['day']} came to an end.")

    # ── queries ──────────────────────────────────────────────

    def entries(self, limit: int = 0) -> List[ChronicleEntry]:
        """Oldest first; limit > 0 keeps only the most recent ones."""
        entries = list(self._entries)
        return entries[-limit:] if limit > 0 else entries

    def __len__(self) -> int:
        return len(self._entries)

"""EventCatalog: scripted daily / action / NPC / milestone events.

Trigger conditions are typed predicates built when the catalog is loaded.
Legacy condition strings ("tribe.food >= 200") are parsed exactly once,
at load time; a string that does not parse drops the row with a warning.
"""

import json
import operator
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple, Union

from src.core.logging import get_logger
from src.core.rng import RandomSource
from src.core.tribe import ATTRIBUTE_KEYS, RESOURCE_KEYS, TribeState

logger = get_logger(__name__)

DAILY_EVENT_CHANCE = 0.10
ACTION_EVENT_CHANCE = 0.15
NPC_EVENT_CHANCE = 0.20
NPC_EVENT_MIN_RELATIONSHIP = 70


class EventType(str, Enum):
    DAILY = "daily"
    ACTION = "action"
    NPC = "npc"
    TRIBE_MILESTONE = "tribe_milestone"


class Comparison(str, Enum):
    GT = ">"
    GE = ">="
    LT = "<"
    LE = "<="
    EQ = "=="


_COMPARATORS = {
    Comparison.GT: operator.gt,
    Comparison.GE: operator.ge,
    Comparison.LT: operator.lt,
    Comparison.LE: operator.le,
    Comparison.EQ: operator.eq,
}

_CONDITION_RE = re.compile(r"^\s*tribe\.(\w+)\s*(>=|<=|==|>|<)\s*(-?\d+)\s*$")
_TRIGGER_TOKEN_RE = re.compile(r"[A-Za-z0-9_]+")


@dataclass(frozen=True)
class Condition:
    """tribe.<selector> <comparison> <threshold>"""

    selector: str
    comparison: Comparison
    threshold: int

    def __post_init__(self) -> None:
        if self.selector not in ATTRIBUTE_KEYS and self.selector not in RESOURCE_KEYS:
            raise ValueError(f"Unknown tribe field: {self.selector}")

    def evaluate(self, tribe: TribeState) -> bool:
        return _COMPARATORS[self.comparison](tribe.get_field(self.selector), self.threshold)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "selector": self.selector,
            "comparison": self.comparison.value,
            "threshold": self.threshold,
        }


def parse_condition(text: str) -> Condition:
    """Legacy "tribe.<field> <op> <int>" → Condition. Raises ValueError."""
    match = _CONDITION_RE.match(text or "")
    if not match:
        raise ValueError(f"Unparseable condition: {text!r}")
    selector, op, value = match.groups()
    return Condition(selector, Comparison(op), int(value))


@dataclass
class GameEvent:
    id: str
    type: EventType
    text: str
    effects: Dict[str, int] = field(default_factory=dict)
    condition: Optional[Condition] = None  # milestones
    triggers: Tuple[str, ...] = ()  # action types or NPC ids

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "text": self.text,
            "effects": dict(self.effects),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameEvent":
        """Build from a catalog row. Raises KeyError/ValueError on malformed rows."""
        event_type = EventType(data["type"])
        raw_condition = data.get("condition")
        condition = None
        triggers: Tuple[str, ...] = tuple(data.get("triggers", ()))

        if event_type == EventType.TRIBE_MILESTONE:
            if isinstance(raw_condition, dict):
                condition = Condition(
                    raw_condition["selector"],
                    Comparison(raw_condition["comparison"]),
                    int(raw_condition["threshold"]),
                )
            elif raw_condition:
                condition = parse_condition(raw_condition)
        elif raw_condition and not triggers:
            triggers = tuple(_TRIGGER_TOKEN_RE.findall(raw_condition))

        return cls(
            id=data["id"],
            type=event_type,
            text=data["text"],
            effects={k: int(v) for k, v in data.get("effects", {}).items()},
            condition=condition,
            triggers=triggers,
        )


def load_events_from_json(path: Union[str, Path]) -> List[GameEvent]:
    with open(path, encoding="utf-8") as f:
        rows = json.load(f)

    events: List[GameEvent] = []
    for row in rows:
        try:
            events.append(GameEvent.from_dict(row))
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"Skipping malformed event row {row!r}: {e}")
    logger.info(f"Loaded {len(events)} events from {path}")
    return events


class EventCatalog:
    def __init__(self, events: Iterable[GameEvent], rng: RandomSource) -> None:
        self._events: Dict[str, GameEvent] = {}
        for event in events:
            self._events[event.id] = event
        self._rng = rng
        self._triggered: Set[str] = set()

    def _of_type(self, event_type: EventType) -> List[GameEvent]:
        return [e for e in self._events.values() if e.type == event_type]

    def get(self, event_id: str) -> Optional[GameEvent]:
        return self._events.get(event_id)

    # ── trigger checks ───────────────────────────────────────

    def check_daily_event(self) -> Optional[GameEvent]:
        """10% roll, then one daily event not yet seen today."""
        if self._rng.random() >= DAILY_EVENT_CHANCE:
            return None
        candidates = [
            e for e in self._of_type(EventType.DAILY) if e.id not in self._triggered
        ]
        if not candidates:
            return None
        event = self._rng.choice(candidates)
        self._triggered.add(event.id)
        return event

    def check_action_event(self, action_type: str) -> Optional[GameEvent]:
        candidates = [
            e for e in self._of_type(EventType.ACTION) if action_type in e.triggers
        ]
        if not candidates or self._rng.random() >= ACTION_EVENT_CHANCE:
            return None
        return self._rng.choice(candidates)

    def check_npc_event(self, npc_id: str, relationship: int) -> Optional[GameEvent]:
        if relationship < NPC_EVENT_MIN_RELATIONSHIP or self._rng.random() >= NPC_EVENT_CHANCE:
            return None
        candidates = [e for e in self._of_type(EventType.NPC) if npc_id in e.triggers]
        if not candidates:
            return None
        return self._rng.choice(candidates)

    def check_tribe_milestone(self, tribe: TribeState) -> Optional[GameEvent]:
        """First untriggered milestone whose predicate holds. Fires once per session."""
        for event in self._of_type(EventType.TRIBE_MILESTONE):
            if event.id in self._triggered:
                continue
            if event.condition is None or event.condition.evaluate(tribe):
                self._triggered.add(event.id)
                return event
        return None

    # ── effects / bookkeeping ────────────────────────────────

    @staticmethod
    def apply_effects(event: GameEvent, tribe: TribeState) -> None:
        resources = {k: v for k, v in event.effects.items() if k in RESOURCE_KEYS}
        attributes = {k: v for k, v in event.effects.items() if k in ATTRIBUTE_KEYS}
        tribe.update_resources(resources)
        tribe.update_attributes(attributes)

    def reset_daily_events(self) -> None:
        for event in self._of_type(EventType.DAILY):
            self._triggered.discard(event.id)

    @property
    def triggered_milestones(self) -> List[str]:
        milestone_ids = {e.id for e in self._of_type(EventType.TRIBE_MILESTONE)}
        return sorted(self._triggered & milestone_ids)

    def restore_milestones(self, event_ids: Iterable[str]) -> None:
        self._triggered.update(event_ids)

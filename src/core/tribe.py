"""TribeState: shared resource pool and tribe attributes."""

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

ATTRIBUTE_KEYS = ("prosperity", "defense", "knowledge", "spirit", "morale")
RESOURCE_KEYS = ("food", "materials", "wealth", "spirit_energy")


def _default_attributes() -> Dict[str, int]:
    return {"prosperity": 30, "defense": 20, "knowledge": 10, "spirit": 5, "morale": 60}


def _default_resources() -> Dict[str, int]:
    return {"food": 120, "materials": 70, "wealth": 50, "spirit_energy": 20}


@dataclass
class TribeState:
    """Attributes are clamped to [0, 100]; resources never go negative."""

    name: str = "Stonefang"
    attributes: Dict[str, int] = field(default_factory=_default_attributes)
    resources: Dict[str, int] = field(default_factory=_default_resources)

    def update_resources(self, updates: Dict[str, int]) -> None:
        for key, delta in updates.items():
            if key in self.resources:
                self.resources[key] = max(0, self.resources[key] + delta)

    def update_attributes(self, updates: Dict[str, int]) -> None:
        for key, delta in updates.items():
            if key in self.attributes:
                self.attributes[key] = max(0, min(100, self.attributes[key] + delta))

    def recalculate_prosperity(self) -> int:
        """prosperity = min(100, floor((food + wealth) / 100))"""
        total = self.resources["food"] + self.resources["wealth"]
        self.attributes["prosperity"] = min(100, total // 100)
        return self.attributes["prosperity"]

    def stamina_modifiers(self, regen_bonus: int) -> Tuple[int, int]:
        """Morale → (max-stamina bonus, today's stamina penalty)."""
        morale = self.attributes["morale"]
        if morale >= 80:
            return regen_bonus, 0
        if morale >= 60:
            return 0, 0
        if morale >= 40:
            return 0, -1
        return 0, -2

    def get_field(self, name: str) -> int:
        """Look up an attribute or resource by bare name (event predicates)."""
        if name in self.attributes:
            return self.attributes[name]
        if name in self.resources:
            return self.resources[name]
        raise KeyError(name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "attributes": dict(self.attributes),
            "resources": dict(self.resources),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TribeState":
        tribe = cls(name=data.get("name", "Stonefang"))
        tribe.attributes.update(data.get("attributes", {}))
        tribe.resources.update(data.get("resources", {}))
        return tribe

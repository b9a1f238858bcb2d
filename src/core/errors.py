"""Engine error taxonomy.

ValidationError / StateError never leave the orchestrator: they are converted
into a failed Outcome with a narrated message. PersistenceError propagates to
the caller. ConfigRangeError is only raised by strict knob validation; the
engine itself clamps.
"""


class TribeSimError(Exception):
    """Base class for all engine errors."""

    kind = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(TribeSimError):
    """Unknown action type, missing/invalid NPC id, malformed request values."""

    kind = "validation"


class StateError(TribeSimError):
    """Request not allowed in the current session state (resting, decision pending)."""

    kind = "state"


class PersistenceError(TribeSimError):
    """Gateway read/write failure or structurally invalid save payload."""

    kind = "persistence"


class ConfigRangeError(TribeSimError):
    """A config knob value that cannot be interpreted as a number."""

    kind = "config_range"


class SaveNotFoundError(PersistenceError):
    """No save exists under the requested handle."""

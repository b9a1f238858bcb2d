"""Event type constants for the EventBus."""


class EventTypes:
    # action phase
    ACTION_RESOLVED = "action_resolved"
    COMBAT_RESOLVED = "combat_resolved"
    PLAYER_LEVELED_UP = "player_leveled_up"

    # day cycle
    MILESTONE_REACHED = "milestone_reached"
    WORLD_EVENT = "world_event"
    NPC_GROWTH_PROCESSED = "npc_growth_processed"
    DAY_ENDED = "day_ended"

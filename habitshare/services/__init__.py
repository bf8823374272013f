from habitshare.services import (
    adherence_service,
    agenda_service,
    recurrence_service,
    sharing_service,
    streak_service,
)


__all__ = [
    "adherence_service",
    "agenda_service",
    "recurrence_service",
    "sharing_service",
    "streak_service",
]

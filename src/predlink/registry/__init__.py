"""Sports-data registry contracts."""

from predlink.registry.interfaces import (
    ACTIVE_STATES,
    LIVE_STATES,
    IMatchRegistry,
    ITeamRegistry,
    MatchRecord,
    MatchState,
    TeamRecord,
)

__all__ = [
    "ACTIVE_STATES",
    "LIVE_STATES",
    "IMatchRegistry",
    "ITeamRegistry",
    "MatchRecord",
    "MatchState",
    "TeamRecord",
]

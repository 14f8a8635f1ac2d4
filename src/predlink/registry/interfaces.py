"""Sports-data registry interfaces and data types.

The team and match registries are owned by the sports-data sync outside
this package; resolution code only reads them through these contracts.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum


class MatchState(IntEnum):
    """Fixture lifecycle state ids as published by the sports-data feed."""

    ABNORMAL = 0
    NOT_STARTED = 1
    FIRST_HALF = 2
    HALF_TIME = 3
    SECOND_HALF = 4
    OVERTIME = 5
    PENALTY_SHOOTOUT = 7
    FINISHED = 8
    DELAYED = 9
    INTERRUPTED = 10
    CUT_IN_HALF = 11
    CANCELLED = 12
    TO_BE_DETERMINED = 13

    @classmethod
    def from_id(cls, state_id: int | None) -> "MatchState":
        """Get state from a raw id, mapping unknown ids to ABNORMAL."""
        if state_id is None:
            return cls.ABNORMAL
        try:
            return cls(int(state_id))
        except ValueError:
            return cls.ABNORMAL

    @property
    def is_live(self) -> bool:
        """Play is in progress (including the half-time break)."""
        return self in LIVE_STATES

    @property
    def is_actively_playing(self) -> bool:
        """Ball in play: live, excluding the half-time break."""
        return self in ACTIVE_STATES

    @property
    def is_finished(self) -> bool:
        return self is MatchState.FINISHED


LIVE_STATES = frozenset({
    MatchState.FIRST_HALF,
    MatchState.HALF_TIME,
    MatchState.SECOND_HALF,
    MatchState.OVERTIME,
    MatchState.PENALTY_SHOOTOUT,
})

ACTIVE_STATES = LIVE_STATES - {MatchState.HALF_TIME}


@dataclass(frozen=True)
class TeamRecord:
    """Canonical team identity from the registry."""

    external_id: str
    name: str
    short_name: str | None = None


@dataclass
class MatchRecord:
    """Fixture row joined with both team names."""

    external_id: str
    uuid: str
    home_team_id: str
    away_team_id: str
    state: MatchState
    match_time: datetime | None = None
    home_name: str = ""
    away_name: str = ""
    home_short_name: str | None = None
    away_short_name: str | None = None
    home_score: int | None = None
    away_score: int | None = None
    ht_home_score: int | None = None
    ht_away_score: int | None = None

    def opponent_of(self, team_id: str) -> tuple[str, str, str | None]:
        """Return (id, name, short name) of the side that is not `team_id`."""
        if self.home_team_id == team_id:
            return self.away_team_id, self.away_name, self.away_short_name
        return self.home_team_id, self.home_name, self.home_short_name


class ITeamRegistry(ABC):
    """Read access to the canonical team registry."""

    @abstractmethod
    def find_team_exact(self, name: str) -> TeamRecord | None:
        """Case-insensitive equality against canonical or short name."""
        ...

    @abstractmethod
    def find_team_by_alias(self, alias: str) -> TeamRecord | None:
        """Exact case-insensitive lookup in the alias table."""
        ...

    @abstractmethod
    def search_teams_by_tokens(
        self, tokens: list[str], full_name: str, limit: int
    ) -> list[TeamRecord]:
        """Teams whose folded name contains every token.

        Args:
            tokens: Normalized tokens that must all appear in the name.
            full_name: Normalized query; names containing it sort first.
            limit: Maximum number of rows.
        """
        ...

    @abstractmethod
    def search_teams_by_substrings(
        self, substrings: list[str], preferred: list[str], limit: int
    ) -> list[TeamRecord]:
        """Teams whose name or short name contains any of `substrings`.

        Rows containing earlier entries of `preferred` sort first, then
        shorter names.
        """
        ...

    @abstractmethod
    def scan_teams(self, limit: int) -> list[TeamRecord]:
        """Bounded unfiltered read of the registry."""
        ...


class IMatchRegistry(ABC):
    """Read access to fixtures."""

    @abstractmethod
    def find_live_matches_for_team(self, team_id: str, limit: int) -> list[MatchRecord]:
        """Live fixtures where the team is home or away.

        Ordered actively-playing first, then most recent kickoff.
        """
        ...

    @abstractmethod
    def get_match(self, external_id: str) -> MatchRecord | None:
        """Fixture by external id, including score components."""
        ...

"""Pytest configuration and fixtures."""

import tempfile
from datetime import timedelta
from pathlib import Path
from unittest.mock import Mock

import pytest
import yaml

from predlink.common.config import AppConfig, MatchingConfig, load_config
from predlink.common.time_utils import utc_now
from predlink.registry.interfaces import (
    IMatchRegistry,
    ITeamRegistry,
    MatchRecord,
    MatchState,
    TeamRecord,
)
from predlink.storage.database import Database

TEAMS = [
    TeamRecord("t_rm", "Real Madrid", "R. Madrid"),
    TeamRecord("t_fcb", "Barcelona", "Barça"),
    TeamRecord("t_ars", "Arsenal"),
    TeamRecord("t_arsw", "Arsenal Women"),
    TeamRecord("t_che", "Chelsea"),
    TeamRecord("t_sl", "Santos Laguna"),
    TeamRecord("t_slw", "Santos Laguna Women"),
    TeamRecord("t_mci", "Manchester City", "Man City"),
    TeamRecord("t_sun", "Sunderland"),
]


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def dev_config_path(temp_dir: Path) -> Path:
    """Create a temporary dev config file."""
    config_data = {
        "environment": "test",
        "database": {
            "path": str(temp_dir / "test.db"),
            "timeout_seconds": 5,
        },
        "logging": {
            "level": "DEBUG",
            "format": "console",
            "log_file": None,
        },
        "matching": {
            "confidence_floor": 0.6,
        },
        "batch": {
            "group_size": 5,
            "pause_seconds": 0,
        },
    }
    config_path = temp_dir / "test_config.yaml"
    with open(config_path, "w") as f:
        yaml.dump(config_data, f)
    return config_path


@pytest.fixture
def config(dev_config_path: Path) -> AppConfig:
    """Load test configuration."""
    return load_config(dev_config_path)


@pytest.fixture
def matching_config() -> MatchingConfig:
    return MatchingConfig()


@pytest.fixture
def db(temp_dir: Path) -> Database:
    """Create a test database."""
    db_path = temp_dir / "test.db"
    database = Database(db_path)
    database.connect()
    database.migrate()
    yield database
    database.close()


@pytest.fixture
def seeded_db(db: Database) -> Database:
    """Database with a small registry and three fixtures.

    m1 Real Madrid - Barcelona, first half
    m2 Arsenal - Chelsea, second half
    m3 Manchester City - Sunderland, finished 2-1 (HT 1-0)
    """
    for team in TEAMS:
        db.upsert_team(team)

    now = utc_now()
    db.upsert_match(
        MatchRecord(
            external_id="m1",
            uuid="uuid-m1",
            home_team_id="t_rm",
            away_team_id="t_fcb",
            state=MatchState.FIRST_HALF,
            match_time=now - timedelta(minutes=23),
            home_score=1,
            away_score=0,
        ),
        league="La Liga",
    )
    db.upsert_match(
        MatchRecord(
            external_id="m2",
            uuid="uuid-m2",
            home_team_id="t_ars",
            away_team_id="t_che",
            state=MatchState.SECOND_HALF,
            match_time=now - timedelta(minutes=70),
        ),
        league="Premier League",
    )
    db.upsert_match(
        MatchRecord(
            external_id="m3",
            uuid="uuid-m3",
            home_team_id="t_mci",
            away_team_id="t_sun",
            state=MatchState.FINISHED,
            match_time=now - timedelta(hours=3),
            home_score=2,
            away_score=1,
            ht_home_score=1,
            ht_away_score=0,
        ),
        league="Premier League",
    )
    return db


@pytest.fixture
def stub_team_registry() -> Mock:
    """Team registry stub that knows nothing unless configured."""
    registry = Mock(spec=ITeamRegistry)
    registry.find_team_exact.return_value = None
    registry.find_team_by_alias.return_value = None
    registry.search_teams_by_tokens.return_value = []
    registry.search_teams_by_substrings.return_value = []
    registry.scan_teams.return_value = []
    return registry


@pytest.fixture
def stub_match_registry() -> Mock:
    registry = Mock(spec=IMatchRegistry)
    registry.find_live_matches_for_team.return_value = []
    registry.get_match.return_value = None
    return registry

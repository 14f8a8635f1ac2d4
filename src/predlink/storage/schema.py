"""SQLite database schema definitions."""

SCHEMA_VERSION = 2

SCHEMA_SQL = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
);

-- Canonical teams (mirrored from the sports-data registry)
CREATE TABLE IF NOT EXISTS teams (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    external_id TEXT UNIQUE NOT NULL,
    name TEXT NOT NULL,
    short_name TEXT,
    search_name TEXT NOT NULL DEFAULT '',
    search_short_name TEXT NOT NULL DEFAULT '',
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_teams_name ON teams(name COLLATE NOCASE);
CREATE INDEX IF NOT EXISTS idx_teams_short_name ON teams(short_name COLLATE NOCASE);
CREATE INDEX IF NOT EXISTS idx_teams_search_name ON teams(search_name);

-- Operator-maintained raw name variants
CREATE TABLE IF NOT EXISTS team_aliases (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    alias TEXT NOT NULL,
    alias_key TEXT UNIQUE NOT NULL,
    team_id TEXT NOT NULL REFERENCES teams(external_id),
    source TEXT NOT NULL DEFAULT 'manual',
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_team_aliases_team ON team_aliases(team_id);

-- Fixtures (mirrored from the sports-data registry)
CREATE TABLE IF NOT EXISTS matches (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    external_id TEXT UNIQUE NOT NULL,
    uuid TEXT NOT NULL,
    home_team_id TEXT NOT NULL REFERENCES teams(external_id),
    away_team_id TEXT NOT NULL REFERENCES teams(external_id),
    state INTEGER NOT NULL DEFAULT 1,
    match_time TEXT,
    league TEXT,
    home_score INTEGER,
    away_score INTEGER,
    ht_home_score INTEGER,
    ht_away_score INTEGER,
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_matches_home ON matches(home_team_id);
CREATE INDEX IF NOT EXISTS idx_matches_away ON matches(away_team_id);
CREATE INDEX IF NOT EXISTS idx_matches_state ON matches(state);

-- Incoming bot predictions
CREATE TABLE IF NOT EXISTS predictions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    external_id TEXT UNIQUE NOT NULL,
    bot_name TEXT,
    league TEXT,
    home_team_name TEXT NOT NULL,
    away_team_name TEXT NOT NULL,
    score_at_prediction TEXT,
    minute_at_prediction INTEGER,
    prediction_type TEXT,
    prediction_value TEXT,
    raw_content TEXT,
    processed INTEGER NOT NULL DEFAULT 0,
    note TEXT,
    received_at TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_predictions_processed ON predictions(processed, received_at);

-- Prediction to fixture links
CREATE TABLE IF NOT EXISTS prediction_matches (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    prediction_id INTEGER UNIQUE NOT NULL REFERENCES predictions(id),
    match_external_id TEXT NOT NULL,
    match_uuid TEXT NOT NULL,
    home_team_id TEXT NOT NULL,
    away_team_id TEXT NOT NULL,
    home_confidence REAL NOT NULL,
    away_confidence REAL NOT NULL,
    overall_confidence REAL NOT NULL,
    strategy TEXT,
    degraded INTEGER NOT NULL DEFAULT 0,
    status TEXT NOT NULL DEFAULT 'matched',
    matched_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_prediction_matches_match ON prediction_matches(match_external_id);
"""

MIGRATION_2_SETTLEMENT = """
-- Settlement results on prediction links
ALTER TABLE prediction_matches ADD COLUMN outcome TEXT;
ALTER TABLE prediction_matches ADD COLUMN final_home_score INTEGER;
ALTER TABLE prediction_matches ADD COLUMN final_away_score INTEGER;
ALTER TABLE prediction_matches ADD COLUMN settlement_reason TEXT;
ALTER TABLE prediction_matches ADD COLUMN settlement_rule TEXT;
ALTER TABLE prediction_matches ADD COLUMN resolved_at TEXT;

CREATE INDEX IF NOT EXISTS idx_prediction_matches_outcome ON prediction_matches(outcome);
"""

MIGRATIONS: dict[int, str] = {
    1: SCHEMA_SQL,
    2: MIGRATION_2_SETTLEMENT,
}

"""Database connection and access layer."""

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any

from predlink.common.config import DatabaseConfig
from predlink.common.logging import get_logger
from predlink.common.time_utils import parse_iso, utc_now
from predlink.matching.normalization import fold_name
from predlink.registry.interfaces import (
    ACTIVE_STATES,
    LIVE_STATES,
    IMatchRegistry,
    ITeamRegistry,
    MatchRecord,
    MatchState,
    TeamRecord,
)
from predlink.storage.interfaces import IPredictionStore
from predlink.storage.models import MatchLink, PredictionRecord, TeamAlias
from predlink.storage.schema import MIGRATIONS, SCHEMA_VERSION

logger = get_logger(__name__)

_MATCH_SELECT = """
    SELECT m.*,
           ht.name AS home_name, ht.short_name AS home_short_name,
           awt.name AS away_name, awt.short_name AS away_short_name
    FROM matches m
    JOIN teams ht ON ht.external_id = m.home_team_id
    JOIN teams awt ON awt.external_id = m.away_team_id
"""


class StorageError(Exception):
    """A database operation failed and its transaction was rolled back."""


def _like_pattern(fragment: str) -> str:
    escaped = fragment.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _state_list(states: frozenset[MatchState]) -> str:
    return ", ".join(str(int(state)) for state in sorted(states))


class Database(ITeamRegistry, IMatchRegistry, IPredictionStore):
    """SQLite database connection and operations.

    Serves as the local team/match registry and the prediction store.
    """

    def __init__(self, db_path: str | Path, timeout_seconds: float = 10.0):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file.
            timeout_seconds: How long a call waits on a locked database.
        """
        self.db_path = Path(db_path)
        self.timeout_seconds = timeout_seconds
        self._connection: sqlite3.Connection | None = None

    @classmethod
    def from_config(cls, config: DatabaseConfig) -> "Database":
        return cls(config.path, timeout_seconds=config.timeout_seconds)

    def connect(self) -> None:
        """Open database connection."""
        # Ensure directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._connection = sqlite3.connect(str(self.db_path), timeout=self.timeout_seconds)
        self._connection.row_factory = sqlite3.Row
        self._connection.execute("PRAGMA foreign_keys = ON")
        self._connection.execute("PRAGMA journal_mode = WAL")

        logger.info("database_connected", path=str(self.db_path))

    def close(self) -> None:
        """Close database connection."""
        if self._connection:
            self._connection.close()
            self._connection = None
            logger.info("database_closed", path=str(self.db_path))

    @property
    def connection(self) -> sqlite3.Connection:
        """Get active connection, raising if not connected."""
        if self._connection is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._connection

    def migrate(self) -> None:
        """Apply database migrations."""
        conn = self.connection
        current_version = self.get_schema_version()

        for version in sorted(MIGRATIONS.keys()):
            if version > current_version:
                logger.info("applying_migration", version=version)
                conn.executescript(MIGRATIONS[version])
                conn.execute("INSERT INTO schema_version (version) VALUES (?)", (version,))
                conn.commit()
                logger.info("migration_applied", version=version)

        logger.info(
            "migrations_complete",
            from_version=current_version,
            to_version=SCHEMA_VERSION,
        )

    def get_schema_version(self) -> int:
        """Get current schema version."""
        cursor = self.connection.cursor()
        cursor.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_version'"
        )
        if cursor.fetchone() is None:
            return 0
        cursor.execute("SELECT MAX(version) FROM schema_version")
        row = cursor.fetchone()
        return row[0] if row[0] is not None else 0

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Commit on success, roll back on any exception.

        Raises:
            StorageError: If a sqlite3 error occurred inside the block.
        """
        conn = self.connection
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("transaction_rolled_back", error=str(e))
            raise StorageError(str(e)) from e
        except Exception:
            conn.rollback()
            raise

    # --- Team operations ---

    def upsert_team(self, team: TeamRecord) -> None:
        """Insert or update a registry team and its search keys."""
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT INTO teams
                (external_id, name, short_name, search_name, search_short_name, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(external_id) DO UPDATE SET
                    name = excluded.name,
                    short_name = excluded.short_name,
                    search_name = excluded.search_name,
                    search_short_name = excluded.search_short_name,
                    updated_at = excluded.updated_at
                """,
                (
                    team.external_id,
                    team.name,
                    team.short_name,
                    fold_name(team.name),
                    fold_name(team.short_name),
                    utc_now().isoformat(),
                ),
            )

    def get_team(self, external_id: str) -> TeamRecord | None:
        row = self.connection.execute(
            "SELECT * FROM teams WHERE external_id = ?", (external_id,)
        ).fetchone()
        return self._row_to_team(row) if row else None

    def find_team_exact(self, name: str) -> TeamRecord | None:
        """Case-insensitive equality against canonical or short name."""
        key = name.strip()
        row = self.connection.execute(
            """
            SELECT * FROM teams
            WHERE name = ? COLLATE NOCASE OR short_name = ? COLLATE NOCASE
            ORDER BY id
            LIMIT 1
            """,
            (key, key),
        ).fetchone()
        return self._row_to_team(row) if row else None

    def search_teams_by_tokens(
        self, tokens: list[str], full_name: str, limit: int
    ) -> list[TeamRecord]:
        """Teams whose folded name contains every token."""
        if not tokens:
            return []
        conditions = " AND ".join("search_name LIKE ? ESCAPE '\\'" for _ in tokens)
        params: list[Any] = [_like_pattern(token) for token in tokens]
        params.extend([_like_pattern(full_name), limit])
        rows = self.connection.execute(
            f"""
            SELECT * FROM teams
            WHERE {conditions}
            ORDER BY CASE WHEN search_name LIKE ? ESCAPE '\\' THEN 0 ELSE 1 END,
                     length(name), id
            LIMIT ?
            """,
            params,
        ).fetchall()
        return [self._row_to_team(row) for row in rows]

    def search_teams_by_substrings(
        self, substrings: list[str], preferred: list[str], limit: int
    ) -> list[TeamRecord]:
        """Teams whose raw or folded name/short name contains any substring."""
        if not substrings:
            return []
        per_substring = (
            "(lower(name) LIKE ? ESCAPE '\\' OR lower(coalesce(short_name, '')) LIKE ? ESCAPE '\\'"
            " OR search_name LIKE ? ESCAPE '\\' OR search_short_name LIKE ? ESCAPE '\\')"
        )
        where = " OR ".join(per_substring for _ in substrings)
        params: list[Any] = []
        for substring in substrings:
            params.extend([_like_pattern(substring.lower())] * 4)

        ranking = " ".join(
            f"WHEN search_name LIKE ? ESCAPE '\\' THEN {rank}"
            for rank in range(len(preferred))
        )
        order_by = f"CASE {ranking} ELSE {len(preferred)} END, " if preferred else ""
        params.extend(_like_pattern(p) for p in preferred)
        params.append(limit)

        rows = self.connection.execute(
            f"""
            SELECT * FROM teams
            WHERE {where}
            ORDER BY {order_by}length(name), id
            LIMIT ?
            """,
            params,
        ).fetchall()
        return [self._row_to_team(row) for row in rows]

    def scan_teams(self, limit: int) -> list[TeamRecord]:
        rows = self.connection.execute(
            "SELECT * FROM teams ORDER BY id LIMIT ?", (limit,)
        ).fetchall()
        return [self._row_to_team(row) for row in rows]

    def _row_to_team(self, row: sqlite3.Row) -> TeamRecord:
        """Convert database row to TeamRecord."""
        return TeamRecord(
            external_id=row["external_id"],
            name=row["name"],
            short_name=row["short_name"],
        )

    # --- Team alias operations ---

    def add_team_alias(self, alias: str, team_id: str, source: str = "manual") -> TeamAlias:
        """Insert or repoint an alias.

        Args:
            alias: Raw name variant.
            team_id: Registry external id of the team.
            source: Who added it.

        Returns:
            Stored alias.

        Raises:
            StorageError: If the team does not exist.
        """
        key = alias.strip().lower()
        if not key:
            raise ValueError("alias must not be empty")
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT INTO team_aliases (alias, alias_key, team_id, source)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(alias_key) DO UPDATE SET
                    alias = excluded.alias,
                    team_id = excluded.team_id,
                    source = excluded.source
                """,
                (alias.strip(), key, team_id, source),
            )
        row = self.connection.execute(
            "SELECT * FROM team_aliases WHERE alias_key = ?", (key,)
        ).fetchone()
        logger.info("team_alias_saved", alias=alias, team_id=team_id, source=source)
        return self._row_to_alias(row)

    def get_team_aliases(self, team_id: str) -> list[TeamAlias]:
        rows = self.connection.execute(
            "SELECT * FROM team_aliases WHERE team_id = ? ORDER BY alias", (team_id,)
        ).fetchall()
        return [self._row_to_alias(row) for row in rows]

    def find_team_by_alias(self, alias: str) -> TeamRecord | None:
        """Exact case-insensitive lookup in the alias table."""
        row = self.connection.execute(
            """
            SELECT t.* FROM team_aliases a
            JOIN teams t ON t.external_id = a.team_id
            WHERE a.alias_key = ?
            """,
            (alias.strip().lower(),),
        ).fetchone()
        return self._row_to_team(row) if row else None

    def _row_to_alias(self, row: sqlite3.Row) -> TeamAlias:
        """Convert database row to TeamAlias."""
        return TeamAlias(
            id=row["id"],
            alias=row["alias"],
            team_id=row["team_id"],
            source=row["source"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    # --- Match operations ---

    def upsert_match(self, match: MatchRecord, league: str | None = None) -> None:
        """Insert or update a fixture with its state and scores."""
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT INTO matches
                (external_id, uuid, home_team_id, away_team_id, state, match_time, league,
                 home_score, away_score, ht_home_score, ht_away_score, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(external_id) DO UPDATE SET
                    state = excluded.state,
                    match_time = excluded.match_time,
                    league = coalesce(excluded.league, matches.league),
                    home_score = excluded.home_score,
                    away_score = excluded.away_score,
                    ht_home_score = excluded.ht_home_score,
                    ht_away_score = excluded.ht_away_score,
                    updated_at = excluded.updated_at
                """,
                (
                    match.external_id,
                    match.uuid,
                    match.home_team_id,
                    match.away_team_id,
                    int(match.state),
                    match.match_time.isoformat() if match.match_time else None,
                    league,
                    match.home_score,
                    match.away_score,
                    match.ht_home_score,
                    match.ht_away_score,
                    utc_now().isoformat(),
                ),
            )

    def get_match(self, external_id: str) -> MatchRecord | None:
        """Fixture by external id, including score components."""
        row = self.connection.execute(
            f"{_MATCH_SELECT} WHERE m.external_id = ?", (external_id,)
        ).fetchone()
        return self._row_to_match(row) if row else None

    def find_live_matches_for_team(self, team_id: str, limit: int) -> list[MatchRecord]:
        """Live fixtures for a team, actively playing first, then latest kickoff."""
        rows = self.connection.execute(
            f"""
            {_MATCH_SELECT}
            WHERE (m.home_team_id = ? OR m.away_team_id = ?)
              AND m.state IN ({_state_list(LIVE_STATES)})
            ORDER BY CASE WHEN m.state IN ({_state_list(ACTIVE_STATES)}) THEN 0 ELSE 1 END,
                     m.match_time DESC
            LIMIT ?
            """,
            (team_id, team_id, limit),
        ).fetchall()
        return [self._row_to_match(row) for row in rows]

    def _row_to_match(self, row: sqlite3.Row) -> MatchRecord:
        """Convert joined database row to MatchRecord."""
        return MatchRecord(
            external_id=row["external_id"],
            uuid=row["uuid"],
            home_team_id=row["home_team_id"],
            away_team_id=row["away_team_id"],
            state=MatchState.from_id(row["state"]),
            match_time=parse_iso(row["match_time"]),
            home_name=row["home_name"],
            away_name=row["away_name"],
            home_short_name=row["home_short_name"],
            away_short_name=row["away_short_name"],
            home_score=row["home_score"],
            away_score=row["away_score"],
            ht_home_score=row["ht_home_score"],
            ht_away_score=row["ht_away_score"],
        )

    # --- Prediction operations ---

    def create_prediction(self, prediction: PredictionRecord) -> int:
        """Insert an unprocessed prediction.

        Args:
            prediction: Parsed prediction.

        Returns:
            ID of created prediction.
        """
        with self.transaction() as conn:
            cursor = conn.execute(
                """
                INSERT INTO predictions
                (external_id, bot_name, league, home_team_name, away_team_name,
                 score_at_prediction, minute_at_prediction, prediction_type,
                 prediction_value, raw_content, processed, note, received_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 0, ?, ?, ?)
                """,
                (
                    prediction.external_id,
                    prediction.bot_name,
                    prediction.league,
                    prediction.home_team_name,
                    prediction.away_team_name,
                    prediction.score_at_prediction,
                    prediction.minute_at_prediction,
                    prediction.prediction_type,
                    prediction.prediction_value,
                    prediction.raw_content,
                    prediction.note,
                    prediction.received_at.isoformat(),
                    utc_now().isoformat(),
                ),
            )
        prediction_id = cursor.lastrowid or 0
        prediction.id = prediction_id
        prediction.processed = False
        return prediction_id

    def get_prediction(self, prediction_id: int) -> PredictionRecord | None:
        row = self.connection.execute(
            "SELECT * FROM predictions WHERE id = ?", (prediction_id,)
        ).fetchone()
        return self._row_to_prediction(row) if row else None

    def get_prediction_by_external_id(self, external_id: str) -> PredictionRecord | None:
        row = self.connection.execute(
            "SELECT * FROM predictions WHERE external_id = ?", (external_id,)
        ).fetchone()
        return self._row_to_prediction(row) if row else None

    def get_pending_predictions(
        self, since: datetime | None = None, limit: int = 50
    ) -> list[PredictionRecord]:
        """Unprocessed predictions received at or after `since`, oldest first."""
        if since is None:
            rows = self.connection.execute(
                """
                SELECT * FROM predictions WHERE processed = 0
                ORDER BY received_at, id LIMIT ?
                """,
                (limit,),
            ).fetchall()
        else:
            rows = self.connection.execute(
                """
                SELECT * FROM predictions WHERE processed = 0 AND received_at >= ?
                ORDER BY received_at, id LIMIT ?
                """,
                (since.isoformat(), limit),
            ).fetchall()
        return [self._row_to_prediction(row) for row in rows]

    def mark_unresolved(self, prediction_id: int, note: str) -> None:
        with self.transaction() as conn:
            conn.execute(
                "UPDATE predictions SET note = ?, updated_at = ? WHERE id = ? AND processed = 0",
                (note, utc_now().isoformat(), prediction_id),
            )

    def _row_to_prediction(self, row: sqlite3.Row) -> PredictionRecord:
        """Convert database row to PredictionRecord."""
        return PredictionRecord(
            id=row["id"],
            external_id=row["external_id"],
            bot_name=row["bot_name"],
            league=row["league"],
            home_team_name=row["home_team_name"],
            away_team_name=row["away_team_name"],
            score_at_prediction=row["score_at_prediction"],
            minute_at_prediction=row["minute_at_prediction"],
            prediction_type=row["prediction_type"],
            prediction_value=row["prediction_value"],
            raw_content=row["raw_content"],
            processed=bool(row["processed"]),
            note=row["note"],
            received_at=datetime.fromisoformat(row["received_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    # --- Match link operations ---

    def link_prediction(self, link: MatchLink) -> int:
        """Insert the link and mark its prediction processed in one transaction.

        Raises:
            StorageError: If the prediction is already linked or missing.
        """
        with self.transaction() as conn:
            cursor = conn.execute(
                """
                INSERT INTO prediction_matches
                (prediction_id, match_external_id, match_uuid, home_team_id, away_team_id,
                 home_confidence, away_confidence, overall_confidence, strategy, degraded,
                 status, matched_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    link.prediction_id,
                    link.match_external_id,
                    link.match_uuid,
                    link.home_team_id,
                    link.away_team_id,
                    link.home_confidence,
                    link.away_confidence,
                    link.overall_confidence,
                    link.strategy,
                    int(link.degraded),
                    link.status,
                    link.matched_at.isoformat(),
                ),
            )
            updated = conn.execute(
                """
                UPDATE predictions SET processed = 1, note = NULL, updated_at = ?
                WHERE id = ?
                """,
                (utc_now().isoformat(), link.prediction_id),
            )
            if updated.rowcount != 1:
                raise StorageError(f"prediction {link.prediction_id} not found")
        link.id = cursor.lastrowid
        logger.info(
            "prediction_linked",
            prediction_id=link.prediction_id,
            match_external_id=link.match_external_id,
            overall_confidence=round(link.overall_confidence, 3),
        )
        return link.id or 0

    def get_link_for_prediction(self, prediction_id: int) -> MatchLink | None:
        row = self.connection.execute(
            "SELECT * FROM prediction_matches WHERE prediction_id = ?", (prediction_id,)
        ).fetchone()
        return self._row_to_link(row) if row else None

    def get_links_for_match(self, match_external_id: str) -> list[MatchLink]:
        rows = self.connection.execute(
            "SELECT * FROM prediction_matches WHERE match_external_id = ? ORDER BY id",
            (match_external_id,),
        ).fetchall()
        return [self._row_to_link(row) for row in rows]

    def get_unsettled_links(self, match_external_id: str | None = None) -> list[MatchLink]:
        """Links without an outcome, optionally for a single fixture."""
        if match_external_id is None:
            rows = self.connection.execute(
                "SELECT * FROM prediction_matches WHERE outcome IS NULL ORDER BY id"
            ).fetchall()
        else:
            rows = self.connection.execute(
                """
                SELECT * FROM prediction_matches
                WHERE outcome IS NULL AND match_external_id = ?
                ORDER BY id
                """,
                (match_external_id,),
            ).fetchall()
        return [self._row_to_link(row) for row in rows]

    def record_settlement(self, links: list[MatchLink]) -> None:
        """Write settlement fields for every link, all or nothing."""
        with self.transaction() as conn:
            for link in links:
                if link.id is None:
                    raise ValueError("cannot settle a link without an id")
                conn.execute(
                    """
                    UPDATE prediction_matches SET
                        outcome = ?,
                        final_home_score = ?,
                        final_away_score = ?,
                        settlement_reason = ?,
                        settlement_rule = ?,
                        resolved_at = ?,
                        status = 'settled'
                    WHERE id = ? AND outcome IS NULL
                    """,
                    (
                        link.outcome,
                        link.final_home_score,
                        link.final_away_score,
                        link.settlement_reason,
                        link.settlement_rule,
                        (link.resolved_at or utc_now()).isoformat(),
                        link.id,
                    ),
                )

    def _row_to_link(self, row: sqlite3.Row) -> MatchLink:
        """Convert database row to MatchLink."""
        return MatchLink(
            id=row["id"],
            prediction_id=row["prediction_id"],
            match_external_id=row["match_external_id"],
            match_uuid=row["match_uuid"],
            home_team_id=row["home_team_id"],
            away_team_id=row["away_team_id"],
            home_confidence=row["home_confidence"],
            away_confidence=row["away_confidence"],
            overall_confidence=row["overall_confidence"],
            strategy=row["strategy"],
            degraded=bool(row["degraded"]),
            status=row["status"],
            matched_at=datetime.fromisoformat(row["matched_at"]),
            outcome=row["outcome"],
            final_home_score=row["final_home_score"],
            final_away_score=row["final_away_score"],
            settlement_reason=row["settlement_reason"],
            settlement_rule=row["settlement_rule"],
            resolved_at=parse_iso(row["resolved_at"]),
        )

    # --- Generic operations ---

    def execute(self, sql: str, params: tuple[Any, ...] = ()) -> sqlite3.Cursor:
        """Execute raw SQL.

        Args:
            sql: SQL statement.
            params: Query parameters.

        Returns:
            Cursor with results.
        """
        return self.connection.execute(sql, params)

    def commit(self) -> None:
        """Commit current transaction."""
        self.connection.commit()

    def __enter__(self) -> "Database":
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager exit."""
        self.close()

"""Tests for prediction ingestion."""

import base64
from urllib.parse import quote

import pytest

from predlink.common.config import MatchingConfig
from predlink.ingestion.ingestor import (
    NO_MATCH_NOTE,
    PredictionIngestor,
    RawPredictionPayload,
    low_confidence_note,
)
from predlink.matching.match_resolver import MatchResolver
from predlink.matching.team_resolver import TeamResolver
from predlink.storage.database import Database


def encode(text: str) -> str:
    return base64.b64encode(quote(text).encode("utf-8")).decode("ascii")


def build_ingestor(db: Database, config: MatchingConfig | None = None) -> PredictionIngestor:
    matching = MatchingConfig()
    resolver = MatchResolver(TeamResolver(db, matching), db, matching)
    return PredictionIngestor(db, resolver, config)


@pytest.fixture
def ingestor(seeded_db: Database) -> PredictionIngestor:
    return build_ingestor(seeded_db)


class TestIngest:
    """Ingesting payloads end to end against the seeded registry."""

    def test_encoded_payload_links_live_fixture(
        self, seeded_db: Database, ingestor: PredictionIngestor
    ):
        payload = {
            "id": "p1",
            "prediction": encode("Real Madrid - Barcelona | 1-0 | 23 | La Liga | MS 1"),
            "bot_name": "alpha",
        }

        result = ingestor.ingest(payload)

        assert result.success is True
        assert result.match_found is True
        assert result.match.match_external_id == "m1"
        assert result.match.overall_confidence == 1.0
        assert result.match.strategy == "home_anchor"

        stored = seeded_db.get_prediction_by_external_id("p1")
        assert stored.processed is True
        assert stored.bot_name == "alpha"
        assert stored.minute_at_prediction == 23
        assert stored.prediction_type == "MS 1"

        link = seeded_db.get_link_for_prediction(stored.id)
        assert link.match_uuid == "uuid-m1"
        assert link.home_team_id == "t_rm"
        assert link.away_team_id == "t_fcb"
        assert link.strategy == "home_anchor"

    def test_plain_text_payload(self, ingestor: PredictionIngestor):
        result = ingestor.ingest(
            {"id": "p2", "prediction": "Arsenal - Chelsea | 0-0 | 55 | Premier League | KG VAR"}
        )

        assert result.match_found is True
        assert result.match.match_external_id == "m2"

    def test_direct_team_fields(self, seeded_db: Database, ingestor: PredictionIngestor):
        result = ingestor.ingest(
            RawPredictionPayload(
                home_team="Real Madrid",
                away_team="Barcelona",
                minute=23,
                prediction_type="MS",
                prediction_value="1",
            )
        )

        assert result.match_found is True
        assert result.external_id.startswith("pred_")
        stored = seeded_db.get_prediction_by_external_id(result.external_id)
        assert stored.minute_at_prediction == 23
        assert stored.bot_name == "external"

    def test_low_confidence_left_pending(self, seeded_db: Database, ingestor: PredictionIngestor):
        result = ingestor.ingest({"id": "p3", "prediction": "Zzqx Unknown - Barcelona"})

        assert result.success is True
        assert result.match_found is False
        assert result.match is not None
        assert result.note.startswith("low confidence: 0.5")

        stored = seeded_db.get_prediction_by_external_id("p3")
        assert stored.processed is False
        assert stored.note == result.note
        assert seeded_db.get_link_for_prediction(stored.id) is None

    def test_lower_floor_accepts_weak_match(self, seeded_db: Database):
        ingestor = build_ingestor(seeded_db, MatchingConfig(confidence_floor=0.5))

        result = ingestor.ingest({"id": "p3", "prediction": "Zzqx Unknown - Barcelona"})

        assert result.match_found is True
        assert result.match.strategy == "away_anchor"

    def test_no_match(self, seeded_db: Database, ingestor: PredictionIngestor):
        result = ingestor.ingest({"id": "p4", "prediction": "Zzqx Unknown - Qqwv Nothing"})

        assert result.success is True
        assert result.match_found is False
        assert result.match is None
        assert result.note == NO_MATCH_NOTE
        assert seeded_db.get_prediction_by_external_id("p4").note == "no match"

    def test_unparseable_persists_nothing(self, seeded_db: Database, ingestor: PredictionIngestor):
        result = ingestor.ingest({"id": "p5", "prediction": "hello"})

        assert result.success is False
        assert result.error == "Could not parse prediction payload"
        assert seeded_db.get_prediction_by_external_id("p5") is None
        assert seeded_db.get_pending_predictions() == []

    def test_missing_away_team(self, ingestor: PredictionIngestor):
        result = ingestor.ingest({"id": "p6", "home_team": "Arsenal"})
        assert result.success is False

    def test_duplicate_external_id(self, ingestor: PredictionIngestor):
        payload = {"id": "p7", "prediction": "Arsenal - Chelsea"}
        assert ingestor.ingest(payload).success is True

        duplicate = ingestor.ingest(payload)

        assert duplicate.success is False
        assert "already ingested" in duplicate.error

    def test_result_to_dict(self, ingestor: PredictionIngestor):
        data = ingestor.ingest({"id": "p8", "prediction": "Arsenal - Chelsea"}).to_dict()

        assert data["success"] is True
        assert data["external_id"] == "p8"
        assert data["match"]["match_external_id"] == "m2"


class TestNotes:
    def test_low_confidence_note(self):
        assert low_confidence_note(0.523) == "low confidence: 0.52"

"""Command-line entry points."""

import json
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import click

from predlink.common.config import AppConfig, load_config
from predlink.common.logging import get_logger, setup_logging
from predlink.ingestion.batch import PendingMatcher
from predlink.ingestion.ingestor import PredictionIngestor, RawPredictionPayload
from predlink.matching.match_resolver import MatchResolver
from predlink.matching.team_resolver import TeamResolver
from predlink.settlement.service import SettlementError, SettlementService
from predlink.storage.database import Database

logger = get_logger(__name__)


@dataclass
class Services:
    """Wired components sharing one database connection and config."""

    config: AppConfig
    db: Database
    ingestor: PredictionIngestor
    pending: PendingMatcher
    settlement: SettlementService


def build_services(config: AppConfig, db: Database) -> Services:
    """Wire resolvers, ingestor and services against a connected database."""
    team_resolver = TeamResolver(db, config.matching)
    match_resolver = MatchResolver(team_resolver, db, config.matching)
    ingestor = PredictionIngestor(db, match_resolver, config.matching)
    return Services(
        config=config,
        db=db,
        ingestor=ingestor,
        pending=PendingMatcher(db, ingestor, config.batch),
        settlement=SettlementService(db, db),
    )


@contextmanager
def open_services(config_path: str) -> Iterator[Services]:
    """Load config, set up logging, open and migrate the database."""
    config = load_config(config_path)
    setup_logging(config.logging)
    logger.info("config_loaded", config_path=config_path, environment=config.environment)

    db = Database.from_config(config.database)
    try:
        db.connect()
        db.migrate()
        yield build_services(config, db)
    finally:
        db.close()


def _echo(data: Any) -> None:
    click.echo(json.dumps(data, ensure_ascii=False, indent=2, default=str))


def _read_payload(
    payload: str | None, payload_file: str | None, external_id: str | None
) -> dict[str, Any]:
    if payload_file:
        text = Path(payload_file).read_text(encoding="utf-8")
        try:
            data = json.loads(text)
        except ValueError:
            data = None
        if isinstance(data, dict) and ("prediction" in data or "home_team" in data):
            if external_id:
                data["id"] = external_id
            return data
        payload = text
    return {"id": external_id, "prediction": payload}


@click.group()
@click.option(
    "--config",
    "-c",
    required=True,
    type=click.Path(exists=True),
    help="Path to configuration file",
)
@click.pass_context
def main(ctx: click.Context, config: str) -> None:
    """Prediction-to-match resolution and settlement."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config


@main.command()
@click.option("--payload", "-p", help="Payload text (base64, URL-quoted or plain)")
@click.option(
    "--file",
    "-f",
    "payload_file",
    type=click.Path(exists=True),
    help="File with a JSON payload or raw payload text",
)
@click.option("--id", "external_id", help="External prediction id")
@click.pass_context
def ingest(
    ctx: click.Context, payload: str | None, payload_file: str | None, external_id: str | None
) -> None:
    """Ingest one prediction and try to link it to a live fixture."""
    if not payload and not payload_file:
        raise click.UsageError("Provide --payload or --file")

    try:
        with open_services(ctx.obj["config_path"]) as services:
            raw = RawPredictionPayload.model_validate(
                _read_payload(payload, payload_file, external_id)
            )
            result = services.ingestor.ingest(raw)
    except Exception as e:
        logger.exception("ingest_failed", error=str(e))
        sys.exit(1)

    _echo(result.to_dict())
    sys.exit(0 if result.success else 1)


@main.command("match-pending")
@click.option("--limit", "-n", type=int, default=None, help="Maximum predictions to retry")
@click.option("--external-id", help="Retry a single prediction")
@click.pass_context
def match_pending(ctx: click.Context, limit: int | None, external_id: str | None) -> None:
    """Retry resolution for unlinked predictions."""
    try:
        with open_services(ctx.obj["config_path"]) as services:
            if external_id:
                results = [services.pending.match_by_external_id(external_id)]
            else:
                results = services.pending.match_pending(limit)
    except Exception as e:
        logger.exception("match_pending_failed", error=str(e))
        sys.exit(1)

    _echo({
        "total": len(results),
        "matched": sum(1 for r in results if r.match_found),
        "failed": sum(1 for r in results if not r.success),
        "results": [r.to_dict() for r in results],
    })


@main.command()
@click.option("--match", "match_external_id", help="Settle one finished fixture")
@click.pass_context
def settle(ctx: click.Context, match_external_id: str | None) -> None:
    """Settle linked predictions of finished fixtures."""
    try:
        with open_services(ctx.obj["config_path"]) as services:
            if match_external_id:
                summaries = [services.settlement.settle_match(match_external_id)]
            else:
                summaries = services.settlement.settle_finished()
    except SettlementError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        logger.exception("settle_failed", error=str(e))
        sys.exit(1)

    _echo([summary.to_dict() for summary in summaries])


@main.command("add-alias")
@click.argument("alias")
@click.argument("team_id")
@click.option("--source", default="manual", show_default=True, help="Who added the alias")
@click.pass_context
def add_alias(ctx: click.Context, alias: str, team_id: str, source: str) -> None:
    """Point a raw team-name variant at a registry team id."""
    try:
        with open_services(ctx.obj["config_path"]) as services:
            if services.db.get_team(team_id) is None:
                click.echo(f"Error: unknown team id {team_id}", err=True)
                sys.exit(1)
            saved = services.db.add_team_alias(alias, team_id, source=source)
    except Exception as e:
        logger.exception("add_alias_failed", error=str(e))
        sys.exit(1)

    click.echo(f"{saved.alias} -> {saved.team_id}")


if __name__ == "__main__":
    main()

"""Decode and parse raw bot prediction payloads.

Bots publish predictions in a handful of shapes:

* a JSON object with ``home_team``/``homeTeam`` fields,
* a multi-line alert::

      00084⚽ *Sunderland A.F.C - Manchester City  ( 0 - 0 )*
      🏟 England Premier League
      ⏰ 10
      ❗ IY Gol

* a pipe-delimited line ``Teams | Score | Minute | League | Prediction``,
* a bare ``Home - Away`` line.

The payload itself usually arrives base64-encoded and URL-quoted.
"""

import base64
import binascii
import json
import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import unquote

from predlink.common.logging import get_logger

logger = get_logger(__name__)

_TEAMS_AND_SCORE = re.compile(r"\*(.+?)\s+-\s+([^(]+)\s*\(\s*(\d+)\s*-\s*(\d+)\s*\)\s*\*")
_TEAMS_ONLY = re.compile(r"\*?(.+?)\s+-\s+([^*(]+)")
_LEADING_COUNTER = re.compile(r"^[\d⚽🏟\s]+")
_SPACED_SEPARATOR = re.compile(r"\s+(?:-|vs\.?|v)\s+", re.IGNORECASE)
_TIGHT_SEPARATOR = re.compile(r"\s*(?:-|\bvs\b\.?)\s*", re.IGNORECASE)
_MARKET_LINE = re.compile(r"^\*[\d.,]+\s*(?:ÜST|UST|ALT|OVER|UNDER)\*$", re.IGNORECASE)
_ALERT_CODE = re.compile(r"AlertCode:\s*([\w-]+)", re.IGNORECASE)
_DIGITS = re.compile(r"\d+")


@dataclass
class ParsedPrediction:
    """Structured fields extracted from a payload."""

    external_id: str | None
    home_team_name: str
    away_team_name: str
    bot_name: str = "external"
    league: str | None = None
    score_at_prediction: str | None = None
    minute_at_prediction: int | None = None
    prediction_type: str | None = None
    prediction_value: str | None = None
    raw_content: str | None = None


def decode_payload(text: str) -> str:
    """Base64-decode then URL-unquote a payload.

    Never raises: input that is not base64 of UTF-8 text is returned
    unchanged, and base64 text whose percent-escapes are not valid UTF-8
    is returned without the URL step.
    """
    if not text:
        return text
    try:
        decoded = base64.b64decode(text.strip(), validate=True).decode("utf-8")
    except (binascii.Error, ValueError):
        return text
    try:
        result = unquote(decoded, errors="strict")
    except ValueError:
        result = decoded
    if not all(ch.isprintable() or ch.isspace() for ch in result):
        return text
    return result


def parse_minute(value: Any) -> int | None:
    """First run of digits in a minute field ("23'" -> 23, "45+2" -> 45)."""
    if value is None:
        return None
    match = _DIGITS.search(str(value))
    return int(match.group()) if match else None


def split_teams(text: str, allow_tight: bool = True) -> tuple[str, str] | None:
    """Split "Home - Away" / "Home vs Away" into two names.

    A spaced separator wins over a bare hyphen so hyphenated names like
    "Al-Shabab" survive. With `allow_tight` False only a spaced separator
    splits, so a single hyphenated word is not read as two teams.
    """
    patterns = (_SPACED_SEPARATOR, _TIGHT_SEPARATOR) if allow_tight else (_SPACED_SEPARATOR,)
    for pattern in patterns:
        parts = pattern.split(text.strip(), maxsplit=1)
        if len(parts) == 2:
            home, away = parts[0].strip(), parts[1].strip()
            if home and away:
                return home, away
    return None


def _parse_json(content: str, external_id: str | None) -> ParsedPrediction | None:
    try:
        data = json.loads(content)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    home = data.get("home_team") or data.get("homeTeam")
    away = data.get("away_team") or data.get("awayTeam")
    if not home:
        return None
    return ParsedPrediction(
        external_id=external_id or (str(data["id"]) if data.get("id") else None),
        home_team_name=str(home).strip(),
        away_team_name=str(away or "").strip(),
        bot_name=data.get("bot_name") or data.get("botName") or "unknown",
        league=data.get("league") or data.get("leagueName"),
        score_at_prediction=data.get("score"),
        minute_at_prediction=parse_minute(data.get("minute")),
        prediction_type=data.get("prediction_type") or data.get("predictionType"),
        prediction_value=(
            data.get("prediction_value") or data.get("predictionValue") or data.get("prediction")
        ),
        raw_content=content,
    )


def _parse_multi_line(content: str, external_id: str | None) -> ParsedPrediction | None:
    lines = [line.strip() for line in content.splitlines() if line.strip()]
    if len(lines) < 2:
        return None

    home = away = ""
    score: str | None = None
    first = lines[0]
    match = _TEAMS_AND_SCORE.search(first)
    if match:
        home = match.group(1).strip()
        away = match.group(2).strip()
        score = f"{match.group(3)}-{match.group(4)}"
    else:
        match = _TEAMS_ONLY.search(first)
        if match:
            home = _LEADING_COUNTER.sub("", match.group(1)).strip()
            away = match.group(2).strip()
    if not home or not away:
        return None

    league: str | None = None
    minute: int | None = None
    prediction_type: str | None = None
    prediction_value: str | None = None
    for index, line in enumerate(lines[1:], start=1):
        if line.startswith("🏟") or (
            index == 1 and not line.startswith(("⏰", "❗")) and not line.lower().startswith("minute")
        ):
            league = line.lstrip("🏟").strip()
        elif line.startswith("⏰") or line.lower().startswith("minute"):
            minute = parse_minute(line)
        elif line.startswith("❗"):
            prediction_type = prediction_value = line.lstrip("❗").strip()
        elif _MARKET_LINE.match(line):
            prediction_type = prediction_value = line.strip("*").strip()
        elif line.startswith("👉") or "alertcode" in line.lower():
            alert = _ALERT_CODE.search(line)
            if alert and not prediction_type:
                prediction_type = alert.group(1)

    logger.debug(
        "multi_line_parsed",
        home=home,
        away=away,
        score=score,
        minute=minute,
        league=league,
        prediction_type=prediction_type,
    )
    return ParsedPrediction(
        external_id=external_id,
        home_team_name=home,
        away_team_name=away,
        league=league,
        score_at_prediction=score,
        minute_at_prediction=minute,
        prediction_type=prediction_type,
        prediction_value=prediction_value,
        raw_content=content,
    )


def _parse_pipe_delimited(content: str, external_id: str | None) -> ParsedPrediction | None:
    parts = [part.strip() for part in content.split("|")]
    if len(parts) < 3:
        return None
    teams = split_teams(parts[0])
    if teams is None:
        return None
    prediction = parts[4] if len(parts) > 4 and parts[4] else None
    return ParsedPrediction(
        external_id=external_id,
        home_team_name=teams[0],
        away_team_name=teams[1],
        league=parts[3] if len(parts) > 3 and parts[3] else None,
        score_at_prediction=parts[1] or None,
        minute_at_prediction=parse_minute(parts[2]),
        prediction_type=prediction,
        prediction_value=prediction,
        raw_content=content,
    )


def _parse_bare_teams(content: str, external_id: str | None) -> ParsedPrediction | None:
    text = content.strip()
    if not text or "\n" in text:
        return None
    teams = split_teams(text, allow_tight=False)
    if teams is None:
        return None
    return ParsedPrediction(
        external_id=external_id,
        home_team_name=teams[0],
        away_team_name=teams[1],
        raw_content=content,
    )


_PARSERS = (_parse_json, _parse_multi_line, _parse_pipe_delimited, _parse_bare_teams)


def parse_content(content: str, external_id: str | None = None) -> ParsedPrediction | None:
    """Parse decoded payload text into structured fields.

    Args:
        content: Decoded payload.
        external_id: Id supplied alongside the payload, if any.

    Returns:
        First successful parse, or None if no format matches.
    """
    if not content or not content.strip():
        return None
    for parser in _PARSERS:
        parsed = parser(content, external_id)
        if parsed is not None:
            return parsed
    logger.warning("unparseable_prediction", content=content[:200])
    return None

"""Aggregations behind the admin dashboard.

Verification status is derived from the download log: a roster participant
counts as verified once at least one certificate was downloaded for their
email and team id.
"""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Iterable, NamedTuple, Sequence

from sqlalchemy import func

from ..app import db
from ..models import DownloadLog
from ..shared.roster import RosterEntry
from ..shared.time import last_n_days, utc_date
from ..shared.verification import normalize_email, parse_team_id

PAGE_SIZE = 20
TOP_TEAMS = 10
TEAM_LABEL_MAX = 15
TREND_WINDOWS = (7, 14, 30)
DEFAULT_TREND_WINDOW = 30
EMPTY_TREND_DAYS = 7
UNKNOWN_TEAM = "Unknown Team"


class DownloadSummary(NamedTuple):
    count: int
    first_at: datetime | None
    last_at: datetime | None


class Page(NamedTuple):
    rows: list
    page: int
    total_pages: int
    total: int


def participant_key(email: str | None, team_id) -> tuple[str, str]:
    return normalize_email(email), str(parse_team_id(team_id))


def download_summary() -> dict[tuple[str, str], DownloadSummary]:
    email_lc = func.lower(DownloadLog.email)
    rows = (
        db.session.query(
            email_lc,
            DownloadLog.team_id,
            func.sum(DownloadLog.count),
            func.min(DownloadLog.created_at),
            func.max(DownloadLog.created_at),
        )
        .group_by(email_lc, DownloadLog.team_id)
        .all()
    )
    summary: dict[tuple[str, str], DownloadSummary] = {}
    for email, team_id, total, first_at, last_at in rows:
        key = participant_key(email, team_id)
        previous = summary.get(key)
        if previous:
            # team ids such as "07" and "7" collapse onto one key
            summary[key] = DownloadSummary(
                previous.count + int(total or 0),
                min(previous.first_at, first_at),
                max(previous.last_at, last_at),
            )
        else:
            summary[key] = DownloadSummary(int(total or 0), first_at, last_at)
    return summary


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def participants_with_status(
    roster: Sequence[RosterEntry],
    summary: dict[tuple[str, str], DownloadSummary],
) -> list[dict]:
    rows = []
    for index, entry in enumerate(roster):
        info = summary.get(participant_key(entry.email, entry.team_id))
        count = info.count if info else 0
        rows.append(
            {
                "id": f"participant-{index}",
                "name": entry.name,
                "email": entry.email,
                "teamId": entry.team_id,
                "teamName": entry.team_name,
                "count": count,
                "createdAt": _iso(info.first_at) if info else None,
                "updatedAt": _iso(info.last_at) if info else None,
                "isVerified": count > 0,
            }
        )
    return rows


def filter_participants(rows: Iterable[dict], query: str | None) -> list[dict]:
    rows = list(rows)
    if not query:
        return rows
    needle = query.lower()
    return [
        row
        for row in rows
        if needle in (row.get("name") or "").lower()
        or needle in (row.get("email") or "").lower()
        or needle in (row.get("teamName") or "").lower()
        or query in str(row.get("teamId") or "")
    ]


def paginate(rows: Sequence, page: int, page_size: int = PAGE_SIZE) -> Page:
    total = len(rows)
    total_pages = max(1, math.ceil(total / page_size))
    page = min(max(page, 1), total_pages)
    start = (page - 1) * page_size
    return Page(list(rows[start : start + page_size]), page, total_pages, total)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _team_label(team_name: str) -> str:
    if len(team_name) > TEAM_LABEL_MAX:
        return team_name[:TEAM_LABEL_MAX] + "..."
    return team_name


def compute_stats(total_participants: int, logs: Iterable, today: date) -> dict:
    """Dashboard statistics from the roster size and the download log rows."""
    logs = list(logs)
    verified_emails = {normalize_email(log.email) for log in logs}
    verified = len(verified_emails)
    unverified = max(total_participants - verified, 0)
    total_downloads = sum(int(log.count or 0) for log in logs)
    rate = (
        _round_half_up(verified / total_participants * 100)
        if total_participants > 0
        else 0
    )

    teams: dict[str, dict] = {}
    for log in logs:
        team_name = log.team_name or UNKNOWN_TEAM
        team = teams.setdefault(team_name, {"downloads": 0, "members": set()})
        team["downloads"] += int(log.count or 0)
        team["members"].add(normalize_email(log.email))
    team_downloads = sorted(
        (
            {
                "teamName": _team_label(name),
                "downloads": data["downloads"],
                "members": len(data["members"]),
            }
            for name, data in teams.items()
        ),
        key=lambda item: item["downloads"],
        reverse=True,
    )[:TOP_TEAMS]
    if not team_downloads:
        team_downloads = [{"teamName": "No teams yet", "downloads": 0, "members": 0}]

    if logs:
        days: dict[str, dict] = {}
        for log in logs:
            if log.created_at is None:
                continue
            key = utc_date(log.created_at).isoformat()
            day = days.setdefault(key, {"downloads": 0, "users": set()})
            day["downloads"] += int(log.count or 0)
            day["users"].add(normalize_email(log.email))
        daily_trends = [
            {"date": key, "downloads": data["downloads"], "newUsers": len(data["users"])}
            for key, data in sorted(days.items())
        ]
    else:
        daily_trends = [
            {"date": day.isoformat(), "downloads": 0, "newUsers": 0}
            for day in last_n_days(today, EMPTY_TREND_DAYS)
        ]

    return {
        "totalParticipants": total_participants,
        "verifiedParticipants": verified,
        "unverifiedParticipants": unverified,
        "totalDownloads": total_downloads,
        "verificationRate": rate,
        "teamDownloads": team_downloads,
        "dailyTrends": daily_trends,
        "summary": {
            "total": total_participants,
            "verified": verified,
            "unverified": unverified,
            "rate": rate,
        },
    }


def normalize_trend_window(days) -> int:
    try:
        value = int(days)
    except (TypeError, ValueError):
        return DEFAULT_TREND_WINDOW
    return value if value in TREND_WINDOWS else DEFAULT_TREND_WINDOW


def trend_window(daily_trends: Sequence[dict], days) -> list[dict]:
    return list(daily_trends[-normalize_trend_window(days) :])

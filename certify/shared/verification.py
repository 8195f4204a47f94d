from __future__ import annotations

import re
from typing import Iterable, Mapping, NamedTuple

from email_validator import EmailNotValidError, validate_email

from .roster import RosterEntry

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_WHITESPACE = re.compile(r"\s+")
# "12" or "12.0", as number inputs may send
_INTEGRAL_TEXT = re.compile(r"\s*(\d+)(?:\.0*)?\s*")


class CertificateRequestError(ValueError):
    """Raised when a certificate request fails validation."""

    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        super().__init__("; ".join(errors.values()))


class CertificateRequest(NamedTuple):
    name: str
    team_id: int
    email: str


def normalize_name(value: str | None) -> str:
    return _WHITESPACE.sub(" ", (value or "").strip().lower())


def normalize_email(value: str | None) -> str:
    return (value or "").strip().lower()


def parse_team_id(value) -> int:
    """Leading integer of ``value``'s text, or 0 when there is none."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else 0


def find_participant(
    roster: Iterable[RosterEntry], name: str, team_id: int, email: str
) -> RosterEntry | None:
    """First roster row whose name, email and team id all match."""
    wanted_name = normalize_name(name)
    wanted_email = normalize_email(email)
    for entry in roster:
        if (
            normalize_name(entry.name) == wanted_name
            and normalize_email(entry.email) == wanted_email
            and parse_team_id(entry.team_id) == team_id
        ):
            return entry
    return None


def _coerce_team_id(raw) -> int | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    if isinstance(raw, str):
        match = _INTEGRAL_TEXT.fullmatch(raw)
        return int(match.group(1)) if match else None
    return None


def validate_certificate_request(data: Mapping) -> CertificateRequest:
    errors: dict[str, str] = {}

    name = str(data.get("name") or "").strip()
    if not name:
        errors["name"] = "Full name is required"

    raw_team = data.get("teamId", data.get("team_id"))
    team_id = _coerce_team_id(raw_team)
    if team_id is None or team_id < 1:
        errors["teamId"] = "Team ID is required"

    email = str(data.get("email") or "").strip()
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        errors["email"] = "Invalid email address"

    if errors:
        raise CertificateRequestError(errors)
    return CertificateRequest(name=name, team_id=team_id, email=email)

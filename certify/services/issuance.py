from __future__ import annotations

import base64
import logging
from typing import NamedTuple

from flask import current_app

from ..app import db
from ..models import DownloadLog
from ..shared.certificates import render_certificate_pdf
from ..shared.roster import get_roster
from ..shared.verification import find_participant, normalize_email

logger = logging.getLogger("certify.cert")

NOT_FOUND_MESSAGE = "Participant details not found in registered participants list"
SUCCESS_MESSAGE = "Certificate generated successfully"
FAILURE_MESSAGE = "Failed to generate certificate"
DEFAULT_TEAM_NAME = "Team"


class CertificateResult(NamedTuple):
    success: bool
    message: str
    data: str | None = None
    reason: str | None = None

    @property
    def pdf_bytes(self) -> bytes | None:
        return base64.b64decode(self.data) if self.data else None

    def to_dict(self) -> dict:
        payload = {"success": self.success, "message": self.message}
        if self.data is not None:
            payload["data"] = self.data
        return payload


def verify_and_generate_certificate(
    name: str, team_id: int, email: str
) -> CertificateResult:
    """Check a participant against the roster and return their certificate.

    The PDF comes back base64-encoded in ``data``. Each successful call
    appends one ``DownloadLog`` row. Failures never raise; they are logged
    and reported through ``success=False`` with ``reason`` set to
    ``"not_found"`` or ``"error"``.
    """
    email_key = normalize_email(email)
    try:
        entry = find_participant(get_roster(), name, team_id, email)
        if entry is None:
            logger.info(
                "[CERT-FAIL] email=%s team_id=%s reason=not_found", email_key, team_id
            )
            return CertificateResult(False, NOT_FOUND_MESSAGE, reason="not_found")

        logger.info(
            "[CERT] verified email=%s team_id=%s team=%s",
            email_key,
            team_id,
            entry.team_name,
        )
        team_name = entry.team_name or DEFAULT_TEAM_NAME
        pdf_bytes = render_certificate_pdf(
            name,
            team_name,
            template_path=current_app.config["CERT_TEMPLATE_PATH"],
            font_path=current_app.config.get("CERT_FONT_PATH"),
        )
        db.session.add(
            DownloadLog(
                email=email_key,
                team_id=str(team_id),
                team_name=team_name,
                count=1,
            )
        )
        db.session.commit()
        logger.info(
            "[CERT] issued email=%s team_id=%s bytes=%d",
            email_key,
            team_id,
            len(pdf_bytes),
        )
        return CertificateResult(
            True,
            SUCCESS_MESSAGE,
            data=base64.b64encode(pdf_bytes).decode("ascii"),
        )
    except Exception as exc:
        db.session.rollback()
        logger.exception(
            "[CERT-FAIL] email=%s team_id=%s reason=error", email_key, team_id
        )
        return CertificateResult(False, str(exc) or FAILURE_MESSAGE, reason="error")

from __future__ import annotations

from sqlalchemy.orm import validates

from .app import db
from .shared.passwords import hash_password, verify_and_upgrade


class Admin(db.Model):
    __tablename__ = "admins"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False, default="")
    email = db.Column(db.String(255), nullable=False)
    password_hash = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, server_default=db.func.now())
    __table_args__ = (
        db.Index("ix_admins_email_lower", db.func.lower(email), unique=True),
    )

    @validates("email")
    def lower_email(self, key, value):  # pragma: no cover - simple normalizer
        return (value or "").strip().lower()

    def set_password(self, plain: str) -> None:
        self.password_hash = hash_password(plain)

    def check_password(self, plain: str) -> bool:
        ok, new_hash = verify_and_upgrade(plain, self.password_hash)
        if ok and new_hash:
            self.password_hash = new_hash
        return ok


class DownloadLog(db.Model):
    """One row per certificate handed out; never updated in place."""

    __tablename__ = "download_logs"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, index=True)
    team_id = db.Column(db.String(32), nullable=False)
    team_name = db.Column(db.String(255))
    count = db.Column(db.Integer, nullable=False, default=1, server_default="1")
    created_at = db.Column(
        db.DateTime, nullable=False, server_default=db.func.now(), index=True
    )
    updated_at = db.Column(
        db.DateTime, server_default=db.func.now(), onupdate=db.func.now()
    )

    @validates("email")
    def lower_email(self, key, value):  # pragma: no cover - simple normalizer
        return (value or "").strip().lower()

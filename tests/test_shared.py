from datetime import date, datetime, timedelta, timezone

from passlib.hash import bcrypt as legacy_bcrypt

from certify.app import db, seed_initial_admin_safely
from certify.models import Admin
from certify.shared.passwords import hash_password, verify_and_upgrade, verify_password
from certify.shared.storage import write_atomic
from certify.shared.time import fmt_dt, last_n_days, utc_date


def test_fmt_dt():
    assert fmt_dt(None) == ""
    assert fmt_dt(datetime(2025, 3, 1, 9, 5, 59)) == "1 Mar 2025 09:05"
    assert fmt_dt(date(2025, 3, 1)) == "1 Mar 2025"
    assert fmt_dt("2025-03-01T09:05:00") == "1 Mar 2025 09:05"
    assert fmt_dt("yesterday") == "yesterday"


def test_utc_date_and_last_n_days():
    aware = datetime(2025, 3, 1, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
    assert utc_date(aware) == date(2025, 3, 2)
    assert utc_date(datetime(2025, 3, 1, 23, 30)) == date(2025, 3, 1)
    assert last_n_days(date(2025, 3, 2), 3) == [
        date(2025, 2, 28),
        date(2025, 3, 1),
        date(2025, 3, 2),
    ]


def test_password_hashing():
    hashed = hash_password("s3cret")
    assert hashed.startswith("$bcrypt-sha256$")
    assert verify_password("s3cret", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("s3cret", None)
    assert not verify_password("x" * 100, hashed)


def test_legacy_bcrypt_hash_is_upgraded():
    legacy = legacy_bcrypt.hash("s3cret")
    ok, new_hash = verify_and_upgrade("s3cret", legacy)
    assert ok
    assert new_hash.startswith("$bcrypt-sha256$")
    assert verify_and_upgrade("s3cret", new_hash) == (True, None)
    assert verify_and_upgrade("wrong", legacy) == (False, None)


def test_write_atomic(tmp_path):
    target = tmp_path / "nested" / "file.bin"
    write_atomic(str(target), b"one")
    write_atomic(str(target), b"two")
    assert target.read_bytes() == b"two"
    assert [p.name for p in target.parent.iterdir()] == ["file.bin"]


def test_seed_first_admin(app, monkeypatch):
    monkeypatch.setenv("FIRST_ADMIN_PASSWORD", "changeme")
    monkeypatch.setenv("FIRST_ADMIN_EMAIL", "Owner@Example.com")
    seed_initial_admin_safely()
    seed_initial_admin_safely()
    admin = db.session.query(Admin).one()
    assert admin.email == "owner@example.com"
    assert admin.check_password("changeme")


def test_seed_requires_password(app, monkeypatch):
    monkeypatch.delenv("FIRST_ADMIN_PASSWORD", raising=False)
    seed_initial_admin_safely()
    assert db.session.query(Admin).count() == 0


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.data == b"OK"

import csv
import os
import pathlib
import sys

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("FLASK_SKIP_SEED", "1")

PROJECT_ROOT = pathlib.Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from reportlab.lib.pagesizes import A4, landscape
from reportlab.pdfgen import canvas

from certify.app import create_app, db
from certify.models import Admin
from certify.shared.roster import clear_roster_cache


ROSTER_ROWS = [
    ["Name", "email", "teamId", "TeamName"],
    ["Jane Doe", "jane@example.com", "12", "Rocket Squad"],
    ["John  Smith", "John.Smith@Example.com", "7", ""],
    ["Ana Lima", "ana@example.com", "12", "Rocket Squad"],
]


def pytest_collection_modifyitems(config, items):
    for item in items:
        if "slow" in item.keywords or "quarantine" in item.keywords:
            continue
        item.add_marker("full")
        if "no_smoke" in item.keywords:
            continue
        item.add_marker("smoke")


def write_roster_csv(path, rows):
    with open(path, "w", newline="", encoding="utf-8") as handle:
        csv.writer(handle).writerows(rows)
    return path


def write_template_pdf(path, pages=1, pagesize=None):
    width, height = pagesize or landscape(A4)
    c = canvas.Canvas(str(path), pagesize=(width, height))
    for index in range(pages):
        c.setFont("Helvetica", 12)
        c.drawString(40, 40, f"Template page {index + 1}")
        c.showPage()
    c.save()
    return path


@pytest.fixture
def roster_file(tmp_path):
    return write_roster_csv(tmp_path / "participants.csv", ROSTER_ROWS)


@pytest.fixture
def template_pdf(tmp_path):
    return write_template_pdf(tmp_path / "certificate-template.pdf")


@pytest.fixture
def app(tmp_path, monkeypatch, roster_file, template_pdf):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///:memory:")
    monkeypatch.setenv("FLASK_SKIP_SEED", "1")
    monkeypatch.setenv("ROSTER_PATH", str(roster_file))
    monkeypatch.setenv("CERT_TEMPLATE_PATH", str(template_pdf))
    monkeypatch.setenv("CERT_FONT_PATH", str(tmp_path / "fonts" / "missing.ttf"))
    clear_roster_cache()
    application = create_app()
    application.config["TESTING"] = True
    with application.app_context():
        db.create_all()
        yield application
        db.session.remove()
    clear_roster_cache()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin(app):
    admin = Admin(email="Admin@Example.com", name="Super Admin")
    admin.set_password("admin123")
    db.session.add(admin)
    db.session.commit()
    return admin


@pytest.fixture
def admin_client(client, admin):
    resp = client.post(
        "/api/admin/login",
        json={"username": "admin@example.com", "password": "admin123"},
    )
    assert resp.status_code == 200
    return client

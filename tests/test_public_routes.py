import base64

from certify.app import db
from certify.models import DownloadLog


def test_form_renders(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert b'name="teamId"' in resp.data


def test_api_issues_certificate(client):
    resp = client.post(
        "/api/verify-and-generate",
        json={"name": "Jane Doe", "teamId": 12, "email": "jane@example.com"},
    )
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True
    assert body["message"] == "Certificate generated successfully"
    assert base64.b64decode(body["data"]).startswith(b"%PDF")
    assert db.session.query(DownloadLog).count() == 1


def test_api_accepts_string_team_id(client):
    resp = client.post(
        "/api/verify-and-generate",
        json={"name": "jane doe", "teamId": "12", "email": "Jane@Example.com"},
    )
    assert resp.status_code == 200


def test_api_not_found(client):
    resp = client.post(
        "/api/verify-and-generate",
        json={"name": "Nobody", "teamId": 12, "email": "nobody@example.com"},
    )
    assert resp.status_code == 404
    assert resp.get_json() == {
        "success": False,
        "message": "Participant details not found in registered participants list",
    }


def test_api_validation_errors(client):
    resp = client.post("/api/verify-and-generate", json={"name": "", "teamId": 0})
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["success"] is False
    assert set(body["errors"]) == {"name", "teamId", "email"}


def test_api_without_json_body(client):
    resp = client.post("/api/verify-and-generate", data="nonsense")
    assert resp.status_code == 400


def test_api_template_failure(app, client, tmp_path):
    app.config["CERT_TEMPLATE_PATH"] = str(tmp_path / "missing.pdf")
    resp = client.post(
        "/api/verify-and-generate",
        json={"name": "Jane Doe", "teamId": 12, "email": "jane@example.com"},
    )
    assert resp.status_code == 500
    assert resp.get_json()["success"] is False


def test_form_post_downloads_pdf(client):
    resp = client.post(
        "/",
        data={"name": "Jane Doe", "teamId": "12", "email": "jane@example.com"},
    )
    assert resp.status_code == 200
    assert resp.mimetype == "application/pdf"
    assert "Jane_Doe_Certificate.pdf" in resp.headers["Content-Disposition"]
    assert resp.data.startswith(b"%PDF")


def test_form_post_shows_errors(client):
    resp = client.post("/", data={"name": "Jane Doe", "teamId": "", "email": "bad"})
    assert resp.status_code == 400
    assert b"Team ID is required" in resp.data
    assert b"Invalid email address" in resp.data


def test_form_post_not_found(client):
    resp = client.post(
        "/",
        data={"name": "Jane Doe", "teamId": "3", "email": "jane@example.com"},
    )
    assert resp.status_code == 404
    assert b"Participant details not found" in resp.data


def test_api_rejects_non_object_body(client):
    resp = client.post("/api/verify-and-generate", json=["x"])
    assert resp.status_code == 400
    assert set(resp.get_json()["errors"]) == {"name", "teamId", "email"}


def test_api_accepts_decimal_team_id_text(client):
    resp = client.post(
        "/api/verify-and-generate",
        json={"name": "Jane Doe", "teamId": "12.0", "email": "jane@example.com"},
    )
    assert resp.status_code == 200


def test_form_post_render_failure(app, client, tmp_path):
    app.config["CERT_TEMPLATE_PATH"] = str(tmp_path / "missing.pdf")
    resp = client.post(
        "/",
        data={"name": "Jane Doe", "teamId": "12", "email": "jane@example.com"},
    )
    assert resp.status_code == 500
    assert b"Certificate template not found" in resp.data

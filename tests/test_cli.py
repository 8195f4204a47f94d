import pytest
from PyPDF2 import PdfReader

from certify.app import db
from certify.models import Admin, DownloadLog
from manage import gen_cert, gen_template, roster_check, seed_admin


@pytest.fixture
def runner(app):
    for command in (seed_admin, roster_check, gen_template, gen_cert):
        app.cli.add_command(command)
    return app.test_cli_runner()


def test_seed_admin_is_idempotent(runner):
    res = runner.invoke(args=["seed_admin"])
    assert res.exit_code == 0
    assert "Admin created: admin@example.com" in res.output
    res = runner.invoke(args=["seed_admin", "--email", "ADMIN@example.com"])
    assert "Admin already exists" in res.output
    admin = db.session.query(Admin).one()
    assert admin.name == "Super Admin"
    assert admin.check_password("admin123")


def test_roster_check(runner, roster_file):
    res = runner.invoke(args=["roster_check"])
    assert res.exit_code == 0
    assert f"rows=3 path={roster_file}" in res.output
    assert "missing_name=0 missing_email=0 missing_team_id=0" in res.output


def test_roster_check_missing_file(runner, tmp_path):
    res = runner.invoke(args=["roster_check", "--path", str(tmp_path / "none.csv")])
    assert res.exit_code == 1


def test_gen_template(runner, tmp_path):
    out = tmp_path / "out" / "template.pdf"
    res = runner.invoke(args=["gen_template", "--output", str(out)])
    assert res.exit_code == 0
    assert len(PdfReader(str(out)).pages) == 1


def test_gen_cert(runner, tmp_path):
    out = tmp_path / "jane.pdf"
    res = runner.invoke(
        args=[
            "gen_cert",
            "--name", "Jane Doe",
            "--email", "jane@example.com",
            "--team-id", "12",
            "--output", str(out),
        ]
    )
    assert res.exit_code == 0
    assert out.read_bytes().startswith(b"%PDF")
    assert db.session.query(DownloadLog).count() == 1


def test_gen_cert_unknown_participant(runner, tmp_path):
    out = tmp_path / "nobody.pdf"
    res = runner.invoke(
        args=["gen_cert", "--name", "Nobody", "--email", "n@example.com", "--team-id", "1", "--output", str(out)]
    )
    assert res.exit_code == 1
    assert not out.exists()


def test_roster_check_unreadable_file(runner, tmp_path):
    path = tmp_path / "latin.csv"
    path.write_bytes("Name,email,teamId\nJosé,jose@example.com,4\n".encode("latin-1"))
    res = runner.invoke(args=["roster_check", "--path", str(path)])
    assert res.exit_code == 1

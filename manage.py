from certify.app import create_app, db
import os
from io import BytesIO

from flask_migrate import Migrate
from flask.cli import FlaskGroup
import click
from sqlalchemy import func
from flask import current_app
from reportlab.lib.pagesizes import A4, landscape
from reportlab.pdfgen import canvas

from certify.models import Admin
from certify.services.issuance import verify_and_generate_certificate
from certify.shared.certificates import certificate_filename
from certify.shared.roster import RosterError, read_roster
from certify.shared.storage import write_atomic


migrate = Migrate()


def create_certify_app():
    app = create_app()
    migrate.init_app(app, db)
    return app


cli = FlaskGroup(create_app=create_certify_app)


@cli.command("seed_admin")
@click.option("--email", default="admin@example.com", show_default=True)
@click.option("--password", default="admin123", show_default=True)
@click.option("--name", default="Super Admin", show_default=True)
def seed_admin(email: str, password: str, name: str):
    """Create the dashboard admin account if it does not exist yet."""
    email = email.strip().lower()
    existing = (
        db.session.query(Admin).filter(func.lower(Admin.email) == email).one_or_none()
    )
    if existing:
        click.echo("Admin already exists")
        return
    admin = Admin(email=email, name=name)
    admin.set_password(password)
    db.session.add(admin)
    db.session.commit()
    click.echo(f"Admin created: {email}")


@cli.command("roster_check")
@click.option("--path", "path", default=None, help="Roster file (defaults to ROSTER_PATH)")
def roster_check(path: str | None):
    """Load the roster and report rows with missing fields."""
    path = path or current_app.config["ROSTER_PATH"]
    try:
        entries = read_roster(path)
    except RosterError as exc:
        click.echo(str(exc), err=True)
        raise SystemExit(1)
    missing_name = sum(1 for e in entries if not e.name)
    missing_email = sum(1 for e in entries if not e.email)
    missing_team = sum(1 for e in entries if not e.team_id)
    click.echo(f"rows={len(entries)} path={path}")
    click.echo(
        f"missing_name={missing_name} missing_email={missing_email} missing_team_id={missing_team}"
    )


@cli.command("gen_template")
@click.option("--output", default=None, help="Defaults to CERT_TEMPLATE_PATH")
def gen_template(output: str | None):
    """Write a blank landscape A4 certificate template."""
    output = output or current_app.config["CERT_TEMPLATE_PATH"]
    buffer = BytesIO()
    width, height = landscape(A4)
    c = canvas.Canvas(buffer, pagesize=(width, height))
    c.setLineWidth(4)
    c.rect(24, 24, width - 48, height - 48)
    c.setFont("Helvetica-Bold", 36)
    c.drawCentredString(width / 2, height * 0.75, "Certificate of Participation")
    c.setFont("Helvetica", 14)
    c.drawCentredString(width / 2, height * 0.65, "This is to certify that")
    c.drawCentredString(width / 2, height * 0.45, "has successfully participated in the event")
    c.showPage()
    c.save()
    click.echo(write_atomic(output, buffer.getvalue()))


@cli.command("gen_cert")
@click.option("--name", required=True)
@click.option("--email", required=True)
@click.option("--team-id", "team_id", required=True, type=int)
@click.option("--output", default=None, help="Output PDF path")
def gen_cert(name: str, email: str, team_id: int, output: str | None):
    """Verify a participant and write their certificate."""
    result = verify_and_generate_certificate(name, team_id, email)
    if not result.success:
        click.echo(result.message, err=True)
        raise SystemExit(1)
    output = output or os.path.join(os.getcwd(), certificate_filename(name))
    click.echo(write_atomic(output, result.pdf_bytes))


if __name__ == "__main__":
    cli()

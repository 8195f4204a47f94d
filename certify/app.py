import logging
import os
from datetime import timedelta

from flask import Flask, redirect, session, url_for
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

from .models import Admin  # noqa: E402
from .shared.time import fmt_dt  # noqa: E402


def create_app():
    app = Flask(__name__, template_folder="templates")
    app.secret_key = os.getenv("SECRET_KEY", "dev")
    app.jinja_env.filters["fmt_dt"] = fmt_dt

    DB_USER = os.getenv("DB_USER", "certify")
    DB_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
    DB_HOST = os.getenv("DB_HOST", "db")
    DB_NAME = os.getenv("DB_NAME", "certify")
    DATABASE_URL = os.getenv(
        "DATABASE_URL",
        f"postgresql+psycopg2://{DB_USER}:{DB_PASSWORD}@{DB_HOST}/{DB_NAME}",
    )

    app.config["SQLALCHEMY_DATABASE_URI"] = DATABASE_URL
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False

    app.config["ROSTER_PATH"] = os.getenv(
        "ROSTER_PATH", os.path.join(os.getcwd(), "data", "trainers.xlsx")
    )
    app.config["ROSTER_CACHE_TTL"] = float(os.getenv("ROSTER_CACHE_TTL", "300"))
    app.config["CERT_TEMPLATE_PATH"] = os.getenv(
        "CERT_TEMPLATE_PATH",
        os.path.join(app.root_path, "assets", "certificate-template.pdf"),
    )
    app.config["CERT_FONT_PATH"] = os.getenv(
        "CERT_FONT_PATH",
        os.path.join(app.root_path, "assets", "fonts", "certificate.ttf"),
    )

    is_production = os.getenv("FLASK_ENV") == "production"
    app.config["SESSION_COOKIE_NAME"] = os.getenv(
        "SESSION_COOKIE_NAME", "admin-session"
    )
    app.config["SESSION_COOKIE_HTTPONLY"] = True
    app.config["SESSION_COOKIE_SAMESITE"] = "Lax"
    app.config["SESSION_COOKIE_SECURE"] = (
        os.getenv("SESSION_COOKIE_SECURE", "1" if is_production else "0") == "1"
    )
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(hours=24)

    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    app.logger.setLevel(log_level)
    logging.getLogger("certify").setLevel(log_level)

    db.init_app(app)

    @app.get("/health")
    def health():  # pragma: no cover - simple healthcheck
        return "OK", 200

    @app.get("/dashboard")
    def dashboard():
        if session.get("admin_id"):
            return redirect(url_for("admin.dashboard"))
        return redirect(url_for("auth.login"))

    from .routes.auth import bp as auth_bp
    from .routes.public import bp as public_bp
    from .routes.admin import bp as admin_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(public_bp)
    app.register_blueprint(admin_bp)

    with app.app_context():
        if not os.getenv("FLASK_SKIP_SEED"):
            seed_initial_admin_safely()

    return app


def seed_initial_admin_safely() -> None:
    """Create the first admin from FIRST_ADMIN_* when the admins table is empty."""

    password = os.getenv("FIRST_ADMIN_PASSWORD")
    if not password:
        return
    try:
        from sqlalchemy import inspect

        if "admins" not in inspect(db.engine).get_table_names():
            logging.info("admin seed skipped (table missing)")
            return
        if db.session.query(Admin).count() > 0:
            return
        email = os.getenv("FIRST_ADMIN_EMAIL", "admin@example.com").lower()
        admin = Admin(
            email=email,
            name=os.getenv("FIRST_ADMIN_NAME", "Super Admin"),
        )
        admin.set_password(password)
        db.session.add(admin)
        db.session.commit()
        logging.info("Seeded admin %s.", email)
    except Exception:
        db.session.rollback()
        logging.exception("seed_initial_admin_safely failed")


app = create_app()

from __future__ import annotations

from flask import (
    Blueprint,
    current_app,
    flash,
    jsonify,
    redirect,
    render_template,
    request,
    session as flask_session,
    url_for,
)
from sqlalchemy import func

from ..app import db
from ..models import Admin
from ..shared.rbac import admin_required, current_admin

bp = Blueprint("auth", __name__)


def _authenticate(username, password) -> Admin | None:
    if not isinstance(username, str) or not isinstance(password, str):
        return None
    email = username.strip().lower()
    if not email:
        return None
    admin = db.session.query(Admin).filter(func.lower(Admin.email) == email).first()
    if not admin:
        current_app.logger.info(f"[AUTH-FAIL] admin login email={email} reason=unknown")
        return None
    if not admin.check_password(password or ""):
        current_app.logger.info(f"[AUTH-FAIL] admin login email={email} reason=password")
        return None
    if admin in db.session.dirty:
        db.session.commit()
        current_app.logger.info(f"[AUTH] upgraded password hash id={admin.id}")
    return admin


def _login(admin: Admin) -> None:
    flask_session.clear()
    flask_session.permanent = True
    flask_session["admin_id"] = admin.id
    current_app.logger.info(f"[AUTH] admin login id={admin.id}")


@bp.route("/login", methods=["GET", "POST"], endpoint="login")
def login():
    if request.method == "POST":
        admin = _authenticate(
            request.form.get("username") or request.form.get("email", ""),
            request.form.get("password", ""),
        )
        if not admin:
            flash("Invalid credentials", "error")
            return render_template("auth/login.html"), 401
        _login(admin)
        return redirect(url_for("admin.dashboard"))
    if current_admin():
        return redirect(url_for("admin.dashboard"))
    return render_template("auth/login.html")


@bp.route("/logout", methods=["GET", "POST"], endpoint="logout")
def logout():
    flask_session.clear()
    flash("Signed out.", "success")
    return redirect(url_for("auth.login"))


@bp.post("/api/admin/login")
def api_login():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    admin = _authenticate(payload.get("username", ""), payload.get("password", ""))
    if not admin:
        return jsonify({"success": False, "error": "Invalid credentials"}), 401
    _login(admin)
    return jsonify({"success": True, "data": {"username": admin.name, "role": "admin"}})


@bp.get("/api/admin/me")
@admin_required
def api_me(current_admin):
    return jsonify(
        {
            "success": True,
            "data": {
                "username": current_admin.name,
                "email": current_admin.email,
                "role": "admin",
            },
        }
    )


@bp.route("/api/admin/logout", methods=["GET", "POST"])
def api_logout():
    flask_session.clear()
    return jsonify({"success": True, "message": "Logged out"})

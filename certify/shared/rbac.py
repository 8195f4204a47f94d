from functools import wraps

from flask import flash, jsonify, redirect, request, session, url_for

from ..app import db
from ..models import Admin


def _wants_json() -> bool:
    return request.path.startswith("/api/") or request.is_json


def _deny(message: str):
    if _wants_json():
        return jsonify({"success": False, "error": message}), 401
    if message != "Not authenticated":
        flash(message, "error")
    return redirect(url_for("auth.login"))


def current_admin() -> Admin | None:
    admin_id = session.get("admin_id")
    if not admin_id:
        return None
    return db.session.get(Admin, admin_id)


def admin_required(fn):
    """Resolve the signed-in admin or send the caller to the login page (401 for API calls)."""

    @wraps(fn)
    def wrapper(*args, **kwargs):
        admin_id = session.get("admin_id")
        if not admin_id:
            return _deny("Not authenticated")
        admin = db.session.get(Admin, admin_id)
        if not admin:
            session.clear()
            return _deny("Admin not found")
        return fn(*args, **kwargs, current_admin=admin)

    return wrapper

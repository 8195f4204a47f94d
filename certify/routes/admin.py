from __future__ import annotations

import csv
import io

from flask import Blueprint, Response, current_app, jsonify, render_template, request

from ..app import db
from ..models import DownloadLog
from ..services import charts
from ..services.dashboard import (
    TREND_WINDOWS,
    compute_stats,
    download_summary,
    filter_participants,
    normalize_trend_window,
    paginate,
    participants_with_status,
    trend_window,
)
from ..shared.rbac import admin_required
from ..shared.roster import RosterError, get_roster
from ..shared.time import now_utc

bp = Blueprint("admin", __name__)


def _load_stats() -> dict:
    roster = get_roster()
    logs = (
        db.session.query(DownloadLog).order_by(DownloadLog.created_at.desc()).all()
    )
    return compute_stats(len(roster), logs, now_utc().date())


def _load_participants() -> list[dict]:
    return participants_with_status(get_roster(), download_summary())


@bp.get("/dashboard/admin")
@admin_required
def dashboard(current_admin):
    days = normalize_trend_window(request.args.get("days"))
    query = (request.args.get("q") or "").strip()
    page_num = request.args.get("page", 1, type=int) or 1
    try:
        stats = _load_stats()
        participants = _load_participants()
    except RosterError as exc:
        current_app.logger.error(f"[DASHBOARD] roster unavailable: {exc}")
        return render_template("admin/dashboard.html", admin=current_admin, error=str(exc)), 503

    trend = trend_window(stats["dailyTrends"], days)
    filtered = filter_participants(participants, query)
    page = paginate(filtered, page_num)
    verified_in_view = sum(1 for row in filtered if row["isVerified"])
    return render_template(
        "admin/dashboard.html",
        admin=current_admin,
        error=None,
        stats=stats,
        days=days,
        trend_windows=TREND_WINDOWS,
        query=query,
        page=page,
        verified_in_view=verified_in_view,
        unverified_in_view=len(filtered) - verified_in_view,
        pie_chart=charts.pie_chart(
            stats["verifiedParticipants"], stats["unverifiedParticipants"]
        ),
        bar_chart=charts.bar_chart(stats["teamDownloads"]),
        downloads_chart=charts.trend_chart(
            trend, "downloads", "Downloads", charts.DOWNLOADS_COLOR
        ),
        users_chart=charts.trend_chart(
            trend, "newUsers", "New users", charts.NEW_USERS_COLOR
        ),
    )


@bp.get("/dashboard/admin/export.csv")
@admin_required
def export_csv(current_admin):
    rows = filter_participants(
        _load_participants(), (request.args.get("q") or "").strip()
    )
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(
        ["Name", "Email", "TeamId", "TeamName", "Downloads", "Verified", "FirstDownload", "LastDownload"]
    )
    for row in rows:
        writer.writerow(
            [
                row["name"],
                row["email"],
                row["teamId"],
                row["teamName"],
                row["count"],
                "yes" if row["isVerified"] else "no",
                row["createdAt"] or "",
                row["updatedAt"] or "",
            ]
        )
    resp = Response(output.getvalue(), mimetype="text/csv")
    resp.headers["Content-Disposition"] = "attachment; filename=participants.csv"
    return resp


@bp.get("/api/admin/stats")
@admin_required
def api_stats(current_admin):
    try:
        stats = _load_stats()
    except Exception:
        current_app.logger.exception("[DASHBOARD] stats failed")
        return jsonify({"success": False, "message": "Failed to fetch stats"}), 500
    return jsonify({"success": True, "data": stats})


@bp.get("/api/admin/all-participants")
@admin_required
def api_all_participants(current_admin):
    try:
        rows = _load_participants()
    except Exception:
        current_app.logger.exception("[DASHBOARD] participants failed")
        return (
            jsonify({"success": False, "message": "Failed to fetch all participants"}),
            500,
        )
    current_app.logger.info(
        f"[DASHBOARD] participants total={len(rows)} verified={sum(1 for r in rows if r['isVerified'])}"
    )
    return jsonify({"success": True, "data": rows})


@bp.get("/api/participants")
@admin_required
def api_participants(current_admin):
    try:
        roster = get_roster()
    except RosterError as exc:
        current_app.logger.error(f"[DASHBOARD] roster unavailable: {exc}")
        return jsonify({"success": False, "message": str(exc)}), 503
    return jsonify([entry.to_dict() for entry in roster])

from __future__ import annotations

from io import BytesIO

from flask import Blueprint, jsonify, render_template, request, send_file

from ..services.issuance import verify_and_generate_certificate
from ..shared.certificates import certificate_filename
from ..shared.verification import CertificateRequestError, validate_certificate_request

bp = Blueprint("public", __name__)

_STATUS_BY_REASON = {"not_found": 404, "error": 500}


@bp.get("/")
def certificate_form():
    return render_template("certificate_form.html", form={}, errors={})


@bp.post("/")
def certificate_download():
    form = request.form.to_dict()
    try:
        req = validate_certificate_request(form)
    except CertificateRequestError as exc:
        return (
            render_template("certificate_form.html", form=form, errors=exc.errors),
            400,
        )
    result = verify_and_generate_certificate(req.name, req.team_id, req.email)
    if not result.success:
        return (
            render_template(
                "certificate_form.html", form=form, errors={}, message=result.message
            ),
            _STATUS_BY_REASON.get(result.reason, 400),
        )
    return send_file(
        BytesIO(result.pdf_bytes),
        mimetype="application/pdf",
        as_attachment=True,
        download_name=certificate_filename(req.name),
    )


@bp.post("/api/verify-and-generate")
def api_verify_and_generate():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    try:
        req = validate_certificate_request(payload)
    except CertificateRequestError as exc:
        return (
            jsonify({"success": False, "message": str(exc), "errors": exc.errors}),
            400,
        )
    result = verify_and_generate_certificate(req.name, req.team_id, req.email)
    status = 200 if result.success else _STATUS_BY_REASON.get(result.reason, 400)
    return jsonify(result.to_dict()), status

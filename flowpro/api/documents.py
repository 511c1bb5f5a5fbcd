"""
FlowPro document download routes.

The dashboard posts the job row it already has on screen (customer and
line items joined in) and gets the generated file straight back as an
attachment. Nothing is read from the database here.
"""

import io
import os
import logging
import functools

from flask import Blueprint, Response, jsonify, request, send_file

from flowpro import __version__
from flowpro.forms.delivery import sanitize_filename
from flowpro.forms.doc_types import DEFAULT_DOC_TYPE, DOC_CONFIGS
from flowpro.forms.job_pdf import generate_job_pdf
from flowpro.forms.template_docx import PLACEHOLDERS, generate_template_document

log = logging.getLogger("flowpro.api")

bp = Blueprint("documents", __name__)

# ═══════════════════════════════════════════════════════════════════════
# Password Protection
# ═══════════════════════════════════════════════════════════════════════

def check_auth(username, password):
    return (username == os.environ.get("FLOWPRO_USER", "flowpro")
            and password == os.environ.get("FLOWPRO_PASS", "changeme"))


def auth_required(f):
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        auth = request.authorization
        if not auth or not check_auth(auth.username, auth.password):
            return Response(
                "FlowPro: Login Required",
                401, {"WWW-Authenticate": 'Basic realm="FlowPro Documents"'})
        return f(*args, **kwargs)
    return decorated


# ═══════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════

def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else None


def _wants_save() -> bool:
    return request.args.get("save", "").lower() in ("1", "true", "yes")


def _failure(result):
    status = 400 if result.get("rejected") else 500
    return jsonify({"ok": False, "error": result.get("error", "Generation failed")}), status


def _send_artifact(result):
    """Stream the generated bytes back as a download."""
    resp = send_file(
        io.BytesIO(result["data"]),
        mimetype=result["mimetype"],
        as_attachment=True,
        download_name=sanitize_filename(result["filename"]),
    )
    if result.get("path"):
        resp.headers["X-FlowPro-Saved-As"] = os.path.basename(result["path"])
    return resp


# ═══════════════════════════════════════════════════════════════════════
# Routes
# ═══════════════════════════════════════════════════════════════════════

@bp.route("/api/health")
def api_health():
    return jsonify({"ok": True, "service": "flowpro-docs", "version": __version__})


@bp.route("/api/doc-types")
@auth_required
def api_doc_types():
    """Document types the dashboard can offer, with their colors."""
    return jsonify({
        "ok": True,
        "default": DEFAULT_DOC_TYPE,
        "doc_types": [cfg.to_dict() for cfg in DOC_CONFIGS.values()],
        "placeholders": list(PLACEHOLDERS),
    })


@bp.route("/api/jobs/pdf", methods=["POST"])
@auth_required
def api_job_pdf():
    """Body: {"job": {...}, "type": "quote"}. Returns the PDF as an attachment."""
    body = _json_body()
    if body is None or not isinstance(body.get("job"), dict):
        return jsonify({"ok": False, "error": "JSON body with a 'job' object required"}), 400

    result = generate_job_pdf(body["job"], body.get("type") or body.get("doc_type"),
                              save=_wants_save())
    if not result["ok"]:
        return _failure(result)
    return _send_artifact(result)


@bp.route("/api/jobs/template-document", methods=["POST"])
@auth_required
def api_job_template_document():
    """Body: {"job": {...}, "template": {"name", "content"}}. Returns the filled .docx."""
    body = _json_body()
    if body is None or not isinstance(body.get("job"), dict):
        return jsonify({"ok": False, "error": "JSON body with a 'job' object required"}), 400
    if not isinstance(body.get("template"), dict):
        return jsonify({"ok": False, "error": "JSON body with a 'template' object required"}), 400

    result = generate_template_document(body["template"], body["job"], save=_wants_save())
    if not result["ok"]:
        return _failure(result)
    return _send_artifact(result)

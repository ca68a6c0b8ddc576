"""HTTP endpoints for analyzing and importing match workbooks."""

from __future__ import annotations

import logging
from contextlib import closing
from io import BytesIO
from pathlib import Path

from flask import Blueprint, current_app, jsonify, request, send_file
from werkzeug.utils import secure_filename

from matchimport.db.database import get_connection
from matchimport.services.analysis import AnalysisFailure, analyze_excel
from matchimport.services.audit_log import TEMPLATE_DOWNLOAD, AuditLogService
from matchimport.services.import_committer import CommitFailure, commit_excel
from matchimport.services.template import TEMPLATE_FILENAME, build_template
from matchimport.web.schemas import AnalysisResultSchema, CommitReportSchema, FailureSchema

UPLOAD_FIELD = "excelFile"
ALLOWED_EXTENSIONS = {".xlsx", ".xlsm"}
XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

bp = Blueprint("bulk_import", __name__, url_prefix="/api")
logger = logging.getLogger(__name__)


class UploadError(Exception):
    """The request did not carry a usable workbook upload."""


@bp.errorhandler(UploadError)
def upload_error(exc: UploadError):
    return jsonify({"success": False, "error": str(exc)}), 400


def _read_upload() -> tuple[BytesIO, str]:
    upload = request.files.get(UPLOAD_FIELD)
    if upload is None or not upload.filename:
        raise UploadError("No file uploaded")
    file_name = secure_filename(upload.filename) or "upload.xlsx"
    if Path(file_name).suffix.lower() not in ALLOWED_EXTENSIONS:
        raise UploadError("Only .xlsx and .xlsm files are accepted")
    return BytesIO(upload.read()), file_name


def _open_connection():
    return closing(get_connection(current_app.config["DB_PATH"]))


def _internal_error(error: str, exc: Exception):
    return jsonify({"success": False, "error": error, "message": str(exc)}), 500


@bp.route("/health")
def health():
    return jsonify({"status": "ok"})


@bp.route("/admin/udf-bulk/analyze-excel", methods=["POST"])
def analyze_upload():
    stream, file_name = _read_upload()
    logger.info("Analyzing upload %s", file_name)
    try:
        with _open_connection() as connection:
            result = analyze_excel(stream, connection=connection, file_name=file_name)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Analysis of %s failed", file_name)
        return _internal_error("Failed to analyze Excel file", exc)

    if isinstance(result, AnalysisFailure):
        return jsonify(FailureSchema().dump(result)), 400
    return jsonify(AnalysisResultSchema().dump(result))


@bp.route("/admin/bulk-upload/matches", methods=["POST"])
def import_upload():
    stream, file_name = _read_upload()
    logger.info("Importing upload %s", file_name)
    try:
        with _open_connection() as connection:
            report = commit_excel(stream, connection=connection, file_name=file_name)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Import of %s failed", file_name)
        return _internal_error("Failed to process Excel file", exc)

    if isinstance(report, CommitFailure):
        return jsonify(FailureSchema().dump(report)), 400
    return jsonify(CommitReportSchema().dump(report))


@bp.route("/admin/bulk-upload/template")
def download_template():
    with _open_connection() as connection:
        AuditLogService(connection).record(TEMPLATE_DOWNLOAD, "Template downloaded", file_name=TEMPLATE_FILENAME)
    return send_file(
        build_template(),
        mimetype=XLSX_MIMETYPE,
        as_attachment=True,
        download_name=TEMPLATE_FILENAME,
    )

"""
Report Mapper - HTTP API
JSON endpoints over the mapping pipeline for the upload UI.
"""

from __future__ import annotations

import json
import logging
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, Optional

from flask import Flask, request, send_file
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from report_mapper.config import PipelineConfig
from report_mapper.errors import (
    InputMissingError,
    MappingInvalidError,
    ReportMapperError,
    TemplateNotFoundError,
    UnsupportedFileError,
)
from report_mapper.exporter import SUPPORTED_FORMATS, ReportExporter
from report_mapper.pipeline import ReportPipeline, generate_report_id
from report_mapper.validator import validate_columns

# -------------------------------------------------------
# App Setup
# -------------------------------------------------------

app = Flask(__name__)

app.config["MAX_CONTENT_LENGTH"] = 16 * 1024 * 1024
app.config["UPLOAD_FOLDER"] = Path("/tmp")

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {"csv", "txt", "json", "xlsx", "xlsm"}

# -------------------------------------------------------
# Pipeline Setup
# -------------------------------------------------------

pipeline = ReportPipeline(PipelineConfig(log_level=logging.WARNING))

exporter = ReportExporter(pipeline.config.report)

# -------------------------------------------------------
# Helpers
# -------------------------------------------------------

def allowed_file(filename: str) -> bool:
    return "." in filename and filename.rsplit(".", 1)[1].lower() in ALLOWED_EXTENSIONS


def error_response(message: str, status: int, **extra: Any):
    body: Dict[str, Any] = {"success": False, "error": message}
    body.update(extra)
    return body, status


def json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def save_upload() -> Path:
    """Store the multipart ``file`` field under UPLOAD_FOLDER.

    Raises
    ------
    InputMissingError
        If no file was sent.
    UnsupportedFileError
        If the extension is not allowed.
    """
    file: Optional[FileStorage] = request.files.get("file")
    if file is None or not file.filename:
        raise InputMissingError("No file uploaded")

    if not allowed_file(file.filename):
        raise UnsupportedFileError(
            f"Invalid file type. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
        )

    # Unique per upload
    filename = f"{generate_report_id()}_{secure_filename(file.filename)}"
    filepath = app.config["UPLOAD_FOLDER"] / filename
    file.save(filepath)
    return filepath


def form_mapping() -> Optional[Dict[str, str]]:
    """The optional ``mapping`` form field, a JSON object target → source."""
    raw = request.form.get("mapping")
    if not raw:
        return None
    try:
        mapping = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"mapping is not valid JSON: {exc.msg}") from exc
    if not isinstance(mapping, dict):
        raise ValueError("mapping must be a JSON object")
    return mapping


def build_report():
    filepath = save_upload()
    try:
        return pipeline.report_from_file(
            filepath,
            mapping=form_mapping(),
            template_id=request.form.get("templateId") or None,
        )
    finally:
        filepath.unlink(missing_ok=True)


# -------------------------------------------------------
# Error Translation
# -------------------------------------------------------

@app.errorhandler(InputMissingError)
@app.errorhandler(UnsupportedFileError)
def handle_bad_input(exc: ReportMapperError):
    return error_response(str(exc), 400)


@app.errorhandler(TemplateNotFoundError)
def handle_template_not_found(exc: TemplateNotFoundError):
    return error_response(str(exc), 404)


@app.errorhandler(MappingInvalidError)
def handle_invalid_mapping(exc: MappingInvalidError):
    return error_response("Mapping is invalid", 422, mappingErrors=exc.errors)


@app.errorhandler(ValueError)
def handle_value_error(exc: ValueError):
    return error_response(str(exc), 400)


# -------------------------------------------------------
# Mapping Routes
# -------------------------------------------------------

@app.route("/api/templates", methods=["GET"])
def api_templates():
    return {"templates": [t.to_dict() for t in pipeline.registry.list_templates()]}, 200


@app.route("/api/automap", methods=["POST"])
def api_automap():
    """Propose a mapping for a header row."""
    data = json_body()
    columns = data.get("columns")
    if not columns or not isinstance(columns, list):
        raise InputMissingError("columns must be a non-empty list")

    result = pipeline.auto_map(
        [str(c) for c in columns],
        strategy=data.get("strategy") or "strict",
        template_id=data.get("templateId") or None,
    )
    return {"success": True, **result.to_dict()}, 200


@app.route("/api/validate", methods=["POST"])
def api_validate():
    """Pre-flight check that a file has the columns the caller needs."""
    data = json_body()
    result = validate_columns(
        data.get("columns") or [],
        data.get("requiredColumns") or [],
    )
    return result.to_dict(), 200 if result.valid else 400


@app.route("/api/mapping/validate", methods=["POST"])
def api_mapping_validate():
    data = json_body()
    mapping = data.get("mapping")
    if not isinstance(mapping, dict):
        raise ValueError("mapping must be a JSON object")

    template_id = data.get("templateId") or None
    result = pipeline.validate(mapping, data.get("columns") or [], template_id)

    body = result.to_dict()
    if template_id is not None:
        body["stats"] = pipeline.mapping_stats(mapping, template_id).to_dict()
    return body, 200 if result.valid else 400


# -------------------------------------------------------
# Report Routes
# -------------------------------------------------------

@app.route("/api/report", methods=["POST"])
def api_report():
    """Upload a file, map it and return the report with a row preview."""
    report = build_report()
    if not report.success:
        return report.to_dict(), 422

    body = report.to_dict(row_limit=pipeline.config.report.max_preview_rows)
    body["totalRows"] = len(report.data)
    return body, 200


@app.route("/api/export", methods=["POST"])
def api_export():
    fmt = (request.form.get("format") or "xlsx").lower()
    if fmt not in SUPPORTED_FORMATS:
        raise ValueError(f"Unsupported export format: {fmt}")

    report = build_report()
    if not report.success:
        return report.to_dict(), 422

    path = exporter.export(report, fmt, app.config["UPLOAD_FOLDER"])
    try:
        payload = BytesIO(path.read_bytes())
    finally:
        path.unlink(missing_ok=True)

    return send_file(payload, as_attachment=True, download_name=path.name)


# -------------------------------------------------------
# Main
# -------------------------------------------------------

@app.route("/api/health", methods=["GET"])
def api_health():
    return {
        "status": "online",
        "version": "1.0.0",
        "endpoints": [
            "/api/templates",
            "/api/automap",
            "/api/validate",
            "/api/mapping/validate",
            "/api/report",
            "/api/export",
        ],
    }, 200


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000, debug=True)

"""
HTTP Microservice
=================
Flask-based HTTP API for the lab report extractor.

Endpoints:
    POST   /api/parse-pdf     → Extract lab results from an uploaded PDF
    GET    /health            → Health check
    GET    /api/info          → Service and model info

The extractor (and through it the OpenAI client) is created once and
handed to ``create_app``; routes read it from ``app.extensions``.
"""

from __future__ import annotations

import logging
import traceback
from typing import Optional

from flask import Flask, current_app, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import RequestEntityTooLarge

from . import __version__
from .config import Settings, setup_logging
from .engine import LabReportExtractor
from .models import ErrorResponse, ParseResponse
from .rasterizer import ConversionError, PyMuPDFRasterizer
from .validator import UploadValidationError
from .vision import VisionClient

logger = logging.getLogger(__name__)

EXTRACTOR_KEY = "labparser.extractor"
SETTINGS_KEY = "labparser.settings"


def _error(body: ErrorResponse, status: int):
    return jsonify(body.model_dump(exclude_none=True)), status


def build_extractor(settings: Settings) -> LabReportExtractor:
    """Wire the production rasterizer and vision client from settings."""
    return LabReportExtractor(
        rasterizer=PyMuPDFRasterizer(dpi=settings.render_dpi),
        vision=VisionClient.from_settings(settings),
    )


def create_app(
    extractor: Optional[LabReportExtractor] = None,
    settings: Optional[Settings] = None,
    config: Optional[dict] = None,
) -> Flask:
    """Create and configure the Flask app."""
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level, settings.log_file)
    if extractor is None:
        extractor = build_extractor(settings)

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = settings.max_content_length
    if config:
        app.config.update(config)

    CORS(app)

    app.extensions[EXTRACTOR_KEY] = extractor
    app.extensions[SETTINGS_KEY] = settings

    # ─── Health Check ─────────────────────────────────────────────────────

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok"})

    @app.route("/api/info", methods=["GET"])
    def info():
        """Service version and model info."""
        cfg: Settings = current_app.extensions[SETTINGS_KEY]
        ext: LabReportExtractor = current_app.extensions[EXTRACTOR_KEY]
        return jsonify({
            "service": "lab-report-parser",
            "version": __version__,
            "model": getattr(ext.vision, "model", cfg.openai_model),
            "rasterizer": getattr(ext.rasterizer, "name", "unknown"),
            "max_upload_mb": cfg.max_upload_mb,
            "supported_formats": ["pdf"],
        })

    # ─── Parse Endpoint ───────────────────────────────────────────────────

    @app.route("/api/parse-pdf", methods=["POST"])
    def parse_pdf():
        """
        Extract lab test results from an uploaded PDF.

        Expects multipart/form-data with a ``file`` field.
        """
        upload = request.files.get("file")
        if upload is None:
            logger.error("No file uploaded")
            return _error(ErrorResponse(error="No file uploaded"), 400)

        pdf_bytes = upload.read()
        logger.info("=== Starting PDF Processing ===")
        logger.info(
            f"Received file: name={upload.filename!r} "
            f"type={upload.mimetype!r} size={len(pdf_bytes)} bytes"
        )

        ext: LabReportExtractor = current_app.extensions[EXTRACTOR_KEY]

        try:
            result = ext.extract(pdf_bytes)
        except UploadValidationError as e:
            return _error(ErrorResponse(error=e.error, details=e.details), 400)
        except ConversionError as e:
            return _error(ErrorResponse(error=e.error, details=e.details), 400)
        except Exception as e:
            logger.exception("Unhandled error while processing PDF")
            return _error(
                ErrorResponse(
                    success=False,
                    error=str(e) or "Failed to process PDF",
                    details=traceback.format_exc(),
                ),
                500,
            )

        logger.info(f"=== Processing Complete: {result.total_results} results ===")
        response = ParseResponse.from_result(result)
        return jsonify(response.model_dump(mode="json")), 200

    @app.errorhandler(RequestEntityTooLarge)
    def too_large(e):
        return _error(
            ErrorResponse(
                error="File too large",
                details={"maximumSize": app.config["MAX_CONTENT_LENGTH"]},
            ),
            413,
        )

    return app


# ─── Run Server ──────────────────────────────────────────────────────────────


def run_server(
    host: Optional[str] = None,
    port: Optional[int] = None,
    debug: bool = False,
):
    """Start the microservice server."""
    settings = Settings.from_env()

    host = host or settings.host
    port = port or settings.port

    app = create_app(settings=settings)
    logger.info(f"Server running on {host}:{port}")
    app.run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    run_server(debug=True)

"""
Financial Ingest — Workbook Upload API.

JSON endpoints that run an uploaded statement workbook through the
ingestion pipeline and return the merged dataset, anomalies, ratios,
competitive-position score, recommendations and dashboard insights.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Tuple

from flask import Flask, request
from werkzeug.utils import secure_filename

from financial_ingest import __version__
from financial_ingest.config import PipelineConfig
from financial_ingest.errors import FatalIOError, ValidationFailure
from financial_ingest.external import ExternalServices
from financial_ingest.pipeline import FinancialIngestPipeline
from financial_ingest.schema import AnalysisContext, MarketContext

# -------------------------------------------------------
# App Setup
# -------------------------------------------------------

app = Flask(__name__)

app.config["MAX_CONTENT_LENGTH"] = 16 * 1024 * 1024

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {"xlsx", "xlsm"}

# -------------------------------------------------------
# Pipeline Setup
# -------------------------------------------------------

config = PipelineConfig(log_level=logging.WARNING)
pipeline = FinancialIngestPipeline(config=config)
external = ExternalServices(config.external)

# -------------------------------------------------------
# Helpers
# -------------------------------------------------------

def allowed_file(filename: str) -> bool:
    return "." in filename and filename.rsplit(".", 1)[1].lower() in ALLOWED_EXTENSIONS


def _form_float(name: str, default: float) -> float:
    raw = request.form.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"Form field '{name}' must be a number, got {raw!r}")


def build_context() -> AnalysisContext:
    """Assemble the per-request analysis context from form fields."""
    defaults = MarketContext()
    company = request.form.get("company_name", "").strip() or "Company"
    market = MarketContext(
        total_market_size=_form_float("market_size", defaults.total_market_size),
        innovation=_form_float("innovation", defaults.innovation),
        brand_strength=_form_float("brand_strength", defaults.brand_strength),
    )
    sector = request.form.get("sector", "").strip() or AnalysisContext.sector
    return AnalysisContext(
        company_name=company,
        sector=sector,
        report_period=request.form.get("report_period", "").strip(),
        market=market,
        competitors=tuple(external.resolve_competitors(company)),
        sentiment=external.resolve_sentiment(f"{company} {sector}"),
    )


def _error(message: str, status: int) -> Tuple[Dict[str, Any], int]:
    return {"success": False, "error": message}, status


# -------------------------------------------------------
# API
# -------------------------------------------------------

@app.route("/api/parse", methods=["POST"])
def api_parse():

    if "file" not in request.files:
        return _error("No file uploaded", 400)

    file = request.files["file"]

    if file.filename == "":
        return _error("No file selected", 400)

    if not allowed_file(file.filename):
        return _error(
            f"Invalid file type. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}", 400
        )

    filename = secure_filename(file.filename)

    try:
        context = build_context()
    except ValueError as e:
        return _error(str(e), 400)

    try:
        result = pipeline.process_file(file.stream.read(), context)

    except FatalIOError as e:
        logger.warning("Unreadable upload %s: %s", filename, e.detail)
        return _error(e.user_message, 422)

    except ValidationFailure as e:
        return {"success": False, "error": str(e), "validation_errors": e.errors}, 422

    except Exception as e:
        logger.exception("API Error")
        return _error(str(e), 500)

    body = result.to_dict()
    body["filename"] = filename
    body["competitors"] = list(context.competitors)
    body["sentiment"] = {"score": context.sentiment.score, "label": context.sentiment.label}
    return body, 200


@app.route("/")
def home():
    return {
        "status": "financial-ingest server running",
        "message": "Use /api/health to check server status",
        "endpoints": ["/api/parse", "/api/health"],
    }


@app.route("/api/health", methods=["GET"])
def api_health():
    return {
        "status": "online",
        "version": __version__,
        "api": "/api/parse",
        "methods": ["POST"],
    }, 200


if __name__ == "__main__":
    print("=" * 60)
    print("Financial Ingest Server Running")
    print("http://localhost:5000")
    print("=" * 60)

    app.run(host="0.0.0.0", port=5000, debug=True)

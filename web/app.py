"""
FastAPI application for the valuation engine.

A thin HTTP layer over the core: it decodes requests, hands them to the
ingestion, subject and reporting modules, and maps error kinds to status
codes. No valuation logic lives here.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, File, Request, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from core.comp_engine.models import RegressionConfig
from core.errors import VALIDATION_ERROR, ValidationError, ValuationError
from core.ingestion.csv_parser import comp_from_mapping, parse_csv
from core.subject.geocoding import GeocodingClient, attach_coordinates
from core.subject.validator import validate_subject_property
from reporting.assembler import generate_report
from utils.config import Config


logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
INTERNAL_ERROR_MESSAGE = "The valuation could not be completed"


# =============================================================================
# Request Models
# =============================================================================

class ReportGenerateRequest(BaseModel):
    """Body of POST /api/v1/report/generate."""
    subject: Dict[str, Any]
    comps: List[Dict[str, Any]]
    config: Dict[str, Any] = Field(default_factory=dict)


def _error_response(status_code: int, error: ValuationError) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error.to_dict()})


def _regression_config(defaults: RegressionConfig, overrides: Dict[str, Any]) -> RegressionConfig:
    """Request config layered over the environment defaults."""
    merged = dict(overrides)
    for camel, value in defaults.to_dict().items():
        snake = re.sub(r"(?<!^)(?=[A-Z])", "_", camel).lower()
        if camel not in merged and snake not in merged:
            merged[camel] = value
    try:
        return RegressionConfig.from_mapping(merged)
    except (TypeError, ValueError) as e:
        raise ValidationError([str(e)], message="Invalid regression config") from e


def create_app(
    config: Optional[Config] = None,
    geocoder: Optional[GeocodingClient] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Application config (loaded from environment if omitted)
        geocoder: Geocoding client (built from config if omitted)
    """
    config = config or Config.load()
    geocoder = geocoder or GeocodingClient(
        config.google_maps_api_key, timeout=config.geocode_timeout
    )

    app = FastAPI(
        title="Comp Valuation Engine",
        description="Comparable sales regression valuation",
        version="1.0.0",
        debug=config.debug,
    )

    # ==========================================================================
    # Health
    # ==========================================================================
    @app.get("/", include_in_schema=False)
    def root():
        """Root healthcheck. No dependencies, no IO."""
        return {"status": "ok"}

    @app.get("/health", include_in_schema=False)
    def health():
        """Secondary health endpoint. No dependencies, no IO."""
        return {"status": "healthy", "version": "1.0.0"}

    # ==========================================================================
    # Error mapping
    # ==========================================================================
    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": {
                    "code": VALIDATION_ERROR,
                    "message": "Request body failed validation",
                    "details": jsonable_encoder(exc.errors()),
                },
            },
        )

    @app.exception_handler(ValuationError)
    async def valuation_error_handler(request: Request, exc: ValuationError):
        if exc.is_user_fixable:
            logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
            return _error_response(400, exc)

        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": {"code": exc.code, "message": INTERNAL_ERROR_MESSAGE},
            },
        )

    # ==========================================================================
    # Routes
    # ==========================================================================
    @app.post(f"{API_PREFIX}/parser/csv")
    def parse_csv_upload(file: UploadFile = File(...)):
        """Parse an uploaded comps CSV (multipart field ``file``)."""
        raw = file.file.read()
        try:
            content = raw.decode("utf-8-sig")
        except UnicodeDecodeError:
            return JSONResponse(
                status_code=400,
                content={"success": False, "errors": ["CSV file must be UTF-8 encoded"], "warnings": []},
            )

        result = parse_csv(content)
        return JSONResponse(status_code=200 if result.success else 400, content=result.to_dict())

    @app.post(f"{API_PREFIX}/subject/validate")
    def validate_subject(body: Dict[str, Any]):
        """Validate a subject and, where possible, geocode it."""
        result = validate_subject_property(body)
        if not result.valid:
            content = result.to_dict()
            content["code"] = VALIDATION_ERROR
            return JSONResponse(status_code=400, content=content)

        subject = attach_coordinates(result.normalized, geocoder)
        return {"valid": True, "normalized": subject.to_dict(), "errors": []}

    @app.post(f"{API_PREFIX}/report/generate")
    def generate_report_endpoint(request_data: ReportGenerateRequest):
        """Value the subject against the supplied comps and return the report."""
        validation = validate_subject_property(request_data.subject)
        if not validation.valid:
            raise ValidationError(validation.errors, message="Subject property failed validation")

        regression_config = _regression_config(
            config.default_regression_config(), request_data.config
        )
        comps = [
            comp_from_mapping(data, label=f"Comp {i + 1}")
            for i, data in enumerate(request_data.comps)
        ]

        report = generate_report(validation.normalized, comps, regression_config)
        return report.to_dict()

    return app


# Create app instance for uvicorn
app = create_app()

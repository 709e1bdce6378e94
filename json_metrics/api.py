"""
FastAPI application for the JSON metrics parser.

Provides endpoints for:
- Parsing a JSON document with inline rule-sets
- Health checking
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from .config import build_rule_sets
from .engine import Parser, TimeFunc
from .exceptions import ConfigError, JsonMetricsError


logger = logging.getLogger(__name__)


# Pydantic models for API requests/responses


class MetricResult(BaseModel):
    """A single produced metric."""
    name: str
    tags: Dict[str, str] = Field(default_factory=dict)
    fields: Dict[str, Any] = Field(default_factory=dict)
    timestamp: Optional[str] = None


class ParseRequest(BaseModel):
    """Request to parse a JSON document."""
    document: Any = Field(..., description="JSON document to parse")
    rule_sets: List[Dict[str, Any]] = Field(..., description="Rule-set definitions")


class ParseResponse(BaseModel):
    """Response from the parse endpoint."""
    metrics: List[MetricResult]
    total_metrics: int


def create_app(time_func: Optional[TimeFunc] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        time_func: Optional clock used to timestamp metrics (for testing)

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="JSON Metrics API",
        description="REST API for turning JSON documents into metrics",
        version="1.0.0"
    )

    @app.post("/api/parse", response_model=ParseResponse)
    async def parse_document(request: ParseRequest) -> ParseResponse:
        """Parse a document with inline rule-sets.

        Raises:
            HTTPException: 400 for bad configuration, 422 when parsing fails
        """
        try:
            rule_sets = build_rule_sets(request.rule_sets)
        except ConfigError as e:
            logger.error(f"Invalid configuration: {e}")
            raise HTTPException(status_code=400, detail=f"Invalid configuration: {e}")

        parser = Parser(rule_sets, time_func=time_func)
        try:
            metrics = parser.parse_document(request.document)
        except JsonMetricsError as e:
            logger.error(f"Parse failed: {e}")
            raise HTTPException(status_code=422, detail=f"Parse failed: {e}")

        return ParseResponse(
            metrics=[MetricResult(**m.to_dict()) for m in metrics],
            total_metrics=len(metrics),
        )

    @app.get("/health")
    async def health_check() -> Dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


# Create the app instance
app = create_app()

"""Prometheus metrics endpoint."""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint.

    Exposes all registered Prometheus metrics including:
    - search_latency_ms{search_type}
    - search_strategy_errors_total{strategy}
    - search_fallbacks_total{from_strategy}
    - embedding_latency_ms
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

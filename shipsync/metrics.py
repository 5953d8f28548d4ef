# shipsync/metrics.py
from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, Counter, generate_latest

# business counters
ORDERS_SCANNED = Counter(
    "reconcile_orders_scanned_total", "Orders scanned by the reconciler", ["status"]
)
TAG_WRITES = Counter(
    "reconcile_tag_writes_total", "Reconciliation tag writes", ["result"]
)
UPSTREAM_RATE_LIMITED = Counter(
    "upstream_rate_limited_total", "429 responses from upstream APIs", ["service"]
)
CUSTOMS_LINES = Counter(
    "customs_lines_synthesized_total", "Customs declaration lines synthesized"
)

router = APIRouter()


@router.get("/metrics")
def metrics() -> Response:
    return Response(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)

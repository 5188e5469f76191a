from fastapi import APIRouter, Response

from fireguardian.metrics import PROMETHEUS_CONTENT_TYPE, PrometheusExporter, metrics_registry

router = APIRouter(tags=["observability"])


@router.get("/metrics", summary="Prometheus metrics", include_in_schema=False)
async def metrics() -> Response:
    payload = PrometheusExporter(metrics_registry).build_payload()
    return Response(content=payload, media_type=PROMETHEUS_CONTENT_TYPE)

# rtoops/api/routers/metrics.py
from __future__ import annotations

import os

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, CollectorRegistry, generate_latest, multiprocess

router = APIRouter(tags=["metrics"])


@router.get("/metrics/prometheus", include_in_schema=False)
def prometheus_metrics() -> Response:
    """
    单进程直接导出默认 REGISTRY；
    多进程（PROMETHEUS_MULTIPROC_DIR 已设置）时临时合并各 worker 分片。
    """
    if os.environ.get("PROMETHEUS_MULTIPROC_DIR"):
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)
        payload = generate_latest(registry)
    else:
        payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)

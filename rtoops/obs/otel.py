# rtoops/obs/otel.py
# OpenTelemetry 初始化：OTEL_ENABLED 打开才装 provider，默认 trace API 为 no-op
from __future__ import annotations

import logging
from typing import Optional

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from rtoops.core.config import AppSettings, get_settings

logger = logging.getLogger("rtoops")


def setup_tracing(app=None, settings: Optional[AppSettings] = None) -> bool:
    """
    初始化 tracing，成功返回 True。

    - 未开启（默认）直接返回 False，rto.job span 走全局 no-op tracer
    - 端点缺省交给 SDK 读 OTEL_EXPORTER_OTLP_ENDPOINT（再缺省 localhost:4318）
    - app 给了就挂 FastAPI instrumentation，排除 metrics 路径
    """
    settings = settings or get_settings()
    if not settings.OTEL_ENABLED:
        return False

    resource = Resource.create(
        {
            "service.name": settings.OTEL_SERVICE_NAME,
            "deployment.environment": settings.ENV,
        }
    )
    provider = TracerProvider(resource=resource)
    exporter = (
        OTLPSpanExporter(endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT)
        if settings.OTEL_EXPORTER_OTLP_ENDPOINT
        else OTLPSpanExporter()
    )
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    if app is not None:
        FastAPIInstrumentor.instrument_app(app, excluded_urls="metrics")

    logger.info("otel tracing enabled: service=%s", settings.OTEL_SERVICE_NAME)
    return True

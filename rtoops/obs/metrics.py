# rtoops/obs/metrics.py
import time

from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware

http_requests_total = Counter("http_requests_total", "HTTP requests", ["method", "path", "code"])
http_request_duration = Histogram(
    "http_request_duration_seconds", "HTTP request duration seconds", ["method", "path"]
)

# RTO：每个 job 的终态各 +1（status = JobStatus.value）
rto_jobs_total = Counter("rto_jobs_total", "RTO jobs by terminal status", ["status"])

# Shopify 调用：op = order_lookup / returnable / return_create / return_load / return_process
shopify_calls_total = Counter(
    "shopify_calls_total", "Shopify Admin API calls", ["op", "outcome"]
)
shopify_call_duration = Histogram(
    "shopify_call_duration_seconds", "Shopify Admin API call duration seconds", ["op"]
)


def _path_label(request) -> str:
    # 用路由模板做 label，避免把任意 URL 打进 Prometheus 造成标签爆炸
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class PrometheusMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start
        path = _path_label(request)
        http_requests_total.labels(request.method, path, str(response.status_code)).inc()
        http_request_duration.labels(request.method, path).observe(elapsed)
        return response

# rtoops/main.py
from __future__ import annotations

import logging
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from rtoops.core.config import get_settings
from rtoops.core.logging import setup_logging
from rtoops.obs.metrics import PrometheusMiddleware
from rtoops.obs.otel import setup_tracing
from rtoops.router_mount import mount_routers

setup_logging(get_settings().LOG_LEVEL)
logger = logging.getLogger("rtoops")

# 逗号分隔，例如 RTO_CORS_ORIGINS=http://localhost:5173,http://127.0.0.1:5173
_CORS = [o.strip() for o in os.getenv("RTO_CORS_ORIGINS", "").split(",") if o.strip()]

app = FastAPI(
    title="RTO-OPS",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

if _CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_CORS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
app.add_middleware(PrometheusMiddleware)
setup_tracing(app)


@app.exception_handler(Exception)
async def _unhandled_exc(_req: Request, exc: Exception):
    logger.exception("UNHANDLED_EXC: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": str(exc) or "Server error"},
    )


@app.exception_handler(RequestValidationError)
async def _validation_exc(_req: Request, exc: RequestValidationError):
    safe = jsonable_encoder(exc.errors())
    return JSONResponse(status_code=422, content={"success": False, "detail": safe})


# 注册在 starlette 基类上：路由 404 / 405 也走统一格式
@app.exception_handler(StarletteHTTPException)
async def _http_exc(_req: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


mount_routers(app)


@app.get("/")
async def root():
    return {"name": "RTO-OPS", "version": "1.0.0"}


@app.get("/healthz")
async def healthz():
    return {"status": "ok"}

# rtoops/router_mount.py
from __future__ import annotations

from fastapi import FastAPI


def mount_routers(app: FastAPI) -> None:
    from rtoops.api.routers.metrics import router as metrics_router
    from rtoops.api.routers.rto import router as rto_router

    # RTO：/orders/upload-orders + /orders/update-order
    app.include_router(rto_router)

    # 观测
    app.include_router(metrics_router)

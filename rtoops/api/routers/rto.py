# rtoops/api/routers/rto.py
from __future__ import annotations

from typing import Callable, List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse

from rtoops.adapters.shopify_client import ShopifyClient
from rtoops.core.config import AppSettings, get_settings
from rtoops.jobs.rto_errors import UnsupportedUploadError, UploadParseError
from rtoops.jobs.rto_runner import run_batch, run_single
from rtoops.jobs.rto_types import ReturnJob
from rtoops.schemas.rto import (
    JobResultOut,
    RtoBatchOut,
    RtoFailOut,
    RtoManualIn,
    RtoSingleOut,
)
from rtoops.services.rto_upload_parser import build_manual_job, parse_upload

router = APIRouter(prefix="/orders", tags=["rto"])

ClientFactory = Callable[[], ShopifyClient]


def get_client_factory() -> ClientFactory:
    """测试里 override 这个依赖，换成 MockTransport 的 client。"""
    settings = get_settings()
    return lambda: ShopifyClient.from_settings(settings)


def _fail(message: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=RtoFailOut(message=message).model_dump(),
    )


@router.post(
    "/upload-orders",
    response_model=RtoBatchOut,
    responses={400: {"model": RtoFailOut}},
    summary="批量 RTO（CSV/XLSX 上传，或表单单条）",
)
async def upload_orders(
    file: Optional[UploadFile] = File(None),
    orderName: Optional[str] = Form(None),
    quantity: Optional[str] = Form(None),
    returnReason: Optional[str] = Form(None),
    returnReasonNote: Optional[str] = Form(None),
    settings: AppSettings = Depends(get_settings),
    client_factory: ClientFactory = Depends(get_client_factory),
):
    reason = returnReason or settings.RTO_DEFAULT_REASON
    note = returnReasonNote or settings.RTO_DEFAULT_NOTE

    jobs: List[ReturnJob] = []
    if file is not None and file.filename:
        content = await file.read()
        try:
            jobs = parse_upload(file.filename, content, reason=reason, note=note)
        except (UnsupportedUploadError, UploadParseError) as e:
            return _fail(str(e))
    elif orderName:
        job = build_manual_job(orderName, quantity, reason=reason, note=note)
        if job is not None:
            jobs = [job]

    if not jobs:
        return _fail("No valid orders to process")

    async with client_factory() as client:
        results = await run_batch(client, jobs)

    out = RtoBatchOut(results=[JobResultOut.from_result(r) for r in results])
    return JSONResponse(content=out.model_dump(by_alias=True, exclude_none=True))


@router.post(
    "/update-order",
    response_model=RtoSingleOut,
    responses={400: {"model": RtoSingleOut}},
    summary="单条 RTO（JSON）",
)
async def update_order(
    payload: Optional[RtoManualIn] = None,
    settings: AppSettings = Depends(get_settings),
    client_factory: ClientFactory = Depends(get_client_factory),
):
    payload = payload or RtoManualIn()
    job = build_manual_job(
        payload.orderName,
        payload.quantity,
        reason=payload.returnReason,
        note=payload.returnReasonNote,
        default_reason=settings.RTO_DEFAULT_REASON,
        default_note=settings.RTO_DEFAULT_NOTE,
    )
    if job is None:
        return _fail("orderName required")

    async with client_factory() as client:
        ok, result = await run_single(client, job)

    out = RtoSingleOut(success=ok, result=JobResultOut.from_result(result))
    return JSONResponse(
        status_code=200 if ok else 400,
        content=out.model_dump(by_alias=True, exclude_none=True),
    )

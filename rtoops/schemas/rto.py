# rtoops/schemas/rto.py
from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from rtoops.jobs.rto_types import JobResult


class RtoManualIn(BaseModel):
    """单条人工提交（字段名沿用前端既有 camelCase）"""

    orderName: Union[str, int, None] = Field(None, description="订单号，带不带 '#' 都可以；纯数字也接受")
    quantity: Union[int, float, str, None] = Field(1, description="退回数量，默认 1，最小 1")
    returnReason: Optional[str] = Field(None, description="Shopify ReturnReason，默认 OTHER")
    returnReasonNote: Optional[str] = Field(None, description="退货备注")


class JobResultOut(BaseModel):
    order_name: str = Field(..., alias="orderName")
    status: str
    message: Optional[str] = None
    return_id: Optional[str] = Field(None, alias="returnId")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_result(cls, r: JobResult) -> "JobResultOut":
        return cls(
            order_name=r.order_name,
            status=r.status.value,
            message=r.message,
            return_id=r.return_id,
        )


class RtoBatchOut(BaseModel):
    success: bool = True
    message: str = "Processed"
    results: List[JobResultOut]


class RtoSingleOut(BaseModel):
    success: bool
    result: JobResultOut


class RtoFailOut(BaseModel):
    success: bool = False
    message: str

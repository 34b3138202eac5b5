# rtoops/jobs/rto_types.py
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from rtoops.jobs.rto_errors import PlatformPayloadError

ORDER_GID_PREFIX = "gid://shopify/Order/"


class JobStatus(str, enum.Enum):
    NOT_FOUND = "not_found"
    SKIPPED_PAID = "skipped_paid"
    NO_RETURNABLES = "no_returnables"
    ZERO_REMAINING = "zero_remaining"
    RETURN_CREATED = "return_created"
    ERROR = "error"


@dataclass(frozen=True)
class ReturnJob:
    order_name: str
    quantity: int = 1
    reason: str = "OTHER"
    note: str = "RTO via automation"


@dataclass(frozen=True)
class OrderSnapshot:
    order_id: str  # REST 数字 id
    name: str
    financial_status: str  # 已小写；平台可能给 null → ""

    @property
    def order_gid(self) -> str:
        return to_order_gid(self.order_id)


@dataclass(frozen=True)
class ReturnableUnit:
    fulfillment_line_item_id: str
    remaining_quantity: int


@dataclass(frozen=True)
class OpenedReturnLine:
    return_line_item_id: str
    fulfillment_line_item_id: Optional[str]  # 非 ReturnLineItem 类型时平台不给
    quantity: int


@dataclass(frozen=True)
class OpenedReturn:
    return_id: str
    lines: Tuple[OpenedReturnLine, ...] = ()


@dataclass(frozen=True)
class ReverseFulfillmentLine:
    id: str
    fulfillment_line_item_id: Optional[str]
    total_quantity: int


@dataclass(frozen=True)
class StockLocation:
    id: str


@dataclass(frozen=True)
class ReconciledReturn:
    return_lines: Tuple[OpenedReturnLine, ...]
    reverse_lines: Tuple[ReverseFulfillmentLine, ...]
    location: Optional[StockLocation]


@dataclass(frozen=True)
class DispositionEntry:
    return_line_item_id: str
    reverse_fulfillment_line_id: str
    quantity: int
    location_id: str


@dataclass(frozen=True)
class JobResult:
    order_name: str
    status: JobStatus
    message: Optional[str] = None
    return_id: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is JobStatus.RETURN_CREATED

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"orderName": self.order_name, "status": self.status.value}
        if self.message is not None:
            out["message"] = self.message
        if self.return_id is not None:
            out["returnId"] = self.return_id
        return out


def to_order_gid(order_id: Any) -> str:
    s = str(order_id)
    if s.startswith(ORDER_GID_PREFIX):
        return s
    return f"{ORDER_GID_PREFIX}{s}"


# ============================================================
# 平台 payload → 强类型
#   必填字段缺失一律抛 PlatformPayloadError，不把 None 往下游传
# ============================================================


def _req(obj: Any, key: str, path: str) -> Any:
    if not isinstance(obj, Mapping) or obj.get(key) is None:
        raise PlatformPayloadError(path)
    return obj[key]


def _opt(obj: Any, *keys: str) -> Any:
    cur = obj
    for k in keys:
        if not isinstance(cur, Mapping):
            return None
        cur = cur.get(k)
    return cur


def _nodes(conn: Any) -> List[Any]:
    """兼容 connection 的 nodes / edges.node 两种形状。"""
    if not isinstance(conn, Mapping):
        return []
    if conn.get("nodes") is not None:
        return list(conn["nodes"])
    return [e.get("node") for e in (conn.get("edges") or []) if isinstance(e, Mapping)]


def _as_int(value: Any, path: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise PlatformPayloadError(path) from exc


def parse_order(raw: Mapping[str, Any]) -> OrderSnapshot:
    order_id = _req(raw, "id", "order.id")
    return OrderSnapshot(
        order_id=str(order_id),
        name=str(raw.get("name") or ""),
        financial_status=str(raw.get("financial_status") or "").strip().lower(),
    )


def parse_returnable_units(data: Mapping[str, Any]) -> List[ReturnableUnit]:
    if not isinstance(data, Mapping) or "returnableFulfillments" not in data:
        raise PlatformPayloadError("returnableFulfillments")

    out: List[ReturnableUnit] = []
    for i, ful in enumerate(_nodes(data.get("returnableFulfillments"))):
        items = _nodes(_opt(ful, "returnableFulfillmentLineItems"))
        for j, li in enumerate(items):
            path = f"returnableFulfillments[{i}].returnableFulfillmentLineItems[{j}]"
            fli = _req(li, "fulfillmentLineItem", f"{path}.fulfillmentLineItem")
            fli_id = _req(fli, "id", f"{path}.fulfillmentLineItem.id")
            qty = li.get("quantity") or 0
            out.append(
                ReturnableUnit(
                    fulfillment_line_item_id=str(fli_id),
                    remaining_quantity=max(0, _as_int(qty, f"{path}.quantity")),
                )
            )
    return out


def _parse_return_lines(ret: Mapping[str, Any], path: str) -> Tuple[OpenedReturnLine, ...]:
    lines: List[OpenedReturnLine] = []
    for i, node in enumerate(_nodes(ret.get("returnLineItems"))):
        p = f"{path}.returnLineItems[{i}]"
        rli_id = _req(node, "id", f"{p}.id")
        qty = _as_int(_req(node, "quantity", f"{p}.quantity"), f"{p}.quantity")
        fli_id = _opt(node, "fulfillmentLineItem", "id")
        lines.append(
            OpenedReturnLine(
                return_line_item_id=str(rli_id),
                fulfillment_line_item_id=str(fli_id) if fli_id else None,
                quantity=qty,
            )
        )
    return tuple(lines)


def parse_opened_return(ret: Optional[Mapping[str, Any]]) -> OpenedReturn:
    if not isinstance(ret, Mapping):
        raise PlatformPayloadError("returnCreate.return")
    rid = _req(ret, "id", "returnCreate.return.id")
    return OpenedReturn(
        return_id=str(rid),
        lines=_parse_return_lines(ret, "returnCreate.return"),
    )


def parse_reconciliation(data: Mapping[str, Any]) -> ReconciledReturn:
    ret = _req(data, "return", "return")
    return_lines = _parse_return_lines(ret, "return")

    reverse: List[ReverseFulfillmentLine] = []
    for i, rfo in enumerate(_nodes(ret.get("reverseFulfillmentOrders"))):
        for j, li in enumerate(_nodes(_opt(rfo, "lineItems"))):
            p = f"return.reverseFulfillmentOrders[{i}].lineItems[{j}]"
            rid = _req(li, "id", f"{p}.id")
            total = _as_int(_req(li, "totalQuantity", f"{p}.totalQuantity"), f"{p}.totalQuantity")
            fli_id = _opt(li, "fulfillmentLineItem", "id")
            reverse.append(
                ReverseFulfillmentLine(
                    id=str(rid),
                    fulfillment_line_item_id=str(fli_id) if fli_id else None,
                    total_quantity=total,
                )
            )

    location: Optional[StockLocation] = None
    for fo in _nodes(_opt(data, "order", "fulfillmentOrders")):
        loc_id = _opt(fo, "assignedLocation", "location", "id")
        if loc_id:
            location = StockLocation(id=str(loc_id))
            break

    return ReconciledReturn(
        return_lines=return_lines,
        reverse_lines=tuple(reverse),
        location=location,
    )


def user_error_messages(payload: Optional[Mapping[str, Any]]) -> Sequence[str]:
    errs = _opt(payload, "userErrors") or []
    return [str(e.get("message") or "") for e in errs if isinstance(e, Mapping)]

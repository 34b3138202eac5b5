# rtoops/services/rto_upload_parser.py
from __future__ import annotations

import csv
import io
import re
from typing import Any, Iterable, List, Optional, Sequence

import pandas as pd

from rtoops.jobs.rto_errors import UnsupportedUploadError, UploadParseError
from rtoops.jobs.rto_types import ReturnJob

CSV_EXTS = {"csv"}
EXCEL_EXTS = {"xlsx", "xlsm", "xls"}

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def coerce_quantity(raw: Any) -> int:
    """
    数量列宽松解析：取开头的整数部分（"2.7" → 2，"3 pcs" → 3），
    空 / 非数字 → 1；最终至少为 1。
    """
    if raw is None:
        return 1
    if isinstance(raw, float):
        if raw != raw:  # NaN
            return 1
        return max(1, int(raw))
    if isinstance(raw, int) and not isinstance(raw, bool):
        return max(1, raw)

    m = _LEADING_INT.match(str(raw))
    if not m:
        return 1
    return max(1, int(m.group(1)))


def _cell_str(raw: Any) -> str:
    if raw is None:
        return ""
    if isinstance(raw, float):
        if raw != raw:  # NaN
            return ""
        # Excel 纯数字订单号：1001.0 → "1001"
        if raw.is_integer():
            return str(int(raw))
    return str(raw).strip()


def _rows_to_jobs(rows: Iterable[Sequence[Any]], *, reason: str, note: str) -> List[ReturnJob]:
    jobs: List[ReturnJob] = []
    for row in rows:
        if not row:
            continue
        order_name = _cell_str(row[0])
        if not order_name:
            continue
        qty = coerce_quantity(row[1] if len(row) > 1 else None)
        jobs.append(ReturnJob(order_name=order_name, quantity=qty, reason=reason, note=note))
    return jobs


def _read_csv_rows(content: bytes) -> List[List[str]]:
    text = content.decode("utf-8-sig", errors="replace")
    return [row for row in csv.reader(io.StringIO(text))]


EXCEL_ENGINES = {"xlsx": "openpyxl", "xlsm": "openpyxl", "xls": "xlrd"}


def _read_excel_rows(content: bytes, ext: str) -> List[List[Any]]:
    # 只读第一个 sheet，不把首行当表头；dtype=object 防止整列被抬成 float64
    try:
        df = pd.read_excel(
            io.BytesIO(content),
            sheet_name=0,
            header=None,
            dtype=object,
            engine=EXCEL_ENGINES[ext],
        )
    except Exception as exc:
        raise UploadParseError(f"Error reading file: {exc}") from exc
    return df.values.tolist()


def file_ext(filename: Optional[str]) -> str:
    name = (filename or "").strip().lower()
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[-1]


def parse_upload(
    filename: Optional[str],
    content: bytes,
    *,
    reason: str = "OTHER",
    note: str = "RTO via automation",
) -> List[ReturnJob]:
    """
    把上传的 CSV / Excel 解析为 ReturnJob 列表：
      - 第 1 列：订单号（去空格；空行跳过）
      - 第 2 列：数量（可选，默认 1，最小 1）
    """
    ext = file_ext(filename)
    if ext in CSV_EXTS:
        rows: List[Sequence[Any]] = list(_read_csv_rows(content))
    elif ext in EXCEL_EXTS:
        rows = list(_read_excel_rows(content, ext))
    else:
        raise UnsupportedUploadError(filename or "")
    return _rows_to_jobs(rows, reason=reason, note=note)


def build_manual_job(
    order_name: Any,
    quantity: Any = 1,
    *,
    reason: Optional[str] = None,
    note: Optional[str] = None,
    default_reason: str = "OTHER",
    default_note: str = "RTO via automation",
) -> Optional[ReturnJob]:
    """单条人工提交；订单号为空返回 None。"""
    name = _cell_str(order_name)
    if not name:
        return None
    return ReturnJob(
        order_name=name,
        quantity=coerce_quantity(quantity),
        reason=reason or default_reason,
        note=note or default_note,
    )

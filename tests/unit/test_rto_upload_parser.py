# tests/unit/test_rto_upload_parser.py
import io

import pandas as pd
import pytest
from openpyxl import Workbook

from rtoops.jobs.rto_errors import UnsupportedUploadError, UploadParseError
from rtoops.services import rto_upload_parser
from rtoops.services.rto_upload_parser import build_manual_job, file_ext, parse_upload


def test_csv_rows_with_optional_quantity():
    content = "MA1001,3\n#MA1002\n\n ,4\nMA1003,abc\nMA1004,0,extra\r\nMA1005, 2 \n".encode("utf-8")

    jobs = parse_upload("orders.CSV", content, reason="OTHER", note="n")

    assert [(j.order_name, j.quantity) for j in jobs] == [
        ("MA1001", 3),
        ("#MA1002", 1),
        ("MA1003", 1),
        ("MA1004", 1),
        ("MA1005", 2),
    ]
    assert all(j.reason == "OTHER" and j.note == "n" for j in jobs)


def test_csv_with_bom_keeps_first_order_name():
    jobs = parse_upload("o.csv", "\ufeffMA1,2\n".encode("utf-8"))
    assert jobs[0].order_name == "MA1"


def test_xlsx_first_sheet_no_header():
    wb = Workbook()
    ws = wb.active
    ws.append(["MA2001", 2])
    ws.append(["#MA2002"])
    ws.append([None, 5])
    ws.append([2003, "4"])
    ws.append(["MA2004", 2.9])
    buf = io.BytesIO()
    wb.save(buf)

    jobs = parse_upload("orders.xlsx", buf.getvalue())

    assert [(j.order_name, j.quantity) for j in jobs] == [
        ("MA2001", 2),
        ("#MA2002", 1),
        ("2003", 4),
        ("MA2004", 2),
    ]


def _xlsx(rows):
    wb = Workbook()
    ws = wb.active
    for r in rows:
        ws.append(r)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def test_xlsx_numeric_order_names_with_blank_quantity():
    content = _xlsx([[1001, 2], [1002], [None], [1003]])

    jobs = parse_upload("orders.xlsx", content)

    assert [(j.order_name, j.quantity) for j in jobs] == [("1001", 2), ("1002", 1), ("1003", 1)]


def test_xls_is_read_with_xlrd(monkeypatch):
    seen = {}

    def fake_read_excel(buf, **kw):
        seen.update(kw)
        return pd.DataFrame([[1001.0, 2.0], ["MA2", float("nan")]], dtype=object)

    monkeypatch.setattr(rto_upload_parser.pd, "read_excel", fake_read_excel)

    jobs = parse_upload("legacy.XLS", b"\xd0\xcf\x11\xe0")

    assert seen["engine"] == "xlrd"
    assert seen["dtype"] is object
    assert [(j.order_name, j.quantity) for j in jobs] == [("1001", 2), ("MA2", 1)]


def test_corrupt_xlsx_raises_parse_error():
    with pytest.raises(UploadParseError) as ei:
        parse_upload("orders.xlsx", b"this is not a zip")
    assert str(ei.value).startswith("Error reading file: ")


def test_unsupported_extension():
    with pytest.raises(UnsupportedUploadError) as ei:
        parse_upload("orders.pdf", b"%PDF")
    assert str(ei.value) == "Unsupported file type"
    assert file_ext("noext") == ""


def test_build_manual_job_defaults():
    job = build_manual_job("  #MA9 ", "0", reason=None, note="")
    assert job is not None
    assert (job.order_name, job.quantity, job.reason, job.note) == ("#MA9", 1, "OTHER", "RTO via automation")
    assert build_manual_job("   ") is None
    assert build_manual_job(None) is None

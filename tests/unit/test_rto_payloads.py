# tests/unit/test_rto_payloads.py
import pytest

from rtoops.jobs.rto_errors import PlatformPayloadError
from rtoops.jobs.rto_types import (
    JobResult,
    JobStatus,
    parse_opened_return,
    parse_order,
    parse_reconciliation,
    parse_returnable_units,
    to_order_gid,
)


def test_parse_order_normalizes_status():
    o = parse_order({"id": 12345, "name": "#MA1", "financial_status": "Paid"})
    assert o.order_id == "12345"
    assert o.financial_status == "paid"
    assert o.order_gid == "gid://shopify/Order/12345"


def test_parse_order_null_status_and_missing_id():
    assert parse_order({"id": 1, "financial_status": None}).financial_status == ""
    with pytest.raises(PlatformPayloadError) as ei:
        parse_order({"name": "#MA1"})
    assert ei.value.path == "order.id"


def test_to_order_gid_is_idempotent():
    assert to_order_gid("gid://shopify/Order/9") == "gid://shopify/Order/9"
    assert to_order_gid(9) == "gid://shopify/Order/9"


def test_parse_returnable_units_flattens_in_order():
    data = {
        "returnableFulfillments": {
            "nodes": [
                {
                    "returnableFulfillmentLineItems": {
                        "nodes": [
                            {"quantity": 2, "fulfillmentLineItem": {"id": "F1"}},
                            {"quantity": None, "fulfillmentLineItem": {"id": "F2"}},
                        ]
                    }
                },
                {"returnableFulfillmentLineItems": {"nodes": [{"quantity": 1, "fulfillmentLineItem": {"id": "F3"}}]}},
                {"returnableFulfillmentLineItems": None},
            ]
        }
    }
    units = parse_returnable_units(data)
    assert [(u.fulfillment_line_item_id, u.remaining_quantity) for u in units] == [
        ("F1", 2),
        ("F2", 0),
        ("F3", 1),
    ]


def test_parse_returnable_units_rejects_missing_fulfillment_line_item():
    data = {"returnableFulfillments": {"nodes": [{"returnableFulfillmentLineItems": {"nodes": [{"quantity": 1}]}}]}}
    with pytest.raises(PlatformPayloadError):
        parse_returnable_units(data)
    with pytest.raises(PlatformPayloadError):
        parse_returnable_units({})


def test_parse_returnable_units_null_connection_is_empty():
    assert parse_returnable_units({"returnableFulfillments": None}) == []


def test_parse_opened_return_edges_shape():
    ret = {
        "id": "R1",
        "returnLineItems": {
            "edges": [
                {"node": {"id": "RL1", "quantity": 2, "fulfillmentLineItem": {"id": "F1"}}},
                {"node": {"id": "RL2", "quantity": 1}},
            ]
        },
    }
    opened = parse_opened_return(ret)
    assert opened.return_id == "R1"
    assert [(ln.return_line_item_id, ln.fulfillment_line_item_id, ln.quantity) for ln in opened.lines] == [
        ("RL1", "F1", 2),
        ("RL2", None, 1),
    ]


def test_parse_opened_return_requires_id_and_quantity():
    with pytest.raises(PlatformPayloadError):
        parse_opened_return(None)
    with pytest.raises(PlatformPayloadError):
        parse_opened_return({"returnLineItems": {"edges": []}})
    with pytest.raises(PlatformPayloadError):
        parse_opened_return({"id": "R1", "returnLineItems": {"edges": [{"node": {"id": "RL1"}}]}})


def test_parse_reconciliation_takes_first_assigned_location():
    data = {
        "return": {
            "id": "R1",
            "returnLineItems": {"edges": [{"node": {"id": "RL1", "quantity": 1, "fulfillmentLineItem": {"id": "F1"}}}]},
            "reverseFulfillmentOrders": {
                "nodes": [
                    {"lineItems": {"nodes": [{"id": "V1", "fulfillmentLineItem": {"id": "F1"}, "totalQuantity": 1}]}}
                ]
            },
        },
        "order": {
            "fulfillmentOrders": {
                "nodes": [
                    {"assignedLocation": None},
                    {"assignedLocation": {"location": {"id": "L2"}}},
                    {"assignedLocation": {"location": {"id": "L3"}}},
                ]
            }
        },
    }
    rec = parse_reconciliation(data)
    assert rec.location is not None and rec.location.id == "L2"
    assert rec.reverse_lines[0].id == "V1"
    assert rec.reverse_lines[0].total_quantity == 1


def test_parse_reconciliation_without_order_has_no_location():
    rec = parse_reconciliation({"return": {"id": "R1"}, "order": None})
    assert rec.location is None
    assert rec.return_lines == ()
    with pytest.raises(PlatformPayloadError):
        parse_reconciliation({"return": None})


def test_job_result_to_dict_omits_absent_fields():
    assert JobResult(order_name="MA1", status=JobStatus.RETURN_CREATED, return_id="R9").to_dict() == {
        "orderName": "MA1",
        "status": "return_created",
        "returnId": "R9",
    }

# rtoops/jobs/rto_config.py
from __future__ import annotations

# 订单号前缀：上游系统有的带 '#'，有的不带，查询时两种都试
ORDER_NAME_MARKER = "#"

# 这些 financial_status 的订单不做自动退回（已付款订单需人工处理）
SKIP_FINANCIAL_STATUSES = frozenset({"paid"})

# 入库处置类型
DISPOSITION_TYPE = "RESTOCKED"

# 终态文案（对外可见，前端/运营按文案排查）
MSG_NOT_FOUND = "Order not found"
MSG_SKIPPED_PAID = "Order financial status is Paid; skipped."
MSG_NO_RETURNABLES = "No returnable items found"
MSG_ZERO_REMAINING = "No remaining quantity to return"

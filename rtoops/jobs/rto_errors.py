# rtoops/jobs/rto_errors.py
from __future__ import annotations

from typing import Optional, Sequence


class RtoError(Exception):
    pass


# ---------- 平台侧 ----------


class PlatformError(RtoError):
    pass


class PlatformConfigError(PlatformError):
    pass


class PlatformTransportError(PlatformError):
    """超时 / 连接失败 / HTTP >= 400。"""

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class PlatformGraphQLError(PlatformError):
    """GraphQL 顶层 errors。"""

    def __init__(self, messages: Sequence[str]):
        self.messages = [m for m in messages if m]
        super().__init__("; ".join(self.messages) or "GraphQL error")


class PlatformUserError(PlatformError):
    """mutation payload 里的 userErrors（业务拒绝，不是传输问题）。"""

    def __init__(self, op: str, messages: Sequence[str]):
        self.op = op
        self.messages = [m for m in messages if m]
        super().__init__("; ".join(self.messages) or f"{op} rejected")


class PlatformPayloadError(PlatformError):
    """平台返回缺少必填字段。"""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Malformed platform payload: missing {path}")


# ---------- 对账 / 入库 ----------


class LocationNotFound(RtoError):
    def __init__(self) -> None:
        super().__init__("No location found to restock")


class ReconciliationError(RtoError):
    def __init__(self) -> None:
        super().__init__("Could not map return lines for disposition")


# ---------- 上传 ----------


class UnsupportedUploadError(RtoError):
    def __init__(self, filename: str):
        self.filename = filename
        super().__init__("Unsupported file type")


class UploadParseError(RtoError):
    pass

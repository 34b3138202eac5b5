# rtoops/core/config.py
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    全局应用配置（环境变量 / .env）

    Shopify 凭据不给默认值：缺失时在构造 ShopifyClient 时直接报错，
    不在 import 阶段炸掉，方便测试注入 fake transport。
    """

    # 运行环境
    ENV: str = Field(default="dev")
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: Optional[str] = Field(default=None, description="可选：额外写入的日志文件路径")

    # Shopify Admin API
    SHOPIFY_STORE_NAME: str = Field(default="", description="店铺子域名，例如 my-store（不含 .myshopify.com）")
    SHOPIFY_ACCESS_TOKEN: str = Field(default="", description="Admin API access token")
    SHOPIFY_API_VERSION: str = Field(default="2025-07")
    SHOPIFY_TIMEOUT_SECONDS: float = Field(default=20.0, gt=0)
    SHOPIFY_RATE_LIMIT_QPS: float = Field(default=2.0, gt=0)

    # RTO 批处理
    RTO_MAX_WORKERS: int = Field(default=1, ge=1, description="1 = 严格串行（默认）")
    RTO_DEFAULT_REASON: str = Field(default="OTHER")
    RTO_DEFAULT_NOTE: str = Field(default="RTO via automation")

    # OpenTelemetry（默认关闭）
    OTEL_ENABLED: bool = Field(default=False)
    OTEL_SERVICE_NAME: str = Field(default="rtoops")
    OTEL_EXPORTER_OTLP_ENDPOINT: Optional[str] = Field(
        default=None, description="OTLP/HTTP traces 端点，例如 http://otel-collector:4318/v1/traces"
    )

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> AppSettings:
    """全局单例设置入口。"""
    return AppSettings()

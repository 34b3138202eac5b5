# rtoops/core/logging.py
import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    统一日志：
    - 根 logger 设级别，stdout 单 handler（先清旧 handler，避免重复输出）
    - log_file：批量跑 RTO 时额外落一份文件，方便事后按订单号 grep
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    for h in list(root.handlers):
        root.removeHandler(h)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    for h in handlers:
        h.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(h)

    # httpx 每个请求一条 INFO，几百单的批次会刷屏；DEBUG 时才放开
    logging.getLogger("httpx").setLevel(
        logging.INFO if level.upper() == "DEBUG" else logging.WARNING
    )

"""
日志配置 - 控制台 + 按天轮转的文件日志
"""

import logging
import os
from logging.handlers import TimedRotatingFileHandler
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_HANDLER_MARK = "_otpvault_handler"


def setup_logging(
    log_level: str = "INFO",
    log_dir: Optional[str] = None,
    log_file_prefix: str = "otpvault",
    backup_count: int = 14,
) -> None:
    """
    配置根logger

    Args:
        log_level: 日志级别 (DEBUG/INFO/WARNING/ERROR)
        log_dir: 日志目录；为空时只输出到控制台
        log_file_prefix: 日志文件名前缀，例如 otpvault.log, otpvault.log.2026-02-01
        backup_count: 保留的历史日志天数
    """
    root = logging.getLogger()
    root.setLevel(log_level.upper())

    # 重复调用时先移除之前安装的handler
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_MARK, False):
            root.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    setattr(console, _HANDLER_MARK, True)
    root.addHandler(console)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            os.path.join(log_dir, f"{log_file_prefix}.log"),
            when="midnight",
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.suffix = "%Y-%m-%d"
        file_handler.setFormatter(formatter)
        setattr(file_handler, _HANDLER_MARK, True)
        root.addHandler(file_handler)

    # SQLAlchemy 的 SQL 日志过于冗长
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

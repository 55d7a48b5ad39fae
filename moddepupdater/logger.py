"""
日志模块

使用 loguru 提供统一的日志记录功能，并记录会话日志以便保存到文件。
"""

import os
import sys
from datetime import datetime
from typing import List, Optional

import aiofiles
from loguru import logger

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}"


def setup_logger(
    level: Optional[str] = None,
    sink=sys.stdout,
    enqueue: bool = True,
    colorize: bool = True,
) -> None:
    """
    设置日志记录器

    Args:
        level: 日志级别 (DEBUG, INFO, WARNING, ERROR)
        sink: 输出目标
        enqueue: 是否启用队列（线程安全）
        colorize: 是否启用颜色
    """
    # 从环境变量获取日志级别
    if level is None:
        level = "DEBUG" if os.environ.get("MODDEP_DEBUG", "0") == "1" else "INFO"

    # 移除默认处理器
    logger.remove()

    logger.add(
        sink=sink,
        format=LOG_FORMAT,
        enqueue=enqueue,
        level=level,
        colorize=colorize,
        backtrace=(level == "DEBUG"),
        diagnose=(level == "DEBUG"),
    )

    if level == "DEBUG":
        logger.debug("DEBUG 模式已启用")


class SessionLog:
    """
    会话日志

    作为 loguru 的 sink 收集本次会话的全部日志行，
    会话结束时可写入日志目录。
    """

    def __init__(self, log_dir: str, level: str = "INFO"):
        self.log_dir = os.path.expanduser(log_dir)
        self.level = level
        self._lines: List[str] = []
        self._handler_id: Optional[int] = None

    def attach(self) -> None:
        """挂载到 loguru"""
        if self._handler_id is None:
            self._handler_id = logger.add(
                self._write, format=LOG_FORMAT, level=self.level, colorize=False
            )

    def detach(self) -> None:
        """从 loguru 卸载"""
        if self._handler_id is not None:
            logger.remove(self._handler_id)
            self._handler_id = None

    def _write(self, message) -> None:
        self._lines.append(str(message).rstrip("\n"))

    @property
    def lines(self) -> List[str]:
        return list(self._lines)

    @property
    def content(self) -> str:
        return "\n".join(self._lines)

    def clear(self) -> None:
        self._lines.clear()

    async def flush(self) -> Optional[str]:
        """
        将会话日志写入文件（尽力而为）

        Returns:
            日志文件路径；没有内容或写入失败时返回 None
        """
        content = self.content.strip()
        if not content:
            return None

        ts = datetime.now().strftime("%Y%m%d-%H%M%S")
        path = os.path.join(self.log_dir, f"log-{ts}.txt")
        try:
            os.makedirs(self.log_dir, exist_ok=True)
            async with aiofiles.open(path, "w", encoding="utf-8") as f:
                await f.write(content + "\n")
        except OSError as e:
            logger.warning(f"保存会话日志失败: {e}")
            return None
        return path


__all__ = ["logger", "setup_logger", "SessionLog"]

"""
ModDepUpdater 后端命令层

包含命令接口抽象和基于 HTTP 的实现。
"""

from moddepupdater.backend.base import Backend
from moddepupdater.backend.http import HttpBackend

__all__ = [
    "Backend",
    "HttpBackend",
]

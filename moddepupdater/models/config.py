"""
应用配置模型

定义后端、存储、日志等配置项，支持从字典构建。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from moddepupdater.exceptions import ConfigError

DEFAULT_BASE_URL = "http://127.0.0.1:1420"
DEFAULT_HOME = "~/.moddepupdater"


@dataclass
class BackendConfig:
    """后端命令接口配置"""

    base_url: str = DEFAULT_BASE_URL
    timeout: float = 60.0


@dataclass
class StorageConfig:
    """表单状态存储配置"""

    state_file: str = f"{DEFAULT_HOME}/state.json"


@dataclass
class LoggingConfig:
    """日志配置"""

    log_dir: str = f"{DEFAULT_HOME}/logs"
    level: Optional[str] = None


@dataclass
class AppConfig:
    """应用主配置"""

    backend: BackendConfig = field(default_factory=BackendConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    language: str = "en"

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "AppConfig":
        """从配置字典构建"""
        data = data or {}
        if not isinstance(data, dict):
            raise ConfigError("配置文件顶层必须是一个表")

        backend = data.get("backend", {}) or {}
        storage = data.get("storage", {}) or {}
        logging_cfg = data.get("logging", {}) or {}

        try:
            timeout = float(backend.get("timeout", 60.0))
        except (TypeError, ValueError):
            raise ConfigError(
                "backend.timeout 必须是数字",
                context={"value": backend.get("timeout")},
            )
        if timeout <= 0:
            raise ConfigError("backend.timeout 必须大于 0", context={"value": timeout})

        return cls(
            backend=BackendConfig(
                base_url=str(backend.get("base_url", DEFAULT_BASE_URL)).rstrip("/"),
                timeout=timeout,
            ),
            storage=StorageConfig(
                state_file=str(
                    storage.get("state_file", f"{DEFAULT_HOME}/state.json")
                ),
            ),
            logging=LoggingConfig(
                log_dir=str(logging_cfg.get("log_dir", f"{DEFAULT_HOME}/logs")),
                level=logging_cfg.get("level"),
            ),
            language=str(data.get("language", "en")),
        )

"""
ModDepUpdater 统一异常体系

提供分层的异常结构，支持错误代码、上下文信息和 JSON 序列化。
"""

from typing import Any, Dict, Optional


class ModDepError(Exception):
    """ModDepUpdater 基础异常类"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self._get_default_code()
        self.context = context or {}

    def _get_default_code(self) -> str:
        """获取默认错误代码"""
        return "E000"

    def to_dict(self) -> Dict[str, Any]:
        """将异常转换为字典格式"""
        return {
            "error": True,
            "code": self.code,
            "message": self.message,
            "context": self.context,
            "type": self.__class__.__name__,
        }

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class ConfigError(ModDepError):
    """配置相关错误"""

    def _get_default_code(self) -> str:
        return "E100"


class ConfigParseError(ConfigError):
    """配置解析错误"""

    def _get_default_code(self) -> str:
        return "E101"


class BackendError(ModDepError):
    """后端命令调用错误"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        status: Optional[int] = None,
    ):
        super().__init__(message, code, context)
        self.status = status
        if status is not None:
            self.context["status_code"] = status

    def _get_default_code(self) -> str:
        return "E200"


class OptionsLookupError(BackendError):
    """项目选项（版本/加载器）获取失败"""

    def _get_default_code(self) -> str:
        return "E201"


class CandidateListError(BackendError):
    """候选版本列表获取失败"""

    def _get_default_code(self) -> str:
        return "E202"


class BatchLookupError(BackendError):
    """批量项目查询失败"""

    def _get_default_code(self) -> str:
        return "E203"


class ApplyError(BackendError):
    """写入 build.gradle 失败"""

    def _get_default_code(self) -> str:
        return "E204"


class ValidationError(ModDepError):
    """本地校验错误（不涉及后端）"""

    def _get_default_code(self) -> str:
        return "E300"


class NoMatchError(ValidationError):
    """没有匹配的候选版本"""

    def _get_default_code(self) -> str:
        return "E301"


class NoSelectionError(ValidationError):
    """缺少必需的输入或选择"""

    def _get_default_code(self) -> str:
        return "E302"


__all__ = [
    # 基础异常
    "ModDepError",
    # 配置异常
    "ConfigError",
    "ConfigParseError",
    # 后端异常
    "BackendError",
    "OptionsLookupError",
    "CandidateListError",
    "BatchLookupError",
    "ApplyError",
    # 校验异常
    "ValidationError",
    "NoMatchError",
    "NoSelectionError",
]

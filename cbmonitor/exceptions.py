"""
异常定义

配置类错误在启动阶段致命；单次调用错误只影响当前集群的本轮采集。
"""

from typing import Optional


class MonitorError(Exception):
    """监控相关错误基类"""
    pass


class ConfigError(MonitorError):
    """配置错误（启动阶段，进程退出）"""
    pass


class InvalidTargetError(ConfigError):
    """集群目标无效（如 hostname 为空）"""
    pass


class TransportError(MonitorError):
    """网络错误或超时"""
    pass


class StatusError(MonitorError):
    """HTTP 状态码不是 200"""

    def __init__(self, code: int, url: Optional[str] = None):
        self.code = code
        self.url = url
        message = f"invalid status response code: {code}"
        if url:
            message = f"{message} ({url})"
        super().__init__(message)


class DecodeError(MonitorError):
    """响应体无法解析为预期结构"""
    pass

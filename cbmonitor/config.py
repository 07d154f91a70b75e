"""
配置加载模块

从 config.yaml 加载配置（JSON 也可，YAML 是其超集），支持 Pydantic 验证和环境变量覆盖。

环境变量示例：
    CBMONITOR_CONFIG_PATH=/etc/cbmonitor/config.yaml
    CBMONITOR_COLLECTOR__INTERVAL=30
    CBMONITOR_DEFAULT_AUTH__PASSWORD=secret
"""

import os
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigError, InvalidTargetError
from .models import ClusterTarget

DEFAULT_PORTS = {"http": 8091, "https": 18091}


class AuthConfig(BaseModel):
    """Basic Auth 凭据"""
    user: str = ""
    password: str = Field(default="", repr=False)


class ClusterConfig(BaseModel):
    """单个集群配置（未填写的字段使用默认值）"""
    name: str = ""
    hostname: str = ""
    protocol: str = ""
    port: Optional[int] = None
    user: Optional[str] = None
    password: Optional[str] = Field(default=None, repr=False)


class CollectorConfig(BaseModel):
    """采集配置"""
    interval: float = Field(default=15, gt=0, description="采集间隔（秒）")
    timeout: float = Field(default=3, gt=0, description="单次 HTTP 调用超时（秒）")
    max_concurrency: int = Field(default=0, ge=0, description="最大并发集群数，0 为不限制")


class APIConfig(BaseModel):
    """API 服务配置"""
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: List[str] = ["*"]


class LoggingConfig(BaseModel):
    """日志配置"""
    level: str = "INFO"
    file: Optional[str] = None


class AppConfig(BaseSettings):
    """应用配置（完整配置）"""
    model_config = SettingsConfigDict(
        env_prefix="CBMONITOR_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    default_auth: AuthConfig = Field(default_factory=AuthConfig)
    clusters: List[ClusterConfig] = Field(default_factory=list)
    collector: CollectorConfig = Field(default_factory=CollectorConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # 环境变量优先于配置文件
        return env_settings, init_settings

    def build_targets(self, default_password: str = "") -> List[ClusterTarget]:
        """
        生成集群目标列表

        默认值：
        - protocol: http
        - port: http 为 8091，https 为 18091
        - user/password: default_auth，密码仍为空时使用 default_password
        - name: hostname

        Raises:
            InvalidTargetError: hostname 为空
            ConfigError: 协议不支持或名称重复
        """
        targets = []
        seen = set()

        for index, cluster in enumerate(self.clusters):
            hostname = cluster.hostname.strip()
            if not hostname:
                raise InvalidTargetError(
                    f"Cluster #{index} ({cluster.name or 'unnamed'}) has an empty hostname"
                )

            protocol = (cluster.protocol or "http").lower()
            if protocol not in DEFAULT_PORTS:
                raise ConfigError(f"Cluster {cluster.name or hostname}: unsupported protocol '{protocol}'")

            name = cluster.name or hostname
            if name in seen:
                raise ConfigError(f"Duplicate cluster name '{name}'")
            seen.add(name)

            user = cluster.user if cluster.user is not None else self.default_auth.user
            password = cluster.password if cluster.password is not None else self.default_auth.password

            targets.append(ClusterTarget(
                name=name,
                hostname=hostname,
                protocol=protocol,
                port=cluster.port or DEFAULT_PORTS[protocol],
                username=user,
                password=password or default_password,
            ))

        return targets


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """
    加载配置文件

    优先级：
    1. 参数指定的路径
    2. 环境变量 CBMONITOR_CONFIG_PATH
    3. 默认路径 ./config.yaml

    Raises:
        ConfigError: 文件不存在、格式错误或校验失败
    """
    if config_path is None:
        config_path = os.environ.get("CBMONITOR_CONFIG_PATH", "config.yaml")

    config_file = Path(config_path)
    if not config_file.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read config file {config_path}: {e}") from e

    if not isinstance(raw_config, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")

    try:
        return AppConfig(**raw_config)
    except ValidationError as e:
        raise ConfigError(f"Invalid config file {config_path}: {e}") from e


# 全局配置实例（延迟加载）
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """获取全局配置实例（单例模式）"""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: Optional[AppConfig]):
    """替换全局配置；传入 None 时下次 get_config 重新从文件加载"""
    global _config
    _config = config

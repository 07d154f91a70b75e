"""
单集群采集

并发拉取 pools 和 buckets，合并为一个 PollOutcome。
调用级错误不会抛出，全部折叠进 PollOutcome。
"""

import asyncio
import logging
from typing import Optional

from .client import DEFAULT_TIMEOUT, StatsClient
from .exceptions import ConfigError, InvalidTargetError, MonitorError
from .models import ClusterTarget, PollOutcome
from .transformer import summarize_bucket, to_cluster_summary

logger = logging.getLogger(__name__)


class ClusterPoller:
    """
    集群采集器

    Args:
        target: 集群目标
        client: 统计客户端（可与其他集群共享）
        timeout: 单次 HTTP 调用超时（秒）

    Raises:
        InvalidTargetError: hostname 为空
        ConfigError: timeout 不是正数
    """

    def __init__(
        self,
        target: ClusterTarget,
        client: StatsClient,
        timeout: Optional[float] = DEFAULT_TIMEOUT
    ):
        if not target.hostname or not target.hostname.strip():
            raise InvalidTargetError(f"Cluster '{target.name}' has an empty hostname")
        if timeout is not None and timeout <= 0:
            raise ConfigError(f"Cluster '{target.name}': timeout must be positive, got {timeout}")
        self.target = target
        self.client = client
        self.timeout = timeout

    @property
    def name(self) -> str:
        return self.target.name

    async def poll(self) -> PollOutcome:
        """
        执行一次检查

        pools 失败 -> 失败（忽略 buckets 结果）；
        pools 成功但 buckets 失败 -> 失败（不产生部分摘要）；
        都成功 -> 成功。
        """
        pool_result, buckets_result = await asyncio.gather(
            self.client.fetch_pool_info(self.target, self.timeout),
            self.client.fetch_bucket_info(self.target, self.timeout),
            return_exceptions=True,
        )

        for result in (pool_result, buckets_result):
            if isinstance(result, BaseException):
                return PollOutcome(target_name=self.name, error=self._as_monitor_error(result))

        buckets = [summarize_bucket(b) for b in buckets_result]
        summary = to_cluster_summary(pool_result, name=self.name, buckets=buckets)
        return PollOutcome(target_name=self.name, summary=summary)

    def _as_monitor_error(self, error: BaseException) -> MonitorError:
        if isinstance(error, MonitorError):
            return error
        if not isinstance(error, Exception):
            # CancelledError / KeyboardInterrupt 继续向上传播
            raise error
        logger.error(f"Unexpected error polling {self.name}", exc_info=error)
        return MonitorError(f"{self.name}: unexpected error: {error!r}")

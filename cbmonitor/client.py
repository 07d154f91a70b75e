"""
Couchbase 管理 API 客户端

对单个集群发起带 Basic Auth 的 GET 请求，解析为原始响应结构。

注意：TLS 证书校验被关闭（verify=False）。被监控集群普遍使用自签名证书，
这是针对内网监控流量的有意放宽，不适用于不可信网络。
"""

import asyncio
import json
import logging
from typing import List, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from .exceptions import DecodeError, StatusError, TransportError
from .models import ClusterTarget, RawBucketResponse, RawPoolResponse

logger = logging.getLogger(__name__)

POOL_PATH = "/pools/default"
BUCKETS_PATH = "/pools/default/buckets?basic_stats=true&skipMap=true"

DEFAULT_TIMEOUT = 3.0

_buckets_adapter = TypeAdapter(List[RawBucketResponse])


def build_http_client(timeout: float = DEFAULT_TIMEOUT) -> httpx.AsyncClient:
    """
    创建默认的 HTTP 客户端

    httpx.Timeout 限制连接、TLS 握手、读写和连接池等待的每个阶段；
    整个请求的总时限由 StatsClient 另行保证。
    """
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        verify=False,
        limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
    )


class StatsClient:
    """
    统计数据客户端

    HTTP 客户端通过构造函数注入，测试中可替换为 httpx.MockTransport。
    timeout 是单次请求从建立连接到读完响应体的总时限，未单独指定时使用。
    """

    def __init__(self, http_client: httpx.AsyncClient, timeout: float = DEFAULT_TIMEOUT):
        self._http = http_client
        self.timeout = timeout

    @classmethod
    def create(cls, timeout: float = DEFAULT_TIMEOUT) -> "StatsClient":
        return cls(build_http_client(timeout), timeout=timeout)

    async def aclose(self):
        await self._http.aclose()

    async def _get_json(self, target: ClusterTarget, path: str, timeout: Optional[float]):
        url = f"{target.base_url}{path}"
        if timeout is None:
            timeout = self.timeout
        logger.debug(f"GET {url}")
        try:
            # 总时限覆盖连接、TLS、响应头和响应体
            response = await asyncio.wait_for(
                self._http.get(
                    url,
                    auth=httpx.BasicAuth(target.username, target.password),
                    timeout=httpx.Timeout(timeout),
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            raise TransportError(f"{target.name}: request to {url} timed out after {timeout}s") from e
        except httpx.TimeoutException as e:
            raise TransportError(f"{target.name}: request to {url} timed out") from e
        except httpx.HTTPError as e:
            raise TransportError(f"{target.name}: request to {url} failed: {e}") from e

        if response.status_code != 200:
            raise StatusError(response.status_code, url)

        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DecodeError(f"{target.name}: invalid JSON from {url}: {e}") from e

    async def fetch_pool_info(
        self,
        target: ClusterTarget,
        timeout: Optional[float] = None
    ) -> RawPoolResponse:
        """
        拉取 /pools/default

        Raises:
            TransportError: 网络错误或超时
            StatusError: 状态码不是 200
            DecodeError: 响应体不是预期结构
        """
        data = await self._get_json(target, POOL_PATH, timeout)
        try:
            return RawPoolResponse.model_validate(data)
        except ValidationError as e:
            raise DecodeError(f"{target.name}: unexpected pools response: {e}") from e

    async def fetch_bucket_info(
        self,
        target: ClusterTarget,
        timeout: Optional[float] = None
    ) -> List[RawBucketResponse]:
        """拉取 /pools/default/buckets（basic_stats，跳过 vBucket map）"""
        data = await self._get_json(target, BUCKETS_PATH, timeout)
        try:
            return _buckets_adapter.validate_python(data)
        except ValidationError as e:
            raise DecodeError(f"{target.name}: unexpected buckets response: {e}") from e

"""
测试公共工具

提供管理 API 响应样例和 MockTransport 构造函数。
"""

import json
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

import httpx
import pytest

# 添加项目路径到 sys.path
sys.path.insert(0, str(Path(__file__).parent.parent))

from cbmonitor.client import StatsClient
from cbmonitor.models import ClusterTarget

MB = 1024 * 1024


def make_node(
    hostname: str = "10.0.0.1:8091",
    version: str = "7.0.0-5302-enterprise",
    compatibility: int = 458752,
    services: Optional[List[str]] = None,
    cmd_get: float = 0,
    get_hits: float = 0,
    memory_total: int = 8192 * MB,
    memory_free: int = 2048 * MB,
    cpu: float = 12.5,
) -> Dict:
    return {
        "systemStats": {
            "cpu_utilization_rate": cpu,
            "swap_total": 0,
            "swap_used": 0,
            "mem_total": memory_total,
            "mem_free": memory_free,
        },
        "interestingStats": {
            "cmd_get": cmd_get,
            "get_hits": get_hits,
            "mem_used": 512 * MB,
            "ops": 42,
            "couch_docs_actual_disk_size": 300 * MB,
            "couch_docs_data_size": 250 * MB,
            "curr_items": 1000,
            "curr_items_tot": 2000,
        },
        "hostname": hostname,
        "uptime": "123456",
        "memoryTotal": memory_total,
        "memoryFree": memory_free,
        "clusterMembership": "active",
        "recoveryType": "none",
        "status": "healthy",
        "clusterCompatibility": compatibility,
        "version": version,
        "os": "x86_64-unknown-linux-gnu",
        "services": services if services is not None else ["kv", "index", "n1ql"],
    }


def make_pool(nodes: Optional[List[Dict]] = None, **overrides) -> Dict:
    payload = {
        "storageTotals": {
            "ram": {
                "total": 16384 * MB,
                "quotaTotal": 8192 * MB,
                "quotaUsed": 4096 * MB,
                "used": 4096 * MB,
                "usedByData": 1024 * MB,
                "quotaUsedPerNode": 2048 * MB,
                "quotaTotalPerNode": 4096 * MB,
            },
            "hdd": {
                "total": 100000 * MB,
                "quotaTotal": 100000 * MB,
                "used": 25000 * MB,
                "usedByData": 600 * MB,
                "free": 75000 * MB,
            },
        },
        "ftsMemoryQuota": 512,
        "indexMemoryQuota": 1024,
        "memoryQuota": 4096,
        "name": "default",
        "alerts": [],
        "nodes": nodes if nodes is not None else [make_node()],
        "rebalanceStatus": "none",
        "maxBucketCount": 30,
        "indexStatusURI": "/indexStatus",
        "clusterName": "reported-name",
        "balanced": True,
    }
    payload.update(overrides)
    return payload


def make_bucket(
    name: str = "travel-sample",
    ram_total: int = 1024 * MB,
    ram_used: int = 256 * MB,
) -> Dict:
    return {
        "name": name,
        "bucketType": "membase",
        "replicaNumber": 1,
        "basicStats": {
            "quotaPercentUsed": 25.0,
            "opsPerSec": 10,
            "diskFetches": 0,
            "itemCount": 31591,
            "diskUsed": 90 * MB,
            "dataUsed": 80 * MB,
            "memUsed": 60 * MB,
            "storageTotals": {
                "ram": {"total": ram_total, "used": ram_used},
                "hdd": {"total": 2048 * MB, "used": 512 * MB},
            },
        },
    }


def make_target(name: str = "cluster-a", hostname: str = "cb-a.internal", **kwargs) -> ClusterTarget:
    kwargs.setdefault("username", "monitor")
    kwargs.setdefault("password", "secret")
    return ClusterTarget(name=name, hostname=hostname, **kwargs)


def couchbase_handler(
    responses: Dict[str, Dict],
    requests: Optional[List[httpx.Request]] = None
) -> Callable[[httpx.Request], httpx.Response]:
    """
    按主机名路由的假管理 API

    responses: {hostname: {"pool": payload 或 状态码, "buckets": payload 或 状态码}}
    """
    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        host = responses.get(request.url.host)
        if host is None:
            raise httpx.ConnectError("connection refused", request=request)
        key = "buckets" if request.url.path.endswith("/buckets") else "pool"
        value = host[key]
        if isinstance(value, int):
            return httpx.Response(value, text="error")
        return httpx.Response(200, content=json.dumps(value).encode(),
                              headers={"Content-Type": "application/json"})

    return handler


def mock_stats_client(handler: Callable[[httpx.Request], httpx.Response]) -> StatsClient:
    return StatsClient(httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.fixture
def target() -> ClusterTarget:
    return make_target()

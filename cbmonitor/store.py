"""
集群摘要存储（全局状态）

按集群名保存最新的 ClusterSummary：
- 采集循环写入（add，同名覆盖）
- API 读取（get_all，返回快照副本）

读写锁：多个读者可并发，写者与所有读者、其他写者互斥。
不同集群的摘要可能来自不同采集轮次，存储不保证跨集群的原子快照。
"""

from contextlib import asynccontextmanager
from typing import Dict, List, Optional
import asyncio

from .models import ClusterSummary


class ReadWriteLock:
    """基于 asyncio.Condition 的读写锁（写者优先，避免写饥饿）"""

    def __init__(self):
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @asynccontextmanager
    async def read(self):
        async with self._cond:
            await self._cond.wait_for(lambda: not self._writer and self._writers_waiting == 0)
            self._readers += 1
        try:
            yield
        finally:
            async with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @asynccontextmanager
    async def write(self):
        async with self._cond:
            self._writers_waiting += 1
            try:
                await self._cond.wait_for(lambda: not self._writer and self._readers == 0)
            finally:
                self._writers_waiting -= 1
                self._cond.notify_all()
            self._writer = True
        try:
            yield
        finally:
            async with self._cond:
                self._writer = False
                self._cond.notify_all()


class ClusterStore:
    """
    集群摘要存储

    摘要对象本身不可变，get_all 返回新列表，
    之后的 add 不会影响已经交给调用方的快照。
    """

    def __init__(self):
        # {cluster_name: ClusterSummary}
        self._clusters: Dict[str, ClusterSummary] = {}
        self._lock = ReadWriteLock()

    async def add(self, summary: ClusterSummary):
        """写入/覆盖集群摘要"""
        async with self._lock.write():
            self._clusters[summary.name] = summary

    async def get_all(self) -> List[ClusterSummary]:
        """获取所有集群摘要（按名称排序）"""
        async with self._lock.read():
            return [self._clusters[name] for name in sorted(self._clusters)]

    async def get(self, name: str) -> Optional[ClusterSummary]:
        """获取单个集群摘要"""
        async with self._lock.read():
            return self._clusters.get(name)

    def __len__(self) -> int:
        return len(self._clusters)


# 全局存储实例
store = ClusterStore()

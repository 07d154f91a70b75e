"""
依赖注入模块

提供 FastAPI 依赖项。
"""

from ..store import ClusterStore, store


async def get_store() -> ClusterStore:
    """获取摘要存储实例"""
    return store

"""
集群摘要 API

只读接口：返回存储中当前的摘要（首轮采集完成前为空列表）。
采集失败的集群不会出现在结果中，或保持上一次成功的摘要。
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ...models import ClusterSummary, HealthResponse
from ...store import ClusterStore
from ..dependencies import get_store

router = APIRouter(prefix="/api", tags=["clusters"])

# 兼容旧版监控面板：GET / 直接返回集群列表
root_router = APIRouter(tags=["clusters"])


@root_router.get("/", response_model=List[ClusterSummary])
@router.get("/clusters", response_model=List[ClusterSummary])
async def list_clusters(store: ClusterStore = Depends(get_store)):
    """获取所有集群的最新摘要（按名称排序）"""
    return await store.get_all()


@router.get("/clusters/{name}", response_model=ClusterSummary)
async def get_cluster(name: str, store: ClusterStore = Depends(get_store)):
    """获取单个集群的最新摘要"""
    summary = await store.get(name)
    if summary is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Cluster {name} not found"
        )
    return summary


@router.get("/health", response_model=HealthResponse)
async def health(store: ClusterStore = Depends(get_store)):
    """健康检查"""
    return HealthResponse(status="ok", clusters=len(store))

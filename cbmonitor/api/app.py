"""
FastAPI 应用配置

配置 CORS、路由注册。
"""

import logging
from typing import List, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..store import ClusterStore
from .dependencies import get_store
from .routers import clusters

logger = logging.getLogger(__name__)


def create_app(
    store: Optional[ClusterStore] = None,
    cors_origins: Optional[List[str]] = None
) -> FastAPI:
    """
    创建 FastAPI 应用实例

    Args:
        store: 摘要存储，默认使用全局 store
        cors_origins: 允许的跨域来源，默认允许所有
    """
    app = FastAPI(
        title="Couchbase Cluster Monitor",
        description="Couchbase 集群统计聚合 API",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json"
    )

    # CORS 中间件
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins or ["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    # 注册路由
    app.include_router(clusters.root_router)
    app.include_router(clusters.router)

    if store is not None:
        async def _override_store() -> ClusterStore:
            return store

        app.dependency_overrides[get_store] = _override_store

    return app

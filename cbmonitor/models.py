"""
数据模型定义

包括：
- 集群目标（ClusterTarget）
- 管理 API 原始响应结构（仅在单次采集内存在）
- 归一化后的节点 / Bucket / 集群摘要（API 输出）
- 单次采集结果（PollOutcome）
"""

from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import MonitorError


# =============================================================================
# 集群目标
# =============================================================================

class ClusterTarget(BaseModel):
    """被监控集群（进程生命周期内不变）"""
    model_config = ConfigDict(frozen=True)

    name: str
    hostname: str
    protocol: str = "http"
    port: int = 8091
    username: str = ""
    password: str = Field(default="", repr=False)

    @property
    def base_url(self) -> str:
        """管理 API 根地址"""
        return f"{self.protocol}://{self.hostname}:{self.port}"


# =============================================================================
# 原始响应结构（/pools/default）
# =============================================================================

class _RawModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class RawSystemStats(_RawModel):
    cpu_utilization_rate: float = 0.0
    swap_total: int = 0
    swap_used: int = 0
    mem_total: int = 0
    mem_free: int = 0


class RawInterestingStats(_RawModel):
    cmd_get: float = 0
    get_hits: float = 0
    mem_used: int = 0
    ops: float = 0
    couch_docs_actual_disk_size: int = 0
    couch_docs_data_size: int = 0
    curr_items: int = 0
    curr_items_tot: int = 0


class RawPoolNode(_RawModel):
    """节点原始数据"""
    system_stats: RawSystemStats = Field(default_factory=RawSystemStats, alias="systemStats")
    interesting_stats: RawInterestingStats = Field(
        default_factory=RawInterestingStats, alias="interestingStats"
    )
    hostname: str = ""
    uptime: str = ""
    memory_total: int = Field(default=0, alias="memoryTotal")
    memory_free: int = Field(default=0, alias="memoryFree")
    cluster_membership: str = Field(default="", alias="clusterMembership")
    recovery_type: str = Field(default="", alias="recoveryType")
    status: str = ""
    cluster_compatibility: int = Field(default=0, alias="clusterCompatibility")
    version: str = ""
    os: str = ""
    services: List[str] = Field(default_factory=list)


class RawRAMTotals(_RawModel):
    total: int = 0
    quota_total: int = Field(default=0, alias="quotaTotal")
    quota_used: int = Field(default=0, alias="quotaUsed")
    used: int = 0
    used_by_data: int = Field(default=0, alias="usedByData")
    quota_used_per_node: int = Field(default=0, alias="quotaUsedPerNode")
    quota_total_per_node: int = Field(default=0, alias="quotaTotalPerNode")


class RawHDDTotals(_RawModel):
    total: int = 0
    quota_total: int = Field(default=0, alias="quotaTotal")
    used: int = 0
    used_by_data: int = Field(default=0, alias="usedByData")
    free: int = 0


class RawStorageTotals(_RawModel):
    ram: RawRAMTotals = Field(default_factory=RawRAMTotals)
    hdd: RawHDDTotals = Field(default_factory=RawHDDTotals)


class ClusterAlert(BaseModel):
    """集群自身上报的告警"""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    msg: str = ""
    server_time: str = Field(default="", alias="serverTime")


class RawPoolResponse(_RawModel):
    """GET /pools/default 响应"""
    storage_totals: RawStorageTotals = Field(default_factory=RawStorageTotals, alias="storageTotals")
    fts_memory_quota: int = Field(default=0, alias="ftsMemoryQuota")
    index_memory_quota: int = Field(default=0, alias="indexMemoryQuota")
    memory_quota: int = Field(default=0, alias="memoryQuota")
    name: str = ""
    alerts: List[ClusterAlert] = Field(default_factory=list)
    nodes: List[RawPoolNode] = Field(default_factory=list)
    rebalance_status: str = Field(default="", alias="rebalanceStatus")
    max_bucket_count: int = Field(default=0, alias="maxBucketCount")
    index_status_uri: str = Field(default="", alias="indexStatusURI")
    cluster_name: str = Field(default="", alias="clusterName")
    balanced: bool = False


# =============================================================================
# 原始响应结构（/pools/default/buckets）
# =============================================================================

class RawBucketStorageTotals(_RawModel):
    ram: RawRAMTotals = Field(default_factory=RawRAMTotals)
    hdd: RawHDDTotals = Field(default_factory=RawHDDTotals)


class RawBucketBasicStats(_RawModel):
    quota_percent_used: float = Field(default=0.0, alias="quotaPercentUsed")
    ops_per_sec: float = Field(default=0, alias="opsPerSec")
    disk_fetches: float = Field(default=0, alias="diskFetches")
    item_count: int = Field(default=0, alias="itemCount")
    disk_used: int = Field(default=0, alias="diskUsed")
    data_used: int = Field(default=0, alias="dataUsed")
    mem_used: int = Field(default=0, alias="memUsed")
    storage_totals: RawBucketStorageTotals = Field(
        default_factory=RawBucketStorageTotals, alias="storageTotals"
    )


class RawBucketResponse(_RawModel):
    """GET /pools/default/buckets 响应中的单个 Bucket"""
    name: str
    bucket_type: str = Field(default="", alias="bucketType")
    replica_number: int = Field(default=0, alias="replicaNumber")
    basic_stats: RawBucketBasicStats = Field(default_factory=RawBucketBasicStats, alias="basicStats")


# =============================================================================
# 归一化摘要（API 输出，字段名沿用监控面板的 JSON 约定）
# =============================================================================

class _SummaryModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class KVStats(_SummaryModel):
    get_ops: float = Field(default=0, alias="getOps")
    get_hits: float = Field(default=0, alias="getHits")
    ops: float = 0
    docs_size: int = Field(default=0, alias="docsSize")
    total_docs: int = Field(default=0, alias="totalDocs")


class NodeSummary(_SummaryModel):
    """节点摘要"""
    hostname: str
    mem_total_mb: int = Field(default=0, alias="memTotalMb")
    mem_free_mb: int = Field(default=0, alias="memFreeMb")
    mem_used_pct: float = Field(default=0.0, alias="memPctUsed")
    cluster_membership: str = Field(default="", alias="clusterMembership")
    status: str = ""
    version: str = ""
    os: str = Field(default="", alias="OS")
    services: Tuple[str, ...] = ()
    is_kv: bool = Field(default=False, alias="isKV")
    kv_stats: KVStats = Field(default_factory=KVStats, alias="kvStats")
    cpu_rate: float = Field(default=0.0, alias="cpuRate")


class BucketSummary(_SummaryModel):
    """Bucket 摘要（容量单位 MB，比例为 0~1 小数）"""
    name: str
    bucket_type: str = Field(default="", alias="bucketType")
    replica_number: int = Field(default=0, alias="replicaNumber")
    ops_per_sec: float = Field(default=0, alias="opsPerSec")
    disk_fetches: float = Field(default=0, alias="diskFetches")
    item_count: int = Field(default=0, alias="itemCount")
    mem_used_mb: int = Field(default=0, alias="memUsedMb")
    quota_pct_used: float = Field(default=0.0, alias="quotaPctUsed")
    disk_used_mb: int = Field(default=0, alias="diskUsedMb")
    ram_total_mb: int = Field(default=0, alias="ramTotalMb")
    ram_used_mb: int = Field(default=0, alias="ramUsedMb")
    ram_free_mb: int = Field(default=0, alias="ramFreeMb")
    ram_used_pct: float = Field(default=0.0, alias="ramUsedPct")
    hdd_total_mb: int = Field(default=0, alias="hddTotalMb")
    hdd_used_mb: int = Field(default=0, alias="hdUsedMb")
    hdd_free_mb: int = Field(default=0, alias="hdFreeMb")
    hdd_used_pct: float = Field(default=0.0, alias="hdUsedPct")


class ServicesCount(_SummaryModel):
    """各服务实例数"""
    kv: int = 0
    index: int = 0
    query: int = 0
    fts: int = 0
    analytics: int = 0


class ClusterAlerts(_SummaryModel):
    cluster: Tuple[ClusterAlert, ...] = ()
    calculated: Tuple[str, ...] = ()


class ClusterSummary(_SummaryModel):
    """集群摘要（构造后不可变，按 name 覆盖存储）"""
    name: str
    balanced: bool = False
    rebalance_status: str = Field(default="", alias="balanceStatus")
    fts_memory_quota_mb: int = Field(default=0, alias="ftsMemoryQuota")
    index_memory_quota_mb: int = Field(default=0, alias="indexMemoryQuota")
    memory_quota_mb: int = Field(default=0, alias="memoryQuota")
    ram_total: int = Field(default=0, alias="ramTotal")
    ram_used: int = Field(default=0, alias="ramUsed")
    ram_pct_used: float = Field(default=0.0, alias="ramPctUsed")
    hd_total: int = Field(default=0, alias="hdTotal")
    hd_used: int = Field(default=0, alias="hdUsed")
    hd_pct_used: float = Field(default=0.0, alias="hdPctUsed")
    get_hit_ratio: float = Field(default=0.0, alias="getHitRatio")
    services_count: ServicesCount = Field(default_factory=ServicesCount, alias="servicesCount")
    alerts: ClusterAlerts = Field(default_factory=ClusterAlerts)
    buckets: Tuple[BucketSummary, ...] = ()
    nodes: Tuple[NodeSummary, ...] = Field(default=(), alias="node")


# =============================================================================
# 单次采集结果
# =============================================================================

class PollOutcome(BaseModel):
    """一个集群一次采集的结果：成功带 summary，失败带 error"""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    target_name: str
    summary: Optional[ClusterSummary] = None
    error: Optional[MonitorError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.summary is not None


class HealthResponse(BaseModel):
    """GET /api/health 响应"""
    status: str = "ok"
    clusters: int = 0

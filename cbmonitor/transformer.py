"""
原始响应 -> 摘要转换

纯函数，无副作用：
- Bucket 摘要（字节转 MB、剩余内存）
- 节点摘要（内存占用、KV 统计、服务计数、命中率）
- 集群级计算告警（多版本、多兼容模式）
"""

from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence

from .models import (
    BucketSummary,
    ClusterAlerts,
    ClusterSummary,
    KVStats,
    NodeSummary,
    RawBucketResponse,
    RawPoolNode,
    RawPoolResponse,
    ServicesCount,
)

MB = 1024 * 1024

# 管理 API 中的服务名 -> 摘要中的字段名
SERVICE_FIELDS = {
    "kv": "kv",
    "index": "index",
    "n1ql": "query",
    "fts": "fts",
    "analytics": "analytics",
}


class NodesSummary(NamedTuple):
    nodes: List[NodeSummary]
    alerts: List[str]
    get_hit_ratio: float
    services: Dict[str, int]


def to_mb(value: int) -> int:
    """字节转 MB（向下取整）"""
    return int(value) // MB


def used_fraction(used: float, total: float) -> float:
    """used / total，total 为 0 时返回 0"""
    if not total:
        return 0.0
    return float(used) / float(total)


def summarize_bucket(raw: RawBucketResponse) -> BucketSummary:
    """
    转换单个 Bucket

    RAM / HDD 容量取自 basicStats.storageTotals，转为 MB；
    ram_free_mb = ram_total_mb - ram_used_mb。
    """
    stats = raw.basic_stats
    ram = stats.storage_totals.ram
    hdd = stats.storage_totals.hdd

    ram_total_mb = to_mb(ram.total)
    ram_used_mb = to_mb(ram.used)
    hdd_total_mb = to_mb(hdd.total)
    hdd_used_mb = to_mb(hdd.used)

    return BucketSummary(
        name=raw.name,
        bucket_type=raw.bucket_type,
        replica_number=raw.replica_number,
        ops_per_sec=stats.ops_per_sec,
        disk_fetches=stats.disk_fetches,
        item_count=stats.item_count,
        mem_used_mb=to_mb(stats.mem_used),
        quota_pct_used=stats.quota_percent_used,
        disk_used_mb=to_mb(stats.disk_used),
        ram_total_mb=ram_total_mb,
        ram_used_mb=ram_used_mb,
        ram_free_mb=ram_total_mb - ram_used_mb,
        ram_used_pct=used_fraction(ram.used, ram.total),
        hdd_total_mb=hdd_total_mb,
        hdd_used_mb=hdd_used_mb,
        hdd_free_mb=hdd_total_mb - hdd_used_mb,
        hdd_used_pct=used_fraction(hdd.used, hdd.total),
    )


def _has_service(services: Iterable[str], name: str) -> bool:
    return any(s.lower() == name.lower() for s in services)


def _distinct(values: Iterable) -> List:
    # 保留首次出现的顺序
    return list(dict.fromkeys(values))


def summarize_nodes(raw_nodes: Sequence[RawPoolNode]) -> NodesSummary:
    """
    汇总节点列表

    Returns:
        NodesSummary(nodes, alerts, get_hit_ratio, services)
        - alerts: 多版本 / 多兼容模式告警
        - get_hit_ratio: 所有节点 get_hits 之和 / cmd_get 之和（无 get 时为 0）
        - services: 服务名 -> 运行该服务的节点数
    """
    nodes = []
    services: Dict[str, int] = {}
    gets = 0.0
    hits = 0.0

    for raw in raw_nodes:
        for service in raw.services:
            services[service] = services.get(service, 0) + 1

        interesting = raw.interesting_stats
        gets += interesting.cmd_get
        hits += interesting.get_hits

        mem_used_pct = 0.0
        if raw.memory_total:
            mem_used_pct = 1 - (raw.memory_free / raw.memory_total)

        nodes.append(NodeSummary(
            hostname=raw.hostname.split(":")[0],
            mem_total_mb=to_mb(raw.memory_total),
            mem_free_mb=to_mb(raw.memory_free),
            mem_used_pct=mem_used_pct,
            cluster_membership=raw.cluster_membership,
            status=raw.status,
            version=raw.version,
            os=raw.os,
            services=tuple(raw.services),
            is_kv=_has_service(raw.services, "kv"),
            kv_stats=KVStats(
                get_ops=interesting.cmd_get,
                get_hits=interesting.get_hits,
                ops=interesting.ops,
                docs_size=interesting.couch_docs_data_size,
                total_docs=interesting.curr_items_tot,
            ),
            cpu_rate=raw.system_stats.cpu_utilization_rate,
        ))

    get_hit_ratio = hits / gets if gets > 0 else 0.0

    alerts = []
    versions = _distinct(n.version for n in raw_nodes)
    if len(versions) > 1:
        alerts.append(
            f"Multiple Couchbase versions ({len(versions)}) in cluster: {','.join(versions)}"
        )
    modes = _distinct(str(n.cluster_compatibility) for n in raw_nodes)
    if len(modes) > 1:
        alerts.append(
            f"Multiple Couchbase compatibility modes ({len(modes)}) in cluster: {','.join(modes)}"
        )

    return NodesSummary(
        nodes=nodes,
        alerts=alerts,
        get_hit_ratio=get_hit_ratio,
        services=services,
    )


def to_cluster_summary(
    raw: RawPoolResponse,
    name: Optional[str] = None,
    buckets: Sequence[BucketSummary] = ()
) -> ClusterSummary:
    """
    构建集群摘要

    Args:
        raw: /pools/default 响应
        name: 存储使用的集群名（默认取响应中的 clusterName）
        buckets: 已转换的 Bucket 摘要
    """
    nodes = summarize_nodes(raw.nodes)
    ram = raw.storage_totals.ram
    hdd = raw.storage_totals.hdd

    services_count = ServicesCount(**{
        field: nodes.services.get(service, 0)
        for service, field in SERVICE_FIELDS.items()
    })

    return ClusterSummary(
        name=name or raw.cluster_name,
        balanced=raw.balanced,
        rebalance_status=raw.rebalance_status,
        fts_memory_quota_mb=raw.fts_memory_quota,
        index_memory_quota_mb=raw.index_memory_quota,
        memory_quota_mb=raw.memory_quota,
        ram_total=ram.total,
        ram_used=ram.used,
        ram_pct_used=used_fraction(ram.used, ram.total),
        hd_total=hdd.total,
        hd_used=hdd.used,
        hd_pct_used=used_fraction(hdd.used, hdd.total),
        get_hit_ratio=nodes.get_hit_ratio,
        services_count=services_count,
        alerts=ClusterAlerts(
            cluster=tuple(raw.alerts),
            calculated=tuple(nodes.alerts),
        ),
        buckets=tuple(buckets),
        nodes=tuple(nodes.nodes),
    )


def format_cluster_summary(summary: ClusterSummary) -> str:
    """生成便于日志阅读的集群概要"""
    version = summary.nodes[0].version if summary.nodes else "unknown"
    max_cpu = max((n.cpu_rate for n in summary.nodes), default=0.0)
    max_mem = max((n.mem_used_pct for n in summary.nodes), default=0.0) * 100

    alerts = [a.msg for a in summary.alerts.cluster] + list(summary.alerts.calculated)
    lines = [
        f"{summary.name} - Version: {version}",
        f"Nodes: {len(summary.nodes)}\tMax CPU: {max_cpu:.1f}\tMax Mem used: {max_mem:.1f}"
        f"\tGet hit/miss ratio: {summary.get_hit_ratio:.1f}",
        f"Buckets: {', '.join(b.name for b in summary.buckets)}",
        f"Services: KV: {summary.services_count.kv}",
        f"Alerts ({len(alerts)}):",
    ]
    lines.extend(f"- {a}" for a in alerts)
    return "\n".join(lines)

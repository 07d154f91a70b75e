"""
单元测试：原始响应 -> 摘要转换

测试覆盖：
- Bucket 摘要：MB 转换、剩余内存
- 节点摘要：端口剥离、KV 判断、内存占用、命中率
- 计算告警：多版本、多兼容模式
- 集群摘要：使用比例（浮点除法、零总量）、服务计数
"""

import math

import pytest

from conftest import MB, make_bucket, make_node, make_pool
from cbmonitor.models import RawBucketResponse, RawPoolNode, RawPoolResponse
from cbmonitor.transformer import (
    format_cluster_summary,
    summarize_bucket,
    summarize_nodes,
    to_cluster_summary,
)


def _nodes(*payloads):
    return [RawPoolNode.model_validate(p) for p in payloads]


class TestSummarizeBucket:
    """Bucket 摘要测试"""

    def test_fields_and_mb_conversion(self):
        bucket = summarize_bucket(RawBucketResponse.model_validate(make_bucket()))

        assert bucket.name == "travel-sample"
        assert bucket.bucket_type == "membase"
        assert bucket.replica_number == 1
        assert bucket.ops_per_sec == 10
        assert bucket.item_count == 31591
        assert bucket.mem_used_mb == 60
        assert bucket.disk_used_mb == 90
        assert bucket.quota_pct_used == 25.0
        assert bucket.ram_total_mb == 1024
        assert bucket.ram_used_mb == 256
        assert bucket.ram_used_pct == pytest.approx(0.25)
        assert bucket.hdd_total_mb == 2048
        assert bucket.hdd_used_mb == 512
        assert bucket.hdd_free_mb == 1536

    @pytest.mark.parametrize("total_mb,used_mb", [(1024, 256), (512, 512), (4096, 0), (0, 0)])
    def test_ram_free_is_total_minus_used(self, total_mb, used_mb):
        raw = RawBucketResponse.model_validate(
            make_bucket(ram_total=total_mb * MB, ram_used=used_mb * MB)
        )
        bucket = summarize_bucket(raw)

        assert bucket.ram_free_mb == bucket.ram_total_mb - bucket.ram_used_mb
        assert bucket.ram_free_mb >= 0

    def test_zero_totals_give_zero_fractions(self):
        raw = RawBucketResponse.model_validate({"name": "empty", "basicStats": {}})
        bucket = summarize_bucket(raw)

        assert bucket.ram_used_pct == 0.0
        assert bucket.hdd_used_pct == 0.0
        assert bucket.ram_free_mb == 0


class TestSummarizeNodes:
    """节点摘要测试"""

    def test_hostname_port_stripped(self):
        result = summarize_nodes(_nodes(make_node(hostname="cb1.example.com:8091")))

        assert result.nodes[0].hostname == "cb1.example.com"

    def test_memory_in_mb_and_used_fraction(self):
        result = summarize_nodes(_nodes(make_node(memory_total=8192 * MB, memory_free=2048 * MB)))
        node = result.nodes[0]

        assert node.mem_total_mb == 8192
        assert node.mem_free_mb == 2048
        assert node.mem_used_pct == pytest.approx(0.75)

    def test_zero_memory_total_is_not_nan(self):
        result = summarize_nodes(_nodes(make_node(memory_total=0, memory_free=0)))

        assert result.nodes[0].mem_used_pct == 0.0
        assert not math.isnan(result.nodes[0].mem_used_pct)

    def test_kv_detection_case_insensitive(self):
        result = summarize_nodes(_nodes(
            make_node(services=["KV", "index"]),
            make_node(services=["n1ql"]),
        ))

        assert result.nodes[0].is_kv is True
        assert result.nodes[1].is_kv is False

    def test_service_counts(self):
        result = summarize_nodes(_nodes(
            make_node(services=["kv", "index"]),
            make_node(services=["kv", "n1ql"]),
            make_node(services=["kv", "fts"]),
        ))

        assert result.services == {"kv": 3, "index": 1, "n1ql": 1, "fts": 1}

    def test_zero_gets_gives_zero_ratio(self):
        result = summarize_nodes(_nodes(
            make_node(cmd_get=0, get_hits=0),
            make_node(cmd_get=0, get_hits=0),
        ))

        assert result.get_hit_ratio == 0

    def test_empty_node_list(self):
        result = summarize_nodes([])

        assert result.nodes == []
        assert result.alerts == []
        assert result.get_hit_ratio == 0
        assert result.services == {}

    def test_hit_ratio_across_nodes(self):
        result = summarize_nodes(_nodes(
            make_node(cmd_get=100, get_hits=90),
            make_node(cmd_get=300, get_hits=210),
        ))

        assert result.get_hit_ratio == pytest.approx(300 / 400)

    def test_kv_stats_copied(self):
        result = summarize_nodes(_nodes(make_node(cmd_get=10, get_hits=7)))
        stats = result.nodes[0].kv_stats

        assert stats.get_ops == 10
        assert stats.get_hits == 7
        assert stats.ops == 42
        assert stats.docs_size == 250 * MB
        assert stats.total_docs == 2000

    def test_single_version_no_alert(self):
        result = summarize_nodes(_nodes(make_node(version="7.0.0"), make_node(version="7.0.0")))

        assert result.alerts == []

    def test_multiple_versions_alert(self):
        result = summarize_nodes(_nodes(
            make_node(version="6.6.0"),
            make_node(version="7.0.0"),
            make_node(version="7.1.0"),
            make_node(version="7.0.0"),
        ))

        version_alerts = [a for a in result.alerts if a.startswith("Multiple Couchbase versions")]
        assert version_alerts == ["Multiple Couchbase versions (3) in cluster: 6.6.0,7.0.0,7.1.0"]

    def test_multiple_compatibility_modes_alert(self):
        result = summarize_nodes(_nodes(
            make_node(version="7.0.0", compatibility=393222),
            make_node(version="7.0.0", compatibility=458752),
        ))

        assert result.alerts == [
            "Multiple Couchbase compatibility modes (2) in cluster: 393222,458752"
        ]


class TestToClusterSummary:
    """集群摘要测试"""

    def test_basic_fields(self):
        summary = to_cluster_summary(RawPoolResponse.model_validate(make_pool()))

        assert summary.name == "reported-name"
        assert summary.balanced is True
        assert summary.rebalance_status == "none"
        assert summary.fts_memory_quota_mb == 512
        assert summary.index_memory_quota_mb == 1024
        assert summary.memory_quota_mb == 4096
        assert summary.ram_total == 16384 * MB
        assert summary.hd_used == 25000 * MB
        assert summary.buckets == ()

    def test_name_override(self):
        summary = to_cluster_summary(RawPoolResponse.model_validate(make_pool()), name="configured")

        assert summary.name == "configured"

    def test_used_fractions_use_float_division(self):
        summary = to_cluster_summary(RawPoolResponse.model_validate(make_pool()))

        assert summary.ram_pct_used == pytest.approx(0.25)
        assert summary.hd_pct_used == pytest.approx(0.25)

    def test_zero_totals_give_zero_fractions(self):
        raw = RawPoolResponse.model_validate(make_pool(storageTotals={}))
        summary = to_cluster_summary(raw)

        assert summary.ram_pct_used == 0.0
        assert summary.hd_pct_used == 0.0

    def test_services_count_maps_n1ql_to_query(self):
        raw = RawPoolResponse.model_validate(make_pool(nodes=[
            make_node(services=["kv", "n1ql"]),
            make_node(services=["kv", "index", "analytics"]),
        ]))
        counts = to_cluster_summary(raw).services_count

        assert counts.kv == 2
        assert counts.query == 1
        assert counts.index == 1
        assert counts.analytics == 1
        assert counts.fts == 0

    def test_reported_and_calculated_alerts(self):
        raw = RawPoolResponse.model_validate(make_pool(
            alerts=[{"msg": "Disk almost full", "serverTime": "2024-01-01T00:00:00Z"}],
            nodes=[
                make_node(hostname="n1:8091", version="7.0.0"),
                make_node(hostname="n2:8091", version="7.0.0"),
                make_node(hostname="n3:8091", version="7.1.0"),
            ],
        ))
        summary = to_cluster_summary(raw)

        assert summary.alerts.cluster[0].msg == "Disk almost full"
        assert summary.alerts.cluster[0].server_time == "2024-01-01T00:00:00Z"
        assert "Multiple Couchbase versions (2) in cluster: 7.0.0,7.1.0" in summary.alerts.calculated
        assert [n.hostname for n in summary.nodes] == ["n1", "n2", "n3"]

    def test_serialized_field_names(self):
        summary = to_cluster_summary(RawPoolResponse.model_validate(make_pool()))
        data = summary.model_dump(mode="json", by_alias=True)

        for key in ("balanceStatus", "ramPctUsed", "hdPctUsed", "getHitRatio", "servicesCount", "node"):
            assert key in data
        assert data["alerts"] == {"cluster": [], "calculated": []}
        assert data["node"][0]["memPctUsed"] == pytest.approx(0.75)


class TestFormatClusterSummary:
    """日志概要测试"""

    def test_contains_key_facts(self):
        raw = RawPoolResponse.model_validate(make_pool(nodes=[
            make_node(version="7.0.0", cpu=40.0),
            make_node(version="7.1.0", cpu=10.0),
        ]))
        buckets = [summarize_bucket(RawBucketResponse.model_validate(make_bucket("beer")))]
        text = format_cluster_summary(to_cluster_summary(raw, name="prod", buckets=buckets))

        assert text.startswith("prod - Version: 7.0.0")
        assert "Nodes: 2" in text
        assert "Max CPU: 40.0" in text
        assert "Buckets: beer" in text
        assert "Alerts (1):" in text

    def test_no_nodes(self):
        summary = to_cluster_summary(RawPoolResponse.model_validate(make_pool(nodes=[])), name="empty")

        assert "Version: unknown" in format_cluster_summary(summary)

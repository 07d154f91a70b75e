"""
cbmonitor - Couchbase 集群监控聚合服务

负责：
- 按固定间隔并发拉取所有集群的 pools / buckets 统计
- 将嵌套 JSON 归一化为扁平的集群摘要（含计算指标和告警）
- 维护内存中每个集群的最新摘要
- 提供 REST API 读取最新快照
"""

__version__ = "1.0.0"

"""
采集循环

每轮并发检查所有集群，等待全部结果后写入存储，再休眠 interval 秒。
下一轮在上一轮结束后 interval 秒开始（非固定时钟），慢集群会造成漂移。
"""

import asyncio
import logging
import time
from typing import List, Sequence

from .models import PollOutcome
from .poller import ClusterPoller
from .store import ClusterStore
from .transformer import format_cluster_summary

logger = logging.getLogger(__name__)


async def collect_once(
    pollers: Sequence[ClusterPoller],
    store: ClusterStore,
    max_concurrency: int = 0
) -> List[PollOutcome]:
    """
    执行一轮采集

    Args:
        pollers: 每个集群一个采集器
        store: 摘要存储
        max_concurrency: 最大并发集群数，0 表示不限制

    Returns:
        与 pollers 顺序一致的采集结果
    """
    semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency > 0 else None

    async def _poll(poller: ClusterPoller) -> PollOutcome:
        if semaphore is None:
            outcome = await poller.poll()
        else:
            async with semaphore:
                outcome = await poller.poll()

        if outcome.ok:
            await store.add(outcome.summary)
            logger.debug(f"Cluster stats:\n{format_cluster_summary(outcome.summary)}")
        else:
            logger.warning(f"Failed to poll cluster {outcome.target_name}: {outcome.error}")
        return outcome

    # 并发检查所有集群
    return list(await asyncio.gather(*(_poll(p) for p in pollers)))


async def run_collector(
    pollers: Sequence[ClusterPoller],
    store: ClusterStore,
    interval: float,
    max_concurrency: int = 0
):
    """
    运行采集循环（永不退出，直到任务被取消）
    """
    logger.info(f"Starting collector loop (clusters={len(pollers)}, interval={interval}s)")

    while True:
        started = time.monotonic()
        try:
            outcomes = await collect_once(pollers, store, max_concurrency)
            succeeded = sum(1 for o in outcomes if o.ok)
            elapsed = time.monotonic() - started
            logger.info(
                f"Poll cycle finished in {elapsed:.2f}s: "
                f"{succeeded}/{len(outcomes)} clusters succeeded"
            )
            if elapsed > interval:
                logger.warning(
                    f"Poll cycle took {elapsed:.2f}s, longer than the {interval}s interval"
                )
        except asyncio.CancelledError:
            logger.info("Collector task cancelled")
            raise
        except Exception as e:
            logger.error(f"Collector loop error: {e}", exc_info=True)

        await asyncio.sleep(interval)

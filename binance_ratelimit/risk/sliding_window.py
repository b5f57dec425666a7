#!/usr/bin/env python3
"""
Sliding Window Admission - 滑动窗口准入控制
按权重单位记录时间戳，窗口超额时阻塞等待而不是拒绝请求
"""

import time
import threading
from collections import deque
from typing import Callable, Dict, Optional
import logging

from binance_ratelimit.risk.limit_policy import QuotaPolicy
from binance_ratelimit.utils.quantizer import round_half_up

logger = logging.getLogger(__name__)


class AdmissionWindow:
    """
    滑动窗口准入控制器

    每次admit(cost)记录cost个时间戳；窗口内存活条目 + cost 超过容量时，
    以固定tick阻塞等待，直到旧条目滑出窗口。
    """

    def __init__(self, name: str, policy: QuotaPolicy,
                 clock: Callable[[], float] = time.time,
                 wait: Callable[[float], None] = time.sleep,
                 tick: float = 1.0):
        """
        Args:
            name: 窗口名称（日志用）
            policy: 配额（limit/interval）
            clock: 时钟函数，测试时可注入
            wait: 阻塞函数，测试时可注入
            tick: 固定退避时长（秒）
        """
        if tick <= 0:
            raise ValueError(f"退避时长必须为正: tick={tick}")
        self.name = name
        self.policy = policy
        self.clock = clock
        self.wait = wait
        self.tick = tick

        self.entries = deque()  # 时间戳，队尾追加，队头淘汰
        self.lock = threading.Lock()

        # 统计
        self.stats = {
            'admitted_calls': 0,
            'admitted_cost': 0,
            'throttled_calls': 0,
            'total_wait_s': 0.0,
        }

    @property
    def capacity(self) -> int:
        """有效容量"""
        return self.policy.limit

    def _evict(self, now: float):
        """清理窗口外的条目"""
        horizon = now - self.policy.interval
        q = self.entries
        while q and q[0] < horizon:
            q.popleft()

    def _backoff_seconds(self, now: float) -> float:
        """超额时的单次等待时长"""
        return self.tick

    def _record(self, cost: int, now: float):
        self.entries.extend([now] * cost)
        self.stats['admitted_calls'] += 1
        self.stats['admitted_cost'] += cost

    def admit(self, cost: int) -> float:
        """
        申请cost个权重单位，必要时阻塞

        Args:
            cost: 权重成本

        Returns:
            float: 本次累计等待秒数
        """
        if cost <= 0:
            return 0.0

        waited = 0.0
        throttled = False

        while True:
            with self.lock:
                now = self.clock()

                # 空窗口直接放行
                if not self.entries:
                    self._record(cost, now)
                    break

                self._evict(now)
                if not self.entries or len(self.entries) + cost <= self.capacity:
                    self._record(cost, now)
                    break

                delay = self._backoff_seconds(now)
                if not throttled:
                    throttled = True
                    self.stats['throttled_calls'] += 1
                    logger.info(
                        "[AdmissionWindow:%s] 限流生效: used=%d cost=%d capacity=%d",
                        self.name, len(self.entries), cost, self.capacity
                    )

            # 等待期间释放锁
            self.wait(delay)
            waited += delay

        if waited:
            with self.lock:
                self.stats['total_wait_s'] += waited
            logger.debug("[AdmissionWindow:%s] 等待%.1f秒后放行", self.name, waited)
        return waited

    def usage(self) -> int:
        """窗口内存活条目数"""
        with self.lock:
            self._evict(self.clock())
            return len(self.entries)

    def remaining(self) -> int:
        """剩余容量"""
        return max(0, self.capacity - self.usage())

    def usage_pct(self) -> float:
        """返回使用率百分比"""
        return (self.usage() / max(1, self.capacity)) * 100

    def get_stats(self) -> Dict:
        """返回窗口统计信息"""
        usage = self.usage()
        with self.lock:
            return {
                **self.stats,
                'usage': usage,
                'capacity': self.capacity,
                'limit': self.policy.limit,
                'interval': self.policy.interval,
            }


class DailyAdmissionWindow(AdmissionWindow):
    """
    日订单窗口

    有效容量只取limit的80%，剩余20%作为突发预留；
    超额时按 (最早条目剩余存活秒数 / 预留额度) 计算退避时长。
    """

    def __init__(self, name: str, policy: QuotaPolicy,
                 clock: Callable[[], float] = time.time,
                 wait: Callable[[float], None] = time.sleep,
                 tick: float = 1.0,
                 capacity_ratio: float = 0.8):
        super().__init__(name, policy, clock=clock, wait=wait, tick=tick)
        self.capacity_ratio = capacity_ratio

    @property
    def capacity(self) -> int:
        return round_half_up(self.policy.limit * self.capacity_ratio)

    def remaining_budget(self) -> int:
        """预留额度（至少为1）"""
        return max(1, self.policy.limit - self.capacity)

    def _backoff_seconds(self, now: float) -> float:
        horizon = now - self.policy.interval
        remaining_seconds = self.entries[0] - horizon
        sleep_s = round_half_up(remaining_seconds / self.remaining_budget())
        return sleep_s if sleep_s > 1 else self.tick


def build_windows(request_weight: QuotaPolicy,
                  order_rate: QuotaPolicy,
                  order_daily: QuotaPolicy,
                  clock: Callable[[], float] = time.time,
                  wait: Callable[[float], None] = time.sleep,
                  tick: float = 1.0,
                  capacity_ratio: Optional[float] = None) -> Dict[str, AdmissionWindow]:
    """创建三个准入窗口"""
    daily_kwargs = {} if capacity_ratio is None else {'capacity_ratio': capacity_ratio}
    return {
        'request_weight': AdmissionWindow('request_weight', request_weight,
                                          clock=clock, wait=wait, tick=tick),
        'order_rate': AdmissionWindow('order_rate', order_rate,
                                      clock=clock, wait=wait, tick=tick),
        'order_daily': DailyAdmissionWindow('order_daily', order_daily,
                                            clock=clock, wait=wait, tick=tick,
                                            **daily_kwargs),
    }

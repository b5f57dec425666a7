#!/usr/bin/env python3
"""
RateLimitedAPI - 交易所API限流包装器
所有调用先按权重通过准入窗口，再原样转发给底层API客户端

用法:
    api = MockExchange()
    limiter = RateLimiter(api)
    limiter.call('buy', 'DOGEUSDT', 100, 0.24)

职责：
✅ 按操作权重计入请求权重窗口
✅ 下单类操作额外计入订单速率窗口和日订单窗口
✅ 窗口超额时阻塞等待
✅ 转发调用和属性读写

不包含：
❌ 网络请求（由底层客户端负责）
❌ 失败重试
❌ 跨进程限流
"""

import time
import threading
import functools
import logging
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from binance_ratelimit.risk.operation_weights import OperationClassifier
from binance_ratelimit.risk.limit_policy import LimitPolicies, resolve_limit_policies
from binance_ratelimit.risk.sliding_window import AdmissionWindow, build_windows
from binance_ratelimit.utils.config_loader import LimiterConfig

logger = logging.getLogger(__name__)


# 允许透传读写的客户端属性
PROXIED_PROPERTIES = frozenset({
    'use_server_time',
    'http_debug',
    'ca_override',
    'proxy_conf',
    'request_count',
    'transfered',
})

# 初始化时用于获取限流规则的客户端方法
EXCHANGE_INFO_OPERATION = 'exchange_info'


class RateLimiter:
    """
    API限流包装器 - 单进程内的准入控制

    三个窗口各自加锁，可以在多线程间共享同一个实例；
    等待期间不持有锁。
    """

    def __init__(self, api: Any,
                 limits: Optional[Iterable[Mapping[str, Any]]] = None,
                 classifier: Optional[OperationClassifier] = None,
                 config: Optional[LimiterConfig] = None,
                 clock: Callable[[], float] = time.time,
                 wait: Callable[[float], None] = time.sleep,
                 properties: Optional[Iterable[str]] = None):
        """
        初始化限流包装器

        Args:
            api: 底层API客户端（生命周期由调用方管理）
            limits: 显式限流规则；None则调用 api.exchange_info() 获取
            classifier: 操作分类器（None则使用默认权重表）
            config: 限流配置
            clock: 时钟函数
            wait: 阻塞函数
            properties: 允许透传的属性名（None则使用PROXIED_PROPERTIES）
        """
        self._api = api
        self.config = config or LimiterConfig()
        self._classifier = classifier or OperationClassifier()
        self._properties = PROXIED_PROPERTIES if properties is None else frozenset(properties)

        if limits is None:
            limits = self._fetch_rate_limits()

        self._policies = resolve_limit_policies(limits, margins=self.config.margins())

        self.windows: Dict[str, AdmissionWindow] = build_windows(
            self._policies.request_weight,
            self._policies.order_rate,
            self._policies.order_daily,
            clock=clock,
            wait=wait,
            tick=self.config.tick_seconds,
            capacity_ratio=self.config.daily_capacity_ratio,
        )
        self.request_window = self.windows['request_weight']
        self.order_rate_window = self.windows['order_rate']
        self.order_daily_window = self.windows['order_daily']

        self.lock = threading.Lock()
        self.stats = {
            'calls': 0,
            'untracked_calls': 0,
            'order_calls': 0,
        }

        logger.info(
            "[RateLimiter] 初始化完成 enabled=%s operations=%d",
            self.config.enabled, len(self._classifier)
        )

    def _fetch_rate_limits(self):
        """从交易所获取限流规则，失败返回None"""
        try:
            info = getattr(self._api, EXCHANGE_INFO_OPERATION)()
        except Exception as e:
            logger.error("[RateLimiter] 获取交易所限流规则失败: %s", e)
            return None

        if not isinstance(info, Mapping):
            logger.warning("[RateLimiter] exchangeInfo 返回格式异常: %r", type(info))
            return None
        return info.get('rateLimits')

    @property
    def api(self) -> Any:
        return self._api

    @property
    def policies(self) -> LimitPolicies:
        return self._policies

    @property
    def classifier(self) -> OperationClassifier:
        return self._classifier

    # ==================== 调用转发 ====================

    def call(self, name: str, *args, **kwargs) -> Any:
        """
        按权重准入后调用底层客户端的操作

        Args:
            name: 操作名，如 'buy' / 'prices'
            *args, **kwargs: 原样转发的参数

        Returns:
            底层客户端的返回值（异常同样原样抛出）
        """
        # 客户端不支持的操作在计入配额之前失败
        target = getattr(self._api, name)
        if not callable(target):
            raise TypeError(f"'{name}' 不是可调用的API操作")

        op = self._classifier.classify(name)

        with self.lock:
            self.stats['calls'] += 1
            if not self.config.enabled or not op.tracked:
                self.stats['untracked_calls'] += 1
            elif op.is_order:
                self.stats['order_calls'] += 1

        if self.config.enabled and op.tracked:
            self.request_window.admit(op.weight)
            if op.is_order:
                self.order_rate_window.admit(op.weight)
                self.order_daily_window.admit(op.weight)

        return target(*args, **kwargs)

    def operation(self, name: str) -> Callable[..., Any]:
        """返回绑定了操作名的调用句柄"""
        return functools.partial(self.call, name)

    # ==================== 属性透传 ====================

    def _check_property(self, name: str):
        if name not in self._properties:
            raise AttributeError(f"属性 '{name}' 不在透传列表中")

    def get_property(self, name: str) -> Any:
        """读取底层客户端属性"""
        self._check_property(name)
        return getattr(self._api, name)

    def set_property(self, name: str, value: Any):
        """设置底层客户端属性"""
        self._check_property(name)
        setattr(self._api, name, value)

    # ==================== 统计 ====================

    def get_stats(self) -> Dict[str, Any]:
        """返回限流统计信息"""
        with self.lock:
            stats = dict(self.stats)
        stats['windows'] = {name: w.get_stats() for name, w in self.windows.items()}
        return stats

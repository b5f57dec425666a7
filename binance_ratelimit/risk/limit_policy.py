#!/usr/bin/env python3
"""
Limit Policy - 交易所限流规则解析
把 exchangeInfo 的 rateLimits 转换为三个内部配额：
请求权重、订单速率、日订单数，并各自留出安全余量
"""

import math
import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from binance_ratelimit.utils.quantizer import scale_limit

logger = logging.getLogger(__name__)


# 时间单位 -> 秒
INTERVAL_SECONDS: Dict[str, int] = {
    'SECOND': 1,
    'MINUTE': 60,
    'DAY': 60 * 60 * 24,
}
DEFAULT_INTERVAL_SECONDS = 60


@dataclass(frozen=True)
class QuotaPolicy:
    """单个窗口的配额：interval秒内最多limit个权重单位"""
    limit: int
    interval: float


@dataclass(frozen=True)
class SafetyMargins:
    """安全系数，避免贴着交易所真实上限运行"""
    request_weight: float = 0.95
    order_rate: float = 0.90
    order_daily: float = 0.98


@dataclass(frozen=True)
class LimitPolicies:
    """三个窗口的配额组合"""
    request_weight: QuotaPolicy
    order_rate: QuotaPolicy
    order_daily: QuotaPolicy


# 内置保守默认值（仅作为获取失败时的兜底，不适合生产）
DEFAULT_POLICIES = LimitPolicies(
    request_weight=QuotaPolicy(limit=10, interval=60),
    order_rate=QuotaPolicy(limit=10, interval=10),
    order_daily=QuotaPolicy(limit=10, interval=10),
)


def interval_seconds(descriptor: Mapping[str, Any]) -> float:
    """
    计算规则的窗口时长

    Args:
        descriptor: rateLimits 中的一条，如 {'interval': 'MINUTE', 'intervalNum': 1}

    Returns:
        窗口秒数；未知单位按60秒计
    """
    unit = INTERVAL_SECONDS.get(descriptor.get('interval'), DEFAULT_INTERVAL_SECONDS)
    num = descriptor.get('intervalNum', 1)
    if num is None:
        num = 1
    return unit * float(num)


def resolve_limit_policies(descriptors: Any,
                           defaults: Optional[LimitPolicies] = None,
                           margins: Optional[SafetyMargins] = None) -> LimitPolicies:
    """
    解析交易所限流规则

    Args:
        descriptors: rateLimits 列表，每项包含 rateLimitType/limit/interval/intervalNum
        defaults: 未匹配到规则时保留的配额
        margins: 安全系数

    Returns:
        LimitPolicies；解析失败时返回默认值，从不抛异常
    """
    defaults = defaults or DEFAULT_POLICIES
    margins = margins or SafetyMargins()

    if not isinstance(descriptors, (list, tuple)) or not descriptors:
        logger.warning("[LimitPolicy] 无法获取交易所限流规则，使用默认配额: %s", defaults)
        return defaults

    resolved = {
        'request_weight': defaults.request_weight,
        'order_rate': defaults.order_rate,
        'order_daily': defaults.order_daily,
    }
    matched = 0

    for item in descriptors:
        if not isinstance(item, Mapping):
            logger.debug("[LimitPolicy] 忽略非法规则: %r", item)
            continue

        limit_type = item.get('rateLimitType')
        unit = item.get('interval')

        if limit_type == 'REQUEST_WEIGHT':
            key, factor = 'request_weight', margins.request_weight
        elif limit_type == 'ORDERS' and unit == 'SECOND':
            key, factor = 'order_rate', margins.order_rate
        elif limit_type == 'ORDERS' and unit == 'DAY':
            key, factor = 'order_daily', margins.order_daily
        else:
            logger.debug("[LimitPolicy] 忽略不支持的规则: %s/%s", limit_type, unit)
            continue

        try:
            raw_limit = float(item['limit'])
            interval = interval_seconds(item)
            # inf/nan/负数都视为非法规则
            if not (math.isfinite(raw_limit) and math.isfinite(interval)):
                raise ValueError("non-finite limit/interval")
            if raw_limit < 0 or interval <= 0:
                raise ValueError("negative limit or empty interval")
            policy = QuotaPolicy(limit=scale_limit(raw_limit, factor), interval=interval)
        except (KeyError, TypeError, ValueError, ArithmeticError):
            logger.debug("[LimitPolicy] 忽略limit/interval非法的规则: %r", item)
            continue

        resolved[key] = policy
        matched += 1

    if matched == 0:
        logger.warning("[LimitPolicy] 没有可用的限流规则，使用默认配额: %s", defaults)
        return defaults

    policies = LimitPolicies(**resolved)
    logger.info(
        "[LimitPolicy] 限流规则已解析: weight=%d/%ss orders=%d/%ss daily=%d/%ss",
        policies.request_weight.limit, policies.request_weight.interval,
        policies.order_rate.limit, policies.order_rate.interval,
        policies.order_daily.limit, policies.order_daily.interval,
    )
    return policies

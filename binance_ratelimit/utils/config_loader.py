"""
配置加载器 - 从环境文件加载限流配置
"""

import os
import math
import logging
from typing import Optional
from dataclasses import dataclass
from dotenv import load_dotenv

from binance_ratelimit.risk.limit_policy import SafetyMargins

logger = logging.getLogger(__name__)


def _env_float(default, *names, low=None, high=None):
    """
    从多个可能的环境变量名中读取浮点值

    取值需满足 low < v <= high，非法或越界时回退到默认值
    """
    for n in names:
        v = os.getenv(n)
        if v is not None and str(v).strip() != "":
            try:
                value = float(v)
            except ValueError:
                logger.warning("[Config] 非法数值 %s=%r，使用默认值 %s", n, v, default)
                return default
            if (not math.isfinite(value)
                    or (low is not None and value <= low)
                    or (high is not None and value > high)):
                logger.warning("[Config] 数值越界 %s=%r，使用默认值 %s", n, v, default)
                return default
            return value
    return default


def _env_bool(default, *names):
    """从多个可能的环境变量名中读取布尔值"""
    for n in names:
        v = os.getenv(n)
        if v is not None and str(v).strip() != "":
            return str(v).strip().lower() in ("1", "true", "yes", "on")
    return default


@dataclass
class LimiterConfig:
    """限流器配置"""
    # 总开关
    enabled: bool = True

    # 安全系数
    request_weight_margin: float = 0.95
    order_rate_margin: float = 0.90
    order_daily_margin: float = 0.98

    # 日订单窗口有效容量比例
    daily_capacity_ratio: float = 0.8

    # 固定退避时长（秒）
    tick_seconds: float = 1.0

    def margins(self) -> SafetyMargins:
        """转换为解析器使用的安全系数"""
        return SafetyMargins(
            request_weight=self.request_weight_margin,
            order_rate=self.order_rate_margin,
            order_daily=self.order_daily_margin,
        )


def load_limiter_config(env_file: Optional[str] = None) -> LimiterConfig:
    """
    加载限流配置

    Args:
        env_file: 配置文件路径（None则只读取当前环境变量）

    Returns:
        LimiterConfig；非法值回退到默认值
    """
    if env_file:
        if os.path.exists(env_file):
            load_dotenv(env_file, override=True)
        else:
            logger.warning("[Config] 配置文件不存在 %s，使用环境变量/默认值", env_file)

    defaults = LimiterConfig()
    config = LimiterConfig(
        enabled=_env_bool(defaults.enabled, 'RATE_LIMITER_ENABLED'),

        request_weight_margin=_env_float(defaults.request_weight_margin,
                                         'RATE_LIMIT_REQUEST_WEIGHT_MARGIN', low=0, high=1),
        order_rate_margin=_env_float(defaults.order_rate_margin,
                                     'RATE_LIMIT_ORDER_RATE_MARGIN', low=0, high=1),
        order_daily_margin=_env_float(defaults.order_daily_margin,
                                      'RATE_LIMIT_ORDER_DAILY_MARGIN', low=0, high=1),

        daily_capacity_ratio=_env_float(defaults.daily_capacity_ratio,
                                       'RATE_LIMIT_DAILY_CAPACITY_RATIO', low=0, high=1),
        tick_seconds=_env_float(defaults.tick_seconds, 'RATE_LIMIT_TICK_SEC', low=0),
    )

    logger.info(
        "[Config] 限流配置: enabled=%s margins=%.2f/%.2f/%.2f capacity=%.2f tick=%.1fs",
        config.enabled, config.request_weight_margin, config.order_rate_margin,
        config.order_daily_margin, config.daily_capacity_ratio, config.tick_seconds
    )
    return config

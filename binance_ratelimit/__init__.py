"""
Binance API限流包
在API客户端外层做请求权重、订单速率、日订单数三重滑动窗口准入控制
"""

from .risk.operation_weights import Operation, OperationClassifier, DEFAULT_WEIGHTS, ORDER_OPERATIONS
from .risk.limit_policy import (
    QuotaPolicy,
    LimitPolicies,
    SafetyMargins,
    DEFAULT_POLICIES,
    resolve_limit_policies,
)
from .risk.sliding_window import AdmissionWindow, DailyAdmissionWindow
from .connectors.rate_limited_api import RateLimiter, PROXIED_PROPERTIES
from .connectors.mock_exchange import MockExchange
from .utils.config_loader import LimiterConfig, load_limiter_config

__all__ = [
    # Operation Weights
    'Operation',
    'OperationClassifier',
    'DEFAULT_WEIGHTS',
    'ORDER_OPERATIONS',

    # Limit Policy
    'QuotaPolicy',
    'LimitPolicies',
    'SafetyMargins',
    'DEFAULT_POLICIES',
    'resolve_limit_policies',

    # Admission Windows
    'AdmissionWindow',
    'DailyAdmissionWindow',

    # Dispatcher
    'RateLimiter',
    'PROXIED_PROPERTIES',
    'MockExchange',

    # Config
    'LimiterConfig',
    'load_limiter_config',
]

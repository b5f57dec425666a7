#!/usr/bin/env python3
"""
Operation Weights - 操作权重表
每个API操作对应的权重成本，以及哪些操作属于下单类（受订单窗口约束）
"""

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional

logger = logging.getLogger(__name__)


# 操作权重（0 = 不计入限流）
DEFAULT_WEIGHTS: Dict[str, int] = {
    'account': 10,
    'add_to_transfered': 0,
    'agg_trades': 1,
    'balances': 1,
    'book_prices': 1,
    'buy': 1,
    'buy_test': 1,
    'cancel': 1,
    'candlesticks': 1,
    'chart': 0,
    'cumulative': 0,
    'deposit_address': 1,
    'deposit_history': 1,
    'asset_detail': 1,
    'depth': 1,
    'depth_cache': 1,
    'display_depth': 1,
    'exchange_info': 1,
    'first': 0,
    'get_proxy_uri_string': 0,
    'get_request_count': 0,
    'get_transfered': 0,
    'highstock': 1,
    'history': 5,
    'keep_alive': 0,
    'kline': 1,
    'last': 0,
    'market_buy': 1,
    'market_buy_test': 1,
    'market_sell': 1,
    'market_sell_test': 1,
    'mini_ticker': 1,
    'open_orders': 2,
    'order': 1,
    'orders': 10,
    'order_status': 1,
    'prev_day': 2,
    'prices': 2,
    'report': 0,
    'sell': 1,
    'sell_test': 1,
    'set_proxy': 0,
    'sort_depth': 1,
    'terminate': 0,
    'ticker': 1,
    'time': 1,
    'trades': 5,
    'user_data': 1,
    'use_server_time': 1,
    'withdraw': 1,
    'withdraw_fee': 1,
    'withdraw_history': 1,
    'fiat_history': 1,
    'fiat_payments_history': 1,
    'commission_fee': 1,
}

# 下单类操作：额外受订单速率窗口和日订单窗口约束
ORDER_OPERATIONS: FrozenSet[str] = frozenset({
    'buy',
    'buy_test',
    'cancel',
    'history',
    'market_buy',
    'market_buy_test',
    'market_sell',
    'market_sell_test',
    'open_orders',
    'order',
    'orders',
    'order_status',
    'sell',
    'sell_test',
    'trades',
})


@dataclass(frozen=True)
class Operation:
    """单个操作的分类结果"""
    name: str
    weight: int  # 0 表示不计入限流
    is_order: bool = False

    @property
    def tracked(self) -> bool:
        """是否需要限流"""
        return self.weight > 0


class OperationClassifier:
    """
    操作分类器 - 权重查表

    未列出的操作权重为0，直接绕过限流（与权重显式为0的操作一致）。
    """

    def __init__(self,
                 weights: Optional[Dict[str, int]] = None,
                 order_operations: Optional[Iterable[str]] = None):
        """
        Args:
            weights: 替换默认权重表（None则使用DEFAULT_WEIGHTS）
            order_operations: 替换默认下单类操作集合
        """
        table = DEFAULT_WEIGHTS if weights is None else weights
        orders = ORDER_OPERATIONS if order_operations is None else frozenset(order_operations)

        self._operations: Dict[str, Operation] = {}
        for name, weight in table.items():
            weight = int(weight)
            if weight < 0:
                raise ValueError(f"操作权重不能为负: {name}={weight}")
            self._operations[name] = Operation(name, weight, name in orders)

    def classify(self, name: str) -> Operation:
        """查询操作的权重和类别"""
        op = self._operations.get(name)
        if op is None:
            # 未登记的操作不计入限流
            logger.debug("[OperationClassifier] 未登记操作，绕过限流: %s", name)
            return Operation(name, 0, False)
        return op

    def weight(self, name: str) -> int:
        return self.classify(name).weight

    def is_order_operation(self, name: str) -> bool:
        return self.classify(name).is_order

    def is_tracked(self, name: str) -> bool:
        return self.classify(name).tracked

    def names(self) -> List[str]:
        """返回所有登记的操作名"""
        return sorted(self._operations)

    def __contains__(self, name: str) -> bool:
        return name in self._operations

    def __len__(self) -> int:
        return len(self._operations)

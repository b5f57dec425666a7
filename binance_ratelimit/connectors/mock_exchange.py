#!/usr/bin/env python3
"""
Mock Exchange - 模拟交易所客户端，用于离线测试和演练
同步接口，不发起任何网络请求
"""

import time
from typing import Dict, List, Optional
from collections import defaultdict, deque
import itertools
import logging

logger = logging.getLogger(__name__)


# 现货默认限流规则（与exchangeInfo返回格式一致）
DEFAULT_RATE_LIMITS = [
    {'rateLimitType': 'REQUEST_WEIGHT', 'interval': 'MINUTE', 'intervalNum': 1, 'limit': 1200},
    {'rateLimitType': 'ORDERS', 'interval': 'SECOND', 'intervalNum': 10, 'limit': 100},
    {'rateLimitType': 'ORDERS', 'interval': 'DAY', 'intervalNum': 1, 'limit': 200000},
    {'rateLimitType': 'RAW_REQUESTS', 'interval': 'MINUTE', 'intervalNum': 5, 'limit': 6100},
]


class MockOrder:
    """模拟订单"""
    def __init__(self, order_id: int, symbol: str, side: str, qty: float,
                 price: Optional[float] = None, order_type: str = 'LIMIT'):
        self.order_id = order_id
        self.symbol = symbol
        self.side = side
        self.qty = qty
        self.price = price
        self.order_type = order_type
        self.filled_qty = 0.0
        self.status = 'NEW'
        self.create_time = time.time()

    def to_dict(self) -> Dict:
        return {
            'symbol': self.symbol,
            'orderId': self.order_id,
            'side': self.side,
            'type': self.order_type,
            'price': str(self.price or 0),
            'origQty': str(self.qty),
            'executedQty': str(self.filled_qty),
            'status': self.status,
            'time': int(self.create_time * 1000),
        }


class MockExchange:
    """模拟交易所 - 提供与真实客户端相同的操作名"""

    def __init__(self, symbol: str = 'DOGEUSDT', rate_limits: Optional[List[Dict]] = None):
        self.symbol = symbol
        self.rate_limits = DEFAULT_RATE_LIMITS if rate_limits is None else rate_limits

        # 市场参数
        self.mid_price = 0.24000
        self.spread = 0.00010
        self.tick_size = 0.00001

        # 账户余额
        self._balances = {
            'USDT': {'free': 300.0, 'locked': 0.0},
            'DOGE': {'free': 1200.0, 'locked': 0.0},
        }

        # 订单
        self.order_book = {}  # order_id -> MockOrder
        self._order_ids = itertools.count(1)
        self.trade_log = deque(maxlen=1000)

        # 客户端属性（可被限流器透传读写）
        self.use_server_time = False
        self.http_debug = False
        self.ca_override = False
        self.proxy_conf = None
        self.request_count = 0
        self.transfered = 0

        # 调用记录：(操作名, args, kwargs)
        self.calls = []
        self.stats = defaultdict(int)

    def _touch(self, name: str, *args, **kwargs):
        self.calls.append((name, args, kwargs))
        self.request_count += 1
        self.stats[name] += 1

    # ==================== 公共数据 ====================

    def exchange_info(self) -> Dict:
        """获取交易规则和限流规则"""
        self._touch('exchange_info')
        return {
            'timezone': 'UTC',
            'serverTime': int(time.time() * 1000),
            'rateLimits': self.rate_limits,
            'symbols': [{
                'symbol': self.symbol,
                'status': 'TRADING',
                'filters': [
                    {'filterType': 'PRICE_FILTER', 'tickSize': str(self.tick_size)},
                ],
            }],
        }

    def time(self) -> Dict:
        self._touch('time')
        return {'serverTime': int(time.time() * 1000)}

    def prices(self) -> Dict[str, float]:
        self._touch('prices')
        return {self.symbol: self.mid_price}

    def depth(self, symbol: str, limit: int = 20) -> Dict:
        """获取深度"""
        self._touch('depth', symbol, limit=limit)
        best_bid = round(self.mid_price - self.spread / 2, 5)
        best_ask = round(self.mid_price + self.spread / 2, 5)
        bids = {f"{best_bid - i * self.tick_size:.5f}": 1000.0 for i in range(limit)}
        asks = {f"{best_ask + i * self.tick_size:.5f}": 1000.0 for i in range(limit)}
        return {'bids': bids, 'asks': asks}

    def chart(self, symbols, interval: str = '30m', callback=None):
        """K线订阅（权重为0，不计入限流）"""
        self._touch('chart', symbols, interval=interval, callback=callback)
        return {'subscribed': list(symbols) if isinstance(symbols, (list, tuple)) else [symbols],
                'interval': interval}

    # ==================== 账户 ====================

    def account(self) -> Dict:
        self._touch('account')
        return {
            'balances': [
                {'asset': asset, 'free': str(b['free']), 'locked': str(b['locked'])}
                for asset, b in self._balances.items()
            ]
        }

    def balances(self) -> Dict[str, Dict[str, float]]:
        """各资产可用/冻结余额"""
        self._touch('balances')
        return {asset: {'available': b['free'], 'onOrder': b['locked']}
                for asset, b in self._balances.items()}

    # ==================== 下单 ====================

    def _place(self, side: str, symbol: str, quantity: float,
               price: Optional[float], order_type: str) -> Dict:
        if quantity <= 0:
            raise ValueError(f"非法数量: {quantity}")
        order = MockOrder(next(self._order_ids), symbol, side, quantity, price, order_type)
        self.order_book[order.order_id] = order
        self.stats['orders_placed'] += 1

        if order_type == 'MARKET':
            # 市价单立即成交
            order.filled_qty = quantity
            order.status = 'FILLED'
            self.trade_log.append({
                'symbol': symbol, 'orderId': order.order_id, 'side': side,
                'price': self.mid_price, 'qty': quantity, 'time': int(time.time() * 1000),
            })
        logger.debug("[MockEx] %s %s %s qty=%s price=%s", order_type, side, symbol, quantity, price)
        return order.to_dict()

    def buy(self, symbol: str, quantity: float, price: float, order_type: str = 'LIMIT'):
        self._touch('buy', symbol, quantity, price, order_type=order_type)
        return self._place('BUY', symbol, quantity, price, order_type)

    def sell(self, symbol: str, quantity: float, price: float, order_type: str = 'LIMIT'):
        self._touch('sell', symbol, quantity, price, order_type=order_type)
        return self._place('SELL', symbol, quantity, price, order_type)

    def market_buy(self, symbol: str, quantity: float):
        self._touch('market_buy', symbol, quantity)
        return self._place('BUY', symbol, quantity, None, 'MARKET')

    def market_sell(self, symbol: str, quantity: float):
        self._touch('market_sell', symbol, quantity)
        return self._place('SELL', symbol, quantity, None, 'MARKET')

    def cancel(self, symbol: str, order_id: int) -> Dict:
        """撤单"""
        self._touch('cancel', symbol, order_id)
        order = self.order_book.get(order_id)
        if order is None or order.symbol != symbol:
            raise KeyError(f"Unknown order: {order_id}")
        if order.status == 'NEW':
            order.status = 'CANCELED'
            self.stats['orders_canceled'] += 1
        return order.to_dict()

    def order_status(self, symbol: str, order_id: int) -> Dict:
        self._touch('order_status', symbol, order_id)
        order = self.order_book.get(order_id)
        if order is None or order.symbol != symbol:
            raise KeyError(f"Unknown order: {order_id}")
        return order.to_dict()

    def open_orders(self, symbol: Optional[str] = None) -> List[Dict]:
        self._touch('open_orders', symbol)
        return [o.to_dict() for o in self.order_book.values()
                if o.status == 'NEW' and (symbol is None or o.symbol == symbol)]

    def orders(self, symbol: str, limit: int = 500) -> List[Dict]:
        self._touch('orders', symbol, limit=limit)
        found = [o.to_dict() for o in self.order_book.values() if o.symbol == symbol]
        return found[-limit:]

    def history(self, symbol: str, limit: int = 500) -> List[Dict]:
        self._touch('history', symbol, limit=limit)
        found = [t for t in self.trade_log if t['symbol'] == symbol]
        return found[-limit:]

    def trades(self, symbol: str) -> List[Dict]:
        self._touch('trades', symbol)
        return [t for t in self.trade_log if t['symbol'] == symbol]

    def get_stats(self) -> Dict:
        """获取统计信息"""
        return dict(self.stats)

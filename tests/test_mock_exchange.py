"""Tests for the offline exchange client."""

import pytest

from binance_ratelimit.connectors.mock_exchange import DEFAULT_RATE_LIMITS, MockExchange


@pytest.fixture
def exchange():
    return MockExchange()


class TestMockExchange:

    def test_exchange_info_carries_rate_limits(self, exchange):
        info = exchange.exchange_info()
        assert info['rateLimits'] is DEFAULT_RATE_LIMITS
        assert info['symbols'][0]['symbol'] == 'DOGEUSDT'

    def test_limit_order_lifecycle(self, exchange):
        order = exchange.sell('DOGEUSDT', 200, 0.25)
        assert exchange.open_orders('DOGEUSDT') == [order]

        cancelled = exchange.cancel('DOGEUSDT', order['orderId'])
        assert cancelled['status'] == 'CANCELED'
        assert exchange.open_orders() == []
        assert exchange.order_status('DOGEUSDT', order['orderId'])['status'] == 'CANCELED'
        assert exchange.stats['orders_canceled'] == 1

    def test_market_order_fills(self, exchange):
        exchange.market_sell('DOGEUSDT', 10)
        assert exchange.history('DOGEUSDT')[0]['side'] == 'SELL'
        assert len(exchange.orders('DOGEUSDT')) == 1

    def test_invalid_quantity(self, exchange):
        with pytest.raises(ValueError):
            exchange.buy('DOGEUSDT', 0, 0.24)

    def test_depth_and_account(self, exchange):
        depth = exchange.depth('DOGEUSDT', limit=5)
        assert len(depth['bids']) == 5
        assert {b['asset'] for b in exchange.account()['balances']} == {'USDT', 'DOGE'}

    def test_balances_is_an_operation(self, exchange):
        assert callable(exchange.balances)
        assert set(exchange.balances()) == {'USDT', 'DOGE'}
        assert exchange.stats['balances'] == 1

    def test_calls_are_recorded(self, exchange):
        exchange.time()
        exchange.prices()
        assert [c[0] for c in exchange.calls] == ['time', 'prices']
        assert exchange.request_count == 2

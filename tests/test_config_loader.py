"""Tests for limiter configuration loading."""

import pytest

from binance_ratelimit.connectors.mock_exchange import MockExchange
from binance_ratelimit.connectors.rate_limited_api import RateLimiter
from binance_ratelimit.risk.limit_policy import SafetyMargins
from binance_ratelimit.utils.config_loader import LimiterConfig, load_limiter_config

ENV_KEYS = (
    'RATE_LIMITER_ENABLED',
    'RATE_LIMIT_REQUEST_WEIGHT_MARGIN',
    'RATE_LIMIT_ORDER_RATE_MARGIN',
    'RATE_LIMIT_ORDER_DAILY_MARGIN',
    'RATE_LIMIT_DAILY_CAPACITY_RATIO',
    'RATE_LIMIT_TICK_SEC',
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    # empty values count as unset; monkeypatch restores them after load_dotenv overrides
    for key in ENV_KEYS:
        monkeypatch.setenv(key, "")


class TestLoadLimiterConfig:

    def test_defaults(self):
        config = load_limiter_config()
        assert config == LimiterConfig()
        assert config.enabled is True
        assert config.margins() == SafetyMargins(0.95, 0.90, 0.98)

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv('RATE_LIMITER_ENABLED', 'false')
        monkeypatch.setenv('RATE_LIMIT_REQUEST_WEIGHT_MARGIN', '0.8')
        monkeypatch.setenv('RATE_LIMIT_TICK_SEC', '0.5')
        config = load_limiter_config()
        assert config.enabled is False
        assert config.request_weight_margin == 0.8
        assert config.tick_seconds == 0.5
        assert config.order_rate_margin == 0.90

    def test_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text(
            "RATE_LIMIT_ORDER_DAILY_MARGIN=0.9\n"
            "RATE_LIMIT_DAILY_CAPACITY_RATIO=0.7\n"
        )
        config = load_limiter_config(str(env_file))
        assert config.order_daily_margin == 0.9
        assert config.daily_capacity_ratio == 0.7
        assert config.margins().order_daily == 0.9

    def test_missing_env_file_is_not_fatal(self, tmp_path):
        config = load_limiter_config(str(tmp_path / "missing.env"))
        assert config == LimiterConfig()

    def test_invalid_values_fall_back(self, monkeypatch):
        monkeypatch.setenv('RATE_LIMIT_ORDER_RATE_MARGIN', 'ninety percent')
        config = load_limiter_config()
        assert config.order_rate_margin == 0.90

    @pytest.mark.parametrize("key,raw,attr,default", [
        ('RATE_LIMIT_TICK_SEC', '-1', 'tick_seconds', 1.0),
        ('RATE_LIMIT_TICK_SEC', '0', 'tick_seconds', 1.0),
        ('RATE_LIMIT_TICK_SEC', 'inf', 'tick_seconds', 1.0),
        ('RATE_LIMIT_REQUEST_WEIGHT_MARGIN', '0', 'request_weight_margin', 0.95),
        ('RATE_LIMIT_REQUEST_WEIGHT_MARGIN', '1.5', 'request_weight_margin', 0.95),
        ('RATE_LIMIT_ORDER_RATE_MARGIN', '-0.2', 'order_rate_margin', 0.90),
        ('RATE_LIMIT_ORDER_DAILY_MARGIN', 'nan', 'order_daily_margin', 0.98),
        ('RATE_LIMIT_DAILY_CAPACITY_RATIO', '0', 'daily_capacity_ratio', 0.8),
        ('RATE_LIMIT_DAILY_CAPACITY_RATIO', '2', 'daily_capacity_ratio', 0.8),
    ])
    def test_out_of_range_values_fall_back(self, monkeypatch, key, raw, attr, default):
        monkeypatch.setenv(key, raw)
        assert getattr(load_limiter_config(), attr) == default

    def test_upper_bounds_are_inclusive(self, monkeypatch):
        monkeypatch.setenv('RATE_LIMIT_ORDER_RATE_MARGIN', '1')
        monkeypatch.setenv('RATE_LIMIT_DAILY_CAPACITY_RATIO', '1.0')
        config = load_limiter_config()
        assert config.order_rate_margin == 1.0
        assert config.daily_capacity_ratio == 1.0

    def test_negative_tick_does_not_break_throttling(self, monkeypatch, clock):
        monkeypatch.setenv('RATE_LIMIT_TICK_SEC', '-1')
        limits = [{'rateLimitType': 'REQUEST_WEIGHT', 'interval': 'SECOND',
                   'intervalNum': 1, 'limit': 2}]
        limiter = RateLimiter(MockExchange(), limits=limits, config=load_limiter_config(),
                              clock=clock, wait=clock.sleep)
        limiter.call('prices')
        limiter.call('prices')
        assert clock.sleeps == [1.0, 1.0]

    @pytest.mark.parametrize("raw,expected", [
        ('1', True), ('true', True), ('YES', True), ('on', True),
        ('0', False), ('false', False), ('no', False),
    ])
    def test_enabled_flag(self, monkeypatch, raw, expected):
        monkeypatch.setenv('RATE_LIMITER_ENABLED', raw)
        assert load_limiter_config().enabled is expected

"""거래 손익 계산 테스트."""

import pytest

from conftest import make_position
from quant_backtest.backtest.accounting import TransactionCosts
from quant_backtest.core.errors import OpenPositionError


def test_entry_cost_is_price_times_quantity(default_costs):
    position = make_position(entry_price=12.5, quantity=8)
    assert default_costs.entry_cost(position) == pytest.approx(100.0)


def test_net_profit_deducts_slippage_and_commission():
    costs = TransactionCosts(commission=9.99, slippage=0.001)
    position = make_position(entry_price=10.0, exit_price=12.0, quantity=100)

    assert costs.gross_profit(position) == pytest.approx(200.0)
    # 200 - 0.2 - 9.99
    assert costs.net_profit(position) == pytest.approx(189.81)


def test_losing_trade_slippage_reduces_the_loss():
    costs = TransactionCosts(commission=1.0, slippage=0.01)
    position = make_position(entry_price=10.0, exit_price=9.0, quantity=100)

    # gross -100, slippage term -(-1) = +1, commission -1
    assert costs.net_profit(position) == pytest.approx(-100.0)


def test_profit_on_open_position_fails_loudly(default_costs):
    position = make_position(exit_price=None)

    with pytest.raises(OpenPositionError):
        default_costs.net_profit(position)
    with pytest.raises(ValueError):
        default_costs.gross_profit(position)


def test_entry_cost_allowed_on_open_position(default_costs):
    position = make_position(entry_price=5.0, quantity=3, exit_price=None)
    assert default_costs.entry_cost(position) == pytest.approx(15.0)


def test_unrealized_profit_uses_mark_price(no_costs):
    position = make_position(entry_price=10.0, quantity=10, exit_price=None).mark(12.0)
    assert no_costs.unrealized_profit(position) == pytest.approx(20.0)
    assert no_costs.unrealized_profit(position, price=9.0) == pytest.approx(-10.0)


def test_unrealized_profit_without_price_is_zero(default_costs):
    position = make_position(exit_price=None)
    assert default_costs.unrealized_profit(position) == 0.0

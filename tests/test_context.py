"""StrategyTestContext / OrderManager 테스트."""

from datetime import datetime

import pandas as pd
import pytest

from conftest import ScriptedStrategy, make_bars
from quant_backtest.backtest.context import StrategyTestContext
from quant_backtest.backtest.order_manager import OrderManager
from quant_backtest.core.data_provider import CandleSeries
from quant_backtest.core.trading_strategy import SignalType
from quant_backtest.strategies import create_strategy


def _series(closes, symbol="AAA"):
    return CandleSeries(symbol=symbol, bars=make_bars(closes))


def test_buy_then_sell_produces_closed_position():
    strategy = ScriptedStrategy({1: SignalType.BUY, 3: SignalType.SELL})
    context = StrategyTestContext(strategy)
    context.set_series(_series([10.0, 11.0, 12.0, 13.0, 14.0]))

    context.run()

    assert len(context.closed_positions) == 1
    position = context.closed_positions[0]
    assert position.symbol == "AAA"
    assert position.entry_price == 11.0
    assert position.exit_price == 13.0
    assert position.quantity == 10
    assert position.score == 1.0
    assert position.entry_date == datetime(2024, 1, 2)
    assert context.open_positions == []


def test_unclosed_position_is_marked_at_last_close():
    strategy = ScriptedStrategy({0: SignalType.BUY})
    context = StrategyTestContext(strategy)
    context.set_series(_series([10.0, 12.0, 15.0]))

    context.run()

    assert context.closed_positions == []
    [open_position] = context.open_positions
    assert open_position.is_open
    assert open_position.mark_price == 15.0


def test_buys_are_capped_by_max_buy_count():
    strategy = ScriptedStrategy({0: SignalType.BUY, 1: SignalType.BUY, 2: SignalType.BUY}, max_buys=2)
    context = StrategyTestContext(strategy)
    context.set_series(_series([10.0, 9.0, 8.0, 7.0]))

    context.run()

    assert len(context.open_positions) == 2
    assert strategy.seen_positions[2].buy_count == 2


def test_sell_closes_every_open_entry_together():
    script = {0: SignalType.BUY, 1: SignalType.BUY, 2: SignalType.SELL}
    strategy = ScriptedStrategy(script, max_buys=3)
    context = StrategyTestContext(strategy)
    context.set_series(_series([10.0, 8.0, 12.0]))

    context.run()

    closed = context.closed_positions
    assert [p.entry_price for p in closed] == [10.0, 8.0]
    assert all(p.exit_price == 12.0 for p in closed)
    assert strategy.seen_positions[2].avg_price == pytest.approx(9.0)


def test_sell_without_holdings_is_ignored():
    strategy = ScriptedStrategy({0: SignalType.SELL})
    context = StrategyTestContext(strategy)
    context.set_series(_series([10.0, 11.0]))

    context.run()

    assert context.closed_positions == []
    assert context.open_positions == []


def test_window_is_limited_to_lookback():
    strategy = ScriptedStrategy({})
    context = StrategyTestContext(strategy, lookback=3)
    context.set_series(_series([1.0, 2.0, 3.0, 4.0, 5.0]))

    context.run()

    assert strategy.seen_windows == [1, 2, 3, 3, 3]


def test_reset_clears_previous_instrument():
    strategy = ScriptedStrategy({0: SignalType.BUY, 1: SignalType.SELL})
    context = StrategyTestContext(strategy)
    context.set_series(_series([10.0, 11.0]))
    context.run()

    context.reset()

    assert context.closed_positions == []
    assert context.series is None
    with pytest.raises(ValueError):
        context.run()


def test_order_manager_position_info_weights_average_price():
    manager = OrderManager()
    manager.open_position("AAA", datetime(2024, 1, 1), price=10.0, quantity=10)
    manager.open_position("AAA", datetime(2024, 1, 2), price=20.0, quantity=30)

    info = manager.position_info("AAA", max_buy_count=5)

    assert info.quantity == 40
    assert info.avg_price == pytest.approx(17.5)
    assert info.buy_count == 2
    assert info.max_buy_count == 5


def test_order_manager_returns_copies():
    manager = OrderManager()
    manager.open_position("AAA", pd.Timestamp("2024-01-01").to_pydatetime(), price=10.0, quantity=1)
    manager.open_positions.clear()
    assert len(manager.open_positions) == 1


def test_strategy_needing_more_bars_than_lookback_is_rejected():
    with pytest.raises(ValueError, match="lookback"):
        StrategyTestContext(create_strategy("ma_cross", {"ma_period": 50}), lookback=30)

    context = StrategyTestContext(ScriptedStrategy({}, bars=10), lookback=10)
    assert context.lookback == 10

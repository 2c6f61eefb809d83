"""BacktestReport / EquityCalculator / metrics 테스트."""

import json

import pytest

from conftest import make_position
from quant_backtest.backtest.accounting import TransactionCosts
from quant_backtest.backtest.metrics import BacktestMetrics, calculate_metrics
from quant_backtest.backtest.report import BacktestReport, EquityCalculator


def _report(tmp_path, positions, open_positions=(), capital=1000.0, commission=0.0, slippage=0.0):
    return BacktestReport(
        str(tmp_path / "reports" / "run"),
        capital,
        commission,
        slippage,
        list(positions),
        list(open_positions),
    )


def test_total_capital_includes_realized_and_open_equity(tmp_path):
    closed = make_position(entry_price=10.0, quantity=10, exit_price=12.0)          # +20
    still_open = make_position(entry_price=5.0, quantity=10, exit_price=None).mark(4.0)  # -10

    report = _report(tmp_path, [closed], [still_open])

    assert report.total_capital_and_equity() == pytest.approx(1010.0)


def test_empty_report_returns_starting_capital(tmp_path):
    report = _report(tmp_path, [], [], capital=777.0)
    assert report.total_capital_and_equity() == 777.0
    assert report.equity_curve().empty
    assert report.metrics().total_trades == 0


def test_equity_calculator_finish_applies_once():
    calculator = EquityCalculator(100.0, TransactionCosts(commission=0.0, slippage=0.0))
    calculator.process_closed_position(make_position(entry_price=1.0, quantity=10, exit_price=2.0))
    assert calculator.finish() == pytest.approx(110.0)
    assert calculator.finish() == pytest.approx(110.0)


def test_equity_curve_follows_exit_order(tmp_path):
    late_exit = make_position(symbol="A", day=1, exit_day=5, entry_price=10.0, quantity=1, exit_price=15.0)
    early_exit = make_position(symbol="B", day=2, exit_day=3, entry_price=10.0, quantity=1, exit_price=8.0)

    curve = _report(tmp_path, [late_exit, early_exit]).equity_curve()

    assert curve["symbol"].tolist() == ["B", "A"]
    assert curve["capital"].tolist() == pytest.approx([998.0, 1003.0])


def test_render_writes_chart_csv_and_summary(tmp_path):
    positions = [
        make_position(symbol="A", day=1, exit_day=2, entry_price=10.0, quantity=10, exit_price=11.0),
        make_position(symbol="B", day=3, exit_day=4, entry_price=10.0, quantity=10, exit_price=9.5),
    ]
    report = _report(tmp_path, positions, commission=1.0)

    chart = report.render()

    assert chart.exists() and chart.suffix == ".png"
    trades_csv = tmp_path / "reports" / "run_trades.csv"
    assert len(trades_csv.read_text(encoding="utf-8").strip().splitlines()) == 3
    summary = json.loads((tmp_path / "reports" / "run_summary.json").read_text(encoding="utf-8"))
    assert summary["ending_capital"] == pytest.approx(1000.0 + 9.0 - 6.0)
    assert summary["metrics"]["total_trades"] == 2
    assert summary["metrics"]["winning_trades"] == 1


def test_metrics_drawdown_and_win_rate():
    costs = TransactionCosts(commission=0.0, slippage=0.0)
    positions = [
        make_position(day=1, entry_price=10.0, quantity=10, exit_price=12.0),   # +20
        make_position(day=2, entry_price=10.0, quantity=10, exit_price=7.0),    # -30
        make_position(day=3, entry_price=10.0, quantity=10, exit_price=11.0),   # +10
    ]
    equity = [100.0, 120.0, 90.0, 100.0]

    metrics = calculate_metrics(positions, equity, 100.0, costs, trading_days=3)

    assert metrics.total_return == pytest.approx(0.0)
    assert metrics.max_drawdown == pytest.approx(25.0)
    assert metrics.win_rate == pytest.approx(200 / 3)
    assert metrics.profit_factor == pytest.approx(1.0)
    assert metrics.max_consecutive_wins == 1
    assert metrics.max_consecutive_losses == 1


def _reject_constant(token):
    raise ValueError(f"JSON이 아닌 값: {token}")


def test_summary_stays_strict_json_without_losing_trades(tmp_path):
    report = _report(tmp_path, [make_position(entry_price=10.0, quantity=10, exit_price=12.0)])

    report.render()

    text = (tmp_path / "reports" / "run_summary.json").read_text(encoding="utf-8")
    summary = json.loads(text, parse_constant=_reject_constant)
    assert summary["metrics"]["profit_factor"] is None
    assert summary["metrics"]["winning_trades"] == 1


def test_metrics_to_dict_replaces_non_finite_values():
    values = BacktestMetrics(profit_factor=float("inf"), sharpe_ratio=float("nan"), total_trades=3).to_dict()

    assert values["profit_factor"] is None
    assert values["sharpe_ratio"] is None
    assert values["total_trades"] == 3

"""
백테스트 리포트 모듈.

[ 역할 ]
    자본 제약 필터를 통과한 포지션(+ 마지막 종목 실행의 미청산 포지션)으로
    최종 자본+평가액을 계산하고 결과물을 파일로 남긴다.

[ 산출물 ]  render() 호출 시 report_name 기준으로 생성
    {report_name}.png            - 자산 곡선 차트 (matplotlib)
    {report_name}_trades.csv     - 채택된 거래 목록
    {report_name}_summary.json   - 성과 지표 + 최종 자본

[ 호출하는 곳 ]
    - backtest/executor.py::BacktestExecutor.run() 마지막 단계
"""

import json
import logging
from pathlib import Path

import matplotlib
import pandas as pd

# 디스플레이 없는 환경용 백엔드
matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402

from quant_backtest.backtest.accounting import TransactionCosts  # noqa: E402
from quant_backtest.backtest.metrics import BacktestMetrics, calculate_metrics  # noqa: E402
from quant_backtest.core.position import Position  # noqa: E402

logger = logging.getLogger("quant_backtest.report")


class EquityCalculator:
    """시작 자본에 청산 손익과 미청산 평가 손익을 누적."""

    def __init__(self, capital: float, costs: TransactionCosts):
        self.capital = capital
        self.costs = costs
        self.realized = 0.0
        self.unrealized = 0.0
        self._finished = False

    def process_closed_position(self, position: Position) -> float:
        profit = self.costs.net_profit(position)
        self.realized += profit
        return profit

    def process_open_position(self, position: Position) -> float:
        profit = self.costs.unrealized_profit(position)
        self.unrealized += profit
        return profit

    def finish(self) -> float:
        """누적 손익을 자본에 반영. 두 번 호출해도 한 번만 반영된다."""
        if not self._finished:
            self.capital += self.realized + self.unrealized
            self._finished = True
        return self.capital


class BacktestReport:
    """백테스트 결과 리포트."""

    def __init__(
        self,
        report_name: str,
        capital: float,
        commission: float,
        slippage: float,
        positions: list[Position],
        open_positions: list[Position],
    ):
        self.report_name = report_name
        self.capital = capital
        self.costs = TransactionCosts(commission=commission, slippage=slippage)
        self.positions = list(positions)
        self.open_positions = list(open_positions)

    def total_capital_and_equity(self) -> float:
        """시작 자본 + 청산 순손익 + 미청산 평가 손익."""
        calculator = EquityCalculator(self.capital, self.costs)
        for position in self.positions:
            calculator.process_closed_position(position)
        for position in self.open_positions:
            calculator.process_open_position(position)
        return calculator.finish()

    def _closed_by_exit(self) -> list[Position]:
        closed = [p for p in self.positions if not p.is_open]
        return sorted(closed, key=lambda p: p.exit_date)

    def equity_curve(self) -> pd.DataFrame:
        """청산일 순으로 누적한 자본. columns: [date, symbol, profit, capital]."""
        rows = []
        capital = self.capital
        for position in self._closed_by_exit():
            profit = self.costs.net_profit(position)
            capital += profit
            rows.append({
                "date": position.exit_date,
                "symbol": position.symbol,
                "profit": profit,
                "capital": capital,
            })
        return pd.DataFrame(rows, columns=["date", "symbol", "profit", "capital"])

    def trades_frame(self) -> pd.DataFrame:
        """채택된 거래 + 미청산 포지션 목록."""
        rows = []
        for position in self.positions + self.open_positions:
            rows.append({
                "symbol": position.symbol,
                "entry_date": position.entry_date,
                "entry_price": position.entry_price,
                "exit_date": position.exit_date,
                "exit_price": position.exit_price,
                "quantity": position.quantity,
                "score": position.score,
                "entry_cost": self.costs.entry_cost(position),
                "profit": (
                    self.costs.unrealized_profit(position) if position.is_open
                    else self.costs.net_profit(position)
                ),
                "open": position.is_open,
                "reason": position.reason,
            })
        return pd.DataFrame(rows)

    def metrics(self) -> BacktestMetrics:
        closed = self._closed_by_exit()
        curve = self.equity_curve()
        trading_days = 0
        if closed:
            first_entry = min(p.entry_date for p in closed)
            last_exit = closed[-1].exit_date
            trading_days = len(pd.bdate_range(first_entry, last_exit))
        return calculate_metrics(
            positions=closed,
            equity_values=[self.capital] + curve["capital"].tolist(),
            initial_capital=self.capital,
            costs=self.costs,
            trading_days=trading_days,
        )

    def render(self) -> Path:
        """차트/CSV/JSON 저장. 차트 파일 경로 반환."""
        base = Path(self.report_name)
        base.parent.mkdir(parents=True, exist_ok=True)

        trades_path = base.with_name(f"{base.name}_trades.csv")
        self.trades_frame().to_csv(trades_path, index=False)

        summary_path = base.with_name(f"{base.name}_summary.json")
        summary = {
            "starting_capital": self.capital,
            "ending_capital": self.total_capital_and_equity(),
            "closed_positions": len(self.positions),
            "open_positions": len(self.open_positions),
            "metrics": self.metrics().to_dict(),
        }
        with open(summary_path, "w", encoding="utf-8") as f:
            json.dump(summary, f, indent=2, ensure_ascii=False, allow_nan=False)

        chart_path = base.with_name(f"{base.name}.png")
        curve = self.equity_curve()
        fig, ax = plt.subplots(figsize=(10, 4))
        if not curve.empty:
            ax.step(pd.to_datetime(curve["date"]), curve["capital"], where="post", linewidth=1.5)
            ax.axhline(self.capital, color="grey", linestyle="--", linewidth=0.8)
            ax.set_title(f"Equity Curve ({base.name})")
            ax.set_xlabel("Date")
            ax.set_ylabel("Capital")
            fig.autofmt_xdate()
        fig.tight_layout()
        fig.savefig(chart_path)
        plt.close(fig)

        logger.info(f"리포트 저장: {chart_path}, {trades_path}, {summary_path}")
        return chart_path

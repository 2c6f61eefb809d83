"""
백테스트 성과 지표 계산 모듈.

[ 역할 ]
    자본 제약 필터를 통과한 청산 포지션과 자산 곡선을 받아 성과 지표를 계산.
    calculate_metrics() 함수가 핵심.

[ 계산하는 지표 ]
    - 총 수익률 / 연환산 수익률
    - 샤프 비율 (위험 대비 수익)
    - MDD (최대 낙폭)
    - 승률, 평균 수익/손실, 수익 팩터
    - 평균 보유 기간, 연속 승/패

[ 호출하는 곳 ]
    - backtest/report.py::BacktestReport.metrics()
"""

import math
from dataclasses import asdict, dataclass
from typing import Any

import numpy as np

from quant_backtest.backtest.accounting import TransactionCosts
from quant_backtest.core.position import Position


@dataclass
class BacktestMetrics:
    """백테스트 성과 지표. summary()로 포맷된 리포트 출력 가능."""
    total_return: float = 0.0         # 총 수익률 (%)
    annual_return: float = 0.0        # 연환산 수익률 (%)
    sharpe_ratio: float = 0.0         # 샤프 비율
    max_drawdown: float = 0.0         # 최대 낙폭 MDD (%)
    win_rate: float = 0.0             # 승률 (%)
    avg_profit: float = 0.0           # 수익 거래 평균 이익
    avg_loss: float = 0.0             # 손실 거래 평균 손실
    profit_factor: float = 0.0        # 총이익 / 총손실
    total_trades: int = 0             # 청산 거래 수
    winning_trades: int = 0
    losing_trades: int = 0
    avg_holding_days: float = 0.0     # 평균 보유 기간 (일)
    max_consecutive_wins: int = 0
    max_consecutive_losses: int = 0

    def to_dict(self) -> dict[str, Any]:
        """JSON 저장용 dict. inf/nan(예: 손실 거래가 없을 때의 profit_factor)은 None."""
        return {
            key: None if isinstance(value, float) and not math.isfinite(value) else value
            for key, value in asdict(self).items()
        }

    def summary(self) -> str:
        """성과 요약 문자열."""
        lines = [
            "=" * 50,
            "백테스트 성과 리포트",
            "=" * 50,
            f"총 수익률:       {self.total_return:>10.2f}%",
            f"연환산 수익률:    {self.annual_return:>10.2f}%",
            f"샤프 비율:       {self.sharpe_ratio:>10.2f}",
            f"최대 낙폭(MDD):  {self.max_drawdown:>10.2f}%",
            "-" * 50,
            f"총 거래 횟수:    {self.total_trades:>10d}",
            f"승률:            {self.win_rate:>10.2f}%",
            f"수익 거래:       {self.winning_trades:>10d}",
            f"손실 거래:       {self.losing_trades:>10d}",
            f"평균 수익:       {self.avg_profit:>10,.2f}",
            f"평균 손실:       {self.avg_loss:>10,.2f}",
            f"수익 팩터:       {self.profit_factor:>10.2f}",
            f"평균 보유 기간:  {self.avg_holding_days:>10.1f}일",
            "-" * 50,
            f"최대 연속 수익:  {self.max_consecutive_wins:>10d}",
            f"최대 연속 손실:  {self.max_consecutive_losses:>10d}",
            "=" * 50,
        ]
        return "\n".join(lines)


def calculate_metrics(
    positions: list[Position],
    equity_values: list[float],
    initial_capital: float,
    costs: TransactionCosts,
    trading_days: int = 0,
) -> BacktestMetrics:
    """성과 지표 계산.

    Args:
        positions: 청산 포지션 (청산일 순)
        equity_values: 시작 자본부터 청산 거래마다 누적한 자본 리스트
        initial_capital: 시작 자본
        costs: 순손익 계산용 거래비용
        trading_days: 첫 진입일부터 마지막 청산일까지의 거래일 수
    """
    metrics = BacktestMetrics()

    if not equity_values or initial_capital <= 0:
        return metrics

    # ─── 수익률 ──────────────────────────────────────────────────────────
    final_value = equity_values[-1]
    metrics.total_return = (final_value - initial_capital) / initial_capital * 100

    if trading_days > 0 and final_value > 0:
        years = trading_days / 252
        metrics.annual_return = ((final_value / initial_capital) ** (1 / years) - 1) * 100

    # ─── 샤프 비율 (청산 단위 수익률, 연환산 sqrt(252)) ─────────────────────
    values = np.array(equity_values, dtype=float)
    if len(values) > 1:
        prev = values[:-1]
        returns = np.divide(np.diff(values), prev, out=np.zeros_like(prev), where=prev > 0)
        if np.std(returns) > 0:
            metrics.sharpe_ratio = float(np.mean(returns) / np.std(returns) * np.sqrt(252))

    # ─── MDD ─────────────────────────────────────────────────────────────
    peaks = np.maximum.accumulate(values)
    drawdowns = np.divide(peaks - values, peaks, out=np.zeros_like(values), where=peaks > 0) * 100
    metrics.max_drawdown = float(drawdowns.max())

    # ─── 거래 기반 지표 ─────────────────────────────────────────────────
    closed = [p for p in positions if not p.is_open]
    metrics.total_trades = len(closed)
    if not closed:
        return metrics

    profits = [costs.net_profit(p) for p in closed]
    winners = [p for p in profits if p > 0]
    losers = [p for p in profits if p <= 0]

    metrics.winning_trades = len(winners)
    metrics.losing_trades = len(losers)
    metrics.win_rate = len(winners) / len(closed) * 100
    if winners:
        metrics.avg_profit = sum(winners) / len(winners)
    if losers:
        metrics.avg_loss = sum(losers) / len(losers)

    total_profit = sum(winners)
    total_loss = abs(sum(losers))
    metrics.profit_factor = total_profit / total_loss if total_loss > 0 else float("inf")

    holding = [(p.exit_date - p.entry_date).days for p in closed]
    metrics.avg_holding_days = sum(holding) / len(holding)

    consecutive_wins = consecutive_losses = 0
    for p in profits:
        if p > 0:
            consecutive_wins += 1
            consecutive_losses = 0
            metrics.max_consecutive_wins = max(metrics.max_consecutive_wins, consecutive_wins)
        else:
            consecutive_losses += 1
            consecutive_wins = 0
            metrics.max_consecutive_losses = max(metrics.max_consecutive_losses, consecutive_losses)

    return metrics

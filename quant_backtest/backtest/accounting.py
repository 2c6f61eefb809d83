"""
거래 손익 계산 모듈.

[ 역할 ]
    포지션의 진입 비용과 거래비용(수수료, 슬리피지) 차감 후 순손익을 계산.
    상태 없는 순수 계산만 담당.

[ 계산식 ]
    entry_cost   = entry_price * quantity
    gross_profit = (exit_price - entry_price) * quantity
    net_profit   = gross_profit - gross_profit * slippage - commission

    수수료(commission)는 거래당 고정 금액, 슬리피지(slippage)는 총손익 대비 비율.

[ 호출하는 곳 ]
    - backtest/allocation.py::allocate_day() (자본 차감 및 일별 손익 누적)
    - backtest/report.py::EquityCalculator (최종 자산 계산)
"""

from dataclasses import dataclass

from quant_backtest.core.errors import OpenPositionError
from quant_backtest.core.position import Position


@dataclass(frozen=True)
class TransactionCosts:
    """거래비용 설정. config.yaml의 backtest.commission / backtest.slippage에 대응."""
    commission: float = 9.99     # 거래당 고정 수수료
    slippage: float = 0.001      # 총손익 대비 슬리피지 비율

    def entry_cost(self, position: Position) -> float:
        """진입 시 소요 자본."""
        return position.entry_price * position.quantity

    def gross_profit(self, position: Position) -> float:
        if position.is_open:
            raise OpenPositionError(
                f"미청산 포지션의 손익은 계산할 수 없습니다: {position.symbol} ({position.entry_date})"
            )
        return (position.exit_price - position.entry_price) * position.quantity

    def net_profit(self, position: Position) -> float:
        """수수료, 슬리피지 차감 후 실현 손익."""
        profit = self.gross_profit(position)
        return self._apply_costs(profit)

    def unrealized_profit(self, position: Position, price: float | None = None) -> float:
        """미청산 포지션의 평가 손익. 평가 가격을 모르면 0 (원가 평가)."""
        mark = price if price is not None else position.mark_price
        if mark is None:
            return 0.0
        profit = (mark - position.entry_price) * position.quantity
        return self._apply_costs(profit)

    def _apply_costs(self, profit: float) -> float:
        return profit - (profit * self.slippage) - self.commission

"""
종목 단위 주문/포지션 관리 모듈.

[ 역할 ]
    한 종목의 전략 실행 동안 미청산/청산 포지션을 추적.
    BUY 시그널마다 새 Position 진입, SELL 시그널이면 보유 중인 진입 전부를 같은 가격에 청산.
    자본은 관리하지 않는다 (자본 제약은 backtest/allocation.py가 전 종목 통합으로 처리).

[ 호출하는 곳 ]
    - backtest/context.py::StrategyTestContext
"""

from datetime import datetime

from quant_backtest.core.position import Position
from quant_backtest.core.trading_strategy import PositionInfo


class OrderManager:
    """한 종목 실행 동안의 포지션 장부."""

    def __init__(self):
        self._open_positions: list[Position] = []
        self._closed_positions: list[Position] = []

    def reset(self) -> None:
        self._open_positions = []
        self._closed_positions = []

    @property
    def open_positions(self) -> list[Position]:
        return list(self._open_positions)

    @property
    def closed_positions(self) -> list[Position]:
        return list(self._closed_positions)

    def open_position(
        self,
        symbol: str,
        entry_date: datetime,
        price: float,
        quantity: int,
        score: float = 0.0,
        reason: str = "",
    ) -> Position:
        """신규 진입."""
        position = Position(
            symbol=symbol,
            entry_date=entry_date,
            entry_price=price,
            quantity=quantity,
            score=score,
            reason=reason,
        )
        self._open_positions.append(position)
        return position

    def close_all(self, exit_date: datetime, price: float) -> list[Position]:
        """보유 중인 모든 진입을 청산. 청산된 포지션 리스트 반환."""
        closed = [p.close(exit_date, price) for p in self._open_positions]
        self._closed_positions.extend(closed)
        self._open_positions = []
        return closed

    def mark_open_positions(self, price: float) -> None:
        """미청산 포지션을 주어진 가격으로 평가."""
        self._open_positions = [p.mark(price) for p in self._open_positions]

    def position_info(self, symbol: str, max_buy_count: int = 1) -> PositionInfo:
        """전략에 전달할 보유 현황 (평균가는 수량 가중)."""
        quantity = sum(p.quantity for p in self._open_positions)
        invested = sum(p.entry_price * p.quantity for p in self._open_positions)
        return PositionInfo(
            ticker=symbol,
            quantity=quantity,
            avg_price=invested / quantity if quantity > 0 else 0.0,
            buy_count=len(self._open_positions),
            max_buy_count=max_buy_count,
        )

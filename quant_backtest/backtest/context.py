"""
종목 단위 전략 실행 컨텍스트.

[ 역할 ]
    하나의 전략을 한 종목의 시세 전체에 적용해 후보 거래(Position)를 만든다.
    종목마다 독립 계좌를 가정하므로 여기서는 자본 제약을 적용하지 않는다.

[ 실행 흐름 ]
    executor가 종목마다 호출:
        reset() → set_series(series) → run()
            1. 봉을 날짜순으로 순회
            2. 현재 봉까지의 최근 lookback개 봉으로 strategy.generate_signal() 호출
            3. BUY → OrderManager.open_position (score 기록)
               SELL → OrderManager.close_all
            4. 종료 후 미청산 포지션을 마지막 종가로 평가
        closed_positions / open_positions 조회

[ 호출하는 곳 ]
    - backtest/executor.py::BacktestExecutor.run()
"""

import logging

import pandas as pd

from quant_backtest.backtest.order_manager import OrderManager
from quant_backtest.core.data_provider import CandleSeries
from quant_backtest.core.position import Position
from quant_backtest.core.trading_strategy import SignalType, TradingStrategy

logger = logging.getLogger("quant_backtest.context")


class StrategyTestContext:
    """전략 + 시세 + 주문 장부를 묶은 단일 종목 시뮬레이터."""

    def __init__(
        self,
        strategy: TradingStrategy,
        cash: float = 100_000,
        lookback: int = 30,
    ):
        if strategy.required_bars > lookback:
            raise ValueError(
                f"{strategy.name}: 최소 {strategy.required_bars}봉이 필요하지만 lookback은 {lookback}봉입니다."
            )
        self.strategy = strategy
        self.cash = cash            # 종목 단독 실행 시 전략에 알려줄 가용 현금
        self.lookback = lookback    # generate_signal()에 전달할 최근 봉 개수
        self.order_manager = OrderManager()
        self.series: CandleSeries | None = None

    def reset(self) -> None:
        self.order_manager.reset()
        self.series = None

    def set_series(self, series: CandleSeries) -> None:
        self.series = series

    @property
    def closed_positions(self) -> list[Position]:
        return self.order_manager.closed_positions

    @property
    def open_positions(self) -> list[Position]:
        return self.order_manager.open_positions

    def run(self) -> None:
        """설정된 시세 전체에 전략 적용."""
        if self.series is None:
            raise ValueError("set_series()로 시세를 먼저 설정하세요.")

        symbol = self.series.symbol
        bars = self.series.bars

        for i in range(len(bars)):
            window = bars.iloc[max(0, i + 1 - self.lookback): i + 1]
            bar = bars.iloc[i]
            bar_date = pd.Timestamp(bar["date"]).to_pydatetime()

            position_info = self.order_manager.position_info(symbol, self.strategy.max_buy_count)
            signal = self.strategy.generate_signal(
                market_data=window,
                position_info=position_info,
                available_cash=self.cash,
            )

            if signal.signal_type == SignalType.BUY and signal.quantity > 0:
                if position_info.buy_count >= self.strategy.max_buy_count:
                    continue
                price = signal.price or float(bar["close"])
                self.order_manager.open_position(
                    symbol=symbol,
                    entry_date=bar_date,
                    price=price,
                    quantity=signal.quantity,
                    score=signal.score,
                    reason=signal.reason,
                )
                logger.debug(f"[{bar_date:%Y-%m-%d}] 진입: {symbol} {signal.quantity}주 @ {price:,.2f} ({signal.reason})")
            elif signal.signal_type == SignalType.SELL and position_info.quantity > 0:
                price = signal.price or float(bar["close"])
                closed = self.order_manager.close_all(bar_date, price)
                logger.debug(f"[{bar_date:%Y-%m-%d}] 청산: {symbol} {len(closed)}건 @ {price:,.2f} ({signal.reason})")

        last_close = self.series.last_close
        if last_close is not None:
            self.order_manager.mark_open_positions(last_close)

        logger.info(
            f"{symbol} ({self.strategy.name}): 청산 {len(self.closed_positions)}건, "
            f"미청산 {len(self.open_positions)}건"
        )

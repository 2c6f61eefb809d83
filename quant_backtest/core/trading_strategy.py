"""
매매 전략 추상 클래스 정의.

[ 역할 ]
    봉 단위 시그널 생성 흐름(청산 → 진입 한도 → 거래량 → 진입 점수 → 수량)을
    generate_signal()에 고정하고, 전략마다 다른 판단만 하위 클래스가 채운다.

[ 하위 클래스가 구현할 것 ]
    - entry_score(window):  진입 조건 충족 시 배분 우선순위 점수, 아니면 None
    - exit_reason(window, position_info):  청산 조건 충족 시 사유, 아니면 None
    - order_amount():  1회 진입 금액
    - required_bars:  판단에 필요한 최소 봉 개수 (StrategyTestContext.lookback 이하)

[ 구현체 ]
    - strategies/ma_cross_strategy.py::MACrossStrategy (이동평균 교차)
    - strategies/split_buy_strategy.py::SplitBuyStrategy (분할매수-목표수익)

[ 호출하는 곳 ]
    - backtest/context.py::StrategyTestContext.run()에서
      봉마다 generate_signal()을 호출하여 시그널을 받고 포지션으로 변환

[ 데이터 흐름 ]
    window(최근 lookback개 봉) + position_info → generate_signal() → Signal
    BUY 시그널의 score가 포지션에 기록되어 같은 날 후보 간 자본 배분 순서를 결정
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import pandas as pd


class SignalType(Enum):
    """전략이 반환하는 시그널 종류."""
    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"


@dataclass
class Signal:
    """generate_signal()의 반환값. StrategyTestContext가 포지션으로 변환."""
    signal_type: SignalType
    ticker: str
    price: float = 0.0       # 시그널 발생 봉의 종가
    quantity: int = 0        # 주문 수량
    score: float = 0.0       # 같은 날 후보 간 배분 우선순위 (BUY에서만 의미)
    reason: str = ""         # 시그널 발생 사유 (로깅용)
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class PositionInfo:
    """현재 보유 현황. OrderManager가 미청산 포지션들로부터 구성하여 전략에 전달."""
    ticker: str
    quantity: int = 0               # 보유 수량
    avg_price: float = 0.0          # 평균 매수가
    buy_count: int = 0              # 미청산 진입 횟수
    max_buy_count: int = 0          # 최대 진입 가능 횟수


class TradingStrategy(ABC):
    """매매 전략 추상 클래스. name은 @register가 채운다."""

    name: str = ""
    DEFAULT_PARAMS: dict[str, Any] = {}

    def __init__(self, params: dict[str, Any] | None = None):
        self.params = {**self.DEFAULT_PARAMS, **(params or {})}

    @property
    def max_buy_count(self) -> int:
        """종목당 동시 보유 가능한 진입 횟수. 분할매수 전략만 1보다 크다."""
        return 1

    @property
    def required_bars(self) -> int:
        return 1

    @property
    def min_volume_threshold(self) -> int:
        return int(self.params.get("min_volume_threshold", 0))

    @abstractmethod
    def entry_score(self, window: pd.DataFrame) -> float | None:
        """진입 조건을 만족하면 점수, 아니면 None."""
        ...

    @abstractmethod
    def exit_reason(self, window: pd.DataFrame, position_info: PositionInfo) -> str | None:
        """보유 중 청산 조건을 만족하면 사유, 아니면 None."""
        ...

    @abstractmethod
    def order_amount(self) -> float:
        ...

    def position_size(self, price: float, available_cash: float) -> int:
        """min(1회 진입 금액, 가용현금) // 가격."""
        if price <= 0:
            return 0
        return int(min(self.order_amount(), available_cash) // price)

    def generate_signal(
        self,
        market_data: pd.DataFrame,
        position_info: PositionInfo,
        available_cash: float,
    ) -> Signal:
        """매매 시그널 생성. 청산을 먼저 판단하고, 그다음 진입을 판단한다.

        Args:
            market_data: 현재 봉까지의 최근 봉 (미래 데이터 없음)
            position_info: 현재 포지션 정보
            available_cash: 종목 단독 실행 기준 가용 현금
        """
        ticker = position_info.ticker
        if len(market_data) < self.required_bars:
            return Signal(SignalType.HOLD, ticker, reason=f"데이터 부족 (최소 {self.required_bars}봉 필요)")

        bar = market_data.iloc[-1]
        price = float(bar["close"])

        if position_info.quantity > 0:
            reason = self.exit_reason(market_data, position_info)
            if reason is not None:
                return Signal(SignalType.SELL, ticker, price=price, quantity=position_info.quantity, reason=reason)

        if position_info.buy_count >= self.max_buy_count:
            return Signal(SignalType.HOLD, ticker, reason=f"최대 진입 횟수({self.max_buy_count}) 도달")

        volume = int(bar["volume"])
        if volume < self.min_volume_threshold:
            return Signal(SignalType.HOLD, ticker, reason=f"거래량 부족 ({volume:,} < {self.min_volume_threshold:,})")

        score = self.entry_score(market_data)
        if score is None:
            return Signal(SignalType.HOLD, ticker, reason="진입 조건 미충족")

        quantity = self.position_size(price, available_cash)
        if quantity <= 0:
            return Signal(SignalType.HOLD, ticker, reason=f"주문 수량 0 (가격 {price:,.2f})")

        return Signal(
            SignalType.BUY,
            ticker,
            price=price,
            quantity=quantity,
            score=score,
            reason=f"진입 (score {score:.2f})",
        )

"""
이동평균 교차 전략.

종가가 ma_period봉 이동평균 위로 올라서면 진입하고, 이동평균 이하로
내려오면 전량 청산한다. 진입 score는 이동평균 대비 괴리율(%)이다.
ma_period는 StrategyTestContext.lookback을 넘을 수 없다.

[ 파라미터 ]
    total_seed:           1회 진입 금액 계산 기준
    ma_period:            이동평균 기간 (봉)
    position_size_pct:    1회 진입 금액 = total_seed * pct / 100
    min_volume_threshold: 최소 거래량 (0이면 미적용)
"""

import pandas as pd

from quant_backtest.core.trading_strategy import PositionInfo, TradingStrategy
from quant_backtest.strategies import register


@register("ma_cross")
class MACrossStrategy(TradingStrategy):

    DEFAULT_PARAMS = {
        "total_seed": 100_000,
        "ma_period": 20,
        "position_size_pct": 10.0,
        "min_volume_threshold": 0,
    }

    @property
    def ma_period(self) -> int:
        return int(self.params["ma_period"])

    @property
    def position_size_pct(self) -> float:
        return float(self.params["position_size_pct"])

    @property
    def required_bars(self) -> int:
        return self.ma_period

    def premium(self, window: pd.DataFrame) -> float:
        """현재 종가의 이동평균 대비 괴리율 (%)."""
        closes = window["close"].tail(self.ma_period)
        ma = float(closes.mean())
        return (float(closes.iloc[-1]) - ma) / ma * 100

    def entry_score(self, window: pd.DataFrame) -> float | None:
        premium = self.premium(window)
        return premium if premium > 0 else None

    def exit_reason(self, window: pd.DataFrame, position_info: PositionInfo) -> str | None:
        premium = self.premium(window)
        if premium <= 0:
            return f"MA{self.ma_period} 하회 ({premium:.2f}%)"
        return None

    def order_amount(self) -> float:
        return float(self.params["total_seed"]) * self.position_size_pct / 100

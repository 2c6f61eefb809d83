"""
분할매수-목표수익 전략.

[ 역할 ]
    lookback_days봉 전 종가보다 buy_threshold%를 초과해 떨어지면 진입한다.
    진입 1회가 Position 1건이며 최대 split_count건까지 겹쳐 보유한다.
    평균 매수가 대비 목표 수익률 또는 손절선에 닿으면 보유분 전체를 같은 봉에 청산한다.

[ score ]
    하락률(%). 같은 날 여러 종목이 진입하면 이 값 순으로 자본이 배분된다.

[ 파라미터 ]
    total_seed:           1회 진입 금액 = total_seed / split_count
    split_count:          최대 겹쳐 보유할 진입 수
    buy_threshold:        진입 기준 하락률 (%), 초과해야 진입
    lookback_days:        하락률 비교 기준 봉 수
    sell_profit_rate:     목표 수익률 (%)
    stop_loss_rate:       손절 비율 (%), 0이면 미적용
    min_volume_threshold: 최소 거래량
"""

import pandas as pd

from quant_backtest.core.trading_strategy import PositionInfo, TradingStrategy
from quant_backtest.strategies import register


@register("split_buy")
class SplitBuyStrategy(TradingStrategy):
    """하락 시 분할 진입, 평균가 기준 익절/손절."""

    DEFAULT_PARAMS = {
        "total_seed": 100_000,
        "split_count": 5,
        "buy_threshold": 2.0,
        "lookback_days": 1,
        "sell_profit_rate": 3.0,
        "stop_loss_rate": 5.0,
        "min_volume_threshold": 0,
    }

    @property
    def split_count(self) -> int:
        return int(self.params["split_count"])

    @property
    def max_buy_count(self) -> int:
        return self.split_count

    @property
    def lookback_days(self) -> int:
        return int(self.params["lookback_days"])

    @property
    def required_bars(self) -> int:
        return self.lookback_days + 1

    def drop_rate(self, window: pd.DataFrame) -> float | None:
        """lookback_days봉 전 종가 대비 현재 종가 하락률 (%)."""
        base = float(window["close"].iloc[-(self.lookback_days + 1)])
        if base <= 0:
            return None
        return (base - float(window["close"].iloc[-1])) / base * 100

    def entry_score(self, window: pd.DataFrame) -> float | None:
        rate = self.drop_rate(window)
        if rate is None or rate <= float(self.params["buy_threshold"]):
            return None
        return rate

    def exit_reason(self, window: pd.DataFrame, position_info: PositionInfo) -> str | None:
        if position_info.avg_price <= 0:
            return None

        price = float(window["close"].iloc[-1])
        profit_rate = (price - position_info.avg_price) / position_info.avg_price * 100
        target = float(self.params["sell_profit_rate"])
        stop = float(self.params["stop_loss_rate"])

        if profit_rate >= target:
            return f"목표 수익률 도달 ({profit_rate:.2f}% >= {target}%)"
        if stop > 0 and profit_rate <= -stop:
            return f"손절 ({profit_rate:.2f}% <= -{stop}%)"
        return None

    def order_amount(self) -> float:
        return float(self.params["total_seed"]) / self.split_count

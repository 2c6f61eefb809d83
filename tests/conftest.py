"""
Pytest 공통 설정 및 픽스처.

포지션 생성 헬퍼, 가짜 시세 소스/전략 컨텍스트/리포트, 스크립트 전략을 제공한다.
"""

from datetime import datetime

import pandas as pd
import pytest

from quant_backtest.backtest.accounting import TransactionCosts
from quant_backtest.core.data_provider import CandleSeries
from quant_backtest.core.position import Position
from quant_backtest.core.trading_strategy import PositionInfo, Signal, SignalType, TradingStrategy


def make_position(
    symbol: str = "AAA",
    day: int = 1,
    entry_price: float = 10.0,
    quantity: int = 10,
    exit_price: float | None = 11.0,
    score: float = 0.0,
    hour: int = 9,
    exit_day: int | None = None,
) -> Position:
    """2024년 1월 `day`일 `hour`시에 진입한 포지션. exit_price가 None이면 미청산."""
    entry_date = datetime(2024, 1, day, hour)
    exit_date = None
    if exit_price is not None:
        exit_date = datetime(2024, 1, exit_day or day, 16)
    return Position(
        symbol=symbol,
        entry_date=entry_date,
        entry_price=entry_price,
        quantity=quantity,
        score=score,
        exit_date=exit_date,
        exit_price=exit_price,
    )


def make_bars(closes: list[float], start: str = "2024-01-01", volume: int = 100_000) -> pd.DataFrame:
    """종가 리스트로 영업일 OHLCV DataFrame 생성."""
    dates = pd.bdate_range(start=start, periods=len(closes))
    return pd.DataFrame({
        "date": dates,
        "open": closes,
        "high": [c * 1.01 for c in closes],
        "low": [c * 0.99 for c in closes],
        "close": closes,
        "volume": [volume] * len(closes),
    })


class FakeDatasource:
    """symbol → CandleSeries 또는 예외."""

    def __init__(self, entries: dict[str, object]):
        self.entries = entries
        self.requested: list[str] = []

    def fetch_series(self, symbol: str) -> CandleSeries:
        self.requested.append(symbol)
        entry = self.entries[symbol]
        if isinstance(entry, Exception):
            raise entry
        return entry


class FakeContext:
    """종목별로 미리 정해진 포지션을 돌려주는 전략 컨텍스트."""

    def __init__(
        self,
        closed: dict[str, list[Position]],
        open_: dict[str, list[Position]] | None = None,
        fail_on: set[str] | None = None,
    ):
        self.closed = closed
        self.open = open_ or {}
        self.fail_on = fail_on or set()
        self.series: CandleSeries | None = None
        self.reset_count = 0

    def reset(self) -> None:
        self.reset_count += 1
        self.series = None

    def set_series(self, series: CandleSeries) -> None:
        self.series = series

    def run(self) -> None:
        if self.series.symbol in self.fail_on:
            raise RuntimeError(f"strategy failed for {self.series.symbol}")

    @property
    def closed_positions(self) -> list[Position]:
        if self.series is None:
            return []
        return list(self.closed.get(self.series.symbol, []))

    @property
    def open_positions(self) -> list[Position]:
        if self.series is None:
            return []
        return list(self.open.get(self.series.symbol, []))


class FakeReport:
    """BacktestReport 대역. 생성 인자를 기록하고 파일은 쓰지 않는다."""

    instances: list["FakeReport"] = []

    def __init__(self, report_name, capital, commission, slippage, positions, open_positions):
        self.report_name = report_name
        self.capital = capital
        self.costs = TransactionCosts(commission=commission, slippage=slippage)
        self.positions = list(positions)
        self.open_positions = list(open_positions)
        self.rendered = False
        FakeReport.instances.append(self)

    def total_capital_and_equity(self) -> float:
        return self.capital + sum(self.costs.net_profit(p) for p in self.positions)

    def render(self) -> None:
        self.rendered = True


class ScriptedStrategy(TradingStrategy):
    """봉 순번 → 시그널 타입 스크립트대로 동작하는 전략."""

    name = "scripted"

    def __init__(self, script: dict[int, SignalType], quantity: int = 10, max_buys: int = 1, bars: int = 1,
                 fail_at: int | None = None):
        super().__init__()
        self.bars = bars
        self.fail_at = fail_at
        self.script = script
        self.quantity = quantity
        self.max_buys = max_buys
        self.seen_windows: list[int] = []
        self.seen_positions: list[PositionInfo] = []

    @property
    def max_buy_count(self) -> int:
        return self.max_buys

    def generate_signal(self, market_data, position_info, available_cash):
        index = len(self.seen_windows)
        if index == self.fail_at:
            raise RuntimeError(f"bar {index} 처리 실패")
        self.seen_windows.append(len(market_data))
        self.seen_positions.append(position_info)
        signal_type = self.script.get(index, SignalType.HOLD)
        price = float(market_data.iloc[-1]["close"])
        return Signal(
            signal_type=signal_type,
            ticker=position_info.ticker,
            price=price,
            quantity=self.quantity,
            score=float(index),
            reason=f"bar {index}",
        )

    @property
    def required_bars(self) -> int:
        return self.bars

    def entry_score(self, window):
        return None

    def exit_reason(self, window, position_info):
        return None

    def order_amount(self):
        return 0.0


def series_for(symbol: str, closes: list[float] | None = None) -> CandleSeries:
    return CandleSeries(symbol=symbol, bars=make_bars(closes or [10.0, 11.0, 12.0]))


@pytest.fixture
def no_costs() -> TransactionCosts:
    return TransactionCosts(commission=0.0, slippage=0.0)


@pytest.fixture
def default_costs() -> TransactionCosts:
    return TransactionCosts()


@pytest.fixture(autouse=True)
def _clear_fake_reports():
    FakeReport.instances.clear()
    yield
    FakeReport.instances.clear()

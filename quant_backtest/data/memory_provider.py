"""
메모리 기반 데이터 제공자 및 샘플 데이터 생성.

[ 포함 ]
    InMemoryDataProvider - core/data_provider.py::DataProvider 구현체
                           미리 로드된 DataFrame에서 OHLCV 데이터 제공
    generate_sample_data - 난수 기반 샘플 주가 생성 (--source sample, 테스트용)
"""

from datetime import date

import numpy as np
import pandas as pd

from quant_backtest.core.data_provider import OHLCV_COLUMNS, DataProvider


class InMemoryDataProvider(DataProvider):
    """DataFrame 기반 데이터 제공자.

    사용법:
        provider = InMemoryDataProvider()
        provider.load_data("005930", samsung_df)
        df = provider.get_ohlcv("005930", date(2024, 1, 1), date(2024, 12, 31))
    """

    def __init__(self, data: dict[str, pd.DataFrame] | None = None):
        self._data: dict[str, pd.DataFrame] = {}  # ticker → OHLCV DataFrame
        for ticker, df in (data or {}).items():
            self.load_data(ticker, df)

    def load_data(self, ticker: str, df: pd.DataFrame) -> None:
        """데이터 로드. df columns: date, open, high, low, close, volume."""
        df = df.copy()
        df["date"] = pd.to_datetime(df["date"])
        self._data[ticker] = df.sort_values("date").reset_index(drop=True)

    def get_ohlcv(
        self,
        ticker: str,
        start_date: date,
        end_date: date,
    ) -> pd.DataFrame:
        """OHLCV 데이터 조회. 모르는 종목이면 빈 DataFrame."""
        if ticker not in self._data:
            return pd.DataFrame(columns=OHLCV_COLUMNS)

        df = self._data[ticker]
        days = df["date"].dt.date
        mask = (days >= start_date) & (days <= end_date)
        return df[mask].copy().reset_index(drop=True)

    def get_tickers(self) -> list[str]:
        """로드된 종목 목록."""
        return list(self._data.keys())


def generate_sample_data(
    ticker: str,
    start_date: date,
    end_date: date,
    initial_price: float = 100.0,
    volatility: float = 0.02,
    seed: int | None = None,
) -> pd.DataFrame:
    """백테스트용 샘플 주가 데이터 생성 (영업일 기준 랜덤워크)."""
    if seed is None:
        seed = sum(ord(c) for c in ticker)
    rng = np.random.default_rng(seed)

    dates = pd.bdate_range(start=start_date, end=end_date)
    n = len(dates)

    returns = rng.normal(0.0002, volatility, n)
    closes = initial_price * np.cumprod(1 + returns)

    return pd.DataFrame({
        "date": dates,
        "open": np.round(closes * (1 + rng.normal(0, 0.005, n)), 2),
        "high": np.round(closes * (1 + np.abs(rng.normal(0, 0.01, n))), 2),
        "low": np.round(closes * (1 - np.abs(rng.normal(0, 0.01, n))), 2),
        "close": np.round(closes, 2),
        "volume": rng.lognormal(12, 1, n).astype(int),
    })

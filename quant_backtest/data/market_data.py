"""
시세 데이터 소스 모듈.

[ 역할 ]
    DataProvider를 감싸서 백테스트 기간 고정 + 캐싱 + CandleSeries 변환 제공.
    BacktestExecutor는 fetch_series(symbol) 하나만 사용한다.

[ 의존성 ]
    - core/data_provider.py::DataProvider (데이터 소스 추상화)

[ 실패 처리 ]
    조회 중 예외 또는 빈 결과 → DataFetchError.
    executor가 종목 단위로 잡아서 로깅 후 다음 종목으로 진행.
"""

import logging
from datetime import date

import pandas as pd

from quant_backtest.core.data_provider import OHLCV_COLUMNS, CandleSeries, DataProvider
from quant_backtest.core.errors import DataFetchError

logger = logging.getLogger("quant_backtest.data")


class SeriesDatasource:
    """DataProvider 위에 기간 고정/캐싱 레이어를 추가한 시세 소스.

    사용 예:
        provider = InMemoryDataProvider()
        source = SeriesDatasource(provider, date(2024, 1, 1), date(2024, 12, 31))
        series = source.fetch_series("005930.KS")
    """

    def __init__(self, data_provider: DataProvider, start_date: date, end_date: date):
        self.provider = data_provider
        self.start_date = start_date
        self.end_date = end_date
        self._cache: dict[str, CandleSeries] = {}  # symbol → CandleSeries

    def fetch_series(self, symbol: str, use_cache: bool = True) -> CandleSeries:
        """종목 시세 조회.

        Raises:
            DataFetchError: 조회 실패 또는 기간 내 데이터 없음
        """
        if use_cache and symbol in self._cache:
            return self._cache[symbol]

        try:
            df = self.provider.get_ohlcv(symbol, self.start_date, self.end_date)
        except DataFetchError:
            raise
        except Exception as e:
            raise DataFetchError(symbol, str(e)) from e

        if df is None or df.empty:
            raise DataFetchError(symbol, f"기간 내 데이터 없음 ({self.start_date} ~ {self.end_date})")

        missing = set(OHLCV_COLUMNS) - set(df.columns)
        if missing:
            raise DataFetchError(symbol, f"필수 컬럼 누락: {sorted(missing)}")

        bars = df[OHLCV_COLUMNS].copy()
        bars["date"] = pd.to_datetime(bars["date"])
        bars = bars.sort_values("date", kind="stable").reset_index(drop=True)

        series = CandleSeries(symbol=symbol, bars=bars)
        logger.debug(f"{symbol}: {len(series)}개 봉 로드")

        if use_cache:
            self._cache[symbol] = series
        return series

    def clear_cache(self) -> None:
        """캐시 초기화."""
        self._cache.clear()

"""
Yahoo Finance 기반 DataProvider 구현.

[ 역할 ]
    yfinance로 과거 일봉을 내려받아 표준 OHLCV DataFrame으로 변환.
    네트워크 오류는 max_retries만큼 재시도 (백테스트 코어에는 재시도가 없다).

[ 호출하는 곳 ]
    - run_backtest.py (--source yahoo 옵션 사용 시)
"""

import logging
import time
from datetime import date, timedelta

import pandas as pd
import yfinance as yf

from quant_backtest.core.data_provider import OHLCV_COLUMNS, DataProvider
from quant_backtest.core.errors import DataFetchError

logger = logging.getLogger("quant_backtest.data.yahoo")


class YahooDataProvider(DataProvider):
    """Yahoo Finance 데이터 제공자.

    사용 예:
        provider = YahooDataProvider(max_retries=3, retry_delay=5)
        df = provider.get_ohlcv('^GSPC', date(2024, 1, 1), date(2024, 12, 31))
    """

    def __init__(
        self,
        tickers: list[str] | None = None,
        max_retries: int = 3,
        retry_delay: int = 5,
        use_adjusted_close: bool = True,
    ):
        self.tickers = list(tickers or [])
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.use_adjusted_close = use_adjusted_close

    def get_ohlcv(
        self,
        ticker: str,
        start_date: date,
        end_date: date,
    ) -> pd.DataFrame:
        """OHLCV 데이터 조회.

        Raises:
            DataFetchError: 재시도 후에도 실패한 경우
        """
        last_error: Exception | None = None

        for attempt in range(self.max_retries):
            try:
                logger.info(f"Fetching {ticker} from {start_date} to {end_date} (attempt {attempt + 1}/{self.max_retries})")
                df = yf.Ticker(ticker).history(
                    start=start_date,
                    end=end_date + timedelta(days=1),  # end_date 포함
                    auto_adjust=False,
                    actions=False,
                )
                return self._normalize(df)
            except Exception as e:
                last_error = e
                logger.warning(f"Error fetching {ticker} (attempt {attempt + 1}/{self.max_retries}): {e}")
                if attempt < self.max_retries - 1:
                    time.sleep(self.retry_delay)

        raise DataFetchError(ticker, f"최대 재시도 초과: {last_error}")

    def _normalize(self, df: pd.DataFrame) -> pd.DataFrame:
        """yfinance 결과를 [date, open, high, low, close, volume]으로 변환."""
        if df.empty:
            return pd.DataFrame(columns=OHLCV_COLUMNS)

        df = df.reset_index().rename(columns={
            "Date": "date",
            "Open": "open",
            "High": "high",
            "Low": "low",
            "Close": "close",
            "Adj Close": "adj_close",
            "Volume": "volume",
        })
        if self.use_adjusted_close and "adj_close" in df.columns:
            df["close"] = df["adj_close"]

        df["date"] = pd.to_datetime(df["date"])
        if df["date"].dt.tz is not None:
            df["date"] = df["date"].dt.tz_localize(None)
        return df[OHLCV_COLUMNS]

    def get_tickers(self) -> list[str]:
        """Yahoo는 전체 목록 조회가 없으므로 설정된 종목만 반환."""
        return list(self.tickers)

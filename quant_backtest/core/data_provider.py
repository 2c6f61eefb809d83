"""
주가 데이터 제공 추상 클래스 정의.

[ 역할 ]
    OHLCV(시가/고가/저가/종가/거래량) 데이터를 제공하는 인터페이스와
    백테스트가 종목 단위로 주고받는 시세 묶음(CandleSeries) 정의.

[ 구현체 ]
    - data/memory_provider.py::InMemoryDataProvider  (DataFrame 기반, 샘플/테스트용)
    - data/yahoo_provider.py::YahooDataProvider      (yfinance)
    - data/clickhouse_provider.py::ClickHouseDataProvider (ClickHouse DB)

[ 호출하는 곳 ]
    - data/market_data.py::SeriesDatasource가 이 인터페이스로 조회 후 CandleSeries로 감싼다
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date

import pandas as pd

OHLCV_COLUMNS = ["date", "open", "high", "low", "close", "volume"]


@dataclass
class CandleSeries:
    """한 종목의 날짜순 봉 데이터. bars 컬럼: [date, open, high, low, close, volume]."""
    symbol: str
    bars: pd.DataFrame

    def __len__(self) -> int:
        return len(self.bars)

    @property
    def empty(self) -> bool:
        return self.bars.empty

    @property
    def last_close(self) -> float | None:
        if self.bars.empty:
            return None
        return float(self.bars.iloc[-1]["close"])


class DataProvider(ABC):
    """주가 데이터 제공 추상 클래스.

    모든 데이터 제공자 구현체는 이 클래스를 상속받아 아래 메서드를 구현해야 한다.
    """

    @abstractmethod
    def get_ohlcv(
        self,
        ticker: str,
        start_date: date,
        end_date: date,
    ) -> pd.DataFrame:
        """OHLCV 데이터 조회.

        Args:
            ticker: 종목 코드
            start_date: 시작일
            end_date: 종료일

        Returns:
            DataFrame with columns: [date, open, high, low, close, volume]
        """
        ...

    @abstractmethod
    def get_tickers(self) -> list[str]:
        """조회 가능한 종목 코드 목록."""
        ...

    def close(self) -> None:
        """연결 자원 해제. 연결이 없는 제공자는 아무것도 하지 않는다."""

"""
ClickHouse 기반 DataProvider 구현.

[ 역할 ]
    ClickHouse stock_ohlcv 테이블에 저장된 일봉을 조회하여 백테스트에 제공.

[ 테이블 ]
    stock_ohlcv (ticker, date, open, high, low, close, adjusted_close, volume)

[ 호출하는 곳 ]
    - run_backtest.py (--source clickhouse 옵션 사용 시)
"""

from datetime import date

import clickhouse_connect
import pandas as pd
from clickhouse_connect.driver import Client

from quant_backtest.core.data_provider import OHLCV_COLUMNS, DataProvider


def get_client(
    host: str = "localhost",
    port: int = 8123,
    database: str = "default",
    user: str = "default",
    password: str = "password",
) -> Client:
    """ClickHouse 클라이언트 연결 생성."""
    return clickhouse_connect.get_client(
        host=host,
        port=port,
        database=database,
        username=user,
        password=password,
    )


class ClickHouseDataProvider(DataProvider):
    """ClickHouse 기반 데이터 제공자.

    사용 예:
        provider = ClickHouseDataProvider('localhost', 8123, 'default', password='password')
        df = provider.get_ohlcv('005930.KS', date(2024, 1, 1), date(2024, 12, 31))
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 8123,
        database: str = "default",
        user: str = "default",
        password: str = "password",
        use_adjusted_close: bool = True,
        client: Client | None = None,
    ):
        """
        Args:
            host: ClickHouse 호스트
            port: HTTP 포트 (기본값: 8123)
            database: 데이터베이스 이름
            user: 사용자 이름
            password: 비밀번호
            use_adjusted_close: True이면 adjusted_close를 close로 사용
            client: 이미 생성된 클라이언트 (주입 시 연결 생략)
        """
        self.client: Client = client or get_client(host, port, database, user, password)
        self.use_adjusted_close = use_adjusted_close

    def get_ohlcv(
        self,
        ticker: str,
        start_date: date,
        end_date: date,
    ) -> pd.DataFrame:
        """OHLCV 데이터 조회 (날짜 오름차순)."""
        close_column = "adjusted_close" if self.use_adjusted_close else "close"

        query = f"""
            SELECT
                date,
                open,
                high,
                low,
                {close_column} as close,
                volume
            FROM stock_ohlcv
            WHERE ticker = %(ticker)s
              AND date >= %(start_date)s
              AND date <= %(end_date)s
            ORDER BY date ASC
        """

        result = self.client.query(
            query,
            parameters={
                "ticker": ticker,
                "start_date": start_date,
                "end_date": end_date,
            }
        )

        df = pd.DataFrame(result.result_rows, columns=OHLCV_COLUMNS)
        if not df.empty:
            df["date"] = pd.to_datetime(df["date"])
        return df

    def get_tickers(self) -> list[str]:
        """조회 가능한 종목 코드 목록 (알파벳 순)."""
        result = self.client.query("SELECT DISTINCT ticker FROM stock_ohlcv ORDER BY ticker")
        return [row[0] for row in result.result_rows]

    def close(self) -> None:
        """ClickHouse 연결 종료."""
        if hasattr(self.client, "close"):
            self.client.close()

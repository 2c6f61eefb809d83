"""
백테스트 예외 정의.

[ 분류 ]
    DataFetchError    - 종목 단위 데이터 조회 실패. 복구 가능 (executor가 잡고 다음 종목 진행)
    OpenPositionError - 미청산 포지션에 손익 계산 요청. 호출 측 계약 위반이므로 그대로 전파
"""


class BacktestError(Exception):
    """백테스트 관련 예외의 공통 부모."""


class DataFetchError(BacktestError):
    """종목 시세 조회 실패."""

    def __init__(self, symbol: str, message: str = ""):
        self.symbol = symbol
        super().__init__(f"{symbol}: {message}" if message else symbol)


class OpenPositionError(BacktestError, ValueError):
    """청산되지 않은 포지션(exit_price 없음)에 대해 실현 손익을 계산하려 한 경우."""

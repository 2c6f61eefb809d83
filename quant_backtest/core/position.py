"""
포지션(거래) 값 객체 및 날짜 비교 유틸리티.

[ 역할 ]
    전략 실행 결과로 생성되는 개별 거래(Position)와
    시각을 무시한 일 단위 날짜 비교 함수를 정의.

[ 생명주기 ]
    backtest/order_manager.py::OrderManager가 진입 시 생성 → 청산 시 close()로 새 객체 반환.
    이후 읽기 전용. backtest/allocation.py가 자본 제약에 따라 채택/제외만 결정하고 변경하지 않는다.

[ 호출하는 곳 ]
    - backtest/allocation.py (일별 그룹핑, 정렬, 자본 배분)
    - backtest/accounting.py (손익 계산)
    - backtest/report.py (리포트/자산 계산)
"""

from dataclasses import dataclass, replace
from datetime import date, datetime


@dataclass(frozen=True)
class Position:
    """전략이 만든 단일 거래. 청산 전에는 exit_date/exit_price가 None."""
    symbol: str
    entry_date: datetime
    entry_price: float
    quantity: int
    score: float = 0.0                  # 같은 날 후보 간 우선순위 (낮을수록 먼저 배분)
    exit_date: datetime | None = None
    exit_price: float | None = None
    mark_price: float | None = None     # 미청산 포지션의 마지막 평가 가격
    reason: str = ""                    # 진입 시그널 사유 (로깅용)

    def __post_init__(self):
        if self.quantity <= 0:
            raise ValueError(f"수량은 양수여야 합니다: {self.symbol} quantity={self.quantity}")
        if self.exit_date is not None and self.exit_date < self.entry_date:
            raise ValueError(
                f"청산일이 진입일보다 빠릅니다: {self.symbol} {self.entry_date} > {self.exit_date}"
            )

    @property
    def is_open(self) -> bool:
        return self.exit_price is None

    def close(self, exit_date: datetime, exit_price: float) -> "Position":
        """청산된 새 Position 반환. 원본은 변경하지 않는다."""
        return replace(self, exit_date=exit_date, exit_price=exit_price, mark_price=None)

    def mark(self, price: float) -> "Position":
        """평가 가격을 갱신한 새 Position 반환 (미청산 포지션용)."""
        return replace(self, mark_price=price)


def _to_date(value: date | datetime) -> date:
    # pandas.Timestamp도 datetime 하위 클래스
    if isinstance(value, datetime):
        return value.date()
    return value


def day_compare(a: date | datetime, b: date | datetime) -> int:
    """날짜만 비교 (시각 무시). a가 앞이면 음수, 같은 날이면 0, 뒤면 양수."""
    day_a = _to_date(a)
    day_b = _to_date(b)
    if day_a < day_b:
        return -1
    if day_a > day_b:
        return 1
    return 0


def same_day(a: date | datetime, b: date | datetime) -> bool:
    return day_compare(a, b) == 0

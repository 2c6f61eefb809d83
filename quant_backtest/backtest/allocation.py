"""
자본 제약 일별 배분 모듈.

[ 역할 ]
    종목별로 독립 실행된 전략 거래들을 하나의 계좌가 실제로 감당할 수 있었는지
    하루 단위로 다시 걸러낸다. 종목마다 계좌가 따로 있는 것이 아니라
    모든 종목이 하나의 자본을 공유한다고 가정.

[ 실행 흐름 ]
    filter_by_capital() 호출 시:
        1. group_by_day()로 진입일이 같은 연속 구간을 묶음
        2. 각 날짜 그룹에 대해 allocate_day() 호출
           → score 오름차순 정렬
           → entry_cost < 남은 자본 인 거래만 채택 (같으면 제외)
        3. 다음 날 자본 = 당일 시작 자본 + 당일 채택 거래 순손익
           (당일 진입에 쓴 원금은 따로 차감하지 않는다)

[ 호출하는 곳 ]
    - backtest/executor.py::BacktestExecutor.run()
"""

import logging
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Callable, Iterable

from quant_backtest.backtest.accounting import TransactionCosts
from quant_backtest.core.position import Position, day_compare

logger = logging.getLogger("quant_backtest.allocation")

Comparator = Callable[[Position, Position], int]


@dataclass
class DaySummary:
    """allocate_day()의 반환값. 당일 채택된 포지션과 실현 손익."""
    positions: list[Position] = field(default_factory=list)
    profit: float = 0.0


def compare_by(field_name: str) -> Comparator:
    """Position의 특정 속성으로 비교하는 비교 함수 생성.

    진입일 정렬은 "entry_date", 당일 우선순위 정렬은 "score".
    """
    def compare(one: Position, two: Position) -> int:
        a = getattr(one, field_name)
        b = getattr(two, field_name)
        if a < b:
            return -1
        if a > b:
            return 1
        return 0

    compare.__name__ = f"compare_by_{field_name}"
    return compare


def sort_positions(positions: Iterable[Position], field_name: str) -> list[Position]:
    """안정 정렬된 새 리스트 반환. 값이 같으면 원래 순서 유지."""
    return sorted(positions, key=cmp_to_key(compare_by(field_name)))


def group_by_day(positions: list[Position]) -> list[list[Position]]:
    """진입일(날짜 기준)이 같은 연속 구간으로 분할. 입력 순서 유지."""
    groups: list[list[Position]] = []
    current: list[Position] = []

    for position in positions:
        if current and day_compare(position.entry_date, current[-1].entry_date) != 0:
            groups.append(current)
            current = []
        current.append(position)

    if current:
        groups.append(current)
    return groups


def allocate_day(
    candidates: list[Position],
    capital: float,
    costs: TransactionCosts,
) -> DaySummary:
    """하루치 후보 중 가용 자본으로 감당 가능한 거래만 채택.

    Args:
        candidates: 진입일이 같은 포지션들
        capital: 당일 시작 시점 가용 자본
        costs: 수수료/슬리피지 설정

    Returns:
        DaySummary: 채택된 포지션과 그 순손익 합계
    """
    accepted: list[Position] = []
    daily_profit = 0.0
    remaining = capital

    # 참조 동작: score가 낮은 후보부터 배분
    for position in sort_positions(candidates, "score"):
        entry_cost = costs.entry_cost(position)
        if entry_cost < remaining:
            accepted.append(position)
            remaining -= entry_cost
            daily_profit += costs.net_profit(position)

    return DaySummary(positions=accepted, profit=daily_profit)


def filter_by_capital(
    positions: list[Position],
    capital: float,
    costs: TransactionCosts,
) -> tuple[list[Position], float]:
    """진입일 순으로 정렬된 전체 포지션을 일별 자본 제약으로 필터링.

    Args:
        positions: entry_date 오름차순 정렬된 청산 포지션
        capital: 시작 자본
        costs: 수수료/슬리피지 설정

    Returns:
        (채택된 포지션 리스트, 마지막 날 이후 이월 자본)
    """
    if not positions:
        return positions, capital

    filtered: list[Position] = []
    carried = capital

    for day_positions in group_by_day(positions):
        summary = allocate_day(day_positions, carried, costs)
        filtered.extend(summary.positions)
        carried += summary.profit
        logger.debug(
            f"[{day_positions[0].entry_date:%Y-%m-%d}] 후보 {len(day_positions)}건 중 "
            f"{len(summary.positions)}건 채택, 손익 {summary.profit:,.2f}, 이월 자본 {carried:,.2f}"
        )

    return filtered, carried

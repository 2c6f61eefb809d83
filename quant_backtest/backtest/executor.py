"""
백테스트 실행 모듈 (오케스트레이터).

[ 역할 ]
    종목별로 전략을 독립 실행한 뒤, 결과 거래를 하나의 계좌 자본으로
    감당 가능했는지 일 단위로 걸러 최종 자본을 계산한다.

[ 실행 흐름 ]
    run() 호출 시:
        1. 종목마다 data.fetch_series() → test.reset() → set_series() → run()
           → 청산 포지션 수집 (실패한 종목은 로깅 후 컨텍스트를 비우고 건너뜀)
        2. 전체 포지션을 진입일 오름차순으로 안정 정렬
        3. allocation.filter_by_capital()로 일별 자본 제약 필터링
        4. 리포트 생성 → 최종 자본+평가액 계산 → render()
        5. 최종 자본 반환

[ 의존성 ]
    - data/market_data.py::SeriesDatasource (fetch_series)
    - backtest/context.py::StrategyTestContext (종목 단위 전략 실행)
    - backtest/allocation.py (정렬, 일별 그룹핑, 자본 배분)
    - backtest/report.py::BacktestReport (최종 자본, 결과물)

[ 호출하는 곳 ]
    - run_backtest.py (진입점)
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from quant_backtest.backtest.accounting import TransactionCosts
from quant_backtest.backtest.allocation import filter_by_capital, sort_positions
from quant_backtest.backtest.context import StrategyTestContext
from quant_backtest.backtest.report import BacktestReport
from quant_backtest.core.position import Position
from quant_backtest.data.market_data import SeriesDatasource

logger = logging.getLogger("quant_backtest.backtest")


@dataclass
class InstrumentResult:
    """종목 단위 실행 결과. error가 있으면 positions는 비어 있다."""
    symbol: str
    positions: list[Position] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class BacktestExecutor:
    """멀티 종목 백테스트 실행기. run()으로 최종 자본 계산."""

    def __init__(
        self,
        data: SeriesDatasource,
        symbols: list[str],
        test: StrategyTestContext,
        report_name: str,
        capital: float = 100_000,
        commission: float = 9.99,
        slippage: float = 0.001,
        report_factory: Callable[..., BacktestReport] = BacktestReport,
    ):
        self.data = data
        self.symbols = list(symbols)
        self.test = test
        self.report_name = report_name
        self.capital = capital
        self.commission = commission
        self.slippage = slippage
        self.report_factory = report_factory

        # run() 후 채워지는 결과
        self.results: list[InstrumentResult] = []
        self.positions: list[Position] = []            # 진입일 정렬된 전체 후보
        self.filtered_positions: list[Position] = []   # 자본 제약 통과분
        self.carried_capital: float = capital          # 마지막 날 이후 이월 자본
        self.report: BacktestReport | None = None

    @property
    def costs(self) -> TransactionCosts:
        return TransactionCosts(commission=self.commission, slippage=self.slippage)

    @property
    def failures(self) -> list[InstrumentResult]:
        return [r for r in self.results if not r.ok]

    def run(self) -> float:
        """백테스트 실행. 최종 자본+평가액 반환."""
        started = time.perf_counter()

        self.results = [self._run_instrument(symbol) for symbol in self.symbols]

        collected = [p for r in self.results for p in r.positions]
        self.positions = sort_positions(collected, "entry_date")
        logger.info(
            f"전략 실행 완료: {len(self.symbols)}종목 중 {len(self.symbols) - len(self.failures)}종목 성공, "
            f"후보 거래 {len(self.positions)}건"
        )

        self.filtered_positions, self.carried_capital = filter_by_capital(
            self.positions, self.capital, self.costs
        )
        logger.info(f"자본 제약 필터: {len(self.positions)}건 중 {len(self.filtered_positions)}건 채택")

        self.report = self.report_factory(
            self.report_name,
            self.capital,
            self.commission,
            self.slippage,
            self.filtered_positions,
            self.test.open_positions,
        )
        ending_capital = self.report.total_capital_and_equity()
        logger.debug(f"Ending capital is {ending_capital:12.2f}")
        self.report.render()

        logger.debug(f"Time : {time.perf_counter() - started:.3f} seconds")
        return ending_capital

    def _run_instrument(self, symbol: str) -> InstrumentResult:
        """한 종목 실행. 어떤 예외든 잡아서 실패 결과로 반환."""
        try:
            series = self.data.fetch_series(symbol)
            self.test.reset()
            self.test.set_series(series)
            self.test.run()
            return InstrumentResult(symbol=symbol, positions=self.test.closed_positions)
        except Exception as e:
            logger.exception(f"{symbol} 실행 실패: {e}")
            # 실패 종목이 남긴 미청산 포지션이 리포트로 넘어가지 않도록 비운다
            self.test.reset()
            return InstrumentResult(symbol=symbol, error=str(e) or type(e).__name__)

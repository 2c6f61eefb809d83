"""
백테스트 실행 스크립트 (시스템 진입점).

[ 사용법 ]
    # 기본 실행 (config.yaml 사용, 샘플 데이터)
    python run_backtest.py

    # 전략 / 데이터 소스 지정
    python run_backtest.py --strategy split_buy
    python run_backtest.py --source yahoo
    python run_backtest.py --source clickhouse

    # 파라미터 오버라이드
    python run_backtest.py --strategy ma_cross -p ma_period=10 -p position_size_pct=20

    # 자본 / 리포트 이름 지정
    python run_backtest.py --capital 50000 --report reports/ma_cross_2024

    # 등록된 전략 목록 확인
    python run_backtest.py --list
"""

import argparse
from datetime import date
from pathlib import Path

from quant_backtest.backtest.context import StrategyTestContext
from quant_backtest.backtest.executor import BacktestExecutor
from quant_backtest.core.data_provider import DataProvider
from quant_backtest.data.market_data import SeriesDatasource
from quant_backtest.data.memory_provider import InMemoryDataProvider, generate_sample_data
from quant_backtest.strategies import create_strategy, list_strategies
from quant_backtest.utils.config import Config
from quant_backtest.utils.logger import setup_logger

DEFAULT_TICKERS = ["AAPL", "MSFT", "GOOG"]


def parse_param(param_str: str) -> tuple[str, object]:
    """'key=value' 문자열을 파싱하여 (key, value) 반환. 숫자/불리언은 자동 변환."""
    key, _, value = param_str.partition("=")
    key = key.strip()
    value = value.strip()

    try:
        if "." in value:
            return key, float(value)
        return key, int(value)
    except ValueError:
        if value.lower() in ("true", "yes"):
            return key, True
        if value.lower() in ("false", "no"):
            return key, False
        return key, value


def build_provider(config: Config, source: str, tickers: list[str]) -> DataProvider:
    """데이터 소스 이름으로 DataProvider 생성."""
    start = date.fromisoformat(config.backtest.start_date)
    end = date.fromisoformat(config.backtest.end_date)

    if source == "sample":
        provider = InMemoryDataProvider()
        for ticker in tickers:
            provider.load_data(ticker, generate_sample_data(ticker, start, end))
        return provider

    if source == "yahoo":
        from quant_backtest.data.yahoo_provider import YahooDataProvider
        return YahooDataProvider(
            tickers=tickers,
            max_retries=config.data_ingestion.max_retries,
            retry_delay=config.data_ingestion.retry_delay,
        )

    if source == "clickhouse":
        from quant_backtest.data.clickhouse_provider import ClickHouseDataProvider
        return ClickHouseDataProvider(
            host=config.database.host,
            port=config.database.port,
            database=config.database.database,
            user=config.database.user,
            password=config.database.password,
            use_adjusted_close=config.database.use_adjusted_close,
        )

    raise ValueError(f"알 수 없는 데이터 소스: {source}")


def main():
    parser = argparse.ArgumentParser(description="자본 제약 멀티 종목 백테스트 실행")
    parser.add_argument("--config", type=str, default="config.yaml", help="설정 파일 경로")
    parser.add_argument("--strategy", type=str, default=None, help="전략 이름 (config.yaml 대신 지정)")
    parser.add_argument("-p", "--param", action="append", default=[], help="파라미터 오버라이드 (예: -p ma_period=10)")
    parser.add_argument("--source", type=str, default="sample", choices=["sample", "yahoo", "clickhouse"], help="데이터 소스")
    parser.add_argument("--capital", type=float, default=None, help="시작 자본")
    parser.add_argument("--report", type=str, default=None, help="리포트 파일 이름 (확장자 제외)")
    parser.add_argument("--list", action="store_true", help="등록된 전략 목록 출력")
    args = parser.parse_args()

    if args.list:
        print("등록된 전략:")
        for name in list_strategies():
            print(f"  - {name}")
        return

    config_path = Path(args.config)
    if config_path.exists():
        config = Config.from_yaml(config_path)
    else:
        print(f"설정 파일 없음: {config_path}, 기본값 사용")
        config = Config()

    setup_logger(level=config.log_level, log_dir=config.log_dir)

    if args.capital is not None:
        config.backtest.capital = args.capital
    if args.report:
        config.backtest.report_name = args.report

    strategy_name = args.strategy or config.strategy.name
    strategy_params = dict(config.strategy.params)
    for p in args.param:
        key, value = parse_param(p)
        strategy_params[key] = value

    tickers = config.strategy.tickers or DEFAULT_TICKERS
    strategy = create_strategy(strategy_name, params=strategy_params)
    context = StrategyTestContext(
        strategy,
        cash=config.backtest.capital,
        lookback=config.backtest.lookback,
    )
    provider = build_provider(config, args.source, tickers)
    datasource = SeriesDatasource(
        provider,
        start_date=date.fromisoformat(config.backtest.start_date),
        end_date=date.fromisoformat(config.backtest.end_date),
    )
    executor = BacktestExecutor(
        data=datasource,
        symbols=tickers,
        test=context,
        report_name=config.backtest.report_name,
        capital=config.backtest.capital,
        commission=config.backtest.commission,
        slippage=config.backtest.slippage,
    )

    print(f"\n전략: {strategy_name} / 종목: {', '.join(tickers)} / 데이터: {args.source}")
    try:
        ending_capital = executor.run()
    finally:
        provider.close()

    print(executor.report.metrics().summary())
    print(f"후보 거래:   {len(executor.positions):>10d}")
    print(f"채택 거래:   {len(executor.filtered_positions):>10d}")
    if executor.failures:
        print(f"실패 종목:   {', '.join(r.symbol for r in executor.failures)}")
    print(f"시작 자본:   {config.backtest.capital:>14,.2f}")
    print(f"최종 자본:   {ending_capital:>14,.2f}")


if __name__ == "__main__":
    main()

"""
설정 관리 모듈.

[ 역할 ]
    config.yaml (또는 .json) 파일을 파싱하여 Config 객체로 변환.
    백테스트 코어는 설정 파일을 직접 읽지 않고, run_backtest.py가 읽어서 값을 넘긴다.

[ 설정 파일 구조 (config.yaml) ]
    strategy:         → StrategyConfig (전략 이름, 종목, 파라미터)
    backtest:         → BacktestConfig (기간, 자본, 수수료, 슬리피지, 리포트 이름)
    database:         → DatabaseConfig (--source clickhouse)
    data_ingestion:   → DataIngestionConfig (--source yahoo 재시도)
    log_level:        → "INFO" / "DEBUG"
    log_dir:          → 로그 디렉토리 경로
"""

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml


@dataclass
class StrategyConfig:
    """전략 설정. 전략별 파라미터는 params에 넣으며 각 전략의 DEFAULT_PARAMS를 오버라이드한다."""
    name: str = "ma_cross"
    tickers: list[str] = field(default_factory=list)
    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class BacktestConfig:
    """백테스트 설정."""
    start_date: str = "2024-01-01"
    end_date: str = "2024-12-31"
    capital: float = 100_000       # 시작 자본
    commission: float = 9.99       # 거래당 고정 수수료
    slippage: float = 0.001        # 총손익 대비 슬리피지 비율
    report_name: str = "reports/backtest"
    lookback: int = 30             # 전략에 전달할 최근 봉 개수


@dataclass
class DatabaseConfig:
    """데이터베이스 설정."""
    host: str = "localhost"
    port: int = 8123
    database: str = "default"
    user: str = "default"
    password: str = "password"
    use_adjusted_close: bool = True


@dataclass
class DataIngestionConfig:
    """외부 시세 조회 설정."""
    max_retries: int = 3
    retry_delay: int = 5


def _pick(cls, data: dict[str, Any] | None):
    """dataclass에 정의된 키만 골라서 생성 (모르는 키는 무시)."""
    data = data or {}
    return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class Config:
    """전체 설정. from_yaml() 또는 from_json()으로 파일에서 로드."""
    strategy: StrategyConfig = field(default_factory=StrategyConfig)
    backtest: BacktestConfig = field(default_factory=BacktestConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    data_ingestion: DataIngestionConfig = field(default_factory=DataIngestionConfig)
    log_level: str = "INFO"
    log_dir: str = "logs"

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Config":
        with open(Path(path), "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return cls._from_dict(data or {})

    @classmethod
    def from_json(cls, path: str | Path) -> "Config":
        with open(Path(path), "r", encoding="utf-8") as f:
            data = json.load(f)
        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "Config":
        strategy_data = data.get("strategy") or {}

        # params가 명시적으로 있으면 그것을 사용, 없으면 name/tickers 외 나머지를 params로
        if "params" in strategy_data:
            strategy_params = dict(strategy_data["params"] or {})
        else:
            strategy_params = {
                k: v for k, v in strategy_data.items()
                if k not in ("name", "tickers")
            }
        strategy = StrategyConfig(
            name=strategy_data.get("name", StrategyConfig.name),
            tickers=list(strategy_data.get("tickers") or []),
            params=strategy_params,
        )

        return cls(
            strategy=strategy,
            backtest=_pick(BacktestConfig, data.get("backtest")),
            database=_pick(DatabaseConfig, data.get("database")),
            data_ingestion=_pick(DataIngestionConfig, data.get("data_ingestion")),
            log_level=data.get("log_level", "INFO"),
            log_dir=data.get("log_dir", "logs"),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def save_yaml(self, path: str | Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(self.to_dict(), f, allow_unicode=True, default_flow_style=False)

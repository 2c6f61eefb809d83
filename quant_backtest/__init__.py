"""
=============================================================================
자본 제약 멀티 종목 백테스트 (Quant Backtest)
=============================================================================

[ 시스템 전체 구조 ]

    run_backtest.py (진입점)
         │
         ├── utils/config.py        ← config.yaml 설정 로드
         ├── utils/logger.py        ← 로깅
         │
         ├── data/market_data.py    ← 종목별 시세 조회 (SeriesDatasource)
         │     └── memory / yahoo / clickhouse provider
         │
         ├── strategies/            ← 매매 전략 (시그널 + score 생성)
         │
         └── backtest/executor.py   ← 백테스트 오케스트레이터
               │
               ├── backtest/context.py     ← 종목 단위 전략 실행 → 후보 거래
               ├── backtest/allocation.py  ← 일별 자본 제약 배분
               ├── backtest/accounting.py  ← 진입 비용 / 순손익
               └── backtest/report.py      ← 최종 자본, 차트/CSV/JSON


[ 데이터 흐름 ]

    1. 종목마다 시세 조회 → 전략 실행 → 청산 포지션 수집 (실패 종목은 건너뜀)
    2. 전체 포지션을 진입일 순으로 정렬
    3. 같은 날 진입한 포지션끼리 묶어 score 오름차순으로 자본 한도 내에서 채택
    4. 다음 날 자본 = 전날 자본 + 전날 채택분 순손익
    5. 채택된 포지션으로 리포트 생성, 최종 자본 반환
"""

__version__ = "0.1.0"

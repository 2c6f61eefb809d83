"""
전략 레지스트리.

@register("이름")을 붙인 TradingStrategy 하위 클래스가 STRATEGY_REGISTRY에 등록되고,
run_backtest.py의 --strategy / config.yaml의 strategy.name으로 선택된다.
패키지 임포트 시 이 디렉토리의 모든 모듈을 읽어 등록을 끝낸다.
"""

import logging
import pkgutil
from importlib import import_module
from typing import Any

from quant_backtest.core.trading_strategy import TradingStrategy

logger = logging.getLogger("quant_backtest.strategies")

STRATEGY_REGISTRY: dict[str, type[TradingStrategy]] = {}


def register(name: str):
    """전략 클래스 등록 데코레이터. 클래스의 name도 함께 설정한다."""
    def decorator(cls: type[TradingStrategy]):
        existing = STRATEGY_REGISTRY.get(name)
        if existing is not None and existing.__qualname__ != cls.__qualname__:
            raise ValueError(f"전략 이름 중복: '{name}' ({existing.__qualname__}, {cls.__qualname__})")
        cls.name = name
        STRATEGY_REGISTRY[name] = cls
        return cls
    return decorator


def create_strategy(name: str, params: dict[str, Any] | None = None) -> TradingStrategy:
    """이름으로 전략 생성. 전략이 모르는 파라미터는 경고 후 무시된다.

    Raises:
        ValueError: 등록되지 않은 전략 이름
    """
    if name not in STRATEGY_REGISTRY:
        raise ValueError(f"알 수 없는 전략: '{name}'. 사용 가능: {', '.join(list_strategies())}")

    cls = STRATEGY_REGISTRY[name]
    params = dict(params or {})
    unknown = sorted(set(params) - set(cls.DEFAULT_PARAMS))
    for key in unknown:
        logger.warning(f"{name}: 알 수 없는 파라미터 '{key}' 무시")
        params.pop(key)
    return cls(params=params)


def list_strategies() -> list[str]:
    return sorted(STRATEGY_REGISTRY)


for _module in pkgutil.iter_modules(__path__):
    import_module(f"{__name__}.{_module.name}")

"""Config 로드 테스트."""

import json

from quant_backtest.utils.config import Config


def test_defaults_match_backtest_conventions():
    config = Config()
    assert config.backtest.capital == 100_000
    assert config.backtest.commission == 9.99
    assert config.backtest.slippage == 0.001
    assert config.strategy.name == "ma_cross"


def test_from_yaml_reads_sections_and_ignores_unknown_keys(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        """
strategy:
  name: split_buy
  tickers: [AAA, BBB]
  split_count: 3
backtest:
  capital: 5000
  report_name: out/run1
  not_a_field: 1
log_level: DEBUG
""",
        encoding="utf-8",
    )

    config = Config.from_yaml(path)

    assert config.strategy.name == "split_buy"
    assert config.strategy.tickers == ["AAA", "BBB"]
    assert config.strategy.params == {"split_count": 3}
    assert config.backtest.capital == 5000
    assert config.backtest.report_name == "out/run1"
    assert config.backtest.commission == 9.99
    assert config.log_level == "DEBUG"


def test_explicit_params_section_wins(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"strategy": {"name": "ma_cross", "params": {"ma_period": 7}}}), encoding="utf-8")

    config = Config.from_json(path)

    assert config.strategy.params == {"ma_period": 7}


def test_empty_yaml_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert Config.from_yaml(path) == Config()


def test_save_yaml_round_trips(tmp_path):
    config = Config()
    config.backtest.capital = 42_000
    path = tmp_path / "nested" / "saved.yaml"

    config.save_yaml(path)

    assert Config.from_yaml(path).backtest.capital == 42_000

from __future__ import annotations

from pathlib import Path

import pytest
from loguru import logger

from clockbot.config import ResolverConfig, Settings
from clockbot.logging_setup import setup_logging


def _values(**overrides) -> dict:
    values = dict(
        reference_timezone="Europe/Moscow",
        storage_timezone="UTC",
        interactive_selection=True,
        pending_ttl_sec=900,
        low_confidence_threshold=0.56,
        min_score_gap=0.08,
        no_match_threshold=0.35,
    )
    values.update(overrides)
    return values


def test_settings_defaults_build_resolver_config() -> None:
    config = Settings().resolver_config()
    assert config.reference_timezone == "Europe/Moscow"
    assert config.storage_timezone == "UTC"
    assert config.pending_ttl_sec == 900
    assert config.low_confidence_threshold == 0.56
    assert str(config.reference_tz) == "Europe/Moscow"


def test_settings_read_environment(monkeypatch) -> None:
    monkeypatch.setenv("REFERENCE_TIMEZONE", "Europe/Belgrade")
    monkeypatch.setenv("INTERACTIVE_SELECTION", "false")
    monkeypatch.setenv("PENDING_TTL_SEC", "60")
    config = Settings().resolver_config()
    assert config.reference_timezone == "Europe/Belgrade"
    assert config.interactive_selection is False
    assert config.pending_ttl_sec == 60


@pytest.mark.parametrize(
    "overrides",
    [
        {"reference_timezone": "Mars/Olympus"},
        {"storage_timezone": ""},
        {"interactive_selection": "yes"},
        {"pending_ttl_sec": 0},
        {"low_confidence_threshold": 1.5},
        {"min_score_gap": -0.1},
        {"no_match_threshold": 0.6},
    ],
)
def test_resolver_config_validation(overrides: dict) -> None:
    with pytest.raises(ValueError):
        ResolverConfig(**_values(**overrides))


def test_setup_logging_writes_file(tmp_path: Path) -> None:
    log_path = tmp_path / "logs" / "clockbot.log"
    setup_logging(str(log_path), "DEBUG")
    try:
        logger.info("pending created id={}", "abc")
        logger.complete()
    finally:
        logger.remove()
    assert "pending created id=abc" in log_path.read_text(encoding="utf-8")

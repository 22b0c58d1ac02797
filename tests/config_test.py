from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from config import AppSettings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    for name in (
        "MARKET_DATA_PROVIDER",
        "ALPHA_VANTAGE_API_KEY",
        "PRICE_FRESHNESS_MINUTES",
        "PRICE_REQUEST_TIMEOUT_SECONDS",
        "DATABASE_URL",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    settings = AppSettings()

    assert settings.market_data_provider == "yahoo"
    assert settings.alpha_vantage_api_key == "demo"
    assert settings.price_freshness_minutes == 60
    assert settings.price_request_timeout_seconds == 10.0


def test_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MARKET_DATA_PROVIDER", "alphavantage")
    monkeypatch.setenv("ALPHA_VANTAGE_API_KEY", "secret")
    monkeypatch.setenv("PRICE_FRESHNESS_MINUTES", "5")

    settings = AppSettings()

    assert settings.market_data_provider == "alphavantage"
    assert settings.alpha_vantage_api_key == "secret"
    assert settings.price_freshness_minutes == 5


def test_blank_api_key_falls_back_to_demo(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ALPHA_VANTAGE_API_KEY", "")
    assert AppSettings().alpha_vantage_api_key == "demo"


def test_rejects_non_positive_freshness_window(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PRICE_FRESHNESS_MINUTES", "0")
    with pytest.raises(ValidationError):
        AppSettings()

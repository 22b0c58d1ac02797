from __future__ import annotations

import logging
from unittest.mock import Mock

import pytest

from services.alpha_vantage_source import AlphaVantageSource
from services.source_selector import SOURCE_FACTORIES, select_quote_source
from services.yahoo_finance_source import YahooFinanceSource


@pytest.mark.parametrize("name", [None, "", "  ", "yahoo", "YAHOO "])
def test_defaults_to_yahoo(name: str | None) -> None:
    source = select_quote_source(name, api_key="demo")
    assert isinstance(source, YahooFinanceSource)


def test_selects_alpha_vantage_with_configured_key_and_timeout() -> None:
    session = Mock()
    source = select_quote_source("AlphaVantage", api_key="secret", timeout=3.0, session=session)

    assert isinstance(source, AlphaVantageSource)
    assert source.client.api_key == "secret"
    assert source.client.timeout == 3.0


def test_unknown_provider_falls_back_with_warning(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="services.source_selector"):
        source = select_quote_source("bloomberg", api_key="demo")

    assert isinstance(source, YahooFinanceSource)
    assert "bloomberg" in caplog.text


def test_registered_providers_are_selectable(monkeypatch: pytest.MonkeyPatch) -> None:
    sentinel = Mock()
    monkeypatch.setitem(SOURCE_FACTORIES, "fake", lambda **kwargs: sentinel)

    assert select_quote_source("fake", api_key="demo") is sentinel

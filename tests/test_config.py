"""Tests for application settings."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from bankboeker.config import Settings


def test_defaults():
    config = Settings(_env_file=None)

    assert config.auto_book_threshold == 70
    assert config.batch_concurrency == 5
    assert config.capitalization_threshold == Decimal("450")
    assert config.invoice_match_window_days == 7
    assert config.invoice_amount_tolerance == Decimal("0.02")


def test_providers_follow_credentials():
    bare = Settings(_env_file=None, tavily_api_key="", openrouter_api_key="")
    keyed = Settings(_env_file=None, tavily_api_key="tvly-test", openrouter_api_key="sk-or-test")

    assert (bare.search_enabled, bare.llm_enabled) == (False, False)
    assert (keyed.search_enabled, keyed.llm_enabled) == (True, True)


def test_environment_variables(monkeypatch):
    monkeypatch.setenv("AUTO_BOOK_THRESHOLD", "85")
    monkeypatch.setenv("ENV", "production")

    config = Settings(_env_file=None)

    assert config.auto_book_threshold == 85
    assert config.environment == "production"


@pytest.mark.parametrize(
    ("field", "value"),
    [("auto_book_threshold", 101), ("auto_book_threshold", -1), ("batch_concurrency", 0)],
)
def test_out_of_range_values_are_rejected(field, value):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **{field: value})

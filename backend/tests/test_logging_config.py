"""Tests for configuration and log scrubbing."""

from __future__ import annotations

import logging
from decimal import Decimal

import pytest

from venue_office.core.config import get_settings
from venue_office.core.logging import SensitiveFilter, configure_logging
from venue_office.core.settings import get_pricing_rates


@pytest.fixture()
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def _record(msg: str, *args: object) -> logging.LogRecord:
    return logging.LogRecord(
        name="venue_office.tests",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=args,
        exc_info=None,
    )


def test_filter_redacts_contact_details() -> None:
    record = _record(
        "Quote sent to %s (%s) for %s",
        "kim.lee@example.org",
        "+61 412 345 678",
        "Harbour Choir",
    )

    assert SensitiveFilter().filter(record) is True
    message = record.getMessage()
    assert "example.org" not in message
    assert "412" not in message
    assert "Harbour Choir" in message


def test_filter_keeps_references_and_amounts() -> None:
    record = _record("Booking %s priced at %s", "BK-2024-0042", "1234.50")

    SensitiveFilter().filter(record)

    assert record.getMessage() == "Booking BK-2024-0042 priced at 1234.50"


def test_configure_logging_installs_filter_once(fresh_settings, monkeypatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", " debug ")
    package_logger = logging.getLogger("venue_office")
    root = logging.getLogger()
    previous_level = root.level

    try:
        configure_logging()
        configure_logging()
        assert root.level == logging.DEBUG
        assert sum(isinstance(f, SensitiveFilter) for f in package_logger.filters) == 1
    finally:
        root.setLevel(previous_level)
        for target in (root, package_logger):
            for flt in [f for f in target.filters if isinstance(f, SensitiveFilter)]:
                target.removeFilter(flt)


def test_pricing_rates_come_from_environment(fresh_settings, monkeypatch) -> None:
    monkeypatch.setenv("WHOLE_CENTRE_DAILY_RATE", "1650")
    monkeypatch.setenv("BYO_LINEN_DISCOUNT", "30")

    rates = get_pricing_rates()

    assert rates.whole_centre_daily_rate == Decimal("1650")
    assert rates.byo_linen_discount == Decimal("30")
    assert rates.percolated_coffee_price == Decimal("3")

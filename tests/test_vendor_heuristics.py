"""Tests for the static vendor table."""

import pytest

from bankboeker.services.account_lookup import is_blacklisted_code
from bankboeker.services.vendor_heuristics import (
    VENDOR_DEFAULTS,
    find_vendor_account,
    iter_vendor_matches,
    match_vendor,
)


def test_fuel_vendor():
    match = match_vendor("SHELL UTRECHT")
    assert match is not None
    assert match.keyword == "shell"
    assert match.account_code == "4310"


def test_short_keyword_needs_whole_token():
    assert match_vendor("BP STATION ZWOLLE").keyword == "bp"
    assert match_vendor("BPOST PAKKET") is None


def test_cash_withdrawal_is_private():
    assert match_vendor("GELDMAAT AMSTERDAM").account_code == "1800"


def test_one_hit_per_table_entry():
    matches = list(iter_vendor_matches("ALBERT HEIJN JUMBO"))
    assert len(matches) == 1
    assert matches[0].keyword == "albert heijn"


def test_no_match_for_empty_text():
    assert match_vendor("") is None


def test_table_never_targets_blacklisted_codes():
    assert not any(is_blacklisted_code(entry.account_code) for entry in VENDOR_DEFAULTS)


@pytest.mark.asyncio
class TestFindVendorAccount:
    async def test_resolves_account_by_code(self, db, chart):
        found = await find_vendor_account(db, "SHELL UTRECHT")

        assert found is not None
        match, account = found
        assert match.category == "Brandstofkosten"
        assert account.id == chart["4310"].id

    async def test_entry_without_active_account_is_skipped(self, db, chart):
        chart["4700"].is_active = False
        await db.flush()

        found = await find_vendor_account(db, "NS ALBERT HEIJN")

        assert found is not None
        match, account = found
        assert match.keyword == "ns"
        assert account.code == "4300"

    async def test_no_account_at_all(self, db, chart):
        chart["4310"].is_active = False
        await db.flush()

        assert await find_vendor_account(db, "SHELL UTRECHT") is None

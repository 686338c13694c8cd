"""Tests for billing profile resolution and versioned activation."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

import pytest

from staffledger.billing.resolver import activate_billing_profile, resolve_active_billing
from staffledger.core.exceptions import NoBillingConfiguredError
from tests.fakes import MemoryBillingStore, make_profile


@pytest.fixture
def store():
    return MemoryBillingStore()


class TestResolveActiveBilling:
    def test_no_profile_raises(self, store):
        with pytest.raises(NoBillingConfiguredError) as exc_info:
            resolve_active_billing(store, 1001)
        assert exc_info.value.candidate_id == 1001

    def test_inactive_only_raises(self, store):
        store.save_profile(make_profile(is_active=False))
        with pytest.raises(NoBillingConfiguredError):
            resolve_active_billing(store, 1001)

    def test_returns_active(self, store):
        profile = store.save_profile(make_profile())
        assert resolve_active_billing(store, 1001).id == profile.id

    def test_several_active_uses_latest_and_warns(self, store, caplog):
        store.save_profile(make_profile(effective_from=date(2025, 1, 1)))
        newer = store.save_profile(make_profile(effective_from=date(2025, 3, 1)))
        with caplog.at_level(logging.WARNING, logger="staffledger"):
            assert resolve_active_billing(store, 1001).id == newer.id
        assert "matching billing profiles" in caplog.text

    def test_as_of_before_first_profile_uses_first_profile(self, store):
        first = store.save_profile(make_profile(effective_from=date(2025, 1, 1)))
        assert resolve_active_billing(store, 1001, as_of=date(2024, 12, 30)).id == first.id

    def test_as_of_before_first_profile_prices_at_first_terms(self, store):
        first = activate_billing_profile(store, make_profile(effective_from=date(2025, 1, 1)))
        activate_billing_profile(
            store, make_profile(effective_from=date(2025, 3, 1), hourly_rate=Decimal("60"))
        )
        resolved = resolve_active_billing(store, 1001, as_of=date(2024, 11, 4))
        assert resolved.id == first.id
        assert resolved.hourly_rate == Decimal("50")

    def test_as_of_without_active_profile_raises(self, store):
        store.save_profile(make_profile(effective_from=date(2025, 1, 1), is_active=False))
        with pytest.raises(NoBillingConfiguredError) as exc_info:
            resolve_active_billing(store, 1001, as_of=date(2024, 12, 31))
        assert exc_info.value.as_of == date(2024, 12, 31)

    def test_as_of_in_gap_between_profiles_raises(self, store):
        store.save_profile(
            make_profile(effective_from=date(2025, 1, 1), effective_to=date(2025, 1, 31),
                         is_active=False)
        )
        store.save_profile(make_profile(effective_from=date(2025, 3, 1)))
        with pytest.raises(NoBillingConfiguredError):
            resolve_active_billing(store, 1001, as_of=date(2025, 2, 10))


class TestActivateBillingProfile:
    def test_rate_change_keeps_history(self, store):
        old = activate_billing_profile(store, make_profile(effective_from=date(2025, 1, 1)))
        new = activate_billing_profile(
            store, make_profile(effective_from=date(2025, 3, 1), hourly_rate=Decimal("60"))
        )

        assert len(store.list_profiles(1001)) == 2
        assert resolve_active_billing(store, 1001).id == new.id

        historical = resolve_active_billing(store, 1001, as_of=date(2025, 2, 15))
        assert historical.id == old.id
        assert historical.hourly_rate == Decimal("50")
        assert historical.effective_to == date(2025, 2, 28)
        assert historical.is_active is False

        assert resolve_active_billing(store, 1001, as_of=date(2025, 3, 1)).id == new.id

    def test_reactivating_same_profile_is_idempotent(self, store):
        profile = activate_billing_profile(store, make_profile())
        activate_billing_profile(store, profile)
        assert len(store.list_profiles(1001)) == 1
        assert store.list_profiles(1001)[0].is_active

    def test_other_candidates_untouched(self, store):
        other = activate_billing_profile(store, make_profile(candidate_id=2))
        activate_billing_profile(store, make_profile())
        assert resolve_active_billing(store, 2).id == other.id

    def test_successor_starting_same_day_voids_predecessor(self, store, caplog):
        old = activate_billing_profile(store, make_profile(effective_from=date(2025, 1, 1)))
        new = activate_billing_profile(
            store, make_profile(effective_from=date(2025, 1, 1), hourly_rate=Decimal("60"))
        )

        with caplog.at_level(logging.WARNING, logger="staffledger"):
            resolved = resolve_active_billing(store, 1001, as_of=date(2025, 1, 1))
        assert resolved.id == new.id
        assert "matching billing profiles" not in caplog.text

        stored = {p.id: p for p in store.list_profiles(1001)}
        assert stored[old.id].voided
        assert not stored[old.id].covers(date(2025, 1, 1))

    def test_backdated_successor_leaves_no_overlap(self, store):
        activate_billing_profile(store, make_profile(effective_from=date(2025, 2, 1)))
        new = activate_billing_profile(
            store, make_profile(effective_from=date(2025, 1, 1), hourly_rate=Decimal("45"))
        )

        for day in (date(2025, 1, 1), date(2025, 2, 1), date(2025, 6, 30)):
            covering = [p for p in store.list_profiles(1001) if p.covers(day)]
            assert [p.id for p in covering] == [new.id]

    def test_backdated_successor_trims_closed_history(self, store):
        january = activate_billing_profile(store, make_profile(effective_from=date(2025, 1, 1)))
        activate_billing_profile(store, make_profile(effective_from=date(2025, 2, 1)))
        mid_january = activate_billing_profile(
            store, make_profile(effective_from=date(2025, 1, 15), hourly_rate=Decimal("55"))
        )

        stored = {p.id: p for p in store.list_profiles(1001)}
        assert stored[january.id].effective_to == date(2025, 1, 14)
        assert resolve_active_billing(store, 1001, as_of=date(2025, 1, 20)).id == mid_january.id
        assert resolve_active_billing(store, 1001, as_of=date(2025, 2, 10)).id == mid_january.id

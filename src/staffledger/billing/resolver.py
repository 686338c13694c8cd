"""Billing profile resolution and versioned activation."""

from __future__ import annotations

import logging
from datetime import date

from staffledger.core.exceptions import NoBillingConfiguredError
from staffledger.core.protocols import IBillingStore
from staffledger.models.billing import BillingProfile

logger = logging.getLogger(__name__)


def _latest(profiles: list[BillingProfile]) -> BillingProfile:
    return max(profiles, key=lambda p: (p.effective_from, p.created_at))


def _earliest(profiles: list[BillingProfile]) -> BillingProfile:
    return min(profiles, key=lambda p: (p.effective_from, p.created_at))


def resolve_active_billing(
    store: IBillingStore, candidate_id: int, as_of: date | None = None
) -> BillingProfile:
    """Return the billing profile in force for a candidate.

    Without ``as_of`` the active profile is returned. With ``as_of`` the
    profile whose validity interval contains that date is returned, active
    or not, so historical periods price at the terms of their time. A date
    before the candidate's first profile prices at that first profile, so
    terms configured today still bill the weeks already worked.

    Raises:
        NoBillingConfiguredError: the candidate has no active profile, or
            ``as_of`` falls in a gap between closed profiles.
    """
    profiles = store.list_profiles(candidate_id)

    if as_of is None:
        matches = [p for p in profiles if p.is_active]
    else:
        matches = [p for p in profiles if p.covers(as_of)]
        if not matches and any(p.is_active for p in profiles):
            first = _earliest([p for p in profiles if not p.voided])
            if as_of < first.effective_from:
                logger.info(
                    "Candidate %s has no billing profile on %s; using %s effective %s",
                    candidate_id, as_of, first.id, first.effective_from,
                )
                return first

    if not matches:
        raise NoBillingConfiguredError(candidate_id, as_of)

    if len(matches) > 1:
        logger.warning(
            "Candidate %s has %d matching billing profiles (as_of=%s); using the latest",
            candidate_id, len(matches), as_of,
        )
    return _latest(matches)


def activate_billing_profile(store: IBillingStore, profile: BillingProfile) -> BillingProfile:
    """Save ``profile`` as the candidate's active terms.

    Every earlier profile whose interval reaches the new start date is closed
    the day before it and marked inactive; one starting on or after the new
    profile is voided. None is overwritten.
    """
    for previous in store.list_profiles(profile.candidate_id):
        if previous.id == profile.id or previous.voided:
            continue
        if previous.effective_to is not None and previous.effective_to < profile.effective_from:
            continue
        closed = previous.superseded_by(profile)
        store.save_profile(closed)
        logger.info(
            "Billing profile %s for candidate %s superseded by %s (voided=%s)",
            previous.id, profile.candidate_id, profile.id, closed.voided,
        )

    active = profile.model_copy(update={"is_active": True, "effective_to": None})
    return store.save_profile(active)

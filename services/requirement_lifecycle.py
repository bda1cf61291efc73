"""
Requirement status state machine.

    draft -> active -> {viewed, responded} -> {selected, closed} -> confirmed

``closed`` and ``confirmed`` are terminal. Expiry is not stored: a requirement
whose delivery deadline has passed reads as ``closed`` while it is still open
for bidding.
"""
import logging
from datetime import date
from typing import Iterable, Optional

from statuses import QuoteStatus, RequirementStatus
from services import errors
from services.errors import DomainError

logger = logging.getLogger(__name__)

S = RequirementStatus

TERMINAL = frozenset({S.closed, S.confirmed})
OPEN_FOR_BIDDING = frozenset({S.active, S.viewed, S.responded})
EDITABLE = frozenset({S.draft, S.active})

TRANSITIONS = {
    S.draft: {S.active},
    S.active: {S.viewed, S.responded, S.selected, S.closed},
    S.viewed: {S.responded, S.selected, S.closed},
    S.responded: {S.selected, S.closed},
    S.selected: {S.confirmed},
    S.closed: set(),
    S.confirmed: set(),
}

# Cancelling the order behind a selected/confirmed requirement closes it.
CANCELLATION_TRANSITIONS = {
    S.selected: {S.closed},
    S.confirmed: {S.closed},
}

# Quote-derived signals, strongest first.
SIGNAL_SELECTED = "selected"
SIGNAL_REJECTED_ONLY = "rejected_only"
SIGNAL_RESPONDED = "responded"
SIGNAL_NONE = "none"

# Rank used to keep recomputation from moving a requirement backwards.
_RANK = {S.draft: 0, S.active: 1, S.viewed: 2, S.responded: 3, S.selected: 4, S.closed: 5, S.confirmed: 6}


def can_transition(current: RequirementStatus, target: RequirementStatus, cancellation: bool = False) -> bool:
    table = CANCELLATION_TRANSITIONS if cancellation else TRANSITIONS
    return target in table.get(current, set())


def transition(requirement, target: RequirementStatus, cancellation: bool = False) -> Optional[DomainError]:
    """Apply ``target`` to ``requirement`` in place, or return why it is not allowed."""
    current = RequirementStatus(requirement.status)
    if not can_transition(current, target, cancellation):
        if current in TERMINAL:
            return errors.already_terminal(current)
        return errors.requirement_not_open(current, f"cannot move to {target.value}")
    requirement.status = target
    logger.info("Requirement %s: %s -> %s", requirement.id, current.value, target.value)
    return None


def initial_status(is_draft: bool) -> RequirementStatus:
    return S.draft if is_draft else S.active


def is_expired(requirement, today: date) -> bool:
    deadline = requirement.delivery_deadline
    return deadline is not None and deadline < today


def effective_status(requirement, today: date) -> RequirementStatus:
    """Stored status with read-time expiry applied."""
    status = RequirementStatus(requirement.status)
    if status in OPEN_FOR_BIDDING and is_expired(requirement, today):
        return S.closed
    return status


def is_open_for_bidding(requirement, today: date) -> bool:
    return effective_status(requirement, today) in OPEN_FOR_BIDDING


def quote_signal(quotes: Iterable) -> str:
    statuses = [QuoteStatus(quote.status) for quote in quotes]
    if not statuses:
        return SIGNAL_NONE
    if QuoteStatus.accepted in statuses:
        return SIGNAL_SELECTED
    if all(status == QuoteStatus.rejected for status in statuses):
        return SIGNAL_REJECTED_ONLY
    return SIGNAL_RESPONDED


def derive_requirement_status(requirement, quotes: Iterable) -> RequirementStatus:
    """
    Recompute a requirement's status from its quotes.

    Drafts and terminal states are kept as stored. Otherwise the strongest
    quote signal wins: an accepted quote means ``selected``; any received
    quote (even if all were rejected) means ``responded``. The result never
    ranks below the stored status, so ``responded`` is never downgraded to
    ``active`` and ``viewed`` survives a pass with no quotes.
    """
    stored = RequirementStatus(requirement.status)
    if stored == S.draft or stored in TERMINAL:
        return stored

    signal = quote_signal(quotes)
    if signal == SIGNAL_SELECTED:
        derived = S.selected
    elif signal in (SIGNAL_REJECTED_ONLY, SIGNAL_RESPONDED):
        derived = S.responded
    else:
        derived = S.active

    return derived if _RANK[derived] >= _RANK[stored] else stored

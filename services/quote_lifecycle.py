"""Quote status state machine: new -> accepted | rejected."""
import logging
from typing import Iterable, Optional

from statuses import QuoteStatus
from services import errors
from services.errors import DomainError

logger = logging.getLogger(__name__)

TRANSITIONS = {
    QuoteStatus.new: {QuoteStatus.accepted, QuoteStatus.rejected},
    QuoteStatus.accepted: set(),
    QuoteStatus.rejected: set(),
}


def accepted_sibling(quote, siblings: Iterable):
    for other in siblings:
        if other.id != quote.id and QuoteStatus(other.status) == QuoteStatus.accepted:
            return other
    return None


def accept(quote, siblings: Iterable) -> Optional[DomainError]:
    """Accept ``quote`` unless it is already resolved or a sibling already won."""
    current = QuoteStatus(quote.status)
    winner = accepted_sibling(quote, siblings)
    if winner is not None:
        return errors.duplicate_acceptance(winner.id)
    if QuoteStatus.accepted not in TRANSITIONS[current]:
        return errors.quote_not_open(current)
    quote.status = QuoteStatus.accepted
    logger.info("Quote %s accepted", quote.id)
    return None


def reject(quote) -> Optional[DomainError]:
    current = QuoteStatus(quote.status)
    if QuoteStatus.rejected not in TRANSITIONS[current]:
        return errors.quote_not_open(current)
    quote.status = QuoteStatus.rejected
    logger.info("Quote %s rejected", quote.id)
    return None

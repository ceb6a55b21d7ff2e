"""Ordered signal sources.

Several venue fields (noise level, comfort score, recommendation reason,
attribute chips) can come from more than one place: the LLM analysis, the
keyword analysis of reviews, or inference from categories and price. Each
field is resolved by asking its sources in priority order; the first one
that returns something wins.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from comfort_finder.models import Venue

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class SignalSource(Generic[T]):
    name: str
    provider: Callable[[Venue], T | None]


def resolve(field: str, sources: Sequence[SignalSource[T]], venue: Venue, default: T | None = None) -> T | None:
    """Return the first non-None value from ``sources`` (empty lists count as None)."""
    for source in sources:
        value = source.provider(venue)
        if value is None or value == []:
            continue
        logger.debug("%s for %s taken from %s", field, venue.name, source.name)
        return value
    return default

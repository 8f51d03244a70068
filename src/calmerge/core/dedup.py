from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from .models import Event, EventFingerprint, fingerprint

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DedupPolicy:
    remove_duplicates: bool = True


@dataclass(frozen=True)
class DedupResult:
    """Partition of an event sequence into first occurrences and later repeats.

    ``source`` is the input in its original order; ``events`` is what a caller
    should keep under ``policy``.
    """

    kept: tuple[Event, ...]
    removed: tuple[Event, ...]
    source: tuple[Event, ...]
    policy: DedupPolicy = DedupPolicy()

    @property
    def events(self) -> tuple[Event, ...]:
        return self.kept if self.policy.remove_duplicates else self.source


def resolve(events: Iterable[Event], policy: DedupPolicy | None = None) -> DedupResult:
    """Split ``events`` by fingerprint; the first event seen for a fingerprint wins.

    The partition is always computed. Whether ``removed`` is acted on is up to
    the caller (see ``DedupResult.events``). Merge order therefore decides which
    copy survives: merging A then B keeps A's copy.
    """
    policy = policy or DedupPolicy()
    source = tuple(events)
    seen: set[EventFingerprint] = set()
    kept: list[Event] = []
    removed: list[Event] = []
    for event in source:
        key = fingerprint(event)
        if key in seen:
            removed.append(event)
            continue
        seen.add(key)
        kept.append(event)

    logger.debug(
        "dedup scanned=%s kept=%s removed=%s apply=%s",
        len(source),
        len(kept),
        len(removed),
        policy.remove_duplicates,
    )
    return DedupResult(kept=tuple(kept), removed=tuple(removed), source=source, policy=policy)


def find_duplicates_against_existing(
    new_events: Iterable[Event], existing_events: Iterable[Event]
) -> DedupResult:
    """Check incoming events against a calendar that already holds ``existing_events``.

    An incoming event is removed when an existing event, or an earlier incoming
    event, has the same fingerprint.
    """
    seen = {fingerprint(event) for event in existing_events}
    source = tuple(new_events)
    kept: list[Event] = []
    removed: list[Event] = []
    for event in source:
        key = fingerprint(event)
        if key in seen:
            removed.append(event)
            continue
        seen.add(key)
        kept.append(event)
    return DedupResult(kept=tuple(kept), removed=tuple(removed), source=source)

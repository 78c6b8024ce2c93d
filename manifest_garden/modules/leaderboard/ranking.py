"""
Spend-gated ranking.

Entries are sorted by score (stable, descending) and walked with a
provisional rank starting at 1. While the provisional rank is gated (1, 2
and 3 by default) an entry only takes it if its lifetime spend reaches the
gate; otherwise it is parked with the sentinel rank and the slot stays open
for the next entry. Parked entries go to the end, still in score order, and
the whole list is renumbered ``1..N``.

>>> from decimal import Decimal
>>> rows = [
...     RankingEntry("user", "You", 90, Decimal("0")),
...     RankingEntry("bloomed_0", "CosmicDreamer", 80, Decimal("750")),
... ]
>>> [(e.id, e.rank) for e in rank_entries(rows, {1: 700})]
[('bloomed_0', 1), ('user', 2)]
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, List, Mapping

from manifest_garden.domain.models.ranking import RankingEntry

DEFAULT_THRESHOLDS: Mapping[int, int] = {1: 700, 2: 500, 3: 300}
SENTINEL_RANK = 999


def rank_entries(
    entries: Iterable[RankingEntry],
    thresholds: Mapping[int, int] = DEFAULT_THRESHOLDS,
    sentinel: int = SENTINEL_RANK,
) -> List[RankingEntry]:
    """Rank entries by score with spend-gated top places; returns a new list."""
    gates = {int(rank): Decimal(str(amount)) for rank, amount in thresholds.items()}
    ordered = sorted(entries, key=lambda e: e.score, reverse=True)

    placed: List[RankingEntry] = []
    parked: List[RankingEntry] = []
    provisional = 1
    for entry in ordered:
        gate = gates.get(provisional)
        if gate is not None and entry.total_spent < gate:
            parked.append(entry.with_rank(sentinel))
            continue
        placed.append(entry.with_rank(provisional))
        provisional += 1

    # ``ordered`` is already score-descending, so parked keeps that order
    final = placed + parked
    return [entry.with_rank(index) for index, entry in enumerate(final, start=1)]

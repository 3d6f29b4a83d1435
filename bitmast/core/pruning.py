import itertools
import logging
from dataclasses import dataclass
from typing import Iterable

from .types import Combination

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PruneResult:
    retained: tuple[Combination, ...]
    total: int
    budget: int | None

    @property
    def dropped_count(self) -> int:
        return self.total - len(self.retained)

    def is_committed(self, rank: int) -> bool:
        return 0 <= rank < len(self.retained)


def prune(combinations: Iterable[Combination], total: int, budget: int | None) -> PruneResult:
    """
    Keep the first `budget` combinations in canonical order and drop the rest.

    Survivors keep their rank, so leaf index == lexicographic rank for every
    committed combination. Subsets ranked at or after the budget cannot be
    proven against the resulting root. `combinations` may be a lazy iterator;
    at most `budget` items are consumed from it.
    """
    if budget is not None and budget < 0:
        raise ValueError(f"Prune budget must not be negative, got {budget}")

    if budget is None or budget >= total:
        retained = tuple(combinations)
    else:
        retained = tuple(itertools.islice(combinations, budget))

    result = PruneResult(retained=retained, total=total, budget=budget)
    if result.dropped_count:
        logger.warning(
            "Pruned %s of %s combinations (budget %s); subsets ranked %s and above are not committed",
            result.dropped_count,
            total,
            budget,
            len(retained),
        )
    return result

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Iterable, List

from mediacatalog.core.dto.media import MediaRecord

logger = logging.getLogger(__name__)


class MediaStore(ABC):
    """
    Durable collection of committed media records.

    Every read re-materializes from the backing medium; there is no
    in-process cache. Writes replace the whole collection. Failures of
    the medium surface as StoreUnavailable and leave it unchanged.
    """

    @abstractmethod
    def list(self) -> List[MediaRecord]:
        """Return the full collection in insertion order ([] when empty or missing)."""

    @abstractmethod
    def replace_all(self, records: Iterable[MediaRecord]) -> None:
        """Overwrite the collection; records not passed in are gone afterwards."""

    def delete(self, ids: Iterable[str]) -> List[MediaRecord]:
        """Remove ``ids`` and return the resulting collection."""
        doomed = set(ids)
        current = self.list()
        remaining = [r for r in current if r.id not in doomed]
        if len(remaining) == len(current):
            logger.debug(f"Delete of {sorted(doomed)} matched nothing")
            return remaining
        self.replace_all(remaining)
        return remaining

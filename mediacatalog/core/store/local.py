from __future__ import annotations

import json
import logging
from typing import Iterable, List

from mediacatalog.core.database import KeyValueBackend
from mediacatalog.core.dto.media import MediaRecord
from mediacatalog.core.store.base import MediaStore

logger = logging.getLogger(__name__)

COLLECTION_KEY = "savedMedia"


class LocalMediaStore(MediaStore):
    """
    Store backed by a key-value text medium.

    The whole collection is one JSON array under ``collection_key``.
    """

    def __init__(self, backend: KeyValueBackend, collection_key: str = COLLECTION_KEY):
        self._backend = backend
        self.collection_key = collection_key

    def list(self) -> List[MediaRecord]:
        blob = self._backend.get_text(self.collection_key)
        if not blob:
            return []
        try:
            payload = json.loads(blob)
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring unreadable media collection {self.collection_key!r}: {e}")
            return []
        if not isinstance(payload, list):
            logger.warning(f"Media collection {self.collection_key!r} is not a list; treating as empty")
            return []

        records: List[MediaRecord] = []
        seen: set[str] = set()
        for entry in payload:
            if not isinstance(entry, dict):
                continue
            record = MediaRecord.from_dict(entry)
            if record is None or record.id in seen:
                continue
            seen.add(record.id)
            records.append(record)
        return records

    def replace_all(self, records: Iterable[MediaRecord]) -> None:
        items = [r.to_dict() for r in records]
        blob = json.dumps(items, ensure_ascii=False, separators=(",", ":"))
        self._backend.set_text(self.collection_key, blob)
        logger.debug(f"Wrote {len(items)} media records to {self.collection_key!r}")

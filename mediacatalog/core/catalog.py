from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Set

from mediacatalog.core.dto.catalog_item import CatalogItem
from mediacatalog.core.dto.media import MEDIA_KINDS, MediaKind, MediaRecord
from mediacatalog.core.dto.result import OperationResult
from mediacatalog.core.dto.upload import UploadFile
from mediacatalog.core.errors import PreviewDerivationFailed, StoreUnavailable
from mediacatalog.core.events import MediaEvents
from mediacatalog.core.policy import UploadPolicy
from mediacatalog.core.previews.manager import PreviewLifecycle
from mediacatalog.core.store.base import MediaStore

logger = logging.getLogger(__name__)


class Catalog:
    """
    Read / filter / select / delete surface for one view.

    Each view owns its Catalog; they share the store and the preview
    lifecycle but no in-memory state. A catalog only sees other writers'
    changes when load() is called again.
    """

    def __init__(
        self,
        store: MediaStore,
        previews: PreviewLifecycle,
        events: Optional[MediaEvents] = None,
        policy: Optional[UploadPolicy] = None,
    ):
        self._store = store
        self._previews = previews
        self._events = events
        self._policy = policy or UploadPolicy()
        self._records: List[MediaRecord] = []
        self._preview_uris: Dict[str, Optional[str]] = {}
        self._selection: Set[str] = set()
        self.status: str = ""

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    async def load(self) -> List[MediaRecord]:
        """
        Re-read the store and resolve a preview for every record.

        Preference order: the live preview already bound to the record, a
        durable ``preview_uri``, a preview derived from ``source_ref``.
        Records with none of these render as placeholders. When the store
        cannot be read the previous result is kept.
        """
        try:
            records = self._store.list()
        except StoreUnavailable as e:
            logger.warning(f"Catalog load failed: {e}")
            self.status = e.describe()
            return list(self._records)

        uris: Dict[str, Optional[str]] = {}
        for record in records:
            uris[record.id] = await self._resolve_preview(record)

        self._records = records
        self._preview_uris = uris
        self._selection &= {r.id for r in records}
        self.status = "" if records else "No Media Available"
        return list(records)

    async def _resolve_preview(self, record: MediaRecord) -> Optional[str]:
        handle = self._previews.handle_for(record.id)
        if handle is not None:
            return handle.uri
        if self._previews.is_resolvable(record.preview_uri):
            return record.preview_uri
        if record.source_ref:
            try:
                handle = await self._previews.derive(UploadFile.from_path(record.source_ref))
            except PreviewDerivationFailed as e:
                logger.debug(f"No preview for {record.id}: {e}")
                return None
            # Another view may have bound a preview for this record meanwhile.
            current = self._previews.handle_for(record.id)
            if current is not None:
                handle.release()
                return current.uri
            self._previews.bind(handle, record.id)
            return handle.uri
        return None

    @property
    def records(self) -> List[MediaRecord]:
        return list(self._records)

    def preview_for(self, record_id: str) -> Optional[str]:
        """Renderable locator for a loaded record; None means placeholder."""
        return self._preview_uris.get(record_id)

    # ------------------------------------------------------------------
    # Filtering and display
    # ------------------------------------------------------------------
    def filter(self, kind: Optional[MediaKind] = None) -> List[MediaRecord]:
        """Records of the last load matching ``kind`` (None means all), in order."""
        if kind is None:
            return list(self._records)
        return [r for r in self._records if r.kind == kind]

    def items(self, kind: Optional[MediaKind] = None) -> List[CatalogItem]:
        return [
            CatalogItem(
                record=r,
                preview_uri=self._preview_uris.get(r.id),
                selected=r.id in self._selection,
            )
            for r in self.filter(kind)
        ]

    def counts(self) -> Dict[MediaKind, int]:
        counts: Dict[MediaKind, int] = {kind: 0 for kind in MEDIA_KINDS}
        for record in self._records:
            counts[record.kind] += 1
        return counts

    def can_upload(self, kind: Optional[MediaKind] = None) -> bool:
        """Whether the plan leaves room for another item of ``kind`` (any kind when None)."""
        counts = self.counts()
        kinds = MEDIA_KINDS if kind is None else (kind,)
        return any(self._policy.can_add(k, counts[k]) for k in kinds)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------
    @property
    def selection(self) -> Set[str]:
        return set(self._selection)

    def toggle_select(self, record_id: str) -> Set[str]:
        if record_id not in {r.id for r in self._records}:
            return self.selection
        if record_id in self._selection:
            self._selection.discard(record_id)
        else:
            self._selection.add(record_id)
        return self.selection

    def select_all(self, kind: Optional[MediaKind] = None) -> Set[str]:
        self._selection.update(r.id for r in self.filter(kind))
        return self.selection

    def clear_selection(self) -> None:
        self._selection.clear()

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------
    def delete_selected(self) -> OperationResult:
        """Delete every selected record; on failure nothing changes."""
        if not self._selection:
            return OperationResult.success("Nothing selected.", records=self._records)
        result = self._delete(set(self._selection))
        if result.ok:
            self._selection.clear()
        return result

    def delete_one(self, record_id: str) -> OperationResult:
        """Delete a single record regardless of the current selection."""
        result = self._delete({record_id})
        if result.ok:
            self._selection.discard(record_id)
        return result

    def _delete(self, ids: Iterable[str]) -> OperationResult:
        doomed = set(ids)
        try:
            remaining = self._store.delete(doomed)
        except StoreUnavailable as e:
            logger.warning(f"Delete of {len(doomed)} records failed: {e}")
            self.status = e.describe()
            return OperationResult.failure(e)

        for record_id in doomed:
            self._previews.release_owner(record_id)

        self._records = [r for r in self._records if r.id not in doomed]
        survivors = {r.id for r in self._records}
        self._preview_uris = {
            rid: uri for rid, uri in self._preview_uris.items() if rid in survivors
        }
        self._selection &= survivors
        logger.info(f"Deleted {len(doomed)} media records")
        if self._events is not None:
            self._events.notify_media_update()
        n = len(doomed)
        return OperationResult.success(
            f"The media item{'s have' if n != 1 else ' has'} been removed.",
            records=remaining,
        )

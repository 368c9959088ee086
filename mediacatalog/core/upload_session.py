from __future__ import annotations

import itertools
import logging
import time
from enum import Enum
from typing import List, Optional

from mediacatalog.core.dto.draft import DraftEntry
from mediacatalog.core.dto.media import MediaKind, MediaRecord
from mediacatalog.core.dto.result import OperationResult
from mediacatalog.core.dto.upload import UploadFile
from mediacatalog.core.errors import (
    PreviewDerivationFailed,
    SessionClosed,
    StoreUnavailable,
    UploadLimitReached,
    UploadRejected,
)
from mediacatalog.core.events import MediaEvents
from mediacatalog.core.policy import UploadPolicy
from mediacatalog.core.previews.manager import PreviewLifecycle
from mediacatalog.core.store.base import MediaStore

logger = logging.getLogger(__name__)


class SessionState(Enum):
    OPEN = "open"
    EDITING = "editing"
    COMMITTING = "committing"
    CLOSED = "closed"


def new_record_id(taken: set[str]) -> str:
    """Clock-derived id, re-drawn until it is unused."""
    candidate = str(time.time_ns())
    while candidate in taken:
        candidate = str(int(candidate) + 1)
    taken.add(candidate)
    return candidate


def _summarize(records: List[MediaRecord]) -> str:
    parts = []
    for kind in ("photo", "video"):
        n = sum(1 for r in records if r.kind == kind)
        if n:
            parts.append(f"{n} {kind}{'s' if n != 1 else ''}")
    return "Successfully uploaded " + " and ".join(parts) + "."


class UploadSession:
    """
    Draft workspace for a batch of uploads.

    Starts with one empty slot and always keeps at least one. Picking a
    file for a slot releases the slot's previous preview before a new one
    is derived. commit() promotes every slot holding a file in a single
    Store.replace_all; cancel() releases whatever was not promoted.

    Usable as a context manager: leaving the block cancels the session
    unless it was committed.
    """

    _session_ids = itertools.count(1)

    def __init__(
        self,
        store: MediaStore,
        previews: PreviewLifecycle,
        events: Optional[MediaEvents] = None,
        policy: Optional[UploadPolicy] = None,
        accept: Optional[MediaKind] = None,
    ):
        self.session_id = f"upload-{next(UploadSession._session_ids)}"
        self._store = store
        self._previews = previews
        self._events = events
        self._policy = policy or UploadPolicy()
        self._draft_ids = itertools.count(1)
        self._entries: List[DraftEntry] = [self._new_entry(accept)]
        self.state = SessionState.OPEN
        logger.debug(f"Opened {self.session_id}")

    # ------------------------------------------------------------------
    # Slots
    # ------------------------------------------------------------------
    @property
    def entries(self) -> List[DraftEntry]:
        return list(self._entries)

    def get(self, entry_id: str) -> DraftEntry:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        raise KeyError(f"No draft {entry_id!r} in {self.session_id}")

    def add_slot(self, accept: Optional[MediaKind] = None) -> DraftEntry:
        self._ensure_open()
        entry = self._new_entry(accept)
        self._entries.append(entry)
        self._touch()
        return entry

    def remove_slot(self, entry_id: str) -> bool:
        """Discard a slot and its preview. The last remaining slot cannot be removed."""
        self._ensure_open()
        entry = self.get(entry_id)
        if len(self._entries) <= 1:
            logger.debug(f"Refusing to remove the last slot of {self.session_id}")
            return False
        self._entries.remove(entry)
        self._discard(entry)
        self._touch()
        return True

    def set_title(self, entry_id: str, title: str) -> None:
        self._ensure_open()
        self.get(entry_id).title = title
        self._touch()

    async def set_file(self, entry_id: str, file: UploadFile) -> OperationResult:
        """
        Put ``file`` into a slot and derive its preview.

        Rejected files leave the slot as it was. A preview that cannot be
        derived leaves the file in place with a placeholder; the slot can
        still be committed. When the slot changes again while the preview
        is being derived, the newer file wins and this preview is dropped.
        A slot committed before its preview is ready gets the preview bound
        to its record once derivation finishes.
        """
        self._ensure_open()
        entry = self.get(entry_id)
        try:
            self._policy.check_file(file, accept=entry.accept)
        except UploadRejected as e:
            entry.error = e.describe()
            logger.info(f"Rejected {file.name!r} for {entry.id}: {e}")
            return OperationResult.failure(e)

        self._touch()
        entry.generation += 1
        generation = entry.generation
        entry.file = file
        entry.error = None
        self._previews.release_owner(self._owner_key(entry))
        entry.preview = None

        try:
            handle = await self._previews.derive(file)
        except PreviewDerivationFailed as e:
            if entry.generation == generation:
                entry.error = e.describe()
            return OperationResult.failure(e)

        if entry.generation != generation:
            handle.release()
            return OperationResult.failure(message="Superseded by a newer selection.")

        if entry.record_id is not None:
            # Committed while deriving: the preview belongs to the record now.
            self._previews.bind(handle, entry.record_id)
            logger.debug(f"Late preview for {entry.record_id} bound after commit")
            if self._events is not None:
                self._events.notify_media_update()
            return OperationResult.success()

        if self.state is SessionState.CLOSED:
            handle.release()
            return OperationResult.failure(message="Session closed while deriving the preview.")

        self._previews.bind(handle, self._owner_key(entry))
        entry.preview = handle
        return OperationResult.success()

    # ------------------------------------------------------------------
    # Commit / cancel
    # ------------------------------------------------------------------
    def commit(self) -> OperationResult:
        """
        Promote every slot holding a file and append them to the store.

        Empty slots are skipped. Nothing is written when there is nothing
        to promote. A store failure keeps the session editable with all of
        its previews; the caller may retry.
        """
        self._ensure_open()
        promotable = [e for e in self._entries if e.file is not None]
        if not promotable:
            logger.info(f"{self.session_id}: nothing to upload")
            self._close()
            return OperationResult.success("Nothing to upload.")

        self.state = SessionState.COMMITTING
        try:
            current = self._store.list()
            taken = {r.id for r in current}
            promoted = [self._promote(entry, taken) for entry in promotable]
            merged = current + promoted
            self._policy.check_limits(merged)
            self._store.replace_all(merged)
        except (StoreUnavailable, UploadLimitReached) as e:
            self.state = SessionState.EDITING
            logger.warning(f"{self.session_id}: commit failed: {e}")
            return OperationResult.failure(e)

        for entry, record in zip(promotable, promoted):
            entry.record_id = record.id
            handle = entry.preview
            if handle is not None and handle.live:
                self._previews.bind(handle, record.id)
            entry.preview = None

        self._close()
        logger.info(f"{self.session_id}: committed {len(promoted)} records")
        if self._events is not None:
            self._events.notify_media_update()
        return OperationResult.success(_summarize(promoted), records=promoted)

    def cancel(self) -> None:
        """Close without committing; every draft preview is released."""
        if self.state is SessionState.CLOSED:
            return
        self._close()
        logger.info(f"{self.session_id}: cancelled")

    close = cancel

    def __enter__(self) -> "UploadSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cancel()

    @property
    def closed(self) -> bool:
        return self.state is SessionState.CLOSED

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _new_entry(self, accept: Optional[MediaKind]) -> DraftEntry:
        return DraftEntry(id=f"draft-{next(self._draft_ids)}", accept=accept)

    def _owner_key(self, entry: DraftEntry) -> str:
        return f"{self.session_id}/{entry.id}"

    def _promote(self, entry: DraftEntry, taken: set[str]) -> MediaRecord:
        file = entry.file
        return MediaRecord(
            id=new_record_id(taken),
            title=entry.title,
            kind=file.kind,
            source_ref=file.source_ref,
            preview_uri=entry.preview_uri,
        )

    def _discard(self, entry: DraftEntry) -> None:
        entry.generation += 1
        self._previews.release_owner(self._owner_key(entry))
        if entry.preview is not None:
            entry.preview.release()
        entry.preview = None

    def _close(self) -> None:
        for entry in self._entries:
            if entry.record_id is None:
                self._discard(entry)
        self.state = SessionState.CLOSED

    def _ensure_open(self) -> None:
        if self.state is SessionState.CLOSED:
            raise SessionClosed(f"{self.session_id} is closed")

    def _touch(self) -> None:
        if self.state is SessionState.OPEN:
            self.state = SessionState.EDITING

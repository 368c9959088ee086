from __future__ import annotations

import asyncio
import itertools
import logging
import os
import shutil
import threading
import time
import uuid
from pathlib import Path
from typing import Dict, Optional

from mediacatalog.core.dto.upload import UploadFile
from mediacatalog.core.errors import PreviewDerivationFailed
from mediacatalog.core.previews.handle import PreviewHandle
from mediacatalog.utils.file_utils import (
    is_inside,
    is_remote_uri,
    local_uri,
    uri_to_local_path,
)

logger = logging.getLogger(__name__)

SESSION_PREFIX = "session-"

# ------------------------------------------------------------
# PreviewLifecycle
# ------------------------------------------------------------


class PreviewLifecycle:
    """
    Owner of every process-local preview.

    Responsibilities:
    - Copy file payloads into a per-process preview directory (off the event loop)
    - Hand out PreviewHandles that release their own backing file
    - Keep at most one live handle per owner (draft key or record id)
    - Tell apart durable locators from previews that died with an earlier run
    """

    def __init__(self, cache_dir: Path, stale_after_s: float = 24 * 3600):
        self.cache_dir = Path(cache_dir).absolute()
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self._purge_stale_sessions(stale_after_s)

        self.session_dir = self.cache_dir / f"{SESSION_PREFIX}{os.getpid()}-{uuid.uuid4().hex[:8]}"
        self.session_dir.mkdir(parents=True, exist_ok=True)

        self._lock = threading.Lock()

        # uri -> handle
        self._live: Dict[str, PreviewHandle] = {}

        # owner key -> handle
        self._owned: Dict[str, PreviewHandle] = {}

        self._counter = itertools.count(1)
        self._release_count = 0
        self._closed = False

    # --------------------------------------------------------

    async def derive(self, file: UploadFile, owner: Optional[str] = None) -> PreviewHandle:
        """
        Allocate a renderable preview for ``file``.

        The copy runs on a worker thread so a large file does not block the
        event loop. With ``owner`` the new handle replaces the owner's
        previous one, which is released.

        Raises:
            PreviewDerivationFailed: content is missing, empty or unreadable
        """
        if self._closed:
            raise PreviewDerivationFailed("Preview lifecycle has been shut down")

        suffix = Path(file.name).suffix.lower()
        target = self.session_dir / f"{next(self._counter):06d}{suffix}"
        try:
            await asyncio.to_thread(self._write_payload, file, target)
        except (OSError, ValueError) as e:
            logger.warning(f"Preview derivation failed for {file.name!r}: {e}")
            raise PreviewDerivationFailed(f"Cannot read {file.name!r}: {e}") from e

        handle = PreviewHandle(uri=local_uri(target), path=target, on_release=self._on_released)
        with self._lock:
            self._live[handle.uri] = handle
        logger.debug(f"Derived preview {handle.uri} for {file.name!r}")

        if owner is not None:
            self.bind(handle, owner)
        return handle

    @staticmethod
    def _write_payload(file: UploadFile, target: Path) -> None:
        if file.path is not None:
            shutil.copyfile(file.path, target)
        else:
            target.write_bytes(file.read_bytes())
        if target.stat().st_size == 0:
            target.unlink(missing_ok=True)
            raise ValueError("file is empty")

    # --------------------------------------------------------

    def bind(self, handle: PreviewHandle, owner: str) -> None:
        """Make ``handle`` the single live preview of ``owner``."""
        if handle.released:
            raise ValueError(f"Cannot bind released preview {handle.uri}")

        with self._lock:
            previous = self._owned.get(owner)
            if handle.owner is not None and self._owned.get(handle.owner) is handle:
                del self._owned[handle.owner]
            self._owned[owner] = handle
            handle.owner = owner

        if previous is not None and previous is not handle:
            previous.release()

    def release(self, handle: Optional[PreviewHandle]) -> None:
        if handle is not None:
            handle.release()

    def release_owner(self, owner: str) -> bool:
        """Release the preview bound to ``owner``; False when it had none."""
        with self._lock:
            handle = self._owned.get(owner)
        if handle is None:
            return False
        handle.release()
        return True

    def handle_for(self, owner: str) -> Optional[PreviewHandle]:
        with self._lock:
            handle = self._owned.get(owner)
        if handle is None or handle.released:
            return None
        return handle

    def _on_released(self, handle: PreviewHandle) -> None:
        with self._lock:
            self._live.pop(handle.uri, None)
            if handle.owner is not None and self._owned.get(handle.owner) is handle:
                del self._owned[handle.owner]
            self._release_count += 1
        try:
            handle.path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove preview file {handle.path}: {e}")
        logger.debug(f"Released preview {handle.uri}")

    # --------------------------------------------------------

    def is_resolvable(self, uri: Optional[str]) -> bool:
        """
        True when a view can render ``uri`` right now.

        Remote URLs are taken as durable. Files inside the preview
        directory only count while this process holds a live handle for
        them; other local files must exist.
        """
        if not uri:
            return False
        if is_remote_uri(uri):
            return True
        path = uri_to_local_path(uri)
        if path is None:
            return False
        if is_inside(path, self.cache_dir):
            with self._lock:
                return uri in self._live
        return path.exists()

    @property
    def live_count(self) -> int:
        with self._lock:
            return len(self._live)

    @property
    def release_count(self) -> int:
        return self._release_count

    # --------------------------------------------------------

    def shutdown(self) -> None:
        """Release every live preview and drop this process's preview directory."""
        with self._lock:
            handles = list(self._live.values())
        for handle in handles:
            handle.release()
        self._closed = True
        shutil.rmtree(self.session_dir, ignore_errors=True)
        logger.info(f"Preview lifecycle shut down ({len(handles)} previews released)")

    def _purge_stale_sessions(self, stale_after_s: float) -> None:
        """Previews never outlive their process; sweep directories left by crashed runs."""
        cutoff = time.time() - stale_after_s
        for entry in self.cache_dir.glob(f"{SESSION_PREFIX}*"):
            try:
                if entry.is_dir() and entry.stat().st_mtime < cutoff:
                    shutil.rmtree(entry, ignore_errors=True)
                    logger.debug(f"Purged stale preview directory {entry}")
            except OSError:
                continue

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from mediacatalog.core.catalog import Catalog
from mediacatalog.core.database import DatabaseManager, KeyValueBackend
from mediacatalog.core.dto.media import MediaKind
from mediacatalog.core.events import MediaEvents
from mediacatalog.core.policy import UploadPolicy
from mediacatalog.core.previews.manager import PreviewLifecycle
from mediacatalog.core.store.base import MediaStore
from mediacatalog.core.store.local import LocalMediaStore
from mediacatalog.core.upload_session import UploadSession

logger = logging.getLogger(__name__)


class CacheConfig:
    """
    Centralized directory configuration.

    Provides a single source of truth for the directories used by the catalog.
    """

    def __init__(self, base_dir: Optional[Path] = None):
        """
        Initialize cache configuration.

        Args:
            base_dir: Base directory for all data. Defaults to ~/.media-catalog
        """
        self.base = base_dir or (Path.home() / ".media-catalog")
        self.base.mkdir(parents=True, exist_ok=True)

    @property
    def database(self) -> Path:
        """SQLite file holding settings and the media collection"""
        return self.base / "catalog.db"

    @property
    def previews(self) -> Path:
        """Per-process preview files"""
        path = self.base / "previews"
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def logs(self) -> Path:
        path = self.base / "logs"
        path.mkdir(parents=True, exist_ok=True)
        return path


class CoreContext:
    """
    Shared catalog dependencies (backing medium + store + previews + events).

    Use a single instance for the app lifetime: every view gets its
    Catalog and UploadSession from here, so all of them see the same
    store and the same preview owner table.
    """

    def __init__(
        self,
        *,
        cache_config: Optional[CacheConfig] = None,
        db: Optional[DatabaseManager] = None,
        backend: Optional[KeyValueBackend] = None,
        store: Optional[MediaStore] = None,
        policy: Optional[UploadPolicy] = None,
    ):
        self.cache = cache_config or CacheConfig()

        if backend is None:
            self.db = db or DatabaseManager(self.cache.database)
            if self.db.conn is None:
                self.db.connect()
            backend = self.db
        else:
            self.db = db

        self.store = store or LocalMediaStore(backend)
        self.previews = PreviewLifecycle(self.cache.previews)
        self.events = MediaEvents()

        if policy is None and self.db is not None:
            policy = UploadPolicy.from_db(self.db)
        self.policy = policy or UploadPolicy()
        logger.info(
            f"Core context ready - max upload {self.policy.max_upload_mb}MB, "
            f"limits photo={self.policy.photo_limit or 'unlimited'} "
            f"video={self.policy.video_limit or 'unlimited'}"
        )

    def new_catalog(self) -> Catalog:
        return Catalog(self.store, self.previews, events=self.events, policy=self.policy)

    def open_upload_session(self, accept: Optional[MediaKind] = None) -> UploadSession:
        return UploadSession(
            self.store,
            self.previews,
            events=self.events,
            policy=self.policy,
            accept=accept,
        )

    def shutdown(self) -> None:
        self.previews.shutdown()
        if self.db is not None:
            self.db.close()
        logger.info("Core context shut down")

"""Qt list model presenting one Catalog to a view."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional

from PyQt6.QtCore import QAbstractListModel, QModelIndex, QObject, Qt

from mediacatalog.core.catalog import Catalog
from mediacatalog.core.dto.catalog_item import CatalogItem
from mediacatalog.core.dto.media import MediaKind
from mediacatalog.core.events import MediaEvents

logger = logging.getLogger(__name__)

_USER = Qt.ItemDataRole.UserRole.value


def _role_value(role) -> int:
    return getattr(role, "value", role)


class MediaListModel(QAbstractListModel):
    """
    Rows of a catalog view: one per loaded record of the active kind.

    The model re-loads its catalog whenever ``media_updated`` fires, which
    is how sibling views pick up each other's commits and deletes.
    """

    IdRole = _USER + 1
    TitleRole = _USER + 2
    KindRole = _USER + 3
    PreviewRole = _USER + 4
    PlaceholderRole = _USER + 5
    SelectedRole = _USER + 6

    def __init__(
        self,
        catalog: Catalog,
        events: Optional[MediaEvents] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._catalog = catalog
        self._kind: Optional[MediaKind] = None
        self._items: List[CatalogItem] = []
        self._pending: Optional[asyncio.Task] = None
        if events is not None:
            events.media_updated.connect(self._on_media_updated)

    # ------------------------------------------------------------------
    # Qt model implementation
    # ------------------------------------------------------------------
    def rowCount(self, parent: QModelIndex | None = None) -> int:  # type: ignore[override]
        if parent is not None and parent.isValid():
            return 0
        return len(self._items)

    def data(self, index: QModelIndex, role: int = Qt.ItemDataRole.DisplayRole):  # type: ignore[override]
        if not index.isValid() or not (0 <= index.row() < len(self._items)):
            return None
        item = self._items[index.row()]
        role = _role_value(role)
        if role in (Qt.ItemDataRole.DisplayRole.value, self.TitleRole):
            return item.title
        if role == self.IdRole:
            return item.id
        if role == self.KindRole:
            return item.kind
        if role == self.PreviewRole:
            return item.preview_uri
        if role == self.PlaceholderRole:
            return item.is_placeholder
        if role == self.SelectedRole:
            return item.selected
        return None

    def roleNames(self) -> Dict[int, bytes]:  # type: ignore[override]
        names = dict(super().roleNames())
        names.update({
            self.IdRole: b"mediaId",
            self.TitleRole: b"title",
            self.KindRole: b"kind",
            self.PreviewRole: b"preview",
            self.PlaceholderRole: b"placeholder",
            self.SelectedRole: b"selected",
        })
        return names

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    @property
    def catalog(self) -> Catalog:
        return self._catalog

    def kind_filter(self) -> Optional[MediaKind]:
        return self._kind

    def set_kind_filter(self, kind: Optional[MediaKind]) -> None:
        """Show only ``kind`` (None shows photos and videos)."""
        if kind == self._kind:
            return
        self._kind = kind
        self._rebuild()

    async def reload(self) -> None:
        await self._catalog.load()
        self._rebuild()

    async def wait_idle(self) -> None:
        """Wait for a reload scheduled by ``media_updated`` to finish."""
        pending = self._pending
        if pending is not None:
            await pending

    def toggle_selected(self, row: int) -> None:
        if not (0 <= row < len(self._items)):
            return
        self._catalog.toggle_select(self._items[row].id)
        self._items[row] = self._catalog.items(self._kind)[row]
        index = self.index(row, 0)
        self.dataChanged.emit(index, index, [self.SelectedRole])

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _rebuild(self) -> None:
        self.beginResetModel()
        self._items = self._catalog.items(self._kind)
        self.endResetModel()

    def _on_media_updated(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("media_updated outside an event loop; reload skipped")
            return
        self._pending = loop.create_task(self.reload())

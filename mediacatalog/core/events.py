import logging

from PyQt6.QtCore import QObject, pyqtSignal

logger = logging.getLogger(__name__)


class MediaEvents(QObject):
    """
    The one refresh signal shared by every view of the catalog.

    Catalogs never observe each other. After a commit or delete the
    writer calls notify_media_update(); views that care connect
    ``media_updated`` to a re-load.
    """

    media_updated = pyqtSignal()

    def notify_media_update(self) -> None:
        logger.debug("Media collection changed; notifying views")
        self.media_updated.emit()

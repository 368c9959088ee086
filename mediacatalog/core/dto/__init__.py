from mediacatalog.core.dto.media import (
    MEDIA_KINDS,
    UNTITLED,
    MediaKind,
    MediaRecord,
    kind_from_mime,
)
from mediacatalog.core.dto.upload import UploadFile
from mediacatalog.core.dto.draft import DraftEntry
from mediacatalog.core.dto.result import OperationResult
from mediacatalog.core.dto.catalog_item import CatalogItem

__all__ = [
    # Records
    "MEDIA_KINDS",
    "UNTITLED",
    "MediaKind",
    "MediaRecord",
    "kind_from_mime",

    # Uploads
    "UploadFile",
    "DraftEntry",

    # Views
    "OperationResult",
    "CatalogItem",
]

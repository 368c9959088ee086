from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from mediacatalog.core.dto.media import MediaKind
from mediacatalog.core.dto.upload import UploadFile

if TYPE_CHECKING:
    from mediacatalog.core.previews.handle import PreviewHandle


@dataclass
class DraftEntry:
    id: str                                   # session-local, "draft-<n>"
    title: str = ""
    file: Optional[UploadFile] = None
    preview: Optional["PreviewHandle"] = None
    accept: Optional[MediaKind] = None        # None accepts photos and videos
    error: Optional[str] = None
    record_id: Optional[str] = None           # set once committed
    generation: int = field(default=0, repr=False)

    @property
    def is_empty(self) -> bool:
        return self.file is None

    @property
    def preview_uri(self) -> Optional[str]:
        if self.preview is None or self.preview.released:
            return None
        return self.preview.uri

from dataclasses import dataclass
from typing import Optional

from mediacatalog.core.dto.media import MediaKind, MediaRecord


@dataclass(frozen=True)
class CatalogItem:
    """One renderable row of a catalog view."""
    record: MediaRecord
    preview_uri: Optional[str]    # None renders as a placeholder
    selected: bool = False

    @property
    def id(self) -> str:
        return self.record.id

    @property
    def kind(self) -> MediaKind:
        return self.record.kind

    @property
    def title(self) -> str:
        return self.record.display_title

    @property
    def is_placeholder(self) -> bool:
        return self.preview_uri is None

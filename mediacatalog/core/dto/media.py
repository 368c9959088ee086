from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional


MediaKind = Literal["photo", "video"]

MEDIA_KINDS: tuple[MediaKind, ...] = ("photo", "video")

UNTITLED = "Untitled"


def kind_from_mime(mime: Optional[str]) -> Optional[MediaKind]:
    """Map a declared MIME category to a media kind (image/* -> photo, video/* -> video)."""
    if not mime:
        return None
    category = mime.split("/", 1)[0].strip().lower()
    if category == "image":
        return "photo"
    if category == "video":
        return "video"
    return None


@dataclass(frozen=True, slots=True)
class MediaRecord:
    id: str                       # unique within the store
    title: str
    kind: MediaKind
    source_ref: Optional[str]     # local path of the original file, may vanish
    preview_uri: Optional[str]    # file:// or http(s):// locator

    @property
    def display_title(self) -> str:
        return self.title.strip() or UNTITLED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "type": self.kind,
            "source_ref": self.source_ref,
            "preview": self.preview_uri,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional["MediaRecord"]:
        """
        Build a record from its stored form.

        Returns None for entries without an id. Anything other than
        "video" is read as a photo.
        """
        record_id = data.get("id") or data.get("_id")
        if record_id is None or record_id == "":
            return None
        kind: MediaKind = "video" if data.get("type") == "video" else "photo"
        preview = data.get("preview") or data.get("url") or None
        source_ref = data.get("source_ref") or None
        return cls(
            id=str(record_id),
            title=str(data.get("title") or ""),
            kind=kind,
            source_ref=str(source_ref) if source_ref else None,
            preview_uri=str(preview) if preview else None,
        )

from __future__ import annotations

import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from mediacatalog.core.dto.media import MediaKind, kind_from_mime


@dataclass(frozen=True)
class UploadFile:
    """
    A user-selected file payload and its declared MIME type.

    Either ``data`` (in-memory bytes) or ``path`` (a local file) carries
    the content.
    """
    name: str
    mime: Optional[str]
    data: Optional[bytes] = None
    path: Optional[Path] = None

    @classmethod
    def from_path(cls, path: Path | str, mime: Optional[str] = None) -> "UploadFile":
        p = Path(path)
        if mime is None:
            mime, _ = mimetypes.guess_type(p.name)
        return cls(name=p.name, mime=mime, path=p)

    @property
    def kind(self) -> Optional[MediaKind]:
        return kind_from_mime(self.mime)

    @property
    def size(self) -> Optional[int]:
        if self.data is not None:
            return len(self.data)
        if self.path is not None:
            try:
                return self.path.stat().st_size
            except OSError:
                return None
        return None

    @property
    def source_ref(self) -> Optional[str]:
        """Reference to the original content; only disk-backed files have one."""
        if self.path is None:
            return None
        return str(self.path)

    def read_bytes(self) -> bytes:
        if self.data is not None:
            return self.data
        if self.path is not None:
            return self.path.read_bytes()
        raise ValueError(f"Upload file {self.name!r} carries no content")

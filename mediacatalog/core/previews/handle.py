from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional


class PreviewHandle:
    """
    Process-local, renderable preview of one file payload.

    The handle carries its own release capability, so whoever holds it
    can free it without going back to the lifecycle. Release is idempotent.

    Attributes:
        uri: file:// locator a view can render directly
        path: backing file inside the lifecycle's preview directory
        owner: key of the draft or record the handle is bound to, if any
    """

    def __init__(self, uri: str, path: Path, on_release: Callable[["PreviewHandle"], None]):
        self.uri = uri
        self.path = path
        self.owner: Optional[str] = None
        self._on_release = on_release
        self._released = False

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self._on_release(self)

    @property
    def released(self) -> bool:
        return self._released

    @property
    def live(self) -> bool:
        return not self._released

    def __enter__(self) -> "PreviewHandle":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "released" if self._released else "live"
        return f"<PreviewHandle {self.uri} owner={self.owner!r} {state}>"

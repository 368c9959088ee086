from pathlib import Path
from typing import Optional

from PyQt6.QtCore import QUrl

REMOTE_SCHEMES = ("http://", "https://")


def local_uri(path: Path) -> str:
    """Return the file:// URI for a local path."""
    return QUrl.fromLocalFile(str(path)).toString()


def uri_to_local_path(uri: str) -> Optional[Path]:
    """
    Convert a file:// URI (or a plain local path string) into a Path.

    Returns None for remote URLs and other schemes.
    """
    if not uri:
        return None
    if uri.startswith(REMOTE_SCHEMES):
        return None
    if uri.startswith("file://"):
        local = QUrl(uri).toLocalFile()
        return Path(local) if local else None
    if "://" in uri:
        return None
    return Path(uri)


def is_remote_uri(uri: Optional[str]) -> bool:
    return bool(uri) and uri.startswith(REMOTE_SCHEMES)


def is_inside(path: Path, root: Path) -> bool:
    try:
        path.relative_to(root)
    except ValueError:
        return False
    return True

"""
Test configuration and fixtures.
Everything runs against temporary directories and an in-memory backing medium.
"""
import os
from pathlib import Path

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from mediacatalog.core.catalog import Catalog
from mediacatalog.core.database import MemoryBackend
from mediacatalog.core.dto.upload import UploadFile
from mediacatalog.core.events import MediaEvents
from mediacatalog.core.previews.manager import PreviewLifecycle
from mediacatalog.core.store.local import LocalMediaStore
from mediacatalog.core.upload_session import UploadSession


PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
MP4_BYTES = b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 64


def photo(name: str = "photo.png", data: bytes = PNG_BYTES) -> UploadFile:
    return UploadFile(name=name, mime="image/png", data=data)


def video(name: str = "clip.mp4", data: bytes = MP4_BYTES) -> UploadFile:
    return UploadFile(name=name, mime="video/mp4", data=data)


@pytest.fixture
def backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
def store(backend: MemoryBackend) -> LocalMediaStore:
    return LocalMediaStore(backend)


@pytest.fixture
def previews(tmp_path: Path):
    lifecycle = PreviewLifecycle(tmp_path / "previews")
    yield lifecycle
    lifecycle.shutdown()


@pytest.fixture
def events() -> MediaEvents:
    return MediaEvents()


@pytest.fixture
def catalog(store, previews, events) -> Catalog:
    return Catalog(store, previews, events=events)


@pytest.fixture
def open_session(store, previews, events):
    """Factory for upload sessions sharing the test store and previews."""
    def factory(**kwargs) -> UploadSession:
        return UploadSession(store, previews, events=events, **kwargs)
    return factory


@pytest.fixture
def media_dir(tmp_path: Path) -> Path:
    """A folder of real files to upload from disk."""
    folder = tmp_path / "media"
    folder.mkdir()
    (folder / "goal.mp4").write_bytes(MP4_BYTES)
    (folder / "team.png").write_bytes(PNG_BYTES)
    (folder / "notes.txt").write_text("not media", encoding="utf-8")
    return folder

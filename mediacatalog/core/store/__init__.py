from mediacatalog.core.store.base import MediaStore
from mediacatalog.core.store.local import COLLECTION_KEY, LocalMediaStore

__all__ = [
    "COLLECTION_KEY",
    "LocalMediaStore",
    "MediaStore",
]

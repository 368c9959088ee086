from mediacatalog.core.context import CacheConfig, CoreContext
from mediacatalog.core.catalog import Catalog
from mediacatalog.core.upload_session import SessionState, UploadSession

__all__ = [
    "CacheConfig",
    "Catalog",
    "CoreContext",
    "SessionState",
    "UploadSession",
]

from mediacatalog.core.previews.handle import PreviewHandle
from mediacatalog.core.previews.manager import PreviewLifecycle

__all__ = [
    "PreviewHandle",
    "PreviewLifecycle",
]

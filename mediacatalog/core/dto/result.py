from dataclasses import dataclass, field
from typing import List, Optional

from mediacatalog.core.dto.media import MediaRecord


@dataclass(frozen=True)
class OperationResult:
    """User-facing outcome of a catalog or upload operation."""
    ok: bool
    message: str = ""
    records: List[MediaRecord] = field(default_factory=list)
    error: Optional[Exception] = None

    @classmethod
    def success(cls, message: str = "", records: Optional[List[MediaRecord]] = None) -> "OperationResult":
        return cls(ok=True, message=message, records=list(records or []))

    @classmethod
    def failure(cls, error: Optional[Exception] = None, message: Optional[str] = None) -> "OperationResult":
        if message is None:
            describe = getattr(error, "describe", None)
            message = describe() if callable(describe) else str(error or "")
        return cls(ok=False, message=message, error=error)

    def __bool__(self) -> bool:
        return self.ok

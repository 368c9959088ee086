from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from mediacatalog.core.dto.media import MediaKind, MediaRecord
from mediacatalog.core.dto.upload import UploadFile
from mediacatalog.core.errors import FileTooLarge, UnsupportedMediaKind, UploadLimitReached

logger = logging.getLogger(__name__)

DEFAULT_MAX_UPLOAD_MB = 10

# Per-kind caps of the subscription plans; 0 means unlimited.
PLAN_LIMITS = {
    "free": {"photo": 2, "video": 2},
    "premium": {"photo": 10, "video": 5},
}


def _read_int(db, key: str, default: int) -> int:
    raw = db.get_config(key, str(default))
    try:
        return max(0, int(raw))
    except (TypeError, ValueError):
        logger.warning(f"Invalid value {raw!r} for setting {key!r}; using {default}")
        return default


@dataclass(frozen=True)
class UploadPolicy:
    """Acceptance rules applied when files are picked and when a batch is committed."""
    max_upload_mb: int = DEFAULT_MAX_UPLOAD_MB
    photo_limit: int = 0
    video_limit: int = 0

    @classmethod
    def from_db(cls, db) -> "UploadPolicy":
        """
        Settings from the config table.

        ``plan_name`` (when set) supplies the per-kind caps; a non-zero
        ``photo_limit`` / ``video_limit`` overrides the plan for that kind.
        """
        plan = (db.get_config("plan_name") or "").strip().lower()
        caps = PLAN_LIMITS.get(plan, {})
        if plan and not caps:
            logger.warning(f"Unknown plan {plan!r}; upload counts are not capped")
        return cls(
            max_upload_mb=_read_int(db, "max_upload_mb", DEFAULT_MAX_UPLOAD_MB),
            photo_limit=_read_int(db, "photo_limit", 0) or caps.get("photo", 0),
            video_limit=_read_int(db, "video_limit", 0) or caps.get("video", 0),
        )

    @classmethod
    def for_plan(cls, plan_name: str, max_upload_mb: int = DEFAULT_MAX_UPLOAD_MB) -> "UploadPolicy":
        limits = PLAN_LIMITS.get(plan_name.lower(), PLAN_LIMITS["free"])
        return cls(
            max_upload_mb=max_upload_mb,
            photo_limit=limits["photo"],
            video_limit=limits["video"],
        )

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    def limit_for(self, kind: MediaKind) -> Optional[int]:
        limit = self.photo_limit if kind == "photo" else self.video_limit
        return limit or None

    def check_file(self, file: UploadFile, accept: Optional[MediaKind] = None) -> MediaKind:
        """
        Validate a picked file before it lands in a slot.

        Raises:
            UnsupportedMediaKind: not image/* or video/*, or not the kind the slot accepts
            FileTooLarge: above max_upload_mb
        """
        kind = file.kind
        if kind is None:
            raise UnsupportedMediaKind(
                f"{file.name}: {file.mime or 'unknown type'} is not an image or video."
            )
        if accept is not None and kind != accept:
            raise UnsupportedMediaKind(f"{file.name}: this slot only accepts {accept}s.")
        size = file.size
        if self.max_upload_mb and size is not None and size > self.max_upload_bytes:
            raise FileTooLarge(f"File size should not exceed {self.max_upload_mb}MB.")
        return kind

    def check_limits(self, records: Iterable[MediaRecord]) -> None:
        """Raise UploadLimitReached when ``records`` holds more of a kind than allowed."""
        counts = {"photo": 0, "video": 0}
        for record in records:
            counts[record.kind] += 1
        for kind, count in counts.items():
            limit = self.limit_for(kind)
            if limit is not None and count > limit:
                raise UploadLimitReached(
                    f"Your plan allows {limit} {kind}s; this upload would make {count}."
                )

    def can_add(self, kind: MediaKind, current_count: int) -> bool:
        limit = self.limit_for(kind)
        return limit is None or current_count < limit

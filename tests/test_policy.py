"""
Tests for upload acceptance rules.
"""
import pytest

from conftest import photo, video
from mediacatalog.core.database import DatabaseManager
from mediacatalog.core.dto.media import MediaRecord, kind_from_mime
from mediacatalog.core.dto.upload import UploadFile
from mediacatalog.core.errors import FileTooLarge, UnsupportedMediaKind, UploadLimitReached
from mediacatalog.core.policy import PLAN_LIMITS, UploadPolicy


@pytest.mark.parametrize("mime, kind", [
    ("image/png", "photo"),
    ("image/jpeg", "photo"),
    ("video/mp4", "video"),
    ("VIDEO/quicktime", "video"),
    ("application/pdf", None),
    ("text/plain", None),
    (None, None),
    ("", None),
])
def test_kind_from_mime(mime, kind):
    assert kind_from_mime(mime) == kind


def test_default_policy_is_unlimited():
    policy = UploadPolicy()

    assert policy.max_upload_mb == 10
    assert policy.limit_for("photo") is None
    assert policy.limit_for("video") is None
    assert policy.can_add("photo", 1000)


def test_check_file_returns_kind():
    policy = UploadPolicy()

    assert policy.check_file(photo()) == "photo"
    assert policy.check_file(video(), accept="video") == "video"


def test_check_file_rejections():
    policy = UploadPolicy(max_upload_mb=1)

    with pytest.raises(UnsupportedMediaKind):
        policy.check_file(UploadFile(name="a.pdf", mime="application/pdf", data=b"%PDF"))
    with pytest.raises(UnsupportedMediaKind):
        policy.check_file(video(), accept="photo")
    with pytest.raises(FileTooLarge) as excinfo:
        policy.check_file(photo(data=b"\x00" * (2 * 1024 * 1024)))
    assert excinfo.value.describe() == "File size should not exceed 1MB."


def test_file_at_exact_limit_is_accepted():
    policy = UploadPolicy(max_upload_mb=1)
    assert policy.check_file(photo(data=b"\x00" * (1024 * 1024))) == "photo"


def test_plan_limits():
    free = UploadPolicy.for_plan("free")
    premium = UploadPolicy.for_plan("Premium")

    assert (free.photo_limit, free.video_limit) == (2, 2)
    assert (premium.photo_limit, premium.video_limit) == (10, 5)
    assert UploadPolicy.for_plan("unknown") == free
    assert set(PLAN_LIMITS) == {"free", "premium"}


def test_check_limits():
    policy = UploadPolicy(photo_limit=1, video_limit=0)
    one_photo = [MediaRecord(id="1", title="", kind="photo", source_ref=None, preview_uri=None)]
    many_videos = [
        MediaRecord(id=str(i), title="", kind="video", source_ref=None, preview_uri=None)
        for i in range(10)
    ]

    policy.check_limits(one_photo + many_videos)
    with pytest.raises(UploadLimitReached):
        policy.check_limits(one_photo * 2)


def test_policy_from_database(tmp_path):
    db = DatabaseManager(tmp_path / "catalog.db")
    db.connect()
    try:
        db.set_config("max_upload_mb", "25")
        db.set_config("photo_limit", "3")
        db.set_config("video_limit", "not a number")

        policy = UploadPolicy.from_db(db)

        assert policy == UploadPolicy(max_upload_mb=25, photo_limit=3, video_limit=0)
    finally:
        db.close()


@pytest.mark.parametrize("plan, photo_limit, video_limit, expected", [
    (None, None, None, (0, 0)),
    ("free", None, None, (2, 2)),
    ("Premium", None, None, (10, 5)),
    ("premium", "20", None, (20, 5)),
    ("enterprise", None, "3", (0, 3)),
])
def test_plan_name_supplies_limits(tmp_path, plan, photo_limit, video_limit, expected):
    db = DatabaseManager(tmp_path / "catalog.db")
    db.connect()
    try:
        if plan is not None:
            db.set_config("plan_name", plan)
        if photo_limit is not None:
            db.set_config("photo_limit", photo_limit)
        if video_limit is not None:
            db.set_config("video_limit", video_limit)

        policy = UploadPolicy.from_db(db)

        assert (policy.photo_limit, policy.video_limit) == expected
    finally:
        db.close()


def test_free_plan_from_database_blocks_third_photo(tmp_path):
    db = DatabaseManager(tmp_path / "catalog.db")
    db.connect()
    try:
        db.set_config("plan_name", "free")
        policy = UploadPolicy.from_db(db)
        photos = [
            MediaRecord(id=str(i), title="", kind="photo", source_ref=None, preview_uri=None)
            for i in range(3)
        ]

        assert not policy.can_add("photo", 2)
        with pytest.raises(UploadLimitReached):
            policy.check_limits(photos)
    finally:
        db.close()

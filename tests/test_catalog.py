"""
Tests for catalog loading, filtering, selection and deletion.
"""
import asyncio

import pytest

from conftest import photo, video
from mediacatalog.core.catalog import Catalog
from mediacatalog.core.database import MemoryBackend
from mediacatalog.core.dto.media import MediaRecord
from mediacatalog.core.dto.upload import UploadFile
from mediacatalog.core.errors import StoreUnavailable
from mediacatalog.core.policy import UploadPolicy
from mediacatalog.core.previews.manager import PreviewLifecycle
from mediacatalog.core.store.local import LocalMediaStore
from mediacatalog.core.upload_session import UploadSession


async def _upload(open_session, *files, titles=()):
    session = open_session()
    entries = [session.entries[0]] + [session.add_slot() for _ in files[1:]]
    for i, (entry, file) in enumerate(zip(entries, files)):
        if i < len(titles):
            session.set_title(entry.id, titles[i])
        await session.set_file(entry.id, file)
    result = session.commit()
    assert result.ok
    return result.records


class TestLoad:
    """Tests for Catalog.load and preview resolution."""

    @pytest.mark.asyncio
    async def test_empty_store(self, catalog):
        assert await catalog.load() == []
        assert catalog.status == "No Media Available"
        assert catalog.items() == []

    @pytest.mark.asyncio
    async def test_committed_video_is_listed_with_preview(self, catalog, open_session, previews):
        await _upload(open_session, video("goal.mp4"), titles=["Goal highlight"])

        records = await catalog.load()

        assert len(records) == 1
        record = records[0]
        assert record.kind == "video"
        assert record.title == "Goal highlight"
        uri = catalog.preview_for(record.id)
        assert uri == record.preview_uri
        assert previews.is_resolvable(uri)
        assert catalog.status == ""

    @pytest.mark.asyncio
    async def test_remote_previews_are_used_as_is(self, store, catalog):
        store.replace_all([
            MediaRecord(id="1", title="", kind="photo", source_ref=None,
                        preview_uri="https://cdn.example.com/1.jpg"),
        ])

        await catalog.load()

        item = catalog.items()[0]
        assert item.preview_uri == "https://cdn.example.com/1.jpg"
        assert item.title == "Untitled"
        assert not item.is_placeholder

    @pytest.mark.asyncio
    async def test_preview_rederived_after_restart(self, tmp_path, media_dir):
        backend = MemoryBackend()
        store = LocalMediaStore(backend)
        cache = tmp_path / "previews"

        first_run = PreviewLifecycle(cache)
        session = UploadSession(store, first_run)
        await session.set_file(session.entries[0].id, UploadFile.from_path(media_dir / "team.png"))
        await session.set_file(session.add_slot().id, photo("memory.png"))
        assert session.commit().ok
        old_uris = [r.preview_uri for r in store.list()]
        first_run.shutdown()

        second_run = PreviewLifecycle(cache)
        try:
            catalog = Catalog(store, second_run)
            disk_record, memory_record = await catalog.load()

            fresh = catalog.preview_for(disk_record.id)
            assert fresh is not None and fresh not in old_uris
            assert second_run.is_resolvable(fresh)
            assert second_run.handle_for(disk_record.id).uri == fresh

            # No source to re-derive from: placeholder.
            assert catalog.preview_for(memory_record.id) is None
            assert catalog.items()[1].is_placeholder
        finally:
            second_run.shutdown()

    @pytest.mark.asyncio
    async def test_concurrent_loads_share_one_rederived_preview(self, store, previews, media_dir, tmp_path):
        store.replace_all([
            MediaRecord(id="1", title="", kind="photo",
                        source_ref=str(media_dir / "team.png"),
                        preview_uri=(tmp_path / "gone" / "team.png").as_uri()),
        ])
        view_a = Catalog(store, previews)
        view_b = Catalog(store, previews)

        await asyncio.gather(view_a.load(), view_b.load())

        uri_a = view_a.preview_for("1")
        uri_b = view_b.preview_for("1")
        assert uri_a == uri_b
        assert previews.is_resolvable(uri_a)
        assert previews.handle_for("1").uri == uri_a
        assert previews.live_count == 1

    @pytest.mark.asyncio
    async def test_missing_source_renders_placeholder(self, store, catalog, tmp_path):
        store.replace_all([
            MediaRecord(id="1", title="t", kind="video",
                        source_ref=str(tmp_path / "deleted.mp4"), preview_uri=None),
        ])

        await catalog.load()

        assert catalog.preview_for("1") is None

    @pytest.mark.asyncio
    async def test_load_failure_keeps_previous_result(self, backend, catalog, open_session):
        await _upload(open_session, photo())
        before = await catalog.load()
        backend.available = False

        after = await catalog.load()

        assert after == before
        assert catalog.records == before
        assert catalog.status == StoreUnavailable.user_message


class TestFilterAndSelection:
    """Tests for kind filtering, counts and selection."""

    @pytest.mark.asyncio
    async def test_filter_returns_matching_subset_in_order(self, store, catalog):
        kinds = ["photo", "video", "photo", "video", "video", "photo"]
        store.replace_all([
            MediaRecord(id=str(i), title="", kind=k, source_ref=None, preview_uri=None)
            for i, k in enumerate(kinds)
        ])
        await catalog.load()

        assert [r.id for r in catalog.filter("photo")] == ["0", "2", "5"]
        assert [r.id for r in catalog.filter("video")] == ["1", "3", "4"]
        assert [r.id for r in catalog.filter()] == [str(i) for i in range(6)]
        assert catalog.counts() == {"photo": 3, "video": 3}

    @pytest.mark.asyncio
    async def test_toggle_select(self, catalog, open_session):
        records = await _upload(open_session, photo(), photo("b.png"))
        await catalog.load()
        a, b = (r.id for r in records)

        assert catalog.toggle_select(a) == {a}
        assert catalog.toggle_select(b) == {a, b}
        assert catalog.toggle_select(a) == {b}
        assert catalog.toggle_select("unknown") == {b}
        assert [i.selected for i in catalog.items()] == [False, True]

    @pytest.mark.asyncio
    async def test_select_all_by_kind(self, catalog, open_session):
        records = await _upload(open_session, photo(), video())
        await catalog.load()

        assert catalog.select_all("video") == {records[1].id}
        catalog.clear_selection()
        assert catalog.selection == set()

    @pytest.mark.asyncio
    async def test_reload_prunes_selection(self, store, catalog, open_session):
        records = await _upload(open_session, photo(), photo("b.png"))
        await catalog.load()
        catalog.select_all()

        store.delete({records[0].id})
        await catalog.load()

        assert catalog.selection == {records[1].id}

    @pytest.mark.asyncio
    async def test_can_upload_follows_plan_limits(self, store, previews, open_session):
        catalog = Catalog(store, previews, policy=UploadPolicy.for_plan("free"))
        await _upload(open_session, photo(), photo("b.png"), video())
        await catalog.load()

        assert catalog.can_upload("photo") is False
        assert catalog.can_upload("video") is True
        assert catalog.can_upload() is True


class TestDelete:
    """Tests for deleting records."""

    @pytest.mark.asyncio
    async def test_delete_selected_empties_catalog(self, catalog, open_session, previews):
        records = await _upload(open_session, photo("a.png"), photo("b.png"))
        await catalog.load()
        for record in records:
            catalog.toggle_select(record.id)

        result = catalog.delete_selected()

        assert result.ok
        assert result.message == "The media items have been removed."
        assert result.records == []
        assert await catalog.load() == []
        assert catalog.selection == set()
        assert previews.live_count == 0

    @pytest.mark.asyncio
    async def test_delete_one_releases_its_preview(self, catalog, open_session, previews):
        records = await _upload(open_session, photo("a.png"), video())
        await catalog.load()
        doomed, kept = records
        handle = previews.handle_for(doomed.id)
        catalog.toggle_select(doomed.id)

        result = catalog.delete_one(doomed.id)

        assert result.ok
        assert result.message == "The media item has been removed."
        assert handle.released
        assert doomed.id not in catalog.selection
        assert [r.id for r in await catalog.load()] == [kept.id]
        assert previews.handle_for(kept.id) is not None

    @pytest.mark.asyncio
    async def test_failed_delete_changes_nothing(self, backend, catalog, open_session, previews):
        records = await _upload(open_session, photo("a.png"), photo("b.png"))
        before = await catalog.load()
        catalog.select_all()
        released_before = previews.release_count
        backend.available = False

        result = catalog.delete_selected()

        assert not result.ok
        assert result.message == StoreUnavailable.user_message
        assert catalog.selection == {r.id for r in records}
        assert catalog.records == before
        assert previews.release_count == released_before

        backend.available = True
        assert await catalog.load() == before
        assert all(previews.handle_for(r.id) is not None for r in records)

    def test_delete_with_nothing_selected(self, catalog, backend, store):
        result = catalog.delete_selected()

        assert result.ok
        assert result.message == "Nothing selected."
        assert backend.get_text(store.collection_key) is None

    @pytest.mark.asyncio
    async def test_delete_notifies_views(self, catalog, events, open_session):
        records = await _upload(open_session, photo())
        await catalog.load()
        notified = []
        events.media_updated.connect(lambda: notified.append(True))

        catalog.delete_one(records[0].id)

        assert notified == [True]


class TestIndependentViews:
    """Views share the store but never each other's state."""

    @pytest.mark.asyncio
    async def test_other_view_sees_commit_only_after_load(self, store, previews, events, open_session):
        view_a = Catalog(store, previews, events=events)
        view_b = Catalog(store, previews, events=events)
        assert await view_a.load() == []
        assert await view_b.load() == []

        await _upload(open_session, photo())

        assert view_b.records == []
        assert view_b.filter("photo") == []
        assert len(await view_b.load()) == 1

    @pytest.mark.asyncio
    async def test_other_view_keeps_deleted_record_until_load(self, store, previews, open_session):
        records = await _upload(open_session, photo())
        view_a = Catalog(store, previews)
        view_b = Catalog(store, previews)
        await view_a.load()
        await view_b.load()

        view_a.delete_one(records[0].id)

        assert [r.id for r in view_b.records] == [records[0].id]
        assert await view_b.load() == []

"""
Unit tests for the entity store
"""
import json
from datetime import datetime, timezone

import pytest

from contentops.core.results import FailureReason
from contentops.models import EntityKind, Platform, PostDraft, PostStatus
from contentops.services.entity_store import EntityStore
from contentops.tests.conftest import FailingKeyValueStore


@pytest.fixture
def store(storage):
    return EntityStore(storage)


class TestLoad:
    """First activation and seeding"""

    @pytest.mark.asyncio
    async def test_seeds_empty_storage(self, store, storage):
        """Test absent collections are seeded and persisted"""
        result = await store.load()

        assert result.success
        assert [post.id for post in store.social_media_posts] == [
            "post1", "post2", "post3", "post4", "post5", "post6"
        ]
        assert len(store.media_files) == 5
        assert len(store.podcast_episodes) == 5

        stored = json.loads(storage.snapshot()["socialMediaPosts"])
        assert stored[0]["createdDate"] == "2023-06-01T12:00:00Z"
        assert stored[0]["podcastEpisodeId"] == "episode1"

    @pytest.mark.asyncio
    async def test_keeps_existing_collections(self):
        """Test persisted data is read instead of the seed"""
        storage = FailingKeyValueStore({
            "mediaFiles": json.dumps([{
                "id": "only",
                "title": "Only file",
                "url": "https://example.com/only.png",
                "type": "image/png",
                "uploaded": "2024-01-01T00:00:00Z",
                "fileSize": 10,
            }]),
        })
        store = EntityStore(storage)

        await store.load()

        assert [media.id for media in store.media_files] == ["only"]
        assert "mediaFiles" not in storage.set_calls

    @pytest.mark.asyncio
    async def test_malformed_collection_reseeded(self):
        """Test unparseable persisted data is replaced by the seed"""
        storage = FailingKeyValueStore({
            "podcastEpisodes": "{not json",
            "socialMediaPosts": json.dumps({"not": "a list"}),
        })
        store = EntityStore(storage)

        result = await store.load()

        assert result.success
        assert len(store.podcast_episodes) == 5
        assert len(store.social_media_posts) == 6
        assert json.loads(storage.snapshot()["podcastEpisodes"])[0]["id"] == "episode1"

    @pytest.mark.asyncio
    async def test_duplicate_ids_reseeded(self):
        record = {
            "id": "dup", "title": "t", "url": "u", "type": "image/png",
            "uploaded": "2024-01-01T00:00:00Z", "fileSize": 1,
        }
        store = EntityStore(FailingKeyValueStore({"mediaFiles": json.dumps([record, record])}))

        await store.load()

        assert len(store.media_files) == 5

    @pytest.mark.asyncio
    async def test_load_only_once(self, store, storage):
        """Test a second load does not re-read or re-seed"""
        await store.load()
        writes = len(storage.set_calls)

        result = await store.load()

        assert result.success
        assert len(storage.set_calls) == writes

    @pytest.mark.asyncio
    async def test_seed_write_failure_reported(self):
        """Test seed persistence failures are reported but memory is usable"""
        store = EntityStore(FailingKeyValueStore(fail_set=["mediaFiles"]))

        result = await store.load()

        assert not result.success
        assert result.reason == FailureReason.PERSISTENCE_ERROR
        assert len(store.media_files) == 5

    @pytest.mark.asyncio
    async def test_read_failure_keeps_stored_data(self):
        """Test a collection that cannot be read is never overwritten by the seed"""
        stored_posts = json.dumps([{
            "id": "mine",
            "content": "operator post",
            "platforms": ["Twitter"],
            "createdDate": "2024-02-01T08:00:00Z",
        }])
        storage = FailingKeyValueStore({"socialMediaPosts": stored_posts}, fail_get=["socialMediaPosts"])
        store = EntityStore(storage)

        result = await store.load()

        assert result.reason == FailureReason.PERSISTENCE_ERROR
        assert "socialMediaPosts" not in storage.set_calls
        assert storage.snapshot()["socialMediaPosts"] == stored_posts
        assert len(store.social_media_posts) == 6
        assert not store.is_loaded

    @pytest.mark.asyncio
    async def test_unreadable_collection_rejects_writes(self):
        storage = FailingKeyValueStore(fail_get=["socialMediaPosts"])
        store = EntityStore(storage)
        await store.load()

        created = await store.create_post({"content": "x", "platforms": ["Twitter"]})
        updated = await store.update(EntityKind.SOCIAL_MEDIA_POSTS, "post4", {"content": "edited"})

        assert created.reason == FailureReason.PERSISTENCE_ERROR
        assert updated.reason == FailureReason.PERSISTENCE_ERROR
        assert "socialMediaPosts" not in storage.set_calls

    @pytest.mark.asyncio
    async def test_retry_after_read_failure(self):
        """Test a later load reads the stored data once storage recovers"""
        storage = FailingKeyValueStore(fail_get=["mediaFiles"])
        store = EntityStore(storage)
        await store.load()
        storage.fail_get.clear()

        result = await store.load()

        assert result.success
        assert store.is_loaded
        updated = await store.update(EntityKind.MEDIA_FILES, "file1", {"title": "Renamed"})
        assert updated.success


class TestUpdate:
    """Partial record updates"""

    @pytest.mark.asyncio
    async def test_changes_only_named_fields(self, store):
        await store.load()
        before = store.get(EntityKind.SOCIAL_MEDIA_POSTS, "post4")

        result = await store.update(EntityKind.SOCIAL_MEDIA_POSTS, "post4", {"content": "edited"})

        assert result.success
        after = store.get(EntityKind.SOCIAL_MEDIA_POSTS, "post4")
        assert after.content == "edited"
        assert after.model_dump(exclude={"content"}) == before.model_dump(exclude={"content"})
        assert result.value == after

    @pytest.mark.asyncio
    async def test_accepts_camel_case_field_names(self, store, storage):
        await store.load()

        result = await store.update(
            EntityKind.SOCIAL_MEDIA_POSTS, "post4", {"imageUrl": "https://example.com/new.png"}
        )

        assert result.success
        stored = json.loads(storage.snapshot()["socialMediaPosts"])
        assert stored[3]["imageUrl"] == "https://example.com/new.png"

    @pytest.mark.asyncio
    async def test_unknown_id_writes_nothing(self, store, storage):
        """Test updating a missing id fails without touching persistence"""
        await store.load()
        storage.set_calls.clear()
        before = storage.snapshot()

        result = await store.update(EntityKind.SOCIAL_MEDIA_POSTS, "missing", {"content": "x"})

        assert not result.success
        assert result.reason == FailureReason.NOT_FOUND
        assert storage.set_calls == []
        assert storage.snapshot() == before

    @pytest.mark.asyncio
    @pytest.mark.parametrize("fields", [
        {"id": "other"},
        {"createdDate": "2024-01-01T00:00:00Z"},
        {"nonsense": 1},
        {"status": "Archived"},
        {"status": "Scheduled For Publishing"},
    ])
    async def test_invalid_changes_rejected(self, store, storage, fields):
        await store.load()
        storage.set_calls.clear()

        result = await store.update(EntityKind.SOCIAL_MEDIA_POSTS, "post4", fields)

        assert result.reason == FailureReason.INVALID_INPUT
        assert storage.set_calls == []

    @pytest.mark.asyncio
    async def test_persistence_failure_leaves_memory_unchanged(self):
        storage = FailingKeyValueStore()
        store = EntityStore(storage)
        await store.load()
        storage.fail_set.add("podcastEpisodes")

        result = await store.update(EntityKind.PODCAST_EPISODES, "episode3", {"processed": True})

        assert result.reason == FailureReason.PERSISTENCE_ERROR
        assert store.get(EntityKind.PODCAST_EPISODES, "episode3").processed is False

    @pytest.mark.asyncio
    async def test_update_many_single_write(self, store, storage):
        """Test several records are updated with one persistence write"""
        await store.load()
        storage.set_calls.clear()

        result = await store.update_many(EntityKind.PODCAST_EPISODES, {
            "episode3": {"processed": True},
            "episode4": {"processed": True},
        })

        assert result.success
        assert [episode.id for episode in result.value] == ["episode3", "episode4"]
        assert storage.set_calls == ["podcastEpisodes"]

    @pytest.mark.asyncio
    async def test_update_many_rejects_partial_ids(self, store, storage):
        await store.load()
        storage.set_calls.clear()

        result = await store.update_many(EntityKind.PODCAST_EPISODES, {
            "episode3": {"processed": True},
            "episode99": {"processed": True},
        })

        assert result.reason == FailureReason.NOT_FOUND
        assert store.get(EntityKind.PODCAST_EPISODES, "episode3").processed is False
        assert storage.set_calls == []


class TestCreatePost:
    @pytest.mark.asyncio
    async def test_assigns_id_and_created_date(self, store):
        await store.load()
        before = datetime.now(timezone.utc)

        result = await store.create_post(PostDraft(content="new", platforms=[Platform.TWITTER]))

        assert result.success
        post = result.value
        assert post.id.startswith("post")
        assert post.id not in {"post1", "post2", "post3", "post4", "post5", "post6"}
        assert post.created_date >= before
        assert post.status == PostStatus.REVIEW
        assert store.social_media_posts[-1] == post

    @pytest.mark.asyncio
    async def test_successive_creates_get_distinct_ids(self, store):
        await store.load()
        draft = {"content": "same", "platforms": ["LinkedIn"]}

        first = await store.create_post(draft)
        second = await store.create_post(draft)

        assert first.value.id != second.value.id
        assert len(store.social_media_posts) == 8

    @pytest.mark.asyncio
    async def test_invalid_draft_rejected(self, store, storage):
        await store.load()
        storage.set_calls.clear()

        result = await store.create_post({"content": "x", "platforms": []})

        assert result.reason == FailureReason.INVALID_INPUT
        assert storage.set_calls == []

    @pytest.mark.asyncio
    async def test_persistence_failure_not_applied(self):
        storage = FailingKeyValueStore()
        store = EntityStore(storage)
        await store.load()
        storage.fail_set.add("socialMediaPosts")

        result = await store.create_post({"content": "x", "platforms": ["Twitter"]})

        assert result.reason == FailureReason.PERSISTENCE_ERROR
        assert len(store.social_media_posts) == 6


class TestReset:
    @pytest.mark.asyncio
    async def test_reset_restores_seed(self, store, storage):
        await store.load()
        await store.update(EntityKind.SOCIAL_MEDIA_POSTS, "post1", {"content": "edited"})
        await store.create_post({"content": "extra", "platforms": ["Facebook"]})

        result = await store.reset()

        assert result.success
        assert len(store.social_media_posts) == 6
        assert store.get(EntityKind.SOCIAL_MEDIA_POSTS, "post1").content.startswith("🎙️ NEW EPISODE")

    @pytest.mark.asyncio
    async def test_reset_twice_is_identical(self, store, storage):
        """Test two resets persist byte-identical collections"""
        await store.reset()
        first = storage.snapshot()
        await store.reset()

        assert storage.snapshot() == first

    @pytest.mark.asyncio
    async def test_failed_reset_rolls_back(self):
        """Test a failed write restores earlier collections and keeps memory"""
        storage = FailingKeyValueStore()
        store = EntityStore(storage)
        await store.load()
        await store.update(EntityKind.MEDIA_FILES, "file1", {"title": "Renamed"})
        await store.update(EntityKind.SOCIAL_MEDIA_POSTS, "post4", {"content": "edited"})
        before = storage.snapshot()
        storage.fail_set.add("socialMediaPosts")

        result = await store.reset()

        assert result.reason == FailureReason.PERSISTENCE_ERROR
        assert storage.snapshot() == before
        assert store.get(EntityKind.MEDIA_FILES, "file1").title == "Renamed"
        assert store.get(EntityKind.SOCIAL_MEDIA_POSTS, "post4").content == "edited"

    @pytest.mark.asyncio
    async def test_rollback_removes_keys_absent_before(self):
        storage = FailingKeyValueStore(fail_set=["podcastEpisodes"])
        store = EntityStore(storage)

        result = await store.reset()

        assert not result.success
        assert storage.snapshot() == {}


class TestRefresh:
    @pytest.mark.asyncio
    async def test_picks_up_external_changes(self, store, storage):
        await store.load()
        media = json.loads(storage.snapshot()["mediaFiles"])[:2]
        await storage.set("mediaFiles", json.dumps(media))

        result = await store.refresh(EntityKind.MEDIA_FILES)

        assert result.success
        assert [media.id for media in result.value] == ["file1", "file2"]
        assert len(store.media_files) == 2

    @pytest.mark.asyncio
    async def test_read_failure_keeps_current_collection(self, store, storage):
        await store.load()
        await store.update(EntityKind.MEDIA_FILES, "file1", {"title": "Renamed"})
        stored = storage.snapshot()["mediaFiles"]
        storage.set_calls.clear()
        storage.fail_get.add("mediaFiles")

        result = await store.refresh(EntityKind.MEDIA_FILES)

        assert result.reason == FailureReason.PERSISTENCE_ERROR
        assert store.get(EntityKind.MEDIA_FILES, "file1").title == "Renamed"
        assert storage.set_calls == []
        assert storage.snapshot()["mediaFiles"] == stored


class TestQueries:
    @pytest.mark.asyncio
    async def test_statistics_uses_current_posts(self, store):
        await store.load()
        await store.update(EntityKind.SOCIAL_MEDIA_POSTS, "post4", {"status": PostStatus.APPROVED})

        stats = store.statistics()

        assert stats.approved == 2
        assert stats.review == 0

    @pytest.mark.asyncio
    async def test_search_posts(self, store):
        await store.load()

        assert [p.id for p in store.search_posts("roi")] == ["post3"]
        assert [p.id for p in store.search_posts(status=PostStatus.POSTED)] == ["post1", "post2"]
        assert [p.id for p in store.search_posts(platform=Platform.LINKEDIN, status=PostStatus.REVIEW)] == ["post4"]
        assert len(store.search_posts()) == 6

    @pytest.mark.asyncio
    async def test_search_episodes_matches_title_or_description(self, store):
        await store.load()

        assert [e.id for e in store.search_episodes("personal brand")] == ["episode4"]
        assert [e.id for e in store.search_episodes("return on investment")] == ["episode3"]

    @pytest.mark.asyncio
    async def test_filter_media_by_category(self, store):
        await store.load()

        assert [m.id for m in store.filter_media("images").value] == ["file1", "file3"]
        assert [m.id for m in store.filter_media("audio").value] == ["file2"]
        assert [m.id for m in store.filter_media("video").value] == ["file4"]
        assert [m.id for m in store.filter_media("other").value] == ["file5"]
        assert [m.id for m in store.filter_media("all", term="banner").value] == ["file3"]

    def test_filter_media_unknown_category(self, store):
        result = store.filter_media("spreadsheets")

        assert result.reason == FailureReason.INVALID_INPUT

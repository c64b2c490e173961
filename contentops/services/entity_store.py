"""
Entity Store

Owns the media file, podcast episode and social media post collections.
Collections are seeded on first run and every mutation is persisted before
it becomes visible in memory: a write that cannot be persisted is never
applied.
"""
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Mapping, Optional, Set, Tuple, Union

from pydantic import ValidationError

from contentops.core.results import FailureReason, OperationResult
from contentops.core.storage import KeyValueStore, StorageError
from contentops.models import (
    ConsoleModel,
    EntityKind,
    MediaFile,
    Platform,
    PodcastEpisode,
    PostDraft,
    PostStatus,
    SocialMediaPost,
    Statistics,
)
from contentops.services.seed_data import ENTITY_MODELS, seed_collection
from contentops.services.statistics_service import compute_statistics

logger = logging.getLogger(__name__)

IMMUTABLE_FIELDS = frozenset({"id", "created_date"})

MEDIA_CATEGORIES = {
    "images": "image/",
    "audio": "audio/",
    "video": "video/",
}


class EntityStore:
    """
    Persisted collections of MediaFile, PodcastEpisode and SocialMediaPost.

    Reads return immutable snapshots (tuples of frozen models). Mutations
    return an ``OperationResult`` carrying the new record(s) on success.
    """

    def __init__(self, storage: KeyValueStore):
        self.storage = storage
        self._collections: Dict[EntityKind, Tuple[ConsoleModel, ...]] = {
            kind: () for kind in EntityKind
        }
        # Collections whose stored value could not be read; never overwritten
        self._unreadable: Set[EntityKind] = set()
        self.is_loaded = False

    # Loading

    async def load(self) -> OperationResult:
        """
        Read every collection from persistence on first activation.

        Absent or malformed collections are replaced by the seed data and the
        seed is persisted. A collection that cannot be read is seeded in
        memory only, and nothing is written over it. Returns a failure if any
        collection could not be read or seeded; the in-memory collections are
        usable either way, and a later load() retries.
        """
        if self.is_loaded:
            return OperationResult.ok()

        failed = []
        for kind in EntityKind:
            result = await self._load_collection(kind)
            if not result:
                failed.append(kind.value)

        self.is_loaded = not failed
        if failed:
            return OperationResult.fail(
                FailureReason.PERSISTENCE_ERROR,
                f"Could not read or seed: {', '.join(failed)}"
            )
        return OperationResult.ok()

    async def refresh(self, kind: EntityKind) -> OperationResult:
        """Re-read one collection from persistence, replacing the in-memory copy"""
        result = await self._load_collection(kind, keep_current=True)
        if not result:
            return result
        return OperationResult.ok(self._collections[kind])

    async def _load_collection(self, kind: EntityKind, keep_current: bool = False) -> OperationResult:
        """
        Read one collection. On a read failure nothing is written and the
        collection is marked unreadable until a later read succeeds.
        """
        try:
            raw = await self.storage.get(kind.value)
        except StorageError as e:
            logger.error(f"Failed to read {kind.value} from storage: {e}")
            self._unreadable.add(kind)
            if not keep_current:
                self._collections[kind] = seed_collection(kind)
            return OperationResult.fail(FailureReason.PERSISTENCE_ERROR, str(e))

        self._unreadable.discard(kind)
        records = self._parse(kind, raw) if raw is not None else None
        if records is not None:
            self._collections[kind] = records
            return OperationResult.ok()

        seed = seed_collection(kind)
        # The seed is usable in memory even if it cannot be written
        self._collections[kind] = seed
        return await self._persist(kind, seed)

    def _parse(self, kind: EntityKind, raw: str) -> Optional[Tuple[ConsoleModel, ...]]:
        model = ENTITY_MODELS[kind]
        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError(f"expected a JSON array, got {type(data).__name__}")
            records = tuple(model.model_validate(item) for item in data)
        except ValueError as e:
            logger.error(f"Failed to parse stored {kind.value}, reinstalling defaults: {e}")
            return None

        ids = [record.id for record in records]
        if len(ids) != len(set(ids)):
            logger.error(f"Stored {kind.value} contain duplicate ids, reinstalling defaults")
            return None
        return records

    # Reads

    def list(self, kind: EntityKind) -> Tuple[ConsoleModel, ...]:
        """Current snapshot of a collection"""
        return self._collections[kind]

    @property
    def media_files(self) -> Tuple[MediaFile, ...]:
        return self._collections[EntityKind.MEDIA_FILES]

    @property
    def podcast_episodes(self) -> Tuple[PodcastEpisode, ...]:
        return self._collections[EntityKind.PODCAST_EPISODES]

    @property
    def social_media_posts(self) -> Tuple[SocialMediaPost, ...]:
        return self._collections[EntityKind.SOCIAL_MEDIA_POSTS]

    def get(self, kind: EntityKind, record_id: str) -> Optional[ConsoleModel]:
        for record in self._collections[kind]:
            if record.id == record_id:
                return record
        return None

    # Mutations

    async def update(
        self,
        kind: EntityKind,
        record_id: str,
        fields: Mapping[str, Any]
    ) -> OperationResult:
        """
        Replace only the named fields on one record.

        Args:
            kind: Collection holding the record
            record_id: Id of the record to update
            fields: Field values keyed by attribute or camelCase name

        Returns:
            Result carrying the updated record. Fails with NOT_FOUND (and no
            write) if the id is absent, INVALID_INPUT for unknown/immutable
            fields or invalid values, PERSISTENCE_ERROR if the write fails.
        """
        result = await self.update_many(kind, {record_id: fields})
        if not result:
            return result
        return OperationResult.ok(result.value[0])

    async def update_many(
        self,
        kind: EntityKind,
        updates: Mapping[str, Mapping[str, Any]]
    ) -> OperationResult:
        """
        Apply several partial updates with a single persistence write.

        Every id must exist; otherwise nothing is written. Returns the updated
        records in the order of ``updates``.
        """
        if not updates:
            return OperationResult.fail(FailureReason.INVALID_INPUT, "No updates given")

        model = ENTITY_MODELS[kind]
        current = self._collections[kind]
        index = {record.id: position for position, record in enumerate(current)}

        missing = [record_id for record_id in updates if record_id not in index]
        if missing:
            return OperationResult.fail(
                FailureReason.NOT_FOUND,
                f"No {kind.value} record with id {', '.join(missing)}"
            )

        new_records = list(current)
        updated = []
        for record_id, fields in updates.items():
            changes = self._normalize_fields(model, fields)
            if isinstance(changes, OperationResult):
                return changes

            record = new_records[index[record_id]]
            try:
                replacement = model.model_validate({**record.model_dump(), **changes})
            except ValidationError as e:
                return OperationResult.fail(
                    FailureReason.INVALID_INPUT,
                    f"Invalid update for {kind.value} '{record_id}': {e.error_count()} error(s)"
                )
            new_records[index[record_id]] = replacement
            updated.append(replacement)

        persisted = await self._commit(kind, tuple(new_records))
        if not persisted:
            return persisted

        logger.info(f"Updated {len(updated)} {kind.value} record(s)")
        return OperationResult.ok(tuple(updated))

    def _normalize_fields(self, model: type, fields: Mapping[str, Any]):
        """Map camelCase/snake_case keys to attribute names, rejecting unknown or immutable ones"""
        by_alias = {info.alias or name: name for name, info in model.model_fields.items()}
        changes = {}
        for key, value in fields.items():
            name = key if key in model.model_fields else by_alias.get(key)
            if name is None:
                return OperationResult.fail(FailureReason.INVALID_INPUT, f"Unknown field '{key}'")
            if name in IMMUTABLE_FIELDS:
                return OperationResult.fail(FailureReason.INVALID_INPUT, f"Field '{key}' cannot be changed")
            changes[name] = value
        return changes

    async def create_post(self, draft: Union[PostDraft, Mapping[str, Any]]) -> OperationResult:
        """
        Create a social media post with a fresh id and the current time as createdDate.

        Args:
            draft: PostDraft or mapping of its fields

        Returns:
            Result carrying the created SocialMediaPost
        """
        try:
            if not isinstance(draft, PostDraft):
                draft = PostDraft.model_validate(draft)
            existing = {post.id for post in self.social_media_posts}
            post_id = self._new_post_id(existing)
            post = SocialMediaPost(
                id=post_id,
                created_date=datetime.now(timezone.utc),
                **draft.model_dump()
            )
        except ValidationError as e:
            return OperationResult.fail(
                FailureReason.INVALID_INPUT,
                f"Invalid post: {e.error_count()} error(s)"
            )

        persisted = await self._commit(
            EntityKind.SOCIAL_MEDIA_POSTS,
            self.social_media_posts + (post,)
        )
        if not persisted:
            return persisted

        logger.info(f"Created social media post {post.id}")
        return OperationResult.ok(post)

    @staticmethod
    def _new_post_id(existing: Iterable[str]) -> str:
        existing = set(existing)
        while True:
            candidate = f"post{uuid.uuid4().hex}"
            if candidate not in existing:
                return candidate

    async def reset(self) -> OperationResult:
        """
        Reinstall the seed data for all collections.

        Either every collection is replaced or none is: if a write fails, the
        collections already written are restored to their previous stored
        values and the in-memory state is left untouched.
        """
        seeds = {kind: seed_collection(kind) for kind in EntityKind}

        previous: Dict[EntityKind, Optional[str]] = {}
        try:
            for kind in EntityKind:
                previous[kind] = await self.storage.get(kind.value)
        except StorageError as e:
            logger.error(f"Reset aborted, could not snapshot stored data: {e}")
            return OperationResult.fail(FailureReason.PERSISTENCE_ERROR, str(e))

        written = []
        for kind in EntityKind:
            try:
                await self.storage.set(kind.value, self._serialize(seeds[kind]))
            except StorageError as e:
                logger.error(f"Reset failed writing {kind.value}, rolling back: {e}")
                await self._restore(written, previous)
                return OperationResult.fail(FailureReason.PERSISTENCE_ERROR, str(e))
            written.append(kind)

        self._collections.update(seeds)
        self._unreadable.clear()
        self.is_loaded = True
        logger.info("Entity store reset to default data")
        return OperationResult.ok()

    async def _restore(self, kinds, previous: Mapping[EntityKind, Optional[str]]) -> None:
        for kind in kinds:
            try:
                if previous[kind] is None:
                    await self.storage.remove(kind.value)
                else:
                    await self.storage.set(kind.value, previous[kind])
            except StorageError as e:
                logger.error(f"Rollback of {kind.value} failed: {e}")

    # Persistence helpers

    @staticmethod
    def _serialize(records: Iterable[ConsoleModel]) -> str:
        return json.dumps([record.to_wire() for record in records], ensure_ascii=False)

    async def _persist(self, kind: EntityKind, records: Tuple[ConsoleModel, ...]) -> OperationResult:
        try:
            await self.storage.set(kind.value, self._serialize(records))
        except StorageError as e:
            logger.error(f"Failed to persist {kind.value}: {e}")
            return OperationResult.fail(FailureReason.PERSISTENCE_ERROR, str(e))
        return OperationResult.ok()

    async def _commit(self, kind: EntityKind, records: Tuple[ConsoleModel, ...]) -> OperationResult:
        """Persist first, then make the new collection visible"""
        if kind in self._unreadable:
            return OperationResult.fail(
                FailureReason.PERSISTENCE_ERROR,
                f"Stored {kind.value} could not be read; refresh before changing it"
            )
        result = await self._persist(kind, records)
        if result:
            self._collections[kind] = records
        return result

    # Queries

    def statistics(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> Statistics:
        return compute_statistics(self.social_media_posts, start, end)

    def search_posts(
        self,
        term: Optional[str] = None,
        status: Optional[PostStatus] = None,
        platform: Optional[Platform] = None
    ) -> Tuple[SocialMediaPost, ...]:
        """Posts whose content contains term (case-insensitive), optionally by status and platform"""
        needle = (term or "").lower()
        return tuple(
            post for post in self.social_media_posts
            if needle in post.content.lower()
            and (status is None or post.status == status)
            and (platform is None or platform in post.platforms)
        )

    def search_episodes(self, term: Optional[str] = None) -> Tuple[PodcastEpisode, ...]:
        needle = (term or "").lower()
        return tuple(
            episode for episode in self.podcast_episodes
            if needle in episode.title.lower() or needle in episode.description.lower()
        )

    def filter_media(self, category: str = "all", term: Optional[str] = None) -> OperationResult:
        """
        Media files by MIME category and title search.

        Categories: all, images, audio, video, other (anything not image/audio/video).
        Returns the matching files as the result value; an unknown category
        fails with INVALID_INPUT.
        """
        if category != "all" and category != "other" and category not in MEDIA_CATEGORIES:
            return OperationResult.fail(FailureReason.INVALID_INPUT, f"Unknown media category '{category}'")

        needle = (term or "").lower()

        def matches_category(media: MediaFile) -> bool:
            if category == "all":
                return True
            if category == "other":
                return not any(media.type.startswith(prefix) for prefix in MEDIA_CATEGORIES.values())
            return media.type.startswith(MEDIA_CATEGORIES[category])

        return OperationResult.ok(tuple(
            media for media in self.media_files
            if matches_category(media) and needle in media.title.lower()
        ))

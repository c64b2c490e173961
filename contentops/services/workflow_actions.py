"""
Workflow actions

Operator actions that fire an external workflow and then record the outcome
in the entity store. The local mutation is applied only after the workflow
call succeeded; if that follow-up write fails the result is INCONSISTENT,
because the external side effect has already happened.
"""
import logging
from datetime import datetime
from typing import Optional

from contentops.core.results import FailureReason, OperationResult
from contentops.models import EntityKind, PostStatus, WorkflowAction
from contentops.services.entity_store import EntityStore
from contentops.services.workflow_registry import WorkflowRegistry

logger = logging.getLogger(__name__)


def _inconsistent(action: WorkflowAction, write_result: OperationResult) -> OperationResult:
    logger.error(
        f"Workflow '{action.value}' ran but the local update failed: {write_result.message}",
        extra={"action": action.value, "reason": FailureReason.INCONSISTENT.value}
    )
    return OperationResult.fail(
        FailureReason.INCONSISTENT,
        f"Workflow '{action.value}' succeeded but local state could not be updated: {write_result.message}"
    )


class WorkflowActions:
    """Compose workflow executions with entity store mutations"""

    def __init__(self, store: EntityStore, registry: WorkflowRegistry):
        self.store = store
        self.registry = registry

    async def process_episode(self, episode_id: str) -> OperationResult:
        """
        Create social posts from one episode via the process-episode workflow.

        Already processed episodes are left alone and no workflow is fired.
        """
        episode = self.store.get(EntityKind.PODCAST_EPISODES, episode_id)
        if episode is None:
            return OperationResult.fail(FailureReason.NOT_FOUND, f"No episode with id '{episode_id}'")
        if episode.processed:
            logger.info(f"Episode {episode_id} already processed, skipping")
            return OperationResult.ok(episode, message="already processed")

        executed = await self.registry.execute(WorkflowAction.PROCESS_EPISODE, {"episode": episode})
        if not executed:
            return executed

        updated = await self.store.update(EntityKind.PODCAST_EPISODES, episode_id, {"processed": True})
        if not updated:
            return _inconsistent(WorkflowAction.PROCESS_EPISODE, updated)
        return updated

    async def process_all_episodes(self) -> OperationResult:
        """Process every unprocessed episode with one workflow call and one write"""
        pending = [episode for episode in self.store.podcast_episodes if not episode.processed]
        if not pending:
            return OperationResult.ok((), message="nothing to process")

        executed = await self.registry.execute(WorkflowAction.PROCESS_ALL_EPISODES, {"episodes": pending})
        if not executed:
            return executed

        updated = await self.store.update_many(
            EntityKind.PODCAST_EPISODES,
            {episode.id: {"processed": True} for episode in pending}
        )
        if not updated:
            return _inconsistent(WorkflowAction.PROCESS_ALL_EPISODES, updated)
        return updated

    async def publish_post(self, post_id: str) -> OperationResult:
        """Publish through the publish-post workflow, then mark the post Posted"""
        post = self.store.get(EntityKind.SOCIAL_MEDIA_POSTS, post_id)
        if post is None:
            return OperationResult.fail(FailureReason.NOT_FOUND, f"No post with id '{post_id}'")
        if post.status == PostStatus.POSTED:
            return OperationResult.ok(post, message="already posted")

        executed = await self.registry.execute(WorkflowAction.PUBLISH_POST, {"post": post})
        if not executed:
            return executed

        updated = await self.store.update(
            EntityKind.SOCIAL_MEDIA_POSTS, post_id, {"status": PostStatus.POSTED}
        )
        if not updated:
            return _inconsistent(WorkflowAction.PUBLISH_POST, updated)
        return updated

    async def change_post_status(
        self,
        post_id: str,
        status: PostStatus,
        scheduled_date: Optional[datetime] = None
    ) -> OperationResult:
        """
        Move a post through the review lifecycle.

        Posted is terminal. Moving to Posted publishes through the workflow;
        scheduling requires a date (given here or already on the post).
        """
        try:
            status = PostStatus(status)
        except ValueError:
            return OperationResult.fail(FailureReason.INVALID_INPUT, f"Unknown status '{status}'")

        post = self.store.get(EntityKind.SOCIAL_MEDIA_POSTS, post_id)
        if post is None:
            return OperationResult.fail(FailureReason.NOT_FOUND, f"No post with id '{post_id}'")

        if post.status == PostStatus.POSTED:
            if status == PostStatus.POSTED:
                return OperationResult.ok(post, message="already posted")
            return OperationResult.fail(FailureReason.TERMINAL_STATUS, "Posted posts cannot change status")

        if status == PostStatus.POSTED:
            return await self.publish_post(post_id)

        changes = {"status": status}
        if scheduled_date is not None:
            changes["scheduled_date"] = scheduled_date
        if status == PostStatus.SCHEDULED and scheduled_date is None and post.scheduled_date is None:
            return OperationResult.fail(FailureReason.INVALID_INPUT, "Scheduling requires a date")

        return await self.store.update(EntityKind.SOCIAL_MEDIA_POSTS, post_id, changes)

    async def get_data(self) -> OperationResult:
        """Run the get-data workflow when bound, then reload media files"""
        if self.registry.is_bound(WorkflowAction.GET_DATA):
            executed = await self.registry.execute(WorkflowAction.GET_DATA)
            if not executed:
                return executed
        return await self.store.refresh(EntityKind.MEDIA_FILES)

    async def update_database(self) -> OperationResult:
        """Push local files to the backing database through the update-db workflow"""
        return await self.registry.execute(WorkflowAction.UPDATE_DB)

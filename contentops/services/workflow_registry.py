"""
Workflow trigger registry

Maps logical action ids to operator-supplied webhook URLs (n8n and similar
automation endpoints) and fires JSON payloads at them. The registry never
changes entity state; callers apply domain mutations after a successful
execution.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Union

import httpx
from pydantic_core import PydanticSerializationError, to_jsonable_python

from contentops.core.http_client import HTTPClient
from contentops.core.results import FailureReason, OperationResult
from contentops.core.storage import KeyValueStore, StorageError
from contentops.models import WorkflowAction

logger = logging.getLogger(__name__)

WEBHOOKS_KEY = "webhooks"


class WebhookDeliveryError(Exception):
    """A webhook call did not complete successfully"""
    def __init__(self, message: str, reason: FailureReason, status_code: Optional[int] = None):
        super().__init__(message)
        self.reason = reason
        self.status_code = status_code


def utc_timestamp() -> str:
    """Current time as ISO-8601 UTC with millisecond precision"""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def is_valid_webhook_url(url: str) -> bool:
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError):
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.host)


class WorkflowRegistry:
    """Persisted action id -> webhook URL mapping with test and execute calls"""

    def __init__(self, storage: KeyValueStore, http_client: HTTPClient):
        self.storage = storage
        self.http_client = http_client
        self._webhooks: Dict[WorkflowAction, str] = {}

    @property
    def webhooks(self) -> Dict[WorkflowAction, str]:
        return dict(self._webhooks)

    def url_for(self, action: Union[WorkflowAction, str]) -> Optional[str]:
        try:
            return self._webhooks.get(WorkflowAction(action))
        except ValueError:
            return None

    def is_bound(self, action: Union[WorkflowAction, str]) -> bool:
        return self.url_for(action) is not None

    async def load(self) -> OperationResult:
        """Read the persisted mapping; malformed data is discarded"""
        try:
            raw = await self.storage.get(WEBHOOKS_KEY)
        except StorageError as e:
            logger.error(f"Failed to read webhooks: {e}")
            return OperationResult.fail(FailureReason.PERSISTENCE_ERROR, str(e))

        if raw is None:
            self._webhooks = {}
            return OperationResult.ok(self.webhooks)

        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        except ValueError as e:
            logger.error(f"Failed to parse stored webhooks, discarding them: {e}")
            self._webhooks = {}
            try:
                await self.storage.remove(WEBHOOKS_KEY)
            except StorageError as remove_error:
                logger.error(f"Failed to remove malformed webhooks: {remove_error}")
            return OperationResult.ok(self.webhooks)

        webhooks = {}
        for key, url in data.items():
            try:
                action = WorkflowAction(key)
            except ValueError:
                logger.warning(f"Ignoring webhook for unknown action '{key}'")
                continue
            if not isinstance(url, str) or not url:
                logger.warning(f"Ignoring webhook for '{key}' without a URL")
                continue
            webhooks[action] = url

        self._webhooks = webhooks
        return OperationResult.ok(self.webhooks)

    async def save(self, action: Union[WorkflowAction, str], url: str) -> OperationResult:
        """Bind (or rebind) an action to a webhook URL"""
        try:
            action = WorkflowAction(action)
        except ValueError:
            return OperationResult.fail(FailureReason.INVALID_INPUT, f"Unknown action '{action}'")

        url = (url or "").strip()
        if not is_valid_webhook_url(url):
            return OperationResult.fail(FailureReason.INVALID_INPUT, "Webhook URL must be an absolute http(s) URL")

        updated = {**self._webhooks, action: url}
        result = await self._commit(updated)
        if result:
            logger.info(f"Webhook saved for '{action.value}'")
        return result

    async def remove(self, action: Union[WorkflowAction, str]) -> OperationResult:
        """Unbind an action; unbound actions are not an error"""
        try:
            action = WorkflowAction(action)
        except ValueError:
            return OperationResult.fail(FailureReason.INVALID_INPUT, f"Unknown action '{action}'")

        updated = {key: value for key, value in self._webhooks.items() if key != action}
        result = await self._commit(updated)
        if result:
            logger.info(f"Webhook removed for '{action.value}'")
        return result

    async def _commit(self, webhooks: Dict[WorkflowAction, str]) -> OperationResult:
        serialized = json.dumps({action.value: url for action, url in webhooks.items()})
        try:
            await self.storage.set(WEBHOOKS_KEY, serialized)
        except StorageError as e:
            logger.error(f"Failed to persist webhooks: {e}")
            return OperationResult.fail(FailureReason.PERSISTENCE_ERROR, str(e))

        self._webhooks = webhooks
        return OperationResult.ok(self.webhooks)

    async def test(self, action: Union[WorkflowAction, str]) -> OperationResult:
        """Send a diagnostic payload to the bound URL"""
        try:
            action = WorkflowAction(action)
        except ValueError:
            return OperationResult.fail(FailureReason.INVALID_INPUT, f"Unknown action '{action}'")

        payload = {
            "test": True,
            "timestamp": utc_timestamp(),
            "action": action.value,
        }
        return await self._fire(action, payload)

    async def execute(
        self,
        action: Union[WorkflowAction, str],
        payload: Optional[Mapping[str, Any]] = None
    ) -> OperationResult:
        """
        Fire the workflow bound to an action.

        Args:
            action: Logical action id
            payload: Extra fields merged into the request body; models are
                serialized in their camelCase wire form

        Returns:
            Success when the endpoint answered with a 2xx status. Fails with
            NO_ENDPOINT (and no request) if the action is unbound.
        """
        try:
            action = WorkflowAction(action)
        except ValueError:
            return OperationResult.fail(FailureReason.INVALID_INPUT, f"Unknown action '{action}'")
        if payload is not None and not isinstance(payload, Mapping):
            return OperationResult.fail(FailureReason.INVALID_INPUT, "Payload must be a mapping")

        try:
            body = to_jsonable_python(dict(payload or {}), by_alias=True)
        except PydanticSerializationError as e:
            return OperationResult.fail(FailureReason.INVALID_INPUT, f"Payload is not JSON serializable: {e}")

        body.update(timestamp=utc_timestamp(), action=action.value)
        return await self._fire(action, body)

    async def _fire(self, action: WorkflowAction, payload: Dict[str, Any]) -> OperationResult:
        url = self._webhooks.get(action)
        if url is None:
            logger.warning(f"No webhook configured for '{action.value}'")
            return OperationResult.fail(FailureReason.NO_ENDPOINT, f"No webhook configured for '{action.value}'")

        try:
            status_code = await self._deliver(url, payload)
        except WebhookDeliveryError as e:
            logger.error(
                f"Webhook '{action.value}' failed: {e}",
                extra={"action": action.value, "reason": e.reason.value, "status_code": e.status_code}
            )
            return OperationResult.fail(e.reason, str(e))

        logger.info(f"Webhook '{action.value}' delivered", extra={"action": action.value, "status_code": status_code})
        return OperationResult.ok(status_code)

    async def _deliver(self, url: str, payload: Dict[str, Any]) -> int:
        try:
            response = await self.http_client.post(url, json=payload)
        except httpx.RequestError as e:
            raise WebhookDeliveryError(
                f"request failed: {e.__class__.__name__}",
                FailureReason.NETWORK_ERROR
            ) from e

        if not response.is_success:
            raise WebhookDeliveryError(
                f"endpoint returned {response.status_code}",
                FailureReason.HTTP_ERROR,
                status_code=response.status_code
            )
        return response.status_code

"""
Service Factory

Builds the console services once at startup and hands them to consumers
explicitly, with an init/teardown lifecycle instead of module-level
singletons.
"""
import logging
from typing import Optional

from contentops.core.config import Settings, get_settings
from contentops.core.http_client import HTTPClient, HTTPClientConfig
from contentops.core.results import OperationResult
from contentops.core.storage import InMemoryKeyValueStore, KeyValueStore, RedisKeyValueStore
from contentops.integrations.airtable_client import AirtableClient
from contentops.services.airtable_connector import AirtableConnector
from contentops.services.entity_store import EntityStore
from contentops.services.workflow_actions import WorkflowActions
from contentops.services.workflow_registry import WorkflowRegistry

logger = logging.getLogger(__name__)


def create_storage(settings: Settings) -> KeyValueStore:
    """Create the persistence adapter selected by settings."""
    if settings.storage_backend == "redis":
        return RedisKeyValueStore(settings.redis_url, key_prefix=settings.storage_key_prefix)
    return InMemoryKeyValueStore()


class ConsoleServices:
    """
    Container for the entity store, Airtable connector, workflow registry
    and workflow actions.

    Supports:
    - Injected storage and HTTP client (testing overrides)
    - Explicit ``init()`` / ``teardown()``, or ``async with``
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        storage: Optional[KeyValueStore] = None,
        http_client: Optional[HTTPClient] = None
    ):
        self.settings = settings or get_settings()
        self.storage = storage or create_storage(self.settings)
        self.http_client = http_client or HTTPClient(HTTPClientConfig(self.settings))

        self.store = EntityStore(self.storage)
        self.connector = AirtableConnector(
            self.storage,
            AirtableClient(self.http_client, api_url=self.settings.airtable_api_url)
        )
        self.registry = WorkflowRegistry(self.storage, self.http_client)
        self.actions = WorkflowActions(self.store, self.registry)
        self.is_initialized = False

    async def init(self) -> OperationResult:
        """
        Load persisted state into every service.

        Returns the first failure encountered; services that loaded remain
        usable.
        """
        results = [
            await self.store.load(),
            await self.connector.load(),
            await self.registry.load(),
        ]
        self.is_initialized = True

        failures = [result for result in results if not result]
        if failures:
            logger.warning(f"Console services initialized with {len(failures)} load failure(s)")
            return failures[0]

        logger.info("Console services initialized")
        return OperationResult.ok()

    async def teardown(self):
        """Release HTTP and storage connections."""
        await self.http_client.close()
        await self.storage.close()
        self.is_initialized = False
        logger.info("Console services shut down")

    async def __aenter__(self) -> "ConsoleServices":
        await self.init()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.teardown()

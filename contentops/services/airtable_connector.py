"""
Airtable connector service

Authenticates against Airtable with a bearer credential, discovers
bases -> tables -> views, and persists the chosen binding of local entity
types to remote tables. Discovery results are transient caches; only the
binding is persisted.
"""
import json
import logging
from enum import Enum
from typing import Any, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from contentops.core.results import FailureReason, OperationResult
from contentops.core.storage import KeyValueStore, StorageError
from contentops.integrations.airtable_client import (
    AirtableClient,
    AirtableError,
    AirtableNetworkError,
)
from contentops.models import (
    AirtableBase,
    AirtableConfig,
    AirtableTable,
    AirtableView,
    BindingTarget,
    TableBinding,
)

logger = logging.getLogger(__name__)

CONFIG_KEY = "airtableConfig"


class AuthStatus(Enum):
    """Connector authentication states"""
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


def _remote_failure(error: AirtableError, action: str) -> OperationResult:
    if isinstance(error, AirtableNetworkError):
        logger.error(f"Airtable {action} failed: network error: {error}")
        return OperationResult.fail(FailureReason.NETWORK_ERROR, str(error))
    status_code = getattr(error, "status_code", None)
    logger.error(f"Airtable {action} failed with status {status_code}: {error}")
    return OperationResult.fail(FailureReason.HTTP_ERROR, str(error))


class AirtableConnector:
    """
    Airtable connection state machine.

    UNAUTHENTICATED -> AUTHENTICATING -> AUTHENTICATED, and back to
    UNAUTHENTICATED on disconnect. Discovery and binding operations only
    succeed while AUTHENTICATED.
    """

    def __init__(self, storage: KeyValueStore, client: AirtableClient):
        self.storage = storage
        self.client = client
        self.status = AuthStatus.UNAUTHENTICATED
        self.config: Optional[AirtableConfig] = None
        self.bases: Tuple[AirtableBase, ...] = ()
        self.tables: Tuple[AirtableTable, ...] = ()
        self.views: Tuple[AirtableView, ...] = ()

    @property
    def is_authenticated(self) -> bool:
        return self.status == AuthStatus.AUTHENTICATED

    @property
    def token(self) -> Optional[str]:
        return self.config.token if self.config else None

    async def load(self) -> OperationResult:
        """Restore a persisted binding; a malformed record is discarded"""
        try:
            raw = await self.storage.get(CONFIG_KEY)
        except StorageError as e:
            logger.error(f"Failed to read Airtable config: {e}")
            return OperationResult.fail(FailureReason.PERSISTENCE_ERROR, str(e))

        if raw is None:
            return OperationResult.ok()

        try:
            config = AirtableConfig.model_validate(json.loads(raw))
        except ValueError as e:
            logger.error(f"Failed to parse stored Airtable config, discarding it: {e}")
            try:
                await self.storage.remove(CONFIG_KEY)
            except StorageError as remove_error:
                logger.error(f"Failed to remove malformed Airtable config: {remove_error}")
            return OperationResult.ok()

        self.config = config
        self.status = AuthStatus.AUTHENTICATED
        return OperationResult.ok(config)

    async def authenticate(self, credential: str) -> OperationResult:
        """
        Validate a credential by listing bases.

        Succeeds only if at least one base is returned. On success the
        credential is persisted with an empty binding; on failure nothing is
        persisted and the previous state is kept.
        """
        credential = (credential or "").strip()
        if not credential:
            return OperationResult.fail(FailureReason.INVALID_INPUT, "Credential is required")

        previous_status = self.status
        self.status = AuthStatus.AUTHENTICATING

        try:
            bases = await self.client.list_bases(credential)
        except AirtableError as e:
            self.status = previous_status
            return _remote_failure(e, "authentication")

        if not bases:
            self.status = previous_status
            logger.warning("Airtable authentication returned no bases")
            return OperationResult.fail(
                FailureReason.EMPTY_RESULT,
                "No Airtable bases are accessible with this credential"
            )

        config = AirtableConfig(token=credential)
        try:
            await self.storage.set(CONFIG_KEY, json.dumps(config.to_wire()))
        except StorageError as e:
            self.status = previous_status
            logger.error(f"Failed to persist Airtable credential: {e}")
            return OperationResult.fail(FailureReason.PERSISTENCE_ERROR, str(e))

        self.config = config
        self.bases = tuple(bases)
        self.tables = ()
        self.views = ()
        self.status = AuthStatus.AUTHENTICATED
        logger.info(f"Airtable connected, {len(bases)} base(s) available")
        return OperationResult.ok(self.bases)

    def _require_credential(self) -> Optional[OperationResult]:
        if not self.is_authenticated:
            return OperationResult.fail(FailureReason.NOT_AUTHENTICATED, "Airtable is not connected")
        if not self.token:
            return OperationResult.fail(FailureReason.MISSING_CREDENTIAL, "No Airtable credential stored")
        return None

    async def list_bases(self) -> OperationResult:
        denied = self._require_credential()
        if denied is not None:
            return denied

        try:
            bases = await self.client.list_bases(self.token)
        except AirtableError as e:
            self.bases = ()
            return _remote_failure(e, "list bases")

        self.bases = tuple(bases)
        return OperationResult.ok(self.bases)

    async def list_tables(self, base_id: str) -> OperationResult:
        denied = self._require_credential()
        if denied is not None:
            return denied
        if not base_id:
            return OperationResult.fail(FailureReason.INVALID_INPUT, "Base id is required")

        # A new base selection invalidates any views of the previous table
        self.views = ()
        try:
            tables = await self.client.list_tables(self.token, base_id)
        except AirtableError as e:
            self.tables = ()
            return _remote_failure(e, "list tables")

        self.tables = tuple(tables)
        return OperationResult.ok(self.tables)

    async def list_views(self, base_id: str, table_id: str) -> OperationResult:
        denied = self._require_credential()
        if denied is not None:
            return denied
        if not base_id or not table_id:
            return OperationResult.fail(FailureReason.INVALID_INPUT, "Base id and table id are required")

        try:
            tables = await self.client.list_tables(self.token, base_id)
        except AirtableError as e:
            self.views = ()
            return _remote_failure(e, "list views")

        table = next((table for table in tables if table.id == table_id), None)
        if table is None:
            self.views = ()
            return OperationResult.fail(
                FailureReason.MISSING_BINDING,
                f"Table '{table_id}' not found in base '{base_id}'"
            )

        self.views = tuple(table.views)
        return OperationResult.ok(self.views)

    def build_binding(
        self,
        base_id: str,
        tables: Mapping[Union[BindingTarget, str], Union[TableBinding, Mapping[str, Any]]]
    ) -> OperationResult:
        """Binding for the current credential; pass the result value to save_binding"""
        try:
            config = AirtableConfig(
                token=self.token or "",
                base_id=base_id,
                tables={
                    BindingTarget(target): (
                        binding if isinstance(binding, TableBinding) else TableBinding.model_validate(binding)
                    )
                    for target, binding in tables.items()
                }
            )
        except ValueError as e:
            return OperationResult.fail(FailureReason.INVALID_INPUT, f"Invalid binding: {e}")
        return OperationResult.ok(config)

    async def save_binding(self, config: Union[AirtableConfig, Mapping[str, Any]]) -> OperationResult:
        """Persist the full binding, replacing the previous one"""
        if not self.is_authenticated:
            return OperationResult.fail(FailureReason.NOT_AUTHENTICATED, "Airtable is not connected")

        try:
            if not isinstance(config, AirtableConfig):
                config = AirtableConfig.model_validate(config)
        except ValidationError as e:
            return OperationResult.fail(FailureReason.INVALID_INPUT, f"Invalid binding: {e.error_count()} error(s)")

        if not config.token:
            return OperationResult.fail(FailureReason.INVALID_INPUT, "Binding must carry a credential")
        if not config.base_id:
            return OperationResult.fail(FailureReason.INVALID_INPUT, "Binding must name a base")

        try:
            await self.storage.set(CONFIG_KEY, json.dumps(config.to_wire()))
        except StorageError as e:
            logger.error(f"Failed to persist Airtable binding: {e}")
            return OperationResult.fail(FailureReason.PERSISTENCE_ERROR, str(e))

        self.config = config
        logger.info(f"Airtable binding saved for base {config.base_id}")
        return OperationResult.ok(config)

    def binding_for(self, target: BindingTarget) -> Optional[TableBinding]:
        if self.config is None:
            return None
        return self.config.tables.get(target)

    async def disconnect(self) -> OperationResult:
        """Forget the credential, binding and caches, and remove the persisted record"""
        try:
            await self.storage.remove(CONFIG_KEY)
        except StorageError as e:
            logger.error(f"Failed to remove Airtable config: {e}")
            return OperationResult.fail(FailureReason.PERSISTENCE_ERROR, str(e))

        self.config = None
        self.bases = ()
        self.tables = ()
        self.views = ()
        self.status = AuthStatus.UNAUTHENTICATED
        logger.info("Airtable disconnected")
        return OperationResult.ok()

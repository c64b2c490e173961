"""
Airtable metadata API client

Read-only access to the base/table/view hierarchy of an Airtable account,
authenticated with a personal access token sent as a bearer credential.
Views are part of the table schema returned by the tables endpoint.
"""
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from contentops.core.http_client import HTTPClient
from contentops.models import AirtableBase, AirtableTable

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.airtable.com/v0"


class AirtableError(Exception):
    """Base class for Airtable client errors"""


class AirtableNetworkError(AirtableError):
    """The request never produced an HTTP response"""


class AirtableAPIError(AirtableError):
    """Airtable answered with a non-success status or an unreadable body"""
    def __init__(self, message: str, status_code: Optional[int] = None, response_data: Optional[Dict] = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data


class AirtableClient:
    """Thin client over the Airtable metadata endpoints"""

    def __init__(self, http_client: HTTPClient, api_url: str = DEFAULT_API_URL):
        self.http_client = http_client
        self.api_url = api_url.rstrip("/")

    async def list_bases(self, token: str) -> List[AirtableBase]:
        """GET /meta/bases"""
        data = await self._get(token, "/meta/bases")
        return self._parse_items(data, "bases", AirtableBase)

    async def list_tables(self, token: str, base_id: str) -> List[AirtableTable]:
        """GET /meta/bases/{base_id}/tables, including each table's views"""
        data = await self._get(token, f"/meta/bases/{quote(base_id, safe='')}/tables")
        return self._parse_items(data, "tables", AirtableTable)

    async def _get(self, token: str, path: str) -> Dict[str, Any]:
        url = f"{self.api_url}{path}"
        try:
            response = await self.http_client.get(
                url,
                headers={
                    "Authorization": f"Bearer {token}",
                    "Accept": "application/json",
                }
            )
        except httpx.RequestError as e:
            raise AirtableNetworkError(f"Airtable request to {path} failed: {e}") from e

        if not response.is_success:
            try:
                response_data = response.json()
            except ValueError:
                response_data = {"raw": response.text[:500]}
            logger.warning(f"Airtable {path} returned {response.status_code}")
            raise AirtableAPIError(
                f"Airtable API error: {response.status_code}",
                status_code=response.status_code,
                response_data=response_data
            )

        try:
            data = response.json()
        except ValueError as e:
            raise AirtableAPIError(
                f"Airtable returned invalid JSON for {path}",
                status_code=response.status_code
            ) from e

        if not isinstance(data, dict):
            raise AirtableAPIError(
                f"Unexpected Airtable response shape for {path}",
                status_code=response.status_code
            )
        return data

    @staticmethod
    def _parse_items(data: Dict[str, Any], collection: str, model: type) -> list:
        items = data.get(collection, [])
        try:
            return [model.model_validate(item) for item in items]
        except (TypeError, ValidationError) as e:
            raise AirtableAPIError(f"Malformed '{collection}' in Airtable response: {e}") from e

"""
Shopify Admin GraphQL API Client
Executes queries and mutations for an authorized shop
"""
from typing import Dict, Optional
import logging

import httpx
from gql import Client
from gql.transport.exceptions import TransportError, TransportQueryError
from gql.transport.httpx import HTTPXAsyncTransport
from graphql import DocumentNode

from app.auth.authorizer import AuthorizedContext

logger = logging.getLogger(__name__)

class AdminApiError(Exception):
    """Transport failure, non-2xx status, or top-level GraphQL errors"""

async def _raise_for_status(response: httpx.Response) -> None:
    # gql only inspects the status when the body is not a GraphQL answer
    if response.is_error:
        await response.aread()
        response.raise_for_status()

class AdminGraphQLClient:
    """Shopify Admin API client"""

    def __init__(
        self,
        api_version: str = "2025-01",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_version = api_version
        self.timeout = timeout
        self.transport = transport

    def endpoint(self, shop: str) -> str:
        return f"https://{shop}/admin/api/{self.api_version}/graphql.json"

    def _client_for(self, context: AuthorizedContext) -> Client:
        # One client per call: the token differs per shop and a gql
        # transport cannot be shared by concurrent sessions
        transport = HTTPXAsyncTransport(
            url=self.endpoint(context.shop),
            headers={"X-Shopify-Access-Token": context.access_token},
            timeout=self.timeout,
            transport=self.transport,
            event_hooks={"response": [_raise_for_status]},
        )
        # Avoid schema fetching, the documents are known up front
        return Client(transport=transport, fetch_schema_from_transport=False)

    async def execute(
        self,
        context: AuthorizedContext,
        document: DocumentNode,
        variables: Optional[Dict] = None,
    ) -> Dict:
        """
        Execute a GraphQL document against the shop's Admin API

        Returns:
            The "data" member of the response

        Raises:
            AdminApiError on any transport or top-level GraphQL failure
        """
        client = self._client_for(context)
        try:
            result = await client.execute_async(document, variable_values=variables or {})
        except TransportQueryError as e:
            raise AdminApiError(f"GraphQL errors: {e.errors}") from e
        except httpx.HTTPStatusError as e:
            raise AdminApiError(
                f"Admin API error ({e.response.status_code}): {e.response.text[:200]}"
            ) from e
        except (TransportError, httpx.HTTPError) as e:
            raise AdminApiError(f"Admin API request to {context.shop} failed: {e}") from e

        if result is None:
            raise AdminApiError("Admin API returned no data")
        return result

"""
Draft Order Operations
Maps the BFF's draft order actions onto Admin GraphQL calls
"""
from typing import Dict, List, Optional
from urllib.parse import unquote
import logging
import re

from gql import gql

from app.auth.authorizer import AuthorizedContext
from app.errors import UpstreamApplicationError, UpstreamTransportError, ValidationError
from app.shopify.client import AdminApiError, AdminGraphQLClient

logger = logging.getLogger(__name__)

DRAFT_ORDER_GID_PREFIX = "gid://shopify/DraftOrder/"
PAGE_SIZE = 20

# Statuses of a draft order that has not been turned into an order yet
DRAFT_STATUSES = {"OPEN", "INVOICE_SENT"}

# Only these reach Shopify search syntax, anything else could widen the query
CUSTOMER_ID_PATTERN = re.compile(r"^(?:gid://shopify/Customer/)?(\d+)$")

DRAFT_ORDER_COMPLETE_MUTATION = gql("""
    mutation DraftOrderComplete($id: ID!) {
        draftOrderComplete(id: $id) {
            draftOrder {
                id
                status
                order {
                    id
                    name
                }
            }
            userErrors {
                field
                message
            }
        }
    }
""")

DRAFT_ORDER_DELETE_MUTATION = gql("""
    mutation DraftOrderDelete($input: DraftOrderDeleteInput!) {
        draftOrderDelete(input: $input) {
            deletedDraftOrderId
            userErrors {
                field
                message
            }
        }
    }
""")

DRAFT_ORDERS_QUERY = gql("""
    query CustomerDraftOrders($first: Int!, $query: String!) {
        draftOrders(first: $first, query: $query, sortKey: UPDATED_AT, reverse: true) {
            edges {
                node {
                    id
                    name
                    status
                    createdAt
                    updatedAt
                    invoiceUrl
                    totalPriceSet {
                        shopMoney {
                            amount
                            currencyCode
                        }
                    }
                    lineItems(first: 50) {
                        edges {
                            node {
                                id
                                title
                                quantity
                                variant {
                                    id
                                }
                            }
                        }
                    }
                }
            }
        }
    }
""")

DRAFT_ORDER_STATUS_QUERY = gql("""
    query DraftOrderStatus($id: ID!) {
        draftOrder(id: $id) {
            id
            status
        }
    }
""")

def parse_draft_id(raw_id) -> Optional[str]:
    """
    Canonical draft order gid from a path parameter

    Accepts "123", "gid://shopify/DraftOrder/123" or their percent-encoded forms
    """
    if raw_id is None or raw_id == "":
        return None
    draft_id = unquote(raw_id) if isinstance(raw_id, str) else str(raw_id)
    if draft_id.startswith("gid://"):
        return draft_id
    return DRAFT_ORDER_GID_PREFIX + draft_id

def parse_customer_id(raw_id) -> Optional[str]:
    """
    Numeric customer id for search syntax ("gid://shopify/Customer/42" -> "42")

    Returns None when missing; raises ValidationError for anything other than
    digits or a Customer gid
    """
    if raw_id is None:
        return None
    customer_id = unquote(str(raw_id)).strip()
    if not customer_id:
        return None
    match = CUSTOMER_ID_PATTERN.match(customer_id)
    if match is None:
        raise ValidationError("customerId must be a numeric id or a Customer gid")
    return match.group(1)

def _raise_user_errors(user_errors: Optional[List[Dict]]) -> None:
    if user_errors:
        raise UpstreamApplicationError(user_errors)

class DraftOrderService:
    """Draft order actions against the Admin API"""

    def __init__(self, client: AdminGraphQLClient):
        self.client = client

    async def complete(self, context: AuthorizedContext, raw_id) -> Dict:
        """
        Complete a draft order, turning it into an order

        Returns:
            {"draftOrder": ..., "order": ...}

        Raises:
            ValidationError if no id was given
            UpstreamApplicationError with Shopify's userErrors
            UpstreamTransportError if the call itself failed
        """
        draft_order_id = self._require_draft_id(raw_id)
        try:
            data = await self.client.execute(
                context, DRAFT_ORDER_COMPLETE_MUTATION, {"id": draft_order_id}
            )
        except AdminApiError as e:
            logger.error("Error completing draft order %s on %s: %s", draft_order_id, context.shop, e)
            raise UpstreamTransportError("Failed to complete draft order") from e

        result = data.get("draftOrderComplete") or {}
        _raise_user_errors(result.get("userErrors"))
        draft_order = result.get("draftOrder")
        return {
            "draftOrder": draft_order,
            "order": (draft_order or {}).get("order"),
        }

    async def delete(self, context: AuthorizedContext, raw_id) -> Dict:
        """Delete a draft order; returns {"deleted": True, "deletedDraftOrderId": ...}"""
        draft_order_id = self._require_draft_id(raw_id)
        try:
            data = await self.client.execute(
                context, DRAFT_ORDER_DELETE_MUTATION, {"input": {"id": draft_order_id}}
            )
        except AdminApiError as e:
            logger.error("Error deleting draft order %s on %s: %s", draft_order_id, context.shop, e)
            raise UpstreamTransportError("Failed to delete draft order") from e

        result = data.get("draftOrderDelete") or {}
        _raise_user_errors(result.get("userErrors"))
        return {"deleted": True, "deletedDraftOrderId": result.get("deletedDraftOrderId")}

    async def list_for_customer(self, context: AuthorizedContext, raw_customer_id) -> List[Dict]:
        """
        Most recently updated draft orders of a customer, at most PAGE_SIZE

        An upstream failure yields an empty list rather than an error
        """
        customer_id = parse_customer_id(raw_customer_id)
        if not customer_id:
            raise ValidationError("customerId is required")

        variables = {"first": PAGE_SIZE, "query": f"customer_id:{customer_id}"}
        try:
            data = await self.client.execute(context, DRAFT_ORDERS_QUERY, variables)
        except AdminApiError as e:
            logger.warning("Listing draft orders for customer %s on %s failed: %s", customer_id, context.shop, e)
            return []

        edges = ((data.get("draftOrders") or {}).get("edges")) or []
        return [edge["node"] for edge in edges if edge.get("node")]

    async def is_draft(self, context: AuthorizedContext, raw_order_id) -> bool:
        """
        Whether the draft order is still open

        Never raises: a missing id, unknown draft order, or any upstream failure
        all report False.
        """
        draft_order_id = parse_draft_id(raw_order_id)
        if draft_order_id is None:
            return False
        try:
            data = await self.client.execute(context, DRAFT_ORDER_STATUS_QUERY, {"id": draft_order_id})
        except Exception as e:
            logger.warning("Draft order status check for %s failed: %s", draft_order_id, e)
            return False

        draft_order = data.get("draftOrder") or {}
        return draft_order.get("status") in DRAFT_STATUSES

    @staticmethod
    def _require_draft_id(raw_id) -> str:
        draft_order_id = parse_draft_id(raw_id)
        if draft_order_id is None:
            raise ValidationError("draft order id is required")
        return draft_order_id

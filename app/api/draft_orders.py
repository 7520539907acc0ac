"""
Draft Order API Endpoints
Called by the storefront / customer account extension with its session token
"""
from fastapi import APIRouter, Depends, Request
from typing import Optional

from app.auth.authorizer import AuthorizedContext
from app.commerce.draft_orders import DraftOrderService

router = APIRouter(prefix="/api/draft-orders", tags=["draft-orders"])

async def require_shop_context(request: Request) -> AuthorizedContext:
    """Authorize the request; AuthError propagates to the app's error handler"""
    authorizer = request.app.state.authorizer
    return await authorizer.authorize(request.headers.get("Authorization"))

def get_draft_order_service(request: Request) -> DraftOrderService:
    return request.app.state.draft_orders

@router.get("")
async def list_draft_orders(
    customerId: Optional[str] = None,
    context: AuthorizedContext = Depends(require_shop_context),
    service: DraftOrderService = Depends(get_draft_order_service),
):
    """Latest draft orders of a customer"""
    draft_orders = await service.list_for_customer(context, customerId)
    return {"draftOrders": draft_orders}

@router.get("/check")
async def check_draft_order(
    orderId: Optional[str] = None,
    context: AuthorizedContext = Depends(require_shop_context),
    service: DraftOrderService = Depends(get_draft_order_service),
):
    """Whether a draft order is still open; never fails once authorized"""
    return {"isDraft": await service.is_draft(context, orderId)}

@router.post("/{draft_order_id:path}/complete")
async def complete_draft_order(
    draft_order_id: str,
    context: AuthorizedContext = Depends(require_shop_context),
    service: DraftOrderService = Depends(get_draft_order_service),
):
    """Complete a draft order"""
    return await service.complete(context, draft_order_id)

@router.delete("/{draft_order_id:path}")
async def delete_draft_order(
    draft_order_id: str,
    context: AuthorizedContext = Depends(require_shop_context),
    service: DraftOrderService = Depends(get_draft_order_service),
):
    """Delete a draft order"""
    return await service.delete(context, draft_order_id)

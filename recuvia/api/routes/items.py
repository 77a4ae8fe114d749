from fastapi import APIRouter, Depends, Query
import logging

from recuvia.api.dependencies import get_current_user, get_item_service
from recuvia.models.item_models import AuthenticatedUser
from recuvia.models.request_models import DeleteRequest
from recuvia.models.response_models import BaseResponse, ItemListResponse
from recuvia.services.item_service import ItemService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/items", response_model=ItemListResponse)
def list_items(
    limit: int = Query(50, ge=1, le=500, description="Number of items to return"),
    service: ItemService = Depends(get_item_service)
):
    """
    Recently reported items, newest first. No sign-in required.
    """
    return {"items": service.list_recent(limit=limit)}


@router.post("/delete", response_model=BaseResponse)
def delete_item(
    request: DeleteRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: ItemService = Depends(get_item_service)
):
    service.delete_item(user, request.itemId, request.fileName)
    return {"success": True}

from fastapi import APIRouter, Depends, File, Form, UploadFile
from typing import Optional
import logging

from recuvia.api.dependencies import get_search_service
from recuvia.models.request_models import TextSearchRequest, ItemSearchRequest
from recuvia.models.response_models import SearchResponse
from recuvia.services.search_service import SearchService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/text", response_model=SearchResponse)
def search_by_text(request: TextSearchRequest, service: SearchService = Depends(get_search_service)):
    """
    Find items matching a free-text description.
    Text matches image embeddings poorly, so low thresholds (0.1 to 0.3) work best.
    """
    items = service.search_by_text(request.query, request.threshold, request.maxResults)
    return {"items": items}


@router.post("/image", response_model=SearchResponse)
def search_by_image(
    image: Optional[UploadFile] = File(None),
    threshold: Optional[str] = Form(None),
    maxResults: Optional[str] = Form(None),
    service: SearchService = Depends(get_search_service)
):
    image_bytes = image.file.read() if image is not None else b""
    items = service.search_by_image(
        image_bytes,
        threshold if threshold not in (None, "") else 0.5,
        maxResults
    )
    return {"items": items}


@router.post("/item", response_model=SearchResponse)
def search_by_item(request: ItemSearchRequest, service: SearchService = Depends(get_search_service)):
    """
    Find items that look like an item already reported
    """
    items = service.search_by_item(
        item_id=request.itemId,
        image_url=request.imageUrl,
        threshold=request.threshold,
        max_results=request.maxResults
    )
    return {"items": items}

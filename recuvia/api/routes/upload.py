from fastapi import APIRouter, Depends, File, Form, Response, UploadFile
from typing import Optional
import logging

from recuvia.api.dependencies import get_current_user, get_ingestion_orchestrator, get_status_store
from recuvia.exceptions import NotFoundError
from recuvia.models.item_models import AuthenticatedUser
from recuvia.models.response_models import UploadResponse, ProcessingStatusResponse
from recuvia.pipelines.ingestion_orchestrator import IngestionOrchestrator
from recuvia.services.processing_status import ProcessingStatusStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=UploadResponse)
def upload_found_item(
    user: AuthenticatedUser = Depends(get_current_user),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    orchestrator: IngestionOrchestrator = Depends(get_ingestion_orchestrator)
):
    """
    Report a found item: store the image, embed it and save the item.
    Required fields are checked by the orchestrator before anything is written.
    """
    logger.info(f"Upload requested by user {user.id}")

    image_bytes = image.file.read() if image is not None else b""

    return orchestrator.ingest(
        user=user,
        title=title,
        description=description,
        location=location,
        image_bytes=image_bytes,
        image_name=image.filename if image is not None else "",
        content_type=image.content_type if image is not None else "image/jpeg",
    )


@router.options("")
def upload_options():
    return Response(status_code=204, headers={
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Methods": "POST, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type, Authorization"
    })


@router.get("/status/{item_id}", response_model=ProcessingStatusResponse)
def get_upload_status(item_id: str, store: ProcessingStatusStore = Depends(get_status_store)):
    """
    Progress hint for an upload; lost on restart
    """
    entry = store.get(item_id)
    if not entry:
        raise NotFoundError(f"No processing status for item {item_id}")

    return {"itemId": item_id, **entry}

from typing import TYPE_CHECKING
import logging
import re
from langsmith import traceable

if TYPE_CHECKING:
    from recuvia.database.supabase_client import SupabaseClient
    from recuvia.models.pipeline_models import IngestionState

logger = logging.getLogger(__name__)


def storage_file_name(item_id: str, original_name: str) -> str:
    """
    Object name for an uploaded image: item id plus the original name with whitespace replaced
    """
    safe_name = re.sub(r"\s", "_", original_name or "image")
    return f"{item_id}-{safe_name}"


@traceable(name="store_image")
def store_image_node(state: 'IngestionState', supabase: 'SupabaseClient') -> 'IngestionState':
    """
    Upload the image bytes to object storage and resolve their public URL.
    Failures raise StorageError and are not retried.
    """
    state["pipeline_step"] = "storing_image"

    file_name = storage_file_name(state["item_id"], state.get("image_name", ""))
    client = state["user_client"]

    supabase.upload_image(client, file_name, state["image_bytes"], state.get("content_type") or "image/jpeg")
    image_url = supabase.get_public_url(client, file_name)

    state["file_name"] = file_name
    state["image_url"] = image_url
    state["pipeline_step"] = "image_stored"

    logger.info(f"Stored image for item {state['item_id']} at {image_url}")
    return state

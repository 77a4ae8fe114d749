from typing import TYPE_CHECKING
import logging
from langsmith import traceable

from recuvia.services.embedding_service import check_dimension

if TYPE_CHECKING:
    from recuvia.models.pipeline_models import IngestionState
    from recuvia.services.embedding_service import EmbeddingService

logger = logging.getLogger(__name__)


@traceable(name="embed_image")
def embed_image_node(state: 'IngestionState', embedder: 'EmbeddingService') -> 'IngestionState':
    """
    Compute the CLIP embedding of the uploaded image
    """
    state["pipeline_step"] = "embedding_image"

    # Nothing with the wrong size may reach the database
    embedding = check_dimension(embedder.embed_image(state["image_bytes"]), embedder.dimension)

    state["embedding"] = embedding
    state["pipeline_step"] = "image_embedded"

    logger.info(f"Embedded image for item {state['item_id']}: dimension={len(embedding)}")
    return state
